"""Shared test fixtures: in-memory repositories and clocks."""
