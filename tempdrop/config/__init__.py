"""Configuration for infrastructure clients and the reconciliation sweep."""
