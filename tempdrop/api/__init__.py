"""
API Package

Versioned REST API for file uploads and lookups.
"""
