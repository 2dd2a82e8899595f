"""
API v1 - TempDrop REST API

This module contains the versioned API endpoints with OpenAPI/Swagger documentation.
"""

import os

from flask import Blueprint
from flask_restx import Api

from .namespaces import files_ns

# Get API version from environment
API_VERSION = os.getenv("API_VERSION", "v1")


def create_api_blueprint() -> Blueprint:
    """
    Build the API v1 blueprint.

    A fresh Blueprint and Api are created per application, so several apps
    can be built in one process.

    Returns:
        Blueprint serving /api/<version> with Swagger UI at /api/<version>/docs
    """
    blueprint = Blueprint("api_v1", __name__, url_prefix=f"/api/{API_VERSION}")

    api = Api(
        blueprint,
        version="1.0",
        title="TempDrop API",
        description="Temporary file sharing: uploaded files expire after a fixed retention window",
        doc="/docs",  # Swagger UI will be available at /api/v1/docs
        contact="TempDrop Team",
        license="MIT",
    )

    api.add_namespace(files_ns, path="/files")
    return blueprint
