"""
API Models for response validation and Swagger documentation
"""

from flask_restx import Model, fields

# =============================================================================
# Response Models
# =============================================================================

file_record = Model(
    "FileRecord",
    {
        "id": fields.String(description="Record identifier", example="3f2a9c1e8b7d4e6fa1b2c3d4e5f60718"),
        "store_key": fields.String(
            description="Object key in the file store",
            example="uploads/1760000000000-9f86d081884c7d65.pdf",
        ),
        "original_name": fields.String(description="Client-provided file name", example="report.pdf"),
        "mime_type": fields.String(description="MIME type", example="application/pdf"),
        "size": fields.Integer(description="Size in bytes", min=0),
        "public_url": fields.String(description="Shareable address of the file"),
        "object_url": fields.String(description="Storage-native URL", allow_null=True),
        "created_at": fields.DateTime(description="Upload timestamp (UTC)"),
        "expires_at": fields.DateTime(description="When the file and its link expire (UTC)"),
    },
)

upload_response = Model(
    "UploadResponse",
    {
        "message": fields.String(description="Status message", example="File uploaded successfully"),
        "file": fields.Nested(file_record),
    },
)

error_response = Model(
    "ErrorResponse",
    {
        "error": fields.String(description="Error category"),
        "title": fields.String(description="Short error title"),
        "message": fields.String(description="User-facing error message"),
        "action": fields.String(description="Suggested next step"),
    },
)
