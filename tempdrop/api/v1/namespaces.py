"""
API Namespaces - Organized endpoint groups
"""

import os

from flask import current_app, request
from flask_restx import Namespace, Resource
from werkzeug.datastructures import FileStorage
from werkzeug.exceptions import RequestEntityTooLarge

from tempdrop.api.v1.models import error_response, file_record, upload_response
from tempdrop.application.upload_service import UploadService
from tempdrop.domain.errors import (
    DuplicateKeyError,
    ErrorCategory,
    RecordNotFoundError,
    TransientStoreError,
    create_error_response,
)

# =============================================================================
# Files Namespace - Upload and lookup of temporary files
# =============================================================================

files_ns = Namespace("files", description="Temporary file operations")

for _model in (file_record, upload_response, error_response):
    files_ns.add_model(_model.name, _model)

upload_parser = files_ns.parser()
upload_parser.add_argument(
    "file", location="files", type=FileStorage, required=True, help="File to share"
)


def _stream_size(stream) -> int:
    """Size of a seekable upload stream, leaving it rewound."""
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


@files_ns.route("/upload")
class FileUpload(Resource):
    """Upload a file for temporary sharing"""

    @files_ns.doc("upload_file")
    @files_ns.expect(upload_parser)
    @files_ns.response(201, "File uploaded", upload_response)
    @files_ns.response(400, "No File Uploaded", error_response)
    @files_ns.response(409, "Upload Conflict", error_response)
    @files_ns.response(413, "File Too Large", error_response)
    @files_ns.response(503, "Storage Unavailable", error_response)
    @files_ns.response(500, "Upload Failed", error_response)
    def post(self):
        """
        Upload a file

        Stores the file and returns its record. The file and its public link
        are removed automatically once the retention window has passed.
        """
        try:
            upload = request.files.get("file")
        except RequestEntityTooLarge as e:
            return create_error_response(
                ErrorCategory.FILE_TOO_LARGE, str(e), status_code=413
            )

        if upload is None or not upload.filename:
            return create_error_response(
                ErrorCategory.NO_FILE_UPLOADED, "No file uploaded", status_code=400
            )

        try:
            upload_service = current_app.container.resolve(UploadService)
            record = upload_service.upload(
                upload.stream,
                original_name=upload.filename,
                mime_type=upload.mimetype or "application/octet-stream",
                size=_stream_size(upload.stream),
            )

            return {
                "message": "File uploaded successfully",
                "file": upload_service.describe(record),
            }, 201

        except DuplicateKeyError as e:
            return create_error_response(
                ErrorCategory.DUPLICATE_KEY, str(e), status_code=409
            )
        except TransientStoreError as e:
            current_app.logger.warning(f"Upload failed, store unavailable: {e}")
            return create_error_response(
                ErrorCategory.STORAGE_UNAVAILABLE, str(e), status_code=503
            )
        except Exception as e:
            current_app.logger.exception(f"Unexpected error in /files/upload: {str(e)}")
            return create_error_response(
                ErrorCategory.UPLOAD_FAILED,
                f"Unexpected error: {str(e)}",
                status_code=500,
            )


@files_ns.route("/<string:record_id>")
@files_ns.param("record_id", "The file record identifier")
class FileInfo(Resource):
    """File record lookup"""

    @files_ns.doc("get_file")
    @files_ns.response(200, "Success", file_record)
    @files_ns.response(404, "File Not Found", error_response)
    @files_ns.response(503, "Storage Unavailable", error_response)
    def get(self, record_id):
        """
        Get file information

        Expired records are reported exactly like records that never existed.
        """
        try:
            upload_service = current_app.container.resolve(UploadService)
            record = upload_service.get_record(record_id)
            return upload_service.describe(record), 200

        except RecordNotFoundError:
            return create_error_response(
                ErrorCategory.FILE_NOT_FOUND,
                f"File {record_id} not found or expired",
                status_code=404,
            )
        except TransientStoreError as e:
            return create_error_response(
                ErrorCategory.STORAGE_UNAVAILABLE, str(e), status_code=503
            )
        except Exception as e:
            current_app.logger.exception(f"Unexpected error in /files/{record_id}: {str(e)}")
            return create_error_response(
                ErrorCategory.SYSTEM_ERROR,
                f"Unexpected error: {str(e)}",
                status_code=500,
            )
