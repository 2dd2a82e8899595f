"""
main.py

Flask backend for temporary file sharing. Uploaded files are stored in an
object store, registered in Redis with a fixed retention window and removed
by a periodic reconciliation sweep once their record has expired.

Dependencies:
  - Python packages: Flask, flask-restx, flask-cors, redis, celery, boto3,
    google-cloud-storage
  - Infrastructure: Redis server

Notes:
  - API v1 endpoints available at /api/v1/ with Swagger docs at /api/v1/docs
  - SWEEPER_MODE=celery runs the sweep from Celery beat:
      celery -A celery_app.celery_app worker -B -Q default,reconcile_queue
  - SWEEPER_MODE=thread runs the sweep inside this process
"""

import os

from app_factory import create_app

app = create_app()

if __name__ == "__main__":
    host = os.getenv("FLASK_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_PORT", 5001))
    debug = os.getenv("FLASK_DEBUG", "false").lower() == "true"

    # The reloader would start a second sweeper thread
    app.run(host=host, port=port, debug=debug, use_reloader=False)
