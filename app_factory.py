"""
Application Factory

Creates and configures Flask application with all dependencies.
This factory pattern improves testability by allowing dependency injection
and configuration overrides.
"""

import atexit
import logging
import os
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS
from tempdrop.application.dependency_container import DependencyContainer
from tempdrop.application.event_publisher import EventPublisher
from tempdrop.application.reconciliation_service import RedisCycleGuard, ReconciliationService
from tempdrop.application.sweep_scheduler import SweepScheduler
from tempdrop.application.upload_service import UploadService
from tempdrop.config.celery_config import make_celery
from tempdrop.config.logging_config import configure_logging
from tempdrop.config.redis_config import (
    close_redis,
    get_redis_repository,
    init_redis,
    redis_health_check,
)
from tempdrop.config.retention_config import RetentionConfig
from tempdrop.config.storage_config import StorageConfig
from tempdrop.domain.events import DomainEvent
from tempdrop.domain.file_records import FileRecordRepository, RecordRegistrar
from tempdrop.domain.object_storage import IObjectStorageRepository
from tempdrop.domain.reconciliation import OrphanReconciler
from tempdrop.infrastructure.event_handlers import LoggingEventHandler
from tempdrop.infrastructure.redis_file_record_repository import RedisFileRecordRepository
from tempdrop.infrastructure.redis_repository import RedisRepository
from tempdrop.infrastructure.storage_factory import StorageFactory

logger = logging.getLogger(__name__)


class AppConfig:
    """Application configuration."""

    def __init__(self):
        self.api_version = os.getenv("API_VERSION", "v1")
        self.flask_env = os.getenv("FLASK_ENV", "development")
        self.is_production = self.flask_env == "production"
        self.max_upload_bytes = int(os.getenv("MAX_UPLOAD_BYTES", 104857600))

        # In thread mode the web process runs the sweep itself
        self.start_sweeper = os.getenv("START_SWEEPER", "true").lower() == "true"

        self.retention = RetentionConfig()
        self.storage = StorageConfig()


def create_app(config: Optional[AppConfig] = None) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config: Application configuration, uses default if None

    Returns:
        Configured Flask application
    """
    if config is None:
        config = AppConfig()

    configure_logging()

    # Create Flask app
    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = config.max_upload_bytes

    # Configure CORS
    CORS(
        app,
        resources={
            r"/*": {
                "origins": "*",
                "methods": ["GET", "POST", "OPTIONS"],
                "allow_headers": ["Content-Type", "Authorization"],
                "expose_headers": ["Content-Type"],
                "max_age": 3600,
            }
        },
    )

    # Initialize infrastructure
    _initialize_infrastructure(app, config)

    # Initialize services
    _initialize_services(app, config)

    # Register blueprints
    _register_blueprints(app, config)

    # Register health check endpoint
    _register_health_endpoint(app)

    # Start the in-process sweeper when no Celery beat drives it
    _start_sweeper(app, config)

    return app


def _initialize_infrastructure(app: Flask, config: AppConfig) -> None:
    """
    Initialize infrastructure components (Redis, Celery).

    Args:
        app: Flask application
        config: Application configuration
    """
    try:
        init_redis()
        logger.info("Redis initialized successfully")

        app.celery = make_celery(app, config.retention)
        logger.info("Celery initialized successfully")

    except Exception as e:
        logger.warning(f"Could not initialize infrastructure: {e}")
        app.celery = None


def _initialize_services(app: Flask, config: AppConfig) -> None:
    """
    Initialize application services and attach them to the app via DependencyContainer.

    All services are registered here as singletons and resolved via
    container.resolve() in API routes and tasks.

    PATTERN:
    --------
    1. Create DependencyContainer instance
    2. Register infrastructure adapters (Redis, record store, object store)
    3. Register domain services (registrar, reconciler)
    4. Register application services (upload, reconciliation, scheduler)
    5. Register shutdown hooks releasing store clients
    6. Attach container to Flask app context

    Args:
        app: Flask application
        config: Application configuration
    """
    try:
        container = DependencyContainer()
        retention = config.retention

        # Event publishing
        event_publisher = EventPublisher()
        event_publisher.subscribe(DomainEvent, LoggingEventHandler(logging.getLogger("tempdrop")).handle)
        container.register_singleton(EventPublisher, event_publisher)

        # Infrastructure adapters
        redis_repo = get_redis_repository()
        container.register_singleton(RedisRepository, redis_repo)

        record_repository = RedisFileRecordRepository(redis_repo, retention.retention)
        container.register_singleton(FileRecordRepository, record_repository)

        storage_repository = StorageFactory.create_storage(config.storage)
        container.register_singleton(IObjectStorageRepository, storage_repository)

        # Domain services
        registrar = RecordRegistrar(
            record_repository, retention.retention, reservation_ttl=retention.upload_reservation
        )
        container.register_singleton(RecordRegistrar, registrar)

        reconciler = OrphanReconciler(
            storage_repository,
            record_repository,
            prefix=retention.managed_prefix,
            lookup_batch_size=retention.lookup_batch_size,
            max_workers=retention.sweep_max_workers,
        )
        container.register_singleton(OrphanReconciler, reconciler)

        # Application services
        upload_service = UploadService(storage_repository, registrar, retention, event_publisher)
        container.register_singleton(UploadService, upload_service)

        guard = RedisCycleGuard(redis_repo, timeout=retention.sweep_lock_timeout)
        reconciliation_service = ReconciliationService(reconciler, guard, event_publisher)
        container.register_singleton(ReconciliationService, reconciliation_service)

        scheduler = SweepScheduler(
            reconciliation_service,
            interval=retention.sweep_interval_seconds,
            grace_period=retention.sweep_grace_period_seconds,
        )
        container.register_singleton(SweepScheduler, scheduler)

        # Hooks run in reverse: stop the sweeper before closing its stores
        container.register_shutdown_hook(close_redis)
        container.register_shutdown_hook(scheduler.stop)

        app.container = container
        logger.info(
            f"Application services initialized, retention {retention.retention_seconds}s, "
            f"prefix '{retention.managed_prefix}'"
        )

    except Exception as e:
        logger.error(f"Could not initialize services: {e}", exc_info=True)
        app.container = None


def _register_blueprints(app: Flask, config: AppConfig) -> None:
    """
    Register API blueprints.

    Args:
        app: Flask application
        config: Application configuration
    """
    from tempdrop.api.v1 import create_api_blueprint

    app.register_blueprint(create_api_blueprint())

    logger.info(
        f"API {config.api_version} registered at /api/{config.api_version} "
        f"with Swagger UI at /api/{config.api_version}/docs"
    )


def _start_sweeper(app: Flask, config: AppConfig) -> None:
    """
    Start the in-process sweep scheduler in thread mode.

    Args:
        app: Flask application
        config: Application configuration
    """
    if config.retention.sweeper_mode != "thread" or not config.start_sweeper:
        return
    if app.container is None:
        logger.warning("Sweeper not started: services are not initialized")
        return

    app.container.resolve(SweepScheduler).start()
    atexit.register(app.container.shutdown)


def _get_health_status(app: Flask) -> tuple[dict, int]:
    """
    Get health status of all system components.

    Checks Redis, Celery and the object store and returns a health status
    dictionary with the matching HTTP status code.

    Args:
        app: Flask application instance

    Returns:
        Tuple of (health_status_dict, http_status_code)
    """
    health_status = {
        "status": "ok",
        "message": "backend ready",
        "redis": "unknown",
        "celery": "unknown",
        "storage": "unknown",
    }

    # Check Redis connectivity
    try:
        if redis_health_check():
            health_status["redis"] = "connected"
        else:
            health_status["redis"] = "disconnected"
            health_status["status"] = "degraded"
    except Exception as e:
        health_status["redis"] = f"error: {str(e)}"
        health_status["status"] = "degraded"

    # Check Celery availability
    if getattr(app, "celery", None) is not None:
        health_status["celery"] = "available"
    else:
        health_status["celery"] = "unavailable"
        health_status["status"] = "degraded"

    # Check object store reachability
    container = getattr(app, "container", None)
    if container is not None and container.is_registered(IObjectStorageRepository):
        try:
            storage = container.resolve(IObjectStorageRepository)
            if storage.health_check():
                health_status["storage"] = "available"
            else:
                health_status["storage"] = "unavailable"
                health_status["status"] = "degraded"
        except Exception as e:
            health_status["storage"] = f"error: {str(e)}"
            health_status["status"] = "degraded"
    else:
        health_status["storage"] = "not_configured"
        health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code


def _register_health_endpoint(app: Flask) -> None:
    """
    Register health check endpoint.

    Args:
        app: Flask application
    """

    @app.route("/health", methods=["GET"])
    def health():
        """
        Health check endpoint.
        Returns overall health status of the application and its dependencies.
        """
        health_status, status_code = _get_health_status(app)
        return jsonify(health_status), status_code
