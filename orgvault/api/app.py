"""FastAPI application for orgvault."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import dataclasses
import logging
import os
import sys

from orgvault.backup import BackupManager
from orgvault.config import VaultConfig
from orgvault._storage import StorageConnection, StorageFactory
from .config import settings
from .routers import backup, restore, health

# App-managed pattern: attach our own stdout handler and don't propagate,
# so INFO logs are visible regardless of uvicorn's logging config
vault_logger = logging.getLogger("orgvault")
vault_logger.setLevel(logging.INFO)
vault_logger.propagate = False
vault_logger.handlers.clear()

console_handler = logging.StreamHandler(sys.stdout)
console_handler.setLevel(logging.INFO)
formatter = logging.Formatter(
    '%(asctime)s - [%(name)s] - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
console_handler.setFormatter(formatter)
vault_logger.addHandler(console_handler)

# Fall back to server-managed logging
if os.getenv("DISABLE_APP_LOGGING", "false").lower() == "true":
    vault_logger.handlers.clear()
    vault_logger.propagate = True

logger = logging.getLogger(__name__)


def load_config() -> VaultConfig:
    """VaultConfig from the environment with API settings applied on top."""
    config = VaultConfig.from_env()

    storage_overrides = {}
    if settings.storage_backend:
        storage_overrides["backend"] = settings.storage_backend
    if settings.redis_url:
        storage_overrides["redis_url"] = settings.redis_url
        storage_overrides["redis_password"] = settings.redis_password

    backup_overrides = {}
    if settings.snapshot_backend:
        backup_overrides["snapshot_backend"] = settings.snapshot_backend
    if settings.backup_dir:
        backup_overrides["backup_dir"] = settings.backup_dir

    return dataclasses.replace(
        config,
        storage=dataclasses.replace(config.storage, **storage_overrides),
        backup=dataclasses.replace(config.backup, **backup_overrides),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage storage connection, backup manager and scheduler lifecycle."""
    logger.info("Initializing orgvault...")
    config = load_config()

    connection = None
    if config.storage.backend == "redis":
        connection = StorageConnection(
            config.storage.redis_url,
            password=config.storage.redis_password,
            retry_interval=config.storage.retry_interval,
            connection_timeout=config.storage.redis_connection_timeout,
            socket_timeout=config.storage.redis_socket_timeout,
            max_connections=config.storage.redis_max_connections,
        )
        # A missing connection string is fatal; a failed first ping is not
        await connection.connect()

    collections = StorageFactory.create_collections(config.storage, connection)
    backup_manager = BackupManager.from_config(config, collections)

    app.state.config = config
    app.state.storage_connection = connection
    app.state.backup_manager = backup_manager

    if config.scheduler.enabled:
        backup_manager.start_scheduler()
    else:
        logger.info("Backup scheduler disabled (set BACKUP_SCHEDULER_ENABLED=true to enable)")

    logger.info(
        f"orgvault ready: storage={config.storage.backend}, snapshots={config.backup.snapshot_backend}"
    )

    yield

    logger.info("Shutting down orgvault...")
    await backup_manager.stop_scheduler()
    if connection is not None:
        await connection.close()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url=f"{settings.api_prefix}/docs",
        openapi_url=f"{settings.api_prefix}/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(backup.router, prefix=settings.api_prefix)
    app.include_router(restore.router, prefix=settings.api_prefix)
    app.include_router(health.router, prefix=settings.api_prefix)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": settings.api_title,
            "version": settings.api_version,
            "docs": f"{settings.api_prefix}/docs"
        }

    return app


app = create_app()
