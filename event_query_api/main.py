"""
Main application entry point.
Initializes and starts the query API service.
"""
import logging
import signal
import sys
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

import uvicorn

from .api import create_app
from .cache import Memoizer
from .config import Config
from .event_bus import EventBusClient, build_token, fetch_sourcelist
from .gate import QueryGate
from .models import SourcePolicy
from .store import LocalObjectStore, ObjectStore, S3ObjectStore
from .uploader import Uploader
from .views import ViewPipeline

# Configure logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)


def build_store() -> ObjectStore:
    """Object store selected by STORE_BACKEND"""
    if Config.STORE_BACKEND == "local":
        Config.ensure_data_dir()
        return LocalObjectStore(Config.DATA_DIR)
    if Config.STORE_BACKEND == "s3":
        return S3ObjectStore(
            bucket_name=Config.S3_BUCKET_NAME,
            access_key=Config.S3_KEY,
            secret_key=Config.S3_SECRET,
            region_name=Config.S3_REGION_NAME,
        )
    raise ValueError(f"Unknown STORE_BACKEND: {Config.STORE_BACKEND}")


class Application:
    """Main application class that manages lifecycle of all components"""

    def __init__(self, store: Optional[ObjectStore] = None, policy: Optional[SourcePolicy] = None):
        """
        Args:
            store: Object store to use instead of the configured one
            policy: Source snapshot to use instead of fetching the allowlist
        """
        self.start_time = datetime.utcnow()
        self.store = store
        self.policy = policy
        self.uploader: Optional[Uploader] = None
        self.event_bus: Optional[EventBusClient] = None
        self.gate: Optional[QueryGate] = None

    async def startup(self):
        """Initialize all components"""
        logger.info(f"Starting {Config.APP_NAME}...")

        if self.store is None:
            self.store = build_store()
        logger.info(f"Object store: {self.store.describe()}")

        if self.policy is None:
            allowed = await fetch_sourcelist(Config.ARTIFACT_BASE, Config.SOURCELIST_NAME)
            self.policy = SourcePolicy(
                allowed=allowed,
                excluded=frozenset(Config.EXCLUDE_SOURCE_IDS)
            )
        logger.info(f"Excluded source ids: {sorted(self.policy.excluded)}")

        self.event_bus = EventBusClient(
            base_url=Config.EVENT_BUS_BASE,
            token=build_token(Config.JWT_SECRETS),
            timeout=Config.EVENT_BUS_TIMEOUT
        )

        # Initialize and start background uploads
        self.uploader = Uploader(
            store=self.store,
            bucket=Config.S3_BUCKET_NAME,
            maxsize=Config.UPLOAD_QUEUE_SIZE,
            workers=Config.UPLOAD_WORKERS
        )
        await self.uploader.start()

        pipeline = ViewPipeline(
            memoizer=Memoizer(self.store, self.uploader),
            event_bus=self.event_bus,
            policy=self.policy,
            service_base=Config.SERVICE_BASE
        )
        self.gate = QueryGate(pipeline, self.policy)

        logger.info(f"Application started successfully at {self.start_time.isoformat()}Z")

    async def shutdown(self):
        """Cleanup all components"""
        logger.info(f"Shutting down {Config.APP_NAME}...")

        # Finish queued uploads before closing the store
        if self.uploader:
            await self.uploader.stop()
        if self.event_bus:
            await self.event_bus.close()
        if self.store:
            self.store.close()

        logger.info("Application shutdown complete")


# Global application instance
app_instance = Application()


@asynccontextmanager
async def lifespan(app):
    """FastAPI lifespan context manager"""
    # Startup
    await app_instance.startup()

    # attach initialized components so endpoints can access them
    app.state.gate = app_instance.gate
    app.state.uploader = app_instance.uploader
    app.state.start_time = app_instance.start_time

    try:
        yield
    finally:
        # Shutdown
        await app_instance.shutdown()


def create_fastapi_app():
    """Create FastAPI application with lifespan"""
    fastapi_app = create_app(homepage_url=Config.HOMEPAGE_URL, version=Config.APP_VERSION)
    fastapi_app.router.lifespan_context = lifespan
    return fastapi_app


def main():
    """Main entry point"""
    logger.info("=" * 60)
    logger.info(f"{Config.APP_NAME} v{Config.APP_VERSION}")
    logger.info("Read-through cached views over the Event Bus archive")
    logger.info("=" * 60)

    # Create FastAPI app
    app = create_fastapi_app()

    # Setup signal handlers for graceful shutdown
    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    logger.info(f"Start server on {Config.PORT}")
    uvicorn.run(
        app,
        host=Config.HOST,
        port=Config.PORT,
        log_level=Config.LOG_LEVEL.lower(),
        access_log=True
    )


if __name__ == "__main__":
    main()
