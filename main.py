"""Main FastAPI application"""
import logging
import logging.config
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi

from config import Settings
from routes import router as api_router

# --- Add slowapi imports ---
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware


def build_logging_config(level: str = "INFO") -> dict:
    """Unified logging configuration with Rich for the app and uvicorn loggers."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                # RichHandler renders its own timestamp and level columns
                "format": "%(name)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "default": {
                "class": "rich.logging.RichHandler",
                "formatter": "default",
                "level": "DEBUG",
                "rich_tracebacks": True,
                "show_time": True,
                "show_path": False,
                "log_time_format": "%Y-%m-%d %H:%M:%S",
                "markup": False,
            },
        },
        "loggers": {
            "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.error": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "": {  # Root logger for our application
                "handlers": ["default"],
                "level": level,
                "propagate": False,
            },
        },
    }


logger = logging.getLogger(__name__)


async def connect_to_mongo(app: FastAPI, settings: Settings) -> Optional[AsyncIOMotorClient]:
    """
    Opens the process-wide client and stores the expenses collection on app.state.
    The collection stays None (routes answer 503) only when no client can be built;
    an unreachable server is left to the driver, which reconnects on later calls.
    """
    if not settings.mongodb_uri:
        logger.error("MONGODB_URI (or DB_USER/DB_PASS/DB_HOST) not set! Database connection will fail.")
        return None
    logger.info(f"Connecting to MongoDB database '{settings.db_name}'...")
    try:
        client = AsyncIOMotorClient(
            settings.mongodb_uri,
            server_api=ServerApi("1", strict=True, deprecation_errors=True),
        )
    except PyMongoError as e:
        logger.error(f"Failed to create MongoDB client: {e}")
        return None
    app.state.expenses_collection = client[settings.db_name].get_collection(settings.collection_name)
    try:
        await client.admin.command("ping")
        logger.info(f"Successfully connected to MongoDB database: {settings.db_name}")
    except PyMongoError as e:
        logger.warning(f"MongoDB ping failed at startup, requests will fail until it is reachable: {e}")
    return client


def create_app(
    settings: Optional[Settings] = None,
    collection: Optional[AsyncIOMotorCollection] = None,
) -> FastAPI:
    """
    Builds the application. When `collection` is given it is used as-is and no
    MongoDB connection is opened.
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = None
        if app.state.expenses_collection is None:
            client = await connect_to_mongo(app, settings)

        yield # Application runs here

        if client is not None:
            logger.info("Closing MongoDB connection...")
            client.close()
            app.state.expenses_collection = None
            logger.info("MongoDB connection closed.")

    app = FastAPI(
        title="Expense Store API",
        description="API for creating, listing, updating and deleting expense records.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.expenses_collection = collection

    # --- Rate Limiter ---
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit] if settings.rate_limit else [],
        enabled=bool(settings.rate_limit),
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # --- Middleware (added last runs first) ---
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_credentials="*" not in settings.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix=settings.api_prefix, tags=["expenses"])
    return app


load_dotenv() # Searches for .env in current dir and parents
settings = Settings.from_env()
logging.config.dictConfig(build_logging_config(settings.log_level))
app = create_app(settings)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
    )
