from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from sqlalchemy import text
from typing import Optional
import argparse
import logging

import uvicorn

from products_api.config import Settings, get_settings
from products_api.database import Base, create_db_engine, create_session_factory
from products_api.models.product import Product  # noqa: F401
from products_api.api import products, health

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    Owns the database engine: it is built and verified before the first
    request and disposed when the application stops, including when
    startup itself fails.
    """
    settings = app.state.settings

    # Startup
    logger.info("Starting up application...")
    engine = create_db_engine(settings.database_url, echo=settings.DB_ECHO)
    try:
        logger.info(f"Connecting to database at {engine.url.render_as_string()}...")
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))

        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")

        app.state.engine = engine
        app.state.session_factory = create_session_factory(engine)

        yield
    finally:
        # Shutdown
        logger.info("Shutting down application...")
        engine.dispose()


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors as `{"error": message}`."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed or mistyped request bodies are client errors."""
    logger.info(f"Rejected payload for {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request payload"}
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    """Anything else is a server error, still rendered as JSON."""
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc!r}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"}
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application for the given settings."""
    settings = settings or get_settings()

    # Configure logging
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    app = FastAPI(
        title=settings.APP_NAME,
        description="""
        A minimal CRUD API over a single `products` table.

        - **GET /product**: list products (`count`, `start` for offset paging)
        - **GET /product/{id}**: fetch one product
        - **POST /product**: create a product
        - **PUT /product/{id}**: update name and/or price
        - **DELETE /product/{id}**: delete a product

        Errors are returned as `{"error": message}`.
        """,
        version=settings.APP_VERSION,
        lifespan=lifespan
    )
    app.state.settings = settings

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API routers
    app.include_router(health.router)
    app.include_router(products.router)

    @app.get("/", tags=["Root"])
    def root():
        """Root endpoint with API information."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "docs": "/docs",
            "health": "/health/"
        }

    return app


app = create_app()


def serve(address: Optional[str] = None):
    """
    Run the API server, blocking until the process is stopped.

    Args:
        address: "host:port" to listen on; defaults to APP_HOST/APP_PORT
    """
    settings = get_settings()
    host, port = settings.APP_HOST, settings.APP_PORT

    if address:
        host_part, _, port_part = address.rpartition(":")
        host = host_part or host
        port = int(port_part)

    uvicorn.run(app, host=host, port=port, log_level=settings.LOG_LEVEL.lower())


def main():
    parser = argparse.ArgumentParser(description="Run the products API server")
    parser.add_argument(
        "address",
        nargs="?",
        help="host:port to listen on (default: APP_HOST:APP_PORT)"
    )
    args = parser.parse_args()
    serve(args.address)


if __name__ == "__main__":
    main()
