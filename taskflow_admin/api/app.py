"""Main FastAPI application factory."""
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from taskflow_admin.api.endpoints.collection_endpoints import router as collection_router
from taskflow_admin.api.endpoints.document_endpoints import router as document_router
from taskflow_admin.config.settings import CORS_ORIGINS, LOG_LEVEL
from taskflow_admin.services.errors import CollectionAdminError, ErrorKind
from taskflow_admin.services.mongodb.client import create_mongodb_client

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(mongodb_client: Optional[AsyncIOMotorClient] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        mongodb_client: Client to use instead of creating one at startup
    """
    app = FastAPI(
        title="Taskflow Admin Collections API",
        description="Multi-tenant browsing, schema inference and editing of MongoDB collections",
        version="0.1.0",
    )
    app.state.mongodb_client = mongodb_client

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(collection_router, prefix="/collections", tags=["Collections"])
    app.include_router(document_router, prefix="/collections", tags=["Documents"])

    @app.exception_handler(CollectionAdminError)
    async def collection_admin_error_handler(request: Request, exc: CollectionAdminError):
        """Render service errors as {error, kind}."""
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
        else:
            logger.info(f"{request.method} {request.url.path} rejected ({exc.kind}): {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message, "kind": exc.kind}
        )

    @app.exception_handler(PyMongoError)
    async def store_error_handler(request: Request, exc: PyMongoError):
        """Store failures are not retried here; report them as a server error."""
        logger.error(f"{request.method} {request.url.path} store error: {str(exc)}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"error": str(exc), "kind": ErrorKind.STORE_UNAVAILABLE}
        )

    @app.get("/", tags=["Health"])
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok", "message": "Taskflow admin API is running"}

    @app.on_event("startup")
    async def startup_event():
        """Startup event handler."""
        logger.info("Taskflow admin API is starting up...")
        if app.state.mongodb_client is None:
            app.state.mongodb_client = create_mongodb_client()

    @app.on_event("shutdown")
    async def shutdown_event():
        """Shutdown event handler."""
        logger.info("Taskflow admin API is shutting down...")
        if app.state.mongodb_client is not None:
            app.state.mongodb_client.close()

    return app
