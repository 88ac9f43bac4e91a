import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from links2go import dependencies
from links2go.api.v1 import urls, redirect
from links2go.config import settings
from links2go.exceptions import ShortenerError
from links2go.logging_config import setup_logging
from links2go.store.connection import verify_connection


logger = logging.getLogger("links2go.app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: configure logging and make sure Redis answers. There is no
    fallback store, so an unreachable Redis aborts startup.

    Shutdown: drain detached click writes, then close the client.
    """
    setup_logging(settings.log_level, settings.log_file, settings.log_json)

    redis_client = dependencies.get_redis()
    await verify_connection(redis_client)
    logger.info(f"{settings.app_name} {settings.app_version} started ({settings.environment})")

    yield

    await dependencies.get_url_service().drain(timeout=settings.shutdown_drain_timeout)
    await redis_client.aclose()
    logger.info(f"{settings.app_name} stopped")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="A URL shortener service backed by Redis",
    debug=settings.debug,
    lifespan=lifespan,
)


@app.exception_handler(ShortenerError)
async def handle_shortener_error(request: Request, exc: ShortenerError):
    """Map service errors to their HTTP status"""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors (400), like rejected URLs"""
    message = "; ".join(error["msg"] for error in exc.errors()) or "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


@app.get("/")
def read_root():
    """Root endpoint with API information"""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc"
    }


@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


######## Include routers
app.include_router(urls.router, prefix="/api")
app.include_router(redirect.router)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
