"""
FastAPI Application Entry Point

This module initializes the FastAPI application and configures:
- API routes
- Middleware (logging, CORS)
- Rate limiting and exception handlers
- Registry lifecycle (load state and start cleanup on startup, stop on shutdown)
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shortlink.api import endpoints
from shortlink.core.exceptions import ServiceUnavailableError
from shortlink.core.rate_limit import limiter
from shortlink.core.registry_manager import initialize_registry, shutdown_registry
from shortlink.core.setting import settings
from shortlink.middleware.logging import add_logging_middleware

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Short Link Registry",
    description="URL shortening service with expiring shortcodes and click statistics",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

add_logging_middleware(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceUnavailableError)
async def service_unavailable_handler(request: Request, exc: ServiceUnavailableError):
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc)},
    )


# Health endpoints defined before router to match before catch-all route
@app.get("/", tags=["Health"])
async def root():
    return {
        "message": "Short Link Registry",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for monitoring."""
    registry_ready = getattr(app.state, "registry", None) is not None
    return {"status": "healthy" if registry_ready else "starting"}


app.include_router(endpoints.router, tags=["URL Shortener"])


@app.on_event("startup")
async def startup_event():
    """Restore registry state and start the cleanup task."""
    await initialize_registry(app, settings)


@app.on_event("shutdown")
async def shutdown_event():
    """Stop the cleanup task and close the database."""
    await shutdown_registry(app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("shortlink.main:app", host="0.0.0.0", port=8000)
