"""FastAPI application exposing the live capture session."""
from typing import Optional

from fastapi import FastAPI

from sessiongeo.api import session
from sessiongeo.services.recorder import CaptureContext


def create_app(capture: Optional[CaptureContext] = None) -> FastAPI:
    """
    Build the API around a capture context.

    Args:
        capture: The context owned by the running recorder

    Returns:
        FastAPI app with the session routes
    """
    app = FastAPI(
        title="Session Geometry API",
        description="Download and extract live session recordings",
        version="0.1.0",
    )
    app.state.capture = capture or CaptureContext()

    app.include_router(session.router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "Session Geometry API",
            "version": "0.1.0",
            "docs": "/docs",
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "recording": app.state.capture.active}

    return app
