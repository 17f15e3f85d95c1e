"""HTTP status endpoint for a running termsh server."""

from typing import TYPE_CHECKING

from fastapi import FastAPI

from .models import HealthOutput, ServerStatus

if TYPE_CHECKING:
    from .server import TerminalServer


def create_status_app(server: "TerminalServer") -> FastAPI:
    """Build the status app bound to one server instance."""
    app = FastAPI(
        title="termsh-status",
        description="Status endpoint for the termsh terminal server"
    )

    @app.get("/health", response_model=HealthOutput)
    async def health_check():
        """Health check endpoint."""
        return HealthOutput()

    @app.get("/status", response_model=ServerStatus)
    async def status():
        """Session counters and sandbox root."""
        return server.status()

    return app
