"""Pydantic models for the termsh status endpoint."""

from pydantic import BaseModel, Field


class HealthOutput(BaseModel):
    """Liveness check response."""
    status: str = Field(default="ok", description="Always 'ok' while the server runs")
    service: str = Field(default="termsh", description="Service name")


class ServerStatus(BaseModel):
    """Snapshot of the terminal server."""
    active_sessions: int = Field(description="Connections currently being served")
    max_sessions: int = Field(description="Concurrent session limit")
    total_sessions: int = Field(description="Sessions accepted since start")
    rejected_sessions: int = Field(description="Connections turned away at the session limit")
    workdir: str = Field(description="Sandbox root directory")
