from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response payload for the /health endpoint."""

    status: Literal["ok", "degraded"] = Field(..., description="Overall service status.")
    uptime: float = Field(..., description="Seconds since the app was created.")
    memoryMB: float = Field(..., description="Resident memory of the service process in MB.")
    gotenberg: Literal["reachable", "unhealthy", "unreachable"] = Field(..., description="Renderer probe result.")
