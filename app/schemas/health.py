"""Pydantic schemas for the health check response."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness plus database reachability. Status is 'degraded' when the database does not answer."""

    status: Literal["ok", "degraded"] = Field(default="ok", description="Service status")
    version: str = Field(description="Running API version")
    environment: str = Field(description="Current app environment (e.g. dev, prod)")
    database: Literal["connected", "disconnected"] = Field(
        description="Result of a trivial query against the users/products database",
    )
