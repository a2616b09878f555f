"""Request/response models for the todoview API."""

from typing import Optional

from pydantic import BaseModel, Field

from todoview.models.view import TasksSnapshot


class LoginRequest(BaseModel):
    """Request model for password login."""
    password: Optional[str] = Field(None, description="Shared app password")


class LoginResponse(BaseModel):
    """Response model for login."""
    token: str
    token_type: str = "bearer"


class TasksResponse(TasksSnapshot):
    """Response for the tasks view.

    `stale` is set when the latest refresh failed and an older snapshot is
    being served; `error` then carries the failure message.
    """
    stale: bool = False
    error: Optional[str] = None


class HealthResponse(BaseModel):
    """Response for the health check."""
    status: str
    version: str
    has_snapshot: bool = False
    last_error: Optional[str] = None
