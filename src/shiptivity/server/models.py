"""Pydantic models for API requests and responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class ClientInfo(BaseModel):
    """Client as served by the API."""

    id: int
    name: str = ""
    description: str = ""
    status: str
    priority: int


class UpdateClientRequest(BaseModel):
    # Left untyped so bad values reach the engine and come back as
    # {message, long_message} 400s instead of pydantic 422s.
    status: Any = None
    priority: Any = None


class ErrorResponse(BaseModel):
    message: str
    long_message: str


class RootResponse(BaseModel):
    message: str
