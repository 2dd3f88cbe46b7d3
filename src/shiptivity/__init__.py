"""Provide the public `shiptivity` package exports."""

from __future__ import annotations

from .lanes.engine import LaneEngine
from .lanes.model import Client, Lane
from .lanes.store import ClientStore

__all__ = ["Client", "ClientStore", "Lane", "LaneEngine"]
