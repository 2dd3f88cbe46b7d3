"""Client model for the lane board.

A client lives in exactly one :class:`Lane` and carries a 1-based
``priority`` that ranks it inside that lane (1 = top of the swimlane).
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Lane(str, Enum):
    """Board-level status used for swimlanes."""

    BACKLOG = "backlog"
    IN_PROGRESS = "in-progress"
    COMPLETE = "complete"

    @classmethod
    def values(cls) -> list[str]:
        return [lane.value for lane in cls]

    @classmethod
    def parse(cls, raw: Any) -> Optional["Lane"]:
        """Return the lane named by *raw*, or ``None`` if it is not a lane."""
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            return None
        try:
            return cls(raw)
        except ValueError:
            return None


# ---------------------------------------------------------------------------
# Client dataclass
# ---------------------------------------------------------------------------

@dataclass
class Client:
    """A row of the ``clients`` table."""

    id: Optional[int] = None  # assigned by the store on insert
    name: str = ""
    description: str = ""
    status: Lane = Lane.BACKLOG
    priority: int = 1

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON shape served by the API."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority,
        }

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Client":
        return cls(
            id=int(row["id"]),
            name=row["name"] or "",
            description=row["description"] or "",
            status=Lane(row["status"]),
            priority=int(row["priority"]),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Client":
        """Build a client from a seed record, coercing the lane."""
        lane = Lane.parse(data.get("status", Lane.BACKLOG.value))
        if lane is None:
            raise ValueError(f"'status' must be one of {Lane.values()}, got {data.get('status')!r}")
        raw_id = data.get("id")
        raw_priority = data.get("priority")
        return cls(
            id=int(raw_id) if raw_id is not None else None,
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            status=lane,
            priority=int(raw_priority) if raw_priority is not None else 0,
        )
