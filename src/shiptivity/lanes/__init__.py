"""Lane board: client model, SQLite store and the priority reassignment engine.

Every lane keeps its clients densely ranked ``1..n``; :class:`LaneEngine`
is the only code that moves clients between ranks or lanes.
"""

from .engine import LaneEngine, LaneReport
from .errors import ClientError, ClientNotFound, InvalidClientId, InvalidLane, InvalidPriority
from .model import Client, Lane
from .store import ClientStore

__all__ = [
    "Client",
    "ClientError",
    "ClientNotFound",
    "ClientStore",
    "InvalidClientId",
    "InvalidLane",
    "InvalidPriority",
    "Lane",
    "LaneEngine",
    "LaneReport",
]
