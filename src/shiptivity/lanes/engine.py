"""Lane engine: priority reassignment and board operations.

This is the entry-point for every client move.  It wraps :class:`ClientStore`
with the ranking rules that keep each lane densely ordered ``1..n``.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from loguru import logger

from .errors import ClientNotFound, InvalidClientId, InvalidLane, InvalidPriority
from .model import Client, Lane
from .store import ClientStore


# ---------------------------------------------------------------------------
# Input coercion
# ---------------------------------------------------------------------------

# SQLite stores INTEGER columns as signed 64-bit values.
SQLITE_MAX_INT = 2**63 - 1
SQLITE_MIN_INT = -(2**63)

# Plain decimal integers only: no "1_000", "0x10" or "1e3".
_INT_RE = re.compile(r"^\s*[+-]?[0-9]+\s*$")


def _parse_int_text(raw: str) -> Optional[int]:
    if not _INT_RE.match(raw):
        return None
    return int(raw.strip(), 10)


def parse_client_id(raw: Any) -> int:
    """Coerce a path/CLI id to ``int``.

    Raises :class:`InvalidClientId` for anything that is not an integer and
    :class:`ClientNotFound` for integers no SQLite row id can hold.
    """
    if isinstance(raw, bool):
        raise InvalidClientId()
    if isinstance(raw, int):
        value = raw
    else:
        value = _parse_int_text(str(raw))
        if value is None:
            raise InvalidClientId()
    if not SQLITE_MIN_INT <= value <= SQLITE_MAX_INT:
        raise ClientNotFound()
    return value


def parse_lane(raw: Any) -> Optional[Lane]:
    """Return the requested lane, ``None`` when unset, or raise :class:`InvalidLane`."""
    if raw is None or raw == "":
        return None
    lane = Lane.parse(raw)
    if lane is None:
        raise InvalidLane()
    return lane


def parse_priority(raw: Any) -> Optional[int]:
    """Return the requested priority, ``None`` when unset, or raise :class:`InvalidPriority`.

    Plain integer strings (``"3"``) are accepted; booleans, fractional
    numbers and anything outside ``1..SQLITE_MAX_INT`` are not.
    """
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise InvalidPriority()
    if isinstance(raw, float):
        if not raw.is_integer():
            raise InvalidPriority()
        value = int(raw)
    elif isinstance(raw, int):
        value = raw
    elif isinstance(raw, str):
        value = _parse_int_text(raw)
        if value is None:
            raise InvalidPriority()
    else:
        raise InvalidPriority()
    if not 1 <= value <= SQLITE_MAX_INT:
        raise InvalidPriority()
    return value


# ---------------------------------------------------------------------------
# Lane report
# ---------------------------------------------------------------------------

@dataclass
class LaneReport:
    """Density check for one lane."""

    lane: Lane
    size: int = 0
    duplicates: list[int] = field(default_factory=list)
    missing: list[int] = field(default_factory=list)
    out_of_range: list[int] = field(default_factory=list)

    @property
    def is_dense(self) -> bool:
        return not (self.duplicates or self.missing or self.out_of_range)

    def to_dict(self) -> dict[str, Any]:
        return {
            "lane": self.lane.value,
            "size": self.size,
            "dense": self.is_dense,
            "duplicates": self.duplicates,
            "missing": self.missing,
            "out_of_range": self.out_of_range,
        }


def _check_lane(lane: Lane, priorities: list[int]) -> LaneReport:
    n = len(priorities)
    counts = Counter(priorities)
    return LaneReport(
        lane=lane,
        size=n,
        duplicates=sorted(p for p, c in counts.items() if c > 1),
        missing=[p for p in range(1, n + 1) if p not in counts],
        out_of_range=sorted(p for p in counts if p < 1 or p > n),
    )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class LaneEngine:
    """Keep every lane densely ranked while clients move around the board.

    Parameters
    ----------
    store:
        The process-wide :class:`ClientStore` handle.
    """

    def __init__(self, store: ClientStore) -> None:
        self.store = store

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_clients(self, status: Any = None) -> list[Client]:
        return self.store.read_snapshot(status=parse_lane(status))

    def get_client(self, client_id: Any) -> Client:
        client = self.store.get_one(parse_client_id(client_id))
        if client is None:
            raise ClientNotFound()
        return client

    # ------------------------------------------------------------------
    # Reassignment
    # ------------------------------------------------------------------

    def reassign(self, client_id: Any, status: Any = None, priority: Any = None) -> list[Client]:
        """Move a client to ``status`` at ``priority`` and return every client.

        Either argument may be omitted: a missing status keeps the current
        lane, a missing priority keeps the current rank (or appends to the
        end of the new lane).  Everything is validated before the first
        shift is issued, and the whole move runs in one transaction.
        """
        cid = parse_client_id(client_id)
        with self.store.transaction() as tx:
            client = tx.get(cid)
            if client is None:
                raise ClientNotFound()
            new_lane = parse_lane(status) or client.status
            new_priority = parse_priority(priority)

            old_lane, old_priority = client.status, client.priority

            if new_lane == old_lane:
                if new_priority is None or new_priority == old_priority:
                    logger.debug("Client {} unchanged at {}#{}", cid, old_lane.value, old_priority)
                    return tx.list_all()
                if new_priority > old_priority:
                    tx.shift_down(old_lane, old_priority, new_priority)
                else:
                    tx.shift_up(old_lane, new_priority, old_priority)
            else:
                tx.shift_down_from(old_lane, old_priority)
                if new_priority is None:
                    new_priority = (tx.max_priority(new_lane) or 0) + 1
                else:
                    tx.shift_up_from(new_lane, new_priority)

            tx.place(cid, new_lane, new_priority)
            logger.info(
                "Moved client {} from {}#{} to {}#{}",
                cid, old_lane.value, old_priority, new_lane.value, new_priority,
            )
            return tx.list_all()

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def lane_report(self) -> dict[Lane, LaneReport]:
        """Check the dense-ranking invariant for every lane."""
        by_lane: dict[Lane, list[int]] = {lane: [] for lane in Lane}
        for client in self.store.read_snapshot():
            by_lane[client.status].append(client.priority)
        return {lane: _check_lane(lane, prios) for lane, prios in by_lane.items()}

    def compact_lane(self, status: Any) -> list[Client]:
        """Renumber one lane to ``1..n`` keeping its order (ties by id)."""
        lane = parse_lane(status)
        if lane is None:
            raise InvalidLane()
        with self.store.transaction() as tx:
            lane_clients = tx.find(status=lane)
            changed = 0
            for rank, client in enumerate(lane_clients, start=1):
                if client.priority != rank:
                    tx.set_priority(client.id, rank)
                    changed += 1
            if changed:
                logger.info("Compacted lane {}: renumbered {} client(s)", lane.value, changed)
            return tx.find(status=lane)

    def seed(self, records: Iterable[dict[str, Any]]) -> list[Client]:
        """Insert clients from plain mappings.

        Unranked records go to the end of their lane; a ranked record is
        inserted at that rank and pushes the rest of the lane down.
        """
        created: list[Client] = []
        with self.store.transaction() as tx:
            for record in records:
                priority = parse_priority(record.get("priority"))
                client = Client.from_dict({**record, "priority": priority})
                if priority is None:
                    client.priority = (tx.max_priority(client.status) or 0) + 1
                else:
                    tx.shift_up_from(client.status, priority)
                created.append(tx.add(client))
        logger.info("Seeded {} client(s)", len(created))
        return created
