"""Caller-input errors raised by the lane engine.

Each error carries the short ``message`` / ``long_message`` pair that the
HTTP layer serves verbatim with a 400 status.
"""

from __future__ import annotations


class ClientError(ValueError):
    message = "Invalid request."
    long_message = ""

    def __init__(self, long_message: str | None = None) -> None:
        if long_message is not None:
            self.long_message = long_message
        super().__init__(f"{self.message} {self.long_message}".strip())

    def to_dict(self) -> dict[str, str]:
        return {"message": self.message, "long_message": self.long_message}


class InvalidClientId(ClientError):
    message = "Invalid id provided."
    long_message = "Id can only be integer."


class ClientNotFound(ClientError):
    message = "Invalid id provided."
    long_message = "Cannot find client with that id."


class InvalidLane(ClientError):
    message = "Invalid status provided."
    long_message = "Status can only be one of the following: [backlog | in-progress | complete]."


class InvalidPriority(ClientError):
    message = "Invalid priority provided."
    long_message = "Priority can only be positive integer."
