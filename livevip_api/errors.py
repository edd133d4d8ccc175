"""Exception hierarchy for the stream collection service."""

from __future__ import annotations


class LiveVipError(Exception):
    """Base exception for all livevip_api errors."""


class ValidationError(LiveVipError):
    """Malformed input shape or a missing required field."""

    def __init__(
        self,
        message: str,
        *,
        field: str = "",
        received: str | None = None,
    ) -> None:
        self.field = field
        self.received = received
        super().__init__(message)


class NotFound(LiveVipError):
    """The referenced stream id does not exist."""

    def __init__(self, stream_id: int) -> None:
        self.stream_id = stream_id
        super().__init__(f"stream {stream_id} not found")


class StorageUnavailable(LiveVipError):
    """The backing store could not be reached or a statement failed."""
