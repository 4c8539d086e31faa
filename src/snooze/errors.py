from __future__ import annotations

from typing import Optional


class SnoozeError(Exception):
    """Base class for every error raised by the snooze client."""


class RemoteError(SnoozeError):
    """A request to the story service did not succeed."""

    def __init__(self, message: str = "", status: Optional[int] = None):
        super().__init__(message or self.__class__.__name__)
        self.message = message
        self.status = status


class Unauthorized(RemoteError):
    pass


class Conflict(RemoteError):
    pass


class NotFound(RemoteError):
    pass


class NetworkFailure(RemoteError):
    pass


class ServerError(RemoteError):
    pass


class MalformedUrl(SnoozeError, ValueError):
    pass


class InvalidInput(SnoozeError, ValueError):
    pass


class PreconditionFailed(SnoozeError, AssertionError):
    """A mutating operation was called in a state that does not allow it."""


class FavoriteInFlight(PreconditionFailed):
    def __init__(self, story_id: str):
        super().__init__(f"favorite change already pending for story {story_id}")
        self.story_id = story_id
