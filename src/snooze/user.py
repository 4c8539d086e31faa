from __future__ import annotations

import enum
import logging
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional, Set

from .client import RemoteClient
from .datamodels import Story, UserPayload
from .errors import FavoriteInFlight, NotFound, SnoozeError

logger = logging.getLogger("snooze")


class FavoriteState(enum.Enum):
    NOT_FAVORITED = "not_favorited"
    PENDING_ADD = "pending_add"
    FAVORITED = "favorited"
    PENDING_REMOVE = "pending_remove"


class User:
    """The logged-in user: identity, own stories and favorites.

    Favorite changes are optimistic. The local list changes first and is put
    back if the service rejects the change. Only one change per story can be
    pending at a time.
    """

    def __init__(self, payload: UserPayload, token: str, client: RemoteClient):
        self.username = payload.username
        self.name = payload.name
        self.created_at = payload.created_at
        self.own_stories: List[Story] = list(payload.stories)
        self.favorites: List[Story] = []
        for story in payload.favorites:
            if not self.is_favorite(story):
                self.favorites.append(story)
        self.login_token = token
        self.client = client
        self._pending: dict[str, FavoriteState] = {}
        self._deleted: Set[str] = set()
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"User(username={self.username!r}, own={len(self.own_stories)}, favorites={len(self.favorites)})"

    # --- Construction ---
    @classmethod
    def signup(cls, client: RemoteClient, username: str, password: str, name: str) -> "User":
        payload, token = client.signup(username, password, name)
        logger.info("Signed up user %s", payload.username)
        return cls(payload, token, client)

    @classmethod
    def login(cls, client: RemoteClient, username: str, password: str) -> "User":
        payload, token = client.login(username, password)
        logger.info("Logged in user %s", payload.username)
        return cls(payload, token, client)

    @classmethod
    def resume_from_stored_credentials(
        cls, client: RemoteClient, token: str, username: str
    ) -> Optional["User"]:
        """Log in again with a stored token. Returns None instead of raising."""
        if not token or not username:
            return None
        try:
            payload = client.fetch_user(token, username)
        except SnoozeError as e:
            logger.warning("Resuming session for %s failed: %s", username, e)
            return None
        return cls(payload, token, client)

    # --- Queries ---
    def is_favorite(self, story: Story) -> bool:
        return any(s.story_id == story.story_id for s in self.favorites)

    def is_own_story(self, story: Story) -> bool:
        return any(s.story_id == story.story_id for s in self.own_stories)

    def favorite_state(self, story: Story) -> FavoriteState:
        with self._lock:
            pending = self._pending.get(story.story_id)
        if pending is not None:
            return pending
        return FavoriteState.FAVORITED if self.is_favorite(story) else FavoriteState.NOT_FAVORITED

    # --- Favorites ---
    def add_favorite(self, story: Story) -> None:
        with self._in_flight(story, FavoriteState.PENDING_ADD):
            if self.is_favorite(story):
                return
            with self._lock:
                if story.story_id in self._deleted:
                    logger.info("Story %s was deleted, not favoriting", story.story_id)
                    return
                self.favorites.append(story)
            try:
                self.client.add_favorite(self.login_token, self.username, story.story_id)
            except NotFound:
                logger.info("Story %s no longer exists, not favoriting", story.story_id)
                self._drop_favorite(story.story_id)
            except SnoozeError:
                self._drop_favorite(story.story_id)
                raise

    def remove_favorite(self, story: Story) -> None:
        with self._in_flight(story, FavoriteState.PENDING_REMOVE):
            position = self._favorite_index(story.story_id)
            if position is None:
                return
            previous = self.favorites[position]
            self._drop_favorite(story.story_id)
            try:
                self.client.remove_favorite(self.login_token, self.username, story.story_id)
            except NotFound:
                logger.info("Story %s no longer exists, dropping favorite", story.story_id)
            except SnoozeError:
                with self._lock:
                    if story.story_id not in self._deleted:
                        self.favorites.insert(position, previous)
                raise

    def toggle_favorite(self, story: Story) -> bool:
        """Flip the favorite state of a story and return the new state."""
        if self.is_favorite(story):
            self.remove_favorite(story)
        else:
            self.add_favorite(story)
        return self.is_favorite(story)

    def forget_story(self, story_id: str) -> None:
        """Drop a deleted story from own stories and favorites for good.

        Favorite changes still pending for the story will not bring it back.
        """
        with self._lock:
            self._deleted.add(story_id)
            self.own_stories = [s for s in self.own_stories if s.story_id != story_id]
            self.favorites[:] = [s for s in self.favorites if s.story_id != story_id]

    def _favorite_index(self, story_id: str) -> Optional[int]:
        for i, s in enumerate(self.favorites):
            if s.story_id == story_id:
                return i
        return None

    def _drop_favorite(self, story_id: str) -> None:
        position = self._favorite_index(story_id)
        if position is not None:
            del self.favorites[position]

    @contextmanager
    def _in_flight(self, story: Story, state: FavoriteState) -> Iterator[None]:
        with self._lock:
            if story.story_id in self._pending:
                raise FavoriteInFlight(story.story_id)
            self._pending[story.story_id] = state
        try:
            yield
        finally:
            with self._lock:
                self._pending.pop(story.story_id, None)
