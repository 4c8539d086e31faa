from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Union

from .client import RemoteClient
from .datamodels import Story, StoryDraft
from .errors import NotFound, PreconditionFailed
from .user import User

logger = logging.getLogger("snooze")


def _require_user(user: Optional[User], action: str) -> User:
    if user is None:
        raise PreconditionFailed(f"cannot {action} a story without a logged-in user")
    return user


class StoryList:
    """All known stories, newest first.

    Creating and deleting go to the service first; the list, and the user's
    own stories and favorites, only change once the service has confirmed.
    """

    def __init__(self, client: RemoteClient, stories: Optional[List[Story]] = None):
        self.client = client
        self.stories: List[Story] = []
        for story in stories or []:
            if story.story_id not in self:
                self.stories.append(story)

    @classmethod
    def get_stories(cls, client: RemoteClient) -> "StoryList":
        """Fetch every story from the service and wrap them in a StoryList."""
        return cls(client, client.list_stories())

    def __len__(self) -> int:
        return len(self.stories)

    def __iter__(self) -> Iterator[Story]:
        return iter(self.stories)

    def __contains__(self, item: Union[Story, str]) -> bool:
        story_id = item.story_id if isinstance(item, Story) else item
        return any(s.story_id == story_id for s in self.stories)

    def get(self, story_id: str) -> Optional[Story]:
        for story in self.stories:
            if story.story_id == story_id:
                return story
        return None

    def fetch_all(self, user: Optional[User] = None) -> None:
        """Replace the list with the service's current stories.

        On failure the existing list is kept and the error propagates.
        """
        fetched = self.client.list_stories()
        unique: Dict[str, Story] = {}
        for story in fetched:
            unique.setdefault(story.story_id, story)
        self.stories = list(unique.values())
        logger.info("Fetched %d stories", len(self.stories))
        if user is not None:
            self.reconcile(user)

    def reconcile(self, user: User) -> None:
        """Point the user's cached stories at the canonical copies held here."""
        canonical = {s.story_id: s for s in self.stories}
        user.own_stories = [canonical.get(s.story_id, s) for s in user.own_stories]
        user.favorites[:] = [canonical.get(s.story_id, s) for s in user.favorites]

    def create(self, user: Optional[User], draft: StoryDraft) -> Story:
        user = _require_user(user, "create")
        draft.validate()
        story = self.client.create_story(user.login_token, draft)

        self._drop(story.story_id)
        self.stories.insert(0, story)
        user.own_stories = [story] + [s for s in user.own_stories if s.story_id != story.story_id]
        logger.info("Created story %s", story.story_id)
        return story

    def remove(self, user: Optional[User], story_id: str) -> None:
        user = _require_user(user, "delete")
        try:
            self.client.delete_story(user.login_token, story_id)
        except NotFound:
            logger.info("Story %s already gone on the server", story_id)

        self._drop(story_id)
        user.forget_story(story_id)
        logger.info("Removed story %s", story_id)

    def replace(self, user: Optional[User], story_id: str, draft: StoryDraft) -> Story:
        """Edit a story by posting a replacement and then deleting the original."""
        user = _require_user(user, "edit")
        replacement = self.create(user, draft)
        self.remove(user, story_id)
        return replacement

    def _drop(self, story_id: str) -> None:
        self.stories = [s for s in self.stories if s.story_id != story_id]
