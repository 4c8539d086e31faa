from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from snooze.client import RemoteClient
from snooze.datamodels import Story, UserPayload
from snooze.user import User


def _make_story(story_id: str, title: str = "A story", username: str = "alice") -> Story:
    return Story(
        story_id=story_id,
        title=title,
        author="X",
        url=f"http://{story_id}.example.com/post",
        username=username,
        created_at="2024-01-01T00:00:00.000Z",
    )


@pytest.fixture
def make_story():
    return _make_story


@pytest.fixture
def client():
    return MagicMock(spec=RemoteClient)


@pytest.fixture
def user(client):
    payload = UserPayload(username="alice", name="Alice", created_at="2023-05-01T12:00:00.000Z")
    return User(payload, "tok-123", client)
