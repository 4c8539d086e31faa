from __future__ import annotations

import functools
from unittest.mock import patch

import pytest

from snooze import main as cli
from snooze.config import load_credentials, save_credentials
from snooze.datamodels import UserPayload
from snooze.errors import (
    Conflict,
    FavoriteInFlight,
    NetworkFailure,
    PreconditionFailed,
    ServerError,
    Unauthorized,
)
from snooze.session import Session


@pytest.fixture
def credentials_path(tmp_path):
    return str(tmp_path / "credentials.json")


@pytest.fixture
def run(client, credentials_path):
    def _run(*argv):
        with patch("snooze.main.RemoteClient", return_value=client), patch(
            "snooze.main.load_config", return_value={}
        ), patch(
            "snooze.main.Session", functools.partial(Session, credentials_path=credentials_path)
        ):
            return cli.main(list(argv))

    return _run


@pytest.mark.parametrize(
    "error, text",
    [
        (Unauthorized("x", 401), "log in again"),
        (Conflict("x", 409), "already taken"),
        (NetworkFailure("x"), "try again"),
        (ServerError("x", 500), "try again"),
        (FavoriteInFlight("1"), "still being updated"),
        (PreconditionFailed("x"), "log in first"),
    ],
)
def test_describe_error(error, text):
    assert text in cli.describe_error(error)


def test_stories_lists_without_login(run, client, make_story, capsys):
    client.list_stories.return_value = [make_story("1", title="Hello")]
    assert run("stories") == 0
    out = capsys.readouterr().out
    assert "Hello" in out
    assert "1.example.com" in out


def test_login_saves_credentials(run, client, credentials_path):
    client.login.return_value = (UserPayload("alice", "Alice", "2023"), "tok")
    assert run("login", "alice", "--password", "pw") == 0
    assert load_credentials(credentials_path) == ("tok", "alice")


def test_login_failure_exits_nonzero(run, client, capsys):
    client.login.side_effect = Unauthorized("bad", 401)
    assert run("login", "alice", "--password", "pw") == 1
    assert "log in again" in capsys.readouterr().out


def test_post_requires_login(run, client):
    assert run("post", "A", "X", "http://a.com") == 1
    client.create_story.assert_not_called()


def test_favorite_with_resumed_session(run, client, make_story, credentials_path):
    save_credentials("tok", "alice", credentials_path)
    client.fetch_user.return_value = UserPayload("alice", "Alice", "2023")
    client.list_stories.return_value = [make_story("1")]
    assert run("favorite", "1") == 0
    client.add_favorite.assert_called_once_with("tok", "alice", "1")


def test_delete_refuses_other_users_story(run, client, make_story, credentials_path):
    save_credentials("tok", "alice", credentials_path)
    client.fetch_user.return_value = UserPayload("alice", "Alice", "2023")
    client.list_stories.return_value = [make_story("1", username="bob")]
    assert run("delete", "1") == 1
    client.delete_story.assert_not_called()


def test_logout_clears_credentials(run, client, credentials_path):
    save_credentials("tok", "alice", credentials_path)
    assert run("logout") == 0
    assert load_credentials(credentials_path) is None
    client.fetch_user.assert_not_called()


def test_configure_saves_base_url_and_timeout(run, client):
    with patch("snooze.main.save_config") as mock_save:
        assert run("configure", "--base-url", "http://localhost:3000", "--timeout", "5") == 0
    mock_save.assert_called_once_with({"base_url": "http://localhost:3000", "timeout": 5.0})
    client.fetch_user.assert_not_called()


def test_configure_rejects_bad_timeout(run):
    with patch("snooze.main.save_config") as mock_save:
        assert run("configure", "--timeout", "0") == 1
    mock_save.assert_not_called()
