from __future__ import annotations

import json

import pytest

from snooze.config import load_credentials, save_credentials
from snooze.datamodels import UserPayload
from snooze.errors import Conflict, PreconditionFailed, Unauthorized
from snooze.session import Session


@pytest.fixture
def credentials_path(tmp_path):
    return str(tmp_path / "credentials.json")


@pytest.fixture
def session(client, credentials_path):
    return Session(client, credentials_path=credentials_path)


def test_new_session_is_empty(session):
    assert session.current_user is None
    assert not session.is_logged_in
    with pytest.raises(PreconditionFailed):
        session.require_user()


def test_establish_persists_credentials(session, user, credentials_path):
    session.establish(user)
    assert session.require_user() is user
    assert load_credentials(credentials_path) == ("tok-123", "alice")


def test_login_establishes(session, client, credentials_path):
    client.login.return_value = (UserPayload("alice", "Alice", "2023"), "tok")
    user = session.login("alice", "pw")
    assert session.current_user is user
    with open(credentials_path) as f:
        assert json.load(f) == {"token": "tok", "username": "alice"}


def test_signup_conflict_leaves_session_empty(session, client, credentials_path):
    client.signup.side_effect = Conflict("username taken", 409)
    with pytest.raises(Conflict):
        session.signup("alice", "pw", "Alice")
    assert session.current_user is None
    assert load_credentials(credentials_path) is None


def test_resume_from_stored_credentials(session, client, credentials_path):
    save_credentials("tok", "alice", credentials_path)
    client.fetch_user.return_value = UserPayload("alice", "Alice", "2023")
    user = session.establish_from_stored_credentials()
    client.fetch_user.assert_called_once_with("tok", "alice")
    assert session.current_user is user
    assert user.login_token == "tok"


def test_resume_with_bad_token_stays_unestablished(session, client, credentials_path):
    save_credentials("badtoken", "alice", credentials_path)
    client.fetch_user.side_effect = Unauthorized("invalid token", 401)
    assert session.establish_from_stored_credentials() is None
    assert session.current_user is None


def test_resume_without_stored_credentials_skips_remote(session, client):
    assert session.establish_from_stored_credentials() is None
    client.fetch_user.assert_not_called()


def test_teardown_clears_user_and_credentials(session, user, credentials_path):
    session.establish(user)
    session.teardown()
    assert session.current_user is None
    assert load_credentials(credentials_path) is None


def test_sessions_are_independent(client, user, tmp_path):
    first = Session(client, credentials_path=str(tmp_path / "a.json"))
    second = Session(client, credentials_path=str(tmp_path / "b.json"))
    first.establish(user)
    assert second.current_user is None
