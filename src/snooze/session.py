from __future__ import annotations

import logging
from typing import Optional

from .client import RemoteClient
from .config import CREDENTIALS_FILE, clear_credentials, load_credentials, save_credentials
from .errors import PreconditionFailed
from .user import User

logger = logging.getLogger("snooze")


class Session:
    """Holds the currently logged-in user, if any.

    Everything that needs to know who is logged in asks the session; nothing
    else keeps its own copy of the user between calls.
    """

    def __init__(self, client: RemoteClient, credentials_path: str = CREDENTIALS_FILE):
        self.client = client
        self.credentials_path = credentials_path
        self.current_user: Optional[User] = None

    @property
    def is_logged_in(self) -> bool:
        return self.current_user is not None

    def require_user(self) -> User:
        if self.current_user is None:
            raise PreconditionFailed("no user is logged in")
        return self.current_user

    def establish(self, user: User) -> User:
        self.current_user = user
        save_credentials(user.login_token, user.username, self.credentials_path)
        logger.info("Session established for %s", user.username)
        return user

    def establish_from_stored_credentials(self) -> Optional[User]:
        credentials = load_credentials(self.credentials_path)
        if credentials is None:
            logger.debug("No stored credentials found")
            return None
        token, username = credentials
        user = User.resume_from_stored_credentials(self.client, token, username)
        if user is not None:
            self.current_user = user
            logger.info("Session resumed for %s", username)
        return user

    def login(self, username: str, password: str) -> User:
        return self.establish(User.login(self.client, username, password))

    def signup(self, username: str, password: str, name: str) -> User:
        return self.establish(User.signup(self.client, username, password, name))

    def teardown(self) -> None:
        if self.current_user is not None:
            logger.info("Session closed for %s", self.current_user.username)
        self.current_user = None
        clear_credentials(self.credentials_path)
