from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import BASE_URL, HTTP_TIMEOUT, REQUEST_HEADERS
from .datamodels import Story, StoryDraft, UserPayload
from .errors import (
    Conflict,
    InvalidInput,
    NetworkFailure,
    NotFound,
    RemoteError,
    ServerError,
    Unauthorized,
)

logger = logging.getLogger("snooze")

STATUS_ERRORS = {
    401: Unauthorized,
    403: Unauthorized,
    404: NotFound,
    409: Conflict,
}


def _require_text(**values: str) -> None:
    for name, value in values.items():
        if not isinstance(value, str) or not value.strip():
            raise InvalidInput(f"{name} must not be empty")


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.reason or ""
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return resp.reason or ""


def classify(resp: requests.Response) -> RemoteError:
    """Map a failed HTTP response onto the error taxonomy."""
    error_class = STATUS_ERRORS.get(resp.status_code, ServerError)
    return error_class(_error_message(resp), status=resp.status_code)


class RemoteClient:
    """Typed wrapper around the story service's REST API.

    Holds no model state. Every call is sent at most once; failures come back
    as RemoteError subclasses.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.base_url = self.config.get("base_url", BASE_URL).rstrip("/")
        self.timeout = self.config.get("timeout", HTTP_TIMEOUT)
        self.session = self._create_session()

    def _create_session(self) -> requests.Session:
        s = requests.Session()
        s.headers.update(REQUEST_HEADERS)
        adapter = HTTPAdapter(max_retries=Retry(total=0, redirect=False, raise_on_status=False))
        s.mount("https://", adapter)
        s.mount("http://", adapter)
        return s

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, path)
        try:
            resp = self.session.request(
                method, url, params=params, json=body, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise NetworkFailure(str(e)) from e

        logger.debug("%s %s -> %d", method, path, resp.status_code)
        if not resp.ok:
            error = classify(resp)
            logger.warning("%s %s rejected: %s", method, path, error)
            raise error

        if not resp.content:
            return {}
        try:
            data = resp.json()
        except ValueError:
            raise ServerError("response was not JSON", status=resp.status_code) from None
        if not isinstance(data, dict):
            raise ServerError("unexpected response shape", status=resp.status_code)
        return data

    # --- Stories ---
    def list_stories(self, skip: Optional[int] = None, limit: Optional[int] = None) -> List[Story]:
        params = {}
        if skip is not None:
            params["skip"] = skip
        if limit is not None:
            params["limit"] = limit
        data = self._request("GET", "/stories", params=params or None)
        stories = data.get("stories")
        if not isinstance(stories, list):
            raise ServerError("response payload is missing 'stories'")
        return [Story.from_payload(s) for s in stories]

    def create_story(self, token: str, draft: StoryDraft) -> Story:
        _require_text(token=token)
        draft.validate()
        data = self._request(
            "POST", "/stories", body={"token": token, "story": draft.to_payload()}
        )
        return Story.from_payload(data.get("story"))

    def delete_story(self, token: str, story_id: str) -> None:
        _require_text(token=token, story_id=story_id)
        self._request("DELETE", f"/stories/{quote(story_id, safe='')}", body={"token": token})

    # --- Favorites ---
    def add_favorite(self, token: str, username: str, story_id: str) -> None:
        _require_text(token=token, username=username, story_id=story_id)
        self._request("POST", self._favorite_path(username, story_id), body={"token": token})

    def remove_favorite(self, token: str, username: str, story_id: str) -> None:
        _require_text(token=token, username=username, story_id=story_id)
        self._request("DELETE", self._favorite_path(username, story_id), body={"token": token})

    @staticmethod
    def _favorite_path(username: str, story_id: str) -> str:
        return f"/users/{quote(username, safe='')}/favorites/{quote(story_id, safe='')}"

    # --- Users ---
    def fetch_user(self, token: str, username: str) -> UserPayload:
        _require_text(token=token, username=username)
        data = self._request(
            "GET", f"/users/{quote(username, safe='')}", params={"token": token}
        )
        return UserPayload.from_payload(data.get("user"))

    def login(self, username: str, password: str) -> Tuple[UserPayload, str]:
        _require_text(username=username, password=password)
        data = self._request(
            "POST", "/login", body={"user": {"username": username, "password": password}}
        )
        return self._user_with_token(data)

    def signup(self, username: str, password: str, name: str) -> Tuple[UserPayload, str]:
        _require_text(username=username, password=password, name=name)
        data = self._request(
            "POST",
            "/signup",
            body={"user": {"username": username, "password": password, "name": name}},
        )
        return self._user_with_token(data)

    @staticmethod
    def _user_with_token(data: Dict[str, Any]) -> Tuple[UserPayload, str]:
        token = data.get("token")
        if not token:
            raise ServerError("response payload is missing 'token'")
        return UserPayload.from_payload(data.get("user")), token
