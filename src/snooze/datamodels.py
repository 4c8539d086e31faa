from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List
from urllib.parse import urlsplit

from .errors import InvalidInput, MalformedUrl, ServerError

DEFAULT_PORTS = {"http": 80, "https": 443}


def _require(payload: Dict[str, Any], key: str) -> Any:
    try:
        return payload[key]
    except (KeyError, TypeError):
        raise ServerError(f"response payload is missing '{key}'") from None


# --- Data models ---
@dataclass(frozen=True)
class Story:
    story_id: str
    title: str
    author: str
    url: str
    username: str
    created_at: str

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Story":
        """Build a Story from the service's wire shape."""
        return cls(
            story_id=_require(payload, "storyId"),
            title=_require(payload, "title"),
            author=_require(payload, "author"),
            url=_require(payload, "url"),
            username=_require(payload, "username"),
            created_at=_require(payload, "createdAt"),
        )

    def host_name(self) -> str:
        """Return the host part of the story URL, with the port when it is not the default."""
        try:
            parts = urlsplit(self.url)
            port = parts.port
        except (ValueError, TypeError) as e:
            raise MalformedUrl(f"cannot parse url {self.url!r}: {e}") from None
        if not parts.scheme or not parts.hostname:
            raise MalformedUrl(f"cannot parse url {self.url!r}")
        host = f"[{parts.hostname}]" if ":" in parts.hostname else parts.hostname
        if port is None or DEFAULT_PORTS.get(parts.scheme) == port:
            return host
        return f"{host}:{port}"

    def display_host(self, fallback: str = "") -> str:
        try:
            return self.host_name()
        except MalformedUrl:
            return fallback


@dataclass(frozen=True)
class StoryDraft:
    title: str
    author: str
    url: str

    def validate(self) -> None:
        for name in ("title", "author", "url"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise InvalidInput(f"story {name} must not be empty")

    def to_payload(self) -> Dict[str, str]:
        return {"title": self.title, "author": self.author, "url": self.url}


@dataclass
class UserPayload:
    username: str
    name: str
    created_at: str
    favorites: List[Story] = field(default_factory=list)
    stories: List[Story] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "UserPayload":
        return cls(
            username=_require(payload, "username"),
            name=payload.get("name", ""),
            created_at=payload.get("createdAt", ""),
            favorites=[Story.from_payload(s) for s in payload.get("favorites") or []],
            stories=[Story.from_payload(s) for s in payload.get("stories") or []],
        )
