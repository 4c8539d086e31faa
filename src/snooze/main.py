#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

import argparse
import getpass
import logging
import sys
from typing import Callable, Dict, Iterable, List, Optional

from rich.console import Console
from rich.table import Table

from .client import RemoteClient
from .config import load_config, save_config, setup_logging
from .datamodels import Story, StoryDraft
from .errors import (
    Conflict,
    FavoriteInFlight,
    InvalidInput,
    NetworkFailure,
    PreconditionFailed,
    ServerError,
    SnoozeError,
    Unauthorized,
)
from .session import Session
from .stories import StoryList

logger = logging.getLogger("snooze")

console = Console()


def describe_error(error: SnoozeError) -> str:
    """Turn an error into the message shown to the user."""
    if isinstance(error, Unauthorized):
        return "Invalid or expired credentials, please log in again."
    if isinstance(error, Conflict):
        return "That username is already taken. Please choose a different one."
    if isinstance(error, (NetworkFailure, ServerError)):
        return "Could not reach the story service. Please try again."
    if isinstance(error, FavoriteInFlight):
        return "That story is still being updated, try again in a moment."
    if isinstance(error, PreconditionFailed):
        return "You need to log in first."
    if isinstance(error, InvalidInput):
        return str(error)
    return f"Something went wrong: {error}"


def render_stories(stories: Iterable[Story], session: Session, title: str) -> Table:
    user = session.current_user
    table = Table(title=title)
    if user is not None:
        table.add_column("", width=1)
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Host", style="cyan")
    table.add_column("Author")
    table.add_column("Posted by")
    for story in stories:
        row = [story.story_id, story.title, story.display_host("?"), story.author, story.username]
        if user is not None:
            row.insert(0, "*" if user.is_favorite(story) else "")
        table.add_row(*row)
    return table


def _find_story(stories: StoryList, story_id: str) -> Story:
    story = stories.get(story_id)
    if story is None:
        raise InvalidInput(f"no story with id {story_id}")
    return story


# --- Commands ---
def cmd_stories(args: argparse.Namespace, session: Session, stories: StoryList) -> None:
    stories.fetch_all(session.current_user)
    console.print(render_stories(stories, session, "Stories"))


def cmd_favorites(args: argparse.Namespace, session: Session, stories: StoryList) -> None:
    user = session.require_user()
    console.print(render_stories(user.favorites, session, "Favorites"))


def cmd_mine(args: argparse.Namespace, session: Session, stories: StoryList) -> None:
    user = session.require_user()
    console.print(render_stories(user.own_stories, session, "My stories"))


def cmd_login(args: argparse.Namespace, session: Session, stories: StoryList) -> None:
    password = args.password or getpass.getpass("Password: ")
    user = session.login(args.username, password)
    console.print(f"Logged in as [b]{user.username}[/b]")


def cmd_signup(args: argparse.Namespace, session: Session, stories: StoryList) -> None:
    password = args.password or getpass.getpass("Password: ")
    user = session.signup(args.username, password, args.name)
    console.print(f"Welcome, [b]{user.name}[/b]")


def cmd_logout(args: argparse.Namespace, session: Session, stories: StoryList) -> None:
    session.teardown()
    console.print("Logged out.")


def cmd_whoami(args: argparse.Namespace, session: Session, stories: StoryList) -> None:
    user = session.current_user
    if user is None:
        console.print("Not logged in.")
        return
    console.print(f"[b]{user.name}[/b] ({user.username}), member since {user.created_at[:10]}")
    console.print(f"{len(user.own_stories)} stories, {len(user.favorites)} favorites")


def cmd_post(args: argparse.Namespace, session: Session, stories: StoryList) -> None:
    draft = StoryDraft(title=args.title, author=args.author, url=args.url)
    story = stories.create(session.current_user, draft)
    console.print(f"Posted story {story.story_id}")


def cmd_delete(args: argparse.Namespace, session: Session, stories: StoryList) -> None:
    user = session.require_user()
    stories.fetch_all(user)
    story = stories.get(args.story_id)
    if story is not None and not user.is_own_story(story):
        raise InvalidInput("you can only delete your own stories")
    stories.remove(user, args.story_id)
    console.print(f"Deleted story {args.story_id}")


def _favorite_command(action: Callable[..., object], verb: str):
    def command(args: argparse.Namespace, session: Session, stories: StoryList) -> None:
        user = session.require_user()
        stories.fetch_all(user)
        story = _find_story(stories, args.story_id)
        action(user, story)
        console.print(f"{verb} {story.title!r}")

    return command


def cmd_toggle(args: argparse.Namespace, session: Session, stories: StoryList) -> None:
    user = session.require_user()
    stories.fetch_all(user)
    story = _find_story(stories, args.story_id)
    now_favorite = user.toggle_favorite(story)
    console.print(f"{'Favorited' if now_favorite else 'Unfavorited'} {story.title!r}")


def cmd_configure(args: argparse.Namespace, session: Session, stories: StoryList) -> None:
    config = load_config()
    if args.base_url:
        config["base_url"] = args.base_url
    if args.timeout is not None:
        if args.timeout <= 0:
            raise InvalidInput("timeout must be positive")
        config["timeout"] = args.timeout
    save_config(config)
    console.print(f"Using [b]{config['base_url']}[/b] (timeout {config['timeout']}s)")


COMMANDS: Dict[str, Callable[[argparse.Namespace, Session, StoryList], None]] = {
    "stories": cmd_stories,
    "favorites": cmd_favorites,
    "mine": cmd_mine,
    "login": cmd_login,
    "signup": cmd_signup,
    "logout": cmd_logout,
    "whoami": cmd_whoami,
    "post": cmd_post,
    "delete": cmd_delete,
    "favorite": _favorite_command(lambda user, story: user.add_favorite(story), "Favorited"),
    "unfavorite": _favorite_command(lambda user, story: user.remove_favorite(story), "Unfavorited"),
    "toggle": cmd_toggle,
    "configure": cmd_configure,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Hack or Snooze client")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("stories", help="List all stories")
    sub.add_parser("favorites", help="List your favorite stories")
    sub.add_parser("mine", help="List stories you posted")
    sub.add_parser("logout", help="Forget stored credentials")
    sub.add_parser("whoami", help="Show the logged-in user")

    login = sub.add_parser("login", help="Log in")
    login.add_argument("username")
    login.add_argument("--password")

    signup = sub.add_parser("signup", help="Create an account")
    signup.add_argument("username")
    signup.add_argument("name")
    signup.add_argument("--password")

    configure = sub.add_parser("configure", help="Set the service URL and request timeout")
    configure.add_argument("--base-url", help="Base URL of the story service")
    configure.add_argument("--timeout", type=float, help="Request timeout in seconds")

    post = sub.add_parser("post", help="Post a new story")
    post.add_argument("title")
    post.add_argument("author")
    post.add_argument("url")

    for name, help_text in (
        ("delete", "Delete one of your stories"),
        ("favorite", "Add a story to your favorites"),
        ("unfavorite", "Remove a story from your favorites"),
        ("toggle", "Flip a story's favorite status"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("story_id")

    return parser


# --- Entrypoint ---
def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    debug_path = setup_logging(args.debug)
    if debug_path:
        print(f"Debug logging enabled: {debug_path}", file=sys.stderr)

    config = load_config()
    client = RemoteClient(config)
    session = Session(client)
    if args.command not in ("login", "signup", "logout", "configure"):
        session.establish_from_stored_credentials()
    stories = StoryList(client)

    try:
        COMMANDS[args.command](args, session, stories)
    except SnoozeError as e:
        logger.error("Command %s failed: %s", args.command, e)
        console.print(f"[red]{describe_error(e)}[/red]")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
