from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

# --- Configuration ---
BASE_URL = "https://hack-or-snooze-v3.herokuapp.com"
HTTP_TIMEOUT = 15

CONFIG_DIR = os.path.expanduser("~/.config/snooze")
CONFIG_PATH = os.path.join(CONFIG_DIR, "config.json")
CREDENTIALS_FILE = os.path.join(CONFIG_DIR, "credentials.json")

REQUEST_HEADERS = {
    "User-Agent": "snooze/0.1",
    "Accept": "application/json",
}

DEFAULT_CONFIG: Dict[str, Any] = {
    "base_url": BASE_URL,
    "timeout": HTTP_TIMEOUT,
}

# --- Logging ---
logger = logging.getLogger("snooze")
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def setup_logging(debug: bool = False, log_dir: Optional[str] = None) -> Optional[str]:
    """Point the snooze logger at a per-run debug file, or silence it.

    Handlers from an earlier call are closed first, so calling this twice does
    not log twice. Returns the debug file path when debugging.
    """
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if not debug:
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.CRITICAL)
        return None

    run_id = f"{datetime.now():%Y%m%dT%H%M%S}_{os.getpid()}"
    debug_path = os.path.join(log_dir or tempfile.gettempdir(), f"snooze_debug_{run_id}.log")
    file_handler = logging.FileHandler(debug_path, mode="a")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(file_handler)
    logger.setLevel(logging.DEBUG)

    logger.debug("Debug logging enabled to %s", debug_path)
    return debug_path


def ensure_config_file_exists(path: str = CONFIG_PATH) -> None:
    """Write the default config file if the user's config file is not found."""
    if os.path.exists(path):
        return
    logger.info("Config file not found at %s, creating default.", path)
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w") as f:
            json.dump(DEFAULT_CONFIG, f, indent=2)
    except OSError as e:
        logger.error("Failed to create default config file: %s", e)


def load_config(path: str = CONFIG_PATH) -> Dict[str, Any]:
    """Load the main configuration file, falling back to defaults for missing keys."""
    ensure_config_file_exists(path)
    config = dict(DEFAULT_CONFIG)
    try:
        with open(path, "r") as f:
            config.update(json.load(f))
            logger.info("Loaded config from %s", path)
    except (IOError, json.JSONDecodeError) as e:
        logger.error("Failed to load config from %s: %s", path, e)
    return config


def save_config(config: Dict[str, Any], path: str = CONFIG_PATH) -> None:
    """Save the main configuration file."""
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w") as f:
            json.dump(config, f, indent=2)
        logger.info("Saved config to %s", path)
    except IOError as e:
        logger.error("Failed to save config to %s: %s", path, e)


# --- Persisted credentials ---
def load_credentials(path: str = CREDENTIALS_FILE) -> Optional[Tuple[str, str]]:
    """Return the stored (token, username) pair, or None if nothing usable is stored."""
    if not os.path.exists(path):
        return None
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (IOError, json.JSONDecodeError):
        return None
    if not isinstance(data, dict):
        return None
    token = data.get("token")
    username = data.get("username")
    if not token or not username:
        return None
    return token, username


def save_credentials(token: str, username: str, path: str = CREDENTIALS_FILE) -> None:
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w") as f:
            json.dump({"token": token, "username": username}, f)
    except IOError as e:
        logger.error("Failed to save credentials to %s: %s", path, e)


def clear_credentials(path: str = CREDENTIALS_FILE) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error("Failed to clear credentials at %s: %s", path, e)
