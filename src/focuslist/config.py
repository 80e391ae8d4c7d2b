"""Configuration management for focuslist."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfoNotFoundError

from .adapters.clocks import SystemClock
from .adapters.file_store import FileTaskStore
from .adapters.firestore_rest import FirestoreTaskStore
from .errors import ConfigError
from .ports.task_store import TaskStore

logger = logging.getLogger(__name__)

FOCUSLIST_HOME = Path(os.environ.get("FOCUSLIST_HOME", Path.home() / "focuslist"))
CONFIG_FILE = FOCUSLIST_HOME / "config" / "focuslist.conf"
DATA_DIR = FOCUSLIST_HOME / "data"


@dataclass
class Config:
    """focuslist configuration."""

    user_id: str = ""
    store: str = "file"
    data_dir: str = ""
    timezone: str = "America/Toronto"
    default_focus: str = "all"
    refresh_seconds: int = 60
    log_level: str = "WARNING"
    # Firestore settings
    firestore_project: str = ""
    firestore_token: str = ""
    poll_interval: float = 5.0


def _unquote(value: str) -> str:
    """Strip quotes, or an inline comment from an unquoted value."""
    for quote in ('"', "'"):
        if value.startswith(quote):
            end_quote = value.find(quote, 1)
            return value[1:end_quote] if end_quote != -1 else value[1:]
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def _number(key: str, value: str, default, kind=int):
    try:
        return kind(value)
    except ValueError:
        logger.warning(f"Invalid {key.upper()} value {value!r}, using {default}")
        return default


def load_config(path: Path | None = None) -> Config:
    """Load configuration from focuslist.conf file."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _unquote(value.strip())

        match key:
            case "user_id":
                config.user_id = value
            case "store":
                config.store = value.lower()
            case "data_dir":
                config.data_dir = value
            case "timezone":
                config.timezone = value
            case "default_focus":
                config.default_focus = value
            case "refresh_seconds":
                config.refresh_seconds = _number(key, value, config.refresh_seconds)
            case "log_level":
                config.log_level = value.upper()
            case "firestore_project":
                config.firestore_project = value
            case "firestore_token":
                config.firestore_token = value
            case "poll_interval":
                config.poll_interval = _number(key, value, config.poll_interval, float)
            case _:
                logger.warning(f"Unknown config key: {key.upper()}")

    return config


def build_clock(config: Config) -> SystemClock:
    """Wall clock in the configured timezone."""
    try:
        return SystemClock(config.timezone or None)
    except ZoneInfoNotFoundError as e:
        raise ConfigError(f"Unknown TIMEZONE {config.timezone!r}") from e


def build_store(config: Config) -> TaskStore:
    """Construct the configured task store."""
    match config.store:
        case "file":
            data_dir = Path(config.data_dir).expanduser() if config.data_dir else DATA_DIR
            return FileTaskStore(data_dir / "tasks", clock=build_clock(config))
        case "firestore":
            if not config.firestore_project:
                raise ConfigError("FIRESTORE_PROJECT not configured. Add it to focuslist.conf")
            return FirestoreTaskStore(
                config.firestore_project,
                token=config.firestore_token,
                poll_interval=config.poll_interval,
            )
        case _:
            raise ConfigError(f"Unknown STORE {config.store!r}. Use 'file' or 'firestore'.")
