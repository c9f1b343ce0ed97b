"""Environment configuration and logging setup for the bot."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import ValidationError
from rich.logging import RichHandler

from .errors import ConfigError
from .models import BotConfig

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Environment variable -> BotConfig field.
_ENV_FIELDS: dict[str, str] = {
    "TOKEN": "token",
    "LOG_FILE": "log_file",
    "LOGGER_LEVEL": "logger_level",
    "CORPUS_DIR": "corpus_dir",
    "HELP_TITLE": "help_title",
    "SELECTION_TIMEOUT": "selection_timeout",
}
_REQUIRED = ("TOKEN", "LOG_FILE", "LOGGER_LEVEL")

# discord.py logs under this name; it shares the bot's destination.
DISCORD_LOGGER = "discord"

logger = logging.getLogger(__name__)


def _find_dotenv(start_dir: Path) -> Path | None:
    search = start_dir.resolve()
    for d in [search, *search.parents]:
        candidate = d / ".env"
        if candidate.is_file():
            return candidate
    return None


def _parse_env_line(line: str) -> tuple[str, str] | None:
    """``KEY=VALUE`` (optionally ``export``-prefixed) -> (key, value)."""
    line = line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    key, _, value = line.partition("=")
    key = key.strip()
    if key.startswith("export "):
        key = key[len("export "):].strip()
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        value = value[1:-1]
    if not key:
        return None
    return key, value


def load_dotenv(start_dir: Path) -> Path | None:
    """Merge the nearest ``.env`` at or above *start_dir* into os.environ.

    Variables already present in the environment are left alone.  Returns
    the file that was loaded, or ``None`` when there is none.  Raises
    :class:`ConfigError` if the file exists but cannot be read.
    """
    path = _find_dotenv(start_dir)
    if path is None:
        return None

    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc

    loaded = 0
    for line in lines:
        pair = _parse_env_line(line)
        if pair is None:
            continue
        key, value = pair
        if key not in os.environ:
            os.environ[key] = value
            loaded += 1
    logger.debug("Loaded %d variable(s) from %s", loaded, path)
    return path


def load_config(environ: Mapping[str, str] | None = None) -> BotConfig:
    """Build a :class:`BotConfig` from environment variables.

    Raises :class:`ConfigError` naming every missing or invalid variable.
    """
    env = os.environ if environ is None else environ

    missing = [name for name in _REQUIRED if not env.get(name, "").strip()]
    if missing:
        raise ConfigError(f"missing required environment variable(s): {', '.join(missing)}")

    level = env["LOGGER_LEVEL"].strip().upper()
    if level not in LOG_LEVELS:
        raise ConfigError(f"LOGGER_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {env['LOGGER_LEVEL']!r}")

    values: dict[str, str] = {}
    for name, field in _ENV_FIELDS.items():
        raw = env.get(name, "").strip()
        if raw:
            values[field] = raw
    values["logger_level"] = level

    try:
        return BotConfig(**values)
    except ValidationError as exc:
        bad = sorted({
            name for name, field in _ENV_FIELDS.items()
            for err in exc.errors() if err["loc"] and err["loc"][0] == field
        })
        raise ConfigError(f"invalid environment variable(s): {', '.join(bad) or exc}") from exc


def configure_logging(config: BotConfig) -> logging.Logger:
    """Send ``reflectbot`` and discord.py log records to stdout (via rich) or a file.

    Both loggers get the same handler and level.  Returns the ``reflectbot``
    logger.
    """
    level = logging.getLevelName(config.logger_level)

    if config.log_file.lower() == "stdout":
        handler: logging.Handler = RichHandler(rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.FileHandler(config.log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter("[%(asctime)s] %(name)s.%(levelname)s: %(message)s"))
    handler.setLevel(level)

    for name in ("reflectbot", DISCORD_LOGGER):
        target = logging.getLogger(name)
        target.handlers.clear()
        target.addHandler(handler)
        target.setLevel(level)
    return logging.getLogger("reflectbot")
