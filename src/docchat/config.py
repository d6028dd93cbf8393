"""User configuration: load and validate config.toml."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from docchat.markup import HtmlClasses
from docchat.suggestions import DEFAULT_INTERVAL

DEFAULT_DOCUMENT_NAME = "your documents"

_HTML_KEYS = {
    "paragraph_class": "paragraph",
    "ordered_list_class": "ordered_list",
    "unordered_list_class": "unordered_list",
    "code_class": "code",
}


class ConfigError(Exception):
    """Raised when config.toml is malformed or has wrongly typed values."""


@dataclass
class Config:
    """Settings read from config.toml."""

    endpoint: str | None = None  # chat service URL; None disables sending
    document_name: str = DEFAULT_DOCUMENT_NAME
    example_questions: list[str] = field(default_factory=list)
    suggestion_interval: float = DEFAULT_INTERVAL
    html: HtmlClasses = field(default_factory=HtmlClasses)


def get_config_path() -> Path:
    """Return the path to config.toml, respecting XDG_CONFIG_HOME."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "docchat" / "config.toml"


def _require_str(data: dict[str, Any], key: str, path: Path) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        msg = f"'{key}' in {path} must be a string"
        raise ConfigError(msg)
    return value


def _load_html(data: Any, path: Path) -> HtmlClasses:
    if not isinstance(data, dict):
        msg = f"[html] in {path} must be a table"
        raise ConfigError(msg)
    kwargs: dict[str, str] = {}
    for key, attr in _HTML_KEYS.items():
        value = _require_str(data, key, path)
        if value is not None:
            kwargs[attr] = value
    return HtmlClasses(**kwargs)


def load_config(path: Path) -> Config:
    """Load and validate settings from a TOML file.

    Returns the defaults if the file does not exist.
    Raises ConfigError on parse errors or wrongly typed values.
    """
    if not path.exists():
        return Config()

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {path}: {e}"
        raise ConfigError(msg) from e
    except (OSError, UnicodeDecodeError) as e:
        msg = f"Cannot read {path}: {e}"
        raise ConfigError(msg) from e

    config = Config()
    config.endpoint = _require_str(data, "endpoint", path) or None
    config.document_name = _require_str(data, "document_name", path) or DEFAULT_DOCUMENT_NAME

    questions = data.get("example_questions", [])
    if not isinstance(questions, list) or not all(isinstance(q, str) for q in questions):
        msg = f"'example_questions' in {path} must be a list of strings"
        raise ConfigError(msg)
    config.example_questions = questions

    interval = data.get("suggestion_interval", DEFAULT_INTERVAL)
    if isinstance(interval, bool) or not isinstance(interval, int | float) or interval <= 0:
        msg = f"'suggestion_interval' in {path} must be a positive number"
        raise ConfigError(msg)
    config.suggestion_interval = float(interval)

    if "html" in data:
        config.html = _load_html(data["html"], path)
    return config
