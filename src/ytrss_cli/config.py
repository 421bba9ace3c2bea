"""Runtime configuration for ytrss-cli."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path

from .exceptions import ConfigError

DEFAULT_BASE_URL = "http://localhost:8090/api/v1"
DEFAULT_CONFIG_PATH = Path("~/.config/ytrss-cli/config.json")
BASE_URL_ENV_VAR = "YTRSS_BASE_URL"


def _expand(raw: str) -> Path:
    return Path(os.path.expanduser(raw)).resolve()


def _string_setting(payload: dict, key: str, default: str) -> str:
    """Return ``payload[key]`` if it is a non-empty string, else raise."""
    value = payload.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{key} must be a non-empty string, got {value!r}")
    return value


def _validate_base_url(value: str) -> str:
    base_url = value.strip().rstrip("/")
    if not base_url.startswith(("http://", "https://")):
        raise ConfigError(f"base_url must be an http(s) URL, got {value!r}")
    return base_url


@dataclass(frozen=True)
class Config:
    """Runtime configuration loaded from config.json."""

    base_url: str = DEFAULT_BASE_URL
    poll_interval_seconds: float = 2.0
    request_timeout_seconds: float = 30.0
    downloads_dir: Path = Path("downloads")
    cache_dir: Path = field(default_factory=lambda: _expand("~/.cache/ytrss-cli"))
    tui_refresh_per_second: int = 8

    @property
    def log_file(self) -> Path:
        return self.cache_dir / "ytrss.log"

    @classmethod
    def from_dict(cls, payload: dict) -> Config:
        """Create a Config object from a raw dictionary."""
        if not isinstance(payload, dict):
            raise ConfigError("Config file must contain a JSON object")

        try:
            poll_interval_seconds = float(payload.get("poll_interval_seconds", 2.0))
            request_timeout_seconds = float(payload.get("request_timeout_seconds", 30.0))
            tui_refresh_per_second = int(payload.get("tui_refresh_per_second", 8))
        except (TypeError, ValueError) as err:
            raise ConfigError(f"Invalid numeric config value: {err}") from err

        if poll_interval_seconds <= 0:
            raise ConfigError(
                f"poll_interval_seconds must be positive, got {poll_interval_seconds}"
            )
        if request_timeout_seconds <= 0:
            raise ConfigError(
                f"request_timeout_seconds must be positive, got {request_timeout_seconds}"
            )
        if tui_refresh_per_second <= 0:
            raise ConfigError(
                f"tui_refresh_per_second must be positive, got {tui_refresh_per_second}"
            )

        base_url = _validate_base_url(_string_setting(payload, "base_url", DEFAULT_BASE_URL))
        downloads_dir = _string_setting(payload, "downloads_dir", "downloads")
        cache_dir = _string_setting(payload, "cache_dir", "~/.cache/ytrss-cli")

        return cls(
            base_url=base_url,
            poll_interval_seconds=poll_interval_seconds,
            request_timeout_seconds=request_timeout_seconds,
            downloads_dir=Path(os.path.expanduser(downloads_dir)),
            cache_dir=_expand(cache_dir),
            tui_refresh_per_second=tui_refresh_per_second,
        )


def load_config(path: Path | None = None) -> Config:
    """Load configuration from the provided path.

    A missing file at the default location yields the defaults; a missing file
    that was asked for explicitly is an error. ``YTRSS_BASE_URL`` overrides the
    base URL either way and is validated like the file value.
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH.expanduser()
        data: dict = {}
        if path.exists():
            data = _read_json(path)
    else:
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        data = _read_json(path)

    config = Config.from_dict(data)

    override = os.environ.get(BASE_URL_ENV_VAR)
    if override:
        config = replace(config, base_url=_validate_base_url(override))
    return config


def _read_json(path: Path) -> dict:
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except (OSError, json.JSONDecodeError) as err:
        raise ConfigError(f"Failed to read config {path}: {err}") from err
