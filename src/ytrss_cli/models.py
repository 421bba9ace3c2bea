"""Data models for the yt-rss API.

These mirror the JSON objects returned by the service. Every model is built
through ``from_dict`` so malformed responses surface as APIResponseError
instead of KeyError deep inside the UI.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from .exceptions import APIResponseError

# Layouts the service has been seen to emit for "created" timestamps.
_CREATED_LAYOUTS = (
    "%Y-%m-%d %H:%M:%S.%fZ",
    "%Y-%m-%d %H:%M:%SZ",
    "%Y-%m-%d %H:%M:%S.%f%z",
    "%Y-%m-%d %H:%M:%S%z",
)


class ItemStatus(Enum):
    """Conversion status of an item or job."""

    CREATED = "CREATED"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: str | None) -> ItemStatus:
        """Parse a wire status, mapping anything unrecognised to UNKNOWN."""
        if not value:
            return cls.UNKNOWN
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        """True once the server will not change this status again."""
        return self in (ItemStatus.SUCCESS, ItemStatus.ERROR)


def _require(payload: Any, key: str, model: str) -> Any:
    if not isinstance(payload, dict):
        raise APIResponseError(f"Expected object for {model}, got {type(payload).__name__}")
    try:
        return payload[key]
    except KeyError as err:
        raise APIResponseError(f"{model} response missing '{key}'") from err


def parse_created_time(created: str | None) -> datetime | None:
    """Parse a "created" timestamp, returning None when it cannot be read.

    Accepts RFC 3339 (with or without fractional seconds) and the
    space-separated layout used by the service's database.
    """
    if not created:
        return None

    text = created.strip()
    parsed: datetime | None = None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        for layout in _CREATED_LAYOUTS:
            try:
                parsed = datetime.strptime(text, layout)
                break
            except ValueError:
                continue

    if parsed is None:
        return None
    # Naive timestamps are UTC so they sort against aware ones.
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass(frozen=True)
class Podcast:
    """A podcast feed owned by the user."""

    id: str
    name: str

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Podcast:
        podcast_id = _require(payload, "id", "Podcast")
        # Older service builds send "title" instead of "name".
        name = payload.get("name") or payload.get("title") or ""
        return cls(id=str(podcast_id), name=str(name))


@dataclass(frozen=True)
class Item:
    """A podcast item created from a submitted URL."""

    id: str
    status: ItemStatus

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Item:
        return cls(
            id=str(_require(payload, "id", "Item")),
            status=ItemStatus.parse(payload.get("status")),
        )


@dataclass(frozen=True)
class Job:
    """A standalone conversion job."""

    id: str
    url: str
    status: ItemStatus
    title: str = ""
    created: str = ""

    @property
    def created_at(self) -> datetime | None:
        return parse_created_time(self.created)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Job:
        return cls(
            id=str(_require(payload, "id", "Job")),
            url=str(payload.get("url", "")),
            status=ItemStatus.parse(payload.get("status")),
            title=str(payload.get("title") or ""),
            created=str(payload.get("created") or ""),
        )


@dataclass(frozen=True)
class Usage:
    """Storage usage in bytes."""

    used: int
    limit: int

    @property
    def fraction(self) -> float:
        """Consumed share of the limit, clamped to [0, 1]."""
        if self.limit <= 0:
            return 0.0
        return max(0.0, min(1.0, self.used / self.limit))

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Usage:
        # The service reports the limit under "usage" and consumption under "used".
        limit_raw = _require(payload, "usage", "Usage")
        try:
            used = int(payload.get("used", 0))
            limit = int(limit_raw)
        except (TypeError, ValueError) as err:
            raise APIResponseError(f"Invalid usage figures: {err}") from err
        return cls(used=used, limit=limit)


def sort_jobs_newest_first(jobs: list[Job]) -> list[Job]:
    """Return jobs ordered by creation time, newest first.

    Jobs without a readable timestamp keep their relative order at the end.
    """
    dated = [job for job in jobs if job.created_at is not None]
    undated = [job for job in jobs if job.created_at is None]
    dated.sort(key=lambda job: job.created_at, reverse=True)
    return dated + undated
