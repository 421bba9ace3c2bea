"""Commands requested by the UI and the result messages they produce.

Commands flow from the main loop to the CommandExecutor; each command yields
exactly one message, which flows back through the update queue. Messages carry
either a result or an error string, never both.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ..models import Item, Job, Podcast, Usage

# Commands


@dataclass(frozen=True)
class Command:
    """Base class for work the executor performs on behalf of the UI."""


@dataclass(frozen=True)
class FetchUsage(Command):
    pass


@dataclass(frozen=True)
class FetchPodcasts(Command):
    pass


@dataclass(frozen=True)
class AddUrl(Command):
    podcast_id: str
    url: str


@dataclass(frozen=True)
class CreateJob(Command):
    url: str


@dataclass(frozen=True)
class FetchJobs(Command):
    pass


@dataclass(frozen=True)
class PollItem(Command):
    """Wait ``delay`` seconds, then fetch the item's status once."""

    item_id: str
    generation: int
    delay: float


@dataclass(frozen=True)
class DownloadJob(Command):
    job_id: str


@dataclass(frozen=True)
class OpenDownloads(Command):
    pass


# Messages


@dataclass(frozen=True)
class Message:
    """Base class for results posted back to the main loop."""

    error: str | None = field(default=None, kw_only=True)


@dataclass(frozen=True)
class UsageLoaded(Message):
    usage: Usage | None = None


@dataclass(frozen=True)
class PodcastsLoaded(Message):
    podcasts: list[Podcast] = field(default_factory=list)


@dataclass(frozen=True)
class UrlAdded(Message):
    item: Item | None = None


@dataclass(frozen=True)
class JobCreated(Message):
    url: str = ""


@dataclass(frozen=True)
class JobsLoaded(Message):
    jobs: list[Job] = field(default_factory=list)


@dataclass(frozen=True)
class PollResult(Message):
    item_id: str = ""
    generation: int = 0
    item: Item | None = None


@dataclass(frozen=True)
class DownloadFinished(Message):
    job_id: str = ""
    path: Path | None = None


@dataclass(frozen=True)
class DownloadsOpened(Message):
    path: Path | None = None


@dataclass(frozen=True)
class Cancelled(Message):
    """Posted instead of a result when the executor stops mid-command."""

    command: Command | None = None
