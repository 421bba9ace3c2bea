"""State data models for the TUI application."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..models import ItemStatus, Job, Podcast, Usage

# Main menu entries, in display order.
MENU_ADD_URL = "Add URL to Podcast"
MENU_CONVERT = "Convert URL"
MENU_VIEW_JOBS = "View Jobs"
MENU_VIEW_USAGE = "View Usage"
MENU_OPEN_DOWNLOADS = "Open Downloads Folder"
MENU_SET_API_KEY = "Set API Key"
MENU_EXIT = "Exit"

MAIN_MENU_ITEMS: tuple[str, ...] = (
    MENU_ADD_URL,
    MENU_CONVERT,
    MENU_VIEW_JOBS,
    MENU_VIEW_USAGE,
    MENU_OPEN_DOWNLOADS,
    MENU_SET_API_KEY,
    MENU_EXIT,
)

POST_POLL_ADD_ANOTHER = "Add another URL"
POST_POLL_MAIN_MENU = "Go to main menu"

POST_POLLING_MENU_ITEMS: tuple[str, ...] = (
    POST_POLL_ADD_ANOTHER,
    POST_POLL_MAIN_MENU,
    MENU_EXIT,
)


class ViewState(Enum):
    """Screen currently shown by the TUI."""

    AUTH = "auth"
    MENU = "menu"
    SELECT_PODCAST = "select_podcast"
    ENTER_URL = "enter_url"
    CONVERT_URL = "convert_url"
    POLLING = "polling"
    POST_POLLING = "post_polling"
    JOBS = "jobs"


class PollOutcome(Enum):
    """How a polling session ended."""

    SUCCEEDED = "succeeded"
    JOB_FAILED = "job_failed"
    FETCH_FAILED = "fetch_failed"


@dataclass
class TextInput:
    """Single-line text input buffer."""

    placeholder: str = ""
    char_limit: int = 256
    value: str = ""

    def insert(self, text: str) -> None:
        room = self.char_limit - len(self.value)
        if room > 0:
            self.value += text[:room]

    def backspace(self) -> None:
        self.value = self.value[:-1]

    def clear(self) -> None:
        self.value = ""


@dataclass
class PollingSession:
    """Polling state for the item submitted most recently.

    The generation identifies the session; results carrying any other
    generation belong to an abandoned session and are ignored.
    """

    item_id: str
    generation: int
    status: ItemStatus = ItemStatus.CREATED
    active: bool = True
    poll_count: int = 0
    outcome: PollOutcome | None = None
    error: str | None = None

    @property
    def done_message(self) -> str:
        if self.outcome is PollOutcome.FETCH_FAILED:
            return "Polling failed."
        if self.outcome is None:
            return ""
        return f"Polling finished with status: {self.status.value}"


@dataclass
class AppState:
    """Root application state, owned by the main loop thread."""

    view: ViewState = ViewState.MENU
    has_api_key: bool = False
    help_visible: bool = False
    should_quit: bool = False

    auth_input: TextInput = field(
        default_factory=lambda: TextInput(placeholder="API Key", char_limit=156)
    )
    url_input: TextInput = field(
        default_factory=lambda: TextInput(placeholder="YouTube URL", char_limit=500)
    )

    menu_index: int = 0
    post_polling_index: int = 0

    podcasts: list[Podcast] = field(default_factory=list)
    podcast_index: int = 0
    selected_podcast: Podcast | None = None

    jobs: list[Job] = field(default_factory=list)
    job_index: int = 0

    usage: Usage | None = None

    # Label of the user action whose command is in flight, if any.
    busy_label: str | None = None

    polling: PollingSession | None = None
    poll_generation: int = 0

    error: str | None = None
    message: str | None = None

    @property
    def busy(self) -> bool:
        return self.busy_label is not None

    @property
    def selected_menu_item(self) -> str:
        return MAIN_MENU_ITEMS[self.menu_index]

    @property
    def selected_post_polling_item(self) -> str:
        return POST_POLLING_MENU_ITEMS[self.post_polling_index]

    @property
    def highlighted_podcast(self) -> Podcast | None:
        if 0 <= self.podcast_index < len(self.podcasts):
            return self.podcasts[self.podcast_index]
        return None

    @property
    def highlighted_job(self) -> Job | None:
        if 0 <= self.job_index < len(self.jobs):
            return self.jobs[self.job_index]
        return None

    @property
    def is_polling(self) -> bool:
        return self.polling is not None and self.polling.active

    def clear_feedback(self) -> None:
        self.error = None
        self.message = None
