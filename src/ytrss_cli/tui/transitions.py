"""State transitions for the TUI application.

Every change to AppState in response to a result message, and every user
action that starts work, goes through StateMachine. Methods mutate the state
in place and return the commands the executor should run next.

Polling follows a fixed contract: after a URL is added the machine polls the
returned item id every ``poll_interval`` seconds. CREATED schedules another
poll, SUCCESS or ERROR ends the session, and a failed fetch ends it with the
error shown. Nothing is retried beyond the next scheduled poll.
"""

from __future__ import annotations

import logging

from ..credentials import CredentialStore
from ..exceptions import CredentialError
from ..models import Item, ItemStatus, sort_jobs_newest_first
from .messages import (
    AddUrl,
    Cancelled,
    Command,
    CreateJob,
    DownloadFinished,
    DownloadJob,
    DownloadsOpened,
    FetchJobs,
    FetchPodcasts,
    FetchUsage,
    JobCreated,
    JobsLoaded,
    Message,
    OpenDownloads,
    PodcastsLoaded,
    PollItem,
    PollResult,
    UrlAdded,
    UsageLoaded,
)
from .models import (
    MENU_ADD_URL,
    MENU_CONVERT,
    MENU_EXIT,
    MENU_OPEN_DOWNLOADS,
    MENU_SET_API_KEY,
    MENU_VIEW_JOBS,
    MENU_VIEW_USAGE,
    POST_POLL_ADD_ANOTHER,
    POST_POLL_MAIN_MENU,
    AppState,
    PollingSession,
    PollOutcome,
    ViewState,
)
from .tui_utils import format_bytes

logger = logging.getLogger(__name__)

NO_API_KEY_NOTICE = "No API key found. Please enter one to continue."
NO_PODCASTS_NOTICE = "No podcasts found. Please create a podcast on the website first."

BUSY_PODCASTS = "Loading podcasts..."
BUSY_JOBS = "Fetching jobs..."
BUSY_USAGE = "Retrieving usage..."


class StateMachine:
    """Applies user actions and result messages to the application state."""

    def __init__(
        self,
        app_state: AppState,
        credentials: CredentialStore,
        poll_interval: float = 2.0,
    ) -> None:
        """Initialize state machine.

        Args:
            app_state: State to mutate
            credentials: Store used to check and save the API key
            poll_interval: Seconds between status polls
        """
        self.app_state = app_state
        self.credentials = credentials
        self.poll_interval = poll_interval

        self._handlers = {
            UsageLoaded: self._on_usage_loaded,
            PodcastsLoaded: self._on_podcasts_loaded,
            UrlAdded: self._on_url_added,
            JobCreated: self._on_job_created,
            JobsLoaded: self._on_jobs_loaded,
            PollResult: self._on_poll_result,
            DownloadFinished: self._on_download_finished,
            DownloadsOpened: self._on_downloads_opened,
            Cancelled: self._on_cancelled,
        }

    # Lifecycle

    def start(self) -> list[Command]:
        """Choose the first view depending on whether an API key is stored."""
        state = self.app_state
        state.has_api_key = self.credentials.has_api_key()
        if not state.has_api_key:
            state.view = ViewState.AUTH
            state.message = NO_API_KEY_NOTICE
            return []

        state.view = ViewState.MENU
        return [FetchUsage()]

    def quit(self) -> list[Command]:
        state = self.app_state
        if state.polling is not None:
            state.polling.active = False
        state.should_quit = True
        return []

    # Navigation

    def go_to_menu(self, refresh_usage: bool = False) -> list[Command]:
        state = self.app_state
        state.view = ViewState.MENU
        state.selected_podcast = None
        state.url_input.clear()
        return [FetchUsage()] if refresh_usage else []

    def select_menu_item(self, label: str) -> list[Command]:
        """Run the action behind a main menu entry."""
        state = self.app_state
        if state.busy:
            logger.debug(f"Ignoring '{label}' while '{state.busy_label}' is in flight")
            return []

        state.clear_feedback()

        if label == MENU_ADD_URL:
            state.busy_label = BUSY_PODCASTS
            return [FetchPodcasts()]
        if label == MENU_CONVERT:
            state.url_input.clear()
            state.view = ViewState.CONVERT_URL
            return []
        if label == MENU_VIEW_JOBS:
            state.busy_label = BUSY_JOBS
            return [FetchJobs()]
        if label == MENU_VIEW_USAGE:
            state.busy_label = BUSY_USAGE
            return [FetchUsage()]
        if label == MENU_OPEN_DOWNLOADS:
            state.busy_label = "Opening downloads folder..."
            return [OpenDownloads()]
        if label == MENU_SET_API_KEY:
            state.auth_input.clear()
            state.view = ViewState.AUTH
            return []
        if label == MENU_EXIT:
            return self.quit()

        logger.warning(f"Unknown menu item: {label}")
        return []

    def select_post_polling_item(self, label: str) -> list[Command]:
        state = self.app_state
        state.post_polling_index = 0
        if label == POST_POLL_ADD_ANOTHER:
            state.clear_feedback()
            state.busy_label = BUSY_PODCASTS
            state.view = ViewState.MENU
            return [FetchPodcasts()]
        if label == POST_POLL_MAIN_MENU:
            state.clear_feedback()
            return self.go_to_menu()
        if label == MENU_EXIT:
            return self.quit()

        logger.warning(f"Unknown post-polling item: {label}")
        return []

    # Authentication

    def submit_api_key(self) -> list[Command]:
        state = self.app_state
        value = state.auth_input.value.strip()
        if not value:
            return []

        try:
            self.credentials.set_api_key(value)
        except CredentialError as err:
            state.error = f"Error setting API key: {err}"
            return []

        state.has_api_key = True
        state.auth_input.clear()
        state.error = None
        state.message = "Authentication updated"
        state.view = ViewState.MENU
        return [FetchUsage()]

    def cancel_auth(self) -> list[Command]:
        state = self.app_state
        state.auth_input.clear()
        if not state.has_api_key:
            return self.quit()
        state.clear_feedback()
        state.view = ViewState.MENU
        return []

    # Add URL flow

    def choose_podcast(self) -> list[Command]:
        state = self.app_state
        podcast = state.highlighted_podcast
        if podcast is None:
            return []

        state.selected_podcast = podcast
        state.url_input.clear()
        state.error = None
        state.view = ViewState.ENTER_URL
        return []

    def submit_url(self) -> list[Command]:
        state = self.app_state
        url = state.url_input.value.strip()
        if not url or state.busy:
            return []

        if state.view is ViewState.CONVERT_URL:
            state.busy_label = "Creating conversion job..."
            state.error = None
            return [CreateJob(url=url)]

        if state.selected_podcast is None:
            return []

        state.busy_label = "Adding URL..."
        state.error = None
        return [AddUrl(podcast_id=state.selected_podcast.id, url=url)]

    # Polling

    def start_polling(self, item: Item) -> list[Command]:
        """Enter the polling view for a freshly submitted item."""
        state = self.app_state
        state.poll_generation += 1
        state.polling = PollingSession(
            item_id=item.id,
            generation=state.poll_generation,
            status=item.status,
        )
        state.view = ViewState.POLLING
        state.post_polling_index = 0
        logger.info(
            "Polling started",
            extra={"extra_context": {"item_id": item.id, "generation": state.poll_generation}},
        )
        return [self._next_poll()]

    def _next_poll(self) -> PollItem:
        session = self.app_state.polling
        assert session is not None
        return PollItem(
            item_id=session.item_id,
            generation=session.generation,
            delay=self.poll_interval,
        )

    def _finish_polling(self, outcome: PollOutcome, error: str | None = None) -> None:
        state = self.app_state
        session = state.polling
        assert session is not None
        session.active = False
        session.outcome = outcome
        session.error = error
        state.view = ViewState.POST_POLLING
        logger.info(
            "Polling finished",
            extra={
                "extra_context": {
                    "item_id": session.item_id,
                    "outcome": outcome.value,
                    "status": session.status.value,
                    "polls": session.poll_count,
                }
            },
        )

    def _on_poll_result(self, msg: PollResult) -> list[Command]:
        state = self.app_state
        session = state.polling
        if session is None or not session.active or msg.generation != session.generation:
            logger.debug(f"Discarding stale poll result for {msg.item_id} (gen {msg.generation})")
            return []

        if msg.error is not None:
            self._finish_polling(PollOutcome.FETCH_FAILED, msg.error)
            return []

        assert msg.item is not None
        session.poll_count += 1
        session.status = msg.item.status

        if session.status is ItemStatus.SUCCESS:
            self._finish_polling(PollOutcome.SUCCEEDED)
            return [FetchUsage()]
        if session.status is ItemStatus.ERROR:
            self._finish_polling(PollOutcome.JOB_FAILED)
            return []

        if session.status is ItemStatus.UNKNOWN:
            logger.warning(f"Unrecognised status for item {session.item_id}, polling again")
        return [self._next_poll()]

    # Message dispatch

    def handle_message(self, msg: Message) -> list[Command]:
        """Apply a result message and return follow-up commands."""
        handler = self._handlers.get(type(msg))
        if handler is None:
            logger.warning(f"No handler for message {type(msg).__name__}")
            return []
        return handler(msg)

    def _on_usage_loaded(self, msg: UsageLoaded) -> list[Command]:
        state = self.app_state
        requested = state.busy_label == BUSY_USAGE
        if requested:
            state.busy_label = None

        if msg.error is not None:
            # Background refreshes fail quietly; only a requested fetch shows the error.
            if requested:
                state.error = f"View Usage failed: {msg.error}"
            else:
                logger.warning(f"Usage refresh failed: {msg.error}")
            return []

        state.usage = msg.usage
        if requested and msg.usage is not None:
            state.message = (
                f"Usage: {format_bytes(msg.usage.used)} / {format_bytes(msg.usage.limit)}"
            )
        return []

    def _on_podcasts_loaded(self, msg: PodcastsLoaded) -> list[Command]:
        state = self.app_state
        state.busy_label = None
        if msg.error is not None:
            state.error = msg.error
            state.view = ViewState.MENU
            return []

        state.podcasts = list(msg.podcasts)
        state.podcast_index = 0
        state.error = None
        if not state.podcasts:
            state.message = NO_PODCASTS_NOTICE
        state.view = ViewState.SELECT_PODCAST
        return []

    def _on_url_added(self, msg: UrlAdded) -> list[Command]:
        state = self.app_state
        state.busy_label = None
        if msg.error is not None:
            state.error = msg.error
            return []

        assert msg.item is not None
        state.url_input.clear()
        state.error = None
        return self.start_polling(msg.item)

    def _on_job_created(self, msg: JobCreated) -> list[Command]:
        state = self.app_state
        if msg.error is not None:
            state.busy_label = None
            state.error = f"Convert failed: {msg.error}"
            return []

        state.url_input.clear()
        state.message = "Conversion job created"
        state.busy_label = BUSY_JOBS
        return [FetchJobs()]

    def _on_jobs_loaded(self, msg: JobsLoaded) -> list[Command]:
        state = self.app_state
        state.busy_label = None
        if msg.error is not None:
            state.error = f"View Jobs failed: {msg.error}"
            if state.view is not ViewState.JOBS:
                state.view = ViewState.MENU
            return []

        state.jobs = sort_jobs_newest_first(list(msg.jobs))
        state.job_index = min(state.job_index, max(len(state.jobs) - 1, 0))
        if not state.jobs:
            state.message = "No jobs found."
        state.view = ViewState.JOBS
        return []

    def refresh_jobs(self) -> list[Command]:
        state = self.app_state
        if state.busy:
            return []
        state.clear_feedback()
        state.busy_label = BUSY_JOBS
        return [FetchJobs()]

    def download_selected_job(self) -> list[Command]:
        state = self.app_state
        job = state.highlighted_job
        if job is None or state.busy:
            return []
        if job.status is not ItemStatus.SUCCESS:
            state.error = f"job is not ready for download. status: {job.status.value}"
            return []

        state.clear_feedback()
        state.busy_label = "Downloading audio..."
        return [DownloadJob(job_id=job.id)]

    def _on_download_finished(self, msg: DownloadFinished) -> list[Command]:
        state = self.app_state
        state.busy_label = None
        if msg.error is not None:
            state.error = f"Download failed: {msg.error}"
            return []
        state.message = f"Successfully downloaded audio to: {msg.path}"
        return [FetchUsage()]

    def _on_downloads_opened(self, msg: DownloadsOpened) -> list[Command]:
        state = self.app_state
        state.busy_label = None
        if msg.error is not None:
            state.error = f"Open Downloads Folder failed: {msg.error}"
        else:
            state.message = f"Opened {msg.path}"
        return []

    def _on_cancelled(self, msg: Cancelled) -> list[Command]:
        self.app_state.busy_label = None
        return []
