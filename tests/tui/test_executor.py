"""Tests for CommandExecutor and run_until_idle."""

from __future__ import annotations

import queue
import time
from collections.abc import Callable
from pathlib import Path
from unittest.mock import Mock, patch

import httpx
import pytest

from ytrss_cli.client import APIClient
from ytrss_cli.exceptions import APIRequestError, NetworkError
from ytrss_cli.models import Item, ItemStatus, Job, Podcast, Usage
from ytrss_cli.tui.executor import CommandExecutor, run_until_idle
from ytrss_cli.tui.messages import (
    AddUrl,
    Cancelled,
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
from ytrss_cli.tui.models import AppState, PollOutcome
from ytrss_cli.tui.transitions import StateMachine


@pytest.fixture
def mock_client() -> Mock:
    return Mock()


@pytest.fixture
def update_queue() -> queue.Queue[Message]:
    return queue.Queue()


@pytest.fixture
def executor(
    mock_client: Mock, update_queue: queue.Queue[Message], tmp_path: Path
) -> CommandExecutor:
    return CommandExecutor(mock_client, tmp_path / "downloads", update_queue)


class TestExecute:
    """Tests for synchronous command execution."""

    def test_fetch_usage(self, executor: CommandExecutor, mock_client: Mock) -> None:
        mock_client.get_usage.return_value = Usage(used=1, limit=2)
        assert executor.execute(FetchUsage()) == UsageLoaded(usage=Usage(used=1, limit=2))

    def test_fetch_podcasts(self, executor: CommandExecutor, mock_client: Mock) -> None:
        mock_client.list_podcasts.return_value = [Podcast("p1", "Tech")]
        assert executor.execute(FetchPodcasts()) == PodcastsLoaded(
            podcasts=[Podcast("p1", "Tech")]
        )

    def test_add_url(self, executor: CommandExecutor, mock_client: Mock) -> None:
        mock_client.add_url_to_podcast.return_value = Item("item-1", ItemStatus.CREATED)

        message = executor.execute(AddUrl(podcast_id="p1", url="https://youtu.be/abc"))

        mock_client.add_url_to_podcast.assert_called_once_with("p1", "https://youtu.be/abc")
        assert message == UrlAdded(item=Item("item-1", ItemStatus.CREATED))

    def test_create_job(self, executor: CommandExecutor, mock_client: Mock) -> None:
        message = executor.execute(CreateJob(url="https://youtu.be/abc"))

        mock_client.create_jobs.assert_called_once_with("https://youtu.be/abc")
        assert message == JobCreated(url="https://youtu.be/abc")

    def test_fetch_jobs(self, executor: CommandExecutor, mock_client: Mock) -> None:
        jobs = [Job("j1", "u", ItemStatus.SUCCESS)]
        mock_client.list_jobs.return_value = jobs
        assert executor.execute(FetchJobs()) == JobsLoaded(jobs=jobs)

    def test_poll_item(self, executor: CommandExecutor, mock_client: Mock) -> None:
        mock_client.poll_item.return_value = Item("item-1", ItemStatus.SUCCESS)

        message = executor.execute(PollItem(item_id="item-1", generation=4, delay=0))

        assert message == PollResult(
            item_id="item-1", generation=4, item=Item("item-1", ItemStatus.SUCCESS)
        )

    def test_download_job(
        self, executor: CommandExecutor, mock_client: Mock, tmp_path: Path
    ) -> None:
        with patch(
            "ytrss_cli.tui.executor.download_job", return_value=tmp_path / "a.mp3"
        ) as mock_download:
            message = executor.execute(DownloadJob(job_id="j1"))

        mock_download.assert_called_once_with(mock_client, "j1", tmp_path / "downloads")
        assert message == DownloadFinished(job_id="j1", path=tmp_path / "a.mp3")

    def test_open_downloads(self, executor: CommandExecutor, tmp_path: Path) -> None:
        with patch(
            "ytrss_cli.tui.executor.open_downloads_folder", return_value=tmp_path
        ) as mock_open:
            message = executor.execute(OpenDownloads())

        mock_open.assert_called_once_with(tmp_path / "downloads")
        assert message == DownloadsOpened(path=tmp_path)


class TestExecuteErrors:
    """Tests for failure reporting."""

    @pytest.mark.parametrize(
        ("command", "method", "expected_type"),
        [
            (FetchUsage(), "get_usage", UsageLoaded),
            (FetchPodcasts(), "list_podcasts", PodcastsLoaded),
            (AddUrl(podcast_id="p1", url="u"), "add_url_to_podcast", UrlAdded),
            (CreateJob(url="u"), "create_jobs", JobCreated),
            (FetchJobs(), "list_jobs", JobsLoaded),
        ],
    )
    def test_api_error_becomes_message(
        self,
        executor: CommandExecutor,
        mock_client: Mock,
        command: object,
        method: str,
        expected_type: type,
    ) -> None:
        getattr(mock_client, method).side_effect = APIRequestError(500, "Internal Server Error")

        message = executor.execute(command)

        assert isinstance(message, expected_type)
        assert message.error == "API request failed: 500 Internal Server Error"

    def test_poll_error_keeps_generation(
        self, executor: CommandExecutor, mock_client: Mock
    ) -> None:
        mock_client.poll_item.side_effect = NetworkError("GET /poll/item/item-1 failed")

        message = executor.execute(PollItem(item_id="item-1", generation=2, delay=0))

        assert message == PollResult(
            item_id="item-1", generation=2, error="GET /poll/item/item-1 failed"
        )

    def test_unexpected_error_is_reported(
        self, executor: CommandExecutor, mock_client: Mock
    ) -> None:
        mock_client.get_usage.side_effect = RuntimeError("kaboom")

        message = executor.execute(FetchUsage())

        assert message == UsageLoaded(error="kaboom")

    def test_poll_cancelled_when_stopping(
        self, executor: CommandExecutor, mock_client: Mock
    ) -> None:
        executor._stop_event.set()
        command = PollItem(item_id="item-1", generation=1, delay=30)

        message = executor.execute(command)

        assert message == Cancelled(command=command)
        mock_client.poll_item.assert_not_called()


class TestWorkerThread:
    """Tests for the background worker."""

    def test_results_arrive_in_order(
        self,
        executor: CommandExecutor,
        mock_client: Mock,
        update_queue: queue.Queue[Message],
    ) -> None:
        mock_client.get_usage.return_value = Usage(used=1, limit=2)
        mock_client.list_jobs.return_value = []

        executor.start()
        try:
            executor.submit([FetchUsage(), FetchJobs()])
            first = update_queue.get(timeout=2)
            second = update_queue.get(timeout=2)
        finally:
            executor.stop()

        assert isinstance(first, UsageLoaded)
        assert isinstance(second, JobsLoaded)

    def test_stop_interrupts_pending_poll(
        self,
        executor: CommandExecutor,
        mock_client: Mock,
        update_queue: queue.Queue[Message],
    ) -> None:
        executor.start()
        executor.submit([PollItem(item_id="item-1", generation=1, delay=30)])
        time.sleep(0.2)

        started = time.monotonic()
        executor.stop(timeout=5)

        assert time.monotonic() - started < 2
        mock_client.poll_item.assert_not_called()
        assert update_queue.empty()

    def test_stop_without_start(self, executor: CommandExecutor) -> None:
        executor.stop()


class TestRunUntilIdle:
    """Tests for the synchronous driver used by the CLI."""

    def test_polls_until_terminal(self, mock_client: Mock, credentials, tmp_path: Path) -> None:
        mock_client.poll_item.side_effect = [
            Item("item-1", ItemStatus.CREATED),
            Item("item-1", ItemStatus.CREATED),
            Item("item-1", ItemStatus.SUCCESS),
        ]
        mock_client.get_usage.return_value = Usage(used=1, limit=2)
        app_state = AppState()
        machine = StateMachine(app_state, credentials, poll_interval=0)
        executor = CommandExecutor(mock_client, tmp_path, queue.Queue())
        seen: list[Message] = []

        run_until_idle(
            machine.handle_message,
            executor,
            machine.start_polling(Item("item-1", ItemStatus.CREATED)),
            seen.append,
        )

        assert mock_client.poll_item.call_count == 3
        assert [type(message) for message in seen] == [
            PollResult,
            PollResult,
            PollResult,
            UsageLoaded,
        ]
        assert app_state.polling is not None
        assert app_state.polling.outcome is PollOutcome.SUCCEEDED
        assert app_state.usage == Usage(used=1, limit=2)

    def test_stops_after_fetch_failure(
        self, mock_client: Mock, credentials, tmp_path: Path
    ) -> None:
        mock_client.poll_item.side_effect = [
            Item("item-1", ItemStatus.CREATED),
            NetworkError("connection refused"),
        ]
        app_state = AppState()
        machine = StateMachine(app_state, credentials, poll_interval=0)
        executor = CommandExecutor(mock_client, tmp_path, queue.Queue())

        run_until_idle(
            machine.handle_message,
            executor,
            machine.start_polling(Item("item-1", ItemStatus.CREATED)),
        )

        assert mock_client.poll_item.call_count == 2
        assert app_state.polling is not None
        assert app_state.polling.outcome is PollOutcome.FETCH_FAILED
        assert app_state.polling.error == "connection refused"


class TestPollingOverHttp:
    """The polling loop driven through APIClient against a fake service."""

    @staticmethod
    def _service(
        statuses: list[object],
    ) -> tuple[list[str], Callable[[httpx.Request], httpx.Response]]:
        """Serve poll responses in order; an int entry is an HTTP error status."""
        paths: list[str] = []
        remaining = list(statuses)

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            if request.url.path == "/api/v1/get-usage":
                return httpx.Response(200, json={"used": 10, "usage": 100})
            status = remaining.pop(0)
            if isinstance(status, int):
                return httpx.Response(status, text="boom")
            return httpx.Response(200, json={"id": "item-1", "status": status})

        return paths, handler

    def _run(
        self,
        make_client: Callable[..., APIClient],
        credentials,
        tmp_path: Path,
        statuses: list[object],
    ) -> tuple[list[str], AppState]:
        paths, handler = self._service(statuses)
        app_state = AppState()
        machine = StateMachine(app_state, credentials, poll_interval=0)
        executor = CommandExecutor(make_client(handler), tmp_path, queue.Queue())

        run_until_idle(
            machine.handle_message,
            executor,
            machine.start_polling(Item("item-1", ItemStatus.CREATED)),
        )
        return paths, app_state

    def test_created_repolls_until_success(
        self, make_client: Callable[..., APIClient], credentials, tmp_path: Path
    ) -> None:
        paths, app_state = self._run(
            make_client, credentials, tmp_path, ["CREATED", "CREATED", "SUCCESS"]
        )

        assert paths == [
            "/api/v1/poll/item/item-1",
            "/api/v1/poll/item/item-1",
            "/api/v1/poll/item/item-1",
            "/api/v1/get-usage",
        ]
        assert app_state.polling is not None
        assert app_state.polling.outcome is PollOutcome.SUCCEEDED
        assert app_state.usage == Usage(used=10, limit=100)

    def test_error_status_stops_without_usage_refresh(
        self, make_client: Callable[..., APIClient], credentials, tmp_path: Path
    ) -> None:
        paths, app_state = self._run(make_client, credentials, tmp_path, ["ERROR"])

        assert paths == ["/api/v1/poll/item/item-1"]
        assert app_state.polling is not None
        assert app_state.polling.outcome is PollOutcome.JOB_FAILED

    def test_server_error_ends_polling(
        self, make_client: Callable[..., APIClient], credentials, tmp_path: Path
    ) -> None:
        paths, app_state = self._run(make_client, credentials, tmp_path, ["CREATED", 500])

        assert paths == ["/api/v1/poll/item/item-1", "/api/v1/poll/item/item-1"]
        assert app_state.polling is not None
        assert app_state.polling.outcome is PollOutcome.FETCH_FAILED
        assert "500" in (app_state.polling.error or "")
