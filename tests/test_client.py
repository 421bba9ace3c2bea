"""Tests for the yt-rss HTTP client."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from ytrss_cli.client import APIClient, filename_from_disposition
from ytrss_cli.credentials import CredentialStore
from ytrss_cli.exceptions import (
    APIRequestError,
    APIResponseError,
    AuthenticationError,
    MissingAPIKeyError,
    NetworkError,
)
from ytrss_cli.models import Item, ItemStatus, Podcast, Usage

MakeClient = Callable[..., APIClient]


class TestRequests:
    """Tests for request construction and error mapping."""

    def test_bearer_token_and_path(self, make_client: MakeClient) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"usage": 100, "used": 10})

        make_client(handler).get_usage()

        assert seen[0].method == "GET"
        assert seen[0].url.path == "/api/v1/get-usage"
        assert seen[0].headers["Authorization"] == "Bearer secret-key"

    def test_missing_key_sends_nothing(
        self, make_client: MakeClient, empty_credentials: CredentialStore
    ) -> None:
        handler_calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            handler_calls.append(request)
            return httpx.Response(200, json={})

        client = make_client(handler, empty_credentials)

        with pytest.raises(MissingAPIKeyError, match="ytrss auth"):
            client.get_usage()
        assert handler_calls == []

    @pytest.mark.parametrize("status_code", [401, 403])
    def test_rejected_key(self, make_client: MakeClient, status_code: int) -> None:
        client = make_client(lambda request: httpx.Response(status_code, text="invalid key"))

        with pytest.raises(AuthenticationError) as exc_info:
            client.list_podcasts()
        assert exc_info.value.status_code == status_code

    def test_server_error_message(self, make_client: MakeClient) -> None:
        client = make_client(lambda request: httpx.Response(500, text="boom\n"))

        with pytest.raises(APIRequestError) as exc_info:
            client.poll_item("item-1")

        assert not isinstance(exc_info.value, AuthenticationError)
        assert str(exc_info.value) == "API request failed: 500 Internal Server Error - boom"
        assert exc_info.value.body == "boom"

    def test_transport_failure(self, make_client: MakeClient) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(NetworkError, match="connection refused"):
            make_client(handler).poll_item("item-1")

    def test_invalid_json(self, make_client: MakeClient) -> None:
        client = make_client(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(APIResponseError, match="Invalid JSON"):
            client.get_usage()


class TestEndpoints:
    """Tests for the individual endpoint wrappers."""

    def test_list_podcasts(self, make_client: MakeClient) -> None:
        client = make_client(
            lambda request: httpx.Response(
                200, json=[{"id": "p1", "name": "Tech"}, {"id": "p2", "name": "News"}]
            )
        )

        assert client.list_podcasts() == [Podcast("p1", "Tech"), Podcast("p2", "News")]

    def test_list_podcasts_null_is_empty(self, make_client: MakeClient) -> None:
        client = make_client(lambda request: httpx.Response(200, content=b"null"))
        assert client.list_podcasts() == []

    def test_list_podcasts_wrong_shape(self, make_client: MakeClient) -> None:
        client = make_client(lambda request: httpx.Response(200, json={"id": "p1"}))
        with pytest.raises(APIResponseError):
            client.list_podcasts()

    def test_add_url_to_podcast(self, make_client: MakeClient) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "POST"
            assert request.url.path == "/api/v1/podcasts/add-url"
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"id": "item-9", "status": "CREATED"})

        item = make_client(handler).add_url_to_podcast("p1", "https://youtu.be/abc")

        assert item == Item("item-9", ItemStatus.CREATED)
        assert bodies == [{"podcast_id": "p1", "url": "https://youtu.be/abc"}]

    def test_create_jobs(self, make_client: MakeClient) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v1/convert"
            bodies.append(json.loads(request.content))
            return httpx.Response(201)

        make_client(handler).create_jobs("https://youtu.be/abc")

        assert bodies == [{"urls": ["https://youtu.be/abc"]}]

    def test_list_jobs(self, make_client: MakeClient) -> None:
        payload = {
            "jobs": [
                {"id": "j1", "url": "https://youtu.be/a", "status": "SUCCESS", "title": "A"},
                {"id": "j2", "url": "https://youtu.be/b", "status": "CREATED"},
            ]
        }
        client = make_client(lambda request: httpx.Response(200, json=payload))

        jobs = client.list_jobs()

        assert [job.id for job in jobs] == ["j1", "j2"]
        assert jobs[0].status is ItemStatus.SUCCESS
        assert jobs[1].title == ""

    def test_list_jobs_null_jobs(self, make_client: MakeClient) -> None:
        client = make_client(lambda request: httpx.Response(200, json={"jobs": None}))
        assert client.list_jobs() == []

    def test_get_job(self, make_client: MakeClient) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v1/poll/jobs/j1"
            return httpx.Response(200, json={"id": "j1", "url": "u", "status": "ERROR"})

        assert make_client(handler).get_job("j1").status is ItemStatus.ERROR

    def test_poll_item(self, make_client: MakeClient) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v1/poll/item/item-1"
            return httpx.Response(200, json={"id": "item-1", "status": "SUCCESS"})

        assert make_client(handler).poll_item("item-1") == Item("item-1", ItemStatus.SUCCESS)

    def test_get_usage(self, make_client: MakeClient) -> None:
        client = make_client(lambda request: httpx.Response(200, json={"usage": 2048, "used": 512}))
        assert client.get_usage() == Usage(used=512, limit=2048)


class TestDownloadFile:
    """Tests for streaming downloads."""

    def test_uses_content_disposition_name(self, make_client: MakeClient, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "POST"
            assert request.url.path == "/api/v1/download/j1"
            return httpx.Response(
                200,
                content=b"ID3audio",
                headers={"Content-Disposition": 'attachment; filename="My Talk.mp3"'},
            )

        path = make_client(handler).download_file("j1", tmp_path / "downloads")

        assert path == tmp_path / "downloads" / "My Talk.mp3"
        assert path.read_bytes() == b"ID3audio"

    def test_defaults_to_job_id(self, make_client: MakeClient, tmp_path: Path) -> None:
        client = make_client(lambda request: httpx.Response(200, content=b"data"))

        path = client.download_file("j1", tmp_path)

        assert path == tmp_path / "j1.mp3"

    def test_error_status_writes_nothing(self, make_client: MakeClient, tmp_path: Path) -> None:
        client = make_client(lambda request: httpx.Response(404, text="no such job"))

        with pytest.raises(APIRequestError, match="404"):
            client.download_file("j1", tmp_path / "downloads")
        assert not (tmp_path / "downloads").exists()


class TestFilenameFromDisposition:
    """Tests for Content-Disposition parsing."""

    @pytest.mark.parametrize(
        ("header", "expected"),
        [
            (None, "fallback.mp3"),
            ("", "fallback.mp3"),
            ("attachment", "fallback.mp3"),
            ('attachment; filename="episode.mp3"', "episode.mp3"),
            ("attachment; filename=plain.mp3", "plain.mp3"),
            ('attachment; filename="../../etc/passwd"', "passwd"),
            ('attachment; filename=".."', "fallback.mp3"),
        ],
    )
    def test_parsing(self, header: str | None, expected: str) -> None:
        assert filename_from_disposition(header, "fallback.mp3") == expected
