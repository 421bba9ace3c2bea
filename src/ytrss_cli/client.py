"""HTTP client for the yt-rss service.

All requests go through APIClient. The API key is read from the credential
store on every request so a key entered in the TUI takes effect immediately.
"""

from __future__ import annotations

import logging
from email.message import Message
from pathlib import Path
from typing import Any

import httpx

from .credentials import CredentialStore
from .exceptions import (
    APIRequestError,
    APIResponseError,
    AuthenticationError,
    MissingAPIKeyError,
    NetworkError,
)
from .models import Item, Job, Podcast, Usage

logger = logging.getLogger(__name__)


def filename_from_disposition(disposition: str | None, fallback: str) -> str:
    """Extract a safe filename from a Content-Disposition header.

    Args:
        disposition: Raw header value, or None if the header was absent
        fallback: Name to use when no filename can be extracted

    Returns:
        Basename of the advertised filename, never containing a path separator
    """
    if not disposition:
        return fallback

    message = Message()
    message["content-disposition"] = disposition
    filename = message.get_filename()
    if not filename:
        return fallback

    # Drop any directory components the server may have sent.
    name = Path(filename.replace("\\", "/")).name
    if name in ("", ".", ".."):
        return fallback
    return name


class APIClient:
    """Client for the yt-rss REST API."""

    def __init__(
        self,
        base_url: str,
        credentials: CredentialStore,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize API client.

        Args:
            base_url: Service base URL (e.g., "http://localhost:8090/api/v1")
            credentials: Store holding the bearer token
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.base_url = base_url.rstrip("/")
        self.credentials = credentials
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> APIClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _headers(self) -> dict[str, str]:
        api_key = self.credentials.get_api_key()
        if not api_key:
            raise MissingAPIKeyError()
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        body = response.text.strip()
        error_cls = AuthenticationError if response.status_code in (401, 403) else APIRequestError
        raise error_cls(response.status_code, response.reason_phrase, body)

    def _request(self, method: str, path: str, json_body: Any = None) -> httpx.Response:
        headers = self._headers()
        logger.debug(f"{method} {path}")
        try:
            response = self._client.request(method, path, headers=headers, json=json_body)
        except httpx.HTTPError as err:
            logger.warning(
                "Request failed",
                extra={"extra_context": {"method": method, "path": path, "error": str(err)}},
            )
            raise NetworkError(f"{method} {path} failed: {err}") from err

        self._raise_for_status(response)
        return response

    def _request_json(self, method: str, path: str, json_body: Any = None) -> Any:
        response = self._request(method, path, json_body)
        try:
            return response.json()
        except ValueError as err:
            raise APIResponseError(f"Invalid JSON from {path}: {err}") from err

    # Endpoints

    def list_podcasts(self) -> list[Podcast]:
        payload = self._request_json("GET", "/list-podcasts")
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise APIResponseError("Expected a list of podcasts")
        return [Podcast.from_dict(entry) for entry in payload]

    def add_url_to_podcast(self, podcast_id: str, url: str) -> Item:
        """Queue a URL for conversion into the given podcast.

        Returns:
            The created item; its id is what polling follows
        """
        payload = self._request_json(
            "POST", "/podcasts/add-url", {"podcast_id": podcast_id, "url": url}
        )
        item = Item.from_dict(payload)
        logger.info(
            "URL added to podcast",
            extra={"extra_context": {"podcast_id": podcast_id, "item_id": item.id}},
        )
        return item

    def create_jobs(self, url: str) -> None:
        """Create a standalone conversion job for a URL."""
        self._request("POST", "/convert", {"urls": [url]})
        logger.info("Conversion job created", extra={"extra_context": {"url": url}})

    def get_job(self, job_id: str) -> Job:
        return Job.from_dict(self._request_json("GET", f"/poll/jobs/{job_id}"))

    def list_jobs(self) -> list[Job]:
        payload = self._request_json("GET", "/poll/jobs")
        if not isinstance(payload, dict):
            raise APIResponseError("Expected an object with a 'jobs' list")
        jobs = payload.get("jobs") or []
        return [Job.from_dict(entry) for entry in jobs]

    def poll_item(self, item_id: str) -> Item:
        return Item.from_dict(self._request_json("GET", f"/poll/item/{item_id}"))

    def get_usage(self) -> Usage:
        return Usage.from_dict(self._request_json("GET", "/get-usage"))

    def download_file(self, job_id: str, downloads_dir: Path) -> Path:
        """Download the audio for a job into downloads_dir.

        Returns:
            Path of the written file
        """
        headers = self._headers()
        try:
            with self._client.stream(
                "POST", f"/download/{job_id}", headers=headers
            ) as response:
                if not response.is_success:
                    response.read()
                    self._raise_for_status(response)

                filename = filename_from_disposition(
                    response.headers.get("content-disposition"), f"{job_id}.mp3"
                )
                downloads_dir.mkdir(parents=True, exist_ok=True)
                target = downloads_dir / filename
                with target.open("wb") as out:
                    for chunk in response.iter_bytes():
                        out.write(chunk)
        except httpx.HTTPError as err:
            raise NetworkError(f"Download of job {job_id} failed: {err}") from err

        logger.info(
            "Job downloaded",
            extra={"extra_context": {"job_id": job_id, "path": str(target)}},
        )
        return target
