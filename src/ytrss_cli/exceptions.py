"""Custom exceptions for ytrss-cli.

This module defines a hierarchy of exceptions for the failure modes the
client distinguishes: local setup problems, transport and API failures,
and jobs that are not in a state the requested operation allows.
"""

from __future__ import annotations


class YtrssError(Exception):
    """Base exception for all ytrss-cli errors."""


class ConfigError(YtrssError):
    """Raised when configuration is invalid or cannot be loaded."""


class CredentialError(YtrssError):
    """Raised when the API key cannot be read from or written to disk."""


class APIError(YtrssError):
    """Base class for failures talking to the yt-rss service."""


class MissingAPIKeyError(APIError):
    """Raised before a request is sent when no API key is stored."""

    def __init__(self) -> None:
        super().__init__("API key not set. Please run 'ytrss auth'")


class NetworkError(APIError):
    """Raised when the request could not be sent or no response arrived."""


class APIRequestError(APIError):
    """Raised when the service answers with a non-2xx status."""

    def __init__(self, status_code: int, reason: str, body: str = "") -> None:
        self.status_code = status_code
        self.reason = reason
        self.body = body
        message = f"API request failed: {status_code} {reason}"
        if body:
            message = f"{message} - {body}"
        super().__init__(message)


class AuthenticationError(APIRequestError):
    """Raised when the service rejects the API key (401/403)."""


class APIResponseError(APIError):
    """Raised when a response body cannot be decoded into the expected shape."""


class JobNotReadyError(YtrssError):
    """Raised when downloading a job that has not finished successfully."""

    def __init__(self, job_id: str, status: str) -> None:
        self.job_id = job_id
        self.status = status
        super().__init__(f"job is not ready for download. status: {status}")
