"""Shared fixtures for ytrss-cli tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator

import httpx
import keyring
import pytest
from keyring.backend import KeyringBackend
from keyring.errors import PasswordDeleteError

from ytrss_cli.client import APIClient
from ytrss_cli.credentials import CredentialStore

TEST_BASE_URL = "http://ytrss.test/api/v1"
TEST_API_KEY = "secret-key"


class MemoryKeyring(KeyringBackend):
    """Keyring backend that keeps passwords in a dict."""

    priority = 1

    def __init__(self) -> None:
        super().__init__()
        self.passwords: dict[tuple[str, str], str] = {}

    def get_password(self, service: str, username: str) -> str | None:
        return self.passwords.get((service, username))

    def set_password(self, service: str, username: str, password: str) -> None:
        self.passwords[(service, username)] = password

    def delete_password(self, service: str, username: str) -> None:
        try:
            del self.passwords[(service, username)]
        except KeyError:
            raise PasswordDeleteError("Password not found") from None


@pytest.fixture(autouse=True)
def memory_keyring() -> Iterator[MemoryKeyring]:
    """Keep every test away from the real system keyring."""
    previous = keyring.get_keyring()
    backend = MemoryKeyring()
    keyring.set_keyring(backend)
    yield backend
    keyring.set_keyring(previous)


@pytest.fixture
def credentials() -> CredentialStore:
    """Credential store holding a valid API key."""
    store = CredentialStore()
    store.set_api_key(TEST_API_KEY)
    return store


@pytest.fixture
def empty_credentials() -> CredentialStore:
    """Credential store with no API key."""
    return CredentialStore(service_name="ytrss-cli-empty")


@pytest.fixture
def make_client(
    credentials: CredentialStore,
) -> Iterator[Callable[..., APIClient]]:
    """Build an APIClient whose requests are answered by a handler function."""
    clients: list[APIClient] = []

    def _make(
        handler: Callable[[httpx.Request], httpx.Response],
        store: CredentialStore | None = None,
    ) -> APIClient:
        client = APIClient(
            TEST_BASE_URL,
            store or credentials,
            timeout=5.0,
            transport=httpx.MockTransport(handler),
        )
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.close()
