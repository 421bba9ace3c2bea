"""API key storage.

The key lives in the operating system keyring under the ``ytrss-cli``
service, never on disk in plain text.
"""

from __future__ import annotations

import logging

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from .exceptions import CredentialError

logger = logging.getLogger(__name__)

SERVICE_NAME = "ytrss-cli"
API_KEY_USERNAME = "api_key"


class CredentialStore:
    """Reads and writes the API key used to authenticate requests."""

    def __init__(self, service_name: str = SERVICE_NAME):
        """Initialize credential store.

        Args:
            service_name: Keyring service the key is stored under
        """
        self.service_name = service_name

    def get_api_key(self) -> str | None:
        """Return the stored API key, or None if none is stored.

        An unavailable keyring is treated as "no key" so the user is asked
        for one instead of seeing a crash.
        """
        try:
            api_key = keyring.get_password(self.service_name, API_KEY_USERNAME)
        except KeyringError as err:
            logger.warning(f"Could not read API key from keyring: {err}")
            return None

        if not api_key or not api_key.strip():
            return None
        return api_key.strip()

    def has_api_key(self) -> bool:
        return self.get_api_key() is not None

    def set_api_key(self, api_key: str) -> None:
        """Persist the API key.

        Raises:
            CredentialError: If the key is blank or the keyring rejects it
        """
        api_key = api_key.strip()
        if not api_key:
            raise CredentialError("API key must not be empty")

        try:
            keyring.set_password(self.service_name, API_KEY_USERNAME, api_key)
        except KeyringError as err:
            raise CredentialError(f"Failed to save API key: {err}") from err

        logger.info(
            "API key saved",
            extra={"extra_context": {"service": self.service_name}},
        )

    def clear(self) -> None:
        """Remove the stored API key, if any."""
        try:
            keyring.delete_password(self.service_name, API_KEY_USERNAME)
        except PasswordDeleteError:
            # Nothing stored.
            pass
        except KeyringError as err:
            raise CredentialError(f"Failed to remove API key: {err}") from err
