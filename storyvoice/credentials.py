"""Secure credential storage for speech provider API keys.

Responsibilities:
- Persist provider API keys in an OS-backed keyring, one entry per provider.
- Provide deterministic read/write/delete operations for provider credentials.
- Avoid logging or exposing secret values in diagnostics.

Key types:
- `CredentialStore`: interface for provider credential persistence.
- `KeyringCredentialStore`: keyring-backed secure credential storage.
"""

from __future__ import annotations

from dataclasses import dataclass

import keyring
from keyring.backends import fail
from keyring.errors import KeyringError, PasswordDeleteError

from .parsing import normalize_optional_string

_DEFAULT_SERVICE_NAME = "storyvoice"


def account_name_for(provider_id: str) -> str:
    """Return the keyring account name holding a provider's API key."""

    return f"{provider_id}_api_key"


class CredentialStore:
    """Interface for secure provider credential operations."""

    def is_available(self) -> bool:
        """Return whether secure credential operations are available."""

        raise NotImplementedError

    def get_api_key(self, provider_id: str) -> str | None:
        """Load a provider's stored API key, when present."""

        raise NotImplementedError

    def set_api_key(self, provider_id: str, api_key: str) -> None:
        """Persist a provider API key."""

        raise NotImplementedError

    def clear_api_key(self, provider_id: str) -> bool:
        """Delete a provider's stored API key and return whether one existed."""

        raise NotImplementedError


@dataclass(slots=True)
class KeyringCredentialStore(CredentialStore):
    """Secure credential store backed by the `keyring` package."""

    service_name: str = _DEFAULT_SERVICE_NAME

    def is_available(self) -> bool:
        """Return `False` when keyring resolved to its no-op failure backend."""

        return not isinstance(keyring.get_keyring(), fail.Keyring)

    def get_api_key(self, provider_id: str) -> str | None:
        """Get a normalized API key, returning `None` when missing or unavailable."""

        if not self.is_available():
            return None
        try:
            value = keyring.get_password(self.service_name, account_name_for(provider_id))
        except KeyringError:
            return None
        return normalize_optional_string(value)

    def set_api_key(self, provider_id: str, api_key: str) -> None:
        """Persist a normalized API key or raise when storage is unavailable."""

        normalized = normalize_optional_string(api_key)
        if normalized is None:
            raise ValueError("API key must be a non-empty string.")
        if not self.is_available():
            raise RuntimeError(
                "Secure credential storage is unavailable: no usable keyring backend "
                "was found. Pass the key per run with `--api-key` instead."
            )
        try:
            keyring.set_password(self.service_name, account_name_for(provider_id), normalized)
        except KeyringError as exc:
            raise RuntimeError(f"Secure credential storage rejected the API key: {exc}") from exc

    def clear_api_key(self, provider_id: str) -> bool:
        """Remove a stored API key and report whether one was present."""

        if self.get_api_key(provider_id) is None:
            return False
        try:
            keyring.delete_password(self.service_name, account_name_for(provider_id))
        except PasswordDeleteError:
            return False
        return True


def create_credential_store() -> CredentialStore:
    """Create the default secure credential store implementation."""

    return KeyringCredentialStore()
