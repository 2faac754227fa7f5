"""Local credential cache.

Credentials are loaded once at startup and saved whenever the user updates
them. The store is injected, so tests use `InMemoryCredentialStore` and the
CLI uses `JsonFileCredentialStore`.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from azure_text_processor.core.types import CredentialSet
from azure_text_processor.exceptions import ConfigFileError, MissingCredentialsError

logger = logging.getLogger(__name__)

CONFIG_HOME_ENV_VAR = "AZURE_TEXT_PROCESSOR_CONFIG_HOME"
STORED_FIELDS: tuple[str, ...] = ("endpoint", "api_key", "model", "api_version")


@runtime_checkable
class CredentialStore(Protocol):
    """Key-value storage for the credential fields."""

    def load(self) -> dict[str, str]:
        """Return whichever stored fields are present (may be empty)."""
        ...

    def save(self, credentials: CredentialSet) -> None:
        """Persist ``credentials``, replacing anything stored before."""
        ...

    def clear(self) -> None:
        """Remove all stored credentials."""
        ...


def _validate_for_save(credentials: CredentialSet) -> dict[str, str]:
    if not credentials.api_key.strip() or not credentials.endpoint.strip():
        raise MissingCredentialsError(
            "Both an API key and an endpoint are required to save credentials"
        )
    return {
        field: getattr(credentials, field)
        for field in STORED_FIELDS
        if getattr(credentials, field)
    }


def _filter_loaded(data: Any) -> dict[str, str]:
    return {
        k: v
        for k, v in data.items()
        if k in STORED_FIELDS and isinstance(v, str) and v.strip()
    }


class InMemoryCredentialStore:
    """Process-local store; nothing touches the filesystem."""

    def __init__(self, initial: CredentialSet | None = None) -> None:
        self._data: dict[str, str] = {}
        if initial is not None:
            self.save(initial)

    def load(self) -> dict[str, str]:
        return dict(self._data)

    def save(self, credentials: CredentialSet) -> None:
        self._data = _validate_for_save(credentials)

    def clear(self) -> None:
        self._data = {}


def default_store_path() -> Path:
    """Return the cache path, honoring ``AZURE_TEXT_PROCESSOR_CONFIG_HOME``."""
    override = os.getenv(CONFIG_HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "azure_text_processor" / "credentials.json"


class JsonFileCredentialStore:
    """Stores credentials in a user-only readable JSON file."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else default_store_path()

    def load(self) -> dict[str, str]:
        """Load stored fields.

        Raises:
            ConfigFileError: If the file exists but is not a JSON object.
        """
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigFileError(self.path, f"Failed to parse JSON: {e}", cause=e) from e
        if not isinstance(data, dict):
            raise ConfigFileError(self.path, "Expected a JSON object at the top level")
        return _filter_loaded(data)

    def save(self, credentials: CredentialSet) -> None:
        data = _validate_for_save(credentials)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            self.path.chmod(0o600)
        except OSError as e:
            raise ConfigFileError(self.path, f"Failed to write: {e}", cause=e) from e
        logger.debug("Saved credentials to %s", self.path)

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise ConfigFileError(self.path, f"Failed to remove: {e}", cause=e) from e
