"""Configuration resolution with precedence handling.

Merges configuration from every source according to the precedence order:
Programmatic > Environment > Credential store > Defaults
"""

import logging
import os
from typing import Any

from pydantic import ValidationError

from azure_text_processor.exceptions import ConfigFileError, ConfigurationError

from .schema import TextProcessorSettings
from .store import CredentialStore
from .types import ConfigOrigin, ResolvedConfig

logger = logging.getLogger(__name__)

ENV_VARS: dict[str, str] = {
    "AZURE_OPENAI_API_KEY": "api_key",
    "AZURE_OPENAI_ENDPOINT": "endpoint",
    "AZURE_OPENAI_MODEL": "model",
    "AZURE_OPENAI_API_VERSION": "api_version",
    "AZURE_OPENAI_TOKEN_CEILING": "token_ceiling",
    "AZURE_OPENAI_WARN_RATIO": "warn_ratio",
    "AZURE_OPENAI_SEVERE_RATIO": "severe_ratio",
    "AZURE_OPENAI_ENCODING": "encoding",
    "AZURE_OPENAI_REQUEST_TIMEOUT": "request_timeout",
}


def load_env_config() -> dict[str, str]:
    """Return raw values for the AZURE_OPENAI_* variables that are set."""
    return {
        field: os.environ[env_var]
        for env_var, field in ENV_VARS.items()
        if env_var in os.environ
    }


class ConfigResolver:
    """Resolves configuration from multiple sources with proper precedence."""

    def __init__(self, store: CredentialStore | None = None) -> None:
        self.store = store

    def resolve(self, programmatic: dict[str, Any] | None = None) -> ResolvedConfig:
        """Resolve configuration from all sources.

        Args:
            programmatic: Overrides with the highest precedence; unknown keys
                are ignored.

        Returns:
            ResolvedConfig with merged values and per-field origins.

        Raises:
            ConfigurationError: If the merged values fail validation.
        """
        merged: dict[str, Any] = {}
        origin: dict[str, ConfigOrigin] = {}

        def _apply(values: dict[str, Any], source: ConfigOrigin) -> None:
            for field, value in values.items():
                if field in merged:  # Only override known fields
                    merged[field] = value
                    origin[field] = source

        # Step 1: Schema defaults (read from the field definitions, not the env)
        for field, info in TextProcessorSettings.model_fields.items():
            merged[field] = info.default
            origin[field] = "default"

        # Step 2: Credential cache; a corrupt cache must not block startup
        if self.store is not None:
            try:
                _apply(self.store.load(), "store")
            except ConfigFileError as e:
                logger.warning("Ignoring unreadable credential cache: %s", e)

        # Step 3: Environment variables
        _apply(load_env_config(), "env")

        # Step 4: Programmatic overrides
        if programmatic:
            _apply(programmatic, "programmatic")

        # Step 5: Validate the final configuration using Pydantic
        try:
            final = TextProcessorSettings(**merged).to_dict()
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        return ResolvedConfig(**final, origin=origin)
