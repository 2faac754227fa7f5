"""Configuration for the text processor.

Key components:
- TextProcessorSettings: Pydantic schema with the AZURE_OPENAI_ env prefix
- ResolvedConfig: merged configuration with per-field origins
- CredentialStore: injectable local credential cache
"""

from azure_text_processor.exceptions import ConfigFileError

from .api import resolve_config
from .resolver import ENV_VARS, ConfigResolver
from .schema import TextProcessorSettings
from .store import (
    CONFIG_HOME_ENV_VAR,
    CredentialStore,
    InMemoryCredentialStore,
    JsonFileCredentialStore,
    default_store_path,
)
from .types import ConfigOrigin, ResolvedConfig, SourceMap

__all__ = [
    "CONFIG_HOME_ENV_VAR",
    "ENV_VARS",
    "ConfigFileError",
    "ConfigOrigin",
    "ConfigResolver",
    "CredentialStore",
    "InMemoryCredentialStore",
    "JsonFileCredentialStore",
    "ResolvedConfig",
    "SourceMap",
    "TextProcessorSettings",
    "default_store_path",
    "resolve_config",
]
