"""Public API for the configuration system."""

from typing import Any

from .resolver import ConfigResolver
from .store import CredentialStore
from .types import ResolvedConfig


def resolve_config(
    programmatic: dict[str, Any] | None = None,
    *,
    store: CredentialStore | None = None,
) -> ResolvedConfig:
    """Resolve configuration from all sources with proper precedence.

    Precedence: Programmatic > Environment > Credential store > Defaults.

    Example:
        # Environment only
        config = resolve_config()

        # Cached credentials plus an explicit model
        config = resolve_config({"model": "o3-pro-2"}, store=JsonFileCredentialStore())
    """
    return ConfigResolver(store=store).resolve(programmatic)
