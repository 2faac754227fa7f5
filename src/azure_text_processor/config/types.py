"""Core configuration data types.

Configuration is resolved once from all sources, then handed to the session
as plain values: a `CredentialSet` for requests and a `BudgetPolicy` for the
budget guard.
"""

from collections.abc import Mapping
from typing import Literal, NamedTuple

from pydantic import ValidationError

from azure_text_processor.core.types import BudgetPolicy, CredentialSet
from azure_text_processor.exceptions import ConfigurationError

from .schema import TextProcessorSettings

ConfigOrigin = Literal["programmatic", "env", "store", "default"]
SourceMap = Mapping[str, ConfigOrigin]

FIELD_ORDER: tuple[str, ...] = (
    "api_key",
    "endpoint",
    "model",
    "api_version",
    "token_ceiling",
    "warn_ratio",
    "severe_ratio",
    "encoding",
    "request_timeout",
)


class ResolvedConfig(NamedTuple):
    """Configuration after resolution from all sources.

    Includes an `origin` map recording where each field's value came from.
    """

    api_key: str | None
    endpoint: str | None
    model: str
    api_version: str
    token_ceiling: int
    warn_ratio: float
    severe_ratio: float
    encoding: str
    request_timeout: float | None

    origin: SourceMap

    def __str__(self) -> str:
        """String representation with redacted API key for safe logging."""
        api_key_display = "[REDACTED]" if self.api_key else None
        return (
            f"ResolvedConfig(api_key={api_key_display!r}, endpoint={self.endpoint!r}, "
            f"model={self.model!r}, api_version={self.api_version!r}, "
            f"token_ceiling={self.token_ceiling!r}, "
            f"request_timeout={self.request_timeout!r}, origin={dict(self.origin)!r})"
        )

    def __repr__(self) -> str:
        """Repr with redacted API key for safe debugging."""
        return self.__str__()

    def credentials(self) -> CredentialSet:
        """Return the immutable credential snapshot for requests."""
        return CredentialSet(
            endpoint=self.endpoint or "",
            api_key=self.api_key or "",
            model=self.model,
            api_version=self.api_version,
        )

    def budget_policy(self) -> BudgetPolicy:
        return BudgetPolicy(
            ceiling=self.token_ceiling,
            warn_ratio=self.warn_ratio,
            severe_ratio=self.severe_ratio,
        )

    def with_overrides(self, **overrides: object) -> "ResolvedConfig":
        """Return a validated copy with programmatic overrides applied.

        Unknown fields are ignored.

        Raises:
            ConfigurationError: If the overridden values fail validation.
        """
        new_values = {field: getattr(self, field) for field in FIELD_ORDER}
        new_origin = dict(self.origin)
        for field, value in overrides.items():
            if field in FIELD_ORDER:
                new_values[field] = value
                new_origin[field] = "programmatic"
        try:
            validated = TextProcessorSettings(**new_values).to_dict()
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e
        return ResolvedConfig(**validated, origin=new_origin)

    def audit(self) -> str:
        """Return one ``field: origin:value`` line per field, API key redacted."""
        lines = []
        for field in FIELD_ORDER:
            origin = self.origin.get(field, "default")
            value = getattr(self, field)
            if field == "api_key":
                display = f"{origin}:None" if value is None else f"{origin}:[REDACTED]"
            elif origin == "env":
                display = f"env:AZURE_OPENAI_{field.upper()}={value}"
            else:
                display = f"{origin}:{value}"
            lines.append(f"{field}: {display}")
        return "\n".join(lines)
