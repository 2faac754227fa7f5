"""Configuration schema and validation using Pydantic.

This module defines the settings schema that validates and coerces
configuration values from the environment, the credential cache and
programmatic overrides into the correct types with defaults.
"""

from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from azure_text_processor.tokens import DEFAULT_ENCODING


class TextProcessorSettings(BaseSettings):
    """Pydantic settings schema for the text processor.

    Integrates with environment variables using the AZURE_OPENAI_ prefix.
    Credentials may be absent here; completeness is checked at submit time.
    """

    model_config = SettingsConfigDict(
        env_prefix="AZURE_OPENAI_",
        env_file=None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Credentials ---

    api_key: str | None = Field(default=None, description="Azure OpenAI API key")
    endpoint: str | None = Field(
        default=None,
        description="Resource endpoint, e.g. https://NAME.openai.azure.com",
    )
    model: str = Field(
        default="o3-pro-2",
        description="Deployment/model identifier sent in the request body",
        min_length=1,
    )
    api_version: str = Field(
        default="preview",
        description="Value of the api-version query parameter",
        min_length=1,
    )

    # --- Budgeting ---

    token_ceiling: int = Field(
        default=200_000, description="Maximum tokens per request", ge=1
    )
    warn_ratio: float = Field(
        default=0.8, description="Fraction of the ceiling for a soft warning", gt=0, le=1
    )
    severe_ratio: float = Field(
        default=0.9, description="Fraction of the ceiling for a severe warning", gt=0, le=1
    )
    encoding: str = Field(
        default=DEFAULT_ENCODING, description="tiktoken encoding name", min_length=1
    )

    # --- Transport ---

    request_timeout: float | None = Field(
        default=None,
        description="Seconds before a request is abandoned; unset waits indefinitely",
        gt=0,
    )

    # --- Validation Rules ---

    @field_validator("api_key", "endpoint", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Treat blank strings as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str | None) -> str | None:
        """Require an http(s) URL and drop a trailing slash."""
        if v is None:
            return v
        v = v.strip()
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid endpoint: {v!r}. Must start with http:// or https://"
            )
        return v.rstrip("/")

    @field_validator("request_timeout", mode="before")
    @classmethod
    def parse_timeout(cls, v: Any) -> Any:
        """Accept "none"/"" from the environment as no timeout."""
        if isinstance(v, str) and v.strip().lower() in ("", "none", "null"):
            return None
        return v

    @model_validator(mode="after")
    def validate_threshold_order(self) -> "TextProcessorSettings":
        """Ensure the severe warning does not fire before the soft one."""
        if self.severe_ratio < self.warn_ratio:
            raise ValueError(
                f"severe_ratio ({self.severe_ratio}) must be >= warn_ratio ({self.warn_ratio})"
            )
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary suitable for origin annotation."""
        return {
            "api_key": self.api_key,
            "endpoint": self.endpoint,
            "model": self.model,
            "api_version": self.api_version,
            "token_ceiling": self.token_ceiling,
            "warn_ratio": self.warn_ratio,
            "severe_ratio": self.severe_ratio,
            "encoding": self.encoding,
            "request_timeout": self.request_timeout,
        }
