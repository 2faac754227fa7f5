"""Core data types that flow through the text processor.

This module defines the immutable data structures that represent a session's
inputs and outputs as they move from uploaded files to the remote endpoint and
back. Values are frozen so a snapshot taken for a request cannot drift while
the request is in flight.
"""

from __future__ import annotations

from collections.abc import Callable
import dataclasses
import inspect
import mimetypes
from pathlib import Path
import typing

# --- Minimal guard helpers ---


def _require(
    *,
    condition: bool,
    message: str,
    exc: type[Exception] = ValueError,
    field_name: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            raise exc(f"{field_name}: {message}")
        raise exc(message)


def _require_zero_arg_callable(func: typing.Any, field_name: str) -> None:
    """Validate callable takes no arguments for predictable execution."""
    _require(
        condition=callable(func),
        message="must be callable",
        field_name=field_name,
        exc=TypeError,
    )
    try:
        sig = inspect.signature(func)
    except (ValueError, RuntimeError):
        # Builtins may not expose a signature; accept them as-is
        return
    has_required_params = any(
        p.default is p.empty
        and p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD, p.KEYWORD_ONLY)
        for p in sig.parameters.values()
    )
    _require(
        condition=not has_required_params,
        message="must be a zero-argument callable",
        field_name=field_name,
        exc=TypeError,
    )


# --- Result Monad ---
# Stages return failures as data; the session decides how to surface them.

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure", bound=Exception)


@dataclasses.dataclass(frozen=True, slots=True)
class Success(typing.Generic[TSuccess]):
    """A successful result."""

    value: TSuccess


@dataclasses.dataclass(frozen=True, slots=True)
class Failure(typing.Generic[TFailure]):
    """A failure, containing the error."""

    error: TFailure


Result = Success[TSuccess] | Failure[TFailure]

# --- Inputs ---


@dataclasses.dataclass(frozen=True, slots=True)
class UploadedFile:
    """A named, byte-readable file handle supplied by the file collaborator.

    Content access is lazy via `content_loader`; the loader is only invoked by
    the file text loader, never by the aggregator or the budget guard.
    """

    name: str
    content_loader: Callable[[], bytes]
    mime_type: str = "text/plain"
    size_bytes: int = 0

    def __post_init__(self) -> None:
        """Validate name, size and loader signature."""
        _require(
            condition=isinstance(self.name, str) and self.name.strip() != "",
            message="must be a non-empty str",
            field_name="name",
            exc=TypeError,
        )
        _require(
            condition=isinstance(self.size_bytes, int) and self.size_bytes >= 0,
            message="must be an int >= 0",
            field_name="size_bytes",
        )
        _require_zero_arg_callable(self.content_loader, "content_loader")

    @classmethod
    def from_bytes(
        cls, name: str, data: bytes, mime_type: str = "text/plain"
    ) -> UploadedFile:
        """Create a handle over in-memory bytes."""
        _require(
            condition=isinstance(data, bytes | bytearray),
            message="must be bytes",
            field_name="data",
            exc=TypeError,
        )
        frozen = bytes(data)
        return cls(
            name=name,
            content_loader=lambda: frozen,
            mime_type=mime_type,
            size_bytes=len(frozen),
        )

    @classmethod
    def from_path(cls, path: str | Path) -> UploadedFile:
        """Create a handle that lazily reads a local file.

        The file is not read here; a file that disappears before loading is
        reported as a per-file decode warning, not as an error at this point.
        """
        file_path = Path(path)
        _require(
            condition=file_path.is_file(),
            message="path must point to an existing file",
            field_name="path",
        )
        mime_type, _ = mimetypes.guess_type(str(file_path))
        return cls(
            name=file_path.name,
            content_loader=file_path.read_bytes,
            mime_type=mime_type or "application/octet-stream",
            size_bytes=file_path.stat().st_size,
        )


@dataclasses.dataclass(frozen=True, slots=True)
class FileDecodeWarning:
    """Non-fatal notice that one file could not be decoded."""

    index: int
    name: str
    reason: str


@dataclasses.dataclass(frozen=True, slots=True)
class LoadReport:
    """Decoded file texts, index-aligned with the file sequence that produced them."""

    contents: tuple[str, ...]
    warnings: tuple[FileDecodeWarning, ...] = ()

    @property
    def failed_indices(self) -> tuple[int, ...]:
        return tuple(w.index for w in self.warnings)


# --- Credentials ---


@dataclasses.dataclass(frozen=True, slots=True)
class CredentialSet:
    """Endpoint, key, model and API version used for one request.

    Any attempt to modify an instance raises; use `dataclasses.replace` to
    derive an updated set.
    """

    endpoint: str = ""
    api_key: str = ""
    model: str = ""
    api_version: str = ""

    @property
    def has_credentials(self) -> bool:
        """True when all four fields are non-blank."""
        return all(
            isinstance(v, str) and v.strip()
            for v in (self.endpoint, self.api_key, self.model, self.api_version)
        )

    def missing_fields(self) -> tuple[str, ...]:
        return tuple(
            f.name
            for f in dataclasses.fields(self)
            if not str(getattr(self, f.name) or "").strip()
        )

    def __repr__(self) -> str:
        """Representation with redacted API key for safe logging."""
        api_key_display = "[REDACTED]" if self.api_key else None
        return (
            f"CredentialSet(endpoint={self.endpoint!r}, api_key={api_key_display!r}, "
            f"model={self.model!r}, api_version={self.api_version!r})"
        )

    __str__ = __repr__


# --- Budgeting ---


@dataclasses.dataclass(frozen=True, slots=True)
class BudgetPolicy:
    """Token ceiling plus the soft and severe warning fractions."""

    ceiling: int = 200_000
    warn_ratio: float = 0.8
    severe_ratio: float = 0.9

    def __post_init__(self) -> None:
        """Validate bounds and ordering of the thresholds."""
        _require(
            condition=isinstance(self.ceiling, int) and self.ceiling >= 1,
            message=f"must be an int >= 1, got {self.ceiling}",
            field_name="ceiling",
        )
        _require(
            condition=0.0 < self.warn_ratio <= self.severe_ratio <= 1.0,
            message=(
                "require 0 < warn_ratio <= severe_ratio <= 1, "
                f"got {self.warn_ratio} and {self.severe_ratio}"
            ),
            field_name="thresholds",
        )


@dataclasses.dataclass(frozen=True, slots=True)
class BudgetDecision:
    """Outcome of checking a payload's token estimate against a ceiling.

    `warn` and `severe` are display hints only; `admitted` is the gate.
    """

    count: int
    ceiling: int
    admitted: bool
    warn: bool = False
    severe: bool = False

    @property
    def remaining(self) -> int:
        return self.ceiling - self.count

    @property
    def usage_ratio(self) -> float:
        return self.count / self.ceiling


# --- Outputs ---

ResultKind = typing.Literal["none", "success", "failure"]


@dataclasses.dataclass(frozen=True, slots=True)
class ProcessingResult:
    """Exactly one of: no result yet, extracted text, or a failure message."""

    kind: ResultKind = "none"
    text: str | None = None
    message: str | None = None

    def __post_init__(self) -> None:
        """Enforce that the populated fields match `kind`."""
        _require(
            condition=self.kind in ("none", "success", "failure"),
            message=f"must be one of ['none','success','failure'], got {self.kind!r}",
            field_name="kind",
        )
        _require(
            condition=(self.text is not None) == (self.kind == "success"),
            message="text is set if and only if kind == 'success'",
            field_name="text",
        )
        _require(
            condition=(self.message is not None) == (self.kind == "failure"),
            message="message is set if and only if kind == 'failure'",
            field_name="message",
        )

    @classmethod
    def none(cls) -> ProcessingResult:
        return cls()

    @classmethod
    def success(cls, text: str) -> ProcessingResult:
        return cls(kind="success", text=text)

    @classmethod
    def failure(cls, message: str) -> ProcessingResult:
        return cls(kind="failure", message=message)


NotificationLevel = typing.Literal["info", "warning", "error"]


@dataclasses.dataclass(frozen=True, slots=True)
class Notification:
    """A non-blocking, user-visible message for the presentation layer."""

    level: NotificationLevel
    title: str
    description: str
