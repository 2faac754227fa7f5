"""Opt-in timings and counters for the session, the file loader and the API stage.

Set ``AZURE_TEXT_PROCESSOR_TELEMETRY=1`` (``DEBUG=1`` also works) and pass at
least one reporter to `TelemetryContext` to record anything; otherwise every
call lands on one shared object that does nothing.

Scope names nest: a ``files.load`` scope opened inside ``session.submit`` is
reported as ``session.submit.files.load``. Counters and gauges are prefixed
with the scopes open at the time they are recorded.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
import logging
import os
import time
from types import TracebackType
from typing import Any, Protocol, Self, TypeAlias, runtime_checkable

log = logging.getLogger(__name__)

TELEMETRY_ENV_VAR = "AZURE_TEXT_PROCESSOR_TELEMETRY"

_open_scopes: ContextVar[tuple[str, ...]] = ContextVar("open_scopes", default=())


def telemetry_enabled() -> bool:
    return os.getenv(TELEMETRY_ENV_VAR) == "1" or os.getenv("DEBUG") == "1"


def _qualified(name: str) -> str:
    return ".".join((*_open_scopes.get(), name))


@runtime_checkable
class TelemetryReporter(Protocol):
    """Anything that accepts scope timings and metric values."""

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None: ...  # noqa: D102
    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None: ...  # noqa: D102


class _DisabledTelemetry:
    """Accepts every telemetry call and records nothing."""

    __slots__ = ()

    def __call__(self, name: str, **metadata: Any) -> Self:  # noqa: ARG002
        return self

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        return None

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        pass

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        pass

    def gauge(self, name: str, value: float, **metadata: Any) -> None:
        pass


class _ReportingTelemetry:
    """Times scopes and forwards every measurement to the reporters."""

    __slots__ = ("reporters",)

    def __init__(self, *reporters: TelemetryReporter):
        self.reporters = reporters

    @contextmanager
    def __call__(self, name: str, **metadata: Any) -> Iterator[_ReportingTelemetry]:
        if not isinstance(name, str) or not name:
            raise ValueError("Scope name must be a non-empty string")
        parents = _open_scopes.get()
        token = _open_scopes.set((*parents, name))
        started = time.perf_counter()
        try:
            yield self
        finally:
            elapsed = time.perf_counter() - started
            _open_scopes.reset(token)
            self._forward(
                "record_timing",
                ".".join((*parents, name)),
                elapsed,
                parent_scope=".".join(parents) or None,
                **metadata,
            )

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        self._forward("record_metric", _qualified(name), value, **metadata)

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        self.metric(name, increment, metric_type="counter", **metadata)

    def gauge(self, name: str, value: float, **metadata: Any) -> None:
        self.metric(name, value, metric_type="gauge", **metadata)

    def _forward(self, method: str, scope: str, value: Any, **metadata: Any) -> None:
        for reporter in self.reporters:
            try:
                getattr(reporter, method)(scope, value, **metadata)
            except Exception as e:
                log.error(
                    "Telemetry reporter %s failed on %s: %s",
                    type(reporter).__name__,
                    scope,
                    e,
                    exc_info=True,
                )


_DISABLED = _DisabledTelemetry()

TelemetryContextProtocol: TypeAlias = _ReportingTelemetry | _DisabledTelemetry


def TelemetryContext(*reporters: TelemetryReporter) -> TelemetryContextProtocol:  # noqa: N802
    """Return a recording context, or the shared disabled one."""
    if reporters and telemetry_enabled():
        return _ReportingTelemetry(*reporters)
    return _DISABLED


class InMemoryReporter:
    """Keeps the latest ``max_entries_per_scope`` measurements for each scope."""

    def __init__(self, max_entries_per_scope: int = 1000):
        self.max_entries = max_entries_per_scope
        self.timings: dict[str, deque[tuple[float, dict[str, Any]]]] = {}
        self.metrics: dict[str, deque[tuple[Any, dict[str, Any]]]] = {}

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None:
        self._bucket(self.timings, scope).append((duration, metadata))

    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None:
        self._bucket(self.metrics, scope).append((value, metadata))

    def _bucket(self, store: dict[str, deque], scope: str) -> deque:
        if scope not in store:
            store[scope] = deque(maxlen=self.max_entries)
        return store[scope]

    def get_report(self) -> str:
        """One line per scope: call count and total seconds, then metric totals."""
        lines = ["Telemetry"]
        for scope in sorted(self.timings):
            durations = [d for d, _ in self.timings[scope]]
            lines.append(f"  {scope}: {len(durations)} calls, {sum(durations):.4f}s")
        for scope in sorted(self.metrics):
            values = [v for v, _ in self.metrics[scope]]
            total = sum(v for v in values if isinstance(v, int | float))
            lines.append(f"  {scope}: {len(values)} records, total {total:,.0f}")
        return "\n".join(lines)
