"""The processing session: inputs, live budget and the request state machine.

A session owns one primary text, an ordered tuple of uploaded files and their
decoded contents, and walks the state machine

    IDLE -> SUBMITTING -> {SUCCEEDED, FAILED}
    FAILED -> IDLE on any edit, SUCCEEDED -> IDLE only on reset

Every mutation recomputes the token estimate of the aggregated payload, so the
current budget decision is always available without a submit. Submitting
snapshots the credentials and the payload, sends exactly one request, and
records the outcome. Failures are returned as `Failure` values and surfaced as
notifications; none of them leave the session unusable.

Known limitation: without a configured ``request_timeout`` a request that never
answers keeps the session in ``SUBMITTING``. There is no cancellation.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
import dataclasses
from enum import Enum
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from azure_text_processor.core.types import (
    BudgetDecision,
    BudgetPolicy,
    CredentialSet,
    Failure,
    LoadReport,
    Notification,
    NotificationLevel,
    ProcessingResult,
    Result,
    Success,
    UploadedFile,
)
from azure_text_processor.exceptions import (
    APIError,
    BudgetExceededError,
    EmptyInputError,
    FilesLoadingError,
    MissingCredentialsError,
    SessionStateError,
    SubmissionInProgressError,
    TextProcessorError,
)
from azure_text_processor.files import FileTextLoader
from azure_text_processor.pipeline import (
    BudgetGuard,
    ResponsesAPIHandler,
    ResponsesRequest,
    aggregate,
    extract_output_text,
    pair_contents,
)
from azure_text_processor.telemetry import TelemetryContext, TelemetryContextProtocol
from azure_text_processor.tokens import TokenizerAdapter, build_tiktoken_counter

if TYPE_CHECKING:
    import httpx

    from azure_text_processor.config import CredentialStore, ResolvedConfig
    from azure_text_processor.output import ResultSink

logger = logging.getLogger(__name__)

NotifyFn = Callable[[Notification], None]

GENERIC_FAILURE_MESSAGE = (
    "An error occurred while processing your request. "
    "Please check your configuration and try again."
)
RESULT_HELD_MESSAGE = "A result is shown; reset the session to start a new request"


class ProcessingState(str, Enum):
    """Request lifecycle states."""

    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ProcessingSession:
    """Single-user session that aggregates input, gates it and submits it.

    Collaborators are injected so the session runs without a UI or network:
    the tokenizer, the file loader, the API handler, the credential store and a
    ``notify`` callback that receives user-facing `Notification`s.
    """

    def __init__(
        self,
        credentials: CredentialSet | None = None,
        *,
        tokenizer: TokenizerAdapter | None = None,
        policy: BudgetPolicy | None = None,
        loader: FileTextLoader | None = None,
        api_handler: ResponsesAPIHandler | None = None,
        store: CredentialStore | None = None,
        notify: NotifyFn | None = None,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        self._telemetry: TelemetryContextProtocol = telemetry or TelemetryContext()
        self._credentials = credentials or CredentialSet()
        self._guard = BudgetGuard(tokenizer, policy)
        self._loader = loader or FileTextLoader(telemetry=self._telemetry)
        self._api = api_handler or ResponsesAPIHandler(telemetry=self._telemetry)
        self._store = store
        self._notify = notify
        self._notifications: list[Notification] = []

        self._state = ProcessingState.IDLE
        self._result = ProcessingResult.none()
        self._primary_text = ""
        self._files: tuple[UploadedFile, ...] = ()
        # Contents always belong to _applied_files, which lags _files while loading
        self._applied_files: tuple[UploadedFile, ...] = self._files
        self._contents: tuple[str, ...] = ()
        self._last_report = LoadReport(contents=())

        self._last_payload: str | None = None
        self._budget: BudgetDecision = self._recompute()

    @classmethod
    def from_config(
        cls,
        config: ResolvedConfig,
        *,
        store: CredentialStore | None = None,
        tokenizer: TokenizerAdapter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        notify: NotifyFn | None = None,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> ProcessingSession:
        """Build a session from resolved configuration."""
        return cls(
            config.credentials(),
            tokenizer=tokenizer
            or TokenizerAdapter(build_tiktoken_counter(config.encoding, config.model)),
            policy=config.budget_policy(),
            api_handler=ResponsesAPIHandler(
                timeout=config.request_timeout,
                transport=transport,
                telemetry=telemetry,
            ),
            store=store,
            notify=notify,
            telemetry=telemetry,
        )

    # --- Read-only views ---

    @property
    def state(self) -> ProcessingState:
        return self._state

    @property
    def primary_text(self) -> str:
        return self._primary_text

    @property
    def files(self) -> tuple[UploadedFile, ...]:
        return self._files

    @property
    def contents(self) -> tuple[str, ...]:
        """Decoded texts aligned with `files` (stale while `loading`)."""
        return self._contents

    @property
    def last_load_report(self) -> LoadReport:
        """The most recent load report, including per-file read warnings."""
        return self._last_report

    @property
    def result(self) -> ProcessingResult:
        return self._result

    @property
    def credentials(self) -> CredentialSet:
        return self._credentials

    @property
    def budget(self) -> BudgetDecision:
        """The token budget decision for the current inputs."""
        return self._budget

    @property
    def loading(self) -> bool:
        """True while the decoded contents do not yet match the file sequence."""
        return self._loader.busy or self._applied_files is not self._files

    @property
    def has_content(self) -> bool:
        return bool(self._primary_text.strip()) or bool(self._files)

    @property
    def notifications(self) -> tuple[Notification, ...]:
        return tuple(self._notifications)

    @property
    def can_submit(self) -> bool:
        if self._state in (ProcessingState.SUBMITTING, ProcessingState.SUCCEEDED):
            return False
        return isinstance(self.check_submit(), Success)

    def payload(self) -> str:
        """Return the aggregated payload exactly as it would be submitted."""
        return self._payload_for(self._primary_text)

    # --- Edits ---

    def set_primary_text(
        self, text: str
    ) -> Result[BudgetDecision, BudgetExceededError | SessionStateError]:
        """Replace the primary text unless that would push the estimate over the ceiling.

        An edit that keeps or lowers the estimate is always accepted, so a
        session that is already over budget (for example after adding a file)
        can be brought back under it. While a result is held the inputs are
        frozen and the edit fails with `SessionStateError`.
        """
        if not isinstance(text, str):
            raise TypeError("text must be a str")
        if self._state is ProcessingState.SUCCEEDED:
            return Failure(SessionStateError(RESULT_HELD_MESSAGE))
        candidate_payload = self._payload_for(text)
        candidate = self._guard.evaluate(candidate_payload)
        current = self._budget
        if not candidate.admitted and candidate.count > current.count:
            self._emit(
                "error",
                "Token Limit Exceeded",
                f"This edit would bring the input to {candidate.count:,} tokens "
                f"(currently {current.count:,}); the maximum is {candidate.ceiling:,}.",
            )
            return Failure(BudgetExceededError(candidate.count, candidate.ceiling))

        self._primary_text = text
        self._last_payload = candidate_payload
        self._budget = candidate
        self._leave_failed()
        return Success(candidate)

    async def add_files(self, files: Iterable[UploadedFile]) -> LoadReport:
        """Append files in the given order and decode the new sequence.

        Raises:
            SessionStateError: If a result is held; call `reset` first.
        """
        self._require_editable()
        added = tuple(files)
        for f in added:
            if not isinstance(f, UploadedFile):
                raise TypeError(f"expected UploadedFile, got {type(f).__name__}")
        return await self._replace_files(self._files + added)

    async def remove_file(self, index: int) -> LoadReport:
        """Remove the file at ``index`` and decode the remaining sequence.

        Raises:
            SessionStateError: If a result is held; call `reset` first.
        """
        self._require_editable()
        if not 0 <= index < len(self._files):
            raise IndexError(f"no file at index {index}")
        return await self._replace_files(
            self._files[:index] + self._files[index + 1 :]
        )

    async def _replace_files(self, files: tuple[UploadedFile, ...]) -> LoadReport:
        self._files = files
        self._leave_failed()
        report = await self._loader.load(files)
        # A later add/remove may have replaced the sequence while we awaited
        if self._files is not files:
            return report

        self._applied_files = files
        self._contents = report.contents
        self._last_report = report
        for warning in report.warnings:
            self._emit(
                "warning",
                "File Read Error",
                f"Could not read {warning.name}; it will be sent as empty text.",
            )
        self._budget = self._recompute()
        return report

    # --- Credentials ---

    def update_credentials(self, credentials: CredentialSet, *, persist: bool = True) -> None:
        """Replace the credentials, saving them to the store first when ``persist``.

        A request already in flight keeps the snapshot it was built with.
        """
        if persist and self._store is not None:
            self._store.save(credentials)
        self._credentials = credentials

    def clear_credentials(self) -> None:
        """Forget the endpoint and key, in memory and in the store."""
        if self._store is not None:
            self._store.clear()
        self._credentials = dataclasses.replace(self._credentials, endpoint="", api_key="")

    # --- Submission ---

    def check_submit(self) -> Result[None, TextProcessorError]:
        """Return Success when a submit would be sent, else the first blocking reason."""
        if not self._credentials.has_credentials:
            missing = ", ".join(self._credentials.missing_fields())
            return Failure(MissingCredentialsError(f"Missing credentials: {missing}"))
        if not self.has_content:
            return Failure(EmptyInputError("Enter some text or upload files to process"))
        if self.loading:
            return Failure(FilesLoadingError("Files are still being read"))
        if not self._budget.admitted:
            return Failure(BudgetExceededError(self._budget.count, self._budget.ceiling))
        return Success(None)

    async def submit(self) -> Result[str, TextProcessorError]:
        """Send the current payload once and record the outcome.

        Returns:
            Success with the extracted text, or Failure with the blocking
            precondition, the transport/HTTP error, or
            `SubmissionInProgressError` when a request is already in flight
            (that call changes nothing), or `SessionStateError` while a
            result is held.
        """
        if self._state is ProcessingState.SUBMITTING:
            logger.debug("Ignoring submit while a request is in flight")
            return Failure(SubmissionInProgressError("A submission is already in flight"))
        if self._state is ProcessingState.SUCCEEDED:
            error = SessionStateError(RESULT_HELD_MESSAGE)
            self._notify_blocked(error)
            return Failure(error)

        check = self.check_submit()
        if isinstance(check, Failure):
            self._notify_blocked(check.error)
            return check

        request = ResponsesRequest(credentials=self._credentials, payload=self.payload())
        self._state = ProcessingState.SUBMITTING
        self._result = ProcessingResult.none()
        logger.info(
            "Submitting %d tokens (%d files) to %s",
            self._budget.count,
            len(self._files),
            request.url,
        )

        with self._telemetry("session.submit", files=len(self._files)):
            try:
                outcome = await self._api.handle(request)
            except Exception as e:
                logger.exception("Unexpected error while submitting")
                outcome = Failure(APIError(f"Unexpected error: {e}"))

        if isinstance(outcome, Failure):
            self._state = ProcessingState.FAILED
            self._result = ProcessingResult.failure(GENERIC_FAILURE_MESSAGE)
            self._emit("error", "Processing Failed", GENERIC_FAILURE_MESSAGE)
            return outcome

        text = extract_output_text(outcome.value)
        self._state = ProcessingState.SUCCEEDED
        self._result = ProcessingResult.success(text)
        self._emit(
            "info",
            "Processing Complete",
            "Your content has been processed successfully!",
        )
        return Success(text)

    def reset(self) -> None:
        """Clear the result, the primary text and the files; return to IDLE.

        Raises:
            SessionStateError: If a request is in flight.
        """
        if self._state is ProcessingState.SUBMITTING:
            raise SessionStateError("Cannot reset while a submission is in flight")
        self._result = ProcessingResult.none()
        self._primary_text = ""
        self._files = ()
        self._applied_files = self._files
        self._contents = ()
        self._last_report = LoadReport(contents=())
        self._loader.invalidate()
        self._state = ProcessingState.IDLE
        self._budget = self._recompute()

    def download_result(self, sink: ResultSink) -> Path | None:
        """Hand a successful result to ``sink`` for saving; None when there is none."""
        if self._result.kind != "success" or self._result.text is None:
            return None
        return sink.download(self._result.text)

    # --- Internal helpers ---

    def _payload_for(self, primary_text: str) -> str:
        return aggregate(primary_text, pair_contents(self._applied_files, self._contents))

    def _recompute(self) -> BudgetDecision:
        payload = self.payload()
        if payload != self._last_payload:
            self._last_payload = payload
            return self._guard.evaluate(payload)
        return self._budget

    def _require_editable(self) -> None:
        if self._state is ProcessingState.SUCCEEDED:
            raise SessionStateError(RESULT_HELD_MESSAGE)

    def _leave_failed(self) -> None:
        if self._state is ProcessingState.FAILED:
            self._state = ProcessingState.IDLE
            self._result = ProcessingResult.none()

    def _notify_blocked(self, error: TextProcessorError) -> None:
        match error:
            case MissingCredentialsError():
                self._emit(
                    "error",
                    "Configuration Missing",
                    "Please configure your Azure OpenAI credentials first.",
                )
            case EmptyInputError():
                self._emit(
                    "error",
                    "No Content",
                    "Please enter some text or upload files to process.",
                )
            case FilesLoadingError():
                self._emit(
                    "warning",
                    "Files Loading",
                    "Please wait until all files have been read.",
                )
            case BudgetExceededError(count=count, ceiling=ceiling):
                self._emit(
                    "error",
                    "Token Limit Exceeded",
                    f"The input is {count:,} tokens; the maximum is {ceiling:,}.",
                )
            case _:
                self._emit("error", "Cannot Submit", str(error))

    def _emit(self, level: NotificationLevel, title: str, description: str) -> None:
        notification = Notification(level=level, title=title, description=description)
        self._notifications.append(notification)
        self._telemetry.count("session.notification", level=level)
        if self._notify is not None:
            try:
                self._notify(notification)
            except Exception as e:
                logger.error("Notification callback failed: %s", e, exc_info=True)
