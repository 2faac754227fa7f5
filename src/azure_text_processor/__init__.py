"""Token-budgeted text and file processing with Azure OpenAI responses."""

import importlib.metadata
import logging

from azure_text_processor.config import (
    InMemoryCredentialStore,
    JsonFileCredentialStore,
    ResolvedConfig,
    resolve_config,
)
from azure_text_processor.core.types import (
    BudgetDecision,
    BudgetPolicy,
    CredentialSet,
    Failure,
    FileDecodeWarning,
    LoadReport,
    Notification,
    ProcessingResult,
    Result,
    Success,
    UploadedFile,
)
from azure_text_processor.exceptions import (
    APIError,
    BudgetExceededError,
    ConfigFileError,
    ConfigurationError,
    EmptyInputError,
    FileDecodeError,
    FilesLoadingError,
    MissingCredentialsError,
    SessionStateError,
    SubmissionInProgressError,
    TextProcessorError,
)
from azure_text_processor.files import FileTextLoader, is_plain_text
from azure_text_processor.output import FileResultSink, ResultSink
from azure_text_processor.pipeline import (
    NO_TEXT_PLACEHOLDER,
    BudgetGuard,
    ResponsesAPIHandler,
    aggregate,
    extract_output_text,
)
from azure_text_processor.session import ProcessingSession, ProcessingState
from azure_text_processor.telemetry import TelemetryContext, TelemetryReporter
from azure_text_processor.tokens import TokenizerAdapter

try:
    __version__ = importlib.metadata.version("azure-text-processor")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Set up a null handler for the library's root logger.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [  # noqa: RUF022
    # Session
    "ProcessingSession",
    "ProcessingState",
    # Pipeline stages
    "TokenizerAdapter",
    "FileTextLoader",
    "BudgetGuard",
    "ResponsesAPIHandler",
    "aggregate",
    "extract_output_text",
    "is_plain_text",
    "NO_TEXT_PLACEHOLDER",
    # Configuration
    "ResolvedConfig",
    "resolve_config",
    "InMemoryCredentialStore",
    "JsonFileCredentialStore",
    # Output
    "ResultSink",
    "FileResultSink",
    # Telemetry
    "TelemetryContext",
    "TelemetryReporter",
    # Core types
    "UploadedFile",
    "LoadReport",
    "FileDecodeWarning",
    "CredentialSet",
    "BudgetPolicy",
    "BudgetDecision",
    "ProcessingResult",
    "Notification",
    "Result",
    "Success",
    "Failure",
    # Exceptions
    "TextProcessorError",
    "ConfigurationError",
    "MissingCredentialsError",
    "ConfigFileError",
    "EmptyInputError",
    "FileDecodeError",
    "FilesLoadingError",
    "BudgetExceededError",
    "APIError",
    "SessionStateError",
    "SubmissionInProgressError",
]
