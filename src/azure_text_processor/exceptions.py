"""Exceptions for the Azure OpenAI text processor"""  # noqa: D415

from __future__ import annotations


class TextProcessorError(Exception):
    """Base exception for text processor errors"""  # noqa: D415


class ConfigurationError(TextProcessorError):
    """Raised when configuration values are invalid or incomplete"""  # noqa: D415


class MissingCredentialsError(ConfigurationError):
    """Raised when endpoint, API key, model or API version is missing"""  # noqa: D415


class ConfigFileError(ConfigurationError):
    """Raised when the local credential cache cannot be read or written."""

    def __init__(self, file_path, message: str, cause: Exception | None = None):
        """Initialize with the offending file path, a message and optional cause."""
        self.file_path = file_path
        self.message = message
        self.cause = cause
        super().__init__(f"Credential cache error in {file_path}: {message}")


class EmptyInputError(TextProcessorError):
    """Raised when there is neither primary text nor any uploaded file"""  # noqa: D415


class FileDecodeError(TextProcessorError):
    """Raised when an uploaded file cannot be read or decoded as UTF-8"""  # noqa: D415


class FilesLoadingError(TextProcessorError):
    """Raised when a submit is attempted while file decoding is in flight"""  # noqa: D415


class BudgetExceededError(TextProcessorError):
    """Raised when a payload's token estimate exceeds the ceiling."""

    def __init__(self, count: int, ceiling: int):
        """Store the offending count and the ceiling it was checked against."""
        self.count = count
        self.ceiling = ceiling
        super().__init__(
            f"Token estimate {count:,} exceeds the maximum of {ceiling:,} tokens"
        )


class APIError(TextProcessorError):
    """Raised when the remote endpoint fails or cannot be reached."""

    def __init__(self, message: str, status_code: int | None = None):
        """Initialize with a message and the HTTP status code, if any."""
        self.status_code = status_code
        super().__init__(message)


class SessionStateError(TextProcessorError):
    """Raised when a command is not valid in the session's current state"""  # noqa: D415


class SubmissionInProgressError(SessionStateError):
    """Raised when a second submit arrives while one is already in flight"""  # noqa: D415
