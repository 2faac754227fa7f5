"""Core data types shared by the pipeline stages and the session."""

from .types import (
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

__all__ = [
    "BudgetDecision",
    "BudgetPolicy",
    "CredentialSet",
    "Failure",
    "FileDecodeWarning",
    "LoadReport",
    "Notification",
    "ProcessingResult",
    "Result",
    "Success",
    "UploadedFile",
]
