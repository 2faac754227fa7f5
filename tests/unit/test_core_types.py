import dataclasses

import pytest

from azure_text_processor.core.types import (
    BudgetDecision,
    BudgetPolicy,
    CredentialSet,
    FileDecodeWarning,
    LoadReport,
    ProcessingResult,
    UploadedFile,
)

pytestmark = pytest.mark.unit


class TestUploadedFile:
    def test_from_bytes_records_size_and_loads_lazily(self):
        f = UploadedFile.from_bytes("a.txt", b"data")
        assert f.name == "a.txt"
        assert f.size_bytes == 4
        assert f.content_loader() == b"data"

    def test_rejects_blank_name(self):
        with pytest.raises(TypeError):
            UploadedFile.from_bytes("  ", b"")

    def test_rejects_loader_that_needs_arguments(self):
        with pytest.raises(TypeError, match="content_loader"):
            UploadedFile(name="a.txt", content_loader=lambda path: b"")  # type: ignore[arg-type]

    def test_from_path_guesses_mime_type(self, tmp_path):
        p = tmp_path / "notes.txt"
        p.write_text("hello", encoding="utf-8")
        f = UploadedFile.from_path(p)
        assert f.name == "notes.txt"
        assert f.mime_type == "text/plain"
        assert f.size_bytes == 5
        assert f.content_loader() == b"hello"

    def test_from_path_requires_existing_file(self, tmp_path):
        with pytest.raises(ValueError, match="path"):
            UploadedFile.from_path(tmp_path / "missing.txt")


class TestCredentialSet:
    def test_has_credentials_requires_all_four_fields(self, credentials):
        assert credentials.has_credentials
        partial = dataclasses.replace(credentials, api_key="  ")
        assert not partial.has_credentials
        assert partial.missing_fields() == ("api_key",)

    def test_defaults_are_all_missing(self):
        assert CredentialSet().missing_fields() == (
            "endpoint",
            "api_key",
            "model",
            "api_version",
        )

    def test_is_immutable(self, credentials):
        with pytest.raises(dataclasses.FrozenInstanceError):
            credentials.api_key = "other"  # type: ignore[misc]

    def test_repr_redacts_api_key(self, credentials):
        text = repr(credentials)
        assert "test-key" not in text
        assert "[REDACTED]" in text
        assert str(credentials) == text


class TestBudgetTypes:
    @pytest.mark.parametrize(
        ("ceiling", "warn", "severe"),
        [(0, 0.8, 0.9), (100, 0.0, 0.9), (100, 0.95, 0.9), (100, 0.8, 1.5)],
    )
    def test_policy_rejects_invalid_values(self, ceiling, warn, severe):
        with pytest.raises(ValueError):
            BudgetPolicy(ceiling=ceiling, warn_ratio=warn, severe_ratio=severe)

    def test_decision_derived_values(self):
        d = BudgetDecision(count=50, ceiling=200, admitted=True)
        assert d.remaining == 150
        assert d.usage_ratio == pytest.approx(0.25)


class TestProcessingResult:
    def test_factories_populate_exactly_one_field(self):
        assert ProcessingResult.none() == ProcessingResult("none")
        ok = ProcessingResult.success("text")
        assert ok.text == "text" and ok.message is None
        bad = ProcessingResult.failure("oops")
        assert bad.message == "oops" and bad.text is None

    def test_rejects_inconsistent_fields(self):
        with pytest.raises(ValueError):
            ProcessingResult(kind="success")
        with pytest.raises(ValueError):
            ProcessingResult(kind="none", message="x")


def test_load_report_failed_indices():
    report = LoadReport(
        contents=("a", "", "c", ""),
        warnings=(
            FileDecodeWarning(index=1, name="b.txt", reason="bad"),
            FileDecodeWarning(index=3, name="d.txt", reason="bad"),
        ),
    )
    assert report.failed_indices == (1, 3)
