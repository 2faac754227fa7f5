import pytest

from azure_text_processor.core.types import UploadedFile
from azure_text_processor.pipeline import aggregate, pair_contents
from azure_text_processor.tokens import TokenizerAdapter

pytestmark = pytest.mark.unit


def test_primary_text_only_is_returned_unchanged():
    assert aggregate("Hello", []) == "Hello"


def test_empty_primary_with_one_file():
    assert aggregate("", [("a.txt", "data")]) == "\n\n--- Content from a.txt ---\ndata"


def test_files_are_appended_in_sequence_order():
    payload = aggregate("Intro", [("b.txt", "second"), ("a.txt", "first")])
    assert payload == (
        "Intro"
        "\n\n--- Content from b.txt ---\nsecond"
        "\n\n--- Content from a.txt ---\nfirst"
    )


def test_failed_file_contributes_header_with_empty_body():
    payload = aggregate("x", [("bad.txt", "")])
    assert payload == "x\n\n--- Content from bad.txt ---\n"


def test_aggregate_is_deterministic():
    files = [("a.txt", "1"), ("b.txt", "2")]
    assert aggregate("p", files) == aggregate("p", list(files))


def test_primary_text_must_be_str():
    with pytest.raises(TypeError):
        aggregate(None, [])  # type: ignore[arg-type]


def test_pair_contents_aligns_names_with_contents():
    files = [UploadedFile.from_bytes("a.txt", b"1"), UploadedFile.from_bytes("b.txt", b"2")]
    assert pair_contents(files, ["one", "two"]) == (("a.txt", "one"), ("b.txt", "two"))


def test_pair_contents_rejects_misaligned_sequences():
    files = [UploadedFile.from_bytes("a.txt", b"1")]
    with pytest.raises(ValueError, match="not aligned"):
        pair_contents(files, [])


def test_estimate_never_decreases_as_content_grows():
    count = TokenizerAdapter(len)
    files: list[tuple[str, str]] = []
    previous = count(aggregate("start", files))
    for i in range(5):
        files.append((f"f{i}.txt", "x" * i))
        current = count(aggregate("start", files))
        assert current >= previous
        previous = current
    assert count(aggregate("start more", files)) >= previous
