import asyncio
import logging
import time

import pytest

from azure_text_processor.core.types import UploadedFile
from azure_text_processor.exceptions import FileDecodeError
from azure_text_processor.files import FileTextLoader, decode_file, is_plain_text

pytestmark = pytest.mark.unit


def counting_file(name: str, data: bytes, calls: list[str]) -> UploadedFile:
    def _load() -> bytes:
        calls.append(name)
        return data

    return UploadedFile(name=name, content_loader=_load, size_bytes=len(data))


def slow_file(name: str, data: bytes, delay: float) -> UploadedFile:
    def _load() -> bytes:
        time.sleep(delay)
        return data

    return UploadedFile(name=name, content_loader=_load, size_bytes=len(data))


class TestDecodeFile:
    def test_decodes_utf8(self):
        assert decode_file(UploadedFile.from_bytes("a.txt", "héllo".encode())) == "héllo"

    def test_drops_leading_bom(self):
        data = b"\xef\xbb\xbfhello"
        assert decode_file(UploadedFile.from_bytes("a.txt", data)) == "hello"

    def test_invalid_utf8_bytes_are_replaced(self):
        assert decode_file(UploadedFile.from_bytes("bad.txt", b"ok\xff")) == "ok\ufffd"

    def test_latin1_file_keeps_its_readable_text(self):
        data = "R\u00e9sum\u00e9 notes".encode("latin-1")
        text = decode_file(UploadedFile.from_bytes("notes.txt", data))
        assert text == "R\ufffdsum\ufffd notes"

    def test_loader_error_raises(self):
        def _gone() -> bytes:
            raise OSError("file vanished")

        with pytest.raises(FileDecodeError, match="file vanished"):
            decode_file(UploadedFile(name="gone.txt", content_loader=_gone))


@pytest.mark.parametrize(
    ("name", "mime", "expected"),
    [
        ("a.txt", None, True),
        ("A.TXT", "application/octet-stream", True),
        ("notes", "text/plain; charset=utf-8", True),
        ("doc.md", "text/markdown", False),
        ("image.png", "image/png", False),
    ],
)
def test_is_plain_text(name, mime, expected):
    assert is_plain_text(name, mime) is expected


@pytest.mark.asyncio
async def test_contents_are_index_aligned_despite_completion_order():
    files = [
        slow_file("first.txt", b"one", 0.05),
        slow_file("second.txt", b"two", 0.0),
        slow_file("third.txt", b"three", 0.02),
    ]
    report = await FileTextLoader().load(files)
    assert report.contents == ("one", "two", "three")
    assert report.warnings == ()


@pytest.mark.asyncio
async def test_read_failure_leaves_empty_slot_and_warning(caplog):
    def _gone() -> bytes:
        raise OSError("file vanished")

    files = [
        UploadedFile.from_bytes("good.txt", b"fine"),
        UploadedFile(name="bad.txt", content_loader=_gone),
        UploadedFile.from_bytes("also_good.txt", b"ok"),
    ]
    with caplog.at_level(logging.WARNING, logger="azure_text_processor.files.loader"):
        report = await FileTextLoader().load(files)

    assert report.contents == ("fine", "", "ok")
    assert report.failed_indices == (1,)
    assert report.warnings[0].name == "bad.txt"
    assert "Error reading file bad.txt" in caplog.text


@pytest.mark.asyncio
async def test_empty_sequence_yields_empty_report():
    report = await FileTextLoader().load([])
    assert report.contents == ()
    assert report.warnings == ()


@pytest.mark.asyncio
async def test_reload_of_same_handles_does_not_reread():
    calls: list[str] = []
    files = (counting_file("a.txt", b"a", calls), counting_file("b.txt", b"b", calls))
    loader = FileTextLoader()

    first = await loader.load(files)
    second = await loader.load(list(files))

    assert first is second
    assert sorted(calls) == ["a.txt", "b.txt"]


@pytest.mark.asyncio
async def test_changed_sequence_is_reread_and_invalidate_forces_reread():
    calls: list[str] = []
    a = counting_file("a.txt", b"a", calls)
    b = counting_file("b.txt", b"b", calls)
    loader = FileTextLoader()

    await loader.load((a, b))
    reordered = await loader.load((b, a))
    assert reordered.contents == ("b", "a")
    assert len(calls) == 4

    loader.invalidate()
    await loader.load((b, a))
    assert len(calls) == 6


@pytest.mark.asyncio
async def test_busy_while_loading():
    loader = FileTextLoader()
    task = asyncio.create_task(loader.load([slow_file("a.txt", b"a", 0.05)]))
    await asyncio.sleep(0)
    assert loader.busy
    await task
    assert not loader.busy
