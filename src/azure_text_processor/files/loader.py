"""Concurrent UTF-8 decoding of uploaded files.

Each file is decoded in its own task and the results are written into a
pre-sized list by index, so completion order never affects output order. A
read failure on one file leaves an empty string in its slot and a warning in the
report; it never aborts the other files.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
import logging
from pathlib import PurePath

from azure_text_processor.core.types import (
    FileDecodeWarning,
    LoadReport,
    UploadedFile,
)
from azure_text_processor.exceptions import FileDecodeError
from azure_text_processor.telemetry import TelemetryContext, TelemetryContextProtocol

logger = logging.getLogger(__name__)

PLAIN_TEXT_MIME = "text/plain"


def is_plain_text(name: str, mime_type: str | None = None) -> bool:
    """Return True for files the upload collaborator should hand to the core."""
    if mime_type and mime_type.split(";")[0].strip().lower() == PLAIN_TEXT_MIME:
        return True
    return PurePath(name).suffix.lower() == ".txt"


def decode_file(file: UploadedFile) -> str:
    """Read one file and decode it as UTF-8 (a leading BOM is dropped).

    Bytes that are not valid UTF-8 become U+FFFD, so a file in another
    encoding is still sent with its readable text intact.

    Raises:
        FileDecodeError: If the bytes cannot be read.
    """
    try:
        raw = file.content_loader()
    except Exception as e:
        raise FileDecodeError(f"Could not read {file.name}: {e}") from e
    if not isinstance(raw, bytes | bytearray):
        raise FileDecodeError(
            f"Loader for {file.name} returned {type(raw).__name__}, expected bytes"
        )
    return bytes(raw).decode("utf-8-sig", errors="replace")


def _same_sequence(a: Sequence[UploadedFile], b: Sequence[UploadedFile]) -> bool:
    return len(a) == len(b) and all(x is y for x, y in zip(a, b, strict=True))


class FileTextLoader:
    """Decodes a sequence of file handles into index-aligned text.

    Re-invoking `load` with the same handles (by identity, in the same order)
    returns the previous report without re-reading any file.
    """

    def __init__(self, telemetry: TelemetryContextProtocol | None = None) -> None:
        self._telemetry: TelemetryContextProtocol = telemetry or TelemetryContext()
        self._in_flight = 0
        self._generation = 0
        self._last_files: tuple[UploadedFile, ...] | None = None
        self._last_report: LoadReport | None = None

    @property
    def busy(self) -> bool:
        """True while at least one load is in flight."""
        return self._in_flight > 0

    async def load(self, files: Sequence[UploadedFile]) -> LoadReport:
        """Decode every file concurrently and return contents plus warnings."""
        snapshot = tuple(files)
        if (
            self._last_report is not None
            and self._last_files is not None
            and _same_sequence(snapshot, self._last_files)
        ):
            return self._last_report

        self._generation += 1
        generation = self._generation
        self._in_flight += 1
        try:
            with self._telemetry("files.load", files=len(snapshot)):
                report = await self._decode_all(snapshot)
        finally:
            self._in_flight -= 1

        # A newer load may have started meanwhile; only the newest one is cached
        if generation == self._generation:
            self._last_files = snapshot
            self._last_report = report
        return report

    def invalidate(self) -> None:
        """Forget the cached report so the next load re-reads every file."""
        self._last_files = None
        self._last_report = None

    async def _decode_all(self, files: tuple[UploadedFile, ...]) -> LoadReport:
        contents: list[str] = [""] * len(files)
        warnings: list[FileDecodeWarning | None] = [None] * len(files)

        async def _decode_one(index: int, file: UploadedFile) -> None:
            try:
                contents[index] = await asyncio.to_thread(decode_file, file)
            except FileDecodeError as e:
                logger.warning("Error reading file %s: %s", file.name, e)
                warnings[index] = FileDecodeWarning(
                    index=index, name=file.name, reason=str(e)
                )
                self._telemetry.count("files.decode_error")

        await asyncio.gather(*(_decode_one(i, f) for i, f in enumerate(files)))
        return LoadReport(
            contents=tuple(contents),
            warnings=tuple(w for w in warnings if w is not None),
        )
