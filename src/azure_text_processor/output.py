"""Output collaborators: display the result and save it as a text file."""

from __future__ import annotations

from datetime import date
import logging
from pathlib import Path
from typing import Protocol, TextIO, runtime_checkable

logger = logging.getLogger(__name__)

DOWNLOAD_PREFIX = "azure-openai-result"


def download_filename(day: date | None = None) -> str:
    """Return ``azure-openai-result-YYYY-MM-DD.txt`` for ``day`` (default today)."""
    return f"{DOWNLOAD_PREFIX}-{(day or date.today()).isoformat()}.txt"


@runtime_checkable
class ResultSink(Protocol):
    """Receives the final result text."""

    def display(self, text: str) -> None:
        """Show ``text`` to the user."""
        ...

    def download(self, text: str) -> Path:
        """Serialize ``text`` as a plain-text artifact and return its location."""
        ...


class FileResultSink:
    """Prints results to a stream and writes downloads into a directory."""

    def __init__(
        self,
        directory: str | Path = ".",
        stream: TextIO | None = None,
        *,
        today: date | None = None,
    ) -> None:
        self.directory = Path(directory)
        self.stream = stream
        self._today = today

    def display(self, text: str) -> None:
        if self.stream is not None:
            self.stream.write(text)
            if not text.endswith("\n"):
                self.stream.write("\n")
            self.stream.flush()

    def download(self, text: str) -> Path:
        """Write ``text`` as UTF-8; an existing file of the same name is replaced."""
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self.directory / download_filename(self._today)
        target.write_text(text, encoding="utf-8")
        logger.info("Saved result to %s", target)
        return target
