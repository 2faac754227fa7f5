"""Payload aggregation.

`aggregate` is the single place a payload is built. The budget guard counts
its output and the API handler sends its output, so both always see the same
bytes for the same session state.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from azure_text_processor.core.types import UploadedFile

FILE_BLOCK_TEMPLATE = "\n\n--- Content from {name} ---\n{content}"


def aggregate(primary_text: str, files: Iterable[tuple[str, str]]) -> str:
    """Concatenate the primary text and each file's text, in sequence order.

    Args:
        primary_text: The user's free text (may be empty).
        files: ``(file_name, decoded_content)`` pairs in upload order.

    Returns:
        The payload string; pure and deterministic for equal arguments.
    """
    if not isinstance(primary_text, str):
        raise TypeError("primary_text must be a str")
    parts = [primary_text]
    for name, content in files:
        parts.append(FILE_BLOCK_TEMPLATE.format(name=name, content=content))
    return "".join(parts)


def pair_contents(
    files: Sequence[UploadedFile], contents: Sequence[str]
) -> tuple[tuple[str, str], ...]:
    """Pair file names with decoded contents by index.

    Raises:
        ValueError: If the two sequences are not index-aligned.
    """
    if len(files) != len(contents):
        raise ValueError(
            f"decoded contents ({len(contents)}) are not aligned with files ({len(files)})"
        )
    return tuple((f.name, c) for f, c in zip(files, contents, strict=True))
