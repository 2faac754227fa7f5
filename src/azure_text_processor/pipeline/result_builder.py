"""Extraction of output text from a responses-API envelope.

Only ``message`` items contribute, and within them only ``output_text``
entries; each entry adds its text plus a newline. When nothing qualifies,
including when the envelope is malformed, the result is the explicit
placeholder so "nothing extractable" stays distinguishable from "not run".
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

NO_TEXT_PLACEHOLDER = "No text content found in response"


class OutputContent(BaseModel):
    """One content entry of a message item."""

    model_config = ConfigDict(extra="ignore")

    type: str = ""
    text: str | None = None


class OutputItem(BaseModel):
    """One item of the envelope's ``output`` sequence."""

    model_config = ConfigDict(extra="ignore")

    type: str = ""
    content: list[OutputContent] | None = None


class ResponseEnvelope(BaseModel):
    """The subset of the responses-API body this package reads."""

    model_config = ConfigDict(extra="ignore")

    output: list[OutputItem] = Field(default_factory=list)


def parse_envelope(raw: Any) -> ResponseEnvelope | None:
    """Validate ``raw`` into an envelope, or return None when it does not fit."""
    try:
        return ResponseEnvelope.model_validate(raw)
    except ValidationError as e:
        logger.warning(
            "Response envelope did not match the expected shape (%d errors)",
            e.error_count(),
        )
        return None


def extract_output_text(raw: Any) -> str:
    """Return the concatenated output text, or the placeholder when there is none."""
    envelope = parse_envelope(raw)
    if envelope is None:
        return NO_TEXT_PLACEHOLDER

    chunks: list[str] = []
    for item in envelope.output:
        if item.type != "message" or not item.content:
            continue
        for entry in item.content:
            if entry.type == "output_text" and entry.text is not None:
                chunks.append(entry.text + "\n")

    return "".join(chunks) or NO_TEXT_PLACEHOLDER
