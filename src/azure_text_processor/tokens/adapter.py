"""Tokenizer adapter: text in, non-negative token count out.

The adapter wraps any ``Callable[[str], int]``. Counting never raises: a
tokenizer failure is logged and reported as 0 so the session stays usable
(fail open to "unknown"). Counts are approximate; concatenating two strings
may not yield exactly the sum of their counts at the boundary characters.
"""

from __future__ import annotations

from collections.abc import Callable
import logging

import tiktoken

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "o200k_base"

TokenCountFn = Callable[[str], int]


def build_tiktoken_counter(
    encoding: str = DEFAULT_ENCODING, model: str | None = None
) -> TokenCountFn:
    """Return a counter backed by a tiktoken encoding.

    The encoding is resolved on first use, not here, because tiktoken may need
    to fetch the BPE ranks. When ``model`` is known to tiktoken its encoding
    wins over ``encoding``.
    """
    cache: dict[str, tiktoken.Encoding] = {}

    def _encoding() -> tiktoken.Encoding:
        enc = cache.get("enc")
        if enc is None:
            if model:
                try:
                    enc = tiktoken.encoding_for_model(model)
                except KeyError:
                    logger.debug(
                        "No tiktoken encoding registered for model %r; using %s",
                        model,
                        encoding,
                    )
            if enc is None:
                enc = tiktoken.get_encoding(encoding)
            cache["enc"] = enc
        return enc

    def _count(text: str) -> int:
        # Special-token text typed by a user is counted as ordinary text
        return len(_encoding().encode(text, disallowed_special=()))

    return _count


class TokenizerAdapter:
    """Stateless, fail-open wrapper around a token counting function."""

    def __init__(self, count_fn: TokenCountFn | None = None) -> None:
        """Wrap ``count_fn``; defaults to the tiktoken ``o200k_base`` counter."""
        self._count_fn: TokenCountFn = count_fn or build_tiktoken_counter()

    def count(self, text: str) -> int:
        """Return the token count of ``text`` (0 for empty text or on failure)."""
        if not text:
            return 0
        try:
            value = int(self._count_fn(text))
        except Exception as e:
            logger.warning(
                "Token counting failed (%s: %s); reporting 0 tokens",
                type(e).__name__,
                e,
            )
            return 0
        if value < 0:
            logger.warning("Tokenizer returned a negative count (%d); clamping", value)
            return 0
        return value

    __call__ = count
