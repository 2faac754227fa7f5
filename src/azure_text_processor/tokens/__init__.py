"""Token counting for payload budgeting."""

from .adapter import (
    DEFAULT_ENCODING,
    TokenCountFn,
    TokenizerAdapter,
    build_tiktoken_counter,
)

__all__ = [
    "DEFAULT_ENCODING",
    "TokenCountFn",
    "TokenizerAdapter",
    "build_tiktoken_counter",
]
