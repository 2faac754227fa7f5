"""
File text loading for uploaded plain-text files
"""  # noqa: D200, D212, D415

from .loader import FileTextLoader, decode_file, is_plain_text

__all__ = [
    "FileTextLoader",
    "decode_file",
    "is_plain_text",
]
