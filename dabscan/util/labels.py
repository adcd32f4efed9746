"""DAB label helpers."""

from __future__ import annotations

import unicodedata


def _is_trailing_junk(ch: str) -> bool:
    return ch.isspace() or unicodedata.category(ch) == "Cc"


def normalize_label(label: str) -> str:
    """Strip trailing whitespace and control characters from a broadcast label.

    DAB labels are fixed 16-character fields padded with spaces (and sometimes
    NULs). Leading and internal whitespace is kept as transmitted.
    """
    end = len(label)
    while end > 0 and _is_trailing_junk(label[end - 1]):
        end -= 1
    return label[:end]
