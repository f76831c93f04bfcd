# tools/roxygen.py
"""Small text helpers for roxygen comment blocks and LLM replies."""
from __future__ import annotations

import re
from typing import Iterable, List, Union

_ROXYGEN_LINE = re.compile(r"^\s*#\s*'")
_MARKER       = re.compile(r"^\s*#'")

Text = Union[str, Iterable[str], None]


def txt_multi(x: Text, new_line: str = "\n") -> List[str]:
    """Split text (or every element of a list of texts) into single lines."""
    if x is None:
        return []
    if isinstance(x, str):
        return x.split(new_line)
    out: List[str] = []
    for item in x:
        out.extend(str(item).split(new_line))
    return out


def txt_single(x: Text, new_line: str = "\n") -> str:
    """Join text into one string, one line per element."""
    return new_line.join(txt_multi(x, new_line))


def is_blank_comment(x: Text) -> bool:
    """True when x holds nothing but whitespace and #' markers."""
    for line in txt_multi(txt_single(x)):
        if _MARKER.sub("", _MARKER.sub("", line)).strip():
            return False
    return True


def roxygen_lines(response: str) -> str:
    """Keep only the roxygen lines ( #' ... ) of an LLM reply."""
    kept = [l for l in txt_multi(response) if _ROXYGEN_LINE.match(l)]
    return txt_single(kept)
