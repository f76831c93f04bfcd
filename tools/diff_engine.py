# tools/diff_engine.py
"""
Line-range edits on an in-memory document, plus diff rendering.

Every edit returns (new_lines | None, reason) so callers know WHY an edit
did not happen:
  "ok"            edit applied
  "appended"      text added after the last line
  "noop"          edit would produce identical content
  "out_of_range"  line numbers do not fit the document
"""
from __future__ import annotations

import difflib
from typing import List, Optional, Sequence, Tuple, Union

from tools.roxygen import txt_multi

Lines = Sequence[str]


def _lines_of(text: Union[str, Lines, None]) -> List[str]:
    if text is None:
        return []
    if isinstance(text, str):
        text = text.rstrip("\n")
        return text.split("\n") if text else []
    return txt_multi(list(text))


def insert_lines(
    document: Lines,
    line: int,
    text: Union[str, Lines],
) -> Tuple[Optional[List[str]], str]:
    """Insert text before 1-based line. line == len(document) + 1 appends."""
    doc = list(document)
    if line < 1 or line > len(doc) + 1:
        return None, "out_of_range"
    new = _lines_of(text)
    if not new:
        return doc, "noop"
    result = doc[:line - 1] + new + doc[line - 1:]
    return result, "appended" if line == len(doc) + 1 else "ok"


def replace_lines(
    document: Lines,
    start_line: int,
    end_line: int,
    replacement: Union[str, Lines],
) -> Tuple[Optional[List[str]], str]:
    """Replace the inclusive 1-based range [start_line, end_line]."""
    doc = list(document)
    if start_line < 1 or end_line < start_line or end_line > len(doc):
        return None, "out_of_range"
    new = _lines_of(replacement)
    result = doc[:start_line - 1] + new + doc[end_line:]
    if result == doc:
        return result, "noop"
    return result, "ok"


def unified_diff(
    original: Union[str, Lines],
    refactored: Union[str, Lines],
    fromfile: str = "original",
    tofile: str = "refactored",
) -> str:
    return "\n".join(difflib.unified_diff(
        _lines_of(original), _lines_of(refactored),
        fromfile=fromfile, tofile=tofile, lineterm="",
    ))
