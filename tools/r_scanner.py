# tools/r_scanner.py
"""
Single-pass lexical scanner for R source.

Tracks just enough state to tell code apart from string literals and
comments, so brace and parenthesis counting is not fooled by a "{" inside
a quoted string, a regex, or a trailing comment.

State carried across lines:
  terminator    closing sequence of the string we are inside (None = code)
  raw           True for R 4.0 raw strings r"(...)", where "\\" is literal
  escape        previous character was a backslash inside a normal string

Per line, scan_document() returns a LineScan with:
  code          the line with the comment cut off and string contents
                blanked to spaces (quotes and backtick names are kept, so
                column positions line up with the original text)
  structure     [(col, char)] for every ( ) [ ] { } outside strings/comments
  opens/closes  "{" / "}" counts outside strings/comments
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

OPENERS = "([{"
CLOSERS = ")]}"
QUOTES  = "\"'`"

_RAW_START = re.compile(r"[rR](['\"])(-*)([\(\[\{])")
_BRACKET_PAIR = {"(": ")", "[": "]", "{": "}"}
_IDENT_CHARS = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789._")


@dataclass
class LineScan:
    code:             str
    structure:        List[Tuple[int, str]] = field(default_factory=list)
    opens:            int  = 0
    closes:           int  = 0
    starts_in_string: bool = False
    comment_col:      Optional[int] = None


@dataclass
class _State:
    terminator: Optional[str] = None
    raw:        bool = False
    escape:     bool = False


def split_lines(text: str) -> List[str]:
    """Split on \\r\\n, \\n or \\r. An empty string is an empty document."""
    if not text:
        return []
    return re.split(r"\r\n|\n|\r", text)


def _scan_line(line: str, state: _State) -> LineScan:
    out: List[str] = []
    scan = LineScan(code="", starts_in_string=state.terminator is not None)
    i = 0
    n = len(line)

    while i < n:
        ch = line[i]

        # ── inside a string ──────────────────────────────────────────────────
        if state.terminator is not None:
            backtick = state.terminator == "`"
            if state.escape:
                state.escape = False
                out.append(ch if backtick else " ")
                i += 1
                continue
            if line.startswith(state.terminator, i):
                out.append(" " * (len(state.terminator) - 1) + state.terminator[-1])
                i += len(state.terminator)
                state.terminator = None
                state.raw = False
                continue
            if ch == "\\" and not state.raw:
                state.escape = True
            out.append(ch if backtick else " ")
            i += 1
            continue

        # ── code ─────────────────────────────────────────────────────────────
        if ch == "#":
            scan.comment_col = i
            break

        if ch in "rR" and (i == 0 or line[i - 1] not in _IDENT_CHARS):
            m = _RAW_START.match(line, i)
            if m:
                quote, dashes, bracket = m.groups()
                state.terminator = _BRACKET_PAIR[bracket] + dashes + quote
                state.raw = True
                out.append(ch + quote + " " * (len(dashes) + 1))
                i = m.end()
                continue

        if ch in QUOTES:
            state.terminator = ch
            state.raw = False
            out.append(ch)
            i += 1
            continue

        if ch in OPENERS or ch in CLOSERS:
            scan.structure.append((i, ch))
            if ch == "{":
                scan.opens += 1
            elif ch == "}":
                scan.closes += 1

        out.append(ch)
        i += 1

    # a trailing backslash does not escape the line break for our purposes
    state.escape = False
    scan.code = "".join(out)
    return scan


def scan_document(lines: Sequence[str]) -> List[LineScan]:
    """Scan every line in order. Never raises; unterminated strings run to EOF."""
    state = _State()
    return [_scan_line(line or "", state) for line in lines]


def strip_code(text: str) -> str:
    """Return text with comments removed and string contents blanked."""
    return "\n".join(s.code for s in scan_document(split_lines(text)))


def strip_comments(text: str) -> str:
    """Return text with comments removed; strings are left intact."""
    lines = split_lines(text)
    out = []
    for line, scan in zip(lines, scan_document(lines)):
        out.append(line if scan.comment_col is None else line[:scan.comment_col])
    return "\n".join(out)
