# tools/function_locator.py
"""
Locate the R function definition around a cursor line.

    locate(document, cursor_line) -> LocateResult

Search order:
  1. Backward from the cursor for a definition whose span encloses the
     cursor (unbounded unless max_lookback is given).
  2. Forward from the cursor for the next definition.

A definition starts on a line of the form  name <- function(...)
(also <<- and =, and the R 4.1 shorthand  name <- \\(...) ), or on a bare
name <-  line directly followed by a line beginning with  function(  or  \\( .

The span end is found from the scanner's structural tokens: braces are
counted from the body's opening "{", ignoring anything inside strings and
comments. A body without braces ends on the first line where ( [ { are
balanced again and the line does not end in an operator or a
dangling else. If the document ends first the span is left open (end is
None) and the result carries an advisory message.

Pure: no I/O, no logging, never raises.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from tools.r_scanner import OPENERS, LineScan, scan_document, split_lines, strip_code

FOUND_BACKWARD = "found_backward"
FOUND_FORWARD  = "found_forward"
NOT_FOUND      = "not_found"

DOC_MARKER = "#'"
IGNORE     = {".git", ".Rproj.user", "renv", "packrat", ".rscribe"}

_IDENT  = r"(?:[A-Za-z.][A-Za-z0-9._]*|`[^`]+`)"
_ASSIGN = r"(?:<<-|<-|=)"

_KEYWORD = r"(?:function|\\)"

_DEF_RE          = re.compile(rf"(?<![A-Za-z0-9._`])({_IDENT})\s*{_ASSIGN}\s*{_KEYWORD}\s*\(")
_ASSIGN_ONLY_RE  = re.compile(rf"^\s*({_IDENT})\s*{_ASSIGN}\s*$")
_KEYWORD_ONLY_RE = re.compile(rf"^\s*{_KEYWORD}\s*\(")
_NAME_RE         = re.compile(rf"(?<![A-Za-z0-9._`])({_IDENT})\s*{_ASSIGN}\s*(?:function\b|\\\s*\()")
_CONTINUATION_RE = re.compile(r"(?:[-+*/^&|,~=<>!]|%[^%\s]*%|\|>|\belse)\s*$")

Document = Union[str, Sequence[str]]


# ─────────────────────────────────────────────────────────────────────────────
# Data structures
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Span:
    start: int
    end:   Optional[int] = None     # None = no closing delimiter before EOF

    @property
    def complete(self) -> bool:
        return self.end is not None

    def contains(self, line: int) -> bool:
        if self.end is None:
            return line >= self.start
        return self.start <= line <= self.end


@dataclass
class FunctionDetails:
    span: Span
    name: str = ""
    doc:  Optional[Tuple[int, int]] = None   # (first, last) of the #' block

    def code_lines(self, document: Document) -> List[str]:
        """Lines of the function, or [] when the span is open."""
        if self.span.end is None:
            return []
        lines = as_lines(document)
        return list(lines[self.span.start - 1:self.span.end])

    def comment_lines(self, document: Document) -> List[str]:
        if self.doc is None:
            return []
        lines = as_lines(document)
        return list(lines[self.doc[0] - 1:self.doc[1]])

    def code(self, document: Document) -> str:
        return "\n".join(self.code_lines(document))

    def comment(self, document: Document) -> str:
        return "\n".join(self.comment_lines(document))


@dataclass
class LocateResult:
    status:  str                               # found_backward | found_forward | not_found
    details: Optional[FunctionDetails] = None
    message: str = ""                          # advisory text for the caller

    @property
    def found(self) -> bool:
        return self.details is not None

    @property
    def partial(self) -> bool:
        return self.details is not None and not self.details.span.complete


# ─────────────────────────────────────────────────────────────────────────────
# Internal helpers
# ─────────────────────────────────────────────────────────────────────────────

def as_lines(document: Document) -> List[str]:
    if document is None:
        return []
    if isinstance(document, str):
        return split_lines(document)
    return [str(l) if l is not None else "" for l in document]


def _unquote(name: str) -> str:
    if len(name) >= 2 and name.startswith("`") and name.endswith("`"):
        return name[1:-1]
    return name


def _definition_at(scans: List[LineScan], i: int) -> Optional[Tuple[int, int, int]]:
    """
    If line i (0-based) belongs to a definition header, return
    (start_idx, paren_line_idx, paren_col) where paren_* locate the "(" that
    opens the parameter list.
    """
    code = scans[i].code
    m = _DEF_RE.search(code)
    if m:
        return i, i, m.end() - 1

    if _ASSIGN_ONLY_RE.match(code) and i + 1 < len(scans):
        k = _KEYWORD_ONLY_RE.match(scans[i + 1].code)
        if k:
            return i, i + 1, k.end() - 1

    if i > 0:
        k = _KEYWORD_ONLY_RE.match(code)
        if k and _ASSIGN_ONLY_RE.match(scans[i - 1].code):
            return i - 1, i, k.end() - 1

    return None


def _tokens_from(scans: List[LineScan], line_idx: int, col: int) -> Iterator[Tuple[int, int, str]]:
    for li in range(line_idx, len(scans)):
        for c, ch in scans[li].structure:
            if li == line_idx and c < col:
                continue
            yield li, c, ch


def _find_end(scans: List[LineScan], paren_line: int, paren_col: int) -> Optional[int]:
    """Return the 0-based index of the function's last line, or None."""
    # ── parameter list ───────────────────────────────────────────────────────
    depth = 0
    close_at: Optional[Tuple[int, int]] = None
    for li, c, ch in _tokens_from(scans, paren_line, paren_col):
        depth += 1 if ch in OPENERS else -1
        if depth == 0:
            close_at = (li, c)
            break
    if close_at is None:
        return None

    # ── first code character of the body ────────────────────────────────────
    body: Optional[Tuple[int, int]] = None
    li, c = close_at
    rest = scans[li].code[c + 1:]
    offset = c + 1
    while True:
        stripped = rest.lstrip()
        if stripped:
            body = (li, offset + len(rest) - len(stripped))
            break
        li += 1
        if li >= len(scans):
            return None
        rest, offset = scans[li].code, 0

    body_line, body_col = body

    # ── braced body ──────────────────────────────────────────────────────────
    if scans[body_line].code[body_col] == "{":
        opens = closes = 0
        for li, c, ch in _tokens_from(scans, body_line, body_col):
            if ch == "{":
                opens += 1
            elif ch == "}":
                closes += 1
            if opens > 0 and closes >= opens:
                return li
        return None

    # ── bare expression body ─────────────────────────────────────────────────
    depth = 0
    for li in range(body_line, len(scans)):
        for c, ch in scans[li].structure:
            if li == body_line and c < body_col:
                continue
            depth += 1 if ch in OPENERS else -1
        if depth <= 0 and not _CONTINUATION_RE.search(scans[li].code):
            return li
    return None


def _details(lines: List[str], scans: List[LineScan],
             header: Tuple[int, int, int], marker: str) -> FunctionDetails:
    start_idx, paren_line, paren_col = header
    end_idx = _find_end(scans, paren_line, paren_col)

    if end_idx is not None:
        name_src = "\n".join(s.code for s in scans[start_idx:end_idx + 1])
    else:
        name_src = "\n".join(s.code for s in scans[start_idx:paren_line + 1])

    return FunctionDetails(
        span=Span(start_idx + 1, end_idx + 1 if end_idx is not None else None),
        name=_name_from_code(name_src),
        doc=extract_doc_block(lines, start_idx + 1, marker),
    )


def _name_from_code(code: str) -> str:
    m = _NAME_RE.search(code)
    return _unquote(m.group(1)) if m else ""


def _with_advisory(status: str, details: FunctionDetails) -> LocateResult:
    if details.span.complete:
        return LocateResult(status, details)
    label = f"'{details.name}'" if details.name else "anonymous function"
    return LocateResult(
        status, details,
        f"Function {label} starting at line {details.span.start} has no closing "
        f"delimiter before the end of the document; its end line is unknown.",
    )


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────

def extract_function_name(func_code: str) -> str:
    """
    Name bound by the first  name <- function / name <<- function /
    name = function  in func_code. Comments and strings are ignored.
    Returns "" when there is no such assignment.
    """
    return _name_from_code(strip_code(func_code or ""))


def extract_doc_block(document: Document, first_line: int,
                      marker: str = DOC_MARKER) -> Optional[Tuple[int, int]]:
    """
    Contiguous run of marker-prefixed lines directly above first_line,
    allowing blank lines in between. Returns (first, last) 1-based or None.
    """
    lines = as_lines(document)
    if not marker or first_line < 2 or first_line > len(lines) + 1:
        return None
    marker_re = re.compile(r"^\s*" + re.escape(marker))

    i = first_line - 2
    while i >= 0 and not lines[i].strip():
        i -= 1
    last = i
    while i >= 0 and marker_re.match(lines[i]):
        i -= 1
    if i == last:
        return None
    return i + 2, last + 1


def iter_definitions(document: Document, marker: str = DOC_MARKER) -> Iterator[FunctionDetails]:
    """Every function definition header in document order, nested ones included."""
    lines = as_lines(document)
    scans = scan_document(lines)
    seen = set()
    for i in range(len(scans)):
        header = _definition_at(scans, i)
        if header is None or header[0] in seen:
            continue
        seen.add(header[0])
        yield _details(lines, scans, header, marker)


def locate(document: Document, cursor_line: int,
           max_lookback: Optional[int] = None,
           marker: str = DOC_MARKER) -> LocateResult:
    """
    Find the function enclosing cursor_line (1-based), else the next one
    below it. See the module docstring for the rules.
    """
    lines = as_lines(document)
    if not lines:
        return LocateResult(NOT_FOUND, message="Document is empty.")
    if (isinstance(cursor_line, bool) or not isinstance(cursor_line, int)
            or cursor_line < 1 or cursor_line > len(lines)):
        return LocateResult(
            NOT_FOUND,
            message=f"Cursor line {cursor_line} is outside the document (1-{len(lines)}).",
        )

    scans  = scan_document(lines)
    cursor = cursor_line - 1
    lowest = 0 if max_lookback is None else max(0, cursor - max(0, max_lookback))

    # ── phase 1: enclosing definition, searching outward ────────────────────
    seen = set()
    for i in range(cursor, lowest - 1, -1):
        header = _definition_at(scans, i)
        if header is None or header[0] in seen:
            continue
        seen.add(header[0])
        details = _details(lines, scans, header, marker)
        if details.span.contains(cursor_line):
            return _with_advisory(FOUND_BACKWARD, details)

    # ── phase 2: next definition below the cursor ───────────────────────────
    for i in range(cursor + 1, len(scans)):
        header = _definition_at(scans, i)
        if header is None:
            continue
        return _with_advisory(FOUND_FORWARD, _details(lines, scans, header, marker))

    return LocateResult(
        NOT_FOUND,
        message=f"No function definition found at or below line {cursor_line}.",
    )


def find_function(repo_root: str, func_name: str) -> dict | None:
    """
    Search the project's R files for a function by name.
    Returns {"file": rel_path, "start": int, "end": int | None} or None.
    """
    root = Path(repo_root)
    for p in sorted(root.rglob("*")):
        if not p.is_file() or any(d in p.parts for d in IGNORE):
            continue
        if p.suffix not in {".R", ".r"}:
            continue
        try:
            content = p.read_text(encoding="utf-8", errors="ignore")
        except OSError:
            continue
        for fn in iter_definitions(content):
            if fn.name == func_name:
                return {
                    "file":  str(p.relative_to(root)),
                    "start": fn.span.start,
                    "end":   fn.span.end,
                }
    return None
