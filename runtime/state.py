# runtime/state.py
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List, Optional, Tuple

from tools.r_scanner import split_lines

ROOT_MARKERS = (".rscribe", ".git", "DESCRIPTION")


def find_project_root(start: Optional[str] = None) -> str:
    """Walk up from start (default cwd) to the first dir holding a root marker."""
    p = Path(start).resolve() if start else Path.cwd()
    if p.is_file():
        p = p.parent
    for candidate in [p, *p.parents][:8]:
        if any((candidate / m).exists() for m in ROOT_MARKERS):
            return str(candidate)
        if any(candidate.glob("*.Rproj")):
            return str(candidate)
    return str(p)


@dataclass
class EditorContext:
    """Snapshot of the active editor: what the add-in reads before acting."""
    path: Optional[str]
    contents: List[str] = field(default_factory=list)

    # ── Cursor / selection (1-based lines) ───────────────────────────────────
    cursor_line:     int = 1
    selection_text:  str = ""
    selection_start: Optional[int] = None   # first line the selection touches
    selection_end:   Optional[int] = None   # last line, inclusive

    @property
    def file_extension(self) -> str:
        if not self.path:
            return ""
        return Path(self.path).suffix.lstrip(".")

    @property
    def text(self) -> str:
        return "\n".join(self.contents)

    @property
    def has_selection(self) -> bool:
        return bool(self.selection_text and self.selection_text.strip())

    def selection_range(self) -> Optional[Tuple[int, int]]:
        """
        Lines (first, last) holding the selection. An explicit
        selection_start wins; otherwise the occurrence of selection_text
        nearest the cursor is used, so a snippet that appears twice is
        resolved to the copy the user is looking at.
        """
        if not self.has_selection:
            return None
        if self.selection_start is not None:
            end = self.selection_end if self.selection_end is not None else self.selection_start
            return self.selection_start, end

        text   = self.text
        needle = self.selection_text.rstrip("\n")
        height = needle.count("\n")
        best: Optional[Tuple[int, int, int]] = None
        pos = text.find(needle)
        while pos != -1:
            first = text.count("\n", 0, pos) + 1
            last  = first + height
            if first <= self.cursor_line <= last:
                distance = 0
            else:
                distance = min(abs(self.cursor_line - first), abs(self.cursor_line - last))
            if best is None or distance < best[0]:
                best = (distance, first, last)
            pos = text.find(needle, pos + 1)
        return (best[1], best[2]) if best else None

    @classmethod
    def from_file(cls, path: str, cursor_line: int = 1, selection_text: str = "",
                  selection_lines: Optional[Tuple[int, int]] = None) -> "EditorContext":
        text = Path(path).read_text(encoding="utf-8", errors="ignore")
        lines = split_lines(text)
        # a final newline is a terminator, not an extra empty line
        if lines and lines[-1] == "":
            lines.pop()
        start, end = selection_lines if selection_lines else (None, None)
        return cls(path=str(path), contents=lines, cursor_line=cursor_line,
                   selection_text=selection_text, selection_start=start, selection_end=end)

    def with_contents(self, contents: List[str]) -> "EditorContext":
        return replace(self, contents=list(contents))

    def save(self) -> None:
        if not self.path:
            raise ValueError("EditorContext has no path to save to")
        Path(self.path).write_text(self.text + "\n", encoding="utf-8")
