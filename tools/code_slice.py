# tools/code_slice.py
from typing import Optional

from runtime.state import EditorContext
from tools.function_locator import Document, as_lines, locate


def function_code(context: EditorContext) -> Optional[str]:
    """
    The code the user means: the current selection if there is one,
    otherwise the full function at (or below) the cursor. None if neither.
    """
    if context.has_selection:
        return context.selection_text

    result = locate(context.contents, context.cursor_line)
    if not result.found or not result.details.span.complete:
        return None
    return result.details.code(context.contents)


def load_function_slice(document: Document, cursor_line: int, context: int = 5) -> Optional[dict]:
    """
    The located function plus `context` lines either side, clipped to the
    document. Keys: name, start, end, slice_start, slice_end, code.
    None when there is no complete function to show.
    """
    result = locate(document, cursor_line)
    if not result.found or not result.details.span.complete:
        return None

    lines = as_lines(document)
    span  = result.details.span
    lo    = max(1, span.start - context)
    hi    = min(len(lines), span.end + context)
    return {
        "name":        result.details.name,
        "start":       span.start,
        "end":         span.end,
        "slice_start": lo,
        "slice_end":   hi,
        "code":        "\n".join(lines[lo - 1:hi]),
    }
