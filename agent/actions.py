# agent/actions.py
"""
The add-in's user-facing actions. Each one reads an EditorContext, asks the
LLM, and returns a result dict instead of touching the editor directly:

  generate_roxygen_comment(context)            → {"success", "document", "comment", ...}
  generate_testthat(context)                   → {"success", "file", "tests"}
  generate_changes(context, instructions)      → {"success", "document", "code"}
  generate_function(specs, name, location)     → {"success", "document", "code"}
  generate_error_help(message, context)        → {"success", "markdown"}

Every edit of the user's document goes through ask_user_approval();
error help only reads.
The llm argument defaults to agent.llm.call_llm; tests pass a stub.
"""
from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from agent.approval import ask_user_approval
from agent.llm import call_llm, is_error_reply
from agent.logger import log
from agent.prompts import (
    ProjectConfig,
    error_help_prompt,
    function_prompt,
    refactor_prompt,
    roxygen_prompt,
    testthat_prompt,
)
from runtime.state import EditorContext, find_project_root
from tools.code_slice import function_code
from tools.diff_engine import insert_lines, replace_lines
from tools.function_locator import LocateResult, locate
from tools.roxygen import is_blank_comment, roxygen_lines

LLMFn = Callable[[str], str]

LOCATIONS = ("cursor", "start", "end")


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _config_for(context: EditorContext, config: Optional[ProjectConfig]) -> ProjectConfig:
    if config is not None:
        return config
    return ProjectConfig.load(find_project_root(context.path))


def _locate_logged(context: EditorContext) -> LocateResult:
    result = locate(context.contents, context.cursor_line)
    if result.message:
        log.warning(f"[yellow]{result.message}[/yellow]")
    else:
        span = result.details.span
        log.info(
            f"Located [bold]{result.details.name or '<anonymous>'}[/bold] "
            f"lines {span.start}-{span.end} ({result.status})"
        )
    return result


def _ask(llm: Optional[LLMFn], prompt: str) -> Optional[str]:
    reply = (llm or call_llm)(prompt)
    if is_error_reply(reply):
        log.error(f"[red]LLM request failed: {reply}[/red]")
        return None
    return reply


# ─────────────────────────────────────────────────────────────────────────────
# Roxygen
# ─────────────────────────────────────────────────────────────────────────────

def generate_roxygen_comment(context: EditorContext, llm: Optional[LLMFn] = None,
                             config: Optional[ProjectConfig] = None) -> dict:
    """
    Document the function at the cursor. An existing, non-blank #' block is
    replaced; otherwise the new block is inserted above the function.
    """
    config = _config_for(context, config)
    result = _locate_logged(context)
    if not result.found or not result.details.span.complete:
        return {"success": False, "error": result.message}

    details = result.details
    code    = details.code(context.contents)
    comment = details.comment(context.contents)

    prompt = roxygen_prompt(code, comment, details.name, context.file_extension, context, config)
    reply  = _ask(llm, prompt)
    if reply is None:
        return {"success": False, "error": "LLM request failed"}

    new_comment = roxygen_lines(reply)
    if not new_comment.strip():
        log.warning("[yellow]LLM reply contained no roxygen lines.[/yellow]")
        return {"success": False, "error": "LLM reply contained no roxygen lines"}

    if details.doc is not None and not is_blank_comment(comment):
        document, reason = replace_lines(context.contents, details.doc[0], details.doc[1], new_comment)
        original = comment
    else:
        document, reason = insert_lines(context.contents, details.span.start, new_comment)
        original = ""

    if document is None or reason == "noop":
        return {"success": False, "error": f"edit not applied: {reason}"}

    approved = ask_user_approval("generate_roxygen_comment", {
        "file":       context.path,
        "original":   original,
        "refactored": new_comment,
        "summary":    f"roxygen for {details.name or '<anonymous>'}",
    })
    if not approved:
        return {"success": False, "error": "rejected", "comment": new_comment}

    return {
        "success":  True,
        "document": document,
        "comment":  new_comment,
        "name":     details.name,
        "status":   result.status,
        "reason":   reason,
    }


# ─────────────────────────────────────────────────────────────────────────────
# testthat
# ─────────────────────────────────────────────────────────────────────────────

def generate_testthat(context: EditorContext, root: Optional[str] = None,
                      llm: Optional[LLMFn] = None,
                      config: Optional[ProjectConfig] = None) -> dict:
    """Append generated tests to tests/testthat/test-<name>.R under the project root."""
    root   = root or find_project_root(context.path)
    config = config or ProjectConfig.load(root)
    result = _locate_logged(context)
    if not result.found or not result.details.span.complete:
        return {"success": False, "error": result.message}

    details = result.details
    prompt  = testthat_prompt(
        details.code(context.contents), details.comment(context.contents),
        details.name, context.file_extension, context, config,
    )
    reply = _ask(llm, prompt)
    if reply is None:
        return {"success": False, "error": "LLM request failed"}

    test_file = Path(root) / "tests" / "testthat" / f"test-{details.name or 'function'}.R"
    test_file.parent.mkdir(parents=True, exist_ok=True)
    with test_file.open("a", encoding="utf-8") as f:
        f.write("\n\n" + reply.rstrip() + "\n")
    log.info(f"[green]Tests written:[/green] {test_file}")

    return {"success": True, "file": str(test_file), "tests": reply}


# ─────────────────────────────────────────────────────────────────────────────
# Refactor
# ─────────────────────────────────────────────────────────────────────────────

def generate_changes(context: EditorContext, instructions: str,
                     llm: Optional[LLMFn] = None,
                     config: Optional[ProjectConfig] = None) -> dict:
    """Rewrite the selection (or the function at the cursor) per instructions."""
    config = _config_for(context, config)
    code   = function_code(context)
    if code is None:
        return {"success": False, "error": "nothing selected and no function at the cursor"}

    reply = _ask(llm, refactor_prompt(code, instructions, config))
    if reply is None:
        return {"success": False, "error": "LLM request failed"}

    if context.has_selection:
        rng = context.selection_range()
        if rng is None:
            return {"success": False, "error": "selection not found in document"}
        first, last = rng
        segment = "\n".join(context.contents[first - 1:last])
        if code.rstrip("\n") not in segment:
            return {"success": False, "error": f"selection not found on lines {first}-{last}"}
        document, reason = replace_lines(
            context.contents, first, last, segment.replace(code.rstrip("\n"), reply, 1),
        )
        if document is None:
            return {"success": False, "error": f"edit not applied: {reason}"}
    else:
        span = locate(context.contents, context.cursor_line).details.span
        document, reason = replace_lines(context.contents, span.start, span.end, reply)
        if document is None:
            return {"success": False, "error": f"edit not applied: {reason}"}

    approved = ask_user_approval("generate_changes", {
        "file":       context.path,
        "original":   code,
        "refactored": reply,
        "summary":    instructions,
    })
    if not approved:
        log.info("The user has rejected the changes")
        return {"success": False, "error": "rejected", "code": reply}

    return {"success": True, "document": document, "code": reply}


# ─────────────────────────────────────────────────────────────────────────────
# New function
# ─────────────────────────────────────────────────────────────────────────────

def generate_function(specs: str, function_name: str = "", location: str = "cursor",
                      context: Optional[EditorContext] = None,
                      llm: Optional[LLMFn] = None,
                      config: Optional[ProjectConfig] = None) -> dict:
    """Generate a function from a written description and insert it."""
    if location not in LOCATIONS:
        raise ValueError(
            f"unable to insert new function because of bad location `{location}`; "
            f"expected one of {LOCATIONS}"
        )
    context = context or EditorContext(path=None)
    config  = _config_for(context, config)

    reply = _ask(llm, function_prompt(specs, function_name, context, config))
    if reply is None:
        return {"success": False, "error": "LLM request failed"}

    if location == "start":
        line = 1
    elif location == "end":
        line = len(context.contents) + 1
    else:
        line = min(max(context.cursor_line, 1), len(context.contents) + 1)

    document, reason = insert_lines(context.contents, line, reply)
    if document is None:
        return {"success": False, "error": f"edit not applied: {reason}"}
    log.info(f"[green]Inserted generated function at line {line}[/green]")
    return {"success": True, "document": document, "code": reply, "line": line}


# ─────────────────────────────────────────────────────────────────────────────
# Error help
# ─────────────────────────────────────────────────────────────────────────────

def generate_error_help(message: str, context: Optional[EditorContext] = None,
                        llm: Optional[LLMFn] = None,
                        config: Optional[ProjectConfig] = None) -> dict:
    """
    Ask the LLM to explain an R error, warning or problem snippet. The reply
    is markdown; the problem text is prepended as a code block so the
    answer reads on its own.
    """
    if not message or not message.strip():
        return {"success": False, "error": "no error message to explain"}
    context = context or EditorContext(path=None)
    config  = _config_for(context, config)

    reply = _ask(llm, error_help_prompt(message, context, config))
    if reply is None:
        return {"success": False, "error": "LLM request failed"}

    log.info("[green]Error explanation ready[/green]")
    return {
        "success":  True,
        "markdown": f"```\n{message.strip()}\n```\n\n{reply}",
        "reply":    reply,
    }
