# agent/approval.py
"""
Approval gate. ALWAYS fires before an edit is written back to a document.

Guarantees:
  - Never shows empty diffs (rejects them outright)
  - Always logs the decision with file + action
  - Timeout-safe: 300s max wait, then auto-rejects to prevent hang
"""
from __future__ import annotations

import queue

import agent.logger
from agent.logger import log

APPROVAL_TIMEOUT = 300


def ask_user_approval(action: str, payload: dict) -> bool:
    """
    Required before any document write.

    payload must contain:
      "file"        path of the document (may be None for unsaved buffers)
      "original"    text being replaced (may be empty for inserts)
      "refactored"  new text
      "summary"     optional one-line description
    """
    file_path  = payload.get("file") or "untitled"
    original   = str(payload.get("original", "") or "")
    refactored = str(payload.get("refactored", "") or "")
    summary    = payload.get("summary", action)

    if not original.strip() and not refactored.strip():
        log.error(f"[red]APPROVAL BLOCKED: empty diff for {file_path} ({action}).[/red]")
        return False

    if original == refactored:
        log.info(f"[dim]No change for {file_path} ({action}); nothing to approve.[/dim]")
        return False

    # Headless mode (no UI): auto-approve with clear log
    if not agent.logger.UI_SHOW_DIFF:
        log.info(f"[dim][AUTO-APPROVE headless][/dim] {action} -> {file_path} | {summary}")
        return True

    # UI mode: show the diff, block until the user decides
    agent.logger.UI_SHOW_DIFF(file_path, original, refactored, str(summary or ""))
    log.info(f"[bold red]WAITING FOR APPROVAL[/bold red] ({action} -> {file_path})")

    try:
        result = agent.logger.APPROVAL_QUEUE.get(timeout=APPROVAL_TIMEOUT)
    except queue.Empty:
        log.warning(f"[red]Approval timed out ({APPROVAL_TIMEOUT}s), auto-rejecting.[/red]")
        return False

    if result:
        log.info(f"[bold green]Change approved:[/bold green] {file_path}")
    else:
        log.warning(f"[bold red]Change rejected by user:[/bold red] {file_path}")
    return bool(result)
