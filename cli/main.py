# cli/main.py
"""
Terminal front-end. Stands in for the IDE: the file plays the editor buffer
and FILE:LINE plays the cursor.

Commands:
  rscribe locate <file>:<line> [--lookback N]     # show the function at the cursor
  rscribe find <name>                             # find a function in the project's R files
  rscribe roxygen <file>:<line> [--write]         # (re)write its roxygen block
  rscribe testthat <file>:<line>                  # append tests to tests/testthat/
  rscribe refactor <file>:<line> -m TEXT [--write] [--selection TEXT [--selection-lines A-B]]
  rscribe function <file> --specs TEXT [--name N] [--location cursor|start|end] [--line N] [--write]
  rscribe explain-error [MESSAGE | -] [--file FILE:LINE]  # markdown help for an R error
  rscribe init                                    # seed .rscribe/ with default prompts
  rscribe model [--list]                          # show the configured LLM (and available models)

--review opens the diff review app before any edit; without it edits are
auto-approved. Nothing is written to disk without --write.
"""
from __future__ import annotations

import argparse
import sys
from typing import List, Optional, Tuple

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from runtime.state import EditorContext, find_project_root

console = Console()


def _parse_target(target: str) -> Tuple[str, int]:
    """Split FILE:LINE. Raises argparse.ArgumentTypeError on bad input."""
    path, sep, line = target.rpartition(":")
    if not sep or not line.isdigit():
        raise argparse.ArgumentTypeError(f"expected FILE:LINE, got '{target}'")
    return path, int(line)


def _parse_lines(text: str) -> Tuple[int, int]:
    """Parse START-END (or a single LINE). Raises argparse.ArgumentTypeError."""
    first, _, last = text.partition("-")
    if not first.isdigit() or (last and not last.isdigit()):
        raise argparse.ArgumentTypeError(f"expected START-END, got '{text}'")
    return int(first), int(last or first)


def _context(target: str, selection: str = "", selection_lines: str = "") -> EditorContext:
    path, line = _parse_target(target)
    lines = _parse_lines(selection_lines) if selection_lines else None
    return EditorContext.from_file(path, cursor_line=line, selection_text=selection,
                                   selection_lines=lines)


def _finish(context: EditorContext, result: dict, write: bool) -> int:
    if not result.get("success"):
        console.print(f"[red]{result.get('error', 'failed')}[/red]")
        return 1
    document = result.get("document")
    if document is None:
        return 0
    if write:
        context.with_contents(document).save()
        console.print(f"[green]Wrote {context.path}[/green]")
    else:
        console.print(Syntax("\n".join(document), "r", theme="monokai", line_numbers=True))
    return 0


# ─────────────────────────────────────────────────────────────────────────────
# Commands
# ─────────────────────────────────────────────────────────────────────────────

def cmd_locate(args: argparse.Namespace) -> int:
    from tools.function_locator import locate

    context = _context(args.target)
    result  = locate(context.contents, context.cursor_line, max_lookback=args.lookback)

    table = Table(show_header=False, box=None)
    table.add_row("status", result.status)
    if result.details is not None:
        d = result.details
        table.add_row("name", d.name or "<anonymous>")
        table.add_row("span", f"{d.span.start}-{d.span.end if d.span.end is not None else '?'}")
        table.add_row("doc", f"{d.doc[0]}-{d.doc[1]}" if d.doc else "-")
    console.print(table)
    if result.message:
        console.print(f"[yellow]{result.message}[/yellow]")

    if result.details is not None and result.details.span.complete and not args.no_code:
        d = result.details
        first = d.doc[0] if d.doc else d.span.start
        code  = "\n".join(context.contents[first - 1:d.span.end])
        console.print(Panel(
            Syntax(code, "r", theme="monokai", line_numbers=True, start_line=first),
            title=f"{context.path}:{first}-{d.span.end}",
        ))
    return 0 if result.found else 1


def cmd_find(args: argparse.Namespace) -> int:
    from tools.function_locator import find_function

    loc = find_function(find_project_root(), args.name)
    if not loc:
        console.print(f"Function '{args.name}' not found.")
        return 1
    console.print(f"{loc['file']}:{loc['start']}-{loc['end'] if loc['end'] else '?'}")
    return 0


def cmd_roxygen(args: argparse.Namespace) -> int:
    from agent.actions import generate_roxygen_comment

    context = _context(args.target)
    return _finish(context, generate_roxygen_comment(context), args.write)


def cmd_testthat(args: argparse.Namespace) -> int:
    from agent.actions import generate_testthat

    result = generate_testthat(_context(args.target))
    if not result["success"]:
        console.print(f"[red]{result['error']}[/red]")
        return 1
    console.print(f"[green]Tests appended to {result['file']}[/green]")
    return 0


def cmd_refactor(args: argparse.Namespace) -> int:
    from agent.actions import generate_changes

    context = _context(args.target, selection=args.selection or "",
                       selection_lines=args.selection_lines or "")
    return _finish(context, generate_changes(context, args.message), args.write)


def cmd_function(args: argparse.Namespace) -> int:
    from agent.actions import generate_function

    context = EditorContext.from_file(args.file, cursor_line=args.line)
    result  = generate_function(args.specs, args.name or "", args.location, context)
    return _finish(context, result, args.write)


def cmd_explain_error(args: argparse.Namespace) -> int:
    from agent.actions import generate_error_help

    message = " ".join(args.message) if args.message else ""
    if not message or message == "-":
        message = sys.stdin.read()
    context = _context(args.file) if args.file else None

    result = generate_error_help(message, context)
    if not result["success"]:
        console.print(f"[red]{result['error']}[/red]")
        return 1
    console.print(Markdown(result["markdown"]))
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    from agent.prompts import write_default_project_config

    written = write_default_project_config(find_project_root(), overwrite=args.force)
    for p in written:
        console.print(f"  {p}")
    return 0


def cmd_model(args: argparse.Namespace) -> int:
    from agent.llm import get_model_info, list_models, list_providers

    info = get_model_info()
    console.print(f"[bold]{info['provider']}[/bold] / {info['model']}  ({info['base_url']})")
    if args.list:
        console.print("providers: " + ", ".join(list_providers()))
        for model_id in list_models():
            console.print(f"  {model_id}")
    return 0


# ─────────────────────────────────────────────────────────────────────────────
# Entry point
# ─────────────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rscribe", description="LLM helpers for R source files")
    parser.add_argument("--review", action="store_true", help="review every edit in the diff app")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("locate", help="show the function at FILE:LINE")
    p.add_argument("target")
    p.add_argument("--lookback", type=int, default=None,
                   help="lines to search upward before searching forward (default: unbounded)")
    p.add_argument("--no-code", action="store_true")
    p.set_defaults(func=cmd_locate)

    p = sub.add_parser("find", help="find a function by name in the project")
    p.add_argument("name")
    p.set_defaults(func=cmd_find)

    p = sub.add_parser("roxygen", help="generate roxygen documentation")
    p.add_argument("target")
    p.add_argument("--write", action="store_true")
    p.set_defaults(func=cmd_roxygen)

    p = sub.add_parser("testthat", help="generate testthat tests")
    p.add_argument("target")
    p.set_defaults(func=cmd_testthat)

    p = sub.add_parser("refactor", help="rewrite code per instructions")
    p.add_argument("target")
    p.add_argument("-m", "--message", required=True)
    p.add_argument("--selection", default="")
    p.add_argument("--selection-lines", default="", metavar="START-END",
                   help="lines the selection sits on (default: the copy nearest the cursor)")
    p.add_argument("--write", action="store_true")
    p.set_defaults(func=cmd_refactor)

    p = sub.add_parser("function", help="generate a new function from specs")
    p.add_argument("file")
    p.add_argument("--specs", required=True)
    p.add_argument("--name", default="")
    p.add_argument("--location", choices=["cursor", "start", "end"], default="cursor")
    p.add_argument("--line", type=int, default=1)
    p.add_argument("--write", action="store_true")
    p.set_defaults(func=cmd_function)

    p = sub.add_parser("explain-error", help="explain an R error or warning")
    p.add_argument("message", nargs="*", help="error text; omitted or '-' reads stdin")
    p.add_argument("--file", default="", metavar="FILE:LINE", help="add the file being edited as context")
    p.set_defaults(func=cmd_explain_error)

    p = sub.add_parser("init", help="write default prompt files to .rscribe/")
    p.add_argument("--force", action="store_true", help="overwrite existing files")
    p.set_defaults(func=cmd_init)

    p = sub.add_parser("model", help="show the configured LLM")
    p.add_argument("--list", action="store_true", help="also list providers and the endpoint's models")
    p.set_defaults(func=cmd_model)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.review:
        from tui.app import install_ui_bridges
        install_ui_bridges()

    try:
        return args.func(args)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))
    except FileNotFoundError as e:
        console.print(f"[red]Cannot read {e.filename}[/red]")
        return 1
    return 1


if __name__ == "__main__":
    sys.exit(main())
