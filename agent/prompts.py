# agent/prompts.py
"""
Prompt construction for the R actions.

Project-level prompt text lives in plain files under .rscribe/ (one value
per file, like the R add-in's .VibeCodeR/ directory). ProjectConfig.load()
reads them once into an explicit value that is handed to every builder;
nothing in here reads configuration behind the caller's back.

Templates may reference {function_code}, {function_comment},
{function_name}, {file_extension} and {user_specific_instructions}.
Unknown {placeholders} and literal braces are left untouched.
"""
from __future__ import annotations

import platform
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from agent.logger import log
from runtime.state import EditorContext
from tools.r_scanner import strip_comments

CONFIG_DIR       = ".rscribe"
SECTION_SPLITTER = "\n---------------------------------\n"
MISSING          = "<<MISSING>>"

CONTEXT_CURRENT_FILE = "currently_selected_file"
CONTEXT_LIBRARIES    = "libraries_referenced_in_other_parts_of_code"


def generate_pre_prompt(rules: List[str], prefix: str = "Follow these rules",
                        postfix: str = "R code below:", list_item: str = " - ") -> str:
    return "\n".join([prefix, "\n".join(f"{list_item}{r}" for r in rules), postfix])


DEFAULT_STYLE_GUIDE = generate_pre_prompt([
    "For the most part use the tidyverse style guide found at https://style.tidyverse.org/",
    "Use lowercase letters and underscores for variable names (snake_case).",
    "Indent code with two spaces, not tabs.",
    "Keep lines shorter than 80 characters.",
    "Use TRUE and FALSE (not T and F).",
    "Use function_name <- function(...) to define functions.",
    "Use fully qualified names (e.g., purrr::map()) to avoid conflicts between packages.",
    "Use native pipe |> over %>% but only when appropriate",
    "Have a preference for already referenced libraries over not loaded libraries",
], prefix="Follow these rules as generic style guideline when they make sense:", postfix="")

DEFAULT_ROXYGEN_PROMPT = generate_pre_prompt([
    "Create a descriptive title based on the function name and purpose",
    "Write a detailed description explaining what the function does",
    "Add @description with a brief one-line summary",
    "Add @details with implementation notes and usage patterns",
    "Document ALL parameters with @param, including their types and detailed descriptions",
    "Add @return with specific return type and description",
    "Create realistic @examples with actual working R code (use \\dontrun{} wrapper)",
    "Return ONLY the roxygen documentation, every line starting with #'",
    "The function is called {function_name}; its current documentation is:\n{function_comment}",
], prefix="Generate complete roxygen2 documentation for this R function.\n"
          "Follow these requirements exactly:", postfix="R Function Code:")

DEFAULT_TESTS_PROMPT = generate_pre_prompt([
    "Cover normal usage, edge cases, and failure conditions",
    "Use `test_that()` and `expect_` functions appropriately",
    "Provide at least 2-3 distinct tests",
    "Assume `library(testthat)` is loaded",
    "Return only valid R code with no explanation or markdown",
], prefix="Generate unit tests for the following R code using the testthat framework.\n"
          "Follow best practices:",
   postfix="Function documentation:\n{function_comment}\nR Code:\n{function_code}")

DEFAULT_FUNCTION_PROMPT = generate_pre_prompt([
    "Output only valid R code, with an appropriate but minimal amount of comments using #",
    "Do NOT include any roxygen2 documentation block at the top",
    "Do NOT wrap the code in any human readable explanation or markup",
    "Assume the libraries needed are already loaded",
    "The first line should be something like my_function_name <- function",
    "Give the R function a name that is appropriate for its purpose",
], prefix="Create an R function that follows best practices:", postfix="R Function Specifications:")

DEFAULT_REFACTOR_PROMPT = "\n".join([
    generate_pre_prompt([
        "Try to keep changes minimal",
        "Return only valid R code with no explanation or markdown",
        "Return an exact replacement for the indicated code",
    ], prefix="Changes are required to the code below. Generic instructions are:", postfix=""),
    generate_pre_prompt(["{user_specific_instructions}"],
                        prefix="Specific instructions for the change are:", postfix="R Code:"),
])

DEFAULT_ERROR_HELP_PROMPT = generate_pre_prompt([
    "Explain the nature of the problem and how to fix it",
    "If the cause is ambiguous, list debugging steps that narrow it down",
    "Your answer is displayed on screen to a user who will then attempt to fix the issue",
    "Use markdown headers and code blocks to highlight the important parts",
    "Be concise",
], prefix="An R programmer is having trouble with the error, warning or code below.\n"
          "Help them as best you can:", postfix="Problem text:")

_FILES: Dict[str, str] = {
    "style_guide":       ".generic_project_style_guides.config",
    "roxygen_prompt":    ".generate_roxygen_prompt.config",
    "tests_prompt":      ".generate_tests_prompt.config",
    "function_prompt":   ".generate_function_prompt.config",
    "refactor_prompt":   ".refactor_code_prompt.config",
    "error_help_prompt": ".generate_error_help_prompt.config",
}

_DEFAULTS: Dict[str, str] = {
    "style_guide":       DEFAULT_STYLE_GUIDE,
    "roxygen_prompt":    DEFAULT_ROXYGEN_PROMPT,
    "tests_prompt":      DEFAULT_TESTS_PROMPT,
    "function_prompt":   DEFAULT_FUNCTION_PROMPT,
    "refactor_prompt":   DEFAULT_REFACTOR_PROMPT,
    "error_help_prompt": DEFAULT_ERROR_HELP_PROMPT,
}

_DEFAULT_INCLUDES = {CONTEXT_CURRENT_FILE: True, CONTEXT_LIBRARIES: True}
_INCLUDE_FILE_RE  = re.compile(r"^\.include_context_(.+)\.config$")
_PLACEHOLDER_RE   = re.compile(r"\{(\w+)\}")

_LIBRARY_RES = [
    re.compile(r"""\b(?:library|require|requireNamespace)\s*\(\s*(['"]?)([A-Za-z][A-Za-z0-9.]*)\1"""),
    re.compile(r"(?<![A-Za-z0-9._])([A-Za-z][A-Za-z0-9.]*):::?[A-Za-z.`]"),
]


# ─────────────────────────────────────────────────────────────────────────────
# Project config
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class ProjectConfig:
    root:              str
    style_guide:       str = DEFAULT_STYLE_GUIDE
    roxygen_prompt:    str = DEFAULT_ROXYGEN_PROMPT
    tests_prompt:      str = DEFAULT_TESTS_PROMPT
    function_prompt:   str = DEFAULT_FUNCTION_PROMPT
    refactor_prompt:   str = DEFAULT_REFACTOR_PROMPT
    error_help_prompt: str = DEFAULT_ERROR_HELP_PROMPT
    include_context:   List[str] = field(default_factory=lambda: list(_DEFAULT_INCLUDES))

    @classmethod
    def load(cls, root: str) -> "ProjectConfig":
        cfg_dir = Path(root) / CONFIG_DIR
        values: Dict[str, str] = {}
        for attr, fname in _FILES.items():
            p = cfg_dir / fname
            if p.exists():
                values[attr] = p.read_text(encoding="utf-8").rstrip("\n")

        includes = dict(_DEFAULT_INCLUDES)
        if cfg_dir.is_dir():
            for p in sorted(cfg_dir.iterdir()):
                m = _INCLUDE_FILE_RE.match(p.name)
                if m:
                    includes[m.group(1)] = _as_bool(p.read_text(encoding="utf-8"))

        return cls(root=str(root), include_context=[k for k, on in includes.items() if on], **values)


def _as_bool(text: str) -> bool:
    return text.strip().upper() in {"TRUE", "T", "YES", "1"}


def write_default_project_config(root: str, overwrite: bool = False) -> List[Path]:
    """Seed .rscribe/ with the default prompt files. Existing files are kept."""
    cfg_dir = Path(root) / CONFIG_DIR
    cfg_dir.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []

    files = {fname: _DEFAULTS[attr] for attr, fname in _FILES.items()}
    for kind, on in _DEFAULT_INCLUDES.items():
        files[f".include_context_{kind}.config"] = "TRUE" if on else "FALSE"

    for fname, content in files.items():
        p = cfg_dir / fname
        if p.exists() and not overwrite:
            continue
        p.write_text(content + "\n", encoding="utf-8")
        written.append(p)
    log.info(f"[green]Project config: {len(written)} file(s) written to {cfg_dir}[/green]")
    return written


# ─────────────────────────────────────────────────────────────────────────────
# Context
# ─────────────────────────────────────────────────────────────────────────────

def extract_libraries(code: str) -> List[str]:
    """Unique packages named by library()/require()/requireNamespace(), then by pkg::fn."""
    clean = strip_comments(code or "")
    found: Dict[str, None] = {}
    for pat in _LIBRARY_RES:
        for m in pat.finditer(clean):
            found.setdefault(m.group(m.lastindex), None)
    return list(found)


def extract_libraries_from_files(root: str, subdir: str = "R") -> List[str]:
    base = Path(root) / subdir
    if not base.is_dir():
        base = Path(root)
    found: Dict[str, None] = {}
    for p in sorted(base.rglob("*")):
        if p.is_file() and p.suffix in {".R", ".r"}:
            for lib in extract_libraries(p.read_text(encoding="utf-8", errors="ignore")):
                found.setdefault(lib, None)
    return list(found)


def context_prompt(context: Optional[EditorContext], config: ProjectConfig) -> str:
    """The "for context ..." section appended to every prompt, or ""."""
    includes = config.include_context
    if not includes:
        log.warning("No context to include")
        return ""

    out = "\nFor context with the assigned task please see the following context:\n"
    if CONTEXT_CURRENT_FILE in includes and context is not None:
        out += (
            "As context this is the text of the current file:"
            + SECTION_SPLITTER + context.text + SECTION_SPLITTER
        )
    if CONTEXT_LIBRARIES in includes:
        libs = extract_libraries_from_files(config.root)
        out += (
            "As context these are the libraries referenced by other files, "
            "feel free to reference them if needed, remember to use ::"
            + SECTION_SPLITTER + ", ".join(libs) + SECTION_SPLITTER
        )
    return out


# ─────────────────────────────────────────────────────────────────────────────
# Builders
# ─────────────────────────────────────────────────────────────────────────────

def render(template: str, **values: str) -> str:
    return _PLACEHOLDER_RE.sub(lambda m: str(values.get(m.group(1), m.group(0))), template)


def _or_missing(text: Optional[str]) -> str:
    return text if text and text.strip() else MISSING


def roxygen_prompt(function_code: str, function_comment: str, function_name: str,
                   file_extension: str, context: Optional[EditorContext],
                   config: ProjectConfig) -> str:
    values = dict(
        function_code=function_code or "",
        function_comment=_or_missing(function_comment),
        function_name=function_name or "",
        file_extension=file_extension or "",
    )
    return "\n".join([
        config.style_guide,
        render(config.roxygen_prompt, **values),
        function_code or "",
        context_prompt(context, config),
    ])


def testthat_prompt(function_code: str, function_comment: str, function_name: str,
                    file_extension: str, context: Optional[EditorContext],
                    config: ProjectConfig) -> str:
    values = dict(
        function_code=_or_missing(function_code),
        function_comment=_or_missing(function_comment),
        function_name=function_name or "",
        file_extension=file_extension or "",
    )
    return "\n".join([
        config.style_guide,
        render(config.tests_prompt, **values),
        context_prompt(context, config),
    ])


def refactor_prompt(selected_code: str, instructions: str, config: ProjectConfig) -> str:
    return "\n".join([
        config.style_guide,
        render(config.refactor_prompt, user_specific_instructions=instructions or ""),
        "",
        selected_code or "",
    ])


def function_prompt(specs: str, function_name: str, context: Optional[EditorContext],
                    config: ProjectConfig) -> str:
    parts = [config.style_guide, config.function_prompt, specs or ""]
    if function_name and function_name.strip():
        parts.append(f"Name the function: {function_name.strip()}")
    parts.append(context_prompt(context, config))
    return "\n".join(parts)


def error_help_prompt(message: str, context: Optional[EditorContext],
                      config: ProjectConfig) -> str:
    """Prompt asking for a markdown explanation of an R error or warning."""
    environment = (
        f"Platform: {platform.platform()}"
        + (f"\nFile being edited: {context.path} (cursor on line {context.cursor_line})"
           if context is not None and context.path else "")
    )
    return "\n".join([
        config.error_help_prompt,
        SECTION_SPLITTER.strip("\n"),
        message.strip(),
        SECTION_SPLITTER.strip("\n"),
        "Auto generated context which may be helpful in your reply:",
        environment,
        context_prompt(context, config),
        "Please now provide a concise answer to help fix the above issue.",
    ])
