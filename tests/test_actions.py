import json
from pathlib import Path

import pytest

import agent.logger
from agent.actions import (
    generate_changes,
    generate_error_help,
    generate_function,
    generate_roxygen_comment,
    generate_testthat,
)
from agent.prompts import MISSING, ProjectConfig
from runtime.state import EditorContext

UNDOCUMENTED = [
    "x <- 1",
    "",
    "add_one <- function(x) {",
    "  x + 1",
    "}",
]


class StubLLM:
    def __init__(self, reply):
        self.reply = reply
        self.prompts = []

    def __call__(self, prompt):
        self.prompts.append(prompt)
        return self.reply


@pytest.fixture
def config(tmp_path):
    return ProjectConfig(root=str(tmp_path), include_context=[])


def test_roxygen_inserted_above_function(config):
    llm = StubLLM("Sure!\n#' Add one\n#' @param x a number\n```")
    context = EditorContext("a.R", list(UNDOCUMENTED), cursor_line=4)

    result = generate_roxygen_comment(context, llm=llm, config=config)

    assert result["success"]
    assert result["name"] == "add_one"
    assert result["document"][2:5] == ["#' Add one", "#' @param x a number", "add_one <- function(x) {"]
    assert "add_one <- function(x) {" in llm.prompts[0]
    assert MISSING in llm.prompts[0]


def test_roxygen_replaces_existing_block(r_document, config):
    llm = StubLLM("#' Increment\n#' @param x number\n#' @return x + 1")
    context = EditorContext("a.R", r_document, cursor_line=7)

    result = generate_roxygen_comment(context, llm=llm, config=config)

    assert result["success"]
    assert result["reason"] == "ok"
    assert result["document"][2:6] == [
        "#' Increment", "#' @param x number", "#' @return x + 1", "add_one <- function(x) {",
    ]
    assert len(result["document"]) == len(r_document)
    assert "#' Add one" in llm.prompts[0]


def test_roxygen_without_marker_lines_fails(config):
    context = EditorContext("a.R", list(UNDOCUMENTED), cursor_line=4)
    result = generate_roxygen_comment(context, llm=StubLLM("no docs, sorry"), config=config)
    assert not result["success"]


def test_llm_failure_is_reported(config):
    context = EditorContext("a.R", list(UNDOCUMENTED), cursor_line=4)
    llm = StubLLM(json.dumps({"error": "LLM unreachable: timeout"}))
    result = generate_roxygen_comment(context, llm=llm, config=config)
    assert result == {"success": False, "error": "LLM request failed"}


def test_no_function_found(config):
    context = EditorContext("a.R", ["x <- 1"], cursor_line=1)
    result = generate_roxygen_comment(context, llm=StubLLM("#' x"), config=config)
    assert not result["success"]
    assert "No function definition" in result["error"]


def test_rejected_edit(monkeypatch, config):
    def reject(filename, original, refactored, instructions=""):
        agent.logger.APPROVAL_QUEUE.put(False)

    monkeypatch.setattr(agent.logger, "UI_SHOW_DIFF", reject)
    context = EditorContext("a.R", list(UNDOCUMENTED), cursor_line=4)
    result = generate_roxygen_comment(context, llm=StubLLM("#' Add one"), config=config)
    assert not result["success"]
    assert result["error"] == "rejected"


def test_testthat_appends_to_test_file(tmp_path, config):
    context = EditorContext("a.R", list(UNDOCUMENTED), cursor_line=4)
    llm = StubLLM('test_that("adds", {\n  expect_equal(add_one(1), 2)\n})')

    first = generate_testthat(context, root=str(tmp_path), llm=llm, config=config)
    generate_testthat(context, root=str(tmp_path), llm=llm, config=config)

    assert first["success"]
    test_file = Path(first["file"])
    assert test_file == tmp_path / "tests" / "testthat" / "test-add_one.R"
    assert test_file.read_text(encoding="utf-8").count('test_that("adds"') == 2


def test_refactor_function_at_cursor(config):
    context = EditorContext("a.R", list(UNDOCUMENTED), cursor_line=4)
    llm = StubLLM("add_one <- function(x) x + 1")

    result = generate_changes(context, "make it one line", llm=llm, config=config)

    assert result["success"]
    assert result["document"] == ["x <- 1", "", "add_one <- function(x) x + 1"]
    assert "make it one line" in llm.prompts[0]


def test_refactor_selection(config):
    context = EditorContext("a.R", list(UNDOCUMENTED), cursor_line=1, selection_text="x <- 1")
    result = generate_changes(context, "rename", llm=StubLLM("y <- 1"), config=config)
    assert result["success"]
    assert result["document"][0] == "y <- 1"
    assert result["document"][2:] == UNDOCUMENTED[2:]


TWO_COPIES = ["a <- function(){", "  x <- 1", "}", "b <- function(){", "  x <- 1", "}"]


def test_refactor_selection_edits_the_copy_at_the_cursor(config):
    context = EditorContext("a.R", list(TWO_COPIES), cursor_line=5, selection_text="  x <- 1")
    result = generate_changes(context, "bump", llm=StubLLM("  x <- 2"), config=config)
    assert result["success"]
    assert result["document"][4] == "  x <- 2"
    assert result["document"][1] == "  x <- 1"


def test_refactor_selection_with_explicit_lines(config):
    context = EditorContext("a.R", list(TWO_COPIES), cursor_line=1, selection_text="x <- 1",
                            selection_start=5, selection_end=5)
    result = generate_changes(context, "bump", llm=StubLLM("x <- 3"), config=config)
    assert result["success"]
    assert result["document"][4] == "  x <- 3"
    assert result["document"][1] == "  x <- 1"


def test_refactor_selection_not_on_given_lines(config):
    context = EditorContext("a.R", list(TWO_COPIES), selection_text="x <- 1",
                            selection_start=1, selection_end=1)
    result = generate_changes(context, "bump", llm=StubLLM("x <- 3"), config=config)
    assert not result["success"]
    assert "lines 1-1" in result["error"]


def test_refactor_needs_code(config):
    context = EditorContext("a.R", ["x <- 1"], cursor_line=1)
    result = generate_changes(context, "anything", llm=StubLLM("y"), config=config)
    assert not result["success"]


@pytest.mark.parametrize("location, line", [("start", 1), ("end", 6), ("cursor", 2)])
def test_generate_function_locations(config, location, line):
    context = EditorContext("a.R", list(UNDOCUMENTED), cursor_line=2)
    llm = StubLLM("adder <- function(a, b) a + b")

    result = generate_function("add two numbers", "adder", location, context, llm=llm, config=config)

    assert result["success"]
    assert result["line"] == line
    assert result["document"][line - 1] == "adder <- function(a, b) a + b"
    assert "Name the function: adder" in llm.prompts[0]


def test_generate_function_bad_location(config):
    with pytest.raises(ValueError):
        generate_function("specs", location="middle", llm=StubLLM("x"), config=config)


def test_error_help_returns_markdown(config):
    llm = StubLLM("`x` is a list; use `x[[1]]`.")
    context = EditorContext("a.R", list(UNDOCUMENTED), cursor_line=4)

    result = generate_error_help("Error in x + 1 : non-numeric argument", context, llm=llm, config=config)

    assert result["success"]
    assert result["markdown"].startswith("```\nError in x + 1 : non-numeric argument\n```")
    assert result["markdown"].endswith("use `x[[1]]`.")
    assert "non-numeric argument" in llm.prompts[0]
    assert "a.R" in llm.prompts[0]


def test_error_help_needs_a_message(config):
    llm = StubLLM("anything")
    assert not generate_error_help("   ", llm=llm, config=config)["success"]
    assert llm.prompts == []


def test_error_help_llm_failure(config):
    result = generate_error_help("boom", llm=StubLLM(json.dumps({"error": "down"})), config=config)
    assert not result["success"]
