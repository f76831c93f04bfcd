from agent.prompts import (
    CONFIG_DIR,
    CONTEXT_CURRENT_FILE,
    CONTEXT_LIBRARIES,
    MISSING,
    ProjectConfig,
    context_prompt,
    error_help_prompt,
    extract_libraries,
    extract_libraries_from_files,
    function_prompt,
    refactor_prompt,
    render,
    roxygen_prompt,
    write_default_project_config,
)
from runtime.state import EditorContext

R_CODE = """library(dplyr)
require("ggplot2")
# library(fake)
if (requireNamespace("rlang", quietly = TRUE)) {
  purrr::map(1:3, identity)
}
"""


def test_defaults_without_config_dir(tmp_path):
    config = ProjectConfig.load(str(tmp_path))
    assert config.include_context == [CONTEXT_CURRENT_FILE, CONTEXT_LIBRARIES]
    assert "roxygen2" in config.roxygen_prompt


def test_written_defaults_round_trip(tmp_path):
    written = write_default_project_config(str(tmp_path))
    assert len(written) == 8
    # a second run keeps what is there
    assert write_default_project_config(str(tmp_path)) == []

    flag = tmp_path / CONFIG_DIR / f".include_context_{CONTEXT_CURRENT_FILE}.config"
    flag.write_text("FALSE\n", encoding="utf-8")
    config = ProjectConfig.load(str(tmp_path))
    assert config.include_context == [CONTEXT_LIBRARIES]


def test_custom_prompt_file(tmp_path):
    cfg_dir = tmp_path / CONFIG_DIR
    cfg_dir.mkdir()
    (cfg_dir / ".generate_roxygen_prompt.config").write_text(
        "Doc {function_name} in {file_extension}\n", encoding="utf-8")
    config = ProjectConfig.load(str(tmp_path))
    config.include_context = []

    prompt = roxygen_prompt("add_one <- function(x) x + 1", "", "add_one", "R", None, config)
    assert "Doc add_one in R" in prompt
    assert "add_one <- function(x) x + 1" in prompt


def test_missing_comment_placeholder(tmp_path):
    config = ProjectConfig(root=str(tmp_path), include_context=[])
    prompt = roxygen_prompt("f <- function() 1", "  ", "f", "R", None, config)
    assert MISSING in prompt


def test_extract_libraries():
    assert extract_libraries(R_CODE) == ["dplyr", "ggplot2", "rlang", "purrr"]
    assert extract_libraries("") == []


def test_extract_libraries_from_files(tmp_path):
    (tmp_path / "R").mkdir()
    (tmp_path / "R" / "a.R").write_text("library(dplyr)\n", encoding="utf-8")
    (tmp_path / "R" / "b.R").write_text("x <- stringr::str_c('a')\nlibrary(dplyr)\n", encoding="utf-8")
    assert extract_libraries_from_files(str(tmp_path)) == ["dplyr", "stringr"]


def test_context_prompt(tmp_path):
    (tmp_path / "R").mkdir()
    (tmp_path / "R" / "a.R").write_text("library(tidyr)\n", encoding="utf-8")
    context = EditorContext(path=str(tmp_path / "R" / "a.R"), contents=["x <- 1"])

    config = ProjectConfig(root=str(tmp_path))
    text = context_prompt(context, config)
    assert "x <- 1" in text
    assert "tidyr" in text

    config.include_context = []
    assert context_prompt(context, config) == ""


def test_render_leaves_unknown_placeholders():
    out = render("{function_name} uses \\dontrun{} and {other}", function_name="f")
    assert out == "f uses \\dontrun{} and {other}"


def test_refactor_and_function_prompts(tmp_path):
    config = ProjectConfig(root=str(tmp_path), include_context=[])
    prompt = refactor_prompt("x <- 1", "use snake_case", config)
    assert "use snake_case" in prompt
    assert prompt.rstrip().endswith("x <- 1")

    prompt = function_prompt("adds two numbers", "adder", None, config)
    assert "adds two numbers" in prompt
    assert "Name the function: adder" in prompt
    assert "Name the function" not in function_prompt("adds", "", None, config)


def test_error_help_prompt(tmp_path):
    config = ProjectConfig(root=str(tmp_path), include_context=[])
    context = EditorContext("R/add.R", ["f <- function(x) x + 1"], cursor_line=1)

    prompt = error_help_prompt("Error: object 'y' not found\n", context, config)

    assert prompt.startswith(config.error_help_prompt)
    assert "Error: object 'y' not found" in prompt
    assert "Platform:" in prompt
    assert "R/add.R (cursor on line 1)" in prompt
    assert "File being edited" not in error_help_prompt("boom", EditorContext(None), config)
