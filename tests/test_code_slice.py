from runtime.state import EditorContext
from tools.code_slice import function_code, load_function_slice


def test_selection_wins(r_document):
    context = EditorContext("a.R", r_document, cursor_line=7, selection_text="x + 1")
    assert function_code(context) == "x + 1"


def test_function_at_cursor(r_document):
    context = EditorContext("a.R", r_document, cursor_line=7)
    assert function_code(context).startswith("add_one <- function(x) {")


def test_nothing_to_use():
    assert function_code(EditorContext("a.R", ["x <- 1"], cursor_line=1)) is None


def test_load_function_slice(r_document):
    piece = load_function_slice(r_document, 7, context=2)
    assert piece["name"] == "add_one"
    assert (piece["start"], piece["end"]) == (6, 8)
    assert (piece["slice_start"], piece["slice_end"]) == (4, 10)
    assert piece["code"].split("\n")[0] == "#'"
    assert load_function_slice(["x <- 1"], 1) is None
