import pytest

from runtime.state import EditorContext, find_project_root


def test_from_file_drops_final_newline(tmp_path):
    f = tmp_path / "a.R"
    f.write_text("x <- 1\r\ny <- 2\n", encoding="utf-8")
    context = EditorContext.from_file(str(f), cursor_line=2)
    assert context.contents == ["x <- 1", "y <- 2"]
    assert context.file_extension == "R"


def test_save_round_trip(tmp_path):
    f = tmp_path / "a.R"
    EditorContext(str(f), ["a", "b"]).save()
    assert f.read_text(encoding="utf-8") == "a\nb\n"
    with pytest.raises(ValueError):
        EditorContext(None, ["a"]).save()


def test_find_project_root(tmp_path):
    (tmp_path / "DESCRIPTION").write_text("Package: demo\n", encoding="utf-8")
    nested = tmp_path / "R" / "sub"
    nested.mkdir(parents=True)
    assert find_project_root(str(nested)) == str(tmp_path.resolve())

    other = tmp_path / "proj"
    other.mkdir()
    (other / "proj.Rproj").write_text("", encoding="utf-8")
    assert find_project_root(str(other)) == str(other.resolve())


TWO_COPIES = ["a <- function(){", "  x <- 1", "}", "b <- function(){", "  x <- 1", "}"]


def test_selection_range_prefers_the_copy_at_the_cursor():
    assert EditorContext("a.R", TWO_COPIES, cursor_line=5, selection_text="  x <- 1").selection_range() == (5, 5)
    assert EditorContext("a.R", TWO_COPIES, cursor_line=1, selection_text="  x <- 1").selection_range() == (2, 2)


def test_selection_range_explicit_lines_and_misses():
    context = EditorContext("a.R", TWO_COPIES, selection_text="x <- 1", selection_start=5)
    assert context.selection_range() == (5, 5)
    assert EditorContext("a.R", TWO_COPIES, selection_text="zzz").selection_range() is None
    assert EditorContext("a.R", TWO_COPIES).selection_range() is None


def test_from_file_keeps_selection_lines(tmp_path):
    f = tmp_path / "a.R"
    f.write_text("\n".join(TWO_COPIES) + "\n", encoding="utf-8")
    context = EditorContext.from_file(str(f), selection_text="  x <- 1", selection_lines=(5, 5))
    assert context.selection_range() == (5, 5)
