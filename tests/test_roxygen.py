from tools.roxygen import is_blank_comment, roxygen_lines, txt_multi, txt_single


def test_txt_multi_splits_strings_and_lists():
    assert txt_multi("a\nb") == ["a", "b"]
    assert txt_multi(["a\nb", "c"]) == ["a", "b", "c"]
    assert txt_multi(None) == []


def test_txt_single_joins():
    assert txt_single(["a", "b"]) == "a\nb"
    assert txt_single("a\nb") == "a\nb"


def test_is_blank_comment():
    assert is_blank_comment("#'  \n#'   \n")
    assert is_blank_comment("   \n  \n")
    assert is_blank_comment("#' #'")
    assert not is_blank_comment("#' This is a comment")
    assert not is_blank_comment("plain")


def test_roxygen_lines_drops_chatter():
    reply = "Here you go:\n#' Title\n# ' spaced marker\nf <- function(x) x\n```"
    assert roxygen_lines(reply) == "#' Title\n# ' spaced marker"
    assert roxygen_lines("no roxygen here") == ""
