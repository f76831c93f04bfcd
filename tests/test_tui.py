import asyncio

from tui.app import ACCEPT, KEEP, DiffReviewApp


def _review(key, instructions=""):
    app = DiffReviewApp("a.R", "f <- function(x) x", "f <- function(x) x + 1", instructions)

    async def drive():
        async with app.run_test() as pilot:
            shown = len(app.query("#instructions"))
            await pilot.press(key)
        return shown

    shown = asyncio.run(drive())
    return app.return_value, shown


def test_y_accepts_the_change():
    result, _ = _review("y")
    assert result == ACCEPT


def test_n_keeps_the_original():
    result, _ = _review("n")
    assert result == KEEP


def test_instructions_are_shown_only_when_given():
    assert _review("n", instructions="use vapply")[1] == 1
    assert _review("n")[1] == 0
