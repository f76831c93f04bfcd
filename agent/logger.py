# agent/logger.py
"""
One "rscribe" logger for the whole package.

  rscribe.log     every record, DEBUG and up, plain text (path from
                  $RSCRIBE_LOG, created on the first record)
  user console    INFO and up with rich markup rendered; handed to
                  UI_CALLBACK when a front-end is attached, else stderr

UI bridges, set by tui/app.py and left as None when headless:
  UI_CALLBACK     callable(str): one formatted log line
  UI_SHOW_DIFF    callable(filename, original, refactored, instructions):
                  open a review
  APPROVAL_QUEUE  the reviewer's bool decision is put here
"""
import logging
import os
import queue

from rich.console import Console
from rich.errors import MarkupError

UI_CALLBACK  = None
UI_SHOW_DIFF = None
APPROVAL_QUEUE: queue.Queue = queue.Queue()

LOG_FILE = os.environ.get("RSCRIBE_LOG", "rscribe.log")

_stderr = Console(stderr=True, highlight=False)


def _print(msg: str) -> None:
    try:
        _stderr.print(msg)
    except MarkupError:
        # R code in the message can look like a closing tag, e.g. "[/]"
        _stderr.print(msg, markup=False)


class UILogHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        msg = self.format(record)
        cb = UI_CALLBACK
        if cb is None:
            _print(msg)
            return
        try:
            cb(msg)
        except RuntimeError:
            # textual raises "App is not running" once the review app has exited
            _print(msg)


def setup_logger(log_file: str = LOG_FILE) -> logging.Logger:
    logger = logging.getLogger("rscribe")
    logger.setLevel(logging.DEBUG)
    if logger.handlers:
        return logger

    fh = logging.FileHandler(log_file, encoding="utf-8", mode="w", delay=True)
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(module)s:%(lineno)d | %(message)s"
    ))

    uh = UILogHandler()
    uh.setLevel(logging.INFO)
    uh.setFormatter(logging.Formatter("%(message)s"))

    logger.addHandler(fh)
    logger.addHandler(uh)
    return logger


log = setup_logger()
