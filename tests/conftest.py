import os
import tempfile

# keep the log file out of the working directory; read when agent.logger is imported
os.environ.setdefault(
    "RSCRIBE_LOG", os.path.join(tempfile.mkdtemp(prefix="rscribe-test-"), "rscribe.log")
)

import pytest

import agent.logger

ADD_ONE_DOC = """library(dplyr)

#' Add one
#'
#' @param x number
add_one <- function(x) {
  x + 1
}


scale_by <-
  function(x, k = 2) {
    if (k == 0) {
      stop("k must not be {zero}")
    }
    x * k
  }

square <- function(x) x^2"""


@pytest.fixture
def r_document():
    return ADD_ONE_DOC.split("\n")


@pytest.fixture(autouse=True)
def headless(monkeypatch):
    # no review app attached: approvals are automatic unless a test installs one
    monkeypatch.setattr(agent.logger, "UI_SHOW_DIFF", None)
    monkeypatch.setattr(agent.logger, "UI_CALLBACK", lambda msg: None)
