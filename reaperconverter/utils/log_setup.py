"""Logging configuration for the command line and the GUI."""

from __future__ import annotations

import logging
from typing import Callable

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
GUI_FORMAT = "%(levelname)s: %(message)s"


def configure_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
    )


class CallbackHandler(logging.Handler):
    """Forwards formatted records to a callable, e.g. a GUI log view."""

    def __init__(self, callback: Callable[[str], None], level: int = logging.INFO):
        super().__init__(level)
        self.callback = callback
        self.setFormatter(logging.Formatter(GUI_FORMAT))

    def emit(self, record: logging.LogRecord):
        try:
            self.callback(self.format(record))
        except Exception:
            self.handleError(record)
