"""
Log handler for scripts that show a tqdm progress bar.

publish_businesses.py logs one line per record while the batch bar is
running; writing those lines through tqdm.write() keeps the bar on the last
line of the terminal.
"""

import logging
import sys
from typing import TextIO

from tqdm import tqdm


class TqdmLoggingHandler(logging.Handler):
    """Emit formatted records via tqdm.write() (stderr by default)."""

    def __init__(self, level: int = logging.NOTSET, stream: TextIO | None = None):
        super().__init__(level)
        self.stream = stream if stream is not None else sys.stderr

    def emit(self, record: logging.LogRecord) -> None:
        try:
            tqdm.write(self.format(record), file=self.stream)
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)
