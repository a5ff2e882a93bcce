"""
Log handlers for the ``zone-operator`` commands.

Each command run gets its own log file under ``logs/`` with the full DEBUG
trace of reconciliation passes and provider calls.  The console only shows
warnings and errors unless ``--verbose`` is given.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime

from .config import PROJECT_ROOT

LOG_DIR = os.path.join(PROJECT_ROOT, "logs")

_DETAILED_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_BRIEF_FORMAT = "%(levelname)-8s  %(message)s"

# SDK and HTTP transport loggers; their DEBUG output dumps whole requests.
_NOISY_LOGGERS = ("botocore", "boto3", "urllib3", "s3transfer")


def _file_handler(log_path: str) -> logging.Handler:
    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(_DETAILED_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def _console_handler(verbose: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    if verbose:
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(_DETAILED_FORMAT, datefmt="%H:%M:%S"))
    else:
        handler.setLevel(logging.WARNING)
        handler.setFormatter(logging.Formatter(_BRIEF_FORMAT))
    return handler


def setup_logging(
    verbose: bool = False,
    log_prefix: str = "zone_operator",
    log_dir: str = LOG_DIR,
) -> str:
    """Install the file and console handlers on the root logger.

    Handlers from an earlier call are closed and replaced, so calling this
    twice in one process does not duplicate output.

    Returns the path of the new log file
    (``<log_dir>/<log_prefix>_<timestamp>.log``).
    """
    os.makedirs(log_dir, exist_ok=True)
    stamp = datetime.now().strftime("%Y-%m-%d-%H%M%S")
    log_path = os.path.join(log_dir, f"{log_prefix}_{stamp}.log")

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()

    root.addHandler(_file_handler(log_path))
    root.addHandler(_console_handler(verbose))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO)

    return log_path
