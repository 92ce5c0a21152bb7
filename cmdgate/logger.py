"""Operational logging setup.

Audit events are written by the audit log, not through here. This channel is
standard error and doubles as the fallback when an audit write fails.
"""
import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the cmdgate logger namespace and return its root logger."""
    log = logging.getLogger("cmdgate")
    log.setLevel(level.upper())

    # Avoid duplicate handlers when called more than once
    if not log.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(handler)

    return log
