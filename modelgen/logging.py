"""Logging for generation runs.

Every component logs under the ``modelgen`` hierarchy (``modelgen.parser``,
``modelgen.mapping``, ``modelgen.driver`` ...). The console shows which of
them spoke, and recoverable problems go through :func:`record_issue` so the
log line and the report entry always agree.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from .errors import GenerationIssue

_LOGGER_NAME = "modelgen"
_CONSOLE_FORMAT = "[%(subsystem)s] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(subsystem)s: %(message)s"


class _SubsystemFormatter(logging.Formatter):
    """Adds ``subsystem``: ``modelgen.driver`` renders as ``modelgen:driver``."""

    def format(self, record: logging.LogRecord) -> str:
        name = record.name
        prefix = f"{_LOGGER_NAME}."
        record.subsystem = f"{_LOGGER_NAME}:{name[len(prefix):]}" if name.startswith(prefix) else name
        return super().format(record)


def get_logger(name: str | None = None) -> logging.Logger:
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def record_issue(
    logger: logging.Logger, issues: List[GenerationIssue], issue: GenerationIssue
) -> GenerationIssue:
    """Log ``issue`` as a warning tagged with its kind and append it to ``issues``."""
    logger.warning("%s: %s", issue.kind, issue)
    issues.append(issue)
    return issue


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Send modelgen logs to stderr and, optionally, to ``log_file``.

    ``verbose`` lowers the level to DEBUG, which adds per-table and per-fetch
    detail from the parser and source.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # The CLI may be invoked several times in one process (tests).
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(_SubsystemFormatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(_SubsystemFormatter(_FILE_FORMAT))
        logger.addHandler(file_handler)
        logger.setLevel(logging.DEBUG)

    return logger


__all__ = ["configure_logging", "get_logger", "record_issue"]
