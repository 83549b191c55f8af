from __future__ import annotations

import logging
from pathlib import Path
from typing import List

import pytest

from modelgen.errors import MALFORMED_ROW, GenerationIssue
from modelgen.logging import configure_logging, get_logger, record_issue


def test_console_lines_name_the_subsystem(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging()

    get_logger("mapping").warning("could not map %s", "mixed")
    get_logger("parser").debug("hidden without verbose")

    err = capsys.readouterr().err
    assert "[modelgen:mapping] WARNING could not map mixed" in err
    assert "hidden without verbose" not in err


def test_log_file_receives_debug_detail(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    log_file = tmp_path / "logs" / "run.log"
    configure_logging(log_file=log_file)

    get_logger("sources").debug("Fetching resources/User.md")

    for handler in logging.getLogger("modelgen").handlers:
        handler.flush()
    assert "DEBUG modelgen:sources: Fetching resources/User.md" in log_file.read_text(encoding="utf-8")
    assert "Fetching" not in capsys.readouterr().err


def test_record_issue_logs_and_collects(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging()
    issues: List[GenerationIssue] = []
    issue = GenerationIssue(
        kind=MALFORMED_ROW,
        message="skipping row: expected 3 cells, found 2",
        document="resources/Emoji.md",
        model="Emoji",
        line=6,
    )

    record_issue(get_logger("parser"), issues, issue)

    assert issues == [issue]
    err = capsys.readouterr().err
    assert "[modelgen:parser] WARNING malformed_row: resources/Emoji.md:6 (Emoji): skipping row" in err
