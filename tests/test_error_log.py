"""
Tests for the daily error log reporter and retention cleanup.
"""

import asyncio
from datetime import date
from unittest.mock import patch

import pytest

from app.core.error_log import DailyFileErrorReporter, cleanup_error_logs
from app.core.errors import JobFailedError


def test_report_appends_block_to_todays_file(tmp_path) -> None:
    reporter = DailyFileErrorReporter(tmp_path / "errors")
    error = JobFailedError("Run run_1 ended with status failed", status="failed")
    reporter.report(error, "message_exchange.send_message/await_completion", thread_id="thread_1", job_id=None)
    reporter.report(ValueError("second"), "routes.create_agent")

    files = list((tmp_path / "errors").iterdir())
    assert len(files) == 1
    assert files[0].name == f"{date.today():%Y-%m-%d}.txt"
    content = files[0].read_text(encoding="utf-8")
    assert "message_exchange.send_message/await_completion thread_id=thread_1" in content
    assert "job_id" not in content
    assert "JobFailedError: Run run_1 ended with status failed" in content
    assert "ValueError: second" in content


def test_report_never_raises_when_directory_is_unwritable(tmp_path) -> None:
    blocker = tmp_path / "errors"
    blocker.write_text("not a directory")
    DailyFileErrorReporter(blocker).report(RuntimeError("x"), "src")


def test_cleanup_removes_only_expired_dated_files(tmp_path) -> None:
    log_dir = tmp_path / "errors"
    log_dir.mkdir()
    for name in ("2026-10-01.txt", "2026-10-13.txt", "2026-10-14.txt", "2026-10-19.txt", "notes.txt", "2026-13-40.txt"):
        (log_dir / name).write_text("x")

    removed = cleanup_error_logs(log_dir, days_to_keep=5, today=date(2026, 10, 19))

    assert removed == 2
    assert sorted(p.name for p in log_dir.iterdir()) == ["2026-10-14.txt", "2026-10-19.txt", "2026-13-40.txt", "notes.txt"]


def test_cleanup_missing_directory_is_noop(tmp_path) -> None:
    assert cleanup_error_logs(tmp_path / "absent", days_to_keep=5) == 0


@pytest.mark.asyncio
async def test_areport_appends_in_worker_thread(tmp_path) -> None:
    reporter = DailyFileErrorReporter(tmp_path / "errors")
    real_to_thread = asyncio.to_thread
    calls = []

    async def recording_to_thread(func, *args, **kwargs):
        calls.append(func)
        return await real_to_thread(func, *args, **kwargs)

    with patch("app.core.error_log.asyncio.to_thread", new=recording_to_thread):
        await reporter.areport(RuntimeError("boom"), "message_exchange.send_message/start_job", thread_id="thread_1")

    assert calls == [reporter._append]
    content = (tmp_path / "errors" / f"{date.today():%Y-%m-%d}.txt").read_text(encoding="utf-8")
    assert "message_exchange.send_message/start_job thread_id=thread_1" in content
    assert "RuntimeError: boom" in content
