"""
Shared fixtures: isolated SQLite file, recording error reporter, recorded
sleeps, and a scripted stand-in for the assistant API client.
"""

from typing import Any

import pytest

from app.core import error_log
from app.services.assistant_client import Job, ThreadMessage


class RecordingReporter(error_log.ErrorReporter):
    """Keeps (error, source, context) for every report."""

    def __init__(self) -> None:
        self.reports: list[tuple[BaseException, str, dict[str, Any]]] = []

    def report(self, error: BaseException, source: str, **context: Any) -> None:
        self.reports.append((error, source, context))


class ScriptedClient:
    """
    Assistant client double. `statuses` and `pages` are consumed in order;
    an Exception entry is raised instead of returned. When a script runs out,
    the last entry repeats.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.job_id = "run_1"
        self.statuses: list[str | Exception] = ["completed"]
        self.pages: list[list[ThreadMessage] | Exception] = [
            [ThreadMessage(id="msg_2", role="assistant", job_id="run_1", text="Hello there")]
        ]
        self.post_error: Exception | None = None
        self.start_error: Exception | None = None

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)

    @staticmethod
    def _next(script: list) -> Any:
        item = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(item, Exception):
            raise item
        return item

    async def post_user_message(self, thread_id: str, text: str) -> dict[str, Any]:
        self.calls.append(("post_user_message", (thread_id, text)))
        if self.post_error:
            raise self.post_error
        return {"id": "msg_1"}

    async def start_job(self, thread_id: str, assistant_id: str) -> Job:
        self.calls.append(("start_job", (thread_id, assistant_id)))
        if self.start_error:
            raise self.start_error
        return Job(id=self.job_id, thread_id=thread_id, assistant_id=assistant_id, status="queued")

    async def get_job_status(self, thread_id: str, job_id: str) -> Job:
        self.calls.append(("get_job_status", (thread_id, job_id)))
        status = self._next(self.statuses)
        return Job(id=job_id, thread_id=thread_id, assistant_id="asst_1", status=status)

    async def list_messages(self, thread_id: str) -> list[ThreadMessage]:
        self.calls.append(("list_messages", (thread_id,)))
        return self._next(self.pages)


@pytest.fixture
def scripted_client() -> ScriptedClient:
    return ScriptedClient()


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Replace the exchange wait with an instant one; returns the requested delays."""
    recorded: list[float] = []

    async def fake_sleep(delay: float) -> None:
        recorded.append(delay)

    monkeypatch.setattr("app.services.exchange_control._sleep", fake_sleep)
    return recorded


@pytest.fixture(autouse=True)
def isolated_state(tmp_path, monkeypatch: pytest.MonkeyPatch) -> RecordingReporter:
    """Every test gets its own database file and a reporter that writes no files."""
    monkeypatch.setattr("app.core.db._DB_PATH", tmp_path / "agents.db")
    recording = RecordingReporter()
    monkeypatch.setattr(error_log, "_reporter", recording)
    return recording
