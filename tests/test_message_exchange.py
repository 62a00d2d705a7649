"""
Tests for send_message(): validation, step ordering, abort on failure,
error reporting, sanitizing and the overall deadline.
"""

import asyncio

import pytest

from app.core.errors import (
    AnswerNotFoundError,
    ExchangeCancelledError,
    InvalidRequestError,
    JobFailedError,
    RemoteUnavailableError,
)
from app.services.assistant_client import ThreadMessage
from app.services.message_exchange import ExchangeSettings, send_message

FAST = ExchangeSettings(
    poll_interval=0.0,
    max_wait=None,
    status_fetch_attempts=3,
    answer_max_attempts=3,
    answer_retry_delay=0.0,
    timeout=None,
)


@pytest.mark.parametrize(
    "args",
    [("", "thread_1", "asst_1"), ("hi", "", "asst_1"), ("hi", "thread_1", ""), ("   ", "thread_1", "asst_1")],
)
@pytest.mark.asyncio
async def test_empty_argument_is_rejected_without_calls(scripted_client, reporter, args) -> None:
    with pytest.raises(InvalidRequestError):
        await send_message(*args, client=scripted_client, settings=FAST, reporter=reporter)
    assert scripted_client.calls == []
    assert isinstance(reporter.reports[0][0], InvalidRequestError)


@pytest.mark.asyncio
async def test_happy_path_returns_sanitized_answer(scripted_client, reporter, sleeps) -> None:
    scripted_client.statuses = ["queued", "in_progress", "completed"]
    scripted_client.pages = [
        [
            ThreadMessage(id="m1", role="user", job_id=None, text="Where did you study?"),
            ThreadMessage(id="m2", role="assistant", job_id="run_1", text="Assistant: At X【114:0†cv.txt】 [1]."),
        ]
    ]
    answer = await send_message(
        "Where did you study?", "thread_1", "asst_1", client=scripted_client, settings=FAST, reporter=reporter
    )
    assert answer == "At X ."
    assert not any(ch in answer for ch in "【】[]")
    assert [name for name, _ in scripted_client.calls] == [
        "post_user_message",
        "start_job",
        "get_job_status",
        "get_job_status",
        "get_job_status",
        "list_messages",
    ]
    assert scripted_client.calls[1] == ("start_job", ("thread_1", "asst_1"))
    assert reporter.reports == []


@pytest.mark.asyncio
async def test_post_failure_aborts_before_start_job(scripted_client, reporter) -> None:
    scripted_client.post_error = RemoteUnavailableError("post_user_message", "HTTP 500")
    with pytest.raises(RemoteUnavailableError):
        await send_message("hi", "thread_1", "asst_1", client=scripted_client, settings=FAST, reporter=reporter)
    assert scripted_client.count("start_job") == 0
    error, source, context = reporter.reports[0]
    assert source.endswith("post_user_message")
    assert context["thread_id"] == "thread_1"
    assert context["assistant_id"] == "asst_1"


@pytest.mark.asyncio
async def test_job_failure_is_reported_with_job_id(scripted_client, reporter, sleeps) -> None:
    scripted_client.statuses = ["in_progress", "failed"]
    with pytest.raises(JobFailedError):
        await send_message("hi", "thread_1", "asst_1", client=scripted_client, settings=FAST, reporter=reporter)
    assert scripted_client.count("list_messages") == 0
    _, source, context = reporter.reports[0]
    assert source.endswith("await_completion")
    assert context["job_id"] == "run_1"


@pytest.mark.asyncio
async def test_missing_answer_surfaces_answer_not_found(scripted_client, reporter, sleeps) -> None:
    scripted_client.pages = [[ThreadMessage(id="m1", role="user", job_id=None, text="hi")]]
    with pytest.raises(AnswerNotFoundError):
        await send_message("hi", "thread_1", "asst_1", client=scripted_client, settings=FAST, reporter=reporter)
    assert scripted_client.count("list_messages") == 3
    assert isinstance(reporter.reports[0][0], AnswerNotFoundError)


@pytest.mark.asyncio
async def test_overall_timeout_cancels_stuck_exchange(scripted_client, reporter) -> None:
    scripted_client.statuses = ["in_progress"]
    settings = ExchangeSettings(
        poll_interval=0.01, max_wait=None, status_fetch_attempts=3,
        answer_max_attempts=3, answer_retry_delay=0.0, timeout=0.05,
    )
    with pytest.raises(ExchangeCancelledError) as exc_info:
        await asyncio.wait_for(
            send_message("hi", "thread_1", "asst_1", client=scripted_client, settings=settings, reporter=reporter),
            timeout=2.0,
        )
    assert exc_info.value.reason == "deadline"
    assert reporter.reports[0][0] is exc_info.value


@pytest.mark.asyncio
async def test_cancel_event_aborts_exchange(scripted_client, reporter) -> None:
    cancel = asyncio.Event()
    cancel.set()
    with pytest.raises(ExchangeCancelledError) as exc_info:
        await send_message(
            "hi", "thread_1", "asst_1",
            client=scripted_client, settings=FAST, reporter=reporter, cancel_event=cancel,
        )
    assert exc_info.value.reason == "cancelled"
    assert scripted_client.calls == []
