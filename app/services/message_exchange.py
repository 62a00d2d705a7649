"""
Message exchange: send one user message to an assistant thread and return the
cleaned reply.

Pipeline: post message -> start run -> poll run -> read reply -> strip
citations. The first failing step aborts the rest; nothing already sent to
the thread is rolled back. Every failure goes to the error reporter before it
is re-raised. Called by the conversation service; no HTTP here.
"""

import asyncio
import logging
from dataclasses import dataclass

from app.core.config import (
    ANSWER_MAX_ATTEMPTS,
    ANSWER_RETRY_DELAY,
    EXCHANGE_TIMEOUT,
    JOB_MAX_WAIT,
    JOB_POLL_INTERVAL,
    STATUS_FETCH_ATTEMPTS,
)
from app.core.error_log import ErrorReporter, get_error_reporter
from app.core.errors import ExchangeError, InvalidRequestError
from app.services.answer_retriever import fetch_answer
from app.services.assistant_client import AssistantClient, get_assistant_client
from app.services.exchange_control import ExchangeControl
from app.services.job_poller import await_completion
from app.services.text_processing import strip_citations, strip_speaker_label

logger = logging.getLogger(__name__)


@dataclass
class ExchangeSettings:
    """Timing budget for one exchange. Defaults come from app.core.config."""

    poll_interval: float = JOB_POLL_INTERVAL
    max_wait: float | None = JOB_MAX_WAIT
    status_fetch_attempts: int = STATUS_FETCH_ATTEMPTS
    answer_max_attempts: int = ANSWER_MAX_ATTEMPTS
    answer_retry_delay: float = ANSWER_RETRY_DELAY
    timeout: float | None = EXCHANGE_TIMEOUT


def _validate(message: str, thread_id: str, assistant_id: str) -> None:
    missing = [
        name
        for name, value in (("message", message), ("thread_id", thread_id), ("assistant_id", assistant_id))
        if not isinstance(value, str) or not value.strip()
    ]
    if missing:
        raise InvalidRequestError(f"Invalid '{', '.join(missing)}' for send_message.")


async def send_message(
    message: str,
    thread_id: str,
    assistant_id: str,
    *,
    client: AssistantClient | None = None,
    settings: ExchangeSettings | None = None,
    reporter: ErrorReporter | None = None,
    cancel_event: asyncio.Event | None = None,
) -> str:
    """
    Run the full exchange and return the sanitized answer.

    Raises:
        InvalidRequestError: an argument is empty (no network call is made).
        RemoteUnavailableError: a remote call failed.
        JobFailedError: the run ended failed, cancelled or expired.
        AnswerNotFoundError: the run completed but its reply never appeared.
        ExchangeCancelledError: cancel_event was set or a deadline passed.
    """
    settings = settings or ExchangeSettings()
    reporter = reporter or get_error_reporter()
    job_id: str | None = None
    step = "validate"
    logger.info(
        "[message_exchange:send_message] IN  thread_id=%s assistant_id=%s message_len=%d",
        thread_id, assistant_id, len(message or ""),
    )
    try:
        _validate(message, thread_id, assistant_id)
        client = client or get_assistant_client()
        control = ExchangeControl(settings.timeout, cancel_event)

        step = "post_user_message"
        await control.guard(client.post_user_message(thread_id, message))

        step = "start_job"
        job = await control.guard(client.start_job(thread_id, assistant_id))
        job_id = job.id

        step = "await_completion"
        await await_completion(
            client,
            thread_id,
            job_id,
            poll_interval=settings.poll_interval,
            max_wait=settings.max_wait,
            fetch_attempts=settings.status_fetch_attempts,
            control=control,
        )

        step = "fetch_answer"
        raw = await fetch_answer(
            client,
            thread_id,
            job_id,
            max_attempts=settings.answer_max_attempts,
            retry_delay=settings.answer_retry_delay,
            control=control,
        )
    except ExchangeError as e:
        await reporter.areport(
            e,
            f"message_exchange.send_message/{step}",
            thread_id=thread_id,
            assistant_id=assistant_id,
            job_id=job_id,
        )
        raise

    answer = strip_citations(strip_speaker_label(raw))
    logger.info("[message_exchange:send_message] OUT job_id=%s answer_len=%d", job_id, len(answer))
    return answer
