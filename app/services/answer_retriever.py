"""
Answer retriever: read the assistant's reply for a completed run.

A run can report completed before its message is listable, so the thread is
re-read up to max_attempts times, waiting retry_delay between attempts.
"""

import logging

from app.core.config import ANSWER_MAX_ATTEMPTS, ANSWER_RETRY_DELAY
from app.core.errors import AnswerNotFoundError, RemoteUnavailableError
from app.services.assistant_client import AssistantClient, ThreadMessage
from app.services.exchange_control import ExchangeControl

logger = logging.getLogger(__name__)


def select_answer(messages: list[ThreadMessage], job_id: str) -> str | None:
    """Text of the last assistant message produced by job_id, or None if missing or empty."""
    matches = [m for m in messages if m.role == "assistant" and m.job_id == job_id]
    if not matches:
        return None
    text = matches[-1].text
    return text if text and text.strip() else None


async def fetch_answer(
    client: AssistantClient,
    thread_id: str,
    job_id: str,
    *,
    max_attempts: int = ANSWER_MAX_ATTEMPTS,
    retry_delay: float = ANSWER_RETRY_DELAY,
    control: ExchangeControl | None = None,
) -> str:
    """
    Return the reply text for job_id.

    Raises AnswerNotFoundError once the attempts are used up, whether the reply
    was missing or the listing failed. The last listing failure is chained and
    kept in the error context as last_error.
    """
    control = control or ExchangeControl()
    max_attempts = max(1, max_attempts)
    last_error: RemoteUnavailableError | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            messages = await control.guard(client.list_messages(thread_id))
        except RemoteUnavailableError as e:
            last_error = e
            logger.warning(
                "[answer_retriever] list failed (attempt %d/%d) thread_id=%s job_id=%s: %s",
                attempt, max_attempts, thread_id, job_id, e,
            )
        else:
            answer = select_answer(messages, job_id)
            if answer is not None:
                logger.info("[answer_retriever] OUT job_id=%s attempt=%d answer_len=%d", job_id, attempt, len(answer))
                return answer
            logger.info("[answer_retriever] no reply yet for job_id=%s (attempt %d/%d)", job_id, attempt, max_attempts)
        if attempt < max_attempts:
            await control.sleep(retry_delay)

    context = {"thread_id": thread_id, "job_id": job_id}
    if last_error is not None:
        context["last_error"] = str(last_error)
    raise AnswerNotFoundError(
        f"No assistant reply for run {job_id} after {max_attempts} attempts", **context
    ) from last_error
