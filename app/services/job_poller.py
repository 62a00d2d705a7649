"""
Job poller: drive a submitted run to a terminal status.

Polls the run status at a fixed interval until it leaves the pending set.
A failed status fetch is retried a bounded number of times at the same
interval; total polling time is capped by max_wait.
"""

import logging

from app.core.config import JOB_MAX_WAIT, JOB_POLL_INTERVAL, STATUS_FETCH_ATTEMPTS
from app.core.errors import JobFailedError, RemoteUnavailableError
from app.services.assistant_client import AssistantClient, Job
from app.services.exchange_control import ExchangeControl

logger = logging.getLogger(__name__)

PENDING_STATUSES = frozenset({"queued", "in_progress", "cancelling"})
SUCCESS_STATUSES = frozenset({"completed"})


def is_pending(status: str) -> bool:
    return status in PENDING_STATUSES


async def _fetch_status(
    client: AssistantClient,
    thread_id: str,
    job_id: str,
    poll_interval: float,
    fetch_attempts: int,
    control: ExchangeControl,
) -> Job:
    for attempt in range(1, fetch_attempts + 1):
        try:
            return await control.guard(client.get_job_status(thread_id, job_id))
        except RemoteUnavailableError as e:
            if attempt >= fetch_attempts:
                logger.error(
                    "[job_poller] status fetch failed after %d attempts thread_id=%s job_id=%s: %s",
                    fetch_attempts, thread_id, job_id, e,
                )
                raise
            logger.warning(
                "[job_poller] status fetch failed (attempt %d/%d) thread_id=%s job_id=%s, retrying in %.2fs: %s",
                attempt, fetch_attempts, thread_id, job_id, poll_interval, e,
            )
            await control.sleep(poll_interval)
    raise RuntimeError("Status fetch loop exited unexpectedly")


async def await_completion(
    client: AssistantClient,
    thread_id: str,
    job_id: str,
    *,
    poll_interval: float = JOB_POLL_INTERVAL,
    max_wait: float | None = JOB_MAX_WAIT,
    fetch_attempts: int = STATUS_FETCH_ATTEMPTS,
    control: ExchangeControl | None = None,
) -> str:
    """
    Poll the run until it is terminal and return its status ("completed").

    Raises:
        JobFailedError: terminal status other than completed (failed, cancelled, expired, ...).
        RemoteUnavailableError: status fetch kept failing for fetch_attempts tries.
        ExchangeCancelledError: max_wait elapsed, or the caller cancelled.
    """
    control = (control or ExchangeControl()).narrowed(max_wait, "job polling")
    polls = 0
    while True:
        job = await _fetch_status(client, thread_id, job_id, poll_interval, max(1, fetch_attempts), control)
        polls += 1
        status = job.status
        if is_pending(status):
            logger.debug("[job_poller] job_id=%s status=%s poll=%d", job_id, status, polls)
            await control.sleep(poll_interval)
            continue
        logger.info("[job_poller] OUT job_id=%s status=%s polls=%d", job_id, status, polls)
        if status in SUCCESS_STATUSES:
            return status
        raise JobFailedError(
            f"Run {job_id} ended with status {status or 'unknown'}",
            status=status,
            thread_id=thread_id,
            job_id=job_id,
        )
