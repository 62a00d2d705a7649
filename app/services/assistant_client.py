"""
Assistant API client: threads, messages, runs, assistants and vector stores
over the OpenAI Assistants v2 HTTP API.

Responsibility: One HTTP call per method, typed results, no retry and no
polling policy. Transport errors and non-2xx responses are logged with the
operation name and ids, then raised as RemoteUnavailableError.
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from app.core.config import MESSAGE_LIST_LIMIT, OPENAI_API_KEY, OPENAI_API_TIMEOUT, OPENAI_URL
from app.core.errors import InvalidRequestError, RemoteUnavailableError, ServiceUnavailableError

logger = logging.getLogger(__name__)

# Fields the assistant update endpoint accepts; anything else is dropped.
ASSISTANT_UPDATE_FIELDS = frozenset({
    "model", "name", "description", "instructions",
    "tools", "tool_resources", "metadata",
    "temperature", "top_p", "response_format",
})


@dataclass
class Job:
    """A remote run. Status is owned by the remote service."""

    id: str
    thread_id: str
    assistant_id: str
    status: str

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Job":
        return cls(
            id=data.get("id") or "",
            thread_id=data.get("thread_id") or "",
            assistant_id=data.get("assistant_id") or "",
            status=data.get("status") or "",
        )


@dataclass
class ThreadMessage:
    """One entry of a thread. job_id is the run that produced it (assistant messages only)."""

    id: str
    role: str
    job_id: str | None
    text: str

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "ThreadMessage":
        parts = []
        for part in data.get("content") or []:
            if isinstance(part, dict) and part.get("type") == "text":
                value = (part.get("text") or {}).get("value") or ""
                if value:
                    parts.append(value)
        return cls(
            id=data.get("id") or "",
            role=data.get("role") or "",
            job_id=data.get("run_id"),
            text="\n".join(parts),
        )


def _require(operation: str, **ids: str | None) -> None:
    missing = [name for name, value in ids.items() if not value or not str(value).strip()]
    if missing:
        raise InvalidRequestError(f"{operation}: missing {', '.join(missing)}", operation=operation)


class AssistantClient:
    """Thin async wrapper around the assistant HTTP API. Share one instance per process."""

    def __init__(
        self,
        api_key: str,
        base_url: str = OPENAI_URL,
        timeout: float = OPENAI_API_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "OpenAI-Beta": "assistants=v2",
            },
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "AssistantClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.HTTPError as e:
            logger.warning("[assistant_client:%s] %s %s failed: %s", operation, method, path, e)
            raise RemoteUnavailableError(operation, str(e) or type(e).__name__, path=path) from e
        if response.status_code >= 400:
            logger.warning(
                "[assistant_client:%s] %s %s -> %s: %s",
                operation, method, path, response.status_code, response.text[:200],
            )
            raise RemoteUnavailableError(
                operation,
                f"HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
                path=path,
            )
        try:
            return response.json()
        except ValueError as e:
            raise RemoteUnavailableError(operation, "invalid JSON in response", path=path) from e

    # --- Message exchange ---

    async def post_user_message(self, thread_id: str, text: str) -> dict[str, Any]:
        """Append a user message to the thread."""
        _require("post_user_message", thread_id=thread_id, text=text)
        return await self._request(
            "post_user_message", "POST", f"/v1/threads/{thread_id}/messages",
            json={"role": "user", "content": text},
        )

    async def start_job(self, thread_id: str, assistant_id: str) -> Job:
        """Create a run of the assistant on the thread."""
        _require("start_job", thread_id=thread_id, assistant_id=assistant_id)
        data = await self._request(
            "start_job", "POST", f"/v1/threads/{thread_id}/runs",
            json={"assistant_id": assistant_id},
        )
        job = Job.from_payload(data)
        if not job.id:
            raise RemoteUnavailableError("start_job", "run id missing", thread_id=thread_id)
        logger.info("[assistant_client:start_job] thread_id=%s job_id=%s status=%s", thread_id, job.id, job.status)
        return job

    async def get_job_status(self, thread_id: str, job_id: str) -> Job:
        _require("get_job_status", thread_id=thread_id, job_id=job_id)
        data = await self._request("get_job_status", "GET", f"/v1/threads/{thread_id}/runs/{job_id}")
        return Job.from_payload(data)

    async def list_messages(self, thread_id: str, limit: int = MESSAGE_LIST_LIMIT) -> list[ThreadMessage]:
        """
        Return the thread's most recent messages, oldest first.

        The API is asked for newest-first so a long thread still includes the
        latest reply; the page is reversed before returning.
        """
        _require("list_messages", thread_id=thread_id)
        data = await self._request(
            "list_messages", "GET", f"/v1/threads/{thread_id}/messages",
            params={"order": "desc", "limit": limit},
        )
        messages = [ThreadMessage.from_payload(m) for m in data.get("data") or [] if isinstance(m, dict)]
        messages.reverse()
        return messages

    # --- Threads ---

    async def create_thread(self) -> dict[str, Any]:
        return await self._request("create_thread", "POST", "/v1/threads", json={})

    async def retrieve_thread_messages(self, thread_id: str, limit: int = 10) -> list[dict[str, Any]]:
        """Raw message objects of the thread, oldest first, capped at limit."""
        _require("retrieve_thread_messages", thread_id=thread_id)
        data = await self._request(
            "retrieve_thread_messages", "GET", f"/v1/threads/{thread_id}/messages",
            params={"order": "asc", "limit": limit},
        )
        return data.get("data") or []

    async def delete_thread(self, thread_id: str) -> dict[str, Any]:
        _require("delete_thread", thread_id=thread_id)
        return await self._request("delete_thread", "DELETE", f"/v1/threads/{thread_id}")

    # --- Assistants ---

    async def create_assistant(self, data: dict[str, Any]) -> dict[str, Any]:
        """Create an assistant. name, instructions and model must be non-empty strings."""
        for field in ("name", "instructions", "model"):
            if not isinstance(data.get(field), str) or not data[field].strip():
                raise InvalidRequestError(f"Invalid '{field}' in the assistant payload.", operation="create_assistant")
        return await self._request("create_assistant", "POST", "/v1/assistants", json=data)

    async def update_assistant(self, assistant_id: str, data: dict[str, Any]) -> dict[str, Any]:
        _require("update_assistant", assistant_id=assistant_id)
        payload = {k: v for k, v in data.items() if k in ASSISTANT_UPDATE_FIELDS}
        return await self._request("update_assistant", "POST", f"/v1/assistants/{assistant_id}", json=payload)

    async def delete_assistant(self, assistant_id: str) -> dict[str, Any]:
        _require("delete_assistant", assistant_id=assistant_id)
        return await self._request("delete_assistant", "DELETE", f"/v1/assistants/{assistant_id}")

    # --- Vector stores ---

    async def create_vector_store(self, name: str) -> dict[str, Any]:
        _require("create_vector_store", name=name)
        return await self._request("create_vector_store", "POST", "/v1/vector_stores", json={"name": name})

    async def delete_vector_store(self, vector_store_id: str) -> dict[str, Any]:
        _require("delete_vector_store", vector_store_id=vector_store_id)
        return await self._request("delete_vector_store", "DELETE", f"/v1/vector_stores/{vector_store_id}")


_client: AssistantClient | None = None


def get_assistant_client() -> AssistantClient:
    """
    Return the shared AssistantClient, creating it on first use.
    Raises ServiceUnavailableError when OPENAI_API_KEY is not configured.
    """
    global _client
    if _client is None:
        if not OPENAI_API_KEY:
            raise ServiceUnavailableError("OPENAI_API_KEY must be set in .env")
        _client = AssistantClient(OPENAI_API_KEY)
        logger.info("Assistant API client created for %s", OPENAI_URL)
    return _client


async def close_assistant_client() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
