"""
Agent lifecycle: each agent is a stored row bound to a remote assistant and
the vector store its file_search tool reads from.

Responsibility: Sanitize input, keep the remote assistant and the row in step.
Called by the API; no HTTP here. Remote cleanup on delete is best-effort:
failures are reported and the row is removed anyway.
"""

import asyncio
import logging
import sqlite3
from typing import Any

from app.core import db
from app.core.config import AGENT_NAME_PREFIX, OPENAI_ASSISTANT_MODEL
from app.core.error_log import ErrorReporter, get_error_reporter
from app.core.errors import ExchangeError, NotFoundError
from app.services.assistant_client import AssistantClient, get_assistant_client
from app.services.text_processing import sanitize_agent_name, sanitize_instructions

logger = logging.getLogger(__name__)


def build_assistant_payload(name: str, instructions: str, vector_store_id: str | None) -> dict[str, Any]:
    """Assistant config: file_search over the agent's vector store."""
    return {
        "name": name,
        "instructions": instructions,
        "model": OPENAI_ASSISTANT_MODEL,
        "tools": [{"type": "file_search"}],
        "tool_resources": {"file_search": {"vector_store_ids": [vector_store_id] if vector_store_id else []}},
    }


async def _best_effort(reporter: ErrorReporter, source: str, coro, **context: Any) -> None:
    try:
        await coro
    except ExchangeError as e:
        await reporter.areport(e, source, **context)


async def list_agents() -> list[dict[str, Any]]:
    return await asyncio.to_thread(db.get_all_agents)


async def get_agent(agent_id: int) -> dict[str, Any]:
    agent = await asyncio.to_thread(db.get_agent_by_id, agent_id)
    if agent is None:
        raise NotFoundError("Agent not found")
    return agent


async def create_agent(name: str, instructions: str, client: AssistantClient | None = None) -> int:
    """
    Create vector store, then assistant, then the row. Returns the new agent id.
    If a later step fails, the remote objects already created are deleted best-effort.
    """
    client = client or get_assistant_client()
    reporter = get_error_reporter()
    assistant_name = sanitize_agent_name(name, AGENT_NAME_PREFIX)
    clean_instructions = sanitize_instructions(instructions)
    logger.info("[agent_service:create_agent] IN  name=%r", assistant_name)

    vector_store = await client.create_vector_store(assistant_name)
    vector_store_id = vector_store.get("id")
    try:
        assistant = await client.create_assistant(
            build_assistant_payload(assistant_name, clean_instructions, vector_store_id)
        )
    except ExchangeError:
        if vector_store_id:
            await _best_effort(
                reporter, "agent_service.create_agent/cleanup",
                client.delete_vector_store(vector_store_id), vector_store_id=vector_store_id,
            )
        raise

    assistant_id = assistant.get("id")
    try:
        agent_id = await asyncio.to_thread(
            db.create_agent,
            {
                "name": assistant_name,
                "instructions": clean_instructions,
                "assistant_id": assistant_id,
                "vector_store_id": vector_store_id,
            },
        )
    except sqlite3.Error:
        source = "agent_service.create_agent/cleanup"
        if assistant_id:
            await _best_effort(reporter, source, client.delete_assistant(assistant_id), assistant_id=assistant_id)
        if vector_store_id:
            await _best_effort(
                reporter, source, client.delete_vector_store(vector_store_id), vector_store_id=vector_store_id,
            )
        raise

    logger.info("[agent_service:create_agent] OUT id=%s assistant_id=%s", agent_id, assistant_id)
    return agent_id


async def update_agent(agent_id: int, name: str, instructions: str, client: AssistantClient | None = None) -> None:
    """Re-sanitize changed fields; the remote assistant is only touched when something changed."""
    agent = await get_agent(agent_id)

    new_name = agent["name"]
    new_instructions = agent["instructions"]
    if name != agent["name"]:
        new_name = sanitize_agent_name(name, AGENT_NAME_PREFIX)
    if instructions != agent["instructions"]:
        new_instructions = sanitize_instructions(instructions)

    if new_name == agent["name"] and new_instructions == agent["instructions"]:
        logger.info("[agent_service:update_agent] id=%s unchanged", agent_id)
        return

    if agent.get("assistant_id"):
        client = client or get_assistant_client()
        await client.update_assistant(agent["assistant_id"], {"name": new_name, "instructions": new_instructions})
    await asyncio.to_thread(db.update_agent_by_id, agent_id, {"name": new_name, "instructions": new_instructions})
    logger.info("[agent_service:update_agent] id=%s updated", agent_id)


async def delete_agent(agent_id: int, client: AssistantClient | None = None) -> None:
    """Delete remote vector store, assistant and thread (best-effort), then the rows."""
    agent = await get_agent(agent_id)
    conversation = await asyncio.to_thread(db.get_conversation_by_agent_id, agent_id)
    reporter = get_error_reporter()
    source = "agent_service.delete_agent"

    if agent.get("vector_store_id") or agent.get("assistant_id") or conversation:
        client = client or get_assistant_client()
        if agent.get("vector_store_id"):
            await _best_effort(
                reporter, source, client.delete_vector_store(agent["vector_store_id"]), agent_id=agent_id,
            )
        if agent.get("assistant_id"):
            await _best_effort(reporter, source, client.delete_assistant(agent["assistant_id"]), agent_id=agent_id)
        if conversation:
            await _best_effort(reporter, source, client.delete_thread(conversation["thread_id"]), agent_id=agent_id)

    await asyncio.to_thread(db.delete_agent_by_id, agent_id)
    logger.info("[agent_service:delete_agent] id=%s deleted", agent_id)
