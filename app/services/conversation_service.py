"""
Conversations: the single assistant thread bound to each agent.

Responsibility: find or create the agent's thread, read its history, and
route a user message through the message exchange.
"""

import asyncio
import logging
import sqlite3
from typing import Any

from app.core import db
from app.core.config import HISTORY_LIMIT
from app.core.error_log import get_error_reporter
from app.core.errors import ExchangeError, NotFoundError
from app.services.agent_service import get_agent
from app.services.assistant_client import AssistantClient, get_assistant_client
from app.services.message_exchange import send_message

logger = logging.getLogger(__name__)


async def get_or_create_conversation(agent_id: int, client: AssistantClient | None = None) -> dict[str, Any]:
    """
    Return {"thread_id", "agent"} for the agent, creating its thread on first use.
    If a concurrent request stored a thread first, the one created here is deleted.
    """
    agent = await get_agent(agent_id)
    conversation = await asyncio.to_thread(db.get_conversation_by_agent_id, agent_id)
    if conversation:
        return {"thread_id": conversation["thread_id"], "agent": agent}

    client = client or get_assistant_client()
    thread = await client.create_thread()
    thread_id = thread.get("id") or ""
    try:
        await asyncio.to_thread(db.create_conversation, agent_id, thread_id)
    except sqlite3.IntegrityError:
        existing = await asyncio.to_thread(db.get_conversation_by_agent_id, agent_id)
        if existing is None:
            raise
        logger.info("[conversation_service] agent_id=%s already has thread %s", agent_id, existing["thread_id"])
        try:
            await client.delete_thread(thread_id)
        except ExchangeError as e:
            await get_error_reporter().areport(e, "conversation_service.get_or_create_conversation", thread_id=thread_id)
        thread_id = existing["thread_id"]
    else:
        logger.info("[conversation_service] created thread %s for agent_id=%s", thread_id, agent_id)
    return {"thread_id": thread_id, "agent": agent}


async def get_message_history(thread_id: str, client: AssistantClient | None = None) -> list[dict[str, Any]]:
    """Oldest HISTORY_LIMIT messages of a known thread."""
    conversation = await asyncio.to_thread(db.get_conversation_by_thread_id, thread_id)
    if conversation is None:
        raise NotFoundError("Conversation not found")
    client = client or get_assistant_client()
    return await client.retrieve_thread_messages(thread_id, limit=HISTORY_LIMIT)


async def send_message_to_agent(agent_id: int, thread_id: str, message: str) -> str:
    """Check the agent owns the thread, bump updated_at, then run the exchange."""
    agent = await get_agent(agent_id)
    conversation = await asyncio.to_thread(db.get_conversation_by_thread_id, thread_id)
    if conversation is None or conversation["agent_id"] != agent_id:
        raise NotFoundError("Conversation not found")
    await asyncio.to_thread(db.touch_conversation, conversation["id"])
    return await send_message(message, thread_id, agent.get("assistant_id") or "")
