"""Schemas for the conversation endpoints."""

from pydantic import BaseModel, Field

from app.schemas.agent import AgentOut


class SendMessageRequest(BaseModel):
    """Request body for POST /v1/conversations."""

    agent_id: int = Field(..., description="Agent whose assistant answers the message.")
    thread_id: str = Field(..., min_length=1, description="Thread id returned by GET /v1/conversations/agent/{id}.")
    message: str = Field(..., min_length=1, description="User message.")


class ConversationOut(BaseModel):
    """Thread bound to an agent."""

    thread_id: str
    agent: AgentOut


class ReplyOut(BaseModel):
    message: str = Field(..., description="Assistant reply with citation markers removed.")
