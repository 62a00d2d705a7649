"""
API route aggregator: register endpoints; no logic, only delegate to services via handlers.
"""

import logging

from fastapi import APIRouter

from app.api.handlers import call_service
from app.schemas.agent import AgentCreated, AgentOut, AgentRequest
from app.schemas.common import ApiResponse, MessageResponse
from app.schemas.conversation import ConversationOut, ReplyOut, SendMessageRequest
from app.services import agent_service, conversation_service

logger = logging.getLogger(__name__)
router = APIRouter()


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "Agent conversation backend running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Agents ---

@router.post(
    "/v1/agents",
    response_model=ApiResponse,
    tags=["agents"],
    summary="Create an agent",
    description="Creates a vector store and an assistant bound to it, then stores the agent. 503 if the assistant API is unavailable.",
)
async def create_agent(body: AgentRequest) -> ApiResponse:
    agent_id = await call_service(
        "routes.create_agent", agent_service.create_agent(body.name, body.instructions)
    )
    return ApiResponse(status=200, message="Agent created successfully", data=AgentCreated(id=agent_id))


@router.get("/v1/agents", response_model=ApiResponse, tags=["agents"], summary="List agents (newest first)")
async def list_agents() -> ApiResponse:
    agents = await call_service("routes.list_agents", agent_service.list_agents())
    return ApiResponse(
        status=200,
        message="Agents fetched successfully",
        data=[AgentOut(**a) for a in agents],
    )


@router.get("/v1/agents/{agent_id}", response_model=ApiResponse, tags=["agents"], summary="Get an agent")
async def get_agent(agent_id: int) -> ApiResponse:
    agent = await call_service("routes.get_agent", agent_service.get_agent(agent_id))
    return ApiResponse(status=200, message="Agent fetched successfully", data=AgentOut(**agent))


@router.patch(
    "/v1/agents/{agent_id}",
    response_model=MessageResponse,
    tags=["agents"],
    summary="Update an agent's name and instructions",
    description="The remote assistant is only updated when the sanitized name or instructions changed.",
)
async def update_agent(agent_id: int, body: AgentRequest) -> MessageResponse:
    await call_service(
        "routes.update_agent", agent_service.update_agent(agent_id, body.name, body.instructions)
    )
    return MessageResponse(status=200, message="Agent updated successfully")


@router.delete(
    "/v1/agents/{agent_id}",
    response_model=MessageResponse,
    tags=["agents"],
    summary="Delete an agent",
    description="Remote vector store, assistant and thread are removed best-effort; the agent row is always removed.",
)
async def delete_agent(agent_id: int) -> MessageResponse:
    await call_service("routes.delete_agent", agent_service.delete_agent(agent_id))
    return MessageResponse(status=200, message="Agent deleted successfully")


# --- Conversations ---

@router.get(
    "/v1/conversations/agent/{agent_id}",
    response_model=ApiResponse,
    tags=["conversations"],
    summary="Get (or create) the agent's conversation thread",
)
async def get_conversation_by_agent(agent_id: int) -> ApiResponse:
    result = await call_service(
        "routes.get_conversation_by_agent",
        conversation_service.get_or_create_conversation(agent_id),
    )
    return ApiResponse(
        status=200,
        message="Conversations fetched successfully",
        data=ConversationOut(thread_id=result["thread_id"], agent=AgentOut(**result["agent"])),
    )


@router.get(
    "/v1/conversations/thread/{thread_id}/history",
    response_model=ApiResponse,
    tags=["conversations"],
    summary="First messages of a thread (oldest first)",
)
async def get_message_history(thread_id: str) -> ApiResponse:
    messages = await call_service(
        "routes.get_message_history", conversation_service.get_message_history(thread_id)
    )
    return ApiResponse(status=200, message="Message history fetched successfully", data=messages)


@router.post(
    "/v1/conversations",
    response_model=ApiResponse,
    tags=["conversations"],
    summary="Send a message to an agent and wait for its reply",
    description=(
        "Posts the message to the thread, runs the agent's assistant and returns the reply with citations removed. "
        "400 invalid input, 404 unknown agent/thread, 502 run failed, 503 assistant API unavailable, "
        "500 reply not found, 504 deadline exceeded."
    ),
)
async def send_message_to_agent(body: SendMessageRequest) -> ApiResponse:
    logger.info("[api:send_message_to_agent] IN  agent_id=%s thread_id=%s", body.agent_id, body.thread_id)
    answer = await call_service(
        "routes.send_message_to_agent",
        conversation_service.send_message_to_agent(body.agent_id, body.thread_id, body.message),
        exchange_reported=True,
    )
    logger.info("[api:send_message_to_agent] OUT answer_len=%d", len(answer))
    return ApiResponse(status=200, message="Message has been sent and replied!", data=ReplyOut(message=answer))
