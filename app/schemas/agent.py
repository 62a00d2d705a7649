"""Schemas for the agent endpoints."""

from pydantic import BaseModel, Field


class AgentRequest(BaseModel):
    """Request body for POST /v1/agents and PATCH /v1/agents/{id}."""

    name: str = Field(..., min_length=1, description="Display name; sanitized into the assistant name.")
    instructions: str = Field(..., min_length=1, description="System instructions for the assistant. HTML is stripped.")

    model_config = {
        "json_schema_extra": {
            "examples": [{"name": "Support Bot", "instructions": "Answer questions using the attached documents."}]
        }
    }


class AgentOut(BaseModel):
    """Stored agent row."""

    id: int
    name: str
    instructions: str
    assistant_id: str | None = None
    vector_store_id: str | None = None
    created_at: str
    updated_at: str


class AgentCreated(BaseModel):
    id: int = Field(..., description="Id of the new agent row.")
