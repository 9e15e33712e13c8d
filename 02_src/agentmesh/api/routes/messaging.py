"""Messaging API routes."""

from typing import Any, Literal

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException

from ...models import Message, parse_state_action
from ...runtime import Runtime


class MessageRequest(BaseModel):
    """Request model for sending a message to an agent."""

    sender: str
    recipient: str | None = None  # defaults to the addressed agent
    payload: Any = None


class MessageAccepted(BaseModel):
    """Response model for an enqueued message."""

    message_id: str


class StateActionRequest(BaseModel):
    """Request model for a direct state action."""

    action: Literal["store", "get", "delete", "clear", "list"]
    key: str | None = None
    value: Any = None


def create_messaging_router(runtime: Runtime) -> APIRouter:
    """Create messaging router."""
    router = APIRouter(prefix="/api/agents", tags=["messaging"])

    def _enqueue(agent_id: str, message: Message) -> dict:
        try:
            runtime.send(agent_id, message)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Agent {agent_id} not found")
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return {"message_id": message.id}

    @router.post("/{agent_id}/messages", response_model=MessageAccepted, status_code=202)
    async def send_message(agent_id: str, request: MessageRequest) -> dict:
        """Enqueue a message in an agent's mailbox."""
        message = Message.create(
            sender=request.sender,
            recipient=request.recipient or agent_id,
            payload=request.payload,
        )
        return _enqueue(agent_id, message)

    @router.post("/{agent_id}/state-actions", response_model=MessageAccepted, status_code=202)
    async def send_state_action(agent_id: str, request: StateActionRequest) -> dict:
        """Enqueue a state action for an agent."""
        payload: dict[str, Any] = {"state_action": request.action}
        if request.key is not None:
            payload["key"] = request.key
        if request.action == "store":
            payload["value"] = request.value
        if parse_state_action(payload) is None:
            raise HTTPException(
                status_code=422, detail=f"State action '{request.action}' requires a key"
            )

        message = Message.create(sender="api", recipient=agent_id, payload=payload)
        return _enqueue(agent_id, message)

    return router
