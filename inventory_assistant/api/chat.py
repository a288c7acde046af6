"""API routes for the conversational assistant."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from inventory_assistant.assistant.alerts import compute_alerts
from inventory_assistant.assistant.orchestrator import ChatOrchestrator
from inventory_assistant.assistant.types import CallerContext
from inventory_assistant.core.errors import EnrichmentError
from inventory_assistant.inventory.base import InventoryRepository
from inventory_assistant.memory.store import SessionStore

ANONYMOUS_USER = "anonymous"


def caller_from_request(request: Request) -> CallerContext:
    """Resolve identity headers set by the upstream auth gateway."""

    user_id = (request.headers.get("x-user-id") or "").strip() or ANONYMOUS_USER
    raw_roles = request.headers.get("x-user-roles") or ""
    roles = tuple(role.strip() for role in raw_roles.split(",") if role.strip())
    return CallerContext(user_id=user_id, roles=roles)


def create_chat_router(
    orchestrator: ChatOrchestrator,
    store: SessionStore,
    repository: InventoryRepository,
    *,
    high_usage_threshold: int,
) -> APIRouter:
    router = APIRouter(prefix="/chat", tags=["chat"])

    @router.post("")
    async def chat_endpoint(payload: dict, request: Request) -> dict:
        message = payload.get("message")
        if not isinstance(message, str):
            raise HTTPException(status_code=400, detail="message is required")

        reply = await orchestrator.ask(message, caller_from_request(request))
        return reply.to_dict()

    @router.get("/history")
    async def history_endpoint(request: Request) -> dict:
        caller = caller_from_request(request)
        return {
            "user_id": caller.user_id,
            "messages": [message.to_dict() for message in store.get_history(caller.user_id)],
            "session": store.get_session_data(caller.user_id),
        }

    @router.delete("/history")
    async def clear_history_endpoint(request: Request) -> dict:
        caller = caller_from_request(request)
        store.clear(caller.user_id)
        return {"user_id": caller.user_id, "cleared": True}

    @router.get("/alerts")
    async def alerts_endpoint() -> dict:
        try:
            alerts = await compute_alerts(repository, high_usage_threshold=high_usage_threshold)
        except EnrichmentError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return {"alerts": [alert.to_dict() for alert in alerts]}

    return router
