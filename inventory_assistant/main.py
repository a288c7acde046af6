"""FastAPI application entry point for the inventory assistant."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from inventory_assistant.api.chat import create_chat_router
from inventory_assistant.assistant.generation import GenerationClient
from inventory_assistant.assistant.orchestrator import ChatOrchestrator
from inventory_assistant.core.config import get_settings
from inventory_assistant.core.errors import unhandled_exception_handler
from inventory_assistant.core.logging import configure_logging, request_id_middleware
from inventory_assistant.core.metrics import MetricsCollector
from inventory_assistant.intents.classifier import KeywordIntentClassifier
from inventory_assistant.inventory.sqlite import SQLiteInventoryRepository
from inventory_assistant.memory.store import InMemorySessionStore

settings = get_settings()
logger = logging.getLogger("inventory.app")

session_store = InMemorySessionStore(
    ttl_seconds=settings.session_ttl_seconds,
    max_history=settings.session_history_limit,
)
inventory_repository = SQLiteInventoryRepository(settings.inventory_db_path)
classifier = KeywordIntentClassifier()
generation_client = GenerationClient(
    settings.openai_api_key,
    model=settings.openai_model,
    url=settings.completions_url,
    temperature=settings.generation_temperature,
    max_tokens=settings.generation_max_tokens,
    timeout=settings.generation_timeout_seconds,
)
metrics = MetricsCollector()
orchestrator = ChatOrchestrator(
    store=session_store,
    classifier=classifier,
    repository=inventory_repository,
    generator=generation_client,
    metrics=metrics,
    high_usage_threshold=settings.high_usage_threshold,
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    level = configure_logging(settings.log_level)
    logger.info("Logging configured at %s level for %s environment", logging.getLevelName(level), settings.environment)
    if not generation_client.enabled:
        logger.warning("No completion API key configured; every reply will use the rule-based fallback")
    yield


app = FastAPI(title=settings.app_name, version="0.1.0", docs_url="/docs", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(request_id_middleware)

app.include_router(
    create_chat_router(
        orchestrator,
        session_store,
        inventory_repository,
        high_usage_threshold=settings.high_usage_threshold,
    )
)
app.add_exception_handler(Exception, unhandled_exception_handler)


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Return basic service status for monitoring."""

    return {"status": "ok"}


@app.get("/ready", tags=["health"])
async def readiness_probe() -> dict[str, Any]:
    """Readiness endpoint reporting inventory DB and generation availability.

    Generation being disabled only degrades the service: the assistant keeps
    answering through its rule-based fallback.
    """

    inventory_ok = await asyncio.to_thread(inventory_repository.is_ready)
    components = {
        "inventory_db": {"path": str(settings.inventory_db_path), "ok": inventory_ok},
        "generation": {"model": settings.openai_model, "enabled": generation_client.enabled},
        "sessions": {"active": session_store.active_sessions()},
        "classifier": {"strategy": classifier.describe()},
    }

    if not inventory_ok:
        status = "fail"
    elif not generation_client.enabled:
        status = "degraded"
    else:
        status = "ok"

    return {"status": status, "environment": settings.environment, "components": components}


@app.get("/metrics", tags=["metrics"])
async def metrics_endpoint() -> dict:
    snapshot = metrics.snapshot()
    return {
        "total_requests": snapshot.total_requests,
        "intents": snapshot.intents,
        "sources": snapshot.sources,
        "fallback_reasons": snapshot.fallback_reasons,
    }
