"""Per-message pipeline: classify, enrich, prompt, generate or fall back, persist."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from inventory_assistant.core.errors import EnrichmentError
from inventory_assistant.core.metrics import MetricsCollector
from inventory_assistant.intents.base import IntentClassifier
from inventory_assistant.intents.types import Intent, IntentClassification
from inventory_assistant.inventory.base import InventoryRepository
from inventory_assistant.memory.models import ConversationMessage
from inventory_assistant.memory.store import SessionStore

from .alerts import DEFAULT_HIGH_USAGE_THRESHOLD, alerts_instruction, compute_alerts
from .context import BASE_INSTRUCTION, PromptContext, build_context
from .enrichment import DataEnricher, enrichment_instruction
from .fallback import fallback_reply
from .generation import GenerationClient
from .types import CallerContext, ChatReply, ReplySource

logger = logging.getLogger("inventory.assistant")


class ChatOrchestrator:
    """Turns a user message into a :class:`ChatReply`; ``ask`` never raises."""

    def __init__(
        self,
        *,
        store: SessionStore,
        classifier: IntentClassifier,
        repository: InventoryRepository,
        generator: GenerationClient,
        metrics: MetricsCollector | None = None,
        base_instruction: str = BASE_INSTRUCTION,
        high_usage_threshold: int = DEFAULT_HIGH_USAGE_THRESHOLD,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._store = store
        self._classifier = classifier
        self._repository = repository
        self._enricher = DataEnricher(repository)
        self._generator = generator
        self._metrics = metrics
        self._base_instruction = base_instruction
        self._high_usage_threshold = high_usage_threshold
        self._clock = clock

    async def ask(self, message: str, caller: CallerContext) -> ChatReply:
        text = message if isinstance(message, str) else ""
        intent = Intent.GENERAL_HELP
        try:
            classification = self._classifier.classify(text)
            intent = classification.intent
            reply = await self._run_turn(text, caller, classification)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Chat turn failed for user %s", caller.user_id)
            reply = ChatReply(reply=fallback_reply(text), source=ReplySource.FALLBACK, error=str(exc) or repr(exc))

        if self._metrics is not None:
            self._metrics.record_request(intent.value, reply.source.value)
        return reply

    async def _run_turn(
        self,
        text: str,
        caller: CallerContext,
        classification: IntentClassification,
    ) -> ChatReply:
        instruction = self._base_instruction

        if self._enricher.is_relevant(text, classification):
            try:
                enrichment = await self._enricher.enrich(text, classification)
                instruction = f"{instruction}\n\n{enrichment_instruction(enrichment)}"
            except EnrichmentError as exc:
                logger.warning("Skipping inventory enrichment: %s", exc)

        if classification.intent is Intent.LOW_STOCK_ALERT:
            try:
                alerts = await compute_alerts(self._repository, self._clock(), self._high_usage_threshold)
                if alerts:
                    instruction = f"{instruction}\n\n{alerts_instruction(alerts)}"
            except EnrichmentError as exc:
                logger.warning("Skipping alert summary: %s", exc)

        if classification.item_name:
            self._store.set_session_data(caller.user_id, "last_search", classification.item_name)

        history = self._store.get_history(caller.user_id)
        session_data = self._store.get_session_data(caller.user_id)
        system_prompt = build_context(
            instruction,
            PromptContext(roles=caller.roles, history=history, session_data=session_data),
        )

        result = await self._generator.generate(system_prompt, history, text)
        if result.ok:
            reply = ChatReply(
                reply=result.content,
                source=ReplySource.AI,
                confidence=classification.confidence,
            )
        else:
            reason = result.failure.value if result.failure else "unknown"
            logger.warning("Using fallback reply (%s): %s", reason, result.error)
            if self._metrics is not None:
                self._metrics.record_fallback(reason)
            reply = ChatReply(
                reply=fallback_reply(text),
                source=ReplySource.FALLBACK,
                error=result.error,
                confidence=classification.confidence,
            )

        self._store.add_messages(
            caller.user_id,
            [
                ConversationMessage(role="user", content=text),
                ConversationMessage(
                    role="assistant",
                    content=reply.reply,
                    metadata={"intent": classification.intent.value, "source": reply.source.value},
                ),
            ],
        )
        return reply
