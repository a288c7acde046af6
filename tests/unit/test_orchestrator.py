import asyncio

import pytest

from inventory_assistant.assistant.generation import FailureKind, GenerationClient, GenerationResult
from inventory_assistant.assistant.orchestrator import ChatOrchestrator
from inventory_assistant.assistant.types import CallerContext, ReplySource
from inventory_assistant.core.metrics import MetricsCollector
from inventory_assistant.intents.classifier import KeywordIntentClassifier


class StubGenerator:
    def __init__(self, result):
        self.result = result
        self.calls = []

    async def generate(self, system_prompt, history, message):
        self.calls.append({"system_prompt": system_prompt, "history": list(history), "message": message})
        return self.result


class ExplodingClassifier(KeywordIntentClassifier):
    def classify(self, text):
        raise RuntimeError("classifier exploded")


class BrokenRepository:
    async def find_by_name_substring(self, pattern):
        raise RuntimeError("inventory offline")

    async def low_stock_items(self):
        raise RuntimeError("inventory offline")

    async def out_of_stock_count(self):
        raise RuntimeError("inventory offline")

    async def total_count(self):
        raise RuntimeError("inventory offline")

    async def total_quantity(self):
        raise RuntimeError("inventory offline")

    async def high_usage_item_count(self, since, threshold):
        raise RuntimeError("inventory offline")


NURSE = CallerContext(user_id="nurse-1", roles=("Nurse",))


@pytest.fixture()
def metrics():
    return MetricsCollector()


def make_orchestrator(session_store, repository, generator, metrics=None, classifier=None):
    return ChatOrchestrator(
        store=session_store,
        classifier=classifier or KeywordIntentClassifier(),
        repository=repository,
        generator=generator,
        metrics=metrics,
    )


def ask(orchestrator, message, caller=NURSE):
    return asyncio.run(orchestrator.ask(message, caller))


@pytest.mark.parametrize("message", ["", "what's the stock of gauze", "deduct 5 from syringes", "🙂"])
def test_without_api_key_always_falls_back(session_store, inventory_repository, message):
    orchestrator = make_orchestrator(session_store, inventory_repository, GenerationClient(None))

    reply = ask(orchestrator, message)

    assert reply.source is ReplySource.FALLBACK
    assert reply.reply.strip()
    assert "not configured" in reply.error


def test_ai_reply_is_recorded_with_intent(session_store, inventory_repository, metrics):
    generator = StubGenerator(GenerationResult.success("You have 120 gauze pads."))
    orchestrator = make_orchestrator(session_store, inventory_repository, generator, metrics)

    reply = ask(orchestrator, "what's the stock of gauze")

    assert reply.source is ReplySource.AI
    assert reply.reply == "You have 120 gauze pads."
    assert reply.error is None
    assert reply.confidence == pytest.approx(0.8)

    history = session_store.get_history("nurse-1")
    assert [(turn.role, turn.content) for turn in history] == [
        ("user", "what's the stock of gauze"),
        ("assistant", "You have 120 gauze pads."),
    ]
    assert history[1].metadata == {"intent": "check_stock", "source": "ai"}
    assert session_store.get_session_data("nurse-1")["last_search"] == "gauze"
    assert metrics.snapshot().sources == {"ai": 1}


def test_prompt_carries_enrichment_role_and_session(session_store, inventory_repository):
    generator = StubGenerator(GenerationResult.success("ok"))
    orchestrator = make_orchestrator(session_store, inventory_repository, generator)

    ask(orchestrator, "what's the stock of gauze")
    ask(orchestrator, "and how many syringes do we have?")

    prompt = generator.calls[-1]["system_prompt"]
    assert '"Syringes 5ml"' in prompt
    assert "use these figures exactly" in prompt
    assert "can modify inventory" in prompt
    assert "previously searched for: syringes" in prompt
    assert "- user: what's the stock of gauze" in prompt
    assert generator.calls[-1]["message"] == "and how many syringes do we have?"
    assert len(generator.calls[-1]["history"]) == 2


def test_low_stock_alert_adds_alerts(session_store, inventory_repository):
    generator = StubGenerator(GenerationResult.success("ok"))
    orchestrator = make_orchestrator(session_store, inventory_repository, generator)

    ask(orchestrator, "any shortage alert?")

    prompt = generator.calls[0]["system_prompt"]
    assert '"type": "low_stock"' in prompt
    assert "Active inventory alerts:" in prompt
    assert "1 item out of stock" in prompt


def test_enrichment_failure_does_not_abort_turn(session_store):
    generator = StubGenerator(GenerationResult.success("Let me help with that."))
    orchestrator = make_orchestrator(session_store, BrokenRepository(), generator)

    reply = ask(orchestrator, "show me low stock alerts")

    assert reply.source is ReplySource.AI
    assert "Current inventory data" not in generator.calls[0]["system_prompt"]
    assert "Active inventory alerts" not in generator.calls[0]["system_prompt"]


def test_generation_failure_falls_back_with_error(session_store, inventory_repository, metrics):
    generator = StubGenerator(GenerationResult.failed(FailureKind.UPSTREAM, "AI error (429): Rate limit"))
    orchestrator = make_orchestrator(session_store, inventory_repository, generator, metrics)

    reply = ask(orchestrator, "deduct 5 from syringes because ER shortage")

    assert reply.source is ReplySource.FALLBACK
    assert reply.error == "AI error (429): Rate limit"
    assert "To deduct 5 from 'syringes'" in reply.reply
    assert session_store.get_history("nurse-1")[-1].metadata["source"] == "fallback"
    assert metrics.snapshot().fallback_reasons == {"upstream": 1}


def test_unexpected_exception_becomes_fallback_reply(session_store, inventory_repository):
    generator = StubGenerator(GenerationResult.success("unused"))
    orchestrator = make_orchestrator(
        session_store, inventory_repository, generator, classifier=ExplodingClassifier()
    )

    reply = ask(orchestrator, "stock of gauze")

    assert reply.source is ReplySource.FALLBACK
    assert reply.error == "classifier exploded"
    assert "'gauze'" in reply.reply
    assert generator.calls == []


def test_history_stays_bounded_across_turns(session_store, inventory_repository):
    orchestrator = make_orchestrator(session_store, inventory_repository, GenerationClient(None))

    for index in range(7):
        ask(orchestrator, f"question {index}")

    history = session_store.get_history("nurse-1")
    assert len(history) == 10
    assert history[0].content == "question 2"


def test_users_have_separate_sessions(session_store, inventory_repository):
    orchestrator = make_orchestrator(session_store, inventory_repository, GenerationClient(None))

    ask(orchestrator, "stock of gauze", CallerContext(user_id="alice"))

    assert session_store.get_history("bob") == []
    assert "last_search" not in session_store.get_session_data("bob")
