import threading

from inventory_assistant.memory.models import ConversationMessage
from inventory_assistant.memory.store import InMemorySessionStore


def message(content, role="user"):
    return ConversationMessage(role=role, content=content)


def test_history_keeps_ten_most_recent_in_order(session_store):
    for index in range(15):
        session_store.add_message("nurse-1", message(f"msg {index}"))

    history = session_store.get_history("nurse-1")

    assert [turn.content for turn in history] == [f"msg {index}" for index in range(5, 15)]


def test_add_messages_truncates_after_batch(session_store):
    session_store.add_messages("nurse-1", [message(str(index)) for index in range(9)])
    session_store.add_messages("nurse-1", [message("user"), message("assistant", role="assistant")])

    history = session_store.get_history("nurse-1")

    assert len(history) == 10
    assert history[0].content == "1"
    assert history[-1].role == "assistant"


def test_unknown_user_has_empty_state(session_store):
    assert session_store.get_history("nobody") == []
    assert session_store.get_session_data("nobody") == {}


def test_session_data_round_trip(session_store):
    session_store.set_session_data("nurse-1", "last_search", "bandages")

    assert session_store.get_session_data("nurse-1")["last_search"] == "bandages"


def test_clear_is_idempotent(session_store):
    session_store.add_message("nurse-1", message("hello"))
    session_store.set_session_data("nurse-1", "last_search", "gauze")

    session_store.clear("nurse-1")
    assert session_store.get_history("nurse-1") == []
    assert session_store.get_session_data("nurse-1") == {}

    session_store.clear("nurse-1")
    assert session_store.get_history("nurse-1") == []


def test_session_expires_after_inactivity(session_store, clock):
    session_store.add_message("nurse-1", message("hello"))
    session_store.set_session_data("nurse-1", "last_search", "gauze")

    clock.advance(7200 + 1)

    assert session_store.get_history("nurse-1") == []
    assert session_store.get_session_data("nurse-1") == {}


def test_access_slides_expiry(session_store, clock):
    session_store.add_message("nurse-1", message("hello"))

    clock.advance(3600)
    assert len(session_store.get_history("nurse-1")) == 1

    clock.advance(3700)
    assert len(session_store.get_history("nurse-1")) == 1

    clock.advance(7201)
    assert session_store.get_history("nurse-1") == []


def test_users_do_not_share_state(session_store):
    session_store.add_message("alice", message("alice message"))
    session_store.set_session_data("alice", "last_search", "gloves")

    assert session_store.get_history("bob") == []
    assert session_store.get_session_data("bob") == {}


def test_returned_collections_are_copies(session_store):
    session_store.add_message("nurse-1", message("hello"))
    session_store.set_session_data("nurse-1", "last_search", "gauze")

    session_store.get_history("nurse-1").clear()
    session_store.get_session_data("nurse-1")["last_search"] = "changed"

    assert len(session_store.get_history("nurse-1")) == 1
    assert session_store.get_session_data("nurse-1")["last_search"] == "gauze"


def test_concurrent_appends_never_exceed_cap():
    store = InMemorySessionStore(max_history=10)
    errors = []

    def worker(worker_id):
        try:
            for index in range(50):
                store.add_messages(
                    "shared",
                    [message(f"{worker_id}-{index}"), message(f"{worker_id}-{index}-reply", role="assistant")],
                )
                assert len(store.get_history("shared")) <= 10
        except AssertionError as exc:
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(worker_id,)) for worker_id in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    history = store.get_history("shared")
    assert not errors
    assert len(history) == 10
    # Turns are appended atomically, so user/assistant pairs stay adjacent.
    for user_turn, reply_turn in zip(history[::2], history[1::2]):
        assert reply_turn.content == f"{user_turn.content}-reply"


def test_reads_and_clears_do_not_retain_locks(session_store):
    for index in range(500):
        user_id = f"visitor-{index}"
        session_store.get_history(user_id)
        session_store.get_session_data(user_id)
        session_store.clear(user_id)

    assert session_store._locks == {}


def test_locks_follow_record_lifetime(session_store, clock):
    session_store.add_message("nurse-1", message("hello"))
    assert set(session_store._locks) == {"nurse-1"}

    clock.advance(7200 + 1)
    assert session_store.get_history("nurse-1") == []
    assert session_store._locks == {}


def test_expired_sessions_are_swept_when_new_users_arrive(session_store, clock):
    for index in range(50):
        session_store.add_message(f"old-{index}", message("hello"))

    clock.advance(7200 + 1)
    session_store.add_message("newcomer", message("hi"))

    assert set(session_store._records) == {"newcomer"}
    assert set(session_store._locks) == {"newcomer"}
    assert session_store.active_sessions() == 1
