"""Session store abstraction and in-process implementation."""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator

from .models import ConversationMessage, SessionRecord

DEFAULT_TTL_SECONDS = 2 * 60 * 60
DEFAULT_HISTORY_LIMIT = 10


class SessionStore(ABC):
    """Abstract interface for per-user chat history and session data."""

    @abstractmethod
    def get_history(self, user_id: str) -> list[ConversationMessage]:
        """Return the retained history for a user, oldest first."""

    @abstractmethod
    def add_message(self, user_id: str, message: ConversationMessage) -> None:
        """Append a message, evicting the oldest entries past the history limit."""

    @abstractmethod
    def add_messages(self, user_id: str, messages: Iterable[ConversationMessage]) -> None:
        """Append several messages in a single atomic update."""

    @abstractmethod
    def get_session_data(self, user_id: str) -> dict[str, Any]:
        """Return a copy of the user's session key/value data."""

    @abstractmethod
    def set_session_data(self, user_id: str, key: str, value: Any) -> None:
        """Store a single session value for a user."""

    @abstractmethod
    def clear(self, user_id: str) -> None:
        """Drop history and session data for a user."""


class _UserLock:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.holders = 0


class InMemorySessionStore(SessionStore):
    """Process-local session store with sliding expiry and per-user locking.

    Records are created lazily and expire after ``ttl_seconds`` without any
    access. Expiry is checked when a record is touched, and at most once per
    TTL window a new record triggers a sweep of expired ones; nothing runs in
    the background. Each user id gets its own lock so concurrent turns for
    the same user cannot lose updates, while different users never contend.
    A user's lock is dropped once nobody holds it and no record remains.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_history: int = DEFAULT_HISTORY_LIMIT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_history < 1:
            raise ValueError("max_history must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.max_history = max_history
        self._clock = clock
        self._records: dict[str, SessionRecord] = {}
        self._locks: dict[str, _UserLock] = {}
        self._registry_lock = threading.Lock()
        self._next_sweep = clock() + ttl_seconds

    @contextmanager
    def _locked(self, user_id: str) -> Iterator[None]:
        with self._registry_lock:
            entry = self._locks.get(user_id)
            if entry is None:
                entry = self._locks[user_id] = _UserLock()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._registry_lock:
                entry.holders -= 1
                if entry.holders == 0 and user_id not in self._records:
                    del self._locks[user_id]

    def _sweep_expired(self, now: float) -> None:
        """Drop expired records whose users are not currently locked."""

        with self._registry_lock:
            if now < self._next_sweep:
                return
            self._next_sweep = now + self.ttl_seconds
            for user_id, record in list(self._records.items()):
                entry = self._locks.get(user_id)
                if record.expires_at > now or (entry is not None and entry.holders):
                    continue
                del self._records[user_id]
                self._locks.pop(user_id, None)

    def _touch(self, user_id: str, *, create: bool) -> SessionRecord | None:
        """Return the live record for a user and slide its expiry. Caller holds the user lock."""

        now = self._clock()
        record = self._records.get(user_id)
        if record is not None and record.expires_at <= now:
            del self._records[user_id]
            record = None
        if record is None:
            if not create:
                return None
            self._sweep_expired(now)
            record = SessionRecord(expires_at=now + self.ttl_seconds)
            self._records[user_id] = record
        record.expires_at = now + self.ttl_seconds
        return record

    def get_history(self, user_id: str) -> list[ConversationMessage]:
        with self._locked(user_id):
            record = self._touch(user_id, create=False)
            return list(record.history) if record else []

    def add_message(self, user_id: str, message: ConversationMessage) -> None:
        self.add_messages(user_id, [message])

    def add_messages(self, user_id: str, messages: Iterable[ConversationMessage]) -> None:
        with self._locked(user_id):
            record = self._touch(user_id, create=True)
            record.history.extend(messages)
            if len(record.history) > self.max_history:
                del record.history[: len(record.history) - self.max_history]

    def get_session_data(self, user_id: str) -> dict[str, Any]:
        with self._locked(user_id):
            record = self._touch(user_id, create=False)
            return dict(record.session_data) if record else {}

    def set_session_data(self, user_id: str, key: str, value: Any) -> None:
        with self._locked(user_id):
            record = self._touch(user_id, create=True)
            record.session_data[key] = value

    def clear(self, user_id: str) -> None:
        with self._locked(user_id):
            self._records.pop(user_id, None)

    def active_sessions(self) -> int:
        """Count records that have not yet expired."""

        now = self._clock()
        with self._registry_lock:
            return sum(1 for record in list(self._records.values()) if record.expires_at > now)
