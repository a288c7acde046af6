"""Intent classifier abstract base class."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .types import IntentClassification


class IntentClassifier(ABC):
    """Maps free text to an intent with extracted entities."""

    @abstractmethod
    def classify(self, text: str) -> IntentClassification:
        """Return the classification for a single message."""

    @abstractmethod
    def describe(self) -> str:
        """Human-readable summary of classifier strategy."""
