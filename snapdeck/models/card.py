"""Flashcard entry models."""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, FrozenSet, Optional, Tuple, Union


class DeckType(Enum):
    """Kind of deck the user wants to build."""
    VOCABULARY = "vocabulary"
    QA = "qa"


@dataclass
class VocabularyEntry:
    """A word and its translation."""

    # Surface form as it appeared in the text (or the lemma if identical)
    original: str
    translated: str
    # Dictionary form, only set when it differs from `original`
    base_form: Optional[str] = None
    selected: bool = True

    kind: ClassVar[DeckType] = DeckType.VOCABULARY
    EDITABLE_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"original", "translated", "base_form"})

    def card_pair(self) -> Tuple[str, str]:
        """Front/back text as sent to the deck service."""
        return self.translated, self.original


@dataclass
class QAEntry:
    """A question and its answer."""

    question: str
    answer: str
    selected: bool = True

    kind: ClassVar[DeckType] = DeckType.QA
    EDITABLE_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"question", "answer"})

    def card_pair(self) -> Tuple[str, str]:
        """Front/back text as sent to the deck service."""
        return self.question, self.answer


CardEntry = Union[VocabularyEntry, QAEntry]
