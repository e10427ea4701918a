"""Data models for SnapDeck."""

from .card import CardEntry, DeckType, QAEntry, VocabularyEntry

__all__ = ['CardEntry', 'DeckType', 'QAEntry', 'VocabularyEntry']
