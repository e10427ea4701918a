"""SnapDeck - Anki flashcards from text and photos"""

__version__ = "1.0.0"

from .config import Config, LANGUAGES, Language
from .deck import DeckServiceClient, SelectionEditor, build_payload
from .models import DeckType, QAEntry, VocabularyEntry
from .services import AIService
from .utils.parsing import parse_qa, parse_vocabulary
from .workflow import Step, Workflow, WorkflowState

__all__ = [
    'Config',
    'LANGUAGES',
    'Language',
    'DeckServiceClient',
    'SelectionEditor',
    'build_payload',
    'DeckType',
    'QAEntry',
    'VocabularyEntry',
    'AIService',
    'parse_qa',
    'parse_vocabulary',
    'Step',
    'Workflow',
    'WorkflowState',
]
