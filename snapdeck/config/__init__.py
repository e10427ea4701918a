"""Configuration module for SnapDeck."""

from .settings import Config
from .languages import LANGUAGES, Language, get_language

__all__ = [
    'Config',
    'LANGUAGES',
    'Language',
    'get_language',
]
