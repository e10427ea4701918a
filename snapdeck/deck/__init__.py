"""Deck submission module."""

from .client import (
    DeckServiceClient,
    build_payload,
    classify_response,
    classify_transport_error,
)
from .selection import SelectionEditor

__all__ = [
    'DeckServiceClient',
    'SelectionEditor',
    'build_payload',
    'classify_response',
    'classify_transport_error',
]
