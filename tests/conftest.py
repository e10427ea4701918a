"""Shared fixtures: fake model service and fake deck client."""

import os
from pathlib import Path
from typing import List, Optional
from unittest.mock import patch

import pytest

from snapdeck.errors import ExtractionError
from snapdeck.utils.parsing import parse_qa, parse_vocabulary


VOCAB_ANSWER = "gemeinsam (gemeinsamen);common\nHaus;house\ngehen (ging);to go"
QA_ANSWER = (
    "F: Wo liegt Paris? (Where is Paris?)\nA: In Frankreich (In France)\n\n"
    "F: Was ist die Hauptstadt? (What is the capital?)\nA: Berlin (Berlin)"
)


class FakeAIService:
    """Stands in for AIService; records prompts and can be told to fail."""

    def __init__(self, vocab_answer: str = VOCAB_ANSWER, qa_answer: str = QA_ANSWER,
                 deck_name: str = "Deutsch Basics", image_text: str = "Haus Baum Katze"):
        self.vocab_answer = vocab_answer
        self.qa_answer = qa_answer
        self.deck_name = deck_name
        self.image_text = image_text
        self.fail_with: Optional[Exception] = None
        self.calls: List[str] = []
        self.closed = False

    def _check(self, name: str) -> None:
        self.calls.append(name)
        if self.fail_with is not None:
            raise self.fail_with

    async def extract_text_from_image(self, image):
        self._check("extract_text_from_image")
        return self.image_text

    async def suggest_deck_name(self, content, language):
        self._check("suggest_deck_name")
        return self.deck_name

    async def extract_vocabulary(self, content, language):
        self._check("extract_vocabulary")
        return parse_vocabulary(self.vocab_answer)

    async def generate_qa_pairs(self, content, language):
        self._check("generate_qa_pairs")
        return parse_qa(self.qa_answer)

    async def close(self):
        self.closed = True


class FakeDeckClient:
    """Stands in for DeckServiceClient."""

    def __init__(self, output_dir: Path):
        self.output_dir = output_dir
        self.submissions = []
        self.fail_with: Optional[Exception] = None
        self.closed = False

    async def submit_deck(self, entries, deck_name=None):
        self.submissions.append((tuple(entries), deck_name))
        if self.fail_with is not None:
            raise self.fail_with
        return self.output_dir / f"{deck_name}.apkg"

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_ai() -> FakeAIService:
    return FakeAIService()


@pytest.fixture
def fake_deck_client(tmp_path) -> FakeDeckClient:
    return FakeDeckClient(tmp_path)


@pytest.fixture
def no_api_keys():
    """Environment without any model API key."""
    env = {k: v for k, v in os.environ.items() if k not in ("GEMINI_API_KEY", "OPENAI_API_KEY")}
    with patch.dict(os.environ, env, clear=True):
        yield


@pytest.fixture
def extraction_failure() -> ExtractionError:
    return ExtractionError("Gemini API error 503: overloaded")
