"""
AI Service - LLM Integration for Flashcard Extraction.

Provides abstraction over multiple LLM providers (Gemini, OpenAI-compatible,
local Ollama models) for the steps of the card workflow:
- Reading text out of a photographed page
- Suggesting a deck name
- Extracting vocabulary with base forms
- Generating question/answer pairs
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import aiohttp

from ..config import Config, Language
from ..errors import ConfigurationError, ExtractionError
from ..models import QAEntry, VocabularyEntry
from ..utils.images import EncodedImage
from ..utils.parsing import TextParser, parse_qa, parse_vocabulary

logger = logging.getLogger(__name__)


class AIProvider(Enum):
    """Supported AI providers."""
    GEMINI = "gemini"
    OPENAI = "openai"
    OLLAMA = "ollama"  # Local models


MODEL_DEFAULTS = {
    AIProvider.GEMINI: "gemini-2.0-flash-exp",
    AIProvider.OPENAI: "gpt-4o-mini",
    AIProvider.OLLAMA: "llava",
}


@dataclass
class AIConfig:
    """Configuration for AI service."""
    provider: AIProvider = AIProvider.GEMINI
    model: str = MODEL_DEFAULTS[AIProvider.GEMINI]
    # None means "read the provider's environment variable on every call"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    temperature: float = 0.4
    timeout: int = 60


class BaseAIProvider(ABC):
    """Abstract base class for AI providers."""

    NAME = "AI"
    API_KEY_ENV: Optional[str] = None

    def __init__(self, config: AIConfig):
        self.config = config
        self._session: Optional[aiohttp.ClientSession] = None

    def _api_key(self) -> str:
        """Resolve the API key, failing before any request is made."""
        key = self.config.api_key or (os.environ.get(self.API_KEY_ENV) if self.API_KEY_ENV else None)
        if not key:
            raise ConfigurationError(
                f"{self.NAME} API key missing - set {self.API_KEY_ENV} in the environment or .env"
            )
        return key

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        """Close the session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def _post_json(self, url: str, payload: dict, headers: Optional[dict] = None,
                         params: Optional[dict] = None) -> dict:
        """POST a JSON payload and return the decoded JSON reply."""
        session = await self._get_session()
        try:
            async with session.post(url, json=payload, headers=headers, params=params) as response:
                if response.status == 200:
                    try:
                        return await response.json(content_type=None)
                    except ValueError:
                        raise ExtractionError(f"{self.NAME} API returned invalid JSON")
                error = await response.text()
                raise ExtractionError(f"{self.NAME} API error {response.status}: {error[:200]}")
        except asyncio.TimeoutError:
            raise ExtractionError(f"{self.NAME} API timeout")
        except aiohttp.ClientError as e:
            raise ExtractionError(f"{self.NAME} API unreachable: {e}")

    @abstractmethod
    async def complete(self, prompt: str, image: Optional[EncodedImage] = None) -> str:
        """Generate completion for the given prompt (and optional image)."""
        pass


class GeminiProvider(BaseAIProvider):
    """Google Gemini generateContent API."""

    NAME = "Gemini"
    API_KEY_ENV = "GEMINI_API_KEY"
    DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

    async def complete(self, prompt: str, image: Optional[EncodedImage] = None) -> str:
        """Generate completion using Gemini."""
        api_key = self._api_key()

        base_url = self.config.base_url or self.DEFAULT_BASE_URL
        url = f"{base_url}/models/{self.config.model}:generateContent"

        parts = [{"text": prompt}]
        if image:
            parts.append({"inlineData": {"mimeType": image.mime_type, "data": image.data}})

        payload = {
            "contents": [{"parts": parts}],
            "generationConfig": {"temperature": self.config.temperature},
        }

        data = await self._post_json(url, payload, params={"key": api_key})
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            text = None
        if not text:
            raise ExtractionError("No response from Gemini.")
        return text


class OpenAIProvider(BaseAIProvider):
    """OpenAI API provider (also works with compatible APIs)."""

    NAME = "OpenAI"
    API_KEY_ENV = "OPENAI_API_KEY"
    DEFAULT_BASE_URL = "https://api.openai.com/v1"

    async def complete(self, prompt: str, image: Optional[EncodedImage] = None) -> str:
        """Generate completion using OpenAI API."""
        api_key = self._api_key()

        base_url = self.config.base_url or self.DEFAULT_BASE_URL
        url = f"{base_url}/chat/completions"

        if image:
            content = [
                {"type": "text", "text": prompt},
                {"type": "image_url",
                 "image_url": {"url": f"data:{image.mime_type};base64,{image.data}"}},
            ]
        else:
            content = prompt

        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

        payload = {
            "model": self.config.model,
            "messages": [{"role": "user", "content": content}],
            "temperature": self.config.temperature,
        }

        data = await self._post_json(url, payload, headers=headers)
        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            text = None
        if not text:
            raise ExtractionError("No response from OpenAI.")
        return text


class OllamaProvider(BaseAIProvider):
    """Ollama local model provider."""

    NAME = "Ollama"
    DEFAULT_BASE_URL = "http://localhost:11434"

    def _api_key(self) -> str:
        return ""  # Ollama doesn't need API key

    async def complete(self, prompt: str, image: Optional[EncodedImage] = None) -> str:
        """Generate completion using local Ollama."""
        base_url = self.config.base_url or self.DEFAULT_BASE_URL
        url = f"{base_url}/api/generate"

        payload = {
            "model": self.config.model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": self.config.temperature,
            },
        }
        if image:
            payload["images"] = [image.data]

        data = await self._post_json(url, payload)
        text = data.get("response", "")
        if not text:
            raise ExtractionError("No response from Ollama.")
        return text


PROVIDER_CLASSES = {
    AIProvider.GEMINI: GeminiProvider,
    AIProvider.OPENAI: OpenAIProvider,
    AIProvider.OLLAMA: OllamaProvider,
}


class AIService:
    """
    High-level AI service for the card workflow.

    Each task method builds its prompt, calls the provider and, where the
    answer has structure, hands it to the normalizer. Failures propagate as
    ExtractionError / ConfigurationError so the workflow can report them.
    """

    PROMPTS = {
        "image_text": (
            "Please analyze this image and extract any text or words you can find. "
            "Format the output as a simple list of words."
        ),

        "deck_name": """Based on this text content, suggest a short, meaningful deck name (max 3-4 words) in {language}. The name should reflect the main topic or theme. Return ONLY the name, nothing else:

{sample}...""",

        "vocabulary": """Extract vocabulary words from this text and translate them to {language}. For each word:
1. Convert it to its base/dictionary form (lemma). For example:
   - German "gemeinsamen" or "gemeinsames" -> "gemeinsam"
   - German "gehst", "ging", "gegangen" -> "gehen"
   - English "running", "ran" -> "run"
2. Keep the original word in parentheses if it differs from the base form.

Return ONLY a simple list where each line follows this format:
base_form (original_form);translated_word

If the word is already in its base form, omit the parentheses.
Example format:
gemeinsam (gemeinsamen);common
Haus;house

Here is the text:
{content}""",

        "qa": """You are an expert in creating Anki flashcards. Create question-answer pairs from the following text.
The text is in the original language. Create questions and answers in the original language,
and add {language} translations in parentheses.

Follow these Anki best practices:
- Questions should be specific and clear
- Each question should test one concept
- Answers should be concise
- Avoid yes/no questions
- Use the minimum information principle

Separate pairs with one blank line and format EXACTLY like this:
F: [Original Question] ({language} translation of question)
A: [Original Answer] ({language} translation of answer)

Example format:
F: Wo liegt Paris? (Where is Paris?)
A: Paris liegt in Frankreich (Paris is in France)

Text to process:
{content}""",
    }

    def __init__(self, config: Optional[AIConfig] = None):
        """
        Initialize AI service.

        Args:
            config: AI configuration. If None, uses Config / environment.
        """
        self.config = config or self._config_from_env()
        self._provider: Optional[BaseAIProvider] = None

    def _config_from_env(self) -> AIConfig:
        """Create config from Config (environment)."""
        provider = next(
            (p for p in AIProvider if p.value == Config.AI_PROVIDER), AIProvider.GEMINI
        )
        return AIConfig(
            provider=provider,
            model=Config.AI_MODEL or MODEL_DEFAULTS[provider],
            base_url=Config.AI_BASE_URL or None,
            temperature=Config.AI_TEMPERATURE,
            timeout=Config.AI_TIMEOUT,
        )

    def _get_provider(self) -> BaseAIProvider:
        """Get or create the appropriate provider."""
        if self._provider is None:
            provider_class = PROVIDER_CLASSES.get(self.config.provider, GeminiProvider)
            self._provider = provider_class(self.config)
        return self._provider

    async def close(self) -> None:
        """Close the AI service and release resources."""
        if self._provider:
            await self._provider.close()
            self._provider = None

    async def __aenter__(self) -> "AIService":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def complete(self, prompt: str, image: Optional[EncodedImage] = None) -> str:
        """Send one prompt (optionally with an image) to the configured provider."""
        provider = self._get_provider()
        logger.debug("%s request: %d prompt chars, image=%s",
                     provider.NAME, len(prompt), image is not None)
        return await provider.complete(prompt, image)

    async def extract_text_from_image(self, image: EncodedImage) -> str:
        """Read the words visible in a photographed or uploaded image."""
        text = await self.complete(self.PROMPTS["image_text"], image)
        if not text.strip():
            raise ExtractionError("Invalid API response")
        return text

    async def suggest_deck_name(self, content: str, language: Language) -> str:
        """
        Ask for a short deck name based on the beginning of the content.

        Args:
            content: Source text
            language: Language the name should be in

        Returns:
            Suggested name, or "" if the model gave none (the deck service
            then uses Config.DEFAULT_DECK_NAME and the file Config.DEFAULT_PACKAGE_NAME)
        """
        sample = TextParser.truncate(content, Config.DECK_NAME_SAMPLE_CHARS)
        prompt = self.PROMPTS["deck_name"].format(language=language.name, sample=sample)
        return TextParser.clean_deck_name(await self.complete(prompt))

    async def extract_vocabulary(self, content: str, language: Language) -> List[VocabularyEntry]:
        """Extract vocabulary (with base forms) translated into `language`."""
        prompt = self.PROMPTS["vocabulary"].format(language=language.name, content=content)
        return parse_vocabulary(await self.complete(prompt))

    async def generate_qa_pairs(self, content: str, language: Language) -> List[QAEntry]:
        """Generate question/answer cards with translations into `language`."""
        prompt = self.PROMPTS["qa"].format(language=language.name, content=content)
        return parse_qa(await self.complete(prompt))

    @property
    def is_configured(self) -> bool:
        """Check if AI service is properly configured."""
        try:
            self._get_provider()._api_key()
        except ConfigurationError:
            return False
        return True


def create_ai_service(
    provider: str = "gemini",
    model: Optional[str] = None,
    api_key: Optional[str] = None
) -> AIService:
    """
    Create an AI service with specified configuration.

    Args:
        provider: Provider name (gemini, openai, ollama)
        model: Model name (uses default if None)
        api_key: API key (read from environment at call time if None)

    Returns:
        Configured AIService instance
    """
    provider_enum = next(
        (p for p in AIProvider if p.value == provider.lower()), AIProvider.GEMINI
    )

    config = AIConfig(
        provider=provider_enum,
        model=model or MODEL_DEFAULTS[provider_enum],
        api_key=api_key,
        timeout=Config.AI_TIMEOUT,
    )

    return AIService(config)
