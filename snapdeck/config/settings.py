"""Global settings and configuration."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load from project root
_env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(_env_path)


class Config:
    """
    Application-wide configuration.

    Values are read from the environment once at import time. API keys are not
    stored here: providers read them when a request is made.
    """

    # Model service
    AI_PROVIDER: str = os.environ.get("AI_PROVIDER", "gemini").lower()
    AI_MODEL: str = os.environ.get("AI_MODEL", "")
    AI_BASE_URL: str = os.environ.get("AI_BASE_URL", "")
    AI_TIMEOUT: int = int(os.environ.get("AI_TIMEOUT", "60"))
    AI_TEMPERATURE: float = float(os.environ.get("AI_TEMPERATURE", "0.4"))

    # Deck service (relay endpoint the client talks to)
    DECK_SERVICE_URL: str = os.environ.get(
        "DECK_SERVICE_URL", "http://127.0.0.1:8787/anki-proxy"
    )
    DECK_SERVICE_TIMEOUT: int = int(os.environ.get("DECK_SERVICE_TIMEOUT", "30"))

    # Relay -> conversion backend
    DECK_BACKEND_URL: str = os.environ.get(
        "DECK_BACKEND_URL", "https://dianjeol.pythonanywhere.com/api/convert-direct"
    )
    RELAY_HOST: str = os.environ.get("RELAY_HOST", "127.0.0.1")
    RELAY_PORT: int = int(os.environ.get("RELAY_PORT", "8787"))

    # Deck naming
    DEFAULT_DECK_NAME: str = "Default Deck"
    DEFAULT_PACKAGE_NAME: str = "Anki-Cards"
    DECK_NAME_SAMPLE_CHARS: int = 500

    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()

    # BASE_DIR is the project root (parent of snapdeck/)
    BASE_DIR: Path = Path(__file__).parent.parent.parent.resolve()
    OUTPUT_DIR: str = os.environ.get("OUTPUT_DIR", str(BASE_DIR / "data" / "output"))
