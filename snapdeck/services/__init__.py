"""Services layer for model access."""

from .ai_service import AIService, AIProvider, AIConfig, create_ai_service

__all__ = [
    "AIService",
    "AIProvider",
    "AIConfig",
    "create_ai_service",
]
