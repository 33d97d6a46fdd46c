"""OpenRouter provider access for task2model."""

from .base import Endpoint, Model, Pricing, ProviderResult, per_million, per_token
from .openrouter import (
    DEFAULT_EMBEDDING_MODEL,
    EMBEDDING_BATCH_SIZE,
    OPENROUTER_BASE_URL,
    OpenRouterClient,
)

__all__ = [
    "DEFAULT_EMBEDDING_MODEL",
    "EMBEDDING_BATCH_SIZE",
    "Endpoint",
    "Model",
    "OPENROUTER_BASE_URL",
    "OpenRouterClient",
    "Pricing",
    "ProviderResult",
    "per_million",
    "per_token",
]
