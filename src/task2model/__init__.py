"""task2model - recommend OpenRouter models for a natural-language task."""

__version__ = "1.5.0"
