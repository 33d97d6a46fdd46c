"""Embedding-based similarity between a task and model descriptions."""

import logging
import math
from dataclasses import dataclass, field
from typing import Sequence

from ..errors import Task2ModelError
from ..providers.base import Model
from ..providers.openrouter import DEFAULT_EMBEDDING_MODEL, OpenRouterClient
from .model_cache import EmbeddingCache

logger = logging.getLogger(__name__)

NEUTRAL_SIMILARITY = 0.5


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Raw cosine similarity in [-1, 1]; 0 for zero-magnitude vectors."""
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    magnitude = norm_a * norm_b
    return 0.0 if magnitude == 0 else dot / magnitude


def normalized_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity mapped to [0, 1]; vectors of different length score 0."""
    if len(a) != len(b):
        return 0.0
    return (cosine_similarity(a, b) + 1) / 2


def embedding_text(model: Model) -> str:
    """Descriptive text embedded for each model."""
    parts = [
        model.name,
        f"by {model.provider}",
        model.description,
        f"Supports: {', '.join(model.supported_parameters) or 'none'}",
        f"Input: {', '.join(model.input_modalities)}",
        f"Output: {', '.join(model.output_modalities)}",
        f"Context: {model.context_length} tokens",
    ]
    return ". ".join(p for p in parts if p)


@dataclass
class SemanticResult:
    scores: dict[str, float] = field(default_factory=dict)
    available: bool = False
    notes: list[str] = field(default_factory=list)

    def score_for(self, model_id: str, default: float = NEUTRAL_SIMILARITY) -> float:
        return self.scores.get(model_id, default)


class SemanticMatcher:
    """Scores models by similarity between the task text and model descriptions.

    Model vectors are cached by id until the embedding TTL lapses; the task
    vector is embedded on every call. Any failure degrades to a neutral score
    instead of failing the recommendation. Models whose embedding failed are
    simply missing from the cache and are retried on the next call.
    """

    def __init__(
        self,
        client: OpenRouterClient,
        cache: EmbeddingCache,
        embedding_model: str = DEFAULT_EMBEDDING_MODEL,
        neutral_score: float = NEUTRAL_SIMILARITY,
    ):
        self.client = client
        self.cache = cache
        self.embedding_model = embedding_model
        self.neutral_score = neutral_score

    def _neutral(self, models: list[Model], note: str) -> SemanticResult:
        return SemanticResult(
            scores={m.id: self.neutral_score for m in models}, available=False, notes=[note]
        )

    async def ensure_embeddings(self, models: list[Model]) -> list[str]:
        """Embed models missing from the cache, merging each batch as it arrives.

        Returns:
            Notes describing any failure; empty when everything succeeded.
        """
        missing_ids = set(self.cache.missing(m.id for m in models))
        missing = [m for m in models if m.id in missing_ids]
        if not missing:
            return []

        logger.info(f"Embedding {len(missing)} models with {self.embedding_model}")
        texts = [embedding_text(m) for m in missing]
        offset = 0
        skipped = 0
        try:
            async for vectors in self.client.iter_embeddings(texts, self.embedding_model):
                batch_models = missing[offset : offset + len(vectors)]
                embedded = {m.id: v for m, v in zip(batch_models, vectors) if v is not None}
                if embedded:
                    self.cache.merge(embedded)
                skipped += len(batch_models) - len(embedded)
                offset += len(batch_models)
        except Task2ModelError as e:
            logger.warning(f"Model embedding failed after {offset} models: {e.message}")
            return [f"model embeddings incomplete ({e.code}): {e.message}"]
        if skipped:
            logger.warning(f"Upstream returned no embedding for {skipped} models")
            return [f"model embeddings incomplete: {skipped} models returned no vector"]
        return []

    async def score(self, task: str, models: list[Model]) -> SemanticResult:
        """Similarity score in [0, 1] for every model."""
        if not self.client.has_api_key:
            return self._neutral(models, "semantic scoring skipped: no API key configured")
        if not models:
            return SemanticResult(available=True)

        notes = await self.ensure_embeddings(models)

        try:
            result = await self.client.embed([task], self.embedding_model)
        except Task2ModelError as e:
            logger.warning(f"Task embedding failed: {e.message}")
            return self._neutral(models, f"semantic scoring unavailable ({e.code}): {e.message}")
        if not result.data or result.data[0] is None:
            return self._neutral(models, "semantic scoring unavailable: empty task embedding")

        task_vector = result.data[0]
        scores = {}
        for model in models:
            vector = self.cache.vector(model.id)
            scores[model.id] = (
                normalized_similarity(task_vector, vector)
                if vector is not None
                else self.neutral_score
            )
        return SemanticResult(scores=scores, available=True, notes=notes)
