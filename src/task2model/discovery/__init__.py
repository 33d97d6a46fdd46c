"""Catalog caching, filtering, scoring and semantic matching for task2model."""

from .catalog import CatalogService, CatalogView
from .model_cache import CatalogCache, CatalogSnapshot, EmbeddingCache, EmbeddingSnapshot
from .model_filter import EXCLUSION_ORDER, ConstraintEvaluator, FilterResult, ModelFilter
from .scoring import ScoreBreakdown, ScoredModel, justify, rank, score_model
from .semantic import SemanticMatcher, SemanticResult, normalized_similarity

__all__ = [
    "CatalogCache",
    "CatalogService",
    "CatalogSnapshot",
    "CatalogView",
    "ConstraintEvaluator",
    "EXCLUSION_ORDER",
    "EmbeddingCache",
    "EmbeddingSnapshot",
    "FilterResult",
    "ModelFilter",
    "ScoreBreakdown",
    "ScoredModel",
    "SemanticMatcher",
    "SemanticResult",
    "justify",
    "normalized_similarity",
    "rank",
    "score_model",
]
