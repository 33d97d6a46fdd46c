"""Scoring and ranking of models that survived the hard filter."""

import math
from dataclasses import asdict, dataclass
from datetime import datetime
from functools import cmp_to_key
from typing import Optional

from ..providers.base import Model
from ..schema import (
    RankingStrategy,
    ScoringWeights,
    SoftConstraints,
    TargetPrice,
    TaskSpec,
)

AVERAGE_PRICE_PER_1M = 10.0
TIE_TOLERANCE = 0.01

SEMANTIC_ONLY_WEIGHTS = ScoringWeights(
    semantic=1.0, price=0.0, parameters=0.0, recency=0.0, context=0.0
)

HIGH_SEMANTIC_MATCH = 0.7
GOOD_PRICE = 0.8


@dataclass(frozen=True)
class ScoreBreakdown:
    semantic: float
    price: float
    parameters: float
    recency: float
    context: float
    total: float

    def to_dict(self, digits: int = 4) -> dict[str, float]:
        return {k: round(v, digits) for k, v in asdict(self).items()}


@dataclass(frozen=True)
class ScoredModel:
    model: Model
    score: ScoreBreakdown


def price_score(model: Model, target: Optional[TargetPrice] = None) -> float:
    """1.0 for free or at/below target, degrading linearly above it; 0 if unknown."""
    total = model.total_per_1m
    if total == 0:
        return 1.0
    if math.isinf(total):
        return 0.0

    if target is not None:
        target_total = (target.prompt_per_1m or 0) + (target.completion_per_1m or 0)
        if target_total > 0:
            if total <= target_total:
                return 1.0
            # Reaches zero at 3x the target.
            ratio = total / target_total
            return max(0.0, 1 - (ratio - 1) / 2)

    if total <= AVERAGE_PRICE_PER_1M:
        return 1.0
    return max(0.0, 1 - (total - AVERAGE_PRICE_PER_1M) / (AVERAGE_PRICE_PER_1M * 10))


def parameter_coverage(model: Model, required: Optional[list[str]]) -> float:
    if not required:
        return 1.0
    supported = set(model.supported_parameters)
    return sum(1 for p in required if p in supported) / len(required)


def recency_score(
    model: Model, now: datetime, prefer_newer: bool = True, min_age_days: Optional[int] = None
) -> float:
    age = model.age_days(now)
    if math.isinf(age):
        return 0.5

    if min_age_days is not None and age < min_age_days:
        return max(0.2, age / min_age_days)

    if prefer_newer:
        if age <= 30:
            return 1.0
        return max(0.3, 1 - (age - 30) / 700)

    if age >= 180:
        return 1.0
    return max(0.5, age / 180)


def context_score(model: Model, target: Optional[int]) -> float:
    if not target or model.context_length >= target:
        return 1.0
    return model.context_length / target


def effective_weights(spec: TaskSpec) -> ScoringWeights:
    if spec.preferences.scoring_weights is not None:
        return spec.preferences.scoring_weights
    if spec.preferences.ranking == RankingStrategy.SEMANTIC:
        return SEMANTIC_ONLY_WEIGHTS
    return ScoringWeights()


def score_model(
    model: Model,
    semantic: float,
    spec: TaskSpec,
    now: datetime,
    weights: Optional[ScoringWeights] = None,
) -> ScoreBreakdown:
    """Compute every sub-score and the weighted total for one model."""
    weights = weights or effective_weights(spec)
    soft: SoftConstraints = spec.soft_constraints

    price = price_score(model, soft.target_price)
    parameters = parameter_coverage(model, spec.hard_constraints.required_parameters)
    recency = recency_score(model, now, spec.preferences.prefer_newer, soft.min_age_days)
    context = context_score(model, soft.target_context_length)

    total = (
        weights.semantic * semantic
        + weights.price * price
        + weights.parameters * parameters
        + weights.recency * recency
        + weights.context * context
    )
    return ScoreBreakdown(
        semantic=semantic,
        price=price,
        parameters=parameters,
        recency=recency,
        context=context,
        total=total,
    )


def _ordinal_key(spec: TaskSpec):
    by_price = spec.preferences.routing == "price"
    by_recency = spec.preferences.prefer_newer

    def key(item: ScoredModel):
        model = item.model
        return (
            -item.score.parameters,
            model.total_per_1m if by_price else 0.0,
            -(model.created or 0) if by_recency else 0,
            -model.context_length,
        )

    return key


def _compare_with_tolerance(a: ScoredModel, b: ScoredModel) -> int:
    diff = b.score.total - a.score.total
    if abs(diff) > TIE_TOLERANCE:
        return 1 if diff > 0 else -1
    price_a, price_b = a.model.total_per_1m, b.model.total_per_1m
    if price_a != price_b:
        return -1 if price_a < price_b else 1
    return 0


def rank(scored: list[ScoredModel], spec: TaskSpec) -> list[ScoredModel]:
    """Order scored models according to the task spec's ranking strategy.

    Sorting is stable, so models that compare equal keep catalog order.
    """
    strategy = spec.preferences.ranking
    if strategy == RankingStrategy.ORDINAL:
        return sorted(scored, key=_ordinal_key(spec))
    by_total = sorted(scored, key=lambda item: -item.score.total)
    if strategy != RankingStrategy.SEMANTIC:
        return by_total
    # Near-ties on the semantic score fall back to the cheaper model.
    return sorted(by_total, key=cmp_to_key(_compare_with_tolerance))


def justify(score: ScoreBreakdown, spec: TaskSpec) -> list[str]:
    """Human-readable reasons a model made the shortlist."""
    reasons = []
    if score.semantic >= HIGH_SEMANTIC_MATCH:
        reasons.append("high semantic match")
    if score.parameters == 1:
        reasons.append("full param support")
    if score.price >= GOOD_PRICE:
        reasons.append("good price")

    target = spec.soft_constraints.target_context_length
    if target and score.context == 1:
        reasons.append(f"context>={target / 1000:g}k")

    if not reasons:
        reasons.append(f"score: {score.total:.2f}")
    return reasons
