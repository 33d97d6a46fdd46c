"""The task2model recommendation pipeline."""

import logging
from typing import Any, Optional

from ..discovery.catalog import CatalogService
from ..discovery.model_cache import Clock, utc_now
from ..discovery.model_filter import DEFAULT_MAX_AGE_DAYS, ModelFilter
from ..discovery.scoring import ScoredModel, effective_weights, rank, score_model
from ..discovery.semantic import SemanticMatcher, SemanticResult
from ..providers.base import Model
from ..schema import DetailLevel, RankingStrategy, TaskSpec
from .assembler import ResultAssembler, price_range

logger = logging.getLogger(__name__)


class Recommender:
    """Runs a TaskSpec through freshness gate, filter, scoring and assembly."""

    def __init__(
        self,
        catalog: CatalogService,
        matcher: SemanticMatcher,
        assembler: ResultAssembler,
        now: Optional[Clock] = None,
    ):
        self.catalog = catalog
        self.matcher = matcher
        self.assembler = assembler
        self._now = now or utc_now

    async def recommend(self, spec: TaskSpec) -> dict[str, Any]:
        """Produce a shortlist for the task.

        Raises:
            Task2ModelError: When the catalog could not be loaded. Embedding
                failures never raise; they only add a note.
        """
        view = await self.catalog.load(force=spec.result.force_refresh)
        now = self._now()
        strategy = spec.preferences.ranking

        default_max_age = DEFAULT_MAX_AGE_DAYS if strategy == RankingStrategy.SEMANTIC else None
        filtered = ModelFilter.apply(
            view.snapshot.models, spec.hard_constraints, now, default_max_age
        )

        weights = effective_weights(spec)
        semantic = await self._semantic_scores(spec, filtered.survivors, weights.semantic)

        scored = [
            ScoredModel(
                model=model,
                score=score_model(
                    model,
                    semantic.score_for(model.id, self.matcher.neutral_score),
                    spec,
                    now,
                    weights,
                ),
            )
            for model in filtered.survivors
        ]
        shortlisted = rank(scored, spec)[: spec.result.limit]
        logger.info(
            f"Ranked {len(scored)} models with {strategy.value} strategy, "
            f"returning {len(shortlisted)}"
        )

        result: dict[str, Any] = {
            "task": spec.task,
            "detail": spec.result.detail.value,
            "ranking": strategy.value,
            "shortlist": await self.assembler.assemble(shortlisted, spec, view.snapshot, now),
        }
        if spec.result.detail == DetailLevel.NAMES_ONLY:
            result["price_range"] = price_range(shortlisted)
        result["excluded_summary"] = filtered.summary()
        result["catalog"] = self.catalog.status(view)
        if semantic.notes:
            result["notes"] = semantic.notes
        return result

    async def _semantic_scores(
        self, spec: TaskSpec, models: list[Model], semantic_weight: float
    ) -> SemanticResult:
        if not spec.preferences.use_semantic_search:
            return SemanticResult(notes=[])
        if semantic_weight == 0 and spec.preferences.ranking != RankingStrategy.SEMANTIC:
            return SemanticResult(notes=[])
        return await self.matcher.score(spec.task, models)
