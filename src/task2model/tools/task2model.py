"""Tool for recommending models for a natural-language task."""

import logging
from typing import Any, Dict

from ..schema import parse_task_spec, task_spec_schema
from .base import MCPTool

logger = logging.getLogger(__name__)


class Task2ModelTool(MCPTool):
    """Filter and rank the catalog for a task description."""

    @property
    def name(self) -> str:
        return "task2model"

    @property
    def description(self) -> str:
        return (
            "Recommend models for a task. Filters the OpenRouter catalog by hard "
            "constraints and ranks survivors by semantic match, price, parameter "
            "support, recency and context fit.\n\n"
            "IMPORTANT: Use default parameters (just provide \"task\"). Only add "
            "constraints if the user explicitly requests them.\n\n"
            "Defaults: limit=50, detail=minimal, ranking=weighted. "
            "Detail levels: names_only | minimal | standard | full. "
            "Ranking: weighted | ordinal | semantic (semantic also drops models "
            "older than 365 days unless hard_constraints.max_age_days is set)."
        )

    @property
    def input_schema(self) -> Dict[str, Any]:
        return task_spec_schema()

    async def execute(self, parameters: Dict[str, Any]) -> Dict[str, Any]:
        spec = parse_task_spec(parameters)
        logger.info(f"task2model called: {spec.task[:80]!r}")
        return await self.context.recommender.recommend(spec)
