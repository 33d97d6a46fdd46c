"""Shapes a ranked shortlist into the requested detail level."""

import asyncio
import logging
import math
from datetime import datetime
from typing import Any, Optional

from ..discovery.model_cache import CatalogSnapshot
from ..discovery.scoring import ScoredModel, justify
from ..errors import Task2ModelError
from ..providers.base import Model
from ..providers.openrouter import OpenRouterClient
from ..schema import DetailLevel, Preferences, TaskSpec

logger = logging.getLogger(__name__)

EXACTO_SUFFIX = ":exacto"
TOOL_PARAMETERS = ("tools", "tool_choice")


def _age_or_none(model: Model, now: datetime) -> Optional[int]:
    age = model.age_days(now)
    return None if math.isinf(age) else int(age)


def _finite(value: float) -> Optional[float]:
    return None if math.isinf(value) else round(value, 6)


def price_range(ranked: list[ScoredModel]) -> str:
    """Aggregate per-1M price range across a shortlist."""
    totals = [item.model.total_per_1m for item in ranked]
    totals = [t for t in totals if not math.isinf(t)]
    if not totals:
        return "n/a"
    return f"${min(totals):.2f}-${max(totals):.2f} per 1M tokens (prompt+completion)"


def build_skeleton(
    model: Model,
    catalog_ids: set[str],
    preferences: Preferences,
    required_parameters: Optional[list[str]],
) -> dict[str, Any]:
    """Ready-to-send chat completion request for a model."""
    model_id = model.id
    wants_tools = any(p in TOOL_PARAMETERS for p in required_parameters or [])
    exacto_id = f"{model.id}{EXACTO_SUFFIX}"
    if preferences.prefer_exacto_for_tools and wants_tools and exacto_id in catalog_ids:
        model_id = exacto_id

    return {
        "model": model_id,
        "messages": [],
        "provider": {
            "require_parameters": True,
            "allow_fallbacks": True,
            "sort": preferences.routing,
        },
    }


class ResultAssembler:
    """Builds shortlist entries for one detail level at a time."""

    def __init__(self, client: OpenRouterClient):
        self.client = client

    async def check_endpoints(
        self, model_id: str, required_parameters: Optional[list[str]]
    ) -> tuple[Optional[dict[str, Any]], Optional[str]]:
        """Summarize live endpoints and flag any missing a required parameter.

        Returns:
            (summary, risk) where either may be None.
        """
        try:
            result = await self.client.list_endpoints(model_id)
        except Task2ModelError as e:
            logger.warning(f"Endpoint check failed for {model_id}: {e.message}")
            return None, "failed to fetch endpoints"

        endpoints = result.data
        if not endpoints:
            return None, "no endpoints found"

        required = required_parameters or []
        rows = [
            {
                "name": ep.name,
                "provider_name": ep.provider_name,
                "supports_required_params": all(p in ep.supported_parameters for p in required),
                "context_length": ep.context_length,
            }
            for ep in endpoints
        ]
        risk = None
        if any(not row["supports_required_params"] for row in rows):
            risk = "endpoint_param_risk"
        return {"count": len(rows), "endpoints": rows}, risk

    async def _parameters(self, model_id: str) -> tuple[Optional[dict[str, Any]], Optional[str]]:
        try:
            result = await self.client.list_parameters(model_id)
        except Task2ModelError as e:
            logger.warning(f"Parameter lookup failed for {model_id}: {e.message}")
            return None, "failed to fetch parameters"
        return result.data, None

    def _minimal(self, item: ScoredModel, now: datetime) -> dict[str, Any]:
        model = item.model
        return {
            "model_id": model.id,
            "name": model.name,
            "price": {
                "prompt": _finite(model.prompt_per_1m),
                "completion": _finite(model.completion_per_1m),
            },
            "context": model.context_length,
            "supports": list(model.supported_parameters),
            "age_days": _age_or_none(model, now),
            "score": round(item.score.total, 4),
        }

    async def _standard(
        self, item: ScoredModel, spec: TaskSpec, catalog_ids: set[str], now: datetime
    ) -> dict[str, Any]:
        model = item.model
        options = spec.result
        required = spec.hard_constraints.required_parameters

        entry: dict[str, Any] = {
            "model_id": model.id,
            "name": model.name,
            "created": model.created,
            "context_length": model.context_length,
            "age_days": _age_or_none(model, now),
            "pricing": {
                "prompt": model.pricing.prompt,
                "completion": model.pricing.completion,
                "request": model.pricing.request,
            },
            "modalities": {
                "input": model.input_modalities,
                "output": model.output_modalities,
            },
            "supported_parameters": list(model.supported_parameters),
            "why_selected": justify(item.score, spec),
        }
        if options.include_score_breakdown:
            entry["score"] = item.score.to_dict()
        if options.include_request_skeleton:
            entry["request_skeleton"] = build_skeleton(
                model, catalog_ids, spec.preferences, required
            )

        risks = []
        if options.include_endpoints:
            summary, risk = await self.check_endpoints(model.id, required)
            if summary is not None:
                entry["endpoints_summary"] = summary
            if risk:
                risks.append(risk)
        if options.include_parameters:
            parameters, risk = await self._parameters(model.id)
            if parameters is not None:
                entry["parameters"] = parameters
            if risk:
                risks.append(risk)
        if risks:
            entry["risks"] = risks
        return entry

    async def assemble(
        self,
        ranked: list[ScoredModel],
        spec: TaskSpec,
        snapshot: CatalogSnapshot,
        now: datetime,
    ) -> list[Any]:
        """Build the shortlist for the requested detail level."""
        detail = spec.result.detail

        if detail == DetailLevel.NAMES_ONLY:
            return [item.model.id for item in ranked]
        if detail == DetailLevel.FULL:
            return [item.model.raw for item in ranked]
        if detail == DetailLevel.MINIMAL:
            return [self._minimal(item, now) for item in ranked]

        catalog_ids = snapshot.ids
        return list(
            await asyncio.gather(
                *(self._standard(item, spec, catalog_ids, now) for item in ranked)
            )
        )
