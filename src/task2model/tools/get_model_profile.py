"""Tool for inspecting a single catalog model."""

import logging
from typing import Any, Dict

from ..discovery.model_cache import to_iso
from ..errors import InvalidInputError, Task2ModelError
from .base import MCPTool

logger = logging.getLogger(__name__)


class GetModelProfileTool(MCPTool):
    """Return a model's catalog record, optionally with endpoints and parameters."""

    @property
    def name(self) -> str:
        return "get_model_profile"

    @property
    def description(self) -> str:
        return (
            "Get detailed profile of a specific model, "
            "optionally including endpoints and parameters."
        )

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "model_id": {
                    "type": "string",
                    "description": 'The model ID (e.g., "anthropic/claude-sonnet-4.5")',
                },
                "include_endpoints": {
                    "type": "boolean",
                    "description": "Fetch endpoint-level details",
                    "default": False,
                },
                "include_parameters": {
                    "type": "boolean",
                    "description": "Fetch parameter details",
                    "default": False,
                },
            },
            "required": ["model_id"],
            "additionalProperties": False,
        }

    async def execute(self, parameters: Dict[str, Any]) -> Dict[str, Any]:
        model_id = parameters.get("model_id")
        if not isinstance(model_id, str) or not model_id:
            raise InvalidInputError("model_id is required", field="model_id")

        view = await self.context.catalog.load()
        model = view.snapshot.find(model_id)
        if model is None:
            raise InvalidInputError(f"Model not found: {model_id}", model_id=model_id)

        profile: Dict[str, Any] = {
            "model": model.raw,
            "fetched_at": to_iso(view.snapshot.fetched_at),
            "auth_used": self.context.client.has_api_key,
        }
        notes = []

        if parameters.get("include_endpoints"):
            try:
                endpoints = await self.context.client.list_endpoints(model_id)
                profile["endpoints"] = [ep.raw for ep in endpoints.data]
            except Task2ModelError as e:
                logger.warning(f"Endpoints unavailable for {model_id}: {e.message}")
                notes.append({"endpoints": e.to_dict()})

        if parameters.get("include_parameters"):
            try:
                params = await self.context.client.list_parameters(model_id)
                profile["parameters"] = params.data
            except Task2ModelError as e:
                logger.warning(f"Parameters unavailable for {model_id}: {e.message}")
                notes.append({"parameters": e.to_dict()})

        if notes:
            profile["notes"] = notes
        return profile
