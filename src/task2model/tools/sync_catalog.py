"""Tool for refreshing the catalog cache."""

import logging
from typing import Any, Dict

from .base import MCPTool

logger = logging.getLogger(__name__)


class SyncCatalogTool(MCPTool):
    """Refresh the OpenRouter catalog, honouring the cache TTL unless forced."""

    @property
    def name(self) -> str:
        return "sync_catalog"

    @property
    def description(self) -> str:
        return "Refresh the OpenRouter models catalog cache. Use force=true to bypass TTL."

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "force": {
                    "type": "boolean",
                    "description": "Force refresh even if cache is valid",
                    "default": False,
                },
            },
            "required": [],
            "additionalProperties": False,
        }

    async def execute(self, parameters: Dict[str, Any]) -> Dict[str, Any]:
        force = bool(parameters.get("force", False))
        view = await self.context.catalog.load(force=force)
        status = self.context.catalog.status(view)

        if view.source == "live":
            logger.info(f"Catalog synced: {len(view.snapshot.models)} models")

        return {
            "model_count": len(view.snapshot.models),
            "fetched_at": status["fetched_at"],
            "source": view.source,
            "auth_used": view.auth_used,
        }
