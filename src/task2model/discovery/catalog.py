"""Freshness gate in front of the catalog cache."""

import logging
from dataclasses import dataclass

from ..providers.openrouter import OpenRouterClient
from .model_cache import CatalogCache, CatalogSnapshot

logger = logging.getLogger(__name__)

SOURCE_LIVE = "live"
SOURCE_CACHE = "cache"


@dataclass(frozen=True)
class CatalogView:
    """The snapshot a request works against, plus where it came from."""

    snapshot: CatalogSnapshot
    source: str
    auth_used: bool


class CatalogService:
    """Serves the catalog from cache, refetching on miss, expiry or force."""

    def __init__(self, client: OpenRouterClient, cache: CatalogCache):
        self.client = client
        self.cache = cache

    async def load(self, force: bool = False) -> CatalogView:
        """Return a fresh catalog view.

        Raises:
            Task2ModelError: If a refetch was needed and the provider call failed.
        """
        snapshot = self.cache.get()
        if not force and snapshot is not None and self.cache.is_valid(snapshot):
            return CatalogView(snapshot, SOURCE_CACHE, self.client.has_api_key)

        reason = "forced" if force else ("expired" if snapshot else "empty")
        logger.info(f"Refreshing catalog ({reason})")
        result = await self.client.list_models()
        snapshot = self.cache.set(result.data)
        return CatalogView(snapshot, SOURCE_LIVE, result.auth_used)

    def status(self, view: CatalogView) -> dict:
        info = self.cache.status(view.snapshot, view.source)
        info["auth_used"] = view.auth_used
        return info
