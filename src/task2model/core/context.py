"""Process-wide services, built once at startup and handed to every tool."""

import logging
from dataclasses import dataclass
from typing import Optional

from ..config import Settings
from ..discovery.catalog import CatalogService
from ..discovery.model_cache import CatalogCache, Clock, EmbeddingCache
from ..discovery.semantic import SemanticMatcher
from ..providers.openrouter import OpenRouterClient
from ..services.store import BlobStore, JsonFileStore
from .assembler import ResultAssembler
from .recommender import Recommender

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Shared caches and collaborators; the caches are last-write-wins."""

    settings: Settings
    client: OpenRouterClient
    catalog_cache: CatalogCache
    embedding_cache: EmbeddingCache
    catalog: CatalogService
    matcher: SemanticMatcher
    recommender: Recommender

    @classmethod
    def create(
        cls,
        settings: Settings,
        client: Optional[OpenRouterClient] = None,
        store: Optional[BlobStore] = None,
        now: Optional[Clock] = None,
    ) -> "AppContext":
        """Wire up the service graph.

        Args:
            settings: Process settings.
            client: Provider client; built from settings when omitted.
            store: Durable blob store; a JSON file store in the cache dir by default.
            now: Clock override for tests.
        """
        client = client or OpenRouterClient(api_key=settings.api_key, timeout=settings.timeout)
        store = store or JsonFileStore(settings.cache_dir)

        catalog_cache = CatalogCache(store, ttl_ms=settings.cache_ttl_ms, now=now)
        embedding_cache = EmbeddingCache(store, ttl_ms=settings.embeddings_ttl_ms, now=now)
        catalog = CatalogService(client, catalog_cache)
        matcher = SemanticMatcher(client, embedding_cache)
        recommender = Recommender(catalog, matcher, ResultAssembler(client), now=now)

        return cls(
            settings=settings,
            client=client,
            catalog_cache=catalog_cache,
            embedding_cache=embedding_cache,
            catalog=catalog,
            matcher=matcher,
            recommender=recommender,
        )

    async def initialize(self) -> None:
        """Hydrate caches from disk."""
        await self.catalog_cache.initialize()
        await self.embedding_cache.initialize()
        logger.info("Cache initialized")

    async def shutdown(self) -> None:
        """Flush pending cache writes and close HTTP clients."""
        await self.catalog_cache.drain()
        await self.embedding_cache.drain()
        await self.client.aclose()
