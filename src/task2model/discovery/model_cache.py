"""Catalog and embedding caches with TTL and fire-and-forget persistence."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Coroutine, Iterable, Optional

from ..config import DEFAULT_CACHE_TTL_MS, DEFAULT_EMBEDDINGS_TTL_MS
from ..providers.base import Model
from ..services.store import BlobStore

logger = logging.getLogger(__name__)

MODELS_BLOB = "models"
META_BLOB = "meta"
EMBEDDINGS_BLOB = "embeddings"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """Format a UTC datetime as an ISO-8601 string with millisecond precision."""
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def from_iso(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def age_ms(since: datetime, now: datetime) -> int:
    return int((now - since).total_seconds() * 1000)


@dataclass(frozen=True)
class CatalogSnapshot:
    """An immutable copy of the catalog as fetched at one point in time."""

    models: tuple[Model, ...]
    fetched_at: datetime
    expires_at: datetime

    def find(self, model_id: str) -> Optional[Model]:
        for model in self.models:
            if model.id == model_id:
                return model
        return None

    @property
    def ids(self) -> set[str]:
        return {m.id for m in self.models}


@dataclass
class EmbeddingSnapshot:
    """Embedding vectors keyed by model id."""

    embeddings: dict[str, list[float]] = field(default_factory=dict)
    fetched_at: datetime = field(default_factory=utc_now)

    @property
    def model_count(self) -> int:
        return len(self.embeddings)

    def to_blob(self) -> dict[str, Any]:
        return {
            "embeddings": dict(self.embeddings),
            "fetched_at": to_iso(self.fetched_at),
            "model_count": self.model_count,
        }


class _PersistingCache:
    """Shared plumbing for spawning un-awaited persistence tasks."""

    def __init__(self, store: BlobStore, ttl_ms: int, now: Optional[Clock]):
        self.store = store
        self.ttl_ms = ttl_ms
        self._now = now or utc_now
        self._pending: set[asyncio.Task] = set()

    @property
    def ttl(self) -> timedelta:
        return timedelta(milliseconds=self.ttl_ms)

    def now(self) -> datetime:
        return self._now()

    def _spawn(self, name: str, coro: Coroutine[Any, Any, None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.debug(f"No running event loop, skipping persistence of {name}")
            return

        task = loop.create_task(self._guarded(name, coro))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    @staticmethod
    async def _guarded(name: str, coro: Coroutine[Any, Any, None]) -> None:
        try:
            await coro
        except Exception as e:
            # Disk failures never reach callers.
            logger.warning(f"Failed to persist {name} cache: {e}")

    async def drain(self) -> None:
        """Wait for outstanding persistence tasks to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


class CatalogCache(_PersistingCache):
    """Holds the single live catalog snapshot.

    The snapshot is replaced wholesale on every successful fetch; the last
    write wins. Each install spawns a background write of ``models`` and
    ``meta`` blobs that the caller never waits for.
    """

    def __init__(
        self,
        store: BlobStore,
        ttl_ms: int = DEFAULT_CACHE_TTL_MS,
        now: Optional[Clock] = None,
    ):
        super().__init__(store, ttl_ms, now)
        self._snapshot: Optional[CatalogSnapshot] = None

    def get(self) -> Optional[CatalogSnapshot]:
        return self._snapshot

    def is_valid(self, snapshot: Optional[CatalogSnapshot]) -> bool:
        """True iff the snapshot exists and has not reached its expiry."""
        return snapshot is not None and self.now() < snapshot.expires_at

    def set(self, models: Iterable[Model]) -> CatalogSnapshot:
        now = self.now()
        snapshot = CatalogSnapshot(models=tuple(models), fetched_at=now, expires_at=now + self.ttl)
        self._snapshot = snapshot
        logger.info(f"Catalog cache set with {len(snapshot.models)} models")
        self._spawn("catalog", self._persist(snapshot))
        return snapshot

    def status(self, snapshot: CatalogSnapshot, source: str) -> dict[str, Any]:
        return {
            "fetched_at": to_iso(snapshot.fetched_at),
            "cache_age_ms": age_ms(snapshot.fetched_at, self.now()),
            "source": source,
        }

    def clear(self) -> None:
        self._snapshot = None
        logger.info("Catalog cache cleared")

    async def _persist(self, snapshot: CatalogSnapshot) -> None:
        await self.store.write(MODELS_BLOB, [m.raw for m in snapshot.models])
        await self.store.write(
            META_BLOB,
            {
                "fetched_at": to_iso(snapshot.fetched_at),
                "expires_at": to_iso(snapshot.expires_at),
                "model_count": len(snapshot.models),
            },
        )

    async def initialize(self) -> Optional[CatalogSnapshot]:
        """Hydrate from the durable copy unless already loaded or expired."""
        if self._snapshot is not None:
            return self._snapshot

        models_blob = await self.store.read(MODELS_BLOB)
        meta = await self.store.read(META_BLOB)
        if not isinstance(models_blob, list) or not isinstance(meta, dict):
            return None

        try:
            snapshot = CatalogSnapshot(
                models=tuple(Model.from_openrouter(m) for m in models_blob),
                fetched_at=from_iso(meta["fetched_at"]),
                expires_at=from_iso(meta["expires_at"]),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Discarding malformed catalog cache: {e}")
            return None

        if not self.is_valid(snapshot):
            logger.info("Discarding expired catalog cache from disk")
            return None

        self._snapshot = snapshot
        logger.info(f"Loaded {len(snapshot.models)} models from disk cache")
        return snapshot


class EmbeddingCache(_PersistingCache):
    """Model embedding vectors with a TTL independent of the catalog's.

    New vectors are merged into the live snapshot, so it only grows until
    the TTL lapses and a fresh snapshot starts.
    """

    def __init__(
        self,
        store: BlobStore,
        ttl_ms: int = DEFAULT_EMBEDDINGS_TTL_MS,
        now: Optional[Clock] = None,
    ):
        super().__init__(store, ttl_ms, now)
        self._snapshot: Optional[EmbeddingSnapshot] = None

    def _is_fresh(self, snapshot: EmbeddingSnapshot) -> bool:
        return self.now() - snapshot.fetched_at < self.ttl

    def get(self) -> Optional[EmbeddingSnapshot]:
        if self._snapshot is not None and not self._is_fresh(self._snapshot):
            logger.info("Embedding cache expired")
            self._snapshot = None
        return self._snapshot

    def vector(self, model_id: str) -> Optional[list[float]]:
        snapshot = self.get()
        return snapshot.embeddings.get(model_id) if snapshot else None

    def missing(self, model_ids: Iterable[str]) -> list[str]:
        snapshot = self.get()
        known = snapshot.embeddings if snapshot else {}
        return [model_id for model_id in model_ids if model_id not in known]

    def merge(self, vectors: dict[str, list[float]]) -> EmbeddingSnapshot:
        snapshot = self.get()
        if snapshot is None:
            snapshot = EmbeddingSnapshot(embeddings=dict(vectors), fetched_at=self.now())
            self._snapshot = snapshot
        else:
            snapshot.embeddings.update(vectors)
        logger.debug(f"Embedding cache now holds {snapshot.model_count} vectors")
        self._spawn("embeddings", self.store.write(EMBEDDINGS_BLOB, snapshot.to_blob()))
        return snapshot

    def clear(self) -> None:
        self._snapshot = None

    async def initialize(self) -> Optional[EmbeddingSnapshot]:
        if self._snapshot is not None:
            return self._snapshot

        blob = await self.store.read(EMBEDDINGS_BLOB)
        if not isinstance(blob, dict):
            return None

        try:
            snapshot = EmbeddingSnapshot(
                embeddings=dict(blob["embeddings"]),
                fetched_at=from_iso(blob["fetched_at"]),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Discarding malformed embedding cache: {e}")
            return None

        if not self._is_fresh(snapshot):
            logger.info("Discarding stale embedding cache from disk")
            return None

        self._snapshot = snapshot
        logger.info(f"Loaded {snapshot.model_count} embeddings from disk cache")
        return snapshot
