"""OpenRouter catalog, endpoint, parameter and embedding client."""

import logging
import os
from typing import Any, AsyncIterator, Optional

import httpx
import openai
from openai import AsyncOpenAI

from ..errors import AuthRequiredError, NetworkError, UpstreamError
from .base import Endpoint, Model, ProviderResult

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_EMBEDDING_MODEL = "qwen/qwen3-embedding-8b"
EMBEDDING_BATCH_SIZE = 100
APP_NAME = "openrouter-task2model"

PLACEHOLDER_KEYS = {"sk-or-...", "sk-or-xxx"}
MIN_KEY_LENGTH = 10


def normalize_api_key(raw: Optional[str]) -> Optional[str]:
    """Return the key, or None for blank and obvious placeholder values."""
    key = (raw or "").strip()
    if not key or key in PLACEHOLDER_KEYS or len(key) < MIN_KEY_LENGTH:
        return None
    return key


def _strip_variant(model_id: str) -> str:
    return model_id.split(":")[0]


class OpenRouterClient:
    """Typed access to the OpenRouter API.

    Every call returns a ProviderResult on success and raises one of
    AuthRequiredError, NetworkError or UpstreamError otherwise. Nothing is
    retried.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = OPENROUTER_BASE_URL,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
        embeddings_client: Optional[AsyncOpenAI] = None,
    ):
        """Initialize the client.

        Args:
            api_key: OpenRouter API key. If None, reads OPENROUTER_API_KEY.
            base_url: API root.
            timeout: Request timeout in seconds.
            http_client: Preconfigured httpx client (tests inject a mock transport).
            embeddings_client: Preconfigured OpenAI-compatible client for embeddings.
        """
        self._raw_key = api_key if api_key is not None else os.getenv("OPENROUTER_API_KEY")
        self.api_key = normalize_api_key(self._raw_key)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http = http_client
        self._embeddings = embeddings_client

    @property
    def has_api_key(self) -> bool:
        return self.api_key is not None

    def api_key_status(self) -> dict[str, Any]:
        """Describe the configured key without revealing it."""
        raw = (self._raw_key or "").strip()
        if not raw:
            return {"valid": False, "format": "not set"}
        if raw in PLACEHOLDER_KEYS:
            return {"valid": False, "format": "placeholder value"}
        if len(raw) < MIN_KEY_LENGTH:
            return {"valid": False, "format": f"too short ({len(raw)} chars)"}
        return {"valid": True, "format": f"{raw[:4]}***{raw[-4:]} ({len(raw)} chars)"}

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "HTTP-Referer": f"https://github.com/{APP_NAME}",
            "X-Title": APP_NAME,
        }
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    @property
    def http(self) -> httpx.AsyncClient:
        """Get or create the shared httpx client."""
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self.timeout)
        return self._http

    @property
    def embeddings_client(self) -> AsyncOpenAI:
        """Get or create the OpenAI client configured for OpenRouter embeddings."""
        if self._embeddings is None:
            if not self.api_key:
                raise AuthRequiredError("API key required for embeddings")
            self._embeddings = AsyncOpenAI(
                base_url=self.base_url,
                api_key=self.api_key,
                timeout=self.timeout,
                max_retries=0,
                default_headers={
                    "HTTP-Referer": f"https://github.com/{APP_NAME}",
                    "X-Title": APP_NAME,
                },
            )
        return self._embeddings

    async def _get(self, path: str) -> ProviderResult[Any]:
        url = f"{self.base_url}{path}"
        auth_used = self.has_api_key
        logger.debug(f"GET {url} (auth={auth_used})")

        try:
            response = await self.http.get(url, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error(f"Request to {url} failed: {e}")
            raise NetworkError("Failed to connect to OpenRouter API", e) from e

        if response.status_code in (401, 403):
            raise AuthRequiredError("Authentication required for this endpoint")

        if response.is_error:
            try:
                body: Any = response.json()
            except ValueError:
                body = response.text
            raise UpstreamError(
                f"OpenRouter API returned status {response.status_code}",
                status=response.status_code,
                body=body,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError(
                "OpenRouter API returned a non-JSON body",
                status=response.status_code,
                body=response.text,
            ) from e
        return ProviderResult(data=payload, auth_used=auth_used)

    async def list_models(self) -> ProviderResult[list[Model]]:
        """Fetch the full model catalog. Works without an API key."""
        result = await self._get("/models")
        models = [Model.from_openrouter(m) for m in (result.data or {}).get("data") or []]
        logger.info(f"Fetched {len(models)} models from OpenRouter")
        return ProviderResult(data=models, auth_used=result.auth_used)

    async def list_endpoints(self, model_id: str) -> ProviderResult[list[Endpoint]]:
        """Fetch per-provider endpoints for a model (variant suffix ignored)."""
        if not self.has_api_key:
            raise AuthRequiredError("API key required to list model endpoints")

        result = await self._get(f"/models/{_strip_variant(model_id)}/endpoints")
        data = (result.data or {}).get("data") or {}
        endpoints = [Endpoint.from_openrouter(e) for e in data.get("endpoints") or []]
        return ProviderResult(data=endpoints, auth_used=result.auth_used)

    async def list_parameters(self, model_id: str) -> ProviderResult[dict[str, Any]]:
        """Fetch supported-parameter details for a model (variant suffix ignored)."""
        if not self.has_api_key:
            raise AuthRequiredError("API key required to list model parameters")

        result = await self._get(f"/parameters/{_strip_variant(model_id)}")
        return ProviderResult(data=(result.data or {}).get("data") or {}, auth_used=True)

    async def _embed_batch(self, texts: list[str], model: str) -> list[Optional[list[float]]]:
        """Embed one batch, returning a list aligned with texts.

        Each vector is placed by the index upstream declares for it; inputs
        upstream skipped stay None.
        """
        try:
            response = await self.embeddings_client.embeddings.create(model=model, input=texts)
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            raise AuthRequiredError(f"Embeddings auth failed ({e.status_code}): {e.body}") from e
        except openai.APIStatusError as e:
            raise UpstreamError(
                f"OpenRouter Embeddings API returned status {e.status_code}",
                status=e.status_code,
                body=e.body,
            ) from e
        except openai.APIConnectionError as e:
            raise NetworkError("Failed to connect to OpenRouter Embeddings API", e) from e
        except openai.OpenAIError as e:
            raise UpstreamError(f"OpenRouter Embeddings API call failed: {e}") from e

        items = getattr(response, "data", None)
        if not isinstance(items, list):
            raise UpstreamError(
                "OpenRouter Embeddings API returned no data list", body=repr(items)[:200]
            )

        vectors: list[Optional[list[float]]] = [None] * len(texts)
        for item in items:
            index = getattr(item, "index", None)
            embedding = getattr(item, "embedding", None)
            if not isinstance(index, int) or not 0 <= index < len(texts):
                logger.warning(f"Ignoring embedding with out-of-range index {index!r}")
                continue
            if not embedding:
                continue
            vectors[index] = list(embedding)
        return vectors

    async def iter_embeddings(
        self, texts: list[str], model: str = DEFAULT_EMBEDDING_MODEL
    ) -> AsyncIterator[list[Optional[list[float]]]]:
        """Embed texts in batches of EMBEDDING_BATCH_SIZE, yielding each batch.

        Every yielded list has exactly one slot per input text in that batch,
        None where upstream returned no vector. A failing batch raises after
        every earlier batch has been yielded.
        """
        if not self.has_api_key:
            raise AuthRequiredError("API key required for embeddings")

        for start in range(0, len(texts), EMBEDDING_BATCH_SIZE):
            batch = texts[start : start + EMBEDDING_BATCH_SIZE]
            logger.debug(f"Embedding batch of {len(batch)} texts with {model}")
            yield await self._embed_batch(batch, model)

    async def embed(
        self, texts: list[str], model: str = DEFAULT_EMBEDDING_MODEL
    ) -> ProviderResult[list[Optional[list[float]]]]:
        """Embed texts, returning one slot per input in input order."""
        vectors: list[Optional[list[float]]] = []
        async for batch in self.iter_embeddings(texts, model):
            vectors.extend(batch)
        return ProviderResult(data=vectors, auth_used=True)

    async def aclose(self) -> None:
        """Close underlying HTTP clients."""
        if self._http is not None:
            await self._http.aclose()
        if self._embeddings is not None:
            await self._embeddings.close()
