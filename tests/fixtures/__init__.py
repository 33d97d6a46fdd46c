"""Test fixtures for the task2model MCP server tests."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from task2model.errors import AuthRequiredError
from task2model.providers.base import Endpoint, Model, ProviderResult

FIXED_NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def created_days_ago(days: int, now: datetime = FIXED_NOW) -> int:
    """Unix timestamp (seconds) for a model created exactly `days` ago."""
    return int((now - timedelta(days=days)).timestamp())


def make_record(
    model_id: str,
    *,
    name: Optional[str] = None,
    prompt: Optional[str] = "0.000001",
    completion: Optional[str] = "0.000002",
    request: Optional[str] = None,
    context_length: int = 128000,
    modality: str = "text->text",
    supported_parameters: Optional[List[str]] = None,
    age_days: Optional[int] = 10,
    description: str = "",
) -> Dict[str, Any]:
    """Build a raw /models record the way OpenRouter returns it."""
    pricing: Dict[str, Any] = {}
    if prompt is not None:
        pricing["prompt"] = prompt
    if completion is not None:
        pricing["completion"] = completion
    if request is not None:
        pricing["request"] = request

    record: Dict[str, Any] = {
        "id": model_id,
        "name": name or model_id,
        "description": description,
        "context_length": context_length,
        "architecture": {"modality": modality},
        "pricing": pricing,
        "supported_parameters": list(supported_parameters or []),
    }
    if age_days is not None:
        record["created"] = created_days_ago(age_days)
    return record


def make_model(model_id: str, **kwargs) -> Model:
    return Model.from_openrouter(make_record(model_id, **kwargs))


class FakeOpenRouterClient:
    """Stand-in for OpenRouterClient that serves canned data and counts calls."""

    def __init__(
        self,
        records: Optional[List[Dict[str, Any]]] = None,
        api_key: Optional[str] = "sk-or-v1-testkey-123456",
        embeddings: Optional[Dict[str, List[float]]] = None,
        task_vector: Optional[List[float]] = None,
        endpoints: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        parameters: Optional[Dict[str, Dict[str, Any]]] = None,
    ):
        self.records = records or []
        self.api_key = api_key
        self.embeddings = embeddings or {}
        self.task_vector = task_vector or [1.0, 0.0]
        self.endpoints = endpoints or {}
        self.parameters = parameters or {}
        self.list_models_calls = 0
        self.embedded_texts: List[str] = []
        self.models_error: Optional[Exception] = None
        self.embed_error: Optional[Exception] = None
        self.closed = False

    @property
    def has_api_key(self) -> bool:
        return self.api_key is not None

    def api_key_status(self) -> Dict[str, Any]:
        return {"valid": self.has_api_key, "format": "test"}

    async def list_models(self) -> ProviderResult[List[Model]]:
        self.list_models_calls += 1
        if self.models_error:
            raise self.models_error
        models = [Model.from_openrouter(r) for r in self.records]
        return ProviderResult(data=models, auth_used=self.has_api_key)

    async def list_endpoints(self, model_id: str) -> ProviderResult[List[Endpoint]]:
        if not self.has_api_key:
            raise AuthRequiredError()
        rows = self.endpoints.get(model_id.split(":")[0], [])
        return ProviderResult(data=[Endpoint.from_openrouter(r) for r in rows], auth_used=True)

    async def list_parameters(self, model_id: str) -> ProviderResult[Dict[str, Any]]:
        if not self.has_api_key:
            raise AuthRequiredError()
        return ProviderResult(data=self.parameters.get(model_id, {}), auth_used=True)

    async def iter_embeddings(self, texts: List[str], model: str = ""):
        if not self.has_api_key:
            raise AuthRequiredError()
        if self.embed_error:
            raise self.embed_error
        self.embedded_texts.extend(texts)
        yield [self._vector_for(text) for text in texts]

    async def embed(self, texts: List[str], model: str = "") -> ProviderResult[List[List[float]]]:
        vectors: List[List[float]] = []
        async for batch in self.iter_embeddings(texts, model):
            vectors.extend(batch)
        return ProviderResult(data=vectors, auth_used=True)

    def _vector_for(self, text: str) -> List[float]:
        # Model texts start with the model name, which tests set to the id.
        for key, vector in self.embeddings.items():
            if text.startswith(key):
                return vector
        return self.task_vector

    async def aclose(self) -> None:
        self.closed = True
