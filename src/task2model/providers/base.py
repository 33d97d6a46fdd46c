"""Catalog data model shared by the provider client and the recommender."""

import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")

TOKENS_PER_MILLION = 1_000_000
MS_PER_DAY = 24 * 60 * 60 * 1000

_MODALITY_SPLIT = re.compile(r"[+,/]")


def parse_price(value: Any) -> float:
    """Parse a per-token decimal string. Missing or malformed values are infinite."""
    if value is None or value == "":
        return math.inf
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return math.inf
    return math.inf if math.isnan(parsed) else parsed


def per_million(value: Any) -> float:
    """Convert a per-token price to a per-1M-token price."""
    return parse_price(value) * TOKENS_PER_MILLION


def per_token(value: float) -> float:
    """Convert a per-1M-token price back to a per-token price."""
    return value / TOKENS_PER_MILLION


def parse_modalities(modality: Optional[str]) -> tuple[list[str], list[str]]:
    """Split an architecture modality string such as ``text+image->text``."""
    input_part, _, output_part = (modality or "text->text").partition("->")

    def _parse(part: str) -> list[str]:
        values = [p.strip().lower() for p in _MODALITY_SPLIT.split(part or "")]
        return [v for v in values if v] or ["text"]

    return _parse(input_part), _parse(output_part)


@dataclass(frozen=True)
class Pricing:
    """Upstream pricing, kept as the decimal strings the API returns."""

    prompt: Optional[str] = None
    completion: Optional[str] = None
    request: Optional[str] = None
    image: Optional[str] = None

    @classmethod
    def from_openrouter(cls, data: Optional[dict[str, Any]]) -> "Pricing":
        data = data or {}

        def _str(key: str) -> Optional[str]:
            value = data.get(key)
            return None if value is None else str(value)

        return cls(
            prompt=_str("prompt"),
            completion=_str("completion"),
            request=_str("request"),
            image=_str("image"),
        )


@dataclass
class Model:
    """A single catalog entry from the OpenRouter ``/models`` listing."""

    id: str
    name: str
    created: Optional[int] = None
    description: str = ""
    context_length: int = 0
    modality: str = "text->text"
    pricing: Pricing = field(default_factory=Pricing)
    supported_parameters: list[str] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_openrouter(cls, data: dict[str, Any]) -> "Model":
        """Create a Model from an OpenRouter API record."""
        model_id = data.get("id", "")
        architecture = data.get("architecture") or {}
        created = data.get("created")

        return cls(
            id=model_id,
            name=data.get("name") or model_id,
            created=int(created) if created else None,
            description=data.get("description") or "",
            context_length=int(data.get("context_length") or 0),
            modality=architecture.get("modality") or "text->text",
            pricing=Pricing.from_openrouter(data.get("pricing")),
            supported_parameters=list(data.get("supported_parameters") or []),
            raw=data,
        )

    @property
    def provider(self) -> str:
        """Provider slug, e.g. ``anthropic`` for ``anthropic/claude-sonnet-4``."""
        return self.id.split("/")[0].lower() if self.id else ""

    @property
    def base_id(self) -> str:
        """Identifier without any ``:variant`` suffix."""
        return self.id.split(":")[0]

    @property
    def input_modalities(self) -> list[str]:
        return parse_modalities(self.modality)[0]

    @property
    def output_modalities(self) -> list[str]:
        return parse_modalities(self.modality)[1]

    @property
    def prompt_per_1m(self) -> float:
        return per_million(self.pricing.prompt)

    @property
    def completion_per_1m(self) -> float:
        return per_million(self.pricing.completion)

    @property
    def request_price(self) -> float:
        # A missing per-request fee means there is none.
        if self.pricing.request is None:
            return 0.0
        return parse_price(self.pricing.request)

    @property
    def total_per_1m(self) -> float:
        return self.prompt_per_1m + self.completion_per_1m

    @property
    def is_free(self) -> bool:
        prompt = parse_price(self.pricing.prompt or "0")
        completion = parse_price(self.pricing.completion or "0")
        return prompt == 0 and completion == 0

    def age_days(self, now: datetime) -> float:
        """Whole days since creation; infinite when the creation time is unknown."""
        if not self.created:
            return math.inf
        now_ms = now.timestamp() * 1000
        return float(math.floor((now_ms - self.created * 1000) / MS_PER_DAY))

    def supports_all(self, parameters: Optional[list[str]]) -> bool:
        supported = set(self.supported_parameters)
        return all(p in supported for p in parameters or [])


@dataclass
class Endpoint:
    """A single provider endpoint serving a model."""

    name: str
    provider_name: Optional[str] = None
    context_length: Optional[int] = None
    pricing: Pricing = field(default_factory=Pricing)
    supported_parameters: list[str] = field(default_factory=list)
    quantization: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_openrouter(cls, data: dict[str, Any]) -> "Endpoint":
        return cls(
            name=data.get("name", ""),
            provider_name=data.get("provider_name"),
            context_length=data.get("context_length"),
            pricing=Pricing.from_openrouter(data.get("pricing")),
            supported_parameters=list(data.get("supported_parameters") or []),
            quantization=data.get("quantization"),
            raw=data,
        )


@dataclass
class ProviderResult(Generic[T]):
    """Successful provider call, tagged with whether an API key was sent."""

    data: T
    auth_used: bool
