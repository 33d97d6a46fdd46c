"""TaskSpec input schema for the task2model tool."""

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import InvalidInputError

Modality = Literal["text", "image", "audio", "video", "file"]


class DetailLevel(str, Enum):
    """Shortlist entry shape; exactly one applies per response."""

    NAMES_ONLY = "names_only"
    MINIMAL = "minimal"
    STANDARD = "standard"
    FULL = "full"


class RankingStrategy(str, Enum):
    """How survivors of the hard filter are ordered."""

    WEIGHTED = "weighted"  # Composite weighted score
    ORDINAL = "ordinal"  # Coverage -> price -> recency -> context
    SEMANTIC = "semantic"  # Description similarity first, 365-day age ceiling


class _Strict(BaseModel):
    model_config = ConfigDict(extra="forbid")


class MaxPrice(_Strict):
    prompt_per_1m: Optional[float] = Field(default=None, ge=0)
    completion_per_1m: Optional[float] = Field(default=None, ge=0)
    request: Optional[float] = Field(default=None, ge=0)


class TargetPrice(_Strict):
    prompt_per_1m: Optional[float] = Field(default=None, ge=0)
    completion_per_1m: Optional[float] = Field(default=None, ge=0)


class HardConstraints(_Strict):
    """True dealbreakers: a model failing any of these is excluded."""

    min_context_length: Optional[int] = Field(default=None, gt=0)
    input_modalities: Optional[list[Modality]] = None
    output_modalities: Optional[list[Modality]] = None
    max_price: Optional[MaxPrice] = None
    required_parameters: Optional[list[str]] = None
    min_age_days: Optional[int] = Field(default=None, ge=0)
    exclude_free: bool = False
    providers: Optional[list[str]] = None
    max_age_days: Optional[int] = Field(default=None, ge=0)


class SoftConstraints(_Strict):
    """Targets that shift scores without excluding models."""

    target_context_length: Optional[int] = Field(default=None, gt=0)
    target_price: Optional[TargetPrice] = None
    min_age_days: Optional[int] = Field(default=None, ge=0)


class ScoringWeights(_Strict):
    semantic: float = Field(default=0.35, ge=0, le=1)
    price: float = Field(default=0.20, ge=0, le=1)
    parameters: float = Field(default=0.25, ge=0, le=1)
    recency: float = Field(default=0.10, ge=0, le=1)
    context: float = Field(default=0.10, ge=0, le=1)


class Preferences(_Strict):
    prefer_newer: bool = True
    routing: Literal["price", "throughput", "latency"] = "price"
    prefer_exacto_for_tools: bool = True
    use_semantic_search: bool = True
    ranking: RankingStrategy = RankingStrategy.WEIGHTED
    scoring_weights: Optional[ScoringWeights] = None


class ResultConfig(_Strict):
    limit: int = Field(default=50, gt=0)
    detail: DetailLevel = DetailLevel.MINIMAL
    include_endpoints: bool = False
    include_parameters: bool = False
    include_request_skeleton: bool = False
    include_score_breakdown: bool = True
    force_refresh: bool = False


class TaskSpec(_Strict):
    """A recommendation request."""

    task: str = Field(min_length=1, description="Natural-language task description")
    hard_constraints: HardConstraints = Field(default_factory=HardConstraints)
    soft_constraints: SoftConstraints = Field(default_factory=SoftConstraints)
    preferences: Preferences = Field(default_factory=Preferences)
    result: ResultConfig = Field(default_factory=ResultConfig)


def parse_task_spec(arguments: dict[str, Any]) -> TaskSpec:
    """Validate raw tool arguments.

    Raises:
        InvalidInputError: With the validation errors and the first offending field.
    """
    try:
        return TaskSpec.model_validate(arguments)
    except ValidationError as e:
        errors = e.errors(include_url=False, include_context=False, include_input=False)
        first_field = ".".join(str(p) for p in errors[0]["loc"]) if errors else None
        raise InvalidInputError("Invalid TaskSpec", field=first_field, errors=errors) from e


def task_spec_schema() -> dict[str, Any]:
    """JSON schema advertised in tools/list."""
    return TaskSpec.model_json_schema()
