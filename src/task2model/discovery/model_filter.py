"""Hard-constraint filtering for task2model.

Each active clause is a true dealbreaker. Clauses run in a fixed order and
evaluation stops at the first failure, so a model violating several clauses
is tallied once, under the earliest one:

1. context_too_short
2. input_modality_mismatch
3. output_modality_mismatch
4. price_exceeds_max
5. missing_required_parameters
6. too_new
7. free_model
8. provider_not_allowed
9. too_old
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, Optional

from ..providers.base import Model
from ..schema import HardConstraints

logger = logging.getLogger(__name__)

CONTEXT_TOO_SHORT = "context_too_short"
INPUT_MODALITY_MISMATCH = "input_modality_mismatch"
OUTPUT_MODALITY_MISMATCH = "output_modality_mismatch"
PRICE_EXCEEDS_MAX = "price_exceeds_max"
MISSING_REQUIRED_PARAMETERS = "missing_required_parameters"
TOO_NEW = "too_new"
FREE_MODEL = "free_model"
PROVIDER_NOT_ALLOWED = "provider_not_allowed"
TOO_OLD = "too_old"

EXCLUSION_ORDER = (
    CONTEXT_TOO_SHORT,
    INPUT_MODALITY_MISMATCH,
    OUTPUT_MODALITY_MISMATCH,
    PRICE_EXCEEDS_MAX,
    MISSING_REQUIRED_PARAMETERS,
    TOO_NEW,
    FREE_MODEL,
    PROVIDER_NOT_ALLOWED,
    TOO_OLD,
)

DEFAULT_MAX_AGE_DAYS = 365


@dataclass
class FilterResult:
    """Survivors of the hard filter and the per-reason exclusion tally."""

    survivors: list[Model]
    excluded_by: dict[str, int] = field(default_factory=dict)
    total: int = 0

    @property
    def excluded_count(self) -> int:
        return sum(self.excluded_by.values())

    def summary(self) -> dict:
        return {
            "total_models": self.total,
            "after_hard_filter": len(self.survivors),
            "excluded_by": dict(self.excluded_by),
        }


class ConstraintEvaluator:
    """Pure predicate over one model against a hard-constraint set."""

    def __init__(
        self,
        constraints: Optional[HardConstraints],
        now: datetime,
        default_max_age_days: Optional[int] = None,
    ):
        """Initialize the evaluator.

        Args:
            constraints: Hard constraints; None means no explicit constraints.
            now: Reference time for age calculations.
            default_max_age_days: Age ceiling applied when the constraints set none.
        """
        self.constraints = constraints or HardConstraints()
        self.now = now
        self.max_age_days = (
            self.constraints.max_age_days
            if self.constraints.max_age_days is not None
            else default_max_age_days
        )
        self._clauses: list[tuple[str, Callable[[Model], bool]]] = [
            (CONTEXT_TOO_SHORT, self._context_ok),
            (INPUT_MODALITY_MISMATCH, self._inputs_ok),
            (OUTPUT_MODALITY_MISMATCH, self._outputs_ok),
            (PRICE_EXCEEDS_MAX, self._price_ok),
            (MISSING_REQUIRED_PARAMETERS, self._parameters_ok),
            (TOO_NEW, self._min_age_ok),
            (FREE_MODEL, self._free_ok),
            (PROVIDER_NOT_ALLOWED, self._provider_ok),
            (TOO_OLD, self._max_age_ok),
        ]

    def evaluate(self, model: Model) -> Optional[str]:
        """Return None if the model passes, else the first failing reason tag."""
        for reason, passes in self._clauses:
            if not passes(model):
                return reason
        return None

    def _context_ok(self, model: Model) -> bool:
        minimum = self.constraints.min_context_length
        return not minimum or model.context_length >= minimum

    def _inputs_ok(self, model: Model) -> bool:
        wanted = self.constraints.input_modalities
        return not wanted or set(wanted) <= set(model.input_modalities)

    def _outputs_ok(self, model: Model) -> bool:
        wanted = self.constraints.output_modalities
        return not wanted or set(wanted) <= set(model.output_modalities)

    def _price_ok(self, model: Model) -> bool:
        ceiling = self.constraints.max_price
        if ceiling is None:
            return True
        if ceiling.prompt_per_1m is not None and model.prompt_per_1m > ceiling.prompt_per_1m:
            return False
        if (
            ceiling.completion_per_1m is not None
            and model.completion_per_1m > ceiling.completion_per_1m
        ):
            return False
        if ceiling.request is not None and model.request_price > ceiling.request:
            return False
        return True

    def _parameters_ok(self, model: Model) -> bool:
        return model.supports_all(self.constraints.required_parameters)

    def _min_age_ok(self, model: Model) -> bool:
        minimum = self.constraints.min_age_days
        # Unknown creation time counts as infinitely old.
        return minimum is None or model.age_days(self.now) >= minimum

    def _free_ok(self, model: Model) -> bool:
        return not (self.constraints.exclude_free and model.is_free)

    def _provider_ok(self, model: Model) -> bool:
        allowed = self.constraints.providers
        if not allowed:
            return True
        return model.provider in {p.lower() for p in allowed}

    def _max_age_ok(self, model: Model) -> bool:
        if self.max_age_days is None:
            return True
        age = model.age_days(self.now)
        return not math.isinf(age) and age <= self.max_age_days


class ModelFilter:
    """Apply hard constraints to a catalog."""

    @staticmethod
    def apply(
        models: Iterable[Model],
        constraints: Optional[HardConstraints],
        now: datetime,
        default_max_age_days: Optional[int] = None,
    ) -> FilterResult:
        """Filter models, tallying each exclusion under its first failing clause.

        Args:
            models: Catalog to filter.
            constraints: Hard constraints from the TaskSpec.
            now: Reference time for age calculations.
            default_max_age_days: Age ceiling used when none was given explicitly.

        Returns:
            FilterResult with survivors in catalog order.
        """
        evaluator = ConstraintEvaluator(constraints, now, default_max_age_days)
        survivors: list[Model] = []
        excluded_by: dict[str, int] = {}
        total = 0

        for model in models:
            total += 1
            reason = evaluator.evaluate(model)
            if reason is None:
                survivors.append(model)
            else:
                excluded_by[reason] = excluded_by.get(reason, 0) + 1

        logger.info(f"Hard filter kept {len(survivors)} of {total} models")
        if excluded_by:
            logger.debug(f"Exclusions: {excluded_by}")
        return FilterResult(survivors=survivors, excluded_by=excluded_by, total=total)
