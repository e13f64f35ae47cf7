"""Effort arithmetic and the category to canonical pattern id mapping."""

import logging
import math
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping

logger = logging.getLogger(__name__)


class ComputationError(ArithmeticError):
    """Scoring produced a non-finite number."""
    pass


def round_effort(value: float) -> float:
    """Round to one decimal place, halves away from zero."""
    if not math.isfinite(value):
        raise ComputationError(f"Non-finite effort value: {value!r}")
    # str() first so 27.500000000000004 and 0.15 round the way they read
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


# Built-in category table; the remediation catalog may replace it.
DEFAULT_CATEGORY_MAP: dict[str, str] = {
    "Session State": "1",
    "Static Mutable Field": "7",
    "In-Process Cache": "9",
    "Application State": "3",
    "Thread-Local Storage": "25",
    "Database Connection State": "14",
    "Configuration State": "17",
}

DEFAULT_BASE_EFFORT: dict[str, float] = {
    "1": 25, "2": 19, "7": 10, "9": 18, "19": 30, "23": 7, "25": 12, "28": 20,
}

DEFAULT_PATTERN_ID = "1"
DEFAULT_EFFORT = 15.0


@dataclass(frozen=True)
class PatternMap:
    """Joins a finding category to its canonical pattern id and base effort.

    Categories missing from ``category_map`` fall back to ``default_pattern_id``;
    pattern ids missing from ``base_effort`` fall back to ``default_effort``.
    """

    category_map: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_CATEGORY_MAP))
    base_effort: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_BASE_EFFORT))
    default_pattern_id: str = DEFAULT_PATTERN_ID
    default_effort: float = DEFAULT_EFFORT

    @classmethod
    def from_catalog(cls, data: Mapping[str, Any]) -> "PatternMap":
        """Read the optional mapping overrides of a remediation catalog."""
        category_map = data.get("categoryMap")
        base_effort = data.get("baseEffort")
        return cls(
            category_map={str(k): str(v) for k, v in category_map.items()}
            if isinstance(category_map, dict) else dict(DEFAULT_CATEGORY_MAP),
            base_effort={str(k): float(v) for k, v in base_effort.items()}
            if isinstance(base_effort, dict) else dict(DEFAULT_BASE_EFFORT),
            default_pattern_id=str(data.get("defaultPatternId", DEFAULT_PATTERN_ID)),
            default_effort=float(data.get("defaultEffort", DEFAULT_EFFORT)),
        )

    def pattern_id_for(self, category: str) -> str:
        pattern_id = self.category_map.get(category)
        if pattern_id is None:
            logger.debug(f"No pattern id for category {category!r}, using {self.default_pattern_id}")
            return self.default_pattern_id
        return pattern_id

    def base_effort_for(self, pattern_id: str) -> float:
        return float(self.base_effort.get(pattern_id, self.default_effort))
