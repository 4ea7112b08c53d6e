from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable

import numpy as np
import pandas as pd

from .filters import DIMENSION_COLUMNS
from .parsing import is_nonempty, plain

VALUE_COLUMN = "avg_recent_count"


@dataclass(frozen=True)
class Statistics:
    count: int
    mean: float
    median: float
    min: float
    max: float
    std_dev: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


EMPTY_STATISTICS = Statistics(count=0, mean=0.0, median=0.0, min=0.0, max=0.0, std_dev=0.0)


def describe(values: Iterable[Any]) -> Statistics:
    """Descriptive statistics of the numeric values in ``values``.

    Nulls and non-numeric entries are dropped first and ``count`` is the size
    of what remains. The standard deviation is the population one (ddof=0).
    An empty sample gives all zeros.
    """
    sample = pd.to_numeric(pd.Series(list(values), dtype=object), errors="coerce").dropna()
    arr = sample.to_numpy(dtype=float)
    if arr.size == 0:
        return EMPTY_STATISTICS
    return Statistics(
        count=int(arr.size),
        mean=float(arr.mean()),
        median=float(np.median(arr)),
        min=float(arr.min()),
        max=float(arr.max()),
        std_dev=float(arr.std()),
    )


def describe_by(records: pd.DataFrame, key: str, value: str = VALUE_COLUMN) -> dict[Any, dict[str, Any]]:
    frame = records[[key, value]].copy()
    frame[value] = pd.to_numeric(frame[value], errors="coerce")
    frame = frame.loc[frame[key].map(is_nonempty).astype(bool) & frame[value].notna()]

    out: dict[Any, dict[str, Any]] = {}
    for group, part in frame.groupby(key, sort=False):
        stats = describe(part[value]).to_dict()
        stats["location_count"] = int(len(part))
        out[plain(group)] = stats
    return out


def grouped_statistics(records: pd.DataFrame, dimension: str) -> list[dict[str, Any]]:
    if dimension not in DIMENSION_COLUMNS:
        raise ValueError(f"Unsupported dimension: {dimension}")

    rows = [
        {
            dimension: label,
            "location_count": stats["location_count"],
            "avg_count": stats["mean"],
            "median_count": stats["median"],
            "min_count": stats["min"],
            "max_count": stats["max"],
            "std_dev": stats["std_dev"],
        }
        for label, stats in describe_by(records, DIMENSION_COLUMNS[dimension]).items()
    ]
    # Categories read best highest first; boroughs keep data order
    if dimension == "category":
        rows.sort(key=lambda row: row["avg_count"], reverse=True)
    return rows
