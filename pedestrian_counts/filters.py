from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

import pandas as pd

from .boroughs import known_boroughs, normalize_boroughs
from .parsing import as_identifier, is_nonempty

DIMENSION_COLUMNS = {"borough": "Borough", "category": "Category"}


def _as_tuple(values: Iterable[str] | str | None) -> tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        values = [values]
    return tuple(sorted({str(v).strip() for v in values if is_nonempty(v)}))


@dataclass(frozen=True)
class FilterSpec:
    boroughs: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    min_count: float | None = None
    max_count: float | None = None
    search: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "boroughs", _as_tuple(self.boroughs))
        object.__setattr__(self, "categories", _as_tuple(self.categories))
        search = self.search.strip() if self.search else None
        object.__setattr__(self, "search", search or None)

    @classmethod
    def from_params(
        cls,
        borough: list[str] | None = None,
        category: list[str] | None = None,
        min_count: float | None = None,
        max_count: float | None = None,
        search: str | None = None,
    ) -> FilterSpec:
        return cls(
            boroughs=borough or (),
            categories=category or (),
            min_count=min_count,
            max_count=max_count,
            search=search,
        )


def _loc_text(value: Any) -> str:
    value = as_identifier(value)
    return "" if value is None else str(value)


def _contains(series: pd.Series, needle: str) -> pd.Series:
    text = series.map(lambda v: str(v) if is_nonempty(v) else "")
    return text.str.lower().str.contains(needle, regex=False).astype(bool)


def apply_filters(records: pd.DataFrame, spec: FilterSpec) -> pd.DataFrame:
    """Narrow ``records`` to the rows matching ``spec``.

    Steps run in a fixed order (borough, category, min/max count, search) and
    only ever drop rows, so the result keeps the input order.
    """
    out = records

    if spec.boroughs:
        wanted = normalize_boroughs(spec.boroughs, known_boroughs(records))
        out = out.loc[out["Borough"].isin(wanted)]

    if spec.categories:
        out = out.loc[out["Category"].isin(spec.categories)]

    if spec.min_count is not None:
        out = out.loc[out["avg_recent_count"] >= spec.min_count]
    if spec.max_count is not None:
        out = out.loc[out["avg_recent_count"] <= spec.max_count]

    if spec.search and not out.empty:
        needle = spec.search.lower()
        mask = (
            _contains(out["Street_Nam_clean"], needle)
            | _contains(out["street_clean"], needle)
            | _contains(out["Loc"].map(_loc_text), needle)
        )
        out = out.loc[mask]

    return out.copy()
