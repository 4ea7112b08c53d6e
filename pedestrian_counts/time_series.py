"""Rebuild a location's count history from its wide period columns.

Period columns are named ``<Month><YY>_<Period>`` (e.g. ``May07_AM``); the
``_num`` companion holds the numeric value. The data has month resolution
only, so every point is dated on the 15th.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Mapping

from .exceptions import ParseAnomaly
from .parsing import parse_optional_number, round_half_up

logger = logging.getLogger(__name__)

MONTHS = {
    "Jan": 1,
    "Feb": 2,
    "Mar": 3,
    "Apr": 4,
    "May": 5,
    "June": 6,
    "Jun": 6,
    "Jul": 7,
    "Aug": 8,
    "Sept": 9,
    "Oct": 10,
    "Nov": 11,
    "Dec": 12,
}
PERIODS = ("AM", "MD", "PM")
PERIOD_ORDER = {period: i for i, period in enumerate(PERIODS)}

PERIOD_COLUMN = re.compile(
    r"^(" + "|".join(sorted(MONTHS, key=len, reverse=True)) + r")(\d{2})_(AM|MD|PM)_num$"
)


def parse_period_column(key: str) -> tuple[str, str]:
    match = PERIOD_COLUMN.match(key)
    if not match:
        raise ParseAnomaly(f"Unrecognized period column: {key}")
    month, year, period = match.groups()
    return date(2000 + int(year), MONTHS[month], 15).isoformat(), period


def reconstruct(properties: Mapping[str, Any]) -> list[dict[str, Any]]:
    points: list[dict[str, Any]] = []
    for key, raw in properties.items():
        if not isinstance(key, str) or not key.endswith("_num"):
            continue
        try:
            count_date, period = parse_period_column(key)
        except ParseAnomaly as e:
            logger.debug("Skipping column: %s", e)
            continue
        value = parse_optional_number(raw)
        if value is None or value <= 0:
            continue
        points.append({"date": count_date, "period": period, "value": int(round_half_up(value))})

    points.sort(key=lambda p: (p["date"], PERIOD_ORDER[p["period"]]))
    return points


def pivot_by_date(points: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """One row per date with AM/MD/PM columns, None where a period is missing."""
    rows: dict[str, dict[str, Any]] = {}
    for point in points:
        row = rows.setdefault(point["date"], {"date": point["date"], **{p: None for p in PERIODS}})
        row[point["period"]] = point["value"]
    return list(rows.values())
