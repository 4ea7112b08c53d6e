"""Total parsing helpers shared by the loader, filters and time series."""

from __future__ import annotations

import math
from typing import Any

import numpy as np
import pandas as pd


def is_nonempty(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    if value is pd.NA or value is pd.NaT:
        return False
    return str(value).strip() != ""


def parse_optional_number(value: Any) -> float | None:
    """Return ``value`` as a finite float, or None when it is not a number.

    Never raises: None, NaN, blanks and arbitrary text all map to None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().strip('"').strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_optional_id(value: Any) -> int | None:
    number = parse_optional_number(value)
    if number is None:
        return None
    return int(number)


def plain(value: Any) -> Any:
    """Convert numpy/pandas scalars into JSON-friendly Python values."""
    if not is_nonempty(value) and not isinstance(value, str):
        return None
    if isinstance(value, np.generic):
        return value.item()
    return value


def as_identifier(value: Any) -> Any:
    value = plain(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with ties going up, not to even as ``round()`` does."""
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale
