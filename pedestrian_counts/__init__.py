"""Query layer for the NYC pedestrian counts dataset."""

from .boroughs import normalize_borough, normalize_boroughs
from .comparison import GroupSpec, compare
from .exceptions import DataUnavailable, DivisionUndefined, ParseAnomaly, PedestrianCountsError
from .filters import FilterSpec, apply_filters
from .loader import DatasetCache, PedestrianDataLoader
from .parsing import parse_optional_number
from .service import ExportBlob, PedestrianQueryService
from .statistics import Statistics, describe, describe_by
from .time_series import pivot_by_date, reconstruct

__all__ = [
    "normalize_borough",
    "normalize_boroughs",
    "GroupSpec",
    "compare",
    "DataUnavailable",
    "DivisionUndefined",
    "ParseAnomaly",
    "PedestrianCountsError",
    "FilterSpec",
    "apply_filters",
    "DatasetCache",
    "PedestrianDataLoader",
    "parse_optional_number",
    "ExportBlob",
    "PedestrianQueryService",
    "Statistics",
    "describe",
    "describe_by",
    "pivot_by_date",
    "reconstruct",
]
