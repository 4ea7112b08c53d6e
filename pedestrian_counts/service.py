from __future__ import annotations

import csv
import json
import logging
from dataclasses import dataclass
from typing import Any

import geopandas as gpd
import numpy as np
import pandas as pd

from .comparison import GroupSpec, compare
from .filters import DIMENSION_COLUMNS, FilterSpec, apply_filters
from .loader import CRS, NUMERIC_FIELDS, PedestrianDataLoader
from .parsing import as_identifier, is_nonempty, parse_optional_id, plain
from .statistics import VALUE_COLUMN, describe, grouped_statistics
from .time_series import reconstruct

logger = logging.getLogger(__name__)

# Record column -> display property on joined features
DISPLAY_COLUMNS = {
    "Loc": "loc_id",
    "Borough": "borough",
    "Street_Nam_clean": "street_name_clean",
    "street_clean": "street_clean",
    "Category": "category",
    "segmentid": "segmentid",
    "avg_recent_count": "avg_recent_count",
}
# Display properties that fall back to the feature's own value when blank
FEATURE_FALLBACKS = {"street_name_clean": "Street_Nam_clean", "street_clean": "street_clean"}


@dataclass(frozen=True)
class ExportBlob:
    content: bytes
    media_type: str
    filename: str


def _valid_points(gdf: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    geoms = gdf.geometry
    mask = geoms.notna() & (geoms.geom_type == "Point") & ~geoms.is_empty
    points = geoms.loc[mask]
    finite = np.isfinite(points.x.to_numpy()) & np.isfinite(points.y.to_numpy())
    return gdf.loc[points.index[finite]]


def _to_geojson(gdf: gpd.GeoDataFrame, drop_cols: set[str] | None = None) -> dict[str, Any]:
    if drop_cols:
        keep = [c for c in gdf.columns if c not in drop_cols]
        gdf = gdf[keep]
    if gdf.empty:
        return {"type": "FeatureCollection", "features": []}
    return json.loads(gdf.to_json(drop_id=True))


def _join_features(filtered: pd.DataFrame, features: gpd.GeoDataFrame) -> dict[str, Any]:
    if filtered.empty or features.empty:
        return {"type": "FeatureCollection", "features": []}

    display = filtered[list(DISPLAY_COLUMNS)].rename(columns=DISPLAY_COLUMNS)
    display.insert(0, "objectid", filtered["OBJECTID"].astype("int64"))
    display.insert(0, "id", filtered["OBJECTID"].astype("int64"))
    display["_join_key"] = display["objectid"].astype(float)

    # Later duplicates win, as with a keyed lookup
    lookup = features.loc[features["object_id"].notna()].drop_duplicates(subset=["object_id"], keep="last")
    merged = display.merge(
        pd.DataFrame(lookup),
        left_on="_join_key",
        right_on="object_id",
        how="inner",
        suffixes=("", "_feature"),
    )

    for prop, feature_col in FEATURE_FALLBACKS.items():
        source = f"{feature_col}_feature" if feature_col == prop else feature_col
        if source in merged.columns:
            merged[prop] = merged[prop].where(merged[prop].map(is_nonempty).astype(bool), merged[source])

    drop_cols = {"_join_key", "object_id"} | {c for c in merged.columns if c.endswith("_feature")}
    joined = gpd.GeoDataFrame(merged, geometry="geometry", crs=CRS)
    return _to_geojson(_valid_points(joined), drop_cols)


def _location(row: dict[str, Any]) -> dict[str, Any]:
    object_id = as_identifier(row.get("OBJECTID"))
    return {
        "id": object_id,
        "objectid": object_id,
        "loc_id": as_identifier(row.get("Loc")),
        "borough": plain(row.get("Borough")),
        "street_name_clean": plain(row.get("Street_Nam_clean")),
        "street_clean": plain(row.get("street_clean")),
        "category": plain(row.get("Category")),
        "segmentid": as_identifier(row.get("segmentid")),
    }


def _integral_columns_as_int(frame: pd.DataFrame) -> pd.DataFrame:
    out = frame.copy()
    for col in NUMERIC_FIELDS:
        if col not in out.columns or not pd.api.types.is_float_dtype(out[col]):
            continue
        values = out[col].dropna()
        if (values == np.trunc(values)).all():
            out[col] = out[col].astype("Int64")
    return out


class PedestrianQueryService:
    """Entry points for callers: every answer is plain data, never frames."""

    def __init__(self, loader: PedestrianDataLoader | None = None) -> None:
        self.loader = loader or PedestrianDataLoader()

    async def _filtered(self, spec: FilterSpec | None) -> pd.DataFrame:
        records = await self.loader.load_records()
        return apply_filters(records, spec or FilterSpec())

    async def _borough_scoped(self, borough: str | None) -> pd.DataFrame:
        records = await self.loader.load_records()
        if borough:
            records = apply_filters(records, FilterSpec(boroughs=(borough,)))
        return records.loc[records[VALUE_COLUMN].notna()]

    async def get_locations(self, spec: FilterSpec | None = None) -> dict[str, Any]:
        filtered = await self._filtered(spec)
        features = await self.loader.load_features()
        collection = _join_features(filtered, features)
        logger.debug("%d of %d filtered rows have a usable point", len(collection["features"]), len(filtered))
        return collection

    async def get_summary_statistics(self, spec: FilterSpec | None = None) -> dict[str, Any]:
        filtered = await self._filtered(spec)
        stats = describe(filtered[VALUE_COLUMN])
        return {
            "total_locations": int(len(filtered)),
            "count": stats.count,
            "mean_count": stats.mean,
            "median_count": stats.median,
            "min_count": stats.min,
            "max_count": stats.max,
            "std_dev": stats.std_dev,
        }

    async def get_grouped_statistics(self, dimension: str) -> dict[str, Any]:
        records = await self.loader.load_records()
        return {"statistics": grouped_statistics(records, dimension)}

    async def get_top_sites(self, limit: int = 10, borough: str | None = None) -> dict[str, Any]:
        scoped = await self._borough_scoped(borough)
        ranked = scoped.sort_values(VALUE_COLUMN, ascending=False, kind="stable").head(max(int(limit), 0))
        sites = [
            {"location": _location(row), "avg_recent_count": float(row[VALUE_COLUMN])}
            for row in ranked.to_dict("records")
        ]
        return {"sites": sites, "count": len(sites)}

    async def get_site_count(self, borough: str | None = None) -> int:
        scoped = await self._borough_scoped(borough)
        return int(len(scoped))

    async def compare_groups(self, group1: GroupSpec, group2: GroupSpec) -> dict[str, Any]:
        records = await self.loader.load_records()
        return compare(records, group1, group2)

    async def export_tabular(self, spec: FilterSpec | None = None) -> ExportBlob:
        filtered = _integral_columns_as_int(await self._filtered(spec))
        text = filtered.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n", na_rep="")
        return ExportBlob(text.encode("utf-8"), "text/csv", "pedestrian_data.csv")

    async def export_geospatial(self, spec: FilterSpec | None = None) -> ExportBlob:
        collection = await self.get_locations(spec)
        text = json.dumps(collection, indent=2)
        return ExportBlob(text.encode("utf-8"), "application/geo+json", "pedestrian_data.geojson")

    async def get_time_series(self, location_id: Any) -> dict[str, Any]:
        features = await self.loader.load_features()
        target = parse_optional_id(location_id)
        match = features.loc[features["object_id"] == target] if target is not None else features.iloc[0:0]

        if match.empty:
            return {"location_id": location_id, "location": None, "counts": [], "total_records": 0}

        props = match.iloc[0].drop(labels=["geometry", "object_id"]).to_dict()
        counts = reconstruct(props)
        location = _location({**props, "OBJECTID": target})
        return {
            "location_id": location_id,
            "location": location,
            "counts": counts,
            "total_records": len(counts),
        }

    async def get_filter_options(self) -> dict[str, Any]:
        records = await self.loader.load_records()
        stats = describe(records[VALUE_COLUMN])

        def _distinct(column: str) -> list[str]:
            return sorted({str(v) for v in records[column] if is_nonempty(v)})

        return {
            "boroughs": _distinct(DIMENSION_COLUMNS["borough"]),
            "categories": _distinct(DIMENSION_COLUMNS["category"]),
            "count_min": stats.min,
            "count_max": stats.max,
            "total_locations": int(len(records)),
        }
