from __future__ import annotations

import asyncio
import csv
import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable

import geopandas as gpd
import numpy as np
import pandas as pd
import requests
from shapely.geometry import Point

from .config import FETCH_TIMEOUT_S, PEDESTRIAN_CSV_SOURCE, PEDESTRIAN_GEOJSON_SOURCE
from .exceptions import DataUnavailable, ParseAnomaly
from .parsing import is_nonempty

logger = logging.getLogger(__name__)

CRS = "EPSG:4326"

RECORD_FIELDS = (
    "OBJECTID",
    "Loc",
    "Borough",
    "Street_Nam_clean",
    "street_clean",
    "Category",
    "segmentid",
    "avg_recent_count",
    "latitude",
    "longitude",
)
NUMERIC_FIELDS = ("OBJECTID", "segmentid", "Loc", "avg_recent_count", "latitude", "longitude")
# Feature properties keep their own Loc/segmentid typing
FEATURE_NUMERIC_FIELDS = ("OBJECTID", "avg_recent_count", "latitude", "longitude")


class DatasetCache:
    """Process-local cache of loaded collections.

    The first caller for a key starts the load; concurrent callers await the
    same task. A started load runs to completion even if a caller is
    cancelled. Failed loads are not cached, so a later call starts over, and
    a load that was in flight during ``invalidate()`` is not stored.
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}
        self._inflight: dict[str, asyncio.Future] = {}
        self._generation = 0

    def __contains__(self, key: str) -> bool:
        return key in self._values

    async def get_or_load(self, key: str, factory: Callable[[], Awaitable[Any]]) -> Any:
        if key in self._values:
            logger.debug("Using cached %s", key)
            return self._values[key]
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load(key, factory, self._generation))
            self._inflight[key] = task
        return await asyncio.shield(task)

    async def _load(self, key: str, factory: Callable[[], Awaitable[Any]], generation: int) -> Any:
        try:
            value = await factory()
            if generation == self._generation:
                self._values[key] = value
            else:
                logger.debug("Discarding %s loaded before invalidate()", key)
            return value
        finally:
            if self._inflight.get(key) is asyncio.current_task():
                del self._inflight[key]

    def invalidate(self) -> None:
        self._generation += 1
        self._values.clear()
        self._inflight.clear()


def _read_source(source: str) -> str:
    if source.startswith(("http://", "https://")):
        r = requests.get(source, timeout=FETCH_TIMEOUT_S)
        r.raise_for_status()
        return r.text
    return Path(source).read_text(encoding="utf-8-sig")


def _clean_value(value: str) -> str | None:
    value = value.strip()
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value if value != "" else None


def _ensure_columns(df: pd.DataFrame, numeric: tuple[str, ...] = NUMERIC_FIELDS) -> pd.DataFrame:
    for col in RECORD_FIELDS:
        if col not in df.columns:
            df[col] = None
    for col in numeric:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    df = df.loc[df["OBJECTID"].notna()].copy()
    df["OBJECTID"] = np.trunc(df["OBJECTID"]).astype("int64")
    return df.reset_index(drop=True)


def parse_tabular(text: str) -> pd.DataFrame:
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        raise ParseAnomaly("Tabular resource is empty")

    # Remote resources keep their byte order mark
    header = [_clean_value(h) or "" for h in next(csv.reader([lines[0].lstrip("\ufeff")]))]
    if "OBJECTID" not in header:
        raise ParseAnomaly("Tabular resource has no OBJECTID column")
    width = len(header)

    rows: list[list[str | None]] = []
    for line_no, values in enumerate(csv.reader(lines[1:]), start=2):
        if len(values) != width:
            logger.debug("Line %d has %d values, expected %d", line_no, len(values), width)
            values = (values + [""] * width)[:width]
        rows.append([_clean_value(v) for v in values])

    return _ensure_columns(pd.DataFrame(rows, columns=header, dtype=object))


def _point_coords(geom: Any) -> tuple[float, float] | None:
    if not isinstance(geom, Point) or geom.is_empty:
        return None
    return geom.x, geom.y


def _first_present(frame: pd.DataFrame, *keys: str) -> pd.Series:
    out = pd.Series(None, index=frame.index, dtype=object)
    for key in keys:
        if key in frame.columns:
            out = out.where(out.map(is_nonempty), frame[key])
    return out


def parse_features(text: str) -> gpd.GeoDataFrame:
    payload = json.loads(text)
    if not isinstance(payload, dict) or not isinstance(payload.get("features"), list):
        raise ParseAnomaly("Geometry resource is not a feature collection")

    features = payload["features"]
    if not features:
        return gpd.GeoDataFrame(
            {"object_id": pd.Series([], dtype=float), "geometry": gpd.GeoSeries([])},
            geometry="geometry",
            crs=CRS,
        )

    gdf = gpd.GeoDataFrame.from_features(features, crs=CRS)
    ids = pd.to_numeric(_first_present(gdf, "OBJECTID", "objectid"), errors="coerce")
    gdf["object_id"] = np.trunc(ids.astype(float))
    return gdf


def records_from_features(features: gpd.GeoDataFrame) -> pd.DataFrame:
    props = pd.DataFrame(features.drop(columns=["geometry"]))
    coords = features.geometry.map(_point_coords)

    records = props.drop(columns=["object_id"])
    records["OBJECTID"] = features["object_id"]
    records["Street_Nam_clean"] = _first_present(props, "Street_Nam_clean", "Street_Nam")
    records["street_clean"] = _first_present(props, "street_clean", "Street_Nam_clean")
    records["longitude"] = coords.map(lambda c: c[0] if c else np.nan)
    records["latitude"] = coords.map(lambda c: c[1] if c else np.nan)
    return _ensure_columns(records, FEATURE_NUMERIC_FIELDS)


def _read_tabular(source: str) -> pd.DataFrame:
    return parse_tabular(_read_source(source))


def _read_features(source: str) -> gpd.GeoDataFrame:
    return parse_features(_read_source(source))


class PedestrianDataLoader:
    def __init__(
        self,
        csv_source: str | None = None,
        geojson_source: str | None = None,
        cache: DatasetCache | None = None,
    ) -> None:
        self.csv_source = csv_source or PEDESTRIAN_CSV_SOURCE
        self.geojson_source = geojson_source or PEDESTRIAN_GEOJSON_SOURCE
        self.cache = cache or DatasetCache()

    async def load_records(self) -> pd.DataFrame:
        return await self.cache.get_or_load("records", self._load_records)

    async def load_features(self) -> gpd.GeoDataFrame:
        return await self.cache.get_or_load("features", self._load_features)

    async def _load_records(self) -> pd.DataFrame:
        logger.info("Loading tabular data from %s", self.csv_source)
        try:
            records = await asyncio.to_thread(_read_tabular, self.csv_source)
            logger.info("Loaded %d rows from tabular data", len(records))
            return records
        except Exception as e:
            logger.warning("Tabular data not available, extracting records from GeoJSON: %s", e)

        try:
            features = await self.load_features()
            records = records_from_features(features)
        except Exception as e:
            logger.error("Error loading data from GeoJSON: %s", e)
            raise DataUnavailable(f"Unable to load data: {e}") from e

        logger.info("Extracted %d rows from GeoJSON", len(records))
        return records

    async def _load_features(self) -> gpd.GeoDataFrame:
        logger.info("Loading GeoJSON data from %s", self.geojson_source)
        try:
            features = await asyncio.to_thread(_read_features, self.geojson_source)
        except Exception as e:
            logger.error("GeoJSON not available: %s", e)
            raise DataUnavailable(f"Failed to load GeoJSON: {e}") from e
        logger.info("Loaded GeoJSON with %d features", len(features))
        return features
