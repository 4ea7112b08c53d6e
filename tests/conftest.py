"""
Shared fixtures: a small pedestrian counts dataset written to tmp_path as
both the tabular CSV and the GeoJSON feature collection.
"""
import json

import pytest

from pedestrian_counts.loader import PedestrianDataLoader
from pedestrian_counts.service import PedestrianQueryService

CSV_TEXT = """OBJECTID,Loc,Borough,Street_Nam_clean,street_clean,Category,segmentid,avg_recent_count
"1","101","Manhattan","Broadway","broadway","Global","9001","500"
"2","102","Brooklyn","Flatbush Ave","flatbush ave","Neighborhood","9002","120"
"3","103","Bronx","Grand Concourse","grand concourse","Neighborhood","9003","80"
"4","104","East River Bridges","Brooklyn Bridge","brooklyn bridge","Global","9004","300"
"5","105","Queens","Main St","main st","Neighborhood","9005",""
"6","106","Staten Island","Bay St","bay st","Neighborhood","9006","40"
"""


def _point(lon, lat):
    return {"type": "Point", "coordinates": [lon, lat]}


FEATURES = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "geometry": _point(-73.99, 40.75),
            "properties": {
                "OBJECTID": "1",
                "Loc": 101,
                "Borough": "Manhattan",
                "Street_Nam_clean": "Broadway",
                "street_clean": "broadway",
                "Category": "Global",
                "avg_recent_count": 499,
                "May07_AM": "120",
                "May07_AM_num": "120",
                "Sept07_PM_num": "0",
                "Oct08_MD_num": "75.6",
                "June08_AM_num": 10,
                "Jun08_PM_num": "12",
                "Foo_num": 3,
            },
        },
        {
            "type": "Feature",
            "geometry": _point(-73.96, 40.65),
            "properties": {
                "objectid": 2,
                "Loc": 102,
                "Borough": "Brooklyn",
                "Street_Nam_clean": "Flatbush Ave",
                "Category": "Neighborhood",
                "avg_recent_count": 120,
            },
        },
        {
            "type": "Feature",
            "geometry": _point(-73.92, 40.83),
            "properties": {
                "OBJECTID": 3,
                "Loc": 103,
                "Borough": "Bronx",
                "Street_Nam": "Grand Concourse",
                "Category": "Neighborhood",
                "avg_recent_count": 80,
            },
        },
        {
            "type": "Feature",
            "geometry": _point(-73.99, 40.71),
            "properties": {
                "OBJECTID": 4,
                "Loc": 104,
                "Borough": "East River Bridges",
                "Street_Nam_clean": "Brooklyn Bridge",
                "Category": "Global",
                "avg_recent_count": 300,
            },
        },
        {
            "type": "Feature",
            "geometry": None,
            "properties": {
                "OBJECTID": 5,
                "Loc": 105,
                "Borough": "Queens",
                "Street_Nam_clean": "Main St",
                "Category": "Neighborhood",
                "avg_recent_count": None,
            },
        },
        {
            "type": "Feature",
            "geometry": _point(-74.0, 40.7),
            "properties": {
                "OBJECTID": 7,
                "Loc": 107,
                "Borough": "Manhattan",
                "Street_Nam_clean": "Wall St",
                "Category": "Global",
                "avg_recent_count": 60,
            },
        },
    ],
}


@pytest.fixture
def data_paths(tmp_path):
    csv_path = tmp_path / "pedestrian_data.csv"
    geo_path = tmp_path / "pedestrian_data.geojson"
    csv_path.write_text(CSV_TEXT, encoding="utf-8")
    geo_path.write_text(json.dumps(FEATURES), encoding="utf-8")
    return csv_path, geo_path


@pytest.fixture
def loader(data_paths):
    csv_path, geo_path = data_paths
    return PedestrianDataLoader(csv_source=str(csv_path), geojson_source=str(geo_path))


@pytest.fixture
def fallback_loader(data_paths, tmp_path):
    """Loader whose CSV is missing, so records come from the GeoJSON."""
    _, geo_path = data_paths
    return PedestrianDataLoader(
        csv_source=str(tmp_path / "missing.csv"),
        geojson_source=str(geo_path),
    )


@pytest.fixture
def broken_loader(tmp_path):
    return PedestrianDataLoader(
        csv_source=str(tmp_path / "missing.csv"),
        geojson_source=str(tmp_path / "missing.geojson"),
    )


@pytest.fixture
def service(loader):
    return PedestrianQueryService(loader)
