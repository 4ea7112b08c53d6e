import pytest
from fastapi.testclient import TestClient

from pedestrian_counts.main import app, get_service
from pedestrian_counts.service import PedestrianQueryService


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def broken_client(broken_loader):
    app.dependency_overrides[get_service] = lambda: PedestrianQueryService(broken_loader)
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestQueries:
    def test_meta(self, client):
        r = client.get("/meta")
        assert r.status_code == 200
        assert r.json()["categories"] == ["Global", "Neighborhood"]

    def test_locations_with_repeated_params(self, client):
        r = client.get("/locations", params=[("borough", "The Bronx"), ("borough", "Bridges")])
        assert r.status_code == 200
        ids = [f["properties"]["id"] for f in r.json()["features"]]
        assert ids == [3, 4]

    def test_summary(self, client):
        body = client.get("/statistics/summary", params={"category": "Global"}).json()
        assert body["total_locations"] == 2
        assert body["mean_count"] == 400

    def test_grouped(self, client):
        rows = client.get("/statistics/category").json()["statistics"]
        assert rows[0]["category"] == "Global"

    def test_unknown_dimension(self, client):
        assert client.get("/statistics/street").status_code == 404

    def test_top_sites(self, client):
        body = client.get("/top_sites", params={"limit": 2}).json()
        assert body["count"] == 2
        assert [s["location"]["id"] for s in body["sites"]] == [1, 4]
        assert client.get("/top_sites", params={"limit": 0}).status_code == 422

    def test_site_count(self, client):
        assert client.get("/site_count", params={"borough": "Brooklyn"}).json() == {
            "borough": "Brooklyn",
            "count": 1,
        }


class TestCompare:
    def test_compare(self, client):
        r = client.get(
            "/compare",
            params={
                "group1_type": "borough",
                "group1": "Manhattan",
                "group2_type": "category",
                "group2": "Neighborhood",
            },
        )
        assert r.status_code == 200
        body = r.json()
        assert body["group2"]["statistics"]["location_count"] == 4
        assert body["differences"]["count"] == {"absolute": -2, "percentage": -66.67}

    def test_rejects_unknown_group_type(self, client):
        r = client.get(
            "/compare",
            params={"group1_type": "street", "group1": "x", "group2_type": "borough", "group2": "Bronx"},
        )
        assert r.status_code == 422

    def test_rejects_blank_group(self, client):
        r = client.get(
            "/compare",
            params={"group1_type": "borough", "group1": "", "group2_type": "borough", "group2": "Bronx"},
        )
        assert r.status_code == 422


class TestExports:
    def test_csv_attachment(self, client):
        r = client.get("/export/csv", params={"borough": "Queens"})
        assert r.status_code == 200
        assert r.headers["content-type"].startswith("text/csv")
        assert r.headers["content-disposition"] == 'attachment; filename="pedestrian_data.csv"'
        assert len(r.text.splitlines()) == 2

    def test_geojson_attachment(self, client):
        r = client.get("/export/geojson")
        assert r.headers["content-type"].startswith("application/geo+json")
        assert len(r.json()["features"]) == 4


class TestTimeSeries:
    def test_long_layout(self, client):
        body = client.get("/time_series/1").json()
        assert body["total_records"] == 4

    def test_wide_layout(self, client):
        body = client.get("/time_series/1", params={"layout": "wide"}).json()
        assert body["counts"] == [
            {"date": "2007-05-15", "AM": 120, "MD": None, "PM": None},
            {"date": "2008-06-15", "AM": 10, "MD": None, "PM": 12},
            {"date": "2008-10-15", "AM": None, "MD": 76, "PM": None},
        ]

    def test_unknown_location(self, client):
        body = client.get("/time_series/999").json()
        assert body["location"] is None
        assert body["counts"] == []


def test_data_unavailable_is_503(broken_client):
    r = broken_client.get("/statistics/summary")
    assert r.status_code == 503
    assert "Unable to load data" in r.json()["detail"]
