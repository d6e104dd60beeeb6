import io

from fastapi.testclient import TestClient

from conftest import MEMORY_DB
from fittrack.core.gpx import read_gpx_points
from fittrack.main import create_app
from fittrack.storage.activity_store import ActivityStore

PAYLOAD = {
    "name": "Test Run",
    "date": "2025-01-01T07:00:00Z",
    "duration": 1800,
    "distance": 5.0,
    "route": [
        {"latitude": 52.3676, "longitude": 4.9041},
        {"latitude": 52.3680, "longitude": 4.9050},
    ],
    "photo_reference": None,
}


def get_client():
    # Use in-memory sqlite for tests
    return TestClient(create_app(store=ActivityStore(MEMORY_DB)))


def test_root_ok():
    with get_client() as client:
        r = client.get("/")
        assert r.status_code == 200
        data = r.json()
        assert "message" in data


def test_create_and_list_activity():
    with get_client() as client:
        cr = client.post("/activities/", json=PAYLOAD)
        assert cr.status_code == 200, cr.text
        activity = cr.json()
        assert activity["pace"] == "6:00/km"
        assert activity["duration_display"] == "30m 0s"
        assert len(activity["route"]) == 2

        lr = client.get("/activities/")
        assert lr.status_code == 200
        arr = lr.json()
        assert [a["id"] for a in arr] == [activity["id"]]
        assert "route" not in arr[0]


def test_list_is_most_recent_first():
    with get_client() as client:
        older = client.post("/activities/", json={**PAYLOAD, "name": "older", "date": "2024-12-30T07:00:00Z"}).json()
        newer = client.post("/activities/", json={**PAYLOAD, "name": "newer"}).json()

        names = [a["name"] for a in client.get("/activities/").json()]
        assert names == [newer["name"], older["name"]]


def test_detail_gpx_and_delete():
    with get_client() as client:
        activity_id = client.post("/activities/", json=PAYLOAD).json()["id"]

        detail = client.get(f"/activities/{activity_id}")
        assert detail.status_code == 200
        assert detail.json()["name"] == "Test Run"

        gpx = client.get(f"/activities/{activity_id}/gpx")
        assert gpx.status_code == 200
        assert gpx.headers["content-type"].startswith("application/gpx+xml")
        points = read_gpx_points(io.StringIO(gpx.text))
        assert [(p.latitude, p.longitude) for p in points] == [
            (pt["latitude"], pt["longitude"]) for pt in PAYLOAD["route"]
        ]

        dr = client.delete(f"/activities/{activity_id}")
        assert dr.status_code == 200
        assert client.get(f"/activities/{activity_id}").status_code == 404
        assert client.delete(f"/activities/{activity_id}").status_code == 404


def test_invalid_activity_rejected():
    with get_client() as client:
        r = client.post("/activities/", json={**PAYLOAD, "duration": -5})
        assert r.status_code == 422
        assert client.get("/activities/").json() == []


def test_activity_without_route_rejected():
    with get_client() as client:
        for body in ({**PAYLOAD, "route": []}, {k: v for k, v in PAYLOAD.items() if k != "route"}):
            r = client.post("/activities/", json=body)
            assert r.status_code == 422
        assert client.get("/activities/").json() == []


def test_store_not_initialized_returns_503():
    # no `with`: lifespan does not run, so the store is never opened
    client = TestClient(create_app(store=ActivityStore(MEMORY_DB)))
    r = client.get("/activities/")
    assert r.status_code == 503
