import pytest
from fastapi.testclient import TestClient

from centerline.api.dependencies import get_store, reset_store
from centerline.api.main import app
from centerline.core import config as core_config
from centerline.core.storage import MemoryStore


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()
    reset_store()


def _stored(client, *points):
    body = [p.to_storage() for p in points]
    response = client.post("/api/v1/points", json=body)
    assert response.status_code == 200
    return body


def test_root_and_status(client):
    assert "Centerline" in client.get("/").json()["message"]
    response = client.get("/api/v1/status/")
    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "message": "Centerline API is running.",
        "storage_backend": "memory",
    }


def test_points_are_empty_until_saved(client):
    response = client.get("/api/v1/points")
    assert response.status_code == 200
    assert response.json() == []


def test_post_overwrites_collection(client, point_factory):
    response = client.post("/api/v1/points", json=[point_factory("P-01", 1).to_storage()])
    assert response.json() == {"success": True}
    client.post("/api/v1/points", json=[point_factory("P-02", 2).to_storage()])

    points = client.get("/api/v1/points").json()
    assert [p["id"] for p in points] == ["P-02"]
    assert "targetValue" in points[0]


def test_post_rejects_invalid_points(client):
    response = client.post("/api/v1/points", json=[{"id": "P-01"}])
    assert response.status_code == 422


def test_patch_merges_fields(client, point_factory):
    _stored(client, point_factory("P-01", 1))
    response = client.patch("/api/v1/points/P-01", json={"tolerance": "+/- 0.5", "phaseAngle": 90})
    assert response.status_code == 200
    assert response.json()["tolerance"] == "+/- 0.5"
    stored = client.get("/api/v1/points").json()[0]
    assert stored["phaseAngle"] == 90
    assert stored["name"] == "Point 1"


def test_patch_unknown_point_is_404(client):
    response = client.patch("/api/v1/points/P-99", json={"name": "x"})
    assert response.status_code == 404
    assert response.json() == {"detail": "Point not found"}


def test_patch_invalid_merge_is_422(client, point_factory):
    _stored(client, point_factory("P-01", 1))
    response = client.patch("/api/v1/points/P-01", json={"phaseAngle": 360})
    assert response.status_code == 422
    assert client.get("/api/v1/points").json()[0]["phaseAngle"] is None


def test_put_status_touches_only_status(client, point_factory):
    _stored(client, point_factory("P-01", 1, tag_comment="worn"))
    response = client.put("/api/v1/points/P-01/status", json={"status": "TaggedRed"})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "TaggedRed"
    assert body["lastChecked"] is not None
    assert body["tagComment"] == "worn"

    assert client.put("/api/v1/points/P-99/status", json={"status": "OK"}).status_code == 404
    assert client.put("/api/v1/points/P-01/status", json={"status": "Broken"}).status_code == 422


def test_layout_round_trip(client):
    assert client.get("/api/v1/layout").json() == []
    module = {"id": "m1", "label": "Infeed", "x": 0, "y": 15, "width": 20, "height": 12}
    assert client.post("/api/v1/layout", json=[module]).json() == {"success": True}
    stored = client.get("/api/v1/layout").json()
    assert stored[0]["label"] == "Infeed"
    assert stored[0]["hasFill"] is False


def test_qr_link_for_non_local_origin(client):
    response = client.get("/api/v1/points/LSK-B1/qr", params={"size": 300})
    assert response.status_code == 200
    body = response.json()
    assert body["deep_link"] == "http://testserver/?p=LSK-B1"
    assert "size=300x300" in body["qr_image_url"]
    assert body["needs_public_url_setup"] is False


def test_qr_link_from_local_origin_uses_public_url(client):
    client.put("/api/v1/settings", json={"public_base_url": "http://192.168.1.20:3000"})
    response = client.get("/api/v1/points/LSK-B1/qr", params={"origin": "http://localhost:3000"})
    body = response.json()
    assert body["deep_link"] == "http://192.168.1.20:3000/?p=LSK-B1"
    assert body["size"] == 200


def test_qr_link_unknown_point(client):
    assert client.get("/api/v1/points/nope/qr").status_code == 404


def test_settings_round_trip(client):
    assert client.get("/api/v1/settings").json()["sidebar_collapsed"] is False
    response = client.put("/api/v1/settings", json={"sidebar_collapsed": True})
    assert response.json()["sidebar_collapsed"] is True
    assert client.get("/api/v1/settings").json()["sidebar_collapsed"] is True


def test_map_view(client):
    response = client.get("/api/v1/views/map", params={"width": 800, "height": 400, "selected": "LSK-B1"})
    assert response.status_code == 200
    body = response.json()
    assert len(body["regions"]) == 7
    assert body["markers"][-1]["point_id"] == "LSK-B1"
    assert body["markers"][-1]["role"] == "selected"


def test_map_and_dial_images(client):
    response = client.get("/api/v1/views/map.png", params={"mode": "print"})
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.content.startswith(b"\x89PNG")
    assert client.get("/api/v1/views/phasing.png", params={"angle": 90}).content.startswith(b"\x89PNG")


def test_phasing_view(client):
    body = client.get("/api/v1/views/phasing", params={"angle": 0}).json()
    assert body["needle_x"] == pytest.approx(150)
    assert body["needle_y"] == pytest.approx(30)
    angles = [m["phase_angle"] for m in body["markers"]]
    assert angles == sorted(angles)
    assert all(m["near"] == (m["phase_angle"] < 10) for m in body["markers"])
    assert client.get("/api/v1/views/phasing", params={"angle": 400}).status_code == 422


def test_checklist_csv(client):
    response = client.get("/api/v1/views/checklist.csv", params={"zone": "Forming"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    lines = response.text.strip().splitlines()
    assert lines[0].startswith("number,id,name,zone")
    assert all(",Forming," in line for line in lines[1:])


def test_duplicate_ids_rejected_when_enforced(client, point_factory):
    body = [point_factory("P-01", 1).to_storage(), point_factory("P-01", 2).to_storage()]
    assert client.post("/api/v1/points", json=body).status_code == 200

    core_config.get_config()["app"]["catalog"]["enforce_unique_ids"] = True
    response = client.post("/api/v1/points", json=body)
    assert response.status_code == 409
    assert "P-01" in response.json()["detail"]


def test_points_through_configured_file_store(tmp_path, point_factory):
    core_config.get_config()["app"]["storage_backend"] = "file"
    core_config.get_config()["app"]["data_dir"] = str(tmp_path / "api_data")
    reset_store()
    try:
        client = TestClient(app)
        assert client.get("/api/v1/points").json() == []
        body = [point_factory("P-01", 1).to_storage()]
        assert client.post("/api/v1/points", json=body).json() == {"success": True}
        assert (tmp_path / "api_data" / "points.json").exists()
        assert [p["id"] for p in client.get("/api/v1/points").json()] == ["P-01"]
        assert client.get("/api/v1/status/").json()["storage_backend"] == "file"
    finally:
        reset_store()
