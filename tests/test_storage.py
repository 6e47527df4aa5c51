import os

import pytest
import requests

from centerline.core.exceptions import StoreReadError, StoreWriteError
from centerline.core.storage import (
    LAYOUT_KEY,
    POINTS_KEY,
    PUBLIC_URL_KEY,
    FileStore,
    MemoryStore,
    RemoteStore,
    create_store,
)


class _Response:
    def __init__(self, text="", status_code=200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class _StubSession:
    """Records requests and answers from a per-URL table."""

    def __init__(self, responses=None, error=None):
        self.responses = responses or {}
        self.error = error
        self.posted = []

    def get(self, url, timeout=None):
        if self.error:
            raise self.error
        return self.responses.get(url, _Response("[]"))

    def post(self, url, data=None, headers=None, timeout=None):
        if self.error:
            raise self.error
        self.posted.append((url, data.decode("utf-8"), headers))
        return _Response('{"success": true}')


def test_memory_store_returns_none_when_nothing_saved(memory_store):
    assert memory_store.load_points() is None
    assert memory_store.load_layout() is None


def test_memory_store_round_trip(memory_store, sample_points):
    memory_store.save_points(sample_points)
    assert memory_store.load_points() == sample_points


def test_unparseable_points_raise_read_error():
    store = MemoryStore({POINTS_KEY: "not json"})
    with pytest.raises(StoreReadError):
        store.load_points()


def test_file_store_writes_catalog_files(file_store, sample_points):
    file_store.save_points(sample_points)
    file_store.set_item(PUBLIC_URL_KEY, "http://192.168.1.20:3000")

    assert os.path.exists(os.path.join(file_store.data_dir, "points.json"))
    assert os.path.exists(os.path.join(file_store.data_dir, f"{PUBLIC_URL_KEY}.txt"))
    assert file_store.load_points() == sample_points
    assert file_store.get_item(PUBLIC_URL_KEY) == "http://192.168.1.20:3000"
    leftovers = [name for name in os.listdir(file_store.data_dir) if name.startswith(".store_tmp_")]
    assert leftovers == []


def test_file_store_missing_files_read_as_none(file_store):
    assert file_store.get_item(LAYOUT_KEY) is None
    file_store.remove_item(LAYOUT_KEY)


def test_file_store_write_failure_raises(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file where a directory should be")
    store = FileStore(str(blocker / "data"))
    with pytest.raises(StoreWriteError):
        store.set_item(POINTS_KEY, "[]")


def test_remote_store_treats_empty_backend_as_nothing_saved():
    store = RemoteStore("http://backend/api/v1/", session=_StubSession())
    assert store.load_points() is None
    assert store.load_layout() is None


def test_remote_store_posts_collections(sample_points):
    http = _StubSession()
    store = RemoteStore("http://backend/api/v1", session=http)
    store.save_points(sample_points)
    url, body, headers = http.posted[0]
    assert url == "http://backend/api/v1/points"
    assert headers["Content-Type"] == "application/json"
    assert '"targetValue"' in body


def test_remote_store_keeps_settings_local():
    local = MemoryStore()
    http = _StubSession()
    store = RemoteStore("http://backend/api/v1", settings_store=local, session=http)
    store.set_item(PUBLIC_URL_KEY, "http://10.0.0.5:3000")
    assert local.get_item(PUBLIC_URL_KEY) == "http://10.0.0.5:3000"
    assert http.posted == []


def test_remote_store_maps_transport_errors():
    store = RemoteStore("http://backend/api/v1", session=_StubSession(error=requests.ConnectionError("down")))
    with pytest.raises(StoreReadError):
        store.load_points()
    with pytest.raises(StoreWriteError):
        store.save_points([])


def test_create_store_variants(tmp_path):
    assert isinstance(create_store("memory"), MemoryStore)
    assert isinstance(create_store("file", data_dir=str(tmp_path)), FileStore)
    assert isinstance(create_store("remote", data_dir=str(tmp_path), remote_url="http://x/api/v1"), RemoteStore)
    with pytest.raises(ValueError):
        create_store("remote")
    with pytest.raises(ValueError):
        create_store("sqlite")
