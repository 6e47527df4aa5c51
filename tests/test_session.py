import pytest

from centerline.core import config as core_config
from centerline.core.defaults import default_points
from centerline.core.session import Session, load_settings
from centerline.core.storage import MAP_URL_KEY, PUBLIC_URL_KEY, SIDEBAR_KEY, MemoryStore


def test_fresh_session_starts_from_defaults(memory_store):
    session = Session.open(memory_store)
    assert session.points.points == default_points()
    assert session.settings.sidebar_collapsed is False
    assert session.settings.public_base_url == ""


def test_settings_are_written_through(memory_store):
    session = Session.open(memory_store)
    session.set_sidebar_collapsed(True)
    session.set_public_base_url("  http://192.168.1.20:3000 ")
    session.set_custom_map_url("https://plant.example/line3.png")

    assert memory_store.get_item(SIDEBAR_KEY) == "true"
    assert memory_store.get_item(PUBLIC_URL_KEY) == "http://192.168.1.20:3000"
    reloaded = load_settings(memory_store)
    assert reloaded.sidebar_collapsed is True
    assert reloaded.custom_map_url == "https://plant.example/line3.png"


def test_clearing_a_setting_removes_it(memory_store):
    session = Session.open(memory_store)
    session.set_custom_map_url("https://plant.example/line3.png")
    session.set_custom_map_url("")
    assert memory_store.get_item(MAP_URL_KEY) is None


def test_malformed_sidebar_flag_is_ignored():
    store = MemoryStore({SIDEBAR_KEY: "maybe"})
    assert load_settings(store).sidebar_collapsed is False


def test_update_settings_rejects_unknown_names(memory_store):
    session = Session.open(memory_store)
    session.update_settings(public_base_url="http://10.0.0.5:3000")
    assert session.settings.public_base_url == "http://10.0.0.5:3000"
    with pytest.raises(ValueError):
        session.update_settings(theme="dark")


def test_from_config_seeds_unset_settings(memory_store):
    core_config.get_config()['app']['public_base_url'] = "http://10.1.1.1:3000"

    session = Session.from_config(memory_store)
    assert session.settings.public_base_url == "http://10.1.1.1:3000"

    session.set_public_base_url("http://10.2.2.2:3000")
    assert Session.from_config(memory_store).settings.public_base_url == "http://10.2.2.2:3000"


def test_qr_builder_uses_session_override(memory_store):
    session = Session.open(memory_store)
    session.set_public_base_url("http://192.168.1.20:3000")
    builder = session.qr_builder("http://localhost:3000")
    assert builder.deep_link("P-07") == "http://192.168.1.20:3000/?p=P-07"
