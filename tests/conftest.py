import matplotlib
matplotlib.use("Agg")

import pytest
import yaml

from centerline.core import config as core_config
from centerline.core.defaults import default_points
from centerline.core.models import Coordinates, Criticality, Point, Zone
from centerline.core.storage import FileStore, MemoryStore
from centerline.core.visualization.style import clear_style_cache


@pytest.fixture(autouse=True)
def test_config(tmp_path):
    """Loads a throwaway configuration rooted in tmp_path for every test."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    # app_config.yaml holds the app.* settings at its top level.
    app = {
        "data_dir": str(tmp_path / "data"),
        "storage_backend": "memory",
        "origin": "http://localhost:3000",
        "public_base_url": "",
        "custom_map_url": "",
        "log_file": str(tmp_path / "log" / "centerline.log"),
        "api_log_file": str(tmp_path / "log" / "centerline_api.log"),
        "log_level_console": "WARNING",
        "catalog": {"enforce_unique_ids": False, "strict_replace": False},
    }
    services = {
        "qr": {
            "endpoint": "https://api.qrserver.com/v1/create-qr-code/",
            "margin": 4,
            "ecc": "M",
            "format": "svg",
            "default_size": 200,
        },
        "sop": {
            "endpoint": "https://sop.example.test/v1beta/models",
            "model": "test-model",
            "api_key_env": "CENTERLINE_TEST_SOP_KEY",
            "timeout_seconds": 5,
        },
    }
    display = {"gauge": {"near_threshold": 10, "radius": 120, "center": 150}}
    (config_dir / "app_config.yaml").write_text(yaml.safe_dump(app), encoding="utf-8")
    (config_dir / "services_config.yaml").write_text(yaml.safe_dump(services), encoding="utf-8")
    (config_dir / "display_config.yaml").write_text(yaml.safe_dump(display), encoding="utf-8")

    core_config.reset_config()
    core_config.load_config(str(config_dir))
    clear_style_cache()
    yield config_dir
    core_config.reset_config()
    clear_style_cache()


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def file_store(tmp_path):
    return FileStore(str(tmp_path / "data"))


@pytest.fixture
def sample_points():
    return default_points()


def make_point(point_id="P-01", number=1, **overrides):
    fields = dict(
        id=point_id,
        number=number,
        name=f"Point {number}",
        zone=Zone.INFEED,
        target_value="10",
        tolerance="+/- 1",
        measure_method="Ruler",
        criticality=Criticality.MEDIUM,
        coordinates=Coordinates(x=50, y=50),
    )
    fields.update(overrides)
    return Point(**fields)


@pytest.fixture
def point_factory():
    return make_point
