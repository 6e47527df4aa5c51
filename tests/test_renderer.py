import pytest

from centerline.core import config as core_config
from centerline.core.projection.map_projector import MapProjector, RenderMode
from centerline.core.projection.phase_projector import PhaseProjector
from centerline.core.visualization.renderer import render_dial, render_map
from centerline.core.visualization.style import clear_style_cache, get_dial_style, get_map_style


def test_map_renders_png(sample_points):
    scene = MapProjector().project(sample_points, selected_id="LSK-B1")
    image = render_map(scene, fmt="png", title="Line 3")
    assert image is not None
    assert image.startswith(b"\x89PNG")


def test_print_map_renders_svg(sample_points):
    scene = MapProjector().project(sample_points, mode=RenderMode.PRINT)
    image = render_map(scene, fmt="svg")
    assert b"<svg" in image


def test_map_with_custom_background_renders(point_factory):
    scene = MapProjector(custom_map_url="https://plant.example/map.png").project([point_factory()])
    assert render_map(scene).startswith(b"\x89PNG")


def test_dial_renders_png_and_pdf(sample_points):
    scene = PhaseProjector().project(sample_points, simulated_angle=45)
    assert render_dial(scene).startswith(b"\x89PNG")
    assert render_dial(scene, mode=RenderMode.PRINT, fmt="pdf").startswith(b"%PDF")


def test_unknown_format_is_rejected(sample_points):
    scene = MapProjector().project(sample_points)
    with pytest.raises(ValueError):
        render_map(scene, fmt="bmp")
    with pytest.raises(ValueError):
        render_dial(PhaseProjector().project([]), fmt="gif")


def test_print_style_is_monochrome():
    style = get_map_style(RenderMode.PRINT)
    assert style.marker == "#000000"
    assert style.marker_color("Critical") == "#000000"
    assert get_map_style(RenderMode.SCREEN).marker_color("Critical") == "#dc2626"


def test_configured_colors_are_validated():
    core_config.get_config()["display"]["gauge"]["colors"] = {
        "screen": {"needle": "#ff00ff", "near": "not-a-color"},
    }
    clear_style_cache()
    style = get_dial_style(RenderMode.SCREEN)
    assert style.needle == "#ff00ff"
    assert style.near == "#f59e0b"
