import pytest

from centerline.core.models import Coordinates
from centerline.core.projection.map_projector import (
    MapProjector,
    MarkerRole,
    RenderMode,
    from_surface,
    visible_points,
)


def test_each_visible_point_gets_one_marker_at_its_percentage(point_factory):
    points = [
        point_factory("A", 1, coordinates=Coordinates(x=10, y=20)),
        point_factory("B", 2, coordinates=Coordinates(x=75, y=50)),
        point_factory("C", 3, coordinates=Coordinates(x=30, y=30), visible_on_map=False),
    ]
    scene = MapProjector(800, 400).project(points)

    assert sorted(m.point_id for m in scene.markers) == ["A", "B"]
    a = scene.marker_for("A")
    assert (a.x, a.y) == pytest.approx((80.0, 80.0))
    b = scene.marker_for("B")
    assert (b.x, b.y) == pytest.approx((600.0, 200.0))
    assert scene.marker_for("C") is None


def test_visible_points_filter(point_factory):
    hidden = point_factory("H", 9, visible_on_map=False)
    assert visible_points([hidden]) == []


def test_default_background_is_builtin_schematic(point_factory):
    scene = MapProjector().project([point_factory()])
    assert not scene.background.is_custom
    assert len(scene.background.regions) == 7


def test_custom_background_replaces_schematic(point_factory):
    scene = MapProjector(custom_map_url="https://plant.example/map.png").project([point_factory()])
    assert scene.background.image_url == "https://plant.example/map.png"
    assert scene.background.regions == ()


def test_z_order_selected_above_preview_above_normal(point_factory):
    points = [point_factory("A", 1), point_factory("B", 2)]
    preview = point_factory("PREVIEW", 3)
    scene = MapProjector().project(points, selected_id="B", preview=preview)

    roles = [m.role for m in scene.draw_order()]
    assert roles == [MarkerRole.NORMAL, MarkerRole.PREVIEW, MarkerRole.SELECTED]


def test_click_on_overlap_picks_selected_and_calls_back(point_factory):
    points = [point_factory("A", 1), point_factory("B", 2)]
    chosen = []
    projector = MapProjector(1000, 500, on_select=chosen.append)
    scene = projector.project(points, selected_id="A")

    hit = projector.click(scene, 500, 250)

    assert hit.id == "A"
    assert chosen == [points[0]]


def test_click_on_empty_space_selects_nothing(point_factory):
    chosen = []
    projector = MapProjector(1000, 500, on_select=chosen.append)
    scene = projector.project([point_factory(coordinates=Coordinates(x=10, y=10))])
    assert projector.click(scene, 900, 450) is None
    assert chosen == []


def test_preview_is_not_selectable(point_factory):
    preview = point_factory("PREVIEW", 0, coordinates=Coordinates(x=50, y=50))
    projector = MapProjector(1000, 500)
    scene = projector.project([], preview=preview)
    assert len(scene.markers) == 1
    assert scene.hit_test(500, 250) is None


def test_hidden_preview_is_not_drawn(point_factory):
    preview = point_factory("PREVIEW", 0, visible_on_map=False)
    scene = MapProjector().project([], preview=preview)
    assert scene.markers == []


def test_print_mode_drops_highlights_and_preview(point_factory):
    points = [point_factory("A", 1)]
    scene = MapProjector().project(points, selected_id="A", preview=point_factory("PREVIEW", 2),
                                   mode=RenderMode.PRINT)
    assert [m.role for m in scene.markers] == [MarkerRole.NORMAL]
    assert scene.hit_test(500, 250) is None


def test_surface_click_converts_back_to_clamped_percentages():
    projector = MapProjector(1000, 500)
    assert projector.place(250, 125) == Coordinates(x=25, y=25)
    assert from_surface(-20, 900, 1000, 500) == Coordinates(x=0, y=100)


def test_projector_never_mutates_points(point_factory):
    points = [point_factory("A", 1)]
    snapshot = [p.model_dump() for p in points]
    MapProjector().project(points, selected_id="A", preview=point_factory("PREVIEW", 2))
    assert [p.model_dump() for p in points] == snapshot
