# centerline/core/projection/map_projector.py
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from centerline.core.defaults import DEFAULT_SCHEMATIC, SchematicRegion
from centerline.core.models import Coordinates, Criticality, Point

logger = logging.getLogger(__name__)


class RenderMode(str, Enum):
    SCREEN = "screen"
    PRINT = "print"


class MarkerRole(str, Enum):
    NORMAL = "normal"
    PREVIEW = "preview"
    SELECTED = "selected"


# Higher draws on top: selected > preview > normal.
Z_ORDER = {
    MarkerRole.NORMAL: 20,
    MarkerRole.PREVIEW: 30,
    MarkerRole.SELECTED: 40,
}

MARKER_SIZE_PX = 40.0
PREVIEW_SIZE_PX = 48.0


@dataclass(frozen=True)
class MapMarker:
    point_id: str
    number: int
    label: str
    criticality: Criticality
    x: float
    y: float
    left_pct: float
    top_pct: float
    role: MarkerRole
    size: float
    z_order: int
    interactive: bool


@dataclass(frozen=True)
class MapBackground:
    image_url: Optional[str] = None
    regions: Tuple[SchematicRegion, ...] = ()

    @property
    def is_custom(self) -> bool:
        return self.image_url is not None


@dataclass
class MapScene:
    width: float
    height: float
    mode: RenderMode
    background: MapBackground
    markers: List[MapMarker] = field(default_factory=list)
    points_by_id: dict = field(default_factory=dict, repr=False)

    def marker_for(self, point_id: str) -> Optional[MapMarker]:
        for m in self.markers:
            if m.point_id == point_id and m.role is not MarkerRole.PREVIEW:
                return m
        return None

    def draw_order(self) -> List[MapMarker]:
        return sorted(self.markers, key=lambda m: m.z_order)

    def hit_test(self, x: float, y: float) -> Optional[Point]:
        """
        Returns the point under surface position (x, y), or None. Markers are
        square hit areas of their own size; overlapping hits resolve to the
        topmost marker (highest z-order, then drawn last). The preview marker
        is never hit.
        """
        candidates = []
        for order, m in enumerate(self.markers):
            if not m.interactive:
                continue
            half = m.size / 2.0
            if abs(x - m.x) <= half and abs(y - m.y) <= half:
                candidates.append((m.z_order, order, m))
        if not candidates:
            return None
        _, _, hit = max(candidates, key=lambda c: (c[0], c[1]))
        return self.points_by_id.get(hit.point_id)


def is_visible_on_map(point: Point) -> bool:
    return point.visible_on_map is not False and point.coordinates is not None


def visible_points(points: Sequence[Point]) -> List[Point]:
    return [p for p in points if is_visible_on_map(p)]


def to_surface(coordinates: Coordinates, width: float, height: float) -> Tuple[float, float]:
    """Percentage coordinates to surface pixels (origin top-left)."""
    return coordinates.x / 100.0 * width, coordinates.y / 100.0 * height


def from_surface(x: float, y: float, width: float, height: float) -> Coordinates:
    """Surface pixels back to percentages, clamped to the map."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Surface must have a positive size (got {width}x{height})")
    px = max(0.0, min(100.0, x / width * 100.0))
    py = max(0.0, min(100.0, y / height * 100.0))
    return Coordinates(x=round(px, 2), y=round(py, 2))


class MapProjector:
    """
    Projects the point catalog onto a rectangular map surface.

    The projector never mutates points. Selection state belongs to the caller:
    pass `selected_id` in, receive the clicked point through `on_select`.
    """

    def __init__(self, width: float = 1000.0, height: float = 500.0,
                 custom_map_url: Optional[str] = None,
                 on_select: Optional[Callable[[Point], None]] = None):
        if width <= 0 or height <= 0:
            raise ValueError(f"Surface must have a positive size (got {width}x{height})")
        self.width = width
        self.height = height
        self.custom_map_url = custom_map_url or None
        self.on_select = on_select

    def background(self) -> MapBackground:
        if self.custom_map_url:
            return MapBackground(image_url=self.custom_map_url)
        return MapBackground(regions=DEFAULT_SCHEMATIC)

    def _marker(self, point: Point, role: MarkerRole, mode: RenderMode) -> MapMarker:
        x, y = to_surface(point.coordinates, self.width, self.height)
        size = PREVIEW_SIZE_PX if role is MarkerRole.PREVIEW else MARKER_SIZE_PX
        return MapMarker(
            point_id=point.id,
            number=point.number,
            label=str(point.number),
            criticality=point.criticality,
            x=x,
            y=y,
            left_pct=point.coordinates.x,
            top_pct=point.coordinates.y,
            role=role,
            size=size,
            z_order=Z_ORDER[role],
            interactive=(mode is RenderMode.SCREEN and role is not MarkerRole.PREVIEW),
        )

    def project(self, points: Sequence[Point], selected_id: Optional[str] = None,
                preview: Optional[Point] = None, mode: RenderMode = RenderMode.SCREEN) -> MapScene:
        scene = MapScene(width=self.width, height=self.height, mode=mode, background=self.background())
        for point in visible_points(points):
            role = MarkerRole.NORMAL
            if mode is RenderMode.SCREEN and selected_id is not None and point.id == selected_id:
                role = MarkerRole.SELECTED
            scene.markers.append(self._marker(point, role, mode))
            scene.points_by_id.setdefault(point.id, point)

        if preview is not None and mode is RenderMode.SCREEN:
            if is_visible_on_map(preview):
                scene.markers.append(self._marker(preview, MarkerRole.PREVIEW, mode))
            else:
                logger.debug(f"Preview point '{preview.id}' hidden from map; not drawn.")

        logger.debug(f"Projected {len(scene.markers)} map markers ({mode.value}, {self.width}x{self.height}).")
        return scene

    def click(self, scene: MapScene, x: float, y: float) -> Optional[Point]:
        """Hit-tests a click and hands the point to `on_select`."""
        point = scene.hit_test(x, y)
        if point is not None and self.on_select is not None:
            self.on_select(point)
        return point

    def place(self, x: float, y: float) -> Coordinates:
        """Converts a click on the surface into map coordinates for a draft."""
        return from_surface(x, y, self.width, self.height)
