# centerline/core/projection/phase_projector.py
"""
Circular phasing dial.

Angles are in degrees, 0 at 12 o'clock, increasing clockwise. Surface
coordinates have y growing downward, so a point at angle θ on a circle of
radius r around (cx, cy) sits at (cx + r·sin θ, cy − r·cos θ).
"""
import logging
import math
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import numpy as np

from centerline.core.config import get_setting
from centerline.core.models import Point

logger = logging.getLogger(__name__)

DEFAULT_NEAR_THRESHOLD = 10.0
DEFAULT_RADIUS = 120.0
DEFAULT_CENTER = 150.0

TICK_STEP_DEG = 5
MAJOR_TICK_EVERY = 18   # every 90°
MEDIUM_TICK_EVERY = 6   # every 30°
LABEL_ANGLES = (0, 90, 180, 270)
LABEL_OFFSET = 25.0

NEAR_MARKER_SIZE = 12.0
NORMAL_MARKER_SIZE = 8.0


def angle_to_position(angle: float, radius: float = DEFAULT_RADIUS,
                      center: Tuple[float, float] = (DEFAULT_CENTER, DEFAULT_CENTER)) -> Tuple[float, float]:
    rad = math.radians(angle)
    cx, cy = center
    return cx + radius * math.sin(rad), cy - radius * math.cos(rad)


def angles_to_positions(angles, radius: float = DEFAULT_RADIUS,
                        center: Tuple[float, float] = (DEFAULT_CENTER, DEFAULT_CENTER)) -> np.ndarray:
    """Vectorized angle_to_position; returns an (N, 2) array."""
    rad = np.radians(np.asarray(angles, dtype=float))
    cx, cy = center
    return np.column_stack((cx + radius * np.sin(rad), cy - radius * np.cos(rad)))


def is_near(simulated_angle: float, phase_angle: float, threshold: float = DEFAULT_NEAR_THRESHOLD) -> bool:
    # Linear difference: 358 vs 2 is 356 apart, not 4.
    return abs(simulated_angle - phase_angle) < threshold


def clamp_simulated_angle(angle: float) -> float:
    """Keeps the operator-driven angle on [0, 360]; 360 is not folded to 0."""
    return max(0.0, min(360.0, float(angle)))


def angle_from_pointer(x: float, y: float,
                       center: Tuple[float, float] = (DEFAULT_CENTER, DEFAULT_CENTER)) -> float:
    """Angle in [0, 360) of a pointer at surface (x, y) relative to the dial center."""
    dx, dy = x - center[0], y - center[1]
    angle = math.degrees(math.atan2(dy, dx)) + 90.0
    if angle < 0:
        angle += 360.0
    return angle % 360.0


@dataclass(frozen=True)
class DialMarker:
    point_id: str
    number: int
    name: str
    phase_angle: float
    x: float
    y: float
    near: bool
    size: float


@dataclass(frozen=True)
class DialTick:
    angle: float
    kind: str   # 'major' | 'medium' | 'minor'
    inner: Tuple[float, float]
    outer: Tuple[float, float]


@dataclass(frozen=True)
class DialLabel:
    angle: float
    text: str
    x: float
    y: float


@dataclass
class DialScene:
    radius: float
    center: Tuple[float, float]
    simulated_angle: float
    near_threshold: float
    needle_tip: Tuple[float, float]
    markers: List[DialMarker] = field(default_factory=list)
    ticks: List[DialTick] = field(default_factory=list)
    labels: List[DialLabel] = field(default_factory=list)

    @property
    def near_markers(self) -> List[DialMarker]:
        return [m for m in self.markers if m.near]


def phased_points(points: Sequence[Point]) -> List[Point]:
    """Points taking part in the dial, ordered by phase angle."""
    return sorted((p for p in points if p.phase_angle is not None), key=lambda p: p.phase_angle)


def build_ticks(radius: float, center: Tuple[float, float]) -> List[DialTick]:
    indices = np.arange(360 // TICK_STEP_DEG)
    angles = indices * TICK_STEP_DEG
    lengths = np.where(indices % MAJOR_TICK_EVERY == 0, 15.0,
                       np.where(indices % MEDIUM_TICK_EVERY == 0, 10.0, 5.0))
    outer = angles_to_positions(angles, radius, center)
    ticks = []
    for i, angle in enumerate(angles):
        kind = 'major' if i % MAJOR_TICK_EVERY == 0 else ('medium' if i % MEDIUM_TICK_EVERY == 0 else 'minor')
        inner = angle_to_position(float(angle), radius - float(lengths[i]), center)
        ticks.append(DialTick(angle=float(angle), kind=kind, inner=inner,
                              outer=(float(outer[i, 0]), float(outer[i, 1]))))
    return ticks


def build_labels(radius: float, center: Tuple[float, float]) -> List[DialLabel]:
    labels = []
    for angle in LABEL_ANGLES:
        x, y = angle_to_position(angle, radius + LABEL_OFFSET, center)
        labels.append(DialLabel(angle=float(angle), text=f"{angle}°", x=x, y=y))
    return labels


class PhaseProjector:
    """Projects points that declare a phase angle onto the dial."""

    def __init__(self, radius: float = DEFAULT_RADIUS,
                 center: Tuple[float, float] = (DEFAULT_CENTER, DEFAULT_CENTER),
                 near_threshold: float = DEFAULT_NEAR_THRESHOLD):
        if radius <= 0:
            raise ValueError(f"Dial radius must be positive (got {radius})")
        self.radius = radius
        self.center = center
        self.near_threshold = near_threshold

    @classmethod
    def from_config(cls) -> 'PhaseProjector':
        radius = float(get_setting('display.gauge.radius', DEFAULT_RADIUS))
        c = float(get_setting('display.gauge.center', DEFAULT_CENTER))
        threshold = float(get_setting('display.gauge.near_threshold', DEFAULT_NEAR_THRESHOLD))
        return cls(radius=radius, center=(c, c), near_threshold=threshold)

    def position(self, angle: float) -> Tuple[float, float]:
        return angle_to_position(angle, self.radius, self.center)

    def angle_at(self, x: float, y: float) -> float:
        return angle_from_pointer(x, y, self.center)

    def project(self, points: Sequence[Point], simulated_angle: float = 0.0) -> DialScene:
        sim = clamp_simulated_angle(simulated_angle)
        selected = phased_points(points)
        scene = DialScene(
            radius=self.radius,
            center=self.center,
            simulated_angle=sim,
            near_threshold=self.near_threshold,
            needle_tip=self.position(sim),
            ticks=build_ticks(self.radius, self.center),
            labels=build_labels(self.radius, self.center),
        )
        if selected:
            positions = angles_to_positions([p.phase_angle for p in selected], self.radius, self.center)
            for p, (x, y) in zip(selected, positions):
                near = is_near(sim, p.phase_angle, self.near_threshold)
                scene.markers.append(DialMarker(
                    point_id=p.id,
                    number=p.number,
                    name=p.name,
                    phase_angle=p.phase_angle,
                    x=float(x),
                    y=float(y),
                    near=near,
                    size=NEAR_MARKER_SIZE if near else NORMAL_MARKER_SIZE,
                ))
        logger.debug(f"Dial at {sim:.1f}°: {len(scene.markers)} markers, {len(scene.near_markers)} near.")
        return scene
