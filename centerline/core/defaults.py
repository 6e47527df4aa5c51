# core/defaults.py
"""
Built-in dataset for the TP-24 tray packer.

Used when the store holds nothing (first start) or holds something that no
longer parses. DEFAULT_SCHEMATIC is the fixed background drawn when no custom
map image is configured; it is independent of the editable module layout.
"""
from dataclasses import dataclass
from typing import List, Tuple

from centerline.core.models import Coordinates, Criticality, MachineModule, Point, Zone

_IMG = "https://images.unsplash.com/{}?auto=format&fit=crop&q=80&w=400"
NEW_POINT_IMAGE = "https://picsum.photos/400/300?grayscale"


@dataclass(frozen=True)
class SchematicRegion:
    zone: Zone
    label: str
    x: float
    y: float
    width: float
    height: float
    color: str


# Geometry in % of the map surface.
DEFAULT_SCHEMATIC: Tuple[SchematicRegion, ...] = (
    SchematicRegion(Zone.INFEED, "Infeed", 4.5, 31.0, 11.0, 18.0, "#3b82f6"),
    SchematicRegion(Zone.SEPARATION, "Separation", 20.0, 31.0, 11.0, 18.0, "#6366f1"),
    SchematicRegion(Zone.GUIDES, "Guides", 31.0, 36.0, 7.0, 8.0, "#10b981"),
    SchematicRegion(Zone.CARDBOARD, "Cardboard", 36.5, 59.0, 13.5, 18.0, "#eab308"),
    SchematicRegion(Zone.FORMING, "Forming", 42.8, 18.0, 18.0, 54.0, "#f97316"),
    SchematicRegion(Zone.SHRINK_FILM, "Shrink-Film", 66.2, 27.0, 14.4, 36.0, "#ec4899"),
    SchematicRegion(Zone.DISCHARGE, "Discharge", 84.2, 31.0, 10.8, 18.0, "#a855f7"),
)


DEFAULT_MACHINE_LAYOUT: List[MachineModule] = [
    MachineModule(id='m1', label='Infeed (1-2)', x=0, y=15, width=20, height=12, color='#3b82f6'),
    MachineModule(id='m2', label='Separator (3-4)', x=20, y=15, width=15, height=12, color='#6366f1'),
    MachineModule(id='m3', label='Magazine (13)', x=35, y=32, width=12, height=15, color='#eab308'),
    MachineModule(id='m4', label='Forming (5-6)', x=37, y=5, width=25, height=22, color='#f97316'),
    MachineModule(id='m5', label='Film wrap (9-10)', x=62, y=8, width=18, height=18, color='#ec4899'),
    MachineModule(id='m7', label='Film reel (18)', x=64, y=30, width=14, height=12, color='#f472b6'),
    MachineModule(id='m6', label='Discharge (8)', x=80, y=15, width=20, height=12, color='#a855f7'),
]


DEFAULT_POINTS: List[Point] = [
    Point(
        id='LSK-B1', number=1, name='Divider rails (crank B)', zone=Zone.INFEED,
        description='Width setting for product channelling. Adjusted with crank B. See manual fig 7.2.2.',
        target_value='Indicator B1 = 142', tolerance='+/- 0.5', measure_method='Mechanical gauge B1',
        criticality=Criticality.HIGH, primary_image=_IMG.format('photo-1581091226825-a6a2a5aee158'),
        coordinates=Coordinates(x=10, y=21),
    ),
    Point(
        id='LSK-I1', number=12, name='Carton feed height (crank I)', zone=Zone.CARDBOARD,
        description='Height adjustment for the carton infeed. Adjusted with crank I. See manual fig 7.2.6.',
        target_value='Indicator I1 = 45.5', tolerance='+/- 0.2', measure_method='Siko counter I1',
        criticality=Criticality.CRITICAL, primary_image=_IMG.format('photo-1565608411386-35f922754972'),
        coordinates=Coordinates(x=38, y=40),
    ),
    Point(
        id='LSK-L1', number=13, name='Carton feed width (crank L)', zone=Zone.CARDBOARD,
        description='Width adjustment for the carton magazine infeed. See manual fig 7.2.6.',
        target_value='Indicator L1 = 80.0', tolerance='+/- 0.5', measure_method='Siko counter L1',
        criticality=Criticality.HIGH, primary_image=_IMG.format('photo-1504917595217-d4dc5ebe6122'),
        coordinates=Coordinates(x=44, y=40),
    ),
    Point(
        id='LSK-M1', number=20, name='Tray forming tool (crank M)', zone=Zone.FORMING,
        description='Width setting for the tray forming unit. See manual fig 7.2.8.',
        target_value='Gauge M1 = 312', tolerance='+/- 0.5', measure_method='Mechanical gauge M1',
        criticality=Criticality.CRITICAL, primary_image=_IMG.format('photo-1537462715879-360eeb61a0ad'),
        coordinates=Coordinates(x=50, y=16),
    ),
    Point(
        id='LSK-SOL-CC', number=25, name='Solenoid clearance (coil CC)', zone=Zone.FORMING,
        description='Critical mechanical clearance for actuator CC. See manual ch 8.2.',
        target_value='X: 1.5mm / Y: 0.5mm', tolerance='+/- 0.05', measure_method='Feeler gauge',
        criticality=Criticality.CRITICAL, primary_image=_IMG.format('photo-1518709268805-4e9042af9f23'),
        coordinates=Coordinates(x=55, y=12),
    ),
    Point(
        id='LSK-SOL-CA', number=26, name='Solenoid clearance (coil CA)', zone=Zone.FORMING,
        description='Critical mechanical clearance for actuator CA. See manual ch 8.2.',
        target_value='X: 1.8mm / Y: 0.2mm', tolerance='+/- 0.05', measure_method='Feeler gauge',
        criticality=Criticality.CRITICAL, primary_image=_IMG.format('photo-1518709268805-4e9042af9f23'),
        coordinates=Coordinates(x=55, y=20),
    ),
    Point(
        id='LSK-F1', number=4, name='Film reel position', zone=Zone.SHRINK_FILM,
        description='Lateral adjustment of the film reel on its spindle (below the machine). See manual fig 7.2.4.',
        target_value='Gauge F1 = 215', tolerance='+/- 1.0', measure_method='Siko counter F1',
        criticality=Criticality.HIGH, primary_image=_IMG.format('photo-1590247813693-5541d1c609fd'),
        coordinates=Coordinates(x=71, y=36),
    ),
    Point(
        id='LSK-CB2', number=40, name='Knife stop position CB-2', zone=Zone.SHRINK_FILM,
        description='Minimum allowed setting of the guide bearing stop in the wrapping unit. See manual ch 8.4.',
        target_value='2.8°', tolerance='+/- 0.1°', measure_method='Encoder position',
        criticality=Criticality.CRITICAL, primary_image=_IMG.format('photo-1581092160562-40aa08e78837'),
        coordinates=Coordinates(x=71, y=15), phase_angle=2.8,
    ),
    Point(
        id='LSK-P4', number=55, name='Film tension (regulator 4)', zone=Zone.SHRINK_FILM,
        description='Pressure setting for the film brake at the reel below the machine. Point 4 in fig 8.7.2.',
        target_value='2.5 Bar', tolerance='+/- 0.2', measure_method='Pressure gauge point 4',
        criticality=Criticality.CRITICAL, primary_image=_IMG.format('photo-1530315592271-bfc71333ef34'),
        coordinates=Coordinates(x=73, y=34),
    ),
]


def default_points() -> List[Point]:
    return list(DEFAULT_POINTS)


def default_layout() -> List[MachineModule]:
    return list(DEFAULT_MACHINE_LAYOUT)
