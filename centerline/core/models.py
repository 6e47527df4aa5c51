# centerline/core/models.py
import logging
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class Zone(str, Enum):
    """The seven physical sections of the line, in material-flow order."""
    INFEED = "Infeed"
    SEPARATION = "Separation"
    GUIDES = "Guides"
    CARDBOARD = "Cardboard"
    FORMING = "Forming"
    SHRINK_FILM = "Shrink-Film"
    DISCHARGE = "Discharge"


class Criticality(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    @property
    def stops_the_line(self) -> bool:
        return self is Criticality.CRITICAL


class PointStatus(str, Enum):
    OK = "OK"
    TAGGED_YELLOW = "TaggedYellow"
    TAGGED_RED = "TaggedRed"


MODULE_PALETTE = ['#3b82f6', '#6366f1', '#eab308', '#f97316', '#ec4899', '#a855f7', '#10b981', '#ef4444']


class _CamelModel(BaseModel):
    # Stored JSON uses camelCase keys, Python code uses snake_case.
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Coordinates(_CamelModel):
    """Percentage position on the map surface."""
    x: float = Field(..., ge=0, le=100, description="Horizontal position, % of surface width")
    y: float = Field(..., ge=0, le=100, description="Vertical position, % of surface height")


class Point(_CamelModel):
    """
    A calibration checkpoint on the machine.

    Records are immutable: edits produce a new record through `model_copy`
    or `Point.with_updates`, and catalogs replace the stored record wholesale.
    """
    id: str = Field(..., min_length=1, description="Stable identifier, also the QR deep-link payload")
    number: int = Field(..., description="Display/sort index")
    name: str = Field(..., min_length=1)
    zone: Zone
    description: str = ""
    target_value: str = ""
    tolerance: str = ""
    measure_method: str = ""
    criticality: Criticality = Criticality.MEDIUM
    status: PointStatus = PointStatus.OK
    last_checked: Optional[datetime] = None
    tag_comment: Optional[str] = None
    primary_image: str = ""
    secondary_image: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    visible_on_map: bool = True
    phase_angle: Optional[float] = Field(None, ge=0, lt=360, description="Position within the 360° machine cycle")

    @field_validator('name')
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v

    @field_validator('status', mode='before')
    @classmethod
    def status_default(cls, v):
        # Older records carry no status (or an explicit null); both mean OK.
        return PointStatus.OK if v is None else v

    @model_validator(mode='after')
    def coordinates_when_visible(self) -> 'Point':
        if self.visible_on_map and self.coordinates is None:
            raise ValueError("coordinates are required when visibleOnMap is true")
        return self

    @property
    def on_dial(self) -> bool:
        return self.phase_angle is not None

    def with_updates(self, updates: dict) -> 'Point':
        """Merges a partial update (camelCase or snake_case keys) and re-validates."""
        merged = self.to_storage()
        fields = type(self).model_fields
        for key, value in updates.items():
            alias = fields[key].alias if key in fields else key
            merged[alias] = value
        return Point.model_validate(merged)

    def to_storage(self) -> dict:
        return self.model_dump(mode='json', by_alias=True)


class MachineModule(_CamelModel):
    """A labeled rectangle of the editable schematic, geometry in % of canvas."""
    id: str = Field(..., min_length=1)
    label: str = ""
    x: float = Field(..., ge=0, le=100)
    y: float = Field(..., ge=0, le=100)
    width: float = Field(..., ge=0, le=100)
    height: float = Field(..., ge=0, le=100)
    color: str = MODULE_PALETTE[0]
    has_fill: bool = False
    font_size: float = 2
    wrap_text: bool = False

    def to_storage(self) -> dict:
        return self.model_dump(mode='json', by_alias=True)


PointList = TypeAdapter(List[Point])
ModuleList = TypeAdapter(List[MachineModule])


def dump_points(points: List[Point]) -> str:
    return PointList.dump_json(points, by_alias=True, indent=2).decode('utf-8')


def load_points(raw: str) -> List[Point]:
    return PointList.validate_json(raw)


def dump_modules(modules: List[MachineModule]) -> str:
    return ModuleList.dump_json(modules, by_alias=True, indent=2).decode('utf-8')


def load_modules(raw: str) -> List[MachineModule]:
    return ModuleList.validate_json(raw)
