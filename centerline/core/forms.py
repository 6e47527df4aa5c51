# core/forms.py
"""
Draft records for the add/edit forms.

A draft holds whatever the operator has typed so far, including invalid or
missing values. Nothing is checked until `build()`, which either returns a
complete immutable record or raises with every problem found at once.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from pydantic import ValidationError

from centerline.core.catalog import issues_from_validation_error, next_point_number, suggested_point_id
from centerline.core.defaults import NEW_POINT_IMAGE
from centerline.core.exceptions import PointValidationError, ValidationIssue
from centerline.core.models import Coordinates, Criticality, MachineModule, Point, Zone

logger = logging.getLogger(__name__)

PREVIEW_ID = 'PREVIEW'
REQUIRED_TEXT_FIELDS = (
    ('name', 'Name'),
    ('target_value', 'Target value'),
    ('measure_method', 'Measure method'),
)


@dataclass
class PointDraft:
    number: Optional[int] = None
    id: str = ''
    name: str = ''
    zone: Optional[Zone] = None
    description: str = ''
    target_value: str = ''
    tolerance: str = ''
    measure_method: str = ''
    criticality: Criticality = Criticality.MEDIUM
    primary_image: str = NEW_POINT_IMAGE
    secondary_image: str = ''
    x: float = 50.0
    y: float = 50.0
    visible_on_map: bool = True
    phase_angle_text: str = ''
    editing: Optional[Point] = field(default=None, repr=False)

    @classmethod
    def new(cls, existing_points: Iterable[Point], default_zone: Optional[Zone] = None) -> 'PointDraft':
        number = next_point_number(existing_points)
        return cls(number=number, id=suggested_point_id(number), zone=default_zone or list(Zone)[0])

    @classmethod
    def from_point(cls, point: Point) -> 'PointDraft':
        coords = point.coordinates or Coordinates(x=50, y=50)
        return cls(
            number=point.number,
            id=point.id,
            name=point.name,
            zone=point.zone,
            description=point.description,
            target_value=point.target_value,
            tolerance=point.tolerance,
            measure_method=point.measure_method,
            criticality=point.criticality,
            primary_image=point.primary_image,
            secondary_image=point.secondary_image or '',
            x=coords.x,
            y=coords.y,
            visible_on_map=point.visible_on_map,
            phase_angle_text='' if point.phase_angle is None else f"{point.phase_angle:g}",
            editing=point,
        )

    @property
    def is_editing(self) -> bool:
        return self.editing is not None

    def place(self, x: float, y: float) -> None:
        """Moves the draft to a map position (already in %)."""
        self.x, self.y = x, y

    def _phase_angle(self) -> Optional[float]:
        text = (self.phase_angle_text or '').strip()
        if not text:
            return None
        return float(text.replace(',', '.'))

    def validate(self) -> List[ValidationIssue]:
        issues: List[ValidationIssue] = []
        for attr, label in REQUIRED_TEXT_FIELDS:
            if not str(getattr(self, attr) or '').strip():
                issues.append(ValidationIssue(attr, f"{label} is required"))
        if not self.id.strip():
            issues.append(ValidationIssue('id', "Id is required"))
        if self.number is None:
            issues.append(ValidationIssue('number', "Number is required"))
        if self.zone is None:
            issues.append(ValidationIssue('zone', "Zone is required"))
        for attr in ('x', 'y'):
            value = getattr(self, attr)
            if not 0 <= value <= 100:
                issues.append(ValidationIssue(attr, f"must be between 0 and 100 (got {value})"))
        try:
            angle = self._phase_angle()
        except ValueError:
            issues.append(ValidationIssue('phase_angle', f"'{self.phase_angle_text}' is not a number"))
        else:
            if angle is not None and not 0 <= angle < 360:
                issues.append(ValidationIssue('phase_angle', f"must be in [0, 360) (got {angle:g})"))
        return issues

    def build(self) -> Point:
        issues = self.validate()
        if issues:
            logger.info(f"Point draft '{self.id}' rejected: {len(issues)} issue(s).")
            raise PointValidationError(issues)
        base = {
            'id': self.id.strip(),
            'number': self.number,
            'name': self.name.strip(),
            'zone': self.zone,
            'description': self.description,
            'target_value': self.target_value,
            'tolerance': self.tolerance,
            'measure_method': self.measure_method,
            'criticality': self.criticality,
            'primary_image': self.primary_image,
            'secondary_image': self.secondary_image or None,
            'coordinates': Coordinates(x=self.x, y=self.y),
            'visible_on_map': self.visible_on_map,
            'phase_angle': self._phase_angle(),
        }
        if self.editing is not None:
            # Edits keep the operational state the form does not show.
            base.update(
                status=self.editing.status,
                last_checked=self.editing.last_checked,
                tag_comment=self.editing.tag_comment,
            )
        try:
            return Point(**base)
        except ValidationError as e:
            raise PointValidationError(issues_from_validation_error(e)) from e

    def preview(self) -> Optional[Point]:
        """The in-progress point as the map should show it, or None if it cannot be drawn."""
        if not (0 <= self.x <= 100 and 0 <= self.y <= 100):
            return None
        try:
            angle = self._phase_angle()
        except ValueError:
            angle = None
        if angle is not None and not 0 <= angle < 360:
            angle = None
        return Point.model_construct(
            id=self.id if self.is_editing else PREVIEW_ID,
            number=self.number if self.number is not None else 0,
            name=self.name or PREVIEW_ID,
            zone=self.zone or list(Zone)[0],
            criticality=self.criticality,
            coordinates=Coordinates(x=self.x, y=self.y),
            visible_on_map=self.visible_on_map,
            phase_angle=angle,
        )


GEOMETRY_FIELDS = ('x', 'y', 'width', 'height')


@dataclass
class ModuleDraft:
    module: MachineModule

    def adjust(self, field_name: str, delta: float) -> MachineModule:
        """Nudges one geometry field, clamped to [0, 100]."""
        if field_name not in GEOMETRY_FIELDS:
            raise ValueError(f"'{field_name}' is not a geometry field ({', '.join(GEOMETRY_FIELDS)})")
        value = getattr(self.module, field_name) + delta
        self.module = self.module.model_copy(update={field_name: max(0.0, min(100.0, value))})
        return self.module

    def update(self, **changes) -> MachineModule:
        self.module = MachineModule.model_validate({**self.module.model_dump(), **changes})
        return self.module


