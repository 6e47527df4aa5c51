# centerline/core/catalog.py
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from centerline.core.defaults import default_layout, default_points
from centerline.core.exceptions import (
    DuplicatePointError,
    LayoutModuleNotFoundError,
    PointNotFoundError,
    PointValidationError,
    StoreError,
    StoreReadError,
    ValidationIssue,
)
from centerline.core.models import MachineModule, Point, PointStatus, Zone
from centerline.core.storage import CatalogStore

logger = logging.getLogger(__name__)


def next_point_number(points: Iterable[Point]) -> int:
    """Highest existing number plus one; 1 for an empty collection."""
    numbers = [p.number for p in points]
    return max(numbers) + 1 if numbers else 1


def suggested_point_id(number: int) -> str:
    return f"P-{number:02d}"


def issues_from_validation_error(error: ValidationError) -> List[ValidationIssue]:
    issues = []
    for err in error.errors():
        field = ".".join(str(part) for part in err.get('loc', ())) or '__root__'
        issues.append(ValidationIssue(field, err.get('msg', 'invalid value')))
    return issues


def patch_point(points: List[Point], point_id: str, updates: Dict[str, Any]) -> Tuple[List[Point], Point]:
    """
    Merges `updates` into the point with `point_id` and returns the new list and
    the updated record. Raises PointNotFoundError or PointValidationError.
    """
    for index, point in enumerate(points):
        if point.id == point_id:
            try:
                updated = point.with_updates(updates)
            except ValidationError as e:
                raise PointValidationError(issues_from_validation_error(e)) from e
            new_points = list(points)
            new_points[index] = updated
            return new_points, updated
    raise PointNotFoundError(point_id)


def set_point_status(points: List[Point], point_id: str, status: PointStatus,
                     checked_at: Optional[datetime] = None) -> Tuple[List[Point], Point]:
    """Rewrites only `status` and `last_checked` of one point. Raises PointNotFoundError."""
    for index, point in enumerate(points):
        if point.id == point_id:
            updated = point.model_copy(update={
                'status': PointStatus(status),
                'last_checked': checked_at or datetime.now(timezone.utc),
            })
            new_points = list(points)
            new_points[index] = updated
            return new_points, updated
    raise PointNotFoundError(point_id)


def filter_points(points: Iterable[Point], text: str = '', zone: Optional[Zone] = None,
                  status: Optional[PointStatus] = None) -> List[Point]:
    """Case-insensitive text match on name or id, optionally narrowed by zone and status."""
    needle = (text or '').lower()
    result = []
    for p in points:
        if needle and needle not in p.name.lower() and needle not in p.id.lower():
            continue
        if zone is not None and p.zone != zone:
            continue
        if status is not None and p.status != status:
            continue
        result.append(p)
    return result


def find_point(points: Iterable[Point], ref: str) -> Optional[Point]:
    """Resolves a reference typed or scanned by an operator: an exact id first, then a point number."""
    points = list(points)
    for p in points:
        if p.id == ref:
            return p
    for p in points:
        if str(p.number) == ref:
            return p
    return None


def check_unique_ids(points: Iterable[Point]) -> None:
    """Raises DuplicatePointError for the first id that appears twice."""
    seen = set()
    for p in points:
        if p.id in seen:
            raise DuplicatePointError(p.id)
        seen.add(p.id)


def _write_through(save: Callable[[], None], what: str) -> bool:
    # Store failures never reach the operator; the in-memory catalog stays authoritative.
    try:
        save()
        return True
    except StoreError as e:
        logger.error(f"Failed to persist {what}; change kept in memory only: {e}")
        return False


class PointCatalog:
    """
    The canonical in-memory point collection for a session.

    Reads happen once (`load`), every mutation writes the full collection back
    to the store. Id uniqueness is only enforced when `enforce_unique_ids` is
    set; replacing an unknown id is a logged no-op unless `strict_replace`.
    """

    def __init__(self, store: CatalogStore, points: Optional[List[Point]] = None,
                 enforce_unique_ids: bool = False, strict_replace: bool = False):
        self.store = store
        self.enforce_unique_ids = enforce_unique_ids
        self.strict_replace = strict_replace
        self._points: List[Point] = list(points or [])

    @classmethod
    def load(cls, store: CatalogStore, **kwargs) -> 'PointCatalog':
        points = None
        try:
            points = store.load_points()
        except StoreReadError as e:
            logger.warning(f"Stored points unreadable, falling back to built-in defaults: {e}")
        if not points:
            if points is None:
                logger.info("No stored points found. Starting from built-in defaults.")
            else:
                logger.info("Stored point collection is empty. Starting from built-in defaults.")
            points = default_points()
        else:
            logger.info(f"Loaded {len(points)} points from store.")
        return cls(store, points, **kwargs)

    # --- Read access ---
    @property
    def points(self) -> List[Point]:
        return list(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self):
        return iter(list(self._points))

    def get(self, point_id: str) -> Point:
        for p in self._points:
            if p.id == point_id:
                return p
        raise PointNotFoundError(point_id)

    def find(self, ref: str) -> Optional[Point]:
        return find_point(self._points, ref)

    def sorted_by_number(self) -> List[Point]:
        return sorted(self._points, key=lambda p: p.number)

    def filter(self, text: str = '', zone: Optional[Zone] = None,
               status: Optional[PointStatus] = None) -> List[Point]:
        return filter_points(self._points, text, zone, status)

    def next_number(self) -> int:
        return next_point_number(self._points)

    # --- Mutations ---
    def add_point(self, point: Point) -> Point:
        if self.enforce_unique_ids and any(p.id == point.id for p in self._points):
            raise DuplicatePointError(point.id)
        self._points.append(point)
        logger.info(f"Added point '{point.id}' (#{point.number}).")
        self._persist()
        return point

    def replace_point(self, point: Point) -> bool:
        for index, existing in enumerate(self._points):
            if existing.id == point.id:
                self._points[index] = point
                logger.info(f"Replaced point '{point.id}'.")
                self._persist()
                return True
        if self.strict_replace:
            raise PointNotFoundError(point.id)
        logger.warning(f"Replace ignored: point '{point.id}' is not in the catalog.")
        return False

    def set_status(self, point_id: str, status: PointStatus,
                   checked_at: Optional[datetime] = None) -> Point:
        self._points, updated = set_point_status(self._points, point_id, status, checked_at)
        logger.info(f"Status of '{point_id}' set to {updated.status.value}.")
        self._persist()
        return updated

    def patch_point(self, point_id: str, updates: Dict[str, Any]) -> Point:
        self._points, updated = patch_point(self._points, point_id, updates)
        logger.info(f"Patched point '{point_id}' ({', '.join(updates) or 'no fields'}).")
        self._persist()
        return updated

    def reset_to_defaults(self) -> None:
        self._points = default_points()
        logger.warning("Point catalog reset to built-in defaults.")
        self._persist()

    def _persist(self) -> bool:
        return _write_through(lambda: self.store.save_points(self._points), f"{len(self._points)} points")


class LayoutCatalog:
    """Editable schematic modules; same write-through semantics as PointCatalog."""

    def __init__(self, store: CatalogStore, modules: Optional[List[MachineModule]] = None):
        self.store = store
        self._modules: List[MachineModule] = list(modules or [])

    @classmethod
    def load(cls, store: CatalogStore) -> 'LayoutCatalog':
        modules = None
        try:
            modules = store.load_layout()
        except StoreReadError as e:
            logger.warning(f"Stored layout unreadable, falling back to built-in layout: {e}")
        # A stored empty layout is kept: the operator removed every module.
        if modules is None:
            logger.info("Using built-in machine layout.")
            modules = default_layout()
        else:
            logger.info(f"Loaded {len(modules)} layout modules from store.")
        return cls(store, modules)

    @property
    def modules(self) -> List[MachineModule]:
        return list(self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def get(self, module_id: str) -> MachineModule:
        for m in self._modules:
            if m.id == module_id:
                return m
        raise LayoutModuleNotFoundError(module_id)

    def labels(self) -> List[str]:
        return [m.label for m in self._modules]

    def add_module(self, module: MachineModule) -> MachineModule:
        self._modules.append(module)
        logger.info(f"Added layout module '{module.id}'.")
        self._persist()
        return module

    def update_module(self, module: MachineModule) -> bool:
        for index, existing in enumerate(self._modules):
            if existing.id == module.id:
                self._modules[index] = module
                logger.info(f"Updated layout module '{module.id}'.")
                self._persist()
                return True
        logger.warning(f"Update ignored: layout module '{module.id}' does not exist.")
        return False

    def delete_module(self, module_id: str) -> bool:
        remaining = [m for m in self._modules if m.id != module_id]
        if len(remaining) == len(self._modules):
            logger.warning(f"Delete ignored: layout module '{module_id}' does not exist.")
            return False
        self._modules = remaining
        logger.info(f"Deleted layout module '{module_id}'.")
        self._persist()
        return True

    def _persist(self) -> bool:
        return _write_through(lambda: self.store.save_layout(self._modules), f"{len(self._modules)} layout modules")


