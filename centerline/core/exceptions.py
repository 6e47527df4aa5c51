# centerline/core/exceptions.py
from typing import List, NamedTuple


class CenterlineError(Exception):
    """Base class for catalog-level errors."""


class ValidationIssue(NamedTuple):
    field: str
    message: str


class PointValidationError(CenterlineError):
    """Raised when a point draft cannot be committed. Carries every issue found."""

    def __init__(self, issues: List[ValidationIssue]):
        self.issues = list(issues)
        summary = "; ".join(f"{issue.field}: {issue.message}" for issue in self.issues)
        super().__init__(f"Invalid point ({summary})")


class PointNotFoundError(CenterlineError):
    def __init__(self, point_id: str):
        self.point_id = point_id
        super().__init__(f"Point '{point_id}' not found.")


class LayoutModuleNotFoundError(CenterlineError):
    def __init__(self, module_id: str):
        self.module_id = module_id
        super().__init__(f"Module '{module_id}' not found.")


class DuplicatePointError(CenterlineError):
    def __init__(self, point_id: str):
        self.point_id = point_id
        super().__init__(f"Point id '{point_id}' already exists in the catalog.")


class StoreError(Exception):
    """Base class for persistence adapter failures."""


class StoreReadError(StoreError):
    pass


class StoreWriteError(StoreError):
    pass
