"""
Soft CRUD Exceptions
"""

from typing import Any, Optional


class SoftCrudError(Exception):
    """Base error raised by the soft delete layer"""


class EntityNotFoundError(SoftCrudError):
    """No live (non-tombstoned) entity matches the requested id"""

    code = "EntityNotFound"

    def __init__(self, entity_name: str, entity_id: Any, message: Optional[str] = None):
        self.entity_name = entity_name
        self.entity_id = entity_id
        super().__init__(message or f"{entity_name} not found: {entity_id!r}")
