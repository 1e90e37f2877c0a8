"""
Soft CRUD

Soft delete policy layer over a CRUD store: deletes become tombstones and reads
exclude tombstoned records unless asked otherwise.
"""

from .exceptions import EntityNotFoundError, SoftCrudError
from .filters import augment_filter, augment_where, not_deleted
from .models import Base, SoftDeleteMixin
from .repository import SoftCrudRepository
from .stamper import DeletionStamper
from .store import CrudStore, SqlAlchemyStore

__all__ = [
    "Base",
    "CrudStore",
    "DeletionStamper",
    "EntityNotFoundError",
    "SoftCrudError",
    "SoftCrudRepository",
    "SoftDeleteMixin",
    "SqlAlchemyStore",
    "augment_filter",
    "augment_where",
    "not_deleted",
]
