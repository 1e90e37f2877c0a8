"""
Soft Delete Models

Declarative base and the tombstone columns shared by every soft-deletable entity.
A record is never removed by a soft delete; it is flagged and stamped in place.
"""

from sqlalchemy import Boolean, Column, DateTime, String, inspect
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class SoftDeleteMixin:
    """
    Soft Delete Columns
    Mix into a declarative model to make it usable with SoftCrudRepository
    """

    deleted = Column(Boolean, default=False, nullable=False)
    deleted_on = Column(DateTime, nullable=True)  # set exactly when deleted flips to True
    deleted_by = Column(String(255), nullable=True)  # actor id, best-effort

    def get_id(self):
        """Primary key value of this entity (a tuple for composite keys)"""
        mapper = inspect(type(self))
        values = tuple(getattr(self, mapper.get_property_by_column(column).key) for column in mapper.primary_key)
        return values[0] if len(values) == 1 else values
