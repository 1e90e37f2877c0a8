"""
Soft CRUD Repository - Soft Delete Policy Layer

Wraps a CrudStore and decides, for every operation, whether soft-deleted records
participate. Reads, counts and bulk updates exclude tombstoned rows by default;
deletes become tombstone-stamping updates. Physical removal is only reachable
through the explicitly named *_hard operations.
"""

import logging
from typing import Any, Dict, Generic, List, Optional, TypeVar

from .exceptions import EntityNotFoundError
from .filters import Filter, Where, augment_filter, augment_where
from .stamper import CurrentUserGetter, DeletionStamper
from .store import CrudStore

logger = logging.getLogger(__name__)

T = TypeVar("T")
ID = TypeVar("ID")

Options = Optional[Dict[str, Any]]


class SoftCrudRepository(Generic[T, ID]):
    """
    Soft delete repository over a CRUD store

    Args:
        store: Underlying data source; errors it raises propagate unchanged
        get_current_user: Optional async accessor for the acting user. When absent,
            deletes are recorded without an actor.
    """

    def __init__(self, store: CrudStore, get_current_user: Optional[CurrentUserGetter] = None):
        self._store = store
        self._stamper = DeletionStamper(get_current_user)

    @property
    def store(self) -> CrudStore:
        return self._store

    @property
    def stamper(self) -> DeletionStamper:
        return self._stamper

    # ============================================================================
    # Reads
    # ============================================================================

    async def find(self, filter: Optional[Filter] = None, options: Options = None) -> List[T]:
        """Find live records matching the filter"""
        return await self._store.find(augment_filter(filter), options)

    async def find_all(self, filter: Optional[Filter] = None, options: Options = None) -> List[T]:
        """Find records matching the filter, soft-deleted ones included"""
        return await self._store.find(filter, options)

    async def find_one(self, filter: Optional[Filter] = None, options: Options = None) -> Optional[T]:
        return await self._store.find_one(augment_filter(filter), options)

    async def find_one_include_soft_delete(self, filter: Optional[Filter] = None, options: Options = None) -> Optional[T]:
        return await self._store.find_one(filter, options)

    async def find_by_id(self, id: ID, filter: Optional[Filter] = None, options: Options = None) -> T:
        """
        Fetch a live record by id

        A soft-deleted record is reported exactly like a missing one. The existence
        check and the fetch are two store calls; a delete landing between them is
        not guarded against.

        Raises:
            EntityNotFoundError: No live record has this id
        """
        filter = augment_filter(filter, {self._store.id_property: id})

        existing = await self._store.find_one(filter, options)
        if existing is None:
            raise EntityNotFoundError(self._store.entity_name, id)
        return await self._store.find_by_id(id, filter, options)

    async def find_by_id_include_soft_delete(self, id: ID, filter: Optional[Filter] = None, options: Options = None) -> T:
        """Fetch by id, soft-deleted records included; the store's own not-found applies"""
        return await self._store.find_by_id(id, filter, options)

    async def count(self, where: Optional[Where] = None, options: Options = None) -> int:
        return await self._store.count(augment_where(where), options)

    async def count_all(self, where: Optional[Where] = None, options: Options = None) -> int:
        """Count matching records, soft-deleted ones included"""
        return await self._store.count(where, options)

    # ============================================================================
    # Writes
    # ============================================================================

    async def update_all(self, data: Dict[str, Any], where: Optional[Where] = None, options: Options = None) -> int:
        """Apply a patch to live records only; returns the affected count"""
        return await self._store.update_all(data, augment_where(where), options)

    # ============================================================================
    # Soft deletes
    # ============================================================================

    async def delete(self, entity: T, options: Options = None) -> None:
        """
        Soft delete an entity

        The passed entity is stamped in place (deleted, deleted_on, deleted_by)
        before being persisted, so callers observe the tombstone on their object.
        """
        tombstone = await self._stamper.build_tombstone(options)
        entity_id = getattr(entity, self._store.id_property, None)
        self._stamper.stamp(entity, tombstone)
        await self._store.update(entity, options)
        logger.info(
            "Soft deleted entity | model=%s id=%s by=%s",
            self._store.entity_name,
            entity_id,
            tombstone["deleted_by"],
        )

    async def delete_all(self, where: Optional[Where] = None, options: Options = None) -> int:
        """Soft delete every live match with one shared timestamp and actor"""
        tombstone = await self._stamper.build_tombstone(options)
        affected = await self.update_all(tombstone, where, options)
        logger.info(
            "Soft deleted entities | model=%s count=%s by=%s",
            self._store.entity_name,
            affected,
            tombstone["deleted_by"],
        )
        return affected

    async def delete_by_id(self, id: ID, options: Options = None) -> None:
        """Soft delete by id without re-checking the record's current state"""
        tombstone = await self._stamper.build_tombstone(options)
        await self._store.update_by_id(id, tombstone, options)
        logger.info(
            "Soft deleted entity | model=%s id=%s by=%s",
            self._store.entity_name,
            id,
            tombstone["deleted_by"],
        )

    # ============================================================================
    # Hard deletes
    # ============================================================================

    async def delete_hard(self, entity: T, options: Options = None) -> None:
        """Physically delete an entity. Irreversible."""
        entity_id = entity.get_id()
        await self._store.delete_by_id(entity_id, options)
        logger.warning("Hard deleted entity | model=%s id=%s", self._store.entity_name, entity_id)

    async def delete_all_hard(self, where: Optional[Where] = None, options: Options = None) -> int:
        """Physically delete all matches, soft-deleted ones included. Irreversible."""
        affected = await self._store.delete_all(where, options)
        logger.warning("Hard deleted entities | model=%s count=%s", self._store.entity_name, affected)
        return affected

    async def delete_by_id_hard(self, id: ID, options: Options = None) -> None:
        """Physically delete by id. Irreversible."""
        await self._store.delete_by_id(id, options)
        logger.warning("Hard deleted entity | model=%s id=%s", self._store.entity_name, id)
