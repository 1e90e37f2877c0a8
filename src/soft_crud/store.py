"""
CRUD Store

The store contract the soft delete layer sits on, and a SQLAlchemy-backed store.

Filters follow a small JSON-style grammar:

    {
        "where": {"status": "pending", "total": {"gte": 10}, "or": [{...}, {...}]},
        "order": ["created_at DESC"],
        "limit": 50,
        "skip": 0,
        "include": ["lines"],
    }
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy import and_, inspect, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from .exceptions import EntityNotFoundError
from .filters import Filter, Where

logger = logging.getLogger(__name__)

Options = Optional[Dict[str, Any]]


class CrudStore(Protocol):
    """Asynchronous CRUD data source consumed by SoftCrudRepository"""

    id_property: str
    entity_name: str

    async def find(self, filter: Optional[Filter] = None, options: Options = None) -> List[Any]: ...

    async def find_one(self, filter: Optional[Filter] = None, options: Options = None) -> Optional[Any]: ...

    async def find_by_id(self, id: Any, filter: Optional[Filter] = None, options: Options = None) -> Any: ...

    async def update_all(self, data: Dict[str, Any], where: Optional[Where] = None, options: Options = None) -> int: ...

    async def count(self, where: Optional[Where] = None, options: Options = None) -> int: ...

    async def update(self, entity: Any, options: Options = None) -> None: ...

    async def update_by_id(self, id: Any, data: Dict[str, Any], options: Options = None) -> None: ...

    async def delete_by_id(self, id: Any, options: Options = None) -> None: ...

    async def delete_all(self, where: Optional[Where] = None, options: Options = None) -> int: ...


_OPERATORS = {
    "eq": lambda column, value: column.is_(None) if value is None else column == value,
    "neq": lambda column, value: column.is_not(None) if value is None else column != value,
    "gt": lambda column, value: column > value,
    "gte": lambda column, value: column >= value,
    "lt": lambda column, value: column < value,
    "lte": lambda column, value: column <= value,
    "inq": lambda column, value: column.in_(value),
    "nin": lambda column, value: column.not_in(value),
    "between": lambda column, value: column.between(value[0], value[1]),
    "like": lambda column, value: column.like(value),
    "nlike": lambda column, value: column.not_like(value),
    "ilike": lambda column, value: column.ilike(value),
}


class SqlAlchemyStore:
    """
    CRUD store over a SQLAlchemy Session for a single mapped model

    Methods are coroutines so the store satisfies CrudStore; the session itself is
    synchronous and is driven inline.
    """

    def __init__(self, db: Session, model: type):
        self.db = db
        self.model = model
        self.entity_name = model.__name__
        mapper = inspect(model)
        if len(mapper.primary_key) != 1:
            raise ValueError(f"{model.__name__} must have a single-column primary key")
        self.id_property = mapper.get_property_by_column(mapper.primary_key[0]).key

    # ------------------------------------------------------------------
    # Where / filter compilation
    # ------------------------------------------------------------------

    def _column(self, field: str):
        if field not in inspect(self.model).column_attrs.keys():
            raise ValueError(f"Unknown field '{field}' for {self.entity_name}")
        return getattr(self.model, field)

    def build_condition(self, where: Optional[Where]):
        """Compile a where dict into a SQLAlchemy boolean expression (None when empty)"""
        if not where:
            return None

        clauses = []
        for key, value in where.items():
            if key in ("and", "or"):
                parts = [self.build_condition(part) for part in value]
                parts = [part for part in parts if part is not None]
                if parts:
                    clauses.append(and_(*parts) if key == "and" else or_(*parts))
                continue

            column = self._column(key)
            if isinstance(value, dict):
                for op, operand in value.items():
                    compile_op = _OPERATORS.get(op)
                    if compile_op is None:
                        raise ValueError(f"Unsupported operator '{op}' on field '{key}'")
                    clauses.append(compile_op(column, operand))
            else:
                clauses.append(_OPERATORS["eq"](column, value))

        if not clauses:
            return None
        return clauses[0] if len(clauses) == 1 else and_(*clauses)

    def _query(self, where: Optional[Where] = None) -> Query:
        query = self.db.query(self.model)
        condition = self.build_condition(where)
        if condition is not None:
            query = query.filter(condition)
        return query

    def _apply_filter(self, query: Query, filter: Filter) -> Query:
        for relation in filter.get("include") or []:
            name = relation["relation"] if isinstance(relation, dict) else relation
            if name not in inspect(self.model).relationships.keys():
                raise ValueError(f"Unknown relation '{name}' for {self.entity_name}")
            query = query.options(selectinload(getattr(self.model, name)))

        order = filter.get("order") or []
        if isinstance(order, str):
            order = [order]
        for clause in order:
            field, _, direction = clause.strip().partition(" ")
            column = self._column(field)
            query = query.order_by(column.desc() if direction.strip().upper() == "DESC" else column.asc())

        skip = filter.get("skip", filter.get("offset"))
        if skip:
            query = query.offset(skip)
        if filter.get("limit") is not None:
            query = query.limit(filter["limit"])
        return query

    def _id_where(self, id: Any) -> Where:
        return {self.id_property: id}

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find(self, filter: Optional[Filter] = None, options: Options = None) -> List[Any]:
        filter = filter or {}
        return self._apply_filter(self._query(filter.get("where")), filter).all()

    async def find_one(self, filter: Optional[Filter] = None, options: Options = None) -> Optional[Any]:
        filter = filter or {}
        return self._apply_filter(self._query(filter.get("where")), filter).first()

    async def find_by_id(self, id: Any, filter: Optional[Filter] = None, options: Options = None) -> Any:
        filter = filter or {}
        where = self._id_where(id)
        if filter.get("where"):
            where = {"and": [filter["where"], where]}
        entity = self._apply_filter(self._query(where), filter).first()
        if entity is None:
            raise EntityNotFoundError(self.entity_name, id)
        return entity

    async def count(self, where: Optional[Where] = None, options: Options = None) -> int:
        return self._query(where).count()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @contextmanager
    def _rollback_on_error(self):
        """Roll the session back when a write fails so later calls can use it"""
        try:
            yield
        except SQLAlchemyError:
            self.db.rollback()
            raise

    async def update_all(self, data: Dict[str, Any], where: Optional[Where] = None, options: Options = None) -> int:
        with self._rollback_on_error():
            affected = self._query(where).update(data, synchronize_session=False)
            self.db.commit()
        return affected

    async def update(self, entity: Any, options: Options = None) -> None:
        state = inspect(entity)
        with self._rollback_on_error():
            if not (state.persistent and state.session is self.db):
                # Detached or foreign instance: the row must exist before merging its state back
                entity_id = getattr(entity, self.id_property)
                with self.db.no_autoflush:
                    exists = self._query(self._id_where(entity_id)).count() > 0
                if not exists:
                    raise EntityNotFoundError(self.entity_name, entity_id)
                self.db.merge(entity)
            self.db.commit()

    async def update_by_id(self, id: Any, data: Dict[str, Any], options: Options = None) -> None:
        with self._rollback_on_error():
            affected = self._query(self._id_where(id)).update(data, synchronize_session=False)
            if not affected:
                raise EntityNotFoundError(self.entity_name, id)
            self.db.commit()

    async def delete_by_id(self, id: Any, options: Options = None) -> None:
        with self._rollback_on_error():
            affected = self._query(self._id_where(id)).delete(synchronize_session=False)
            if not affected:
                raise EntityNotFoundError(self.entity_name, id)
            self.db.commit()

    async def delete_all(self, where: Optional[Where] = None, options: Options = None) -> int:
        with self._rollback_on_error():
            affected = self._query(where).delete(synchronize_session=False)
            self.db.commit()
        logger.debug("Bulk delete | model=%s affected=%s", self.entity_name, affected)
        return affected

