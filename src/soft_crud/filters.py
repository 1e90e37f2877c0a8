"""
Soft Delete Filter Utilities

Rewrites caller filters and where clauses so they exclude soft-deleted records.
Inputs are never mutated; every call returns a new filter/where.
"""

from typing import Any, Dict, Optional

Filter = Dict[str, Any]
Where = Dict[str, Any]


def not_deleted() -> Where:
    """Constraint matching only live (non-tombstoned) records"""
    return {"deleted": False}


def augment_where(where: Optional[Where] = None, extra_where: Optional[Where] = None) -> Where:
    """
    AND a where clause with the not-deleted constraint

    Args:
        where: Caller where clause, left untouched
        extra_where: Additional equality constraints (e.g. an id for point lookups)

    Returns:
        New where clause excluding soft-deleted records
    """
    # An explicit deleted constraint from the caller is AND-ed, never overridden
    exclusion = {**(extra_where or {}), **not_deleted()}
    if not where:
        return exclusion
    return {"and": [where, exclusion]}


def augment_filter(filter: Optional[Filter] = None, extra_where: Optional[Where] = None) -> Filter:
    """Filter out soft-deleted records from a filter (order, limit, include are kept)"""
    augmented = dict(filter) if filter else {}
    augmented["where"] = augment_where(augmented.get("where"), extra_where)
    return augmented
