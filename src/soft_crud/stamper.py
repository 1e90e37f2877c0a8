"""
Deletion Stamper

Resolves the acting user and builds the tombstone written on every soft delete.
Identity is optional metadata: a missing or failing accessor yields deleted_by=None.
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

logger = logging.getLogger(__name__)

CurrentUserGetter = Callable[[], Awaitable[Optional[Any]]]

CURRENT_USER_OPTION = "current_user"


def utc_now() -> datetime:
    """Current UTC time without tzinfo, the form DateTime columns store and return"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _user_id(user: Any) -> Optional[Any]:
    if isinstance(user, Mapping):
        return user.get("id")
    return getattr(user, "id", None)


class DeletionStamper:
    """Builds tombstone payloads for soft deletes"""

    def __init__(self, get_current_user: Optional[CurrentUserGetter] = None):
        self.get_current_user = get_current_user

    async def resolve_actor_id(self, options: Optional[Dict[str, Any]] = None) -> Optional[str]:
        """
        Resolve the id of the user performing a delete

        The injected accessor wins; a `current_user` carried in the options bag is
        the fallback. Without an accessor, identity tracking is disabled.

        Returns:
            Actor id as a string, or None when no identity is resolvable
        """
        if self.get_current_user is None:
            return None

        try:
            current_user = await self.get_current_user()
        except Exception as e:
            logger.warning("Current user lookup failed, deleting without actor | error=%s", e)
            current_user = None

        if current_user is None and options:
            current_user = options.get(CURRENT_USER_OPTION)
            if current_user is not None:
                logger.debug("Actor resolved from options bag")

        if current_user is None:
            return None
        user_id = _user_id(current_user)
        if user_id is None or user_id == "":
            return None
        return str(user_id)

    async def build_tombstone(self, options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Tombstone payload: deleted flag, wall-clock time and resolved actor"""
        return {
            "deleted": True,
            "deleted_on": utc_now(),
            "deleted_by": await self.resolve_actor_id(options),
        }

    @staticmethod
    def stamp(entity: Any, tombstone: Dict[str, Any]) -> Any:
        """Apply a tombstone onto an entity in place"""
        for field, value in tombstone.items():
            setattr(entity, field, value)
        return entity
