"""
Deletion Stamper Tests

Covers actor resolution and tombstone payloads.
"""

from datetime import timedelta
from types import SimpleNamespace

import pytest

from soft_crud.stamper import DeletionStamper, utc_now


def _accessor(user):
    async def get_current_user():
        return user

    return get_current_user


class TestResolveActorId:
    """Test current user resolution"""

    @pytest.mark.asyncio
    async def test_no_accessor_returns_none(self):
        stamper = DeletionStamper()
        assert await stamper.resolve_actor_id() is None

    @pytest.mark.asyncio
    async def test_no_accessor_ignores_options_user(self):
        stamper = DeletionStamper()
        assert await stamper.resolve_actor_id({"current_user": {"id": "u9"}}) is None

    @pytest.mark.asyncio
    async def test_accessor_user_id(self):
        stamper = DeletionStamper(_accessor(SimpleNamespace(id="u1")))
        assert await stamper.resolve_actor_id() == "u1"

    @pytest.mark.asyncio
    async def test_accessor_user_wins_over_options(self):
        stamper = DeletionStamper(_accessor({"id": "u1"}))
        assert await stamper.resolve_actor_id({"current_user": {"id": "u2"}}) == "u1"

    @pytest.mark.asyncio
    async def test_falls_back_to_options_user(self):
        stamper = DeletionStamper(_accessor(None))
        assert await stamper.resolve_actor_id({"current_user": SimpleNamespace(id=42)}) == "42"

    @pytest.mark.asyncio
    async def test_no_user_anywhere(self):
        stamper = DeletionStamper(_accessor(None))
        assert await stamper.resolve_actor_id() is None
        assert await stamper.resolve_actor_id({}) is None

    @pytest.mark.asyncio
    async def test_user_without_id(self):
        stamper = DeletionStamper(_accessor(SimpleNamespace(name="anonymous")))
        assert await stamper.resolve_actor_id() is None

    @pytest.mark.asyncio
    async def test_failing_accessor_degrades_to_none(self):
        async def broken():
            raise RuntimeError("auth backend down")

        stamper = DeletionStamper(broken)
        assert await stamper.resolve_actor_id() is None

    @pytest.mark.asyncio
    async def test_failing_accessor_still_uses_options_user(self):
        async def broken():
            raise RuntimeError("auth backend down")

        stamper = DeletionStamper(broken)
        assert await stamper.resolve_actor_id({"current_user": {"id": "u3"}}) == "u3"


class TestBuildTombstone:
    """Test tombstone payloads"""

    @pytest.mark.asyncio
    async def test_tombstone_fields(self):
        stamper = DeletionStamper(_accessor({"id": "u1"}))
        before = utc_now()

        tombstone = await stamper.build_tombstone()

        assert tombstone["deleted"] is True
        assert tombstone["deleted_by"] == "u1"
        assert tombstone["deleted_on"].tzinfo is None
        assert before <= tombstone["deleted_on"] <= utc_now() + timedelta(seconds=1)

    @pytest.mark.asyncio
    async def test_tombstone_without_identity(self):
        tombstone = await DeletionStamper().build_tombstone()

        assert tombstone["deleted"] is True
        assert tombstone["deleted_on"] is not None
        assert tombstone["deleted_by"] is None

    def test_stamp_mutates_entity(self):
        entity = SimpleNamespace(id=1, deleted=False, deleted_on=None, deleted_by=None)
        when = utc_now()

        result = DeletionStamper.stamp(entity, {"deleted": True, "deleted_on": when, "deleted_by": "u1"})

        assert result is entity
        assert entity.deleted is True
        assert entity.deleted_on == when
        assert entity.deleted_by == "u1"
