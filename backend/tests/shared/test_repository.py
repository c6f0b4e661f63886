"""Tests for shared/repository.py."""

import uuid
from datetime import datetime, timedelta, timezone

from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from modules.enrollment.entities import Classroom
from shared.exceptions import InvalidStateError, ValidationError
from shared.repository import BaseRepository


class ClassroomRepository(BaseRepository[Classroom]):
    model = Classroom


@pytest.fixture
def repo(session) -> ClassroomRepository:
    return ClassroomRepository(session)


async def _seed(repo: ClassroomRepository, *names: str) -> list[Classroom]:
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    rooms = [
        Classroom(name=name, capacity=10, created_at=base + timedelta(minutes=i))
        for i, name in enumerate(names)
    ]
    await repo.add_range(rooms)
    await repo.save_changes()
    return rooms


class TestAdd:
    @pytest.mark.asyncio
    async def test_assigns_id_and_timestamp(self, repo):
        """add should fill in id, created_at and the live flag."""
        room = Classroom(name="Sunflowers", capacity=12)
        await repo.add(room)

        assert isinstance(room.id, uuid.UUID)
        assert room.created_at is not None
        assert room.is_deleted is False

    @pytest.mark.asyncio
    async def test_keeps_caller_id(self, repo):
        room_id = uuid.uuid4()
        room = await repo.add(Classroom(id=room_id, name="Tulips", capacity=8))
        assert room.id == room_id

    @pytest.mark.asyncio
    async def test_save_changes_returns_pending_count(self, repo):
        await repo.add_range([Classroom(name="A", capacity=1), Classroom(name="B", capacity=1)])
        assert await repo.save_changes() == 2
        assert await repo.count() == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["add_range", "update_range", "remove_range"])
    async def test_empty_range_rejected(self, repo, method):
        with pytest.raises(ValidationError) as exc_info:
            await getattr(repo, method)([])
        assert exc_info.value.code == "EMPTY_COLLECTION"


class TestQueries:
    @pytest.mark.asyncio
    async def test_get_by_id(self, repo):
        rooms = await _seed(repo, "Daisies")
        found = await repo.get_by_id(str(rooms[0].id))
        assert found is rooms[0]

    @pytest.mark.asyncio
    async def test_get_by_id_missing(self, repo):
        assert await repo.get_by_id(uuid.uuid4()) is None

    @pytest.mark.asyncio
    async def test_get_by_id_invalid(self, repo):
        with pytest.raises(ValidationError) as exc_info:
            await repo.get_by_id("not-a-uuid")
        assert exc_info.value.code == "INVALID_ID"

    @pytest.mark.asyncio
    async def test_find_and_any(self, repo):
        await _seed(repo, "Daisies", "Roses")
        found = await repo.find(Classroom.name == "Roses")
        assert [r.name for r in found] == ["Roses"]
        assert await repo.any(Classroom.name == "Daisies") is True
        assert await repo.any(Classroom.name == "Lilies") is False

    @pytest.mark.asyncio
    async def test_find_single_multiple_matches(self, repo):
        """find_single should refuse to pick one of several rows."""
        await _seed(repo, "Twin", "Twin")
        with pytest.raises(InvalidStateError):
            await repo.find_single(Classroom.name == "Twin")

    @pytest.mark.asyncio
    async def test_find_single(self, repo):
        await _seed(repo, "Only")
        assert (await repo.find_single(Classroom.name == "Only")).name == "Only"
        assert await repo.find_single(Classroom.name == "None") is None


class TestSoftDelete:
    @pytest.mark.asyncio
    async def test_deleted_rows_hidden_from_reads(self, repo):
        """Soft-deleted rows are invisible to every ordinary read."""
        rooms = await _seed(repo, "Keep", "Drop")
        assert await repo.delete(rooms[1], deleted_by="admin-1") is True
        await repo.save_changes()

        assert await repo.get_by_id(rooms[1].id) is None
        assert [r.name for r in await repo.get_all()] == ["Keep"]
        assert await repo.count() == 1
        assert await repo.any(Classroom.name == "Drop") is False
        items, total = await repo.get_paged(1, 10)
        assert total == 1
        assert [r.name for r in items] == ["Keep"]

    @pytest.mark.asyncio
    async def test_query_with_deleted_sees_everything(self, repo):
        rooms = await _seed(repo, "Keep", "Drop")
        await repo.delete(rooms[1].id, deleted_by="admin-1")
        await repo.save_changes()

        everything = await repo.fetch(repo.query_with_deleted())
        assert {r.name for r in everything} == {"Keep", "Drop"}

    @pytest.mark.asyncio
    async def test_delete_stamps_audit_fields(self, repo):
        rooms = await _seed(repo, "Drop")
        await repo.delete(rooms[0], deleted_by="admin-1")

        assert rooms[0].is_deleted is True
        assert rooms[0].deleted_by == "admin-1"
        assert rooms[0].updated_by == "admin-1"
        assert rooms[0].deleted_at is not None
        assert rooms[0].updated_at is not None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("actor", ["", "   "])
    async def test_delete_requires_actor(self, repo, actor):
        """A blank actor is rejected and the row is left untouched."""
        rooms = await _seed(repo, "Stay")
        with pytest.raises(ValidationError) as exc_info:
            await repo.delete(rooms[0], deleted_by=actor)

        assert exc_info.value.code == "MISSING_ACTOR"
        assert rooms[0].is_deleted is False
        assert rooms[0].deleted_at is None

    @pytest.mark.asyncio
    async def test_delete_unknown_id(self, repo):
        assert await repo.delete(uuid.uuid4(), deleted_by="admin-1") is False

    @pytest.mark.asyncio
    async def test_hard_remove(self, repo, session):
        rooms = await _seed(repo, "Gone")
        await repo.remove(rooms[0])
        await repo.save_changes()

        result = await session.execute(select(Classroom))
        assert result.scalars().all() == []


class TestRanges:
    @pytest.mark.asyncio
    async def test_update_range(self, repo, sessionmaker):
        rooms = await _seed(repo, "Ash", "Birch")
        for room in rooms:
            room.capacity = 20

        updated = await repo.update_range(rooms)
        await repo.save_changes()

        assert all(r.updated_at is not None for r in updated)
        async with sessionmaker() as other:
            result = await other.execute(select(Classroom.capacity))
            assert result.scalars().all() == [20, 20]

    @pytest.mark.asyncio
    async def test_remove_range(self, repo, sessionmaker):
        rooms = await _seed(repo, "Ash", "Birch", "Cedar")

        await repo.remove_range(rooms[:2])
        await repo.save_changes()

        assert await repo.count() == 1
        async with sessionmaker() as other:
            result = await other.execute(select(Classroom.name))
            assert result.scalars().all() == ["Cedar"]


class TestPaging:
    @pytest.mark.asyncio
    async def test_default_order_newest_first(self, repo):
        await _seed(repo, "First", "Second", "Third")
        items, total = await repo.get_paged(1, 2)

        assert total == 3
        assert [r.name for r in items] == ["Third", "Second"]

    @pytest.mark.asyncio
    async def test_second_page(self, repo):
        await _seed(repo, "First", "Second", "Third")
        items, total = await repo.get_paged(2, 2)
        assert total == 3
        assert [r.name for r in items] == ["First"]

    @pytest.mark.asyncio
    async def test_explicit_order_and_filter(self, repo):
        await _seed(repo, "Bravo", "Alpha", "Charlie")
        items, total = await repo.get_paged(
            1, 10, order_by=Classroom.name, ascending=False, filter=Classroom.name != "Bravo"
        )
        assert total == 2
        assert [r.name for r in items] == ["Charlie", "Alpha"]

    @pytest.mark.asyncio
    async def test_page_number_must_be_positive(self, repo):
        with pytest.raises(ValidationError) as exc_info:
            await repo.get_paged(0, 10)
        assert exc_info.value.code == "INVALID_PAGE"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("size", [0, 1001])
    async def test_page_size_bounds(self, repo, size):
        with pytest.raises(ValidationError) as exc_info:
            await repo.get_paged(1, size)
        assert exc_info.value.code == "INVALID_PAGE_SIZE"

    @pytest.mark.asyncio
    async def test_max_page_size_allowed(self, repo):
        items, total = await repo.get_paged(1, 1000)
        assert items == []
        assert total == 0


class TestTransactions:
    @pytest.mark.asyncio
    async def test_commit_persists(self, repo, sessionmaker):
        await repo.begin_transaction()
        assert repo.in_transaction is True
        await repo.add(Classroom(name="Committed", capacity=5))
        await repo.save_changes()
        await repo.commit_transaction()
        assert repo.in_transaction is False

        async with sessionmaker() as other:
            result = await other.execute(select(Classroom.name))
            assert result.scalars().all() == ["Committed"]

    @pytest.mark.asyncio
    async def test_rollback_discards(self, repo, sessionmaker):
        """Changes flushed inside the bracket vanish on rollback."""
        await repo.begin_transaction()
        await repo.add(Classroom(name="Discarded", capacity=5))
        await repo.save_changes()
        await repo.rollback_transaction()
        assert repo.in_transaction is False

        async with sessionmaker() as other:
            result = await other.execute(select(Classroom))
            assert result.scalars().all() == []

    @pytest.mark.asyncio
    async def test_nested_begin_rejected(self, repo):
        await repo.begin_transaction()
        with pytest.raises(InvalidStateError):
            await repo.begin_transaction()
        await repo.rollback_transaction()

    @pytest.mark.asyncio
    async def test_commit_without_transaction(self, repo, session, sessionmaker):
        """A stray commit fails and leaves pending work unsaved."""
        room = await repo.add(Classroom(name="Pending", capacity=5))

        with pytest.raises(InvalidStateError) as exc_info:
            await repo.commit_transaction()

        assert exc_info.value.code == "INVALID_STATE"
        assert room in session.new
        async with sessionmaker() as other:
            result = await other.execute(select(Classroom))
            assert result.scalars().all() == []

    @pytest.mark.asyncio
    async def test_failed_commit_rolls_back(self, repo, session, sessionmaker, monkeypatch):
        await repo.begin_transaction()
        await repo.add(Classroom(name="Lost", capacity=5))
        await repo.save_changes()

        error = OperationalError("COMMIT", {}, Exception("disk I/O error"))
        monkeypatch.setattr(session, "commit", AsyncMock(side_effect=error))
        rollback = AsyncMock(wraps=session.rollback)
        monkeypatch.setattr(session, "rollback", rollback)

        with pytest.raises(OperationalError) as exc_info:
            await repo.commit_transaction()

        assert exc_info.value is error
        rollback.assert_awaited_once()
        assert repo.in_transaction is False
        async with sessionmaker() as other:
            result = await other.execute(select(Classroom))
            assert result.scalars().all() == []

    @pytest.mark.asyncio
    async def test_rollback_without_transaction(self, repo):
        with pytest.raises(InvalidStateError):
            await repo.rollback_transaction()

    @pytest.mark.asyncio
    async def test_begin_after_autobegin(self, repo):
        """The bracket should join a session that already started implicitly."""
        await repo.count()
        await repo.begin_transaction()
        await repo.add(Classroom(name="Joined", capacity=3))
        await repo.save_changes()
        await repo.commit_transaction()
        assert await repo.count() == 1
