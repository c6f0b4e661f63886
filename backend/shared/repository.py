"""
Generic repository over SQLAlchemy async sessions.

Provides one data-access surface for every persisted entity type:
CRUD, soft delete, paging and a single-transaction bracket. Every read
path excludes soft-deleted rows; ``query_with_deleted()`` is the only way
to see them.
"""

import logging
import uuid
from typing import Any, Generic, Iterable, Optional, Sequence, TypeVar, Union

from sqlalchemy import Select, false, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .exceptions import InvalidStateError, ValidationError
from .orm import AuditMixin, utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=AuditMixin)

MAX_PAGE_SIZE = 1000


class BaseRepository(Generic[T]):
    """
    Base class for all repositories.

    Subclasses bind the entity type and add domain-specific queries:

        class ChildRepository(BaseRepository[Child]):
            model = Child

            async def list_for_parent(self, parent_id):
                return await self.find(Child.parent_id == parent_id)

    Writes never commit on their own; call ``save_changes()`` or use the
    transaction bracket.
    """

    model: type[T]

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize the repository with an async session.

        Args:
            session: Session for the current unit of work.
        """
        self._session = session
        self._in_transaction = False

    @property
    def session(self) -> AsyncSession:
        return self._session

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _not_deleted(self):
        return self.model.is_deleted == false()

    def query(self) -> Select:
        """Composable select over live rows."""
        return select(self.model).where(self._not_deleted())

    def query_with_deleted(self) -> Select:
        """Composable select that includes soft-deleted rows (admin and audit use)."""
        return select(self.model)

    async def fetch(self, stmt: Select) -> list[T]:
        """Execute a caller-composed select and return the entities."""
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_id(self, entity_id: Union[uuid.UUID, str]) -> Optional[T]:
        stmt = self.query().where(self.model.id == _coerce_id(entity_id))
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_all(self) -> list[T]:
        return await self.fetch(self.query())

    async def find(self, *criteria: Any) -> list[T]:
        return await self.fetch(self.query().where(*criteria))

    async def find_single(self, *criteria: Any) -> Optional[T]:
        """
        Return the one live row matching the criteria, or None.

        Raises:
            InvalidStateError: If more than one row matches.
        """
        rows = await self.fetch(self.query().where(*criteria).limit(2))
        if len(rows) > 1:
            raise InvalidStateError(
                f"Expected a single {self.model.__name__}, found several",
                details={"entity": self.model.__name__},
            )
        return rows[0] if rows else None

    async def any(self, *criteria: Any) -> bool:
        stmt = select(self.model.id).where(self._not_deleted(), *criteria).limit(1)
        result = await self._session.execute(stmt)
        return result.first() is not None

    async def count(self, *criteria: Any) -> int:
        stmt = select(func.count()).select_from(self.model).where(self._not_deleted(), *criteria)
        result = await self._session.execute(stmt)
        return int(result.scalar_one())

    async def get_paged(
        self,
        page_number: int,
        page_size: int,
        order_by: Any = None,
        ascending: bool = True,
        filter: Any = None,
    ) -> tuple[list[T], int]:
        """
        Return one page of live rows and the total count across all pages.

        Without ``order_by`` rows come newest first by ``created_at`` and
        ``ascending`` is ignored.

        Raises:
            ValidationError: If page_number < 1 or page_size is outside 1..1000.
        """
        if page_number < 1:
            raise ValidationError(
                "Page number must be greater than 0",
                code="INVALID_PAGE",
                details={"page_number": page_number},
            )
        if page_size < 1 or page_size > MAX_PAGE_SIZE:
            raise ValidationError(
                f"Page size must be between 1 and {MAX_PAGE_SIZE}",
                code="INVALID_PAGE_SIZE",
                details={"page_size": page_size},
            )

        criteria = [filter] if filter is not None else []
        total = await self.count(*criteria)

        stmt = self.query().where(*criteria)
        if order_by is None:
            stmt = stmt.order_by(self.model.created_at.desc())
        else:
            stmt = stmt.order_by(order_by.asc() if ascending else order_by.desc())
        stmt = stmt.offset((page_number - 1) * page_size).limit(page_size)

        return await self.fetch(stmt), total

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def add(self, entity: T) -> T:
        if entity.id is None:
            entity.id = uuid.uuid4()
        if entity.created_at is None:
            entity.created_at = utcnow()
        if entity.is_deleted is None:
            entity.is_deleted = False
        self._session.add(entity)
        return entity

    async def add_range(self, entities: Sequence[T]) -> list[T]:
        _require_items(entities, "add")
        return [await self.add(entity) for entity in entities]

    async def update(self, entity: T) -> T:
        entity.updated_at = utcnow()
        self._session.add(entity)
        return entity

    async def update_range(self, entities: Sequence[T]) -> list[T]:
        _require_items(entities, "update")
        return [await self.update(entity) for entity in entities]

    async def delete(self, entity_or_id: Union[T, uuid.UUID, str], deleted_by: str) -> bool:
        """
        Soft delete a row.

        Returns False when an id was given and no live row has it.

        Raises:
            ValidationError: If deleted_by is blank. Nothing is modified.
        """
        if not deleted_by or not deleted_by.strip():
            raise ValidationError(
                "deleted_by is required for soft delete",
                code="MISSING_ACTOR",
            )

        if isinstance(entity_or_id, (uuid.UUID, str)):
            entity = await self.get_by_id(entity_or_id)
            if entity is None:
                return False
        else:
            entity = entity_or_id

        entity.is_deleted = True
        entity.deleted_at = utcnow()
        entity.deleted_by = deleted_by
        entity.updated_by = deleted_by
        await self.update(entity)
        logger.debug(f"Soft-deleted {self.model.__name__} {entity.id} by {deleted_by}")
        return True

    async def remove(self, entity: T) -> None:
        """Hard delete. Only for rows without soft-delete semantics."""
        await self._session.delete(entity)

    async def remove_range(self, entities: Sequence[T]) -> None:
        _require_items(entities, "remove")
        for entity in entities:
            await self._session.delete(entity)

    async def save_changes(self) -> int:
        """
        Persist pending changes.

        Inside an active transaction this only flushes; the bracket's commit
        makes the changes durable.

        Returns:
            Number of entities that were pending.
        """
        pending = len(self._session.new) + len(self._session.dirty) + len(self._session.deleted)
        if self._in_transaction:
            await self._session.flush()
            return pending

        try:
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise
        return pending

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    async def begin_transaction(self) -> None:
        """
        Raises:
            InvalidStateError: If a transaction is already active.
        """
        if self._in_transaction:
            raise InvalidStateError("A transaction is already in progress")

        if not self._session.in_transaction():
            await self._session.begin()
        self._in_transaction = True

    async def commit_transaction(self) -> None:
        """
        Commit the active transaction, rolling back if the commit fails.

        Raises:
            InvalidStateError: If no transaction is active.
        """
        if not self._in_transaction:
            raise InvalidStateError("No transaction in progress")

        try:
            await self._session.commit()
        except Exception:
            logger.error(f"Commit failed for {self.model.__name__} transaction, rolling back")
            await self._session.rollback()
            raise
        finally:
            self._in_transaction = False

    async def rollback_transaction(self) -> None:
        """
        Raises:
            InvalidStateError: If no transaction is active.
        """
        if not self._in_transaction:
            raise InvalidStateError("No transaction in progress")

        try:
            await self._session.rollback()
        finally:
            self._in_transaction = False


def _coerce_id(entity_id: Union[uuid.UUID, str]) -> uuid.UUID:
    if isinstance(entity_id, uuid.UUID):
        return entity_id
    try:
        return uuid.UUID(str(entity_id))
    except ValueError:
        raise ValidationError(
            f"Invalid identifier: {entity_id}",
            code="INVALID_ID",
            details={"id": str(entity_id)},
        )


def _require_items(entities: Iterable[Any], action: str) -> None:
    if not entities:
        raise ValidationError(f"Cannot {action} an empty collection", code="EMPTY_COLLECTION")
