"""
Progress store - the data-store interface the unlock engine is handed.

Services receive a ProgressStore instead of reaching for a global client,
so they run unchanged against the SQLAlchemy store in production and an
in-memory fake in tests.

Writes commit immediately: the completion write must be durable before the
successor unlock is attempted, and no transaction spans the two.
"""

import uuid
from abc import ABC, abstractmethod
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from noteacher.engines.courses.hierarchy import NodeRef
from noteacher.engines.progress.ledger import ProgressRecord
from noteacher.engines.results import StoreError
from noteacher.kernel.models.course import Node
from noteacher.kernel.models.progress import ProgressStatus, UserProgress
from noteacher.logging_config import get_logger

logger = get_logger(__name__)


class ProgressStore(ABC):
    """Point lookups, ordered course ranges, and keyed ledger writes."""

    @abstractmethod
    async def get_node(self, node_id: uuid.UUID) -> Optional[NodeRef]:
        ...

    @abstractmethod
    async def get_node_at(self, course_id: uuid.UUID, position_index: int) -> Optional[NodeRef]:
        ...

    @abstractmethod
    async def list_course_nodes(self, course_id: uuid.UUID) -> List[NodeRef]:
        """Nodes of a course ordered by position_index."""

    @abstractmethod
    async def list_course_progress(self, user_id: uuid.UUID, course_id: uuid.UUID) -> List[ProgressRecord]:
        """The user's records for nodes of one course."""

    @abstractmethod
    async def list_user_progress(self, user_id: uuid.UUID) -> List[ProgressRecord]:
        ...

    @abstractmethod
    async def get_progress(self, user_id: uuid.UUID, node_id: uuid.UUID) -> Optional[ProgressRecord]:
        ...

    @abstractmethod
    async def mark_completed(self, user_id: uuid.UUID, node_id: uuid.UUID) -> None:
        """Upsert (user, node) = completed. Idempotent."""

    @abstractmethod
    async def unlock_if_absent(self, user_id: uuid.UUID, node_id: uuid.UUID) -> bool:
        """
        Insert (user, node) = unlocked unless any record exists.

        Returns True when a record was created.
        """


class SqlAlchemyProgressStore(ProgressStore):
    """ProgressStore over an async SQLAlchemy session (PostgreSQL or SQLite)."""

    _KEY = ("user_id", "node_id")

    def __init__(self, session: AsyncSession):
        self.session = session

    def _insert(self):
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(UserProgress)
        if dialect == "sqlite":
            return sqlite.insert(UserProgress)
        raise StoreError(f"Unsupported database dialect for ledger writes: {dialect}")

    async def _rollback(self) -> None:
        try:
            await self.session.rollback()
        except SQLAlchemyError:
            logger.exception("Rollback failed after store error")

    async def get_node(self, node_id: uuid.UUID) -> Optional[NodeRef]:
        try:
            row = await self.session.get(Node, node_id)
        except SQLAlchemyError as exc:
            await self._rollback()
            raise StoreError(str(exc)) from exc
        return NodeRef.model_validate(row) if row else None

    async def get_node_at(self, course_id: uuid.UUID, position_index: int) -> Optional[NodeRef]:
        q = select(Node).where(
            Node.course_id == course_id,
            Node.position_index == position_index,
        )
        try:
            result = await self.session.execute(q)
            row = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            await self._rollback()
            raise StoreError(str(exc)) from exc
        return NodeRef.model_validate(row) if row else None

    async def list_course_nodes(self, course_id: uuid.UUID) -> List[NodeRef]:
        q = (
            select(Node)
            .where(Node.course_id == course_id)
            .order_by(Node.position_index)
        )
        try:
            result = await self.session.execute(q)
            rows = list(result.scalars().all())
        except SQLAlchemyError as exc:
            await self._rollback()
            raise StoreError(str(exc)) from exc
        return [NodeRef.model_validate(r) for r in rows]

    async def list_course_progress(self, user_id: uuid.UUID, course_id: uuid.UUID) -> List[ProgressRecord]:
        q = (
            select(UserProgress)
            .join(Node, Node.id == UserProgress.node_id)
            .where(
                UserProgress.user_id == user_id,
                Node.course_id == course_id,
            )
        )
        return await self._fetch_records(q)

    async def list_user_progress(self, user_id: uuid.UUID) -> List[ProgressRecord]:
        q = select(UserProgress).where(UserProgress.user_id == user_id)
        return await self._fetch_records(q)

    async def get_progress(self, user_id: uuid.UUID, node_id: uuid.UUID) -> Optional[ProgressRecord]:
        q = select(UserProgress).where(
            UserProgress.user_id == user_id,
            UserProgress.node_id == node_id,
        )
        records = await self._fetch_records(q)
        return records[0] if records else None

    async def _fetch_records(self, q) -> List[ProgressRecord]:
        # Ledger writes bypass the identity map, so refresh rows it already holds
        q = q.execution_options(populate_existing=True)
        try:
            result = await self.session.execute(q)
            rows = list(result.scalars().all())
        except SQLAlchemyError as exc:
            await self._rollback()
            raise StoreError(str(exc)) from exc
        return [ProgressRecord.model_validate(r) for r in rows]

    async def mark_completed(self, user_id: uuid.UUID, node_id: uuid.UUID) -> None:
        stmt = self._insert().values(
            user_id=user_id,
            node_id=node_id,
            status=ProgressStatus.COMPLETED.value,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=list(self._KEY),
            set_={"status": ProgressStatus.COMPLETED.value, "updated_at": func.now()},
        )
        try:
            await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self._rollback()
            raise StoreError(str(exc)) from exc

    async def unlock_if_absent(self, user_id: uuid.UUID, node_id: uuid.UUID) -> bool:
        stmt = (
            self._insert()
            .values(
                user_id=user_id,
                node_id=node_id,
                status=ProgressStatus.UNLOCKED.value,
            )
            .on_conflict_do_nothing(index_elements=list(self._KEY))
        )
        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self._rollback()
            raise StoreError(str(exc)) from exc
        return (result.rowcount or 0) > 0
