"""
Comment Service - per-node discussion threads.

Comments form a flat list per node ordered by posting time; replies point
at their parent through parent_id and the client nests them. Only the
author may edit or delete a comment, and deleting one removes its replies.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from noteacher.engines.results import ErrorKind, ServiceResult
from noteacher.kernel.models.comment import Comment, CommentType
from noteacher.kernel.models.course import Node
from noteacher.logging_config import get_logger

logger = get_logger(__name__)

MAX_COMMENT_LENGTH = 5000


class CommentDraft(BaseModel):
    content: str = Field(..., min_length=1, max_length=MAX_COMMENT_LENGTH)
    type: CommentType = CommentType.GENERAL
    parent_id: Optional[uuid.UUID] = None


class CommentEdit(BaseModel):
    """New text, and optionally a new type; the parent never changes."""

    content: str = Field(..., min_length=1, max_length=MAX_COMMENT_LENGTH)
    type: Optional[CommentType] = None


class CommentView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    node_id: uuid.UUID
    author_id: uuid.UUID
    parent_id: Optional[uuid.UUID] = None
    type: CommentType
    content: str
    edited_at: Optional[datetime] = None
    created_at: datetime


def _store_failure(action: str, exc: Exception) -> ServiceResult:
    logger.error("%s failed", action, extra={"error": str(exc)})
    return ServiceResult.failure(ErrorKind.STORE_UNAVAILABLE, f"{action} failed")


def _blank() -> ServiceResult:
    return ServiceResult.failure(
        ErrorKind.INVALID_CONTENT,
        "Comment is empty",
        [{"loc": ["content"], "msg": "Comment is empty", "type": "blank_comment"}],
    )


class CommentService:
    """Discussion reads and author-owned writes over an async session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_for_node(self, node_id: uuid.UUID) -> ServiceResult[List[CommentView]]:
        """Every comment on a node, oldest first."""
        try:
            if await self.session.get(Node, node_id) is None:
                return ServiceResult.failure(ErrorKind.NOT_FOUND, "Node not found")
            rows = (await self.session.execute(
                select(Comment)
                .where(Comment.node_id == node_id)
                .order_by(Comment.created_at, Comment.id)
            )).scalars().all()
        except SQLAlchemyError as exc:
            return _store_failure("Comment listing", exc)
        return ServiceResult.success([CommentView.model_validate(c) for c in rows])

    async def create(
        self,
        node_id: uuid.UUID,
        author_id: uuid.UUID,
        draft: CommentDraft,
    ) -> ServiceResult[CommentView]:
        """Post a comment, or a reply when the draft names a parent on the same node."""
        content = draft.content.strip()
        if not content:
            return _blank()

        try:
            if await self.session.get(Node, node_id) is None:
                return ServiceResult.failure(ErrorKind.NOT_FOUND, "Node not found")
            if draft.parent_id is not None:
                parent = await self.session.get(Comment, draft.parent_id)
                if parent is None or parent.node_id != node_id:
                    return ServiceResult.failure(ErrorKind.NOT_FOUND, "Parent comment not found on this node")

            comment = Comment(
                node_id=node_id,
                author_id=author_id,
                parent_id=draft.parent_id,
                type=draft.type.value,
                content=content,
                edited_at=None,
                # Application clock: replies posted within the same second keep their order
                created_at=datetime.now(timezone.utc),
            )
            self.session.add(comment)
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            return _store_failure("Comment creation", exc)

        logger.info(
            "Comment posted",
            extra={"comment_id": str(comment.id), "node_id": str(node_id), "reply": draft.parent_id is not None},
        )
        return ServiceResult.success(CommentView.model_validate(comment))

    async def update(
        self,
        node_id: uuid.UUID,
        comment_id: uuid.UUID,
        author_id: uuid.UUID,
        edit: CommentEdit,
    ) -> ServiceResult[CommentView]:
        content = edit.content.strip()
        if not content:
            return _blank()

        try:
            comment = await self.session.get(Comment, comment_id)
            if comment is None or comment.node_id != node_id:
                return ServiceResult.failure(ErrorKind.NOT_FOUND, "Comment not found")
            if comment.author_id != author_id:
                return ServiceResult.failure(ErrorKind.FORBIDDEN, "Only the author can edit this comment")

            comment.content = content
            if edit.type is not None:
                comment.type = edit.type.value
            comment.edited_at = datetime.now(timezone.utc)
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            return _store_failure("Comment update", exc)

        return ServiceResult.success(CommentView.model_validate(comment))

    async def delete(
        self,
        node_id: uuid.UUID,
        comment_id: uuid.UUID,
        author_id: uuid.UUID,
    ) -> ServiceResult[bool]:
        """Remove a comment and its replies."""
        try:
            comment = await self.session.get(Comment, comment_id)
            if comment is None or comment.node_id != node_id:
                return ServiceResult.failure(ErrorKind.NOT_FOUND, "Comment not found")
            if comment.author_id != author_id:
                return ServiceResult.failure(ErrorKind.FORBIDDEN, "Only the author can delete this comment")

            await self.session.delete(comment)
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            return _store_failure("Comment deletion", exc)

        logger.info("Comment deleted", extra={"comment_id": str(comment_id), "node_id": str(node_id)})
        return ServiceResult.success(True)
