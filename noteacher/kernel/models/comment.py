"""
Node discussion model - learner comments threaded by parent.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from noteacher.kernel.models.base import Base, TimestampMixin, generate_uuid


class CommentType(str, Enum):
    """What a comment is for; the discussion panel badges them."""
    QUESTION = "question"
    SOLUTION = "solution"
    GENERAL = "general"


class Comment(Base, TimestampMixin):
    """
    A comment on a node, optionally a reply to another comment on the same node.

    author_id comes from the identity provider and carries no foreign key.
    """

    __tablename__ = "comments"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    node_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("nodes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    author_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    type: Mapped[CommentType] = mapped_column(
        String(20),
        nullable=False,
        default=CommentType.GENERAL.value,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    edited_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Deleting a comment takes its replies with it
    replies: Mapped[List["Comment"]] = relationship(
        "Comment",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Comment {self.id} node={self.node_id}>"
