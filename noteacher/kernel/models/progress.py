"""
Progress ledger model - one row per (user, node) once the node is reachable.
"""

import uuid
from enum import Enum

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from noteacher.kernel.models.base import Base, TimestampMixin


class ProgressStatus(str, Enum):
    """Stored ledger status. LOCKED is implicit (no row) and never written."""
    LOCKED = "locked"
    UNLOCKED = "unlocked"
    COMPLETED = "completed"


class UserProgress(Base, TimestampMixin):
    """
    Per-user, per-node progress record.

    user_id comes from the external identity provider, so it carries no
    foreign key. The composite primary key enforces one row per pair.
    """

    __tablename__ = "user_progress"

    user_id: Mapped[uuid.UUID] = mapped_column(primary_key=True)
    node_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("nodes.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    status: Mapped[ProgressStatus] = mapped_column(
        String(20),
        nullable=False,
        default=ProgressStatus.UNLOCKED.value,
    )

    def __repr__(self) -> str:
        return f"<UserProgress {self.user_id}:{self.node_id}={self.status}>"
