"""
Kernel Data Models

SQLAlchemy models for course content, the per-user progress ledger and
node discussions.
"""

from noteacher.kernel.models.base import Base, TimestampMixin, generate_uuid
from noteacher.kernel.models.comment import Comment, CommentType
from noteacher.kernel.models.course import Course, Level, Mission, Node, NodeType
from noteacher.kernel.models.progress import ProgressStatus, UserProgress

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    # Course content
    "Course",
    "Level",
    "Mission",
    "Node",
    "NodeType",
    # Progress
    "ProgressStatus",
    "UserProgress",
    # Discussion
    "Comment",
    "CommentType",
]
