"""
Pydantic schemas for API request/response validation.
"""

from noteacher.schemas.comment import CommentCreate, CommentResponse, CommentUpdate
from noteacher.schemas.common import HealthResponse
from noteacher.schemas.course import (
    CourseCreate,
    CourseCreatedResponse,
    CourseHierarchyResponse,
    CourseListItem,
    CourseResponse,
    CourseUpdate,
    NodeResponse,
)
from noteacher.schemas.progress import (
    CompleteNodeResponse,
    CourseMapResponse,
    DashboardResponse,
    LearnerProgressResponse,
    LevelMapResponse,
)

__all__ = [
    "HealthResponse",
    "CourseCreate",
    "CourseCreatedResponse",
    "CourseHierarchyResponse",
    "CourseListItem",
    "CourseResponse",
    "CourseUpdate",
    "NodeResponse",
    "CompleteNodeResponse",
    "CourseMapResponse",
    "DashboardResponse",
    "LearnerProgressResponse",
    "LevelMapResponse",
    "CommentCreate",
    "CommentResponse",
    "CommentUpdate",
]
