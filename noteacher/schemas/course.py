"""
Pydantic schemas for course API.
"""

import uuid
from typing import List, Optional

from pydantic import BaseModel

from noteacher.engines.courses.service import CourseDraft, NodeDraft
from noteacher.engines.courses.content import CourseContent


class NodeInput(NodeDraft):
    """Node in a create/update payload. Content is validated by the service."""


class CourseCreate(CourseDraft):
    """Body for creating a course from JSON."""

    nodes: List[NodeInput] = []


class CourseUpdate(CourseCreate):
    """Body for rewriting a course; nodes with an id are updated in place."""


class CourseCreatedResponse(BaseModel):
    id: uuid.UUID


class CourseListItem(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    node_count: int


class NodeSummaryResponse(BaseModel):
    id: uuid.UUID
    title: str
    type: str
    position_index: int
    is_mandatory: bool = True


class CourseResponse(BaseModel):
    """A course with its ordered nodes."""

    id: uuid.UUID
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    nodes: List[NodeSummaryResponse] = []


class NodeResponse(NodeSummaryResponse):
    """A node with its validated content document."""

    course_id: uuid.UUID
    mission_id: Optional[uuid.UUID] = None
    content: CourseContent


class MissionResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    position_index: int
    nodes: List[NodeSummaryResponse] = []


class LevelResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    position_index: int
    missions: List[MissionResponse] = []


class CourseHierarchyResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    levels: List[LevelResponse] = []
