"""
Pydantic schemas for progress API.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class CompleteNodeResponse(BaseModel):
    """Where to navigate after completing a node."""

    node_id: uuid.UUID
    next_node_id: Optional[uuid.UUID] = None
    successor_unlocked: bool = False
    # Completion was stored but the next node could not be unlocked
    warning: Optional[str] = None


class MapNode(BaseModel):
    id: uuid.UUID
    title: str
    type: str
    position_index: int
    status: str


class CourseMapResponse(BaseModel):
    """Flat course map with header numbers."""

    course_id: uuid.UUID
    title: str
    description: Optional[str] = None
    nodes: List[MapNode]
    completed_count: int
    total_count: int
    progress_percent: int
    resume_node_id: Optional[uuid.UUID] = None
    estimated_minutes: int


class MissionMapItem(BaseModel):
    id: uuid.UUID
    title: str
    status: str
    completed_count: int
    total_count: int
    nodes: List[MapNode] = []


class LevelMapItem(BaseModel):
    id: uuid.UUID
    title: str
    status: str
    completed_count: int
    total_count: int
    missions: List[MissionMapItem] = []


class LevelMapResponse(BaseModel):
    course_id: uuid.UUID
    title: str
    levels: List[LevelMapItem]
    progress_percent: int


class ProgressRecordResponse(BaseModel):
    node_id: uuid.UUID
    status: str
    updated_at: Optional[datetime] = None


class LearnerProgressResponse(BaseModel):
    records: List[ProgressRecordResponse]
    completed_count: int
    xp: int
    streak: int


class DashboardCourse(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    node_count: int
    progress_percent: int


class DashboardResponse(BaseModel):
    courses: List[DashboardCourse]
    xp: int
    streak: int
