"""
Course hierarchy - Level -> Mission -> Node trees built from flat rows.

Rows arrive ordered by position_index; the builder keeps that order and
never sorts, so the unlock engine sees exactly what the store returned.
"""

import uuid
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict

from noteacher.kernel.models.course import NodeType


class NodeRef(BaseModel):
    """What the unlock engine needs to know about a node (no content)."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    course_id: uuid.UUID
    mission_id: Optional[uuid.UUID] = None
    title: str
    type: NodeType = NodeType.LESSON
    position_index: int
    is_mandatory: bool = True


class MissionTree(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    level_id: uuid.UUID
    title: str
    description: Optional[str] = None
    position_index: int = 0
    nodes: List[NodeRef] = []


class LevelTree(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    course_id: uuid.UUID
    title: str
    description: Optional[str] = None
    position_index: int = 0
    missions: List[MissionTree] = []

    @property
    def nodes(self) -> List[NodeRef]:
        """All nodes under this level, mission order then node order."""
        return [node for mission in self.missions for node in mission.nodes]


class CourseHierarchy(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    levels: List[LevelTree] = []

    @property
    def nodes(self) -> List[NodeRef]:
        return flatten_nodes(self.levels)


def flatten_nodes(levels: Iterable[LevelTree]) -> List[NodeRef]:
    """Walk the tree in display order."""
    return [node for level in levels for node in level.nodes]


def build_hierarchy(
    course,
    levels: Iterable,
    missions: Iterable,
    nodes: Iterable,
) -> CourseHierarchy:
    """
    Assemble a course tree from ORM rows (or any objects with the same attributes).

    Missions whose level is not listed and nodes whose mission is not listed
    are dropped; nodes without a mission belong to the flat course only.
    """
    nodes_by_mission: Dict[uuid.UUID, List[NodeRef]] = {}
    for row in nodes:
        ref = NodeRef.model_validate(row)
        if ref.mission_id is not None:
            nodes_by_mission.setdefault(ref.mission_id, []).append(ref)

    missions_by_level: Dict[uuid.UUID, List[MissionTree]] = {}
    for row in missions:
        mission = MissionTree(
            id=row.id,
            level_id=row.level_id,
            title=row.title,
            description=row.description,
            position_index=row.position_index,
            nodes=nodes_by_mission.get(row.id, []),
        )
        missions_by_level.setdefault(mission.level_id, []).append(mission)

    level_trees = [
        LevelTree(
            id=row.id,
            course_id=row.course_id,
            title=row.title,
            description=row.description,
            position_index=row.position_index,
            missions=missions_by_level.get(row.id, []),
        )
        for row in levels
    ]

    return CourseHierarchy(
        id=course.id,
        title=course.title,
        description=course.description,
        thumbnail_url=course.thumbnail_url,
        levels=level_trees,
    )
