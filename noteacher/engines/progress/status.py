"""
Unlock engine - derives what a learner may open from the course structure
and their ledger.

Every function here is pure: same nodes + same records, same answer. None
of them sort; callers pass nodes, missions and levels already ordered by
position_index.

Node rule (flat course map), for the node at index i:
1. completed record             -> COMPLETED
2. unlocked record              -> CURRENT
3. i == 0 and no records at all -> CURRENT  (brand-new learner)
4. node i-1 has completed record -> CURRENT
5. otherwise                     -> LOCKED

Container rule (levels, missions): a container is COMPLETED only when it
has nodes and all of them are completed. An empty container is never
COMPLETED, so it cannot open the content after it by itself.
"""

import uuid
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel

from noteacher.engines.courses.hierarchy import LevelTree, MissionTree, NodeRef, flatten_nodes
from noteacher.engines.progress.ledger import ProgressRecord, index_progress
from noteacher.kernel.models.progress import ProgressStatus


class NodeStatus(str, Enum):
    """Display status on the course map."""
    LOCKED = "locked"
    CURRENT = "current"
    COMPLETED = "completed"


class MissionStatus(BaseModel):
    mission_id: uuid.UUID
    status: NodeStatus
    completed_count: int
    total_count: int


class LevelStatus(BaseModel):
    level_id: uuid.UUID
    status: NodeStatus
    completed_count: int
    total_count: int
    missions: List[MissionStatus] = []


class HierarchyStatus(BaseModel):
    """Roll-up of a whole course: levels, missions and nodes."""

    levels: List[LevelStatus]
    nodes: Dict[uuid.UUID, NodeStatus]
    progress_percent: int


class CourseMapSummary(BaseModel):
    """Everything the flat course map shows above the path."""

    statuses: Dict[uuid.UUID, NodeStatus]
    completed_count: int
    total_count: int
    progress_percent: int
    resume_node_id: Optional[uuid.UUID] = None
    estimated_minutes: int


def compute_node_status(
    nodes: Sequence[NodeRef],
    progress: Iterable[ProgressRecord],
) -> Dict[uuid.UUID, NodeStatus]:
    """Status of every node of an ordered node list."""
    records = list(progress)
    stored = index_progress(records)
    result: Dict[uuid.UUID, NodeStatus] = {}

    for i, node in enumerate(nodes):
        own = stored.get(node.id)
        if own == ProgressStatus.COMPLETED:
            result[node.id] = NodeStatus.COMPLETED
        elif own == ProgressStatus.UNLOCKED:
            result[node.id] = NodeStatus.CURRENT
        elif i == 0 and not records:
            # Any activity in the course disables this, not just activity on node 0
            result[node.id] = NodeStatus.CURRENT
        elif i > 0 and stored.get(nodes[i - 1].id) == ProgressStatus.COMPLETED:
            result[node.id] = NodeStatus.CURRENT
        else:
            result[node.id] = NodeStatus.LOCKED

    return result


def _all_completed(nodes: Sequence[NodeRef], stored: Dict[uuid.UUID, ProgressStatus]) -> bool:
    return all(stored.get(n.id) == ProgressStatus.COMPLETED for n in nodes)


def _rollup_status(
    groups: Sequence[Sequence[NodeRef]],
    stored: Dict[uuid.UUID, ProgressStatus],
    index: int,
) -> NodeStatus:
    if not 0 <= index < len(groups):
        raise IndexError(f"container index {index} out of range for {len(groups)} containers")

    group = groups[index]
    if not group:
        if index == 0:
            return NodeStatus.CURRENT
        previous = groups[index - 1]
        if not previous:
            # Two empty containers in a row: stay conservative, do not recurse further back
            return NodeStatus.LOCKED
        return NodeStatus.CURRENT if _all_completed(previous, stored) else NodeStatus.LOCKED

    if _all_completed(group, stored):
        return NodeStatus.COMPLETED
    if index == 0:
        return NodeStatus.CURRENT

    previous = groups[index - 1]
    if not previous or _all_completed(previous, stored):
        return NodeStatus.CURRENT
    return NodeStatus.LOCKED


def compute_level_status(
    levels: Sequence[LevelTree],
    progress: Iterable[ProgressRecord],
    level_index: int,
) -> NodeStatus:
    """Status of levels[level_index] for the level map."""
    stored = index_progress(progress)
    return _rollup_status([level.nodes for level in levels], stored, level_index)


def compute_mission_status(
    missions: Sequence[MissionTree],
    progress: Iterable[ProgressRecord],
    mission_index: int,
) -> NodeStatus:
    """Status of missions[mission_index]; same rule as levels."""
    stored = index_progress(progress)
    return _rollup_status([mission.nodes for mission in missions], stored, mission_index)


def compute_course_progress_percent(
    nodes: Sequence[NodeRef],
    progress: Iterable[ProgressRecord],
) -> int:
    """
    Percentage of the given nodes with a completed record, 0..100.

    Halves round up. Records for nodes outside the list are ignored.
    """
    total = len(nodes)
    if total == 0:
        return 0
    stored = index_progress(progress)
    completed = sum(1 for n in nodes if stored.get(n.id) == ProgressStatus.COMPLETED)
    return (200 * completed + total) // (2 * total)


def compute_hierarchy_status(
    levels: Sequence[LevelTree],
    progress: Iterable[ProgressRecord],
    course_nodes: Optional[Sequence[NodeRef]] = None,
) -> HierarchyStatus:
    """
    Full roll-up for the course explorer.

    Missions are evaluated as one course-wide sequence so the first mission
    of a level follows the last mission of the level before it. Node
    statuses use the flat rule over the flattened tree.

    The percent covers `course_nodes` when given, so nodes outside any
    mission count the same as on the flat map; otherwise the tree's nodes.
    """
    records = list(progress)
    stored = index_progress(records)
    level_groups = [level.nodes for level in levels]
    all_missions = [mission for level in levels for mission in level.missions]
    mission_groups = [mission.nodes for mission in all_missions]

    mission_statuses: Dict[uuid.UUID, MissionStatus] = {}
    for i, mission in enumerate(all_missions):
        mission_statuses[mission.id] = MissionStatus(
            mission_id=mission.id,
            status=_rollup_status(mission_groups, stored, i),
            completed_count=sum(1 for n in mission.nodes if stored.get(n.id) == ProgressStatus.COMPLETED),
            total_count=len(mission.nodes),
        )

    level_statuses = []
    for i, level in enumerate(levels):
        level_nodes = level_groups[i]
        level_statuses.append(
            LevelStatus(
                level_id=level.id,
                status=_rollup_status(level_groups, stored, i),
                completed_count=sum(1 for n in level_nodes if stored.get(n.id) == ProgressStatus.COMPLETED),
                total_count=len(level_nodes),
                missions=[mission_statuses[m.id] for m in level.missions],
            )
        )

    all_nodes = flatten_nodes(levels)
    return HierarchyStatus(
        levels=level_statuses,
        nodes=compute_node_status(all_nodes, records),
        progress_percent=compute_course_progress_percent(
            all_nodes if course_nodes is None else course_nodes, records
        ),
    )


def summarize_course(
    nodes: Sequence[NodeRef],
    progress: Iterable[ProgressRecord],
    minutes_per_node: int,
) -> CourseMapSummary:
    """
    Course map header: counts, percent, where to resume, time left.

    The resume node is the first node without a completed record, or the
    first node once everything is done.
    """
    records = list(progress)
    stored = index_progress(records)
    statuses = compute_node_status(nodes, records)
    completed = sum(1 for status in statuses.values() if status == NodeStatus.COMPLETED)

    resume: Optional[NodeRef] = next(
        (n for n in nodes if stored.get(n.id) != ProgressStatus.COMPLETED),
        nodes[0] if nodes else None,
    )

    return CourseMapSummary(
        statuses=statuses,
        completed_count=completed,
        total_count=len(nodes),
        progress_percent=compute_course_progress_percent(nodes, records),
        resume_node_id=resume.id if resume else None,
        estimated_minutes=(len(nodes) - completed) * minutes_per_node,
    )
