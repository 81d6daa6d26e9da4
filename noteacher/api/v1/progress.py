"""
Progress endpoints - course maps, node completion, ledger and dashboard.
"""

import uuid

from fastapi import APIRouter

from noteacher.api.deps import Courses, CurrentUser, OptionalUser, Progress, unwrap
from noteacher.engines.progress.status import NodeStatus
from noteacher.schemas.progress import (
    CompleteNodeResponse,
    CourseMapResponse,
    DashboardCourse,
    DashboardResponse,
    LearnerProgressResponse,
    LevelMapItem,
    LevelMapResponse,
    MapNode,
    MissionMapItem,
    ProgressRecordResponse,
)

router = APIRouter()


def _enum_val(e) -> str:
    """Safely get enum value (SQLite may return str)."""
    return e.value if hasattr(e, "value") else str(e)


def _map_node(node, status: NodeStatus) -> MapNode:
    return MapNode(
        id=node.id,
        title=node.title,
        type=_enum_val(node.type),
        position_index=node.position_index,
        status=status.value,
    )


@router.get("/courses/{course_id}/map", response_model=CourseMapResponse)
async def get_course_map(course_id: uuid.UUID, user: CurrentUser, courses: Courses, progress: Progress):
    """Flat course map: status of every node plus header numbers."""
    course = unwrap(await courses.get_course_with_nodes(course_id))
    course_map = unwrap(await progress.get_course_map(user.id, course_id))
    summary = course_map.summary
    return CourseMapResponse(
        course_id=course.id,
        title=course.title,
        description=course.description,
        nodes=[_map_node(n, summary.statuses[n.id]) for n in course_map.nodes],
        completed_count=summary.completed_count,
        total_count=summary.total_count,
        progress_percent=summary.progress_percent,
        resume_node_id=summary.resume_node_id,
        estimated_minutes=summary.estimated_minutes,
    )


@router.get("/courses/{course_id}/map/levels", response_model=LevelMapResponse)
async def get_level_map(course_id: uuid.UUID, user: CurrentUser, courses: Courses, progress: Progress):
    """Level/mission/node roll-up of a course."""
    tree = unwrap(await courses.get_hierarchy(course_id))
    rollup = unwrap(await progress.get_hierarchy_status(user.id, course_id, tree.levels))

    levels = []
    for level, level_status in zip(tree.levels, rollup.levels):
        missions = [
            MissionMapItem(
                id=mission.id,
                title=mission.title,
                status=mission_status.status.value,
                completed_count=mission_status.completed_count,
                total_count=mission_status.total_count,
                nodes=[_map_node(n, rollup.nodes[n.id]) for n in mission.nodes],
            )
            for mission, mission_status in zip(level.missions, level_status.missions)
        ]
        levels.append(
            LevelMapItem(
                id=level.id,
                title=level.title,
                status=level_status.status.value,
                completed_count=level_status.completed_count,
                total_count=level_status.total_count,
                missions=missions,
            )
        )

    return LevelMapResponse(
        course_id=tree.id,
        title=tree.title,
        levels=levels,
        progress_percent=rollup.progress_percent,
    )


@router.post("/nodes/{node_id}/complete", response_model=CompleteNodeResponse)
async def complete_node(node_id: uuid.UUID, user: OptionalUser, progress: Progress):
    """
    Mark a node completed and unlock the next one.

    A failed unlock still returns 200 with a warning: the completion is
    stored and the map derives the next node from it.
    """
    outcome = unwrap(await progress.complete_node(user.id if user else None, node_id))
    return CompleteNodeResponse(
        node_id=outcome.node_id,
        next_node_id=outcome.next_node_id,
        successor_unlocked=outcome.successor_unlocked,
        warning=outcome.unlock_error,
    )


@router.get("/progress", response_model=LearnerProgressResponse)
async def get_progress(user: CurrentUser, progress: Progress):
    """The acting user's ledger with XP and streak."""
    learner = unwrap(await progress.get_learner_progress(user.id))
    return LearnerProgressResponse(
        records=[
            ProgressRecordResponse(
                node_id=r.node_id,
                status=_enum_val(r.status),
                updated_at=r.updated_at,
            )
            for r in learner.records
        ],
        completed_count=learner.completed_count,
        xp=learner.xp,
        streak=learner.streak,
    )


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(user: CurrentUser, courses: Courses, progress: Progress):
    """Every course with the user's completion percent."""
    summaries = unwrap(await courses.list_courses())
    percentages = unwrap(await progress.get_course_percentages(user.id, [c.id for c in summaries]))
    learner = unwrap(await progress.get_learner_progress(user.id))
    return DashboardResponse(
        courses=[
            DashboardCourse(
                id=c.id,
                title=c.title,
                description=c.description,
                thumbnail_url=c.thumbnail_url,
                node_count=c.node_count,
                progress_percent=percentages.get(c.id, 0),
            )
            for c in summaries
        ],
        xp=learner.xp,
        streak=learner.streak,
    )
