"""
Course endpoints - catalogue reads, node content, admin authoring.
"""

import uuid
from typing import List

from fastapi import APIRouter, status

from noteacher.api.deps import AdminUser, Courses, unwrap
from noteacher.engines.courses.hierarchy import NodeRef
from noteacher.engines.courses.service import NodeDetail
from noteacher.logging_config import get_logger
from noteacher.schemas.course import (
    CourseCreate,
    CourseCreatedResponse,
    CourseHierarchyResponse,
    CourseListItem,
    CourseResponse,
    CourseUpdate,
    LevelResponse,
    MissionResponse,
    NodeResponse,
    NodeSummaryResponse,
)

router = APIRouter()
logger = get_logger(__name__)


def _enum_val(e) -> str:
    """Enum value, or the string itself when the row already holds one."""
    return e.value if hasattr(e, "value") else str(e)


def _node_summary(node: NodeRef) -> NodeSummaryResponse:
    return NodeSummaryResponse(
        id=node.id,
        title=node.title,
        type=_enum_val(node.type),
        position_index=node.position_index,
        is_mandatory=node.is_mandatory,
    )


def _node_response(node: NodeDetail) -> NodeResponse:
    return NodeResponse(
        **_node_summary(node).model_dump(),
        course_id=node.course_id,
        mission_id=node.mission_id,
        content=node.content,
    )


@router.get("/courses", response_model=List[CourseListItem])
async def list_courses(courses: Courses):
    """All courses with their node counts."""
    summaries = unwrap(await courses.list_courses())
    return [CourseListItem(**s.model_dump()) for s in summaries]


@router.post("/courses", response_model=CourseCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_course(body: CourseCreate, admin: AdminUser, courses: Courses):
    """Create a course and its nodes from a JSON payload."""
    course_id = unwrap(await courses.create_course(body))
    logger.info("Course created via API", extra={"course_id": str(course_id), "admin_id": str(admin.id)})
    return CourseCreatedResponse(id=course_id)


@router.put("/courses/{course_id}", response_model=CourseCreatedResponse)
async def update_course(course_id: uuid.UUID, body: CourseUpdate, admin: AdminUser, courses: Courses):
    """Rewrite a course's details and node list."""
    unwrap(await courses.update_course(course_id, body))
    logger.info("Course updated via API", extra={"course_id": str(course_id), "admin_id": str(admin.id)})
    return CourseCreatedResponse(id=course_id)


@router.get("/courses/{course_id}", response_model=CourseResponse)
async def get_course(course_id: uuid.UUID, courses: Courses):
    course = unwrap(await courses.get_course_with_nodes(course_id))
    return CourseResponse(
        id=course.id,
        title=course.title,
        description=course.description,
        thumbnail_url=course.thumbnail_url,
        nodes=[_node_summary(n) for n in course.nodes],
    )


@router.get("/courses/{course_id}/hierarchy", response_model=CourseHierarchyResponse)
async def get_course_hierarchy(course_id: uuid.UUID, courses: Courses):
    """Level -> Mission -> Node tree of a course."""
    tree = unwrap(await courses.get_hierarchy(course_id))
    return CourseHierarchyResponse(
        id=tree.id,
        title=tree.title,
        description=tree.description,
        thumbnail_url=tree.thumbnail_url,
        levels=[
            LevelResponse(
                id=level.id,
                title=level.title,
                description=level.description,
                position_index=level.position_index,
                missions=[
                    MissionResponse(
                        id=mission.id,
                        title=mission.title,
                        description=mission.description,
                        position_index=mission.position_index,
                        nodes=[_node_summary(n) for n in mission.nodes],
                    )
                    for mission in level.missions
                ],
            )
            for level in tree.levels
        ],
    )


@router.get("/courses/{course_id}/first-node", response_model=NodeResponse)
async def get_first_node(course_id: uuid.UUID, courses: Courses):
    """Entry point of a course: its lowest-positioned node."""
    return _node_response(unwrap(await courses.get_first_node(course_id)))


@router.get("/nodes/{node_id}", response_model=NodeResponse)
async def get_node(node_id: uuid.UUID, courses: Courses):
    return _node_response(unwrap(await courses.get_node(node_id)))
