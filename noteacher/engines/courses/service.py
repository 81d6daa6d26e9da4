"""
Course Service - reads course structure and applies admin authoring.

Reads return pre-ordered rows (position_index ascending) so the unlock
engine never has to sort. Authoring validates every node payload against
the content schema before anything is written.
"""

import uuid
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from noteacher.engines.courses.content import CourseContent, InvalidContentError, dump_content, parse_content
from noteacher.engines.courses.hierarchy import CourseHierarchy, NodeRef, build_hierarchy
from noteacher.engines.results import ErrorKind, ServiceResult
from noteacher.kernel.models.course import Course, Level, Mission, Node, NodeType
from noteacher.logging_config import get_logger

logger = get_logger(__name__)


class NodeDraft(BaseModel):
    """One node of an authoring payload; `id` set means update in place."""

    id: Optional[uuid.UUID] = None
    title: str
    type: NodeType = NodeType.LESSON
    content: Optional[Dict[str, Any]] = None


class CourseDraft(BaseModel):
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    nodes: List[NodeDraft] = []


class CourseSummary(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    node_count: int = 0


class CourseWithNodes(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    nodes: List[NodeRef] = []


class NodeDetail(NodeRef):
    content: CourseContent


def _store_failure(action: str, exc: Exception) -> ServiceResult:
    logger.error("%s failed", action, extra={"error": str(exc)})
    return ServiceResult.failure(ErrorKind.STORE_UNAVAILABLE, f"{action} failed")


def _validate_drafts(drafts: Sequence[NodeDraft]) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Return (normalized contents, errors) with error locations prefixed by node index."""
    contents: List[Dict[str, Any]] = []
    errors: List[Dict[str, Any]] = []
    for i, draft in enumerate(drafts):
        try:
            contents.append(dump_content(parse_content(draft.content)))
        except InvalidContentError as exc:
            errors.extend({**err, "loc": ["nodes", i, "content", *err["loc"]]} for err in exc.errors)
    return contents, errors


def _duplicate_ids(drafts: Sequence[NodeDraft]) -> List[Dict[str, Any]]:
    """Errors for drafts repeating a node id already listed earlier in the payload."""
    seen = set()
    errors: List[Dict[str, Any]] = []
    for i, draft in enumerate(drafts):
        if draft.id is None:
            continue
        if draft.id in seen:
            errors.append({
                "loc": ["nodes", i, "id"],
                "msg": f"Node {draft.id} is listed more than once",
                "type": "duplicate_node_id",
            })
        seen.add(draft.id)
    return errors


class CourseService:
    """Course reads and admin authoring over an async session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_courses(self) -> ServiceResult[List[CourseSummary]]:
        """All courses, oldest first, with their node counts."""
        q = (
            select(Course, func.count(Node.id))
            .outerjoin(Node, Node.course_id == Course.id)
            .group_by(Course.id)
            .order_by(Course.created_at, Course.title)
        )
        try:
            rows = (await self.session.execute(q)).all()
        except SQLAlchemyError as exc:
            return _store_failure("Course listing", exc)
        return ServiceResult.success([
            CourseSummary(
                id=course.id,
                title=course.title,
                description=course.description,
                thumbnail_url=course.thumbnail_url,
                node_count=count,
            )
            for course, count in rows
        ])

    async def get_course_with_nodes(self, course_id: uuid.UUID) -> ServiceResult[CourseWithNodes]:
        try:
            course = await self.session.get(Course, course_id)
            if course is None:
                return ServiceResult.failure(ErrorKind.NOT_FOUND, "Course not found")
            nodes = await self._course_nodes(course_id)
        except SQLAlchemyError as exc:
            return _store_failure("Course read", exc)
        return ServiceResult.success(
            CourseWithNodes(
                id=course.id,
                title=course.title,
                description=course.description,
                thumbnail_url=course.thumbnail_url,
                nodes=[NodeRef.model_validate(n) for n in nodes],
            )
        )

    async def get_hierarchy(self, course_id: uuid.UUID) -> ServiceResult[CourseHierarchy]:
        """Levels -> missions -> nodes, each level ordered by position."""
        try:
            course = await self.session.get(Course, course_id)
            if course is None:
                return ServiceResult.failure(ErrorKind.NOT_FOUND, "Course not found")

            levels = list((await self.session.execute(
                select(Level)
                .where(Level.course_id == course_id)
                .order_by(Level.position_index)
            )).scalars().all())

            missions: List[Mission] = []
            level_ids = [level.id for level in levels]
            if level_ids:
                missions = list((await self.session.execute(
                    select(Mission)
                    .where(Mission.level_id.in_(level_ids))
                    .order_by(Mission.position_index)
                )).scalars().all())

            nodes: List[Node] = []
            mission_ids = [mission.id for mission in missions]
            if mission_ids:
                nodes = list((await self.session.execute(
                    select(Node)
                    .where(Node.mission_id.in_(mission_ids))
                    .order_by(Node.position_index)
                )).scalars().all())
        except SQLAlchemyError as exc:
            return _store_failure("Hierarchy read", exc)

        return ServiceResult.success(build_hierarchy(course, levels, missions, nodes))

    async def get_node(self, node_id: uuid.UUID) -> ServiceResult[NodeDetail]:
        """A node with its content validated."""
        try:
            node = await self.session.get(Node, node_id)
        except SQLAlchemyError as exc:
            return _store_failure("Node read", exc)
        if node is None:
            return ServiceResult.failure(ErrorKind.NOT_FOUND, "Node not found")
        return self._node_detail(node)

    async def get_first_node(self, course_id: uuid.UUID) -> ServiceResult[NodeDetail]:
        q = (
            select(Node)
            .where(Node.course_id == course_id)
            .order_by(Node.position_index)
            .limit(1)
        )
        try:
            node = (await self.session.execute(q)).scalar_one_or_none()
        except SQLAlchemyError as exc:
            return _store_failure("First node read", exc)
        if node is None:
            return ServiceResult.failure(ErrorKind.NOT_FOUND, "Course has no nodes")
        return self._node_detail(node)

    async def create_course(self, draft: CourseDraft) -> ServiceResult[uuid.UUID]:
        """Create a course and its nodes; node positions follow list order."""
        contents, errors = _validate_drafts(draft.nodes)
        if errors:
            return ServiceResult.failure(ErrorKind.INVALID_CONTENT, "Invalid node content", errors)

        course = Course(
            title=draft.title,
            description=draft.description,
            thumbnail_url=draft.thumbnail_url,
        )
        course.nodes = [
            Node(
                title=node.title,
                type=node.type.value,
                content=content,
                position_index=index,
                is_mandatory=True,
            )
            for index, (node, content) in enumerate(zip(draft.nodes, contents))
        ]
        try:
            self.session.add(course)
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            return _store_failure("Course creation", exc)

        logger.info("Course created", extra={"course_id": str(course.id), "node_count": len(draft.nodes)})
        return ServiceResult.success(course.id)

    async def update_course(self, course_id: uuid.UUID, draft: CourseDraft) -> ServiceResult[uuid.UUID]:
        """
        Rewrite a course from an authoring payload.

        Drafts with an id update that node, drafts without one are inserted.
        Positions follow list order; nodes of the course that the payload
        omits keep their relative order after the listed ones.
        """
        contents, errors = _validate_drafts(draft.nodes)
        if errors:
            return ServiceResult.failure(ErrorKind.INVALID_CONTENT, "Invalid node content", errors)
        duplicates = _duplicate_ids(draft.nodes)
        if duplicates:
            return ServiceResult.failure(ErrorKind.INVALID_CONTENT, "Duplicate node ids", duplicates)

        try:
            course = await self.session.get(Course, course_id)
            if course is None:
                return ServiceResult.failure(ErrorKind.NOT_FOUND, "Course not found")

            existing = {n.id: n for n in await self._course_nodes(course_id)}
            unknown = [str(d.id) for d in draft.nodes if d.id is not None and d.id not in existing]
            if unknown:
                return ServiceResult.failure(
                    ErrorKind.NOT_FOUND,
                    f"Nodes not in course: {', '.join(unknown)}",
                )

            course.title = draft.title
            course.description = draft.description
            course.thumbnail_url = draft.thumbnail_url

            # Park every existing node on a negative position first so the
            # (course_id, position_index) constraint holds while reordering
            for i, node in enumerate(existing.values()):
                node.position_index = -(i + 1)
            await self.session.flush()

            listed = set()
            for index, (node_draft, content) in enumerate(zip(draft.nodes, contents)):
                if node_draft.id is not None:
                    node = existing[node_draft.id]
                    listed.add(node.id)
                else:
                    node = Node(course_id=course_id, is_mandatory=True)
                    self.session.add(node)
                node.title = node_draft.title
                node.type = node_draft.type.value
                node.content = content
                node.position_index = index

            next_index = len(draft.nodes)
            for node in existing.values():
                if node.id not in listed:
                    node.position_index = next_index
                    next_index += 1

            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            return _store_failure("Course update", exc)

        logger.info("Course updated", extra={"course_id": str(course_id), "node_count": len(draft.nodes)})
        return ServiceResult.success(course_id)

    async def _course_nodes(self, course_id: uuid.UUID) -> List[Node]:
        q = select(Node).where(Node.course_id == course_id).order_by(Node.position_index)
        return list((await self.session.execute(q)).scalars().all())

    def _node_detail(self, node: Node) -> ServiceResult[NodeDetail]:
        try:
            content = parse_content(node.content)
        except InvalidContentError as exc:
            logger.error("Stored node content is invalid", extra={"node_id": str(node.id)})
            return ServiceResult.failure(ErrorKind.INVALID_CONTENT, str(exc), exc.errors)
        ref = NodeRef.model_validate(node)
        return ServiceResult.success(NodeDetail(**ref.model_dump(), content=content))
