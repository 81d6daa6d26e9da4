"""
Progress Service - the completion state transition and ledger-backed views.

Each call re-reads what it needs from the injected store; nothing is cached
between requests.
"""

import uuid
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel

from noteacher.engines.courses.hierarchy import LevelTree, NodeRef
from noteacher.engines.progress.ledger import (
    ProgressRecord,
    calculate_streak,
    calculate_xp,
    completed_node_ids,
)
from noteacher.engines.progress.status import (
    CourseMapSummary,
    HierarchyStatus,
    compute_course_progress_percent,
    compute_hierarchy_status,
    summarize_course,
)
from noteacher.engines.progress.store import ProgressStore
from noteacher.engines.results import ErrorKind, ServiceResult, StoreError
from noteacher.logging_config import get_logger

logger = get_logger(__name__)


class CompletionOutcome(BaseModel):
    """Result of completing a node."""

    node_id: uuid.UUID
    next_node_id: Optional[uuid.UUID] = None
    # False when the successor already had a record (or there is none)
    successor_unlocked: bool = False
    # Set when the completion was stored but the successor unlock failed
    unlock_error: Optional[str] = None


class CourseMap(BaseModel):
    course_id: uuid.UUID
    nodes: List[NodeRef]
    summary: CourseMapSummary


class LearnerProgress(BaseModel):
    """A learner's whole ledger with the gamification counters."""

    user_id: uuid.UUID
    records: List[ProgressRecord]
    completed_count: int
    xp: int
    streak: int


class ProgressService:
    """
    Progress operations for one request.

    Completion:
    1. upsert (user, node) = completed; on failure stop, nothing else is written
    2. find the node at position_index + 1 in the same course
    3. insert (user, successor) = unlocked only if no record exists
    4. report the successor id; an unlock failure is reported, not fatal
    """

    def __init__(self, store: ProgressStore, xp_per_node: int = 150, minutes_per_node: int = 5):
        self.store = store
        self.xp_per_node = xp_per_node
        self.minutes_per_node = minutes_per_node

    async def complete_node(
        self,
        user_id: Optional[uuid.UUID],
        node_id: uuid.UUID,
    ) -> ServiceResult[CompletionOutcome]:
        """Mark a node completed for the acting user and unlock its successor."""
        if user_id is None:
            return ServiceResult.failure(ErrorKind.UNAUTHORIZED, "Unauthorized")

        try:
            node = await self.store.get_node(node_id)
        except StoreError as exc:
            logger.error("Node lookup failed", extra={"node_id": str(node_id), "error": str(exc)})
            return ServiceResult.failure(ErrorKind.STORE_UNAVAILABLE, "Progress store unavailable")
        if node is None:
            return ServiceResult.failure(ErrorKind.NOT_FOUND, f"Node {node_id} not found")

        try:
            await self.store.mark_completed(user_id, node.id)
        except StoreError as exc:
            logger.error(
                "Completion write failed",
                extra={"node_id": str(node.id), "user_id": str(user_id), "error": str(exc)},
            )
            return ServiceResult.failure(ErrorKind.STORE_UNAVAILABLE, "Could not record completion")

        outcome = CompletionOutcome(node_id=node.id)
        try:
            successor = await self.store.get_node_at(node.course_id, node.position_index + 1)
            if successor is not None:
                outcome.next_node_id = successor.id
                outcome.successor_unlocked = await self.store.unlock_if_absent(user_id, successor.id)
        except StoreError as exc:
            # Completion is already committed; the map re-derives the successor on next load
            logger.warning(
                "Successor unlock failed",
                extra={"node_id": str(node.id), "user_id": str(user_id), "error": str(exc)},
            )
            outcome.unlock_error = str(exc) or "Successor unlock failed"

        logger.info(
            "Node completed",
            extra={
                "node_id": str(node.id),
                "user_id": str(user_id),
                "next_node_id": str(outcome.next_node_id) if outcome.next_node_id else None,
                "successor_unlocked": outcome.successor_unlocked,
            },
        )
        return ServiceResult.success(outcome)

    async def get_course_map(self, user_id: uuid.UUID, course_id: uuid.UUID) -> ServiceResult[CourseMap]:
        """Per-node statuses and header numbers of the flat course map."""
        try:
            nodes = await self.store.list_course_nodes(course_id)
            progress = await self.store.list_course_progress(user_id, course_id)
        except StoreError as exc:
            logger.error("Course map read failed", extra={"course_id": str(course_id), "error": str(exc)})
            return ServiceResult.failure(ErrorKind.STORE_UNAVAILABLE, "Progress store unavailable")

        return ServiceResult.success(
            CourseMap(
                course_id=course_id,
                nodes=nodes,
                summary=summarize_course(nodes, progress, self.minutes_per_node),
            )
        )

    async def get_hierarchy_status(
        self,
        user_id: uuid.UUID,
        course_id: uuid.UUID,
        levels: Sequence[LevelTree],
    ) -> ServiceResult[HierarchyStatus]:
        """Level/mission/node roll-up for a course tree supplied by the loader."""
        try:
            nodes = await self.store.list_course_nodes(course_id)
            progress = await self.store.list_course_progress(user_id, course_id)
        except StoreError as exc:
            logger.error("Hierarchy status read failed", extra={"course_id": str(course_id), "error": str(exc)})
            return ServiceResult.failure(ErrorKind.STORE_UNAVAILABLE, "Progress store unavailable")
        return ServiceResult.success(compute_hierarchy_status(levels, progress, course_nodes=nodes))

    async def get_learner_progress(self, user_id: uuid.UUID) -> ServiceResult[LearnerProgress]:
        try:
            records = await self.store.list_user_progress(user_id)
        except StoreError as exc:
            logger.error("Ledger read failed", extra={"user_id": str(user_id), "error": str(exc)})
            return ServiceResult.failure(ErrorKind.STORE_UNAVAILABLE, "Progress store unavailable")

        return ServiceResult.success(
            LearnerProgress(
                user_id=user_id,
                records=records,
                completed_count=len(completed_node_ids(records)),
                xp=calculate_xp(records, self.xp_per_node),
                streak=calculate_streak(records),
            )
        )

    async def get_course_percentages(
        self,
        user_id: uuid.UUID,
        course_ids: Sequence[uuid.UUID],
    ) -> ServiceResult[Dict[uuid.UUID, int]]:
        """Completion percent of each listed course (dashboard)."""
        try:
            records = await self.store.list_user_progress(user_id)
            percentages = {}
            for course_id in course_ids:
                nodes = await self.store.list_course_nodes(course_id)
                percentages[course_id] = compute_course_progress_percent(nodes, records)
        except StoreError as exc:
            logger.error("Dashboard read failed", extra={"user_id": str(user_id), "error": str(exc)})
            return ServiceResult.failure(ErrorKind.STORE_UNAVAILABLE, "Progress store unavailable")
        return ServiceResult.success(percentages)
