"""
Progress Engine - per-user ledger and the unlock rules built on it.

Statuses:
- locked:    not reachable yet
- current:   reachable, not completed
- completed: completion recorded (never downgraded)

Completing a node unlocks only its direct successor (position_index + 1).
Levels and missions roll up from their nodes.
"""

from noteacher.engines.progress.ledger import (
    ProgressRecord,
    calculate_streak,
    calculate_xp,
    completed_node_ids,
    index_progress,
)
from noteacher.engines.progress.service import (
    CompletionOutcome,
    CourseMap,
    LearnerProgress,
    ProgressService,
)
from noteacher.engines.progress.status import (
    CourseMapSummary,
    HierarchyStatus,
    LevelStatus,
    MissionStatus,
    NodeStatus,
    compute_course_progress_percent,
    compute_hierarchy_status,
    compute_level_status,
    compute_mission_status,
    compute_node_status,
    summarize_course,
)
from noteacher.engines.progress.store import ProgressStore, SqlAlchemyProgressStore

__all__ = [
    "ProgressRecord",
    "calculate_streak",
    "calculate_xp",
    "completed_node_ids",
    "index_progress",
    "CompletionOutcome",
    "CourseMap",
    "LearnerProgress",
    "ProgressService",
    "CourseMapSummary",
    "HierarchyStatus",
    "LevelStatus",
    "MissionStatus",
    "NodeStatus",
    "compute_course_progress_percent",
    "compute_hierarchy_status",
    "compute_level_status",
    "compute_mission_status",
    "compute_node_status",
    "summarize_course",
    "ProgressStore",
    "SqlAlchemyProgressStore",
]
