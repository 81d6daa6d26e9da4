"""Unit tests for the unlock engine: node status, level/mission roll-up, percent."""

import uuid
from datetime import datetime, timezone

import pytest

from noteacher.engines.courses.hierarchy import LevelTree, MissionTree, NodeRef
from noteacher.engines.progress.ledger import ProgressRecord
from noteacher.engines.progress.status import (
    NodeStatus,
    compute_course_progress_percent,
    compute_hierarchy_status,
    compute_level_status,
    compute_mission_status,
    compute_node_status,
    summarize_course,
)
from noteacher.kernel.models.progress import ProgressStatus

USER = uuid.uuid4()
COURSE = uuid.uuid4()


def make_nodes(count, start=0, mission_id=None):
    return [
        NodeRef(
            id=uuid.uuid4(),
            course_id=COURSE,
            mission_id=mission_id,
            title=f"Node {i}",
            position_index=i,
        )
        for i in range(start, start + count)
    ]


def record(node, status, day=None):
    return ProgressRecord(
        user_id=USER,
        node_id=node.id,
        status=status,
        updated_at=datetime(2026, 1, day or 1, tzinfo=timezone.utc),
    )


def completed(*nodes):
    return [record(n, ProgressStatus.COMPLETED) for n in nodes]


def make_level(*node_counts):
    """A level with one mission per count."""
    level_id = uuid.uuid4()
    missions = []
    for i, count in enumerate(node_counts):
        mission_id = uuid.uuid4()
        missions.append(
            MissionTree(
                id=mission_id,
                level_id=level_id,
                title=f"Mission {i}",
                position_index=i,
                nodes=make_nodes(count, mission_id=mission_id),
            )
        )
    return LevelTree(id=level_id, course_id=COURSE, title="Level", missions=missions)


def statuses(nodes, progress):
    result = compute_node_status(nodes, progress)
    return [result[n.id] for n in nodes]


class TestNodeStatus:
    """Flat course map rule."""

    def test_new_learner_sees_first_node_current(self):
        """No history: first node current, the rest locked."""
        nodes = make_nodes(3)
        assert statuses(nodes, []) == [NodeStatus.CURRENT, NodeStatus.LOCKED, NodeStatus.LOCKED]

    def test_completed_predecessor_opens_next_node(self):
        """Completing node 0 and unlocking node 1."""
        nodes = make_nodes(3)
        progress = [
            record(nodes[0], ProgressStatus.COMPLETED),
            record(nodes[1], ProgressStatus.UNLOCKED),
        ]
        assert statuses(nodes, progress) == [NodeStatus.COMPLETED, NodeStatus.CURRENT, NodeStatus.LOCKED]

    def test_completed_predecessor_without_successor_record(self):
        """Successor is current even if its unlock record was never written."""
        nodes = make_nodes(3)
        assert statuses(nodes, completed(nodes[0], nodes[1])) == [
            NodeStatus.COMPLETED,
            NodeStatus.COMPLETED,
            NodeStatus.CURRENT,
        ]

    def test_all_completed(self):
        nodes = make_nodes(3)
        assert statuses(nodes, completed(*nodes)) == [NodeStatus.COMPLETED] * 3

    def test_any_activity_disables_first_node_bootstrap(self):
        """A record elsewhere in the course leaves node 0 locked when it has none."""
        nodes = make_nodes(3)
        progress = [record(nodes[2], ProgressStatus.UNLOCKED)]
        assert statuses(nodes, progress) == [NodeStatus.LOCKED, NodeStatus.LOCKED, NodeStatus.CURRENT]

    def test_unlocked_record_is_current_without_predecessor(self):
        """Only the direct predecessor or a stored record can open a node."""
        nodes = make_nodes(4)
        progress = completed(nodes[0]) + [record(nodes[3], ProgressStatus.UNLOCKED)]
        assert statuses(nodes, progress) == [
            NodeStatus.COMPLETED,
            NodeStatus.CURRENT,
            NodeStatus.LOCKED,
            NodeStatus.CURRENT,
        ]

    def test_empty_node_list(self):
        assert compute_node_status([], completed(*make_nodes(1))) == {}

    def test_duplicate_records_prefer_completed(self):
        """Completion is never lost to a conflicting duplicate."""
        nodes = make_nodes(2)
        progress = [
            record(nodes[0], ProgressStatus.COMPLETED),
            record(nodes[0], ProgressStatus.UNLOCKED),
        ]
        assert statuses(nodes, progress) == [NodeStatus.COMPLETED, NodeStatus.CURRENT]

    def test_deterministic(self):
        nodes = make_nodes(5)
        progress = completed(nodes[0], nodes[1])
        assert compute_node_status(nodes, progress) == compute_node_status(nodes, progress)


class TestLevelStatus:
    """Level roll-up, including the empty-level cases."""

    def test_completed_level_opens_next(self):
        """Level 0 fully completed -> completed; level 1 -> current."""
        levels = [make_level(2), make_level(2)]
        progress = completed(*levels[0].nodes)
        assert compute_level_status(levels, progress, 0) == NodeStatus.COMPLETED
        assert compute_level_status(levels, progress, 1) == NodeStatus.CURRENT

    def test_empty_first_level_is_current(self):
        levels = [make_level(), make_level(2)]
        assert compute_level_status(levels, [], 0) == NodeStatus.CURRENT
        assert compute_level_status(levels, completed(*levels[1].nodes), 0) == NodeStatus.CURRENT

    def test_first_level_current_when_incomplete(self):
        levels = [make_level(2), make_level(1)]
        progress = completed(levels[0].nodes[0])
        assert compute_level_status(levels, progress, 0) == NodeStatus.CURRENT
        assert compute_level_status(levels, progress, 1) == NodeStatus.LOCKED

    def test_level_after_empty_level_is_current(self):
        """An empty predecessor does not block."""
        levels = [make_level(1), make_level(), make_level(1)]
        assert compute_level_status(levels, [], 2) == NodeStatus.CURRENT

    def test_empty_level_follows_previous_completion(self):
        levels = [make_level(2), make_level()]
        assert compute_level_status(levels, [], 1) == NodeStatus.LOCKED
        assert compute_level_status(levels, completed(*levels[0].nodes), 1) == NodeStatus.CURRENT

    def test_two_empty_levels_in_a_row_lock(self):
        """The second of two empty levels stays locked."""
        levels = [make_level(1), make_level(), make_level()]
        assert compute_level_status(levels, completed(*levels[0].nodes), 2) == NodeStatus.LOCKED

    def test_empty_level_is_never_completed(self):
        levels = [make_level(1), make_level()]
        progress = completed(*levels[0].nodes)
        assert compute_level_status(levels, progress, 1) != NodeStatus.COMPLETED

    def test_level_spans_all_missions(self):
        """Every node of every mission must be completed."""
        levels = [make_level(1, 2)]
        nodes = levels[0].nodes
        assert compute_level_status(levels, completed(*nodes[:2]), 0) == NodeStatus.CURRENT
        assert compute_level_status(levels, completed(*nodes), 0) == NodeStatus.COMPLETED

    def test_index_out_of_range(self):
        with pytest.raises(IndexError):
            compute_level_status([make_level(1)], [], 1)


class TestMissionStatus:
    def test_missions_follow_level_rule(self):
        level = make_level(2, 1)
        first = level.missions[0]
        assert compute_mission_status(level.missions, [], 1) == NodeStatus.LOCKED
        progress = completed(*first.nodes)
        assert compute_mission_status(level.missions, progress, 0) == NodeStatus.COMPLETED
        assert compute_mission_status(level.missions, progress, 1) == NodeStatus.CURRENT


class TestCourseProgressPercent:
    def test_empty_course_is_zero(self):
        assert compute_course_progress_percent([], []) == 0

    def test_all_completed_is_hundred(self):
        nodes = make_nodes(3)
        assert compute_course_progress_percent(nodes, completed(*nodes)) == 100

    def test_rounding(self):
        """1/3 -> 33, 2/3 -> 67, 1/8 -> 13 (halves round up)."""
        nodes = make_nodes(3)
        assert compute_course_progress_percent(nodes, completed(nodes[0])) == 33
        assert compute_course_progress_percent(nodes, completed(nodes[0], nodes[1])) == 67
        eight = make_nodes(8)
        assert compute_course_progress_percent(eight, completed(eight[0])) == 13

    def test_unlocked_and_foreign_records_do_not_count(self):
        nodes = make_nodes(2)
        other = make_nodes(1)
        progress = completed(*other) + [record(nodes[0], ProgressStatus.UNLOCKED)]
        assert compute_course_progress_percent(nodes, progress) == 0

    def test_non_decreasing(self):
        nodes = make_nodes(7)
        values = [compute_course_progress_percent(nodes, completed(*nodes[:k])) for k in range(8)]
        assert values == sorted(values)
        assert values[0] == 0 and values[-1] == 100


class TestHierarchyStatus:
    def test_missions_roll_across_levels(self):
        """First mission of a level follows the last mission of the previous level."""
        levels = [make_level(1, 1), make_level(1)]
        l0m0, l0m1 = levels[0].missions
        l1m0 = levels[1].missions[0]

        result = compute_hierarchy_status(levels, completed(*l0m0.nodes))
        mission_status = {m.mission_id: m.status for lvl in result.levels for m in lvl.missions}
        assert mission_status[l0m0.id] == NodeStatus.COMPLETED
        assert mission_status[l0m1.id] == NodeStatus.CURRENT
        assert mission_status[l1m0.id] == NodeStatus.LOCKED

        result = compute_hierarchy_status(levels, completed(*levels[0].nodes))
        mission_status = {m.mission_id: m.status for lvl in result.levels for m in lvl.missions}
        assert mission_status[l1m0.id] == NodeStatus.CURRENT
        assert [lvl.status for lvl in result.levels] == [NodeStatus.COMPLETED, NodeStatus.CURRENT]

    def test_counts_and_percent(self):
        levels = [make_level(2), make_level(2)]
        result = compute_hierarchy_status(levels, completed(levels[0].nodes[0]))
        assert result.levels[0].completed_count == 1
        assert result.levels[0].total_count == 2
        assert result.progress_percent == 25
        assert result.nodes[levels[0].nodes[1].id] == NodeStatus.CURRENT
        assert result.nodes[levels[1].nodes[0].id] == NodeStatus.LOCKED

    def test_percent_counts_nodes_outside_missions(self):
        """With the course's node list, the percent matches the flat map."""
        levels = [make_level(2)]
        loose = make_nodes(2, start=2)
        course_nodes = levels[0].nodes + loose
        progress = completed(levels[0].nodes[0])

        assert compute_hierarchy_status(levels, progress).progress_percent == 50
        result = compute_hierarchy_status(levels, progress, course_nodes=course_nodes)
        assert result.progress_percent == 25
        assert result.progress_percent == compute_course_progress_percent(course_nodes, progress)

    def test_empty_hierarchy(self):
        result = compute_hierarchy_status([], [])
        assert result.levels == []
        assert result.nodes == {}
        assert result.progress_percent == 0


class TestCourseSummary:
    def test_resume_node_and_minutes(self):
        nodes = make_nodes(4)
        summary = summarize_course(nodes, completed(nodes[0]), minutes_per_node=5)
        assert summary.completed_count == 1
        assert summary.total_count == 4
        assert summary.progress_percent == 25
        assert summary.resume_node_id == nodes[1].id
        assert summary.estimated_minutes == 15

    def test_finished_course_resumes_at_start(self):
        nodes = make_nodes(2)
        summary = summarize_course(nodes, completed(*nodes), minutes_per_node=5)
        assert summary.resume_node_id == nodes[0].id
        assert summary.estimated_minutes == 0

    def test_empty_course(self):
        summary = summarize_course([], [], minutes_per_node=5)
        assert summary.resume_node_id is None
        assert summary.total_count == 0
        assert summary.progress_percent == 0
