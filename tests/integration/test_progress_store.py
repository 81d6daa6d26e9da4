"""Integration tests for the SQLAlchemy progress store on SQLite."""

import asyncio
import uuid

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from noteacher.engines.progress.service import ProgressService
from noteacher.engines.progress.status import NodeStatus
from noteacher.engines.progress.store import SqlAlchemyProgressStore
from noteacher.kernel.models.course import Course, Node
from noteacher.kernel.models.progress import ProgressStatus


@pytest_asyncio.fixture
async def course(db_session) -> Course:
    """A course with three nodes, deliberately inserted out of order."""
    course = Course(title="Circuits 101")
    course.nodes = [
        Node(title="Series", position_index=2),
        Node(title="Voltage", position_index=0),
        Node(title="Current", position_index=1),
    ]
    db_session.add(course)
    await db_session.commit()
    return course


def by_position(course: Course):
    return sorted(course.nodes, key=lambda n: n.position_index)


class TestSqlAlchemyProgressStore:
    @pytest.mark.asyncio
    async def test_course_nodes_ordered(self, db_session, course):
        store = SqlAlchemyProgressStore(db_session)
        nodes = await store.list_course_nodes(course.id)
        assert [n.title for n in nodes] == ["Voltage", "Current", "Series"]
        assert [n.position_index for n in nodes] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_point_lookups(self, db_session, course):
        store = SqlAlchemyProgressStore(db_session)
        first = by_position(course)[0]
        assert (await store.get_node(first.id)).title == "Voltage"
        assert (await store.get_node_at(course.id, 1)).title == "Current"
        assert await store.get_node_at(course.id, 3) is None
        assert await store.get_node(uuid.uuid4()) is None

    @pytest.mark.asyncio
    async def test_mark_completed_upserts(self, db_session, course):
        """Unlocked -> completed in place; repeating is harmless."""
        store = SqlAlchemyProgressStore(db_session)
        user_id = uuid.uuid4()
        node = by_position(course)[1]

        assert await store.unlock_if_absent(user_id, node.id) is True
        assert (await store.get_progress(user_id, node.id)).status == ProgressStatus.UNLOCKED

        await store.mark_completed(user_id, node.id)
        await store.mark_completed(user_id, node.id)

        records = await store.list_user_progress(user_id)
        assert len(records) == 1
        assert records[0].status == ProgressStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_unlock_never_overwrites(self, db_session, course):
        store = SqlAlchemyProgressStore(db_session)
        user_id = uuid.uuid4()
        node = by_position(course)[0]

        await store.mark_completed(user_id, node.id)
        assert await store.unlock_if_absent(user_id, node.id) is False
        assert (await store.get_progress(user_id, node.id)).status == ProgressStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_progress_scoped_by_user_and_course(self, db_session, course):
        other = Course(title="Other", nodes=[Node(title="Elsewhere", position_index=0)])
        db_session.add(other)
        await db_session.commit()

        store = SqlAlchemyProgressStore(db_session)
        user_id = uuid.uuid4()
        await store.mark_completed(user_id, by_position(course)[0].id)
        await store.mark_completed(user_id, other.nodes[0].id)
        await store.mark_completed(uuid.uuid4(), by_position(course)[1].id)

        assert len(await store.list_course_progress(user_id, course.id)) == 1
        assert len(await store.list_user_progress(user_id)) == 2


class TestCompletionOnSqlite:
    @pytest.mark.asyncio
    async def test_complete_whole_course(self, db_session, course):
        """The completion flow end to end on a real database."""
        service = ProgressService(SqlAlchemyProgressStore(db_session))
        user_id = uuid.uuid4()
        nodes = by_position(course)

        result = await service.complete_node(user_id, nodes[0].id)
        assert result.ok
        assert result.data.next_node_id == nodes[1].id
        assert result.data.successor_unlocked is True

        course_map = (await service.get_course_map(user_id, course.id)).data
        assert [course_map.summary.statuses[n.id] for n in course_map.nodes] == [
            NodeStatus.COMPLETED,
            NodeStatus.CURRENT,
            NodeStatus.LOCKED,
        ]

        await service.complete_node(user_id, nodes[1].id)
        last = await service.complete_node(user_id, nodes[2].id)
        assert last.data.next_node_id is None

        course_map = (await service.get_course_map(user_id, course.id)).data
        assert course_map.summary.progress_percent == 100
        learner = (await service.get_learner_progress(user_id)).data
        assert learner.xp == 450

    @pytest.mark.asyncio
    async def test_concurrent_completions_unlock_once(self, db_engine, course):
        """Simultaneous completions of one node all succeed and unlock the successor once."""
        session_maker = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
        user_id = uuid.uuid4()
        first, second, _ = by_position(course)

        async def complete():
            async with session_maker() as session:
                service = ProgressService(SqlAlchemyProgressStore(session))
                return await service.complete_node(user_id, first.id)

        results = await asyncio.gather(*(complete() for _ in range(8)))

        assert all(r.ok for r in results)
        assert {r.data.next_node_id for r in results} == {second.id}
        assert sum(r.data.successor_unlocked for r in results) == 1

        async with session_maker() as session:
            records = await SqlAlchemyProgressStore(session).list_user_progress(user_id)
        assert len(records) == 2
        assert {r.node_id: r.status for r in records} == {
            first.id: ProgressStatus.COMPLETED,
            second.id: ProgressStatus.UNLOCKED,
        }
