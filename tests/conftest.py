"""
Pytest fixtures for NOTEacher tests.
"""

import os
import tempfile
import uuid
from datetime import datetime, timezone
from typing import AsyncGenerator, Dict, List, Optional, Tuple

# File-based SQLite so every connection of a test run sees the same database
_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
TEST_DB_PATH = _tmp.name
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["IDENTITY_JWT_SECRET"] = "test-secret-key-that-is-at-least-32-characters"

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from noteacher.config import get_settings

get_settings.cache_clear()

from noteacher.engines.courses.hierarchy import NodeRef
from noteacher.engines.progress.ledger import ProgressRecord
from noteacher.engines.progress.store import ProgressStore
from noteacher.kernel.models import Base
from noteacher.kernel.models.course import NodeType
from noteacher.kernel.models.progress import ProgressStatus


class InMemoryProgressStore(ProgressStore):
    """Dict-backed ProgressStore with the same keyed-write semantics as the SQL store."""

    def __init__(self):
        self.nodes: Dict[uuid.UUID, NodeRef] = {}
        self.records: Dict[Tuple[uuid.UUID, uuid.UUID], ProgressRecord] = {}

    def add_course(self, count: int, course_id: Optional[uuid.UUID] = None) -> List[NodeRef]:
        course_id = course_id or uuid.uuid4()
        nodes = [
            NodeRef(
                id=uuid.uuid4(),
                course_id=course_id,
                title=f"Node {i}",
                type=NodeType.LESSON,
                position_index=i,
            )
            for i in range(count)
        ]
        for node in nodes:
            self.nodes[node.id] = node
        return nodes

    def put(self, user_id: uuid.UUID, node_id: uuid.UUID, status: ProgressStatus) -> None:
        self.records[(user_id, node_id)] = ProgressRecord(
            user_id=user_id,
            node_id=node_id,
            status=status,
            updated_at=datetime.now(timezone.utc),
        )

    async def get_node(self, node_id):
        return self.nodes.get(node_id)

    async def get_node_at(self, course_id, position_index):
        return next(
            (n for n in self.nodes.values() if n.course_id == course_id and n.position_index == position_index),
            None,
        )

    async def list_course_nodes(self, course_id):
        nodes = [n for n in self.nodes.values() if n.course_id == course_id]
        return sorted(nodes, key=lambda n: n.position_index)

    async def list_course_progress(self, user_id, course_id):
        return [
            r for (uid, nid), r in self.records.items()
            if uid == user_id and nid in self.nodes and self.nodes[nid].course_id == course_id
        ]

    async def list_user_progress(self, user_id):
        return [r for (uid, _), r in self.records.items() if uid == user_id]

    async def get_progress(self, user_id, node_id):
        return self.records.get((user_id, node_id))

    async def mark_completed(self, user_id, node_id):
        self.put(user_id, node_id, ProgressStatus.COMPLETED)

    async def unlock_if_absent(self, user_id, node_id):
        if (user_id, node_id) in self.records:
            return False
        self.put(user_id, node_id, ProgressStatus.UNLOCKED)
        return True


@pytest.fixture
def store() -> InMemoryProgressStore:
    return InMemoryProgressStore()


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    """Fresh SQLite database per test."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'noteacher.db'}",
        echo=False,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session_maker = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_maker() as session:
        yield session
        await session.rollback()


def pytest_sessionfinish(session, exitstatus):
    """Clean up temp DB file after test run."""
    try:
        if os.path.exists(TEST_DB_PATH):
            os.unlink(TEST_DB_PATH)
    except OSError:
        pass
