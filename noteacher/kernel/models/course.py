"""
Course content models: Course, Level, Mission, Node.

Courses are authored by admins and read-only for learners. Nodes always
belong to a course; in the hierarchical layout they also belong to a mission.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from noteacher.kernel.models.base import Base, generate_uuid


class NodeType(str, Enum):
    """Kind of learning node."""
    LESSON = "lesson"
    ASSIGNMENT = "assignment"
    SIMULATOR = "simulator"


class Course(Base):
    """A named, ordered collection of nodes."""

    __tablename__ = "courses"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    nodes: Mapped[List["Node"]] = relationship(
        "Node",
        back_populates="course",
        order_by="Node.position_index",
        cascade="all, delete-orphan",
    )
    levels: Mapped[List["Level"]] = relationship(
        "Level",
        back_populates="course",
        order_by="Level.position_index",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Course {self.title}>"


class Level(Base):
    """Top grouping of the course map."""

    __tablename__ = "levels"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    course_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    position_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    course: Mapped["Course"] = relationship("Course", back_populates="levels")
    missions: Mapped[List["Mission"]] = relationship(
        "Mission",
        back_populates="level",
        order_by="Mission.position_index",
        cascade="all, delete-orphan",
    )


class Mission(Base):
    """Group of nodes inside a level."""

    __tablename__ = "missions"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    level_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("levels.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    position_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    level: Mapped["Level"] = relationship("Level", back_populates="missions")
    nodes: Mapped[List["Node"]] = relationship(
        "Node",
        back_populates="mission",
        order_by="Node.position_index",
    )


class Node(Base):
    """Atomic unit of learning content and of completion tracking."""

    __tablename__ = "nodes"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    course_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    mission_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("missions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    type: Mapped[NodeType] = mapped_column(
        String(50),
        default=NodeType.LESSON.value,
        nullable=False,
    )
    position_index: Mapped[int] = mapped_column(Integer, nullable=False)
    is_mandatory: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # Opaque to the unlock engine; validated against schemas.content on read/write
    content: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    course: Mapped["Course"] = relationship("Course", back_populates="nodes")
    mission: Mapped[Optional["Mission"]] = relationship("Mission", back_populates="nodes")

    __table_args__ = (
        UniqueConstraint("course_id", "position_index", name="uq_nodes_course_position"),
    )

    def __repr__(self) -> str:
        return f"<Node {self.position_index}:{self.title}>"
