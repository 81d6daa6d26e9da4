"""
Courses Engine - course structure, hierarchy loading and content payloads.
"""

from noteacher.engines.courses.content import CourseContent, InvalidContentError, parse_content
from noteacher.engines.courses.hierarchy import (
    CourseHierarchy,
    LevelTree,
    MissionTree,
    NodeRef,
    build_hierarchy,
    flatten_nodes,
)
from noteacher.engines.courses.service import CourseDraft, CourseService, NodeDraft

__all__ = [
    "CourseContent",
    "InvalidContentError",
    "parse_content",
    "CourseHierarchy",
    "LevelTree",
    "MissionTree",
    "NodeRef",
    "build_hierarchy",
    "flatten_nodes",
    "CourseDraft",
    "CourseService",
    "NodeDraft",
]
