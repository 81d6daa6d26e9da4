"""
API v1 routes.
"""

from fastapi import APIRouter

from noteacher.api.v1 import comments, courses, progress

router = APIRouter()

router.include_router(courses.router, tags=["Courses"])
router.include_router(progress.router, tags=["Progress"])
router.include_router(comments.router, tags=["Discussion"])
