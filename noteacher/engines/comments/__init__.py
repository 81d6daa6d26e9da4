"""
Comments Engine - per-node discussion threads.
"""

from noteacher.engines.comments.service import CommentDraft, CommentEdit, CommentService, CommentView

__all__ = [
    "CommentDraft",
    "CommentEdit",
    "CommentService",
    "CommentView",
]
