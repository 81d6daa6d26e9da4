"""
Pydantic schemas for node discussions.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from noteacher.engines.comments.service import CommentDraft, CommentEdit


class CommentCreate(CommentDraft):
    """Body for posting a comment; set parent_id to reply."""


class CommentUpdate(CommentEdit):
    """Body for editing your own comment."""


class CommentResponse(BaseModel):
    id: uuid.UUID
    node_id: uuid.UUID
    author_id: uuid.UUID
    parent_id: Optional[uuid.UUID] = None
    type: str
    content: str
    edited_at: Optional[datetime] = None
    created_at: datetime
