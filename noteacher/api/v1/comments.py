"""
Discussion endpoints - comments and replies on a node.
"""

import uuid
from typing import List

from fastapi import APIRouter, Response, status

from noteacher.api.deps import Comments, CurrentUser, unwrap
from noteacher.engines.comments.service import CommentView
from noteacher.schemas.comment import CommentCreate, CommentResponse, CommentUpdate

router = APIRouter()


def _enum_val(e) -> str:
    return e.value if hasattr(e, "value") else str(e)


def _comment_response(comment: CommentView) -> CommentResponse:
    return CommentResponse(
        **comment.model_dump(exclude={"type"}),
        type=_enum_val(comment.type),
    )


@router.get("/nodes/{node_id}/comments", response_model=List[CommentResponse])
async def list_comments(node_id: uuid.UUID, comments: Comments):
    """All comments on a node, oldest first; replies carry parent_id."""
    return [_comment_response(c) for c in unwrap(await comments.list_for_node(node_id))]


@router.post(
    "/nodes/{node_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(node_id: uuid.UUID, data: CommentCreate, user: CurrentUser, comments: Comments):
    return _comment_response(unwrap(await comments.create(node_id, user.id, data)))


@router.put("/nodes/{node_id}/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    node_id: uuid.UUID,
    comment_id: uuid.UUID,
    data: CommentUpdate,
    user: CurrentUser,
    comments: Comments,
):
    """Edit your own comment."""
    return _comment_response(unwrap(await comments.update(node_id, comment_id, user.id, data)))


@router.delete("/nodes/{node_id}/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(node_id: uuid.UUID, comment_id: uuid.UUID, user: CurrentUser, comments: Comments):
    """Delete your own comment and every reply under it."""
    unwrap(await comments.delete(node_id, comment_id, user.id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
