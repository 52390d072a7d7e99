from __future__ import annotations

import logging
from typing import Dict, List

from flask import Blueprint, g, jsonify, request

from api.container import services
from api.pets import active_pet_or_404
from models.pet import Comment
from models.rows import PetCommentRow, fetch_pet_comment_rows
from models.schemas.comment import CommentOutSchema, CommentSchema
from models.user import User
from utils.constants import CREATE_COMMENT, EDIT_COMMENT, VIEW_PET
from utils.decorators import permissions_required
from utils.exceptions import Forbidden, NotFound
from utils.flatten import ChildSpec, flatten

logger = logging.getLogger(__name__)

bp = Blueprint("comments", __name__)

comment_schema = CommentSchema()
comment_out_schema = CommentOutSchema()
comments_out_schema = CommentOutSchema(many=True)


def _comment_from_row(row: PetCommentRow) -> dict:
    return {
        "id": row.comment_id,
        "content": row.content,
        "parent_id": row.parent_id,
        "created_at": row.created_at,
        "updated_at": row.updated_at,
        "user_id": row.user_id,
        "first_name": row.first_name,
        "last_name": row.last_name,
        "avatar_url": row.avatar_url,
    }


def build_thread(comments: List[dict]) -> List[dict]:
    """
    Nest flat comments under their parents, keeping input order at every level.
    A reply whose parent is not in the list is shown at the top level.
    """
    by_id: Dict[str, dict] = {c["id"]: dict(c, replies=[]) for c in comments}
    roots = []
    for comment in comments:
        node = by_id[comment["id"]]
        parent = by_id.get(comment["parent_id"]) if comment["parent_id"] else None
        if parent is None or parent is node:
            roots.append(node)
        else:
            parent["replies"].append(node)
    return roots


def _active_comment_on_pet(comment_id: str, pet_id: str) -> Comment:
    comment = services().storage.get(Comment, comment_id)
    if not comment or comment.pet_id != pet_id:
        raise NotFound("Comment does not exist", code="COMMENT_NOT_FOUND")
    return comment


@bp.post("/post/<pet_id>/comment")
@permissions_required([CREATE_COMMENT])
def create_comment(pet_id: str):
    """
    Comment on a pet's post, or reply to an existing comment
    ---
    tags:
      - Comments
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: path
        name: pet_id
        type: string
        required: true
      - in: body
        name: body
        schema:
          type: object
          required: [content]
          properties:
            content: { type: string }
            parent_id: { type: string }
    responses:
      201: { description: Created }
      404: { description: Pet or parent comment not found }
    """
    payload = request.get_json(silent=True) or {}
    data = comment_schema.load(payload)

    pet = active_pet_or_404(pet_id)
    parent_id = data.get("parent_id") or None
    if parent_id:
        _active_comment_on_pet(parent_id, pet.id)

    principal = g.current_user
    comment = Comment(
        content=data["content"],
        pet_id=pet.id,
        parent_id=parent_id,
        created_by=principal.user_id,
    )
    svc = services()
    svc.storage.new(comment)
    svc.storage.save()

    out = comment_out_schema.dump(comment)
    out.update(
        user_id=principal.user_id,
        first_name=principal.first_name,
        last_name=principal.last_name,
    )
    return jsonify({"data": out}), 201


@bp.patch("/post/<pet_id>/comment/<comment_id>")
@permissions_required([EDIT_COMMENT])
def edit_comment(pet_id: str, comment_id: str):
    """
    Edit a comment. Only its author (or an admin) may do so.
    ---
    tags:
      - Comments
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: path
        name: pet_id
        type: string
        required: true
      - in: path
        name: comment_id
        type: string
        required: true
      - in: body
        name: body
        schema:
          type: object
          properties:
            content: { type: string }
    responses:
      200: { description: Updated }
      403: { description: Not the author }
      404: { description: Comment not found }
    """
    payload = request.get_json(silent=True) or {}
    data = comment_schema.load(payload)

    principal = g.current_user
    comment = _active_comment_on_pet(comment_id, pet_id)
    if comment.created_by != principal.user_id and not principal.is_admin:
        logger.info("user %s tried to edit comment %s of %s", principal.user_id, comment.id, comment.created_by)
        raise Forbidden("You can only edit your own comments")

    comment.content = data["content"]
    comment.touch(principal.user_id)
    svc = services()
    svc.storage.save()

    author = svc.storage.get(User, comment.created_by)
    out = comment_out_schema.dump(comment)
    out.update(
        user_id=comment.created_by,
        first_name=author.first_name if author else None,
        last_name=author.last_name if author else None,
    )
    return jsonify({"data": out}), 200


@bp.get("/post/<pet_id>/comments")
@permissions_required([VIEW_PET])
def list_comments(pet_id: str):
    """
    Comment threads of a pet's post
    ---
    tags:
      - Comments
    security:
      - Bearer: []
    parameters:
      - in: path
        name: pet_id
        type: string
        required: true
    responses:
      200: { description: OK }
      404: { description: Pet not found }
    """
    rows = fetch_pet_comment_rows(services().storage.get_session(), pet_id)
    view = flatten(
        rows,
        "pet_id",
        [ChildSpec("comments", "comment_id", _comment_from_row)],
        build_parent=lambda row: {"pet_id": row.pet_id},
        not_found=NotFound("Pet ID does not exist", code="PET_NOT_FOUND"),
    )
    threads = build_thread(view["comments"])
    return jsonify(
        {
            "data": comments_out_schema.dump(threads),
            "meta": {"pet_id": view.parent["pet_id"], "total_comments": len(view["comments"])},
        }
    ), 200
