"""
Pets blueprint.

Detail views are assembled from one outer join (pet x life events x media)
folded back into a nested document by utils.flatten.
"""
from __future__ import annotations

import logging
import math

from flask import Blueprint, g, jsonify, request

from api.container import services
from api.users import parse_pagination
from models.pet import Media, Pet, PetLifeEvent
from models.rows import PetDetailRow, fetch_pet_detail_rows
from models.schemas.pet import (
    AvatarSchema,
    GallerySchema,
    MediaItemSchema,
    PetCreateSchema,
    PetDetailSchema,
    PetLifeEventOutSchema,
    PetLifeEventSchema,
    PetOutSchema,
)
from utils.constants import CREATE_LIFE_EVENT, CREATE_PET, EDIT_PET, VIEW_PET
from utils.decorators import jwt_required, permissions_required
from utils.exceptions import Forbidden, NotFound
from utils.flatten import ChildSpec, flatten

logger = logging.getLogger(__name__)

bp = Blueprint("pets", __name__)

pet_create_schema = PetCreateSchema()
pet_out_schema = PetOutSchema()
pets_out_schema = PetOutSchema(many=True)
pet_detail_schema = PetDetailSchema()
life_event_schema = PetLifeEventSchema()
life_event_out_schema = PetLifeEventOutSchema()
gallery_schema = GallerySchema()
media_items_schema = MediaItemSchema(many=True)
avatar_schema = AvatarSchema()


def active_pet_or_404(pet_id: str) -> Pet:
    pet = services().storage.get(Pet, pet_id)
    if not pet:
        raise NotFound("Pet ID does not exist", code="PET_NOT_FOUND")
    return pet


def require_pet_editor(pet: Pet) -> None:
    """Owner, admin, or holder of edit_pet."""
    principal = g.current_user
    if principal.is_admin or pet.user_id == principal.user_id:
        return
    granted = services().gate.effective_permissions(principal, g.setdefault("effective_permissions", {}))
    if EDIT_PET not in granted:
        raise Forbidden("You are not allowed to edit this pet")


def escape_like(term: str) -> str:
    """Make % and _ in user input match literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _pet_from_row(row: PetDetailRow) -> dict:
    return {
        "id": row.pet_id,
        "name": row.pet_name,
        "gender": row.pet_gender,
        "breed": row.pet_breed,
        "description": row.pet_description,
        "type": row.pet_type,
        "avt_url": row.pet_avt_url,
        "date_of_birth": row.pet_date_of_birth,
        "date_of_death": row.pet_date_of_death,
    }


def _event_from_row(row: PetDetailRow) -> dict:
    return {
        "id": row.event_id,
        "title": row.event_title,
        "date": row.event_date,
        "location": row.event_location,
        "story": row.event_story,
    }


def _media_from_row(row: PetDetailRow) -> dict:
    return {"id": row.media_id, "url": row.media_url}


PET_DETAIL_CHILDREN = (
    ChildSpec("events", "event_id", _event_from_row),
    ChildSpec("medias", "media_id", _media_from_row),
)


@bp.post("/pet")
@permissions_required([CREATE_PET])
def create_pet():
    """
    Create a pet owned by the caller
    ---
    tags:
      - Pets
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [name, date_of_birth, type]
          properties:
            name: { type: string }
            gender: { type: boolean }
            date_of_birth: { type: string, example: "2021-04-01" }
            date_of_death: { type: string }
            breed: { type: string }
            description: { type: string }
            type: { type: string, example: "dog" }
    responses:
      201: { description: Created }
      403: { description: Missing create_pet permission }
      422: { description: Validation error }
    """
    payload = request.get_json(silent=True) or {}
    data = pet_create_schema.load(payload)

    principal = g.current_user
    pet = Pet(**data)
    pet.user_id = principal.user_id
    pet.created_by = principal.user_id

    svc = services()
    svc.storage.new(pet)
    svc.storage.save()
    logger.info("user %s created pet %s", principal.user_id, pet.id)
    return jsonify({"data": pet_out_schema.dump(pet)}), 201


@bp.get("/pets")
@permissions_required([VIEW_PET])
def list_pets():
    """
    List pets
    ---
    tags:
      - Pets
    security:
      - Bearer: []
    parameters:
      - in: query
        name: page
        type: integer
        default: 1
      - in: query
        name: page_size
        type: integer
        default: 10
      - in: query
        name: search
        type: string
        description: Case-insensitive match on name or breed
      - in: query
        name: type
        type: string
      - in: query
        name: mine
        type: boolean
        description: Only the caller's pets
    responses:
      200: { description: OK }
    """
    session = services().storage.get_session()
    page, page_size = parse_pagination()

    query = session.query(Pet).filter(Pet.is_active.is_(True))
    search = request.args.get("search", type=str)
    if search:
        pattern = f"%{escape_like(search.strip())}%"
        query = query.filter(
            Pet.name.ilike(pattern, escape="\\") | Pet.breed.ilike(pattern, escape="\\")
        )
    pet_type = request.args.get("type", type=str)
    if pet_type:
        query = query.filter(Pet.type == pet_type)
    if request.args.get("mine", "").lower() in ("1", "true", "yes"):
        query = query.filter(Pet.user_id == g.current_user.user_id)

    total = query.count()
    rows = (
        query.order_by(Pet.name.asc(), Pet.id.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return jsonify(
        {
            "data": pets_out_schema.dump(rows),
            "meta": {
                "total_items": total,
                "total_pages": math.ceil(total / page_size),
                "page": page,
                "page_size": page_size,
            },
        }
    )


@bp.get("/pet/<pet_id>")
@permissions_required([VIEW_PET])
def get_pet(pet_id: str):
    """
    Pet detail with life events and gallery
    ---
    tags:
      - Pets
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
    rows = fetch_pet_detail_rows(services().storage.get_session(), pet_id)
    view = flatten(
        rows,
        "pet_id",
        PET_DETAIL_CHILDREN,
        build_parent=_pet_from_row,
        not_found=NotFound("Pet ID does not exist", code="PET_NOT_FOUND"),
    )
    detail = dict(view.parent, events=view["events"], medias=view["medias"])
    return jsonify({"data": pet_detail_schema.dump(detail)}), 200


@bp.post("/pet/life-event")
@permissions_required([CREATE_LIFE_EVENT])
def create_life_event():
    """
    Add a life event to a pet
    ---
    tags:
      - Pets
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [pet_id, title, date]
          properties:
            pet_id: { type: string }
            title: { type: string }
            date: { type: string, example: "2024-05-01 10:00:00" }
            location: { type: string }
            story: { type: string }
    responses:
      201: { description: Created }
      403: { description: Not the pet's owner }
      404: { description: Pet not found }
    """
    payload = request.get_json(silent=True) or {}
    data = life_event_schema.load(payload)

    pet = active_pet_or_404(data["pet_id"])
    require_pet_editor(pet)

    event = PetLifeEvent(**data)
    event.created_by = g.current_user.user_id
    svc = services()
    svc.storage.new(event)
    svc.storage.save()
    return jsonify({"data": life_event_out_schema.dump(event)}), 201


@bp.post("/pet/<pet_id>/gallery")
@jwt_required()
def add_gallery(pet_id: str):
    """
    Register gallery media (by URL) for a pet
    ---
    tags:
      - Pets
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
          properties:
            medias:
              type: array
              items:
                type: object
                properties:
                  name: { type: string }
                  url: { type: string }
                  type: { type: string }
    responses:
      201: { description: Created }
      403: { description: Neither owner nor editor }
      404: { description: Pet not found }
    """
    payload = request.get_json(silent=True) or {}
    data = gallery_schema.load(payload)

    pet = active_pet_or_404(pet_id)
    require_pet_editor(pet)

    actor = g.current_user.user_id
    svc = services()
    created = []
    for item in data["medias"]:
        media = Media(pet_id=pet.id, created_by=actor, **item)
        svc.storage.new(media)
        created.append(media)
    svc.storage.save()
    return jsonify({"data": media_items_schema.dump(created)}), 201


@bp.post("/pet/<pet_id>/images")
@jwt_required()
def set_avatar(pet_id: str):
    """
    Set a pet's avatar image (by URL)
    ---
    tags:
      - Pets
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
          required: [url]
          properties:
            url: { type: string, example: "https://cdn.example.com/milo.png" }
    responses:
      200: { description: Avatar updated }
      403: { description: Neither owner nor editor }
      404: { description: Pet not found }
    """
    payload = request.get_json(silent=True) or {}
    data = avatar_schema.load(payload)

    pet = active_pet_or_404(pet_id)
    require_pet_editor(pet)

    pet.avt_url = data["url"]
    pet.touch(g.current_user.user_id)
    services().storage.save()
    logger.info("user %s set avatar for pet %s", g.current_user.user_id, pet.id)
    return jsonify({"data": {"id": pet.id, "url": pet.avt_url}}), 200
