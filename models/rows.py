"""
Typed rows for the join queries whose output is flattened into nested views.

Child columns are Optional: an outer join with no matching child yields None.
Each query filters the parent by id and active flag, so an absent or
deactivated parent returns no rows at all.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError

from models.pet import Comment, Media, Pet, PetLifeEvent
from models.user import User
from utils.exceptions import TransientStoreError


@dataclass(frozen=True)
class PetDetailRow:
    pet_id: str
    pet_name: str
    pet_gender: bool
    pet_breed: Optional[str]
    pet_description: Optional[str]
    pet_type: Optional[str]
    pet_avt_url: Optional[str]
    pet_date_of_birth: Optional[date]
    pet_date_of_death: Optional[date]
    pet_user_id: str
    event_id: Optional[str]
    event_title: Optional[str]
    event_date: Optional[datetime]
    event_location: Optional[str]
    event_story: Optional[str]
    media_id: Optional[str]
    media_name: Optional[str]
    media_url: Optional[str]
    media_type: Optional[str]


@dataclass(frozen=True)
class PetCommentRow:
    pet_id: str
    comment_id: Optional[str]
    content: Optional[str]
    parent_id: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    user_id: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
    avatar_url: Optional[str]


def fetch_pet_detail_rows(session, pet_id: str) -> List[PetDetailRow]:
    """pets x pet_life_events x medias, active rows only, events then media in creation order."""
    query = (
        session.query(
            Pet.id.label("pet_id"),
            Pet.name.label("pet_name"),
            Pet.gender.label("pet_gender"),
            Pet.breed.label("pet_breed"),
            Pet.description.label("pet_description"),
            Pet.type.label("pet_type"),
            Pet.avt_url.label("pet_avt_url"),
            Pet.date_of_birth.label("pet_date_of_birth"),
            Pet.date_of_death.label("pet_date_of_death"),
            Pet.user_id.label("pet_user_id"),
            PetLifeEvent.id.label("event_id"),
            PetLifeEvent.title.label("event_title"),
            PetLifeEvent.date.label("event_date"),
            PetLifeEvent.location.label("event_location"),
            PetLifeEvent.story.label("event_story"),
            Media.id.label("media_id"),
            Media.name.label("media_name"),
            Media.url.label("media_url"),
            Media.type.label("media_type"),
        )
        .select_from(Pet)
        .outerjoin(PetLifeEvent, and_(PetLifeEvent.pet_id == Pet.id, PetLifeEvent.is_active.is_(True)))
        .outerjoin(Media, and_(Media.pet_id == Pet.id, Media.is_active.is_(True)))
        .filter(Pet.id == pet_id, Pet.is_active.is_(True))
        .order_by(
            PetLifeEvent.date,
            PetLifeEvent.created_at,
            PetLifeEvent.id,
            Media.created_at,
            Media.id,
        )
    )
    try:
        return [PetDetailRow(**row._asdict()) for row in query.all()]
    except SQLAlchemyError as exc:
        session.rollback()
        raise TransientStoreError() from exc


def fetch_pet_comment_rows(session, pet_id: str) -> List[PetCommentRow]:
    """pets x comments x authors, oldest comment first."""
    query = (
        session.query(
            Pet.id.label("pet_id"),
            Comment.id.label("comment_id"),
            Comment.content.label("content"),
            Comment.parent_id.label("parent_id"),
            Comment.created_at.label("created_at"),
            Comment.updated_at.label("updated_at"),
            User.id.label("user_id"),
            User.first_name.label("first_name"),
            User.last_name.label("last_name"),
            User.avatar_url.label("avatar_url"),
        )
        .select_from(Pet)
        .outerjoin(Comment, and_(Comment.pet_id == Pet.id, Comment.is_active.is_(True)))
        .outerjoin(User, User.id == Comment.created_by)
        .filter(Pet.id == pet_id, Pet.is_active.is_(True))
        .order_by(Comment.created_at, Comment.id)
    )
    try:
        return [PetCommentRow(**row._asdict()) for row in query.all()]
    except SQLAlchemyError as exc:
        session.rollback()
        raise TransientStoreError() from exc
