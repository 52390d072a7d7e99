from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


class Pet(BaseModel, Base):
    __tablename__ = "pets"

    name = Column(String(105), nullable=False)
    date_of_birth = Column(Date, nullable=True)
    date_of_death = Column(Date, nullable=True)
    gender = Column(Boolean, default=True, nullable=False)
    breed = Column(String(50), nullable=True)
    description = Column(String(255), nullable=True)
    avt_url = Column(String(255), nullable=True)
    type = Column(String(50), nullable=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    user = relationship("User")

    __table_args__ = (
        Index("ix_pets_name", "name"),
    )


class PetLifeEvent(BaseModel, Base):
    __tablename__ = "pet_life_events"

    pet_id = Column(String(36), ForeignKey("pets.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    location = Column(String(255), nullable=True)
    story = Column(String(255), nullable=True)


class Media(BaseModel, Base):
    __tablename__ = "medias"

    type = Column(String(50), nullable=True)
    name = Column(String(105), nullable=False)
    url = Column(String(255), nullable=False)
    pet_id = Column(String(36), ForeignKey("pets.id", ondelete="CASCADE"), nullable=False, index=True)


class Comment(BaseModel, Base):
    """created_by is the author; parent_id points at the comment being replied to."""

    __tablename__ = "comments"

    content = Column(Text, nullable=False)
    pet_id = Column(String(36), ForeignKey("pets.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_id = Column(String(36), ForeignKey("comments.id", ondelete="SET NULL"), nullable=True)
