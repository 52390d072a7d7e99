from sqlalchemy import Boolean, Column, String

from models.base_model import Base, BaseModel


class User(BaseModel, Base):
    __tablename__ = "users"

    first_name = Column(String(105), nullable=False)
    last_name = Column(String(105), nullable=False)
    email = Column(String(100), nullable=False, unique=True, index=True)
    phone = Column(String(12), nullable=True)
    username = Column(String(50), nullable=False, unique=True, index=True)
    gender = Column(Boolean, default=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    avatar_url = Column(String(255), nullable=True)
    # Holders bypass the role/permission graph entirely
    is_admin = Column(Boolean, default=False, nullable=False)
