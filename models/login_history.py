"""
LoginHistory model: one row per login event, keyed by the JTI shared by the issued token pair.
Fields:
- jti (String(36)) - JTI of both tokens
- user_id (String(36)) - FK to users.id
- access_token / refresh_token - the issued tokens
- is_active - cleared at logout
"""
from sqlalchemy import Column, String, Text, ForeignKey, Index

from models.base_model import BaseModel, Base


class LoginHistory(BaseModel, Base):
    __tablename__ = "login_history"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    jti = Column(String(36), nullable=False)
    access_token = Column(Text, nullable=False)
    refresh_token = Column(Text, nullable=False)

    __table_args__ = (
        Index("ix_login_history_jti", "jti"),
    )

    def __repr__(self):
        return f"<LoginHistory user={self.user_id} jti={self.jti} active={self.is_active}>"
