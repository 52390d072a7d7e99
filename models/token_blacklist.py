from sqlalchemy import Column, String

from models.base_model import BaseModel, Base


class TokenBlacklist(BaseModel, Base):
    """Revocation entry written at logout. created_by holds the user who revoked it."""

    __tablename__ = "token_blacklist"

    jti = Column(String(36), nullable=False, unique=True, index=True)

    def __repr__(self):
        return f"<TokenBlacklist jti={self.jti}>"
