"""
RefreshToken model: stores opaque refresh tokens so we can revoke and rotate them
Fields:
- token (unique, secret: never logged, not part of repr)
- user_id (Integer) - FK to users.id
- revoked (bool, only ever goes False -> True)
- expires_at
- created_at, updated_at, deleted_at
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base, SoftDeleteMixin


class RefreshToken(SoftDeleteMixin, BaseModel, Base):
    __tablename__ = "refresh_tokens"

    token = Column(String(64), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    revoked = Column(Boolean, default=False, nullable=False)
    expires_at = Column(DateTime, nullable=False)

    user = relationship("User", back_populates="refresh_tokens")

    def __repr__(self):
        return f"<RefreshToken id={self.id} user_id={self.user_id} revoked={self.revoked}>"
