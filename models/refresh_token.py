"""
RefreshToken model: one row per issued refresh token so tokens can be
revoked and rotated.
Fields:
- token_hash (unique) - SHA-256 of the bearer token, never the token itself
- user_id (String(36)) - FK to users.id
- expires_at - rows past this instant are unusable even before the purge runs
- revoked (bool)
- replaced_by_hash - hash of the token that superseded this one on rotation
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base, as_utc


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    revoked = Column(Boolean, default=False, nullable=False)
    replaced_by_hash = Column(String(64), nullable=True)

    user = relationship("User", back_populates="refresh_tokens")

    def is_expired(self, now) -> bool:
        return as_utc(self.expires_at) <= now

    def __repr__(self):
        return f"<RefreshToken user={self.user_id} revoked={self.revoked}>"
