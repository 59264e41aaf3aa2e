from enum import Enum

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship
from sqlalchemy.types import Enum as SAEnum

from models.base_model import Base, BaseModel, SoftDeleteMixin


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class User(SoftDeleteMixin, BaseModel, Base):
    __tablename__ = "users"

    name = Column(String(255), nullable=False)
    # stored lower-cased so the unique index is case-insensitive
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        SAEnum(Role, name="user_role", native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=Role.USER,
    )

    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="user",
        passive_deletes=True,
    )

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    def __repr__(self):
        return f"<User {self.email} role={self.role.value if self.role else None}>"
