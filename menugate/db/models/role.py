from datetime import datetime
from enum import Enum

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from menugate.db.base import Base


class ScopeKind(str, Enum):
    """Audience a role or module belongs to."""

    PLATFORM = "Platform"             # Operator of the whole platform
    ORGANIZATION = "Organization"     # A tenant organization


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    kind = Column(String(20), nullable=False, default=ScopeKind.ORGANIZATION.value)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Deleting a role removes every grant recorded against it
    module_grants = relationship("ModuleGrant", back_populates="role", cascade="all, delete")
    menu_grants = relationship("MenuGrant", back_populates="role", cascade="all, delete")

    def __repr__(self) -> str:
        return f"<Role {self.name} ({self.kind})>"
