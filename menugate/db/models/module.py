"""Module database model.

A module is a top-level functional area that groups menu items in the
navigation tree.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, Index
from sqlalchemy.orm import relationship

from menugate.db.base import Base
from menugate.db.models.role import ScopeKind


class Module(Base):
    """
    Top-level functional area.
    
    ``sort_index`` is unique among modules of the same ``kind``. The rule is
    enforced by grant administration on write rather than by a constraint.
    """
    __tablename__ = "modules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    kind = Column(String(20), nullable=False, default=ScopeKind.PLATFORM.value)
    sort_index = Column(Integer, nullable=False)
    note = Column(Text, nullable=True)
    
    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    # Relationships
    menu_items = relationship("MenuItem", back_populates="module", cascade="all, delete")
    module_grants = relationship("ModuleGrant", back_populates="module", cascade="all, delete")
    menu_grants = relationship("MenuGrant", back_populates="module", cascade="all, delete")

    __table_args__ = (
        Index("ix_modules_kind_sort_index", "kind", "sort_index"),
    )
    
    def __repr__(self) -> str:
        return f"<Module {self.name} ({self.kind} #{self.sort_index})>"
