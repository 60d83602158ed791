"""Menu item database model.

A menu item is one navigable page owned by exactly one module.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from menugate.db.base import Base


class MenuItem(Base):
    """
    Navigable page.
    
    ``page_key`` is the stable identifier screens use when asking for their
    permissions. ``sort_index`` is unique within the owning module.
    """
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    module_id = Column(Integer, ForeignKey("modules.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    page_key = Column(String(255), unique=True, nullable=False)
    visible = Column(Boolean, nullable=False, default=True)
    sort_index = Column(Integer, nullable=False)
    note = Column(Text, nullable=True)
    
    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    # Relationships
    module = relationship("Module", back_populates="menu_items")
    menu_grants = relationship("MenuGrant", back_populates="menu_item", cascade="all, delete")
    
    def __repr__(self) -> str:
        return f"<MenuItem {self.page_key} (module={self.module_id} #{self.sort_index})>"
