"""Grant database models.

ModuleGrant lets a role see a module at all. MenuGrant carries the six
capability flags of a role on one menu item. A missing MenuGrant row means
every flag is false.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from menugate.db.base import Base


class ModuleGrant(Base):
    """Role -> Module visibility gate."""
    __tablename__ = "module_grants"

    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True)
    module_id = Column(Integer, ForeignKey("modules.id", ondelete="CASCADE"), primary_key=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    role = relationship("Role", back_populates="module_grants")
    module = relationship("Module", back_populates="module_grants")

    def __repr__(self) -> str:
        return f"<ModuleGrant role={self.role_id} module={self.module_id}>"


class MenuGrant(Base):
    """
    Role -> MenuItem capability flags.
    
    ``module_id`` is denormalized from the menu item for lookups by module.
    """
    __tablename__ = "menu_grants"

    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True)
    menu_id = Column(Integer, ForeignKey("menu_items.id", ondelete="CASCADE"), primary_key=True)
    module_id = Column(Integer, ForeignKey("modules.id", ondelete="CASCADE"), nullable=False, index=True)
    
    # Capabilities
    view = Column(Boolean, nullable=False, default=False)
    create = Column(Boolean, nullable=False, default=False)
    edit = Column(Boolean, nullable=False, default=False)
    delete = Column(Boolean, nullable=False, default=False)
    pdf = Column(Boolean, nullable=False, default=False)
    export = Column(Boolean, nullable=False, default=False)
    
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    role = relationship("Role", back_populates="menu_grants")
    menu_item = relationship("MenuItem", back_populates="menu_grants")
    module = relationship("Module", back_populates="menu_grants")

    def __repr__(self) -> str:
        return f"<MenuGrant role={self.role_id} menu={self.menu_id}>"
