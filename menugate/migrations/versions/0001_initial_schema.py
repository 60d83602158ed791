"""Initial schema: roles, modules, menu_items, module_grants, menu_grants

Revision ID: 0001
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the access store tables."""

    # --- roles (no FK deps) ---
    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("kind", sa.String(20), nullable=False, server_default="Organization"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.PrimaryKeyConstraint("id", name="pk_roles"),
        sa.UniqueConstraint("name", name="uq_roles_name"),
    )

    # --- modules (no FK deps) ---
    op.create_table(
        "modules",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("kind", sa.String(20), nullable=False, server_default="Platform"),
        sa.Column("sort_index", sa.Integer(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.PrimaryKeyConstraint("id", name="pk_modules"),
    )
    # Not unique: sibling uniqueness is validated on write
    op.create_index("ix_modules_kind_sort_index", "modules", ["kind", "sort_index"])

    # --- menu_items (FK -> modules) ---
    op.create_table(
        "menu_items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("module_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("page_key", sa.String(255), nullable=False),
        sa.Column("visible", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("sort_index", sa.Integer(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.PrimaryKeyConstraint("id", name="pk_menu_items"),
        sa.UniqueConstraint("page_key", name="uq_menu_items_page_key"),
        sa.ForeignKeyConstraint(
            ["module_id"],
            ["modules.id"],
            name="fk_menu_items_module_id_modules",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_menu_items_module_id", "menu_items", ["module_id"])

    # --- module_grants (FK -> roles, modules) ---
    op.create_table(
        "module_grants",
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.Column("module_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.PrimaryKeyConstraint("role_id", "module_id", name="pk_module_grants"),
        sa.ForeignKeyConstraint(
            ["role_id"],
            ["roles.id"],
            name="fk_module_grants_role_id_roles",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["module_id"],
            ["modules.id"],
            name="fk_module_grants_module_id_modules",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_module_grants_module_id", "module_grants", ["module_id"])

    # --- menu_grants (FK -> roles, menu_items, modules) ---
    op.create_table(
        "menu_grants",
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.Column("menu_id", sa.Integer(), nullable=False),
        sa.Column("module_id", sa.Integer(), nullable=False),
        sa.Column("view", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("create", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("edit", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("delete", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("pdf", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("export", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.PrimaryKeyConstraint("role_id", "menu_id", name="pk_menu_grants"),
        sa.ForeignKeyConstraint(
            ["role_id"],
            ["roles.id"],
            name="fk_menu_grants_role_id_roles",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["menu_id"],
            ["menu_items.id"],
            name="fk_menu_grants_menu_id_menu_items",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["module_id"],
            ["modules.id"],
            name="fk_menu_grants_module_id_modules",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_menu_grants_module_id", "menu_grants", ["module_id"])


def downgrade() -> None:
    """Drop the access store tables in reverse dependency order."""
    op.drop_table("menu_grants")
    op.drop_table("module_grants")
    op.drop_table("menu_items")
    op.drop_table("modules")
    op.drop_table("roles")
