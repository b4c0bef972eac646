"""initial_auth_tables

Create idp, book_idp and users tables.

Revision ID: 4b1e6c2a9f10
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "4b1e6c2a9f10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create federation and user tables."""
    # IDP TABLE
    op.create_table(
        "idp",
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("entity_id", sa.String(1024), nullable=True),
        sa.Column("entry_point", sa.String(1024), nullable=False),
        sa.Column("logout_url", sa.String(1024), nullable=True),
        sa.Column("idp_cert", sa.Text(), nullable=False),
        sa.Column("sp_key", sa.Text(), nullable=False),
        sa.Column("sp_cert", sa.Text(), nullable=False),
        sa.Column("language", sa.String(10), nullable=True),
        sa.Column("logo_src", sa.String(1024), nullable=True),
        sa.Column("small_logo_src", sa.String(1024), nullable=True),
        sa.PrimaryKeyConstraint("code"),
    )

    # BOOK_IDP TABLE
    op.create_table(
        "book_idp",
        sa.Column("book_id", sa.Integer(), nullable=False),
        sa.Column("idp_code", sa.String(50), nullable=False),
        sa.PrimaryKeyConstraint("book_id", "idp_code"),
        sa.ForeignKeyConstraint(["idp_code"], ["idp.code"]),
    )
    op.create_index("ix_book_idp_idp_code", "book_idp", ["idp_code"])

    # USERS TABLE
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id_from_idp", sa.String(255), nullable=False),
        sa.Column("idp_code", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["idp_code"], ["idp.code"]),
        sa.UniqueConstraint("user_id_from_idp", "idp_code", name="uq_users_idp_identity"),
    )


def downgrade() -> None:
    """Drop federation and user tables."""
    op.drop_table("users")
    op.drop_index("ix_book_idp_idp_code", table_name="book_idp")
    op.drop_table("book_idp")
    op.drop_table("idp")
