"""SQLAlchemy table definitions - dialect-agnostic (works with SQLite and PostgreSQL)."""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)

# Metadata object for all tables
metadata = MetaData()

# ============================================================================
# IDP TABLE (federation members, maintained by catalog administration)
# ============================================================================
idp_table = Table(
    "idp",
    metadata,
    Column("code", String(50), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("entity_id", String(1024), nullable=True),  # Defaults to entry_point
    Column("entry_point", String(1024), nullable=False),
    Column("logout_url", String(1024), nullable=True),
    Column("idp_cert", Text, nullable=False),
    Column("sp_key", Text, nullable=False),
    Column("sp_cert", Text, nullable=False),
    Column("language", String(10), nullable=True),
    Column("logo_src", String(1024), nullable=True),
    Column("small_logo_src", String(1024), nullable=True),
)


# ============================================================================
# BOOK-IDP TABLE (which institution's readers may open which book)
# ============================================================================
book_idp_table = Table(
    "book_idp",
    metadata,
    Column("book_id", Integer, primary_key=True),
    Column("idp_code", String(50), ForeignKey("idp.code"), primary_key=True),
)

Index("ix_book_idp_idp_code", book_idp_table.c.idp_code)


# ============================================================================
# USERS TABLE (provisioned on first login)
# ============================================================================
users_table = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id_from_idp", String(255), nullable=False),
    Column("idp_code", String(50), ForeignKey("idp.code"), nullable=False),
    Column("email", String(255), nullable=False),
    Column("last_login_at", DateTime(timezone=True), nullable=False),
    UniqueConstraint("user_id_from_idp", "idp_code", name="uq_users_idp_identity"),
)
