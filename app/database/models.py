"""SQLAlchemy models for the polymorphic object store.

Every business entity owns one row in ``objects`` and one row in its
type-specific detail table keyed by the same id. Typed, directed edges
between arbitrary objects live in ``object_relations``.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    TIMESTAMP,
    BigInteger,
    Boolean,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base

# SQLite only autoincrements INTEGER PRIMARY KEY columns
BigIntId = BigInteger().with_variant(Integer, "sqlite")


# ---------------------------------------------------------------------------
# Lookup and label tables
# ---------------------------------------------------------------------------


class Language(Base):
    """Languages available for translated labels."""

    __tablename__ = "languages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(10), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Translation(Base):
    """Translated text for a lookup code in one language."""

    __tablename__ = "translations"

    code: Mapped[str] = mapped_column(String(100), primary_key=True)
    language_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("languages.id", ondelete="RESTRICT"), primary_key=True
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)


class ObjectType(Base):
    """Entity type (person, company, document, ...)."""

    __tablename__ = "object_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class ObjectStatus(Base):
    """Status values scoped to an object type."""

    __tablename__ = "object_statuses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    object_type_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("object_types.id", ondelete="RESTRICT"), nullable=False
    )


class Sex(Base):
    __tablename__ = "sexes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Salutation(Base):
    __tablename__ = "salutations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class TransactionType(Base):
    __tablename__ = "transaction_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Currency(Base):
    __tablename__ = "currencies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(3), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


# ---------------------------------------------------------------------------
# Base object identity
# ---------------------------------------------------------------------------


class Object(Base):
    """Type-agnostic identity row shared by every entity instance."""

    __tablename__ = "objects"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    object_type_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("object_types.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    object_status_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("object_statuses.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


# ---------------------------------------------------------------------------
# Entity detail tables (shared primary key with objects)
# ---------------------------------------------------------------------------


class Person(Base):
    __tablename__ = "persons"

    id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("objects.id", ondelete="CASCADE"), primary_key=True
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    middle_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    mother_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    sex_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("sexes.id", ondelete="RESTRICT"), nullable=True
    )
    salutation_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("salutations.id", ondelete="RESTRICT"), nullable=True
    )
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)


class Company(Base):
    __tablename__ = "companies"

    id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("objects.id", ondelete="CASCADE"), primary_key=True
    )
    company_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    company_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("objects.id", ondelete="CASCADE"), primary_key=True
    )
    username: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)


class Document(Base):
    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("objects.id", ondelete="CASCADE"), primary_key=True
    )
    # Translation code, labelled through the translations table directly
    document_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    document_name: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)


class Invoice(Base):
    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("objects.id", ondelete="CASCADE"), primary_key=True
    )
    invoice_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    final_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    currency_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("currencies.id", ondelete="RESTRICT"), nullable=True
    )
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_void: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("objects.id", ondelete="CASCADE"), primary_key=True
    )
    transaction_type_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("transaction_types.id", ondelete="RESTRICT"), nullable=False
    )
    transaction_date_start: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=True
    )
    transaction_date_end: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class File(Base):
    __tablename__ = "files"

    id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("objects.id", ondelete="CASCADE"), primary_key=True
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)


# ---------------------------------------------------------------------------
# Relation graph
# ---------------------------------------------------------------------------


class ObjectRelationType(Base):
    """Edge schema: allowed endpoint types and optional semantic inverse."""

    __tablename__ = "object_relation_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    parent_object_type_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("object_types.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    child_object_type_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("object_types.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    mirrored_type_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("object_relation_types.id", ondelete="SET NULL"), nullable=True
    )


class ObjectRelation(Base):
    """Directed, typed edge between two objects. Soft-deleted, never removed."""

    __tablename__ = "object_relations"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    object_from_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("objects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    object_to_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("objects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    object_relation_type_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("object_relation_types.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    note: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
    created_by: Mapped[int | None] = mapped_column(
        BigIntId, ForeignKey("objects.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (
        Index("idx_object_relations_from_to", "object_from_id", "object_to_id"),
        Index("idx_object_relations_to_from", "object_to_id", "object_from_id"),
    )
