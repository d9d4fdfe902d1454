"""Database module for SQLAlchemy models and session management."""

from app.core.database import (
    Base,
    DatabaseClient,
    async_session_maker,
    close_database,
    db_client,
    engine,
    get_async_session,
    init_database,
)
from app.database.models import (
    Company,
    Currency,
    Document,
    File,
    Invoice,
    Language,
    Object,
    ObjectRelation,
    ObjectRelationType,
    ObjectStatus,
    ObjectType,
    Person,
    Salutation,
    Sex,
    Transaction,
    TransactionType,
    Translation,
    User,
)

__all__ = [
    "Base",
    "engine",
    "async_session_maker",
    "get_async_session",
    "DatabaseClient",
    "db_client",
    "init_database",
    "close_database",
    "Language",
    "Translation",
    "ObjectType",
    "ObjectStatus",
    "Sex",
    "Salutation",
    "TransactionType",
    "Currency",
    "Object",
    "Person",
    "Company",
    "User",
    "Document",
    "Invoice",
    "Transaction",
    "File",
    "ObjectRelationType",
    "ObjectRelation",
]
