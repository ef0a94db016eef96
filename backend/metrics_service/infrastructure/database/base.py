"""Declarative base shared by the four event tables."""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

# Constraint names must match between SQLite test stores and PostgreSQL.
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)
