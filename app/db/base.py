"""
Declarative base for all ORM models.

Alembic and the test fixtures read Base.metadata to create tables.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
