"""SQLAlchemy ORM base and model registry."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for the local draft-store models."""

    pass
