"""Declarative base for Portier store tables."""

from sqlalchemy.orm import DeclarativeBase


class BaseEntity(DeclarativeBase):
    """Base class for all Portier store entities."""
