"""Declarative base shared by all tables."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
