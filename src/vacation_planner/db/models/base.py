"""Declarative base shared by all warehouse models."""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
