"""Warehouse access: engine, session factory and ORM base."""
from .session import ENGINE, SessionLocal, build_dsn
from .models import Base

__all__ = ["ENGINE", "SessionLocal", "build_dsn", "Base"]
