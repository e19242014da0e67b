"""
Database layer: engine, sessions and declarative base.
"""

from poap_gateway.db.database import Base, SessionLocal, engine, get_db, init_db

__all__ = ["Base", "SessionLocal", "engine", "get_db", "init_db"]
