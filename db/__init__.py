"""Persistence for reservations: ORM model, engine and session helpers."""

from .base import Base
from .models_sqlalchemy import SLOT_UNIQUE_CONSTRAINT, Reservation
from .session import create_engine, create_session_factory, init_db, ping_db

__all__ = [
    "Base",
    "Reservation",
    "SLOT_UNIQUE_CONSTRAINT",
    "create_engine",
    "create_session_factory",
    "init_db",
    "ping_db",
]
