"""Database module for FORGE planner."""

from .database import Database, get_db, close_db
from .models import Base, Program, CalendarEvent, PersonalRecord
from .store import ProgramStore, ProgramNotFound, PropagationError, UserLockRegistry

__all__ = [
    "Database",
    "get_db",
    "close_db",
    "Base",
    "Program",
    "CalendarEvent",
    "PersonalRecord",
    "ProgramStore",
    "ProgramNotFound",
    "PropagationError",
    "UserLockRegistry",
]
