"""Shared fixtures."""

import pytest

from forge_planner.analysis.context import aggregate
from forge_planner.db import Database, ProgramStore


POWERLIFTING_PROFILE = {
    "name": "Sam",
    "bodyweight": 200,
    "activity_level": "moderately-active",
    "goal": "build-strength",
    "experience": "intermediate",
    "discipline": "powerlifting",
    "schedule": {"days_per_week": 4, "preferred_days": ["monday", "tuesday", "thursday", "friday"]},
    "exercise_preferences": {"hated_exercises": ["Good Mornings"]},
    "equipment": ["barbell", "dumbbells", "cable-machine"],
}


@pytest.fixture
def powerlifting_profile():
    return dict(POWERLIFTING_PROFILE)


@pytest.fixture
def powerlifting_ctx():
    return aggregate(POWERLIFTING_PROFILE)


@pytest.fixture
def memory_db():
    db = Database("sqlite://")
    db.create_tables()
    yield db
    db.close()


@pytest.fixture
def store(memory_db):
    return ProgramStore(db=memory_db)
