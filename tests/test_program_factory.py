"""Tests for end-to-end program creation."""

from datetime import date

import pytest

from forge_planner.analysis.program_generator import ProgramGenerator
from forge_planner.db import ProgramNotFound, ProgramStore, PropagationError
from forge_planner.program_factory import ProgramFactory
from forge_planner.rate_limit import RequestThrottle, RequestThrottled

START = date(2026, 3, 2)


class FailingStore(ProgramStore):
    """Store whose calendar writes always fail."""

    def replace_future_events(self, program_id, events, today=None):
        raise PropagationError(f"Could not write calendar events for program {program_id}")


class TestProgramFactory:
    """Test the generation pipeline."""

    def make_factory(self, store, cooldown=0):
        return ProgramFactory(
            store=store,
            generator=ProgramGenerator(use_ai=False),
            throttle=RequestThrottle(cooldown_seconds=cooldown),
        )

    def test_create_program_for_user(self, store, powerlifting_profile):
        factory = self.make_factory(store)
        result = factory.create_program_for_user("lifter", powerlifting_profile, start_date=START, today=START)

        assert result.propagated
        assert result.program.status == "active"
        assert result.program.last_propagated_at is not None
        assert not result.program.ai_generated
        assert result.outcome.source == "synthesized"
        assert result.stats == {
            "weeks": 8,
            "workouts": 32,
            "meals": 280,
            "habits": 4,
            "events": result.events_scheduled,
        }
        # 32 workouts, 24 rest days minus the Sunday before the start, 280 meals
        assert result.events_scheduled == 32 + 23 + 280

    def test_deload_weeks_annotated(self, store, powerlifting_profile):
        result = self.make_factory(store).create_program_for_user("lifter", powerlifting_profile, START, today=START)
        flags = [t["deload_week"] for t in result.program.weekly_templates]
        assert flags == [False, False, False, True, False, False, False, True]

    def test_excluded_exercise_absent_from_calendar(self, store, powerlifting_profile):
        self.make_factory(store).create_program_for_user("lifter", powerlifting_profile, START, today=START)
        workouts = store.get_events_in_range("lifter", START, date(2026, 5, 1), types=["workout"])
        names = {e["name"] for event in workouts for e in event.exercises}
        assert "Good Mornings" not in names
        assert "Barbell Squat" in names

    def test_second_program_replaces_first(self, store, powerlifting_profile):
        factory = self.make_factory(store)
        first = factory.create_program_for_user("lifter", powerlifting_profile, START, today=START)
        second = factory.create_program_for_user("lifter", powerlifting_profile, START, today=START)

        assert store.get_active_program("lifter").id == second.program.id
        assert store.get_program(first.program.id).status == "paused"

        workouts = store.get_events_in_range("lifter", START, START, types=["workout"])
        assert {e.program_id for e in workouts} == {second.program.id}
        assert store.get_program_events(first.program.id) == []

    def test_throttled(self, store, powerlifting_profile):
        factory = self.make_factory(store, cooldown=60)
        factory.create_program_for_user("lifter", powerlifting_profile, START, today=START)
        with pytest.raises(RequestThrottled):
            factory.create_program_for_user("lifter", powerlifting_profile, START, today=START)

    def test_propagation_failure_keeps_program(self, memory_db, powerlifting_profile):
        store = FailingStore(db=memory_db)
        result = self.make_factory(store).create_program_for_user("lifter", powerlifting_profile, START, today=START)

        assert not result.propagated
        assert "calendar events" in result.propagation_error
        assert result.events_scheduled == 0
        assert store.get_active_program("lifter").id == result.program.id

    def test_repropagate_and_progress(self, store, powerlifting_profile):
        factory = self.make_factory(store)
        created = factory.create_program_for_user("lifter", powerlifting_profile, START, today=START)

        assert factory.repropagate("lifter", today=START) == created.events_scheduled
        assert factory.progress_user("lifter").current_week == 2
        assert factory.progress_all() == {"progressed": 1, "completed": 0}

    def test_missing_active_program(self, store):
        factory = self.make_factory(store)
        with pytest.raises(ProgramNotFound):
            factory.progress_user("nobody")
        with pytest.raises(ProgramNotFound):
            factory.repropagate("nobody")
