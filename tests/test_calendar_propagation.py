"""Tests for materializing program templates into calendar events."""

from datetime import date

from forge_planner.analysis.calendar_propagation import (
    propagate, propagate_all, propagate_meals, resolve_day, week_anchor,
)
from forge_planner.analysis.context import aggregate
from forge_planner.analysis.fallback_program import build_meal_plan
from forge_planner.analysis.periodization import default_phases
from forge_planner.db.models import Program

MONDAY = date(2026, 3, 2)


def make_program(start_date=MONDAY, duration_weeks=4, templates=None):
    return Program(
        id=7,
        user_id="user-1",
        name="Test Program",
        status="active",
        start_date=start_date,
        duration_weeks=duration_weeks,
        current_week=1,
        phases=default_phases(duration_weeks),
        weekly_templates=templates if templates is not None else [
            {
                "week_number": week,
                "deload_week": week == 4,
                "training_days": [
                    {"day_of_week": "monday", "focus": "Upper Body", "duration_minutes": 60,
                     "exercises": [{"name": "Bench Press", "category": "main-lift"}]},
                    {"day_of_week": "thursday", "title": "Lower Body", "exercises": []},
                ],
                "rest_days": ["sunday", "wednesday"],
            }
            for week in range(1, duration_weeks + 1)
        ],
        nutrition_plan={"meal_plan": build_meal_plan(aggregate({}))},
        habit_plan=[],
        ai_generated=False,
    )


class TestDateResolution:
    """Test week anchoring."""

    def test_anchor_is_sunday_of_start_week(self):
        assert week_anchor(MONDAY, 1) == date(2026, 3, 1)
        assert week_anchor(MONDAY, 3) == date(2026, 3, 15)
        assert week_anchor(date(2026, 3, 1), 1) == date(2026, 3, 1)

    def test_resolve_day(self):
        assert resolve_day(MONDAY, 1, "Monday") == MONDAY
        assert resolve_day(MONDAY, 2, "thursday") == date(2026, 3, 12)
        assert resolve_day(MONDAY, 1, "someday") is None


class TestPropagate:
    """Test workout and rest-day events."""

    def test_events_for_every_week(self):
        events = propagate(make_program(), today=date(2026, 2, 1))
        workouts = [e for e in events if e.type == "workout"]
        rest = [e for e in events if e.type == "rest-day"]

        assert len(workouts) == 8
        assert len(rest) == 8
        assert workouts[0].date == MONDAY
        assert workouts[0].title == "Upper Body"
        assert workouts[1].title == "Lower Body"
        assert workouts[0].start_time == "09:00"
        assert workouts[1].duration_minutes == 60

    def test_past_dates_skipped(self):
        """Week one's Sunday rest day is before the start date and is omitted."""
        events = propagate(make_program(), today=MONDAY)
        assert min(e.date for e in events) == MONDAY
        assert all(e.date >= MONDAY for e in events)
        assert len([e for e in events if e.type == "rest-day"]) == 7

    def test_events_carry_program_context(self):
        events = propagate(make_program(), today=date(2026, 2, 1))
        deload = [e for e in events if e.week_number == 4]
        assert deload
        assert all(e.periodization_phase == "deload" for e in deload)
        assert all(e.program_id == 7 and e.user_id == "user-1" for e in events)
        assert events[0].exercises == [{"name": "Bench Press", "category": "main-lift"}]

    def test_exercises_are_copied(self):
        program = make_program()
        events = propagate(program, today=date(2026, 2, 1))
        events[0].exercises[0]["name"] = "Changed"
        assert program.weekly_templates[0]["training_days"][0]["exercises"][0]["name"] == "Bench Press"

    def test_unknown_day_skipped(self):
        templates = [{"week_number": 1, "training_days": [{"day_of_week": "funday", "exercises": []}]}]
        assert propagate(make_program(templates=templates), today=date(2026, 2, 1)) == []


class TestPropagateMeals:
    """Test nutrition events."""

    def test_five_meals_per_day(self):
        events = propagate_meals(make_program(), today=MONDAY)
        assert len(events) == 4 * 7 * 5
        first_day = [e for e in events if e.date == MONDAY]
        assert [e.start_time for e in first_day] == ["08:00", "10:30", "12:30", "15:30", "18:30"]
        assert first_day[0].meal_data["meal_type"] == "breakfast"
        assert first_day[0].duration_minutes == 30

    def test_past_meals_skipped(self):
        events = propagate_meals(make_program(), today=date(2026, 3, 9))
        assert len(events) == 3 * 7 * 5

    def test_propagate_all_combines(self):
        program = make_program()
        today = date(2026, 2, 1)
        assert len(propagate_all(program, today)) == len(propagate(program, today)) + len(propagate_meals(program, today))
