"""Materialize program templates into dated calendar events.

Each template week is anchored to the Sunday of the week containing
``start_date + (week_number - 1) * 7`` days, and training days are offset
from that Sunday. Meals are laid out day by day from ``start_date``.
Nothing is scheduled before today.
"""

import copy
import logging
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from ..config import config
from ..db.models import CalendarEvent, Program
from .periodization import phase_for_week

logger = logging.getLogger(__name__)

DAY_OFFSETS = {
    "sunday": 0,
    "monday": 1,
    "tuesday": 2,
    "wednesday": 3,
    "thursday": 4,
    "friday": 5,
    "saturday": 6,
}

MEAL_TIMES = {
    "breakfast": "08:00",
    "snack1": "10:30",
    "lunch": "12:30",
    "snack2": "15:30",
    "dinner": "18:30",
}
MEAL_LABELS = {
    "breakfast": "Breakfast",
    "snack1": "Morning Snack",
    "lunch": "Lunch",
    "snack2": "Afternoon Snack",
    "dinner": "Dinner",
}
MEAL_MINUTES = 30


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def week_anchor(start_date: date, week_number: int) -> date:
    """Sunday of the calendar week holding the given program week."""
    shifted = _as_date(start_date) + timedelta(days=(week_number - 1) * 7)
    # weekday(): Monday=0 .. Sunday=6
    return shifted - timedelta(days=(shifted.weekday() + 1) % 7)


def resolve_day(start_date: date, week_number: int, day_name: str) -> Optional[date]:
    offset = DAY_OFFSETS.get(str(day_name or "").lower())
    if offset is None:
        return None
    return week_anchor(start_date, week_number) + timedelta(days=offset)


def _phase_name(program: Program, week_number: int) -> Optional[str]:
    phase = phase_for_week(program.phases or [], week_number)
    return phase.get("name") if phase else None


def propagate(program: Program, today: Optional[date] = None) -> List[CalendarEvent]:
    """Build workout and rest-day events for every template week.

    Args:
        program: Saved program (needs an id)
        today: Reference date, defaults to today

    Returns:
        Unsaved CalendarEvent instances, none dated before today
    """
    today = today or date.today()
    events = []
    skipped_past = 0

    for template in program.weekly_templates or []:
        week = template.get("week_number")
        if not week:
            continue
        phase = _phase_name(program, week)

        for day in template.get("training_days") or []:
            event_date = resolve_day(program.start_date, week, day.get("day_of_week"))
            if event_date is None:
                logger.warning(f"Program {program.id} week {week}: unknown day '{day.get('day_of_week')}'")
                continue
            if event_date < today:
                skipped_past += 1
                continue
            events.append(CalendarEvent(
                user_id=program.user_id,
                program_id=program.id,
                type="workout",
                title=day.get("focus") or day.get("title") or day.get("day_of_week").title(),
                date=event_date,
                start_time=config.DEFAULT_WORKOUT_TIME,
                duration_minutes=day.get("duration_minutes") or config.DEFAULT_WORKOUT_MINUTES,
                exercises=copy.deepcopy(day.get("exercises") or []),
                week_number=week,
                periodization_phase=phase,
                status="scheduled",
                ai_generated=bool(program.ai_generated),
            ))

        for rest_day in template.get("rest_days") or []:
            event_date = resolve_day(program.start_date, week, rest_day)
            if event_date is None:
                logger.warning(f"Program {program.id} week {week}: unknown rest day '{rest_day}'")
                continue
            if event_date < today:
                skipped_past += 1
                continue
            events.append(CalendarEvent(
                user_id=program.user_id,
                program_id=program.id,
                type="rest-day",
                title="Rest Day",
                date=event_date,
                exercises=[],
                week_number=week,
                periodization_phase=phase,
                status="scheduled",
                ai_generated=bool(program.ai_generated),
            ))

    logger.debug(f"Program {program.id}: {len(events)} training events, {skipped_past} past dates skipped")
    return events


def propagate_meals(program: Program, today: Optional[date] = None) -> List[CalendarEvent]:
    """One nutrition event per meal slot per program day from start_date."""
    today = today or date.today()
    meal_plan: Dict[str, Dict] = (program.nutrition_plan or {}).get("meal_plan") or {}
    start = _as_date(program.start_date)
    events = []

    for day_index in range(program.duration_weeks * 7):
        event_date = start + timedelta(days=day_index)
        if event_date < today:
            continue
        week = day_index // 7 + 1
        for slot, start_time in MEAL_TIMES.items():
            meal = meal_plan.get(slot)
            if not meal:
                continue
            snapshot = copy.deepcopy(meal)
            snapshot["meal_type"] = slot
            events.append(CalendarEvent(
                user_id=program.user_id,
                program_id=program.id,
                type="nutrition",
                title=meal.get("name") or MEAL_LABELS[slot],
                description=meal.get("description"),
                date=event_date,
                start_time=start_time,
                duration_minutes=MEAL_MINUTES,
                meal_data=snapshot,
                exercises=[],
                week_number=week,
                periodization_phase=_phase_name(program, week),
                status="scheduled",
                ai_generated=bool(program.ai_generated),
            ))
    return events


def propagate_all(program: Program, today: Optional[date] = None) -> List[CalendarEvent]:
    today = today or date.today()
    return propagate(program, today) + propagate_meals(program, today)
