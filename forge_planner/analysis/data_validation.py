"""Structural validation for generated programs.

Checks a candidate program against the structural invariants every stored
program must satisfy. Fixable problems (missing habits, phase formats,
intensity ranges, short template lists) are repaired on a copy; anything
else rejects the candidate so the caller can fall back.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..config import config
from .fallback_program import default_habits, rest_days
from .periodization import (
    PeriodizationType, default_phases, fill_phase_targets, normalize_phase,
)

logger = logging.getLogger(__name__)

REQUIRED_CATEGORIES = ("warmup", "main-lift", "accessory", "cooldown")
CATEGORY_ALIASES = {
    "warm-up": "warmup",
    "warm up": "warmup",
    "primary": "main-lift",
    "main": "main-lift",
    "main lift": "main-lift",
    "compound": "main-lift",
    "secondary": "accessory",
    "isolation": "accessory",
    "core": "accessory",
    "stretch": "cooldown",
    "mobility": "cooldown",
    "cool-down": "cooldown",
    "cool down": "cooldown",
}

MEAL_SLOTS = ("breakfast", "snack1", "lunch", "snack2", "dinner")
MEAL_NUMBER_FIELDS = ("calories", "protein", "carbs", "fat")

HABIT_FREQUENCIES = ("daily", "weekdays", "weekends", "specific-days", "x-per-week")
HABIT_FREQUENCY_ALIASES = {"weekly": "x-per-week", "everyday": "daily", "every-day": "daily"}
HABIT_TRACKING_TYPES = ("boolean", "quantity", "duration", "rating")

DEFAULT_REST = {
    "warmup": "30 sec",
    "main-lift": "3-4 min",
    "accessory": "90 sec",
    "cooldown": "none",
}


@dataclass
class ProgramValidationResult:
    """Outcome of structural validation."""
    ok: bool
    payload: Optional[Dict[str, Any]] = None  # repaired copy when ok
    repaired: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def reason(self) -> Optional[str]:
        return "; ".join(self.errors) if self.errors else None


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def canonical_category(category) -> str:
    key = str(category or "").strip().lower()
    return CATEGORY_ALIASES.get(key, key)


class ProgramValidator:
    """Repair-or-reject validator for program payloads."""

    def __init__(self, min_exercises_per_day: Optional[int] = None,
                 min_weeks: Optional[int] = None, max_weeks: Optional[int] = None):
        self.min_exercises_per_day = min_exercises_per_day or config.MIN_EXERCISES_PER_DAY
        self.min_weeks = min_weeks or config.MIN_PROGRAM_WEEKS
        self.max_weeks = max_weeks or config.MAX_PROGRAM_WEEKS
        self.logger = logging.getLogger(__name__)

    def validate(self, candidate: Any, expected_days_per_week: Optional[int] = None,
                 strict_day_count: bool = False) -> ProgramValidationResult:
        """Validate a candidate program.

        Args:
            candidate: Program payload with snake_case keys
            expected_days_per_week: Training days the user asked for
            strict_day_count: Treat a day-count mismatch as an error

        Returns:
            ProgramValidationResult with the repaired payload when ok
        """
        result = ProgramValidationResult(ok=False)
        if not isinstance(candidate, dict):
            result.errors.append("program is not an object")
            return result

        program = copy.deepcopy(candidate)

        duration = self._check_duration(program, result)
        if duration is not None:
            self._repair_periodization(program, duration, result)
        self._check_templates(program, duration, expected_days_per_week, strict_day_count, result)
        self._check_nutrition(program, result)
        self._repair_habits(program, result)

        for message in result.repaired:
            self.logger.info(f"Repaired: {message}")
        for message in result.warnings:
            self.logger.warning(message)

        result.ok = not result.errors
        if result.ok:
            result.payload = program
        else:
            self.logger.warning(f"Program rejected: {result.reason}")
        return result

    def _check_duration(self, program, result) -> Optional[int]:
        duration = program.get("duration_weeks")
        if isinstance(duration, str) and duration.strip().isdigit():
            duration = int(duration.strip())
            program["duration_weeks"] = duration
            result.repaired.append("duration_weeks converted to integer")
        if isinstance(duration, float) and duration.is_integer():
            duration = int(duration)
            program["duration_weeks"] = duration
        if not isinstance(duration, int) or isinstance(duration, bool):
            result.errors.append("duration_weeks missing or not an integer")
            return None
        if duration < self.min_weeks:
            result.errors.append(f"duration_weeks {duration} below minimum {self.min_weeks}")
            return None
        if duration > self.max_weeks:
            result.errors.append(f"duration_weeks {duration} above maximum {self.max_weeks}")
            return None
        return duration

    def _repair_periodization(self, program, duration, result):
        periodization = program.get("periodization")
        if not isinstance(periodization, dict):
            periodization = {}
            program["periodization"] = periodization

        model = str(periodization.get("model") or "").lower()
        if model not in {p.value for p in PeriodizationType}:
            periodization["model"] = PeriodizationType.LINEAR.value
            result.repaired.append(f"periodization model '{model or 'missing'}' set to linear")
        else:
            periodization["model"] = model

        phases = periodization.get("phases")
        if not isinstance(phases, list) or not [p for p in phases if isinstance(p, dict)]:
            periodization["phases"] = default_phases(duration)
            result.repaired.append("default phases generated")
            return

        normalized = []
        for phase in phases:
            if not isinstance(phase, dict):
                continue
            if "weeks" in phase:
                result.repaired.append(f"phase '{phase.get('name')}' weeks list converted to range")
            phase = normalize_phase(phase)
            for repaired_field in fill_phase_targets(phase):
                result.repaired.append(f"phase '{phase['name']}' {repaired_field} defaulted")
            normalized.append(phase)
        periodization["phases"] = normalized

    def _check_exercises(self, day, label, result):
        exercises = day.get("exercises")
        if not isinstance(exercises, list):
            result.errors.append(f"{label}: exercises missing")
            return

        categories = set()
        for exercise in exercises:
            if not isinstance(exercise, dict) or not exercise.get("name"):
                result.errors.append(f"{label}: exercise without a name")
                continue
            category = canonical_category(exercise.get("category"))
            if category != exercise.get("category"):
                exercise["category"] = category
            categories.add(category)
            if _is_number(exercise.get("reps")):
                exercise["reps"] = str(exercise["reps"])
            if not exercise.get("rest"):
                exercise["rest"] = DEFAULT_REST.get(category, "60 sec")
            exercise.setdefault("notes", "")

        if len(exercises) < self.min_exercises_per_day:
            result.errors.append(
                f"{label}: {len(exercises)} exercises, need at least {self.min_exercises_per_day}"
            )
        missing = [c for c in REQUIRED_CATEGORIES if c not in categories]
        if missing:
            result.errors.append(f"{label}: missing categories {', '.join(missing)}")

    def _check_templates(self, program, duration, expected_days, strict_day_count, result):
        templates = program.get("weekly_templates")
        if not isinstance(templates, list) or not [t for t in templates if isinstance(t, dict)]:
            result.errors.append("no weekly templates")
            return
        templates = [t for t in templates if isinstance(t, dict)]

        week_numbers = [t.get("week_number") for t in templates]
        valid_numbers = [w for w in week_numbers if isinstance(w, int) and not isinstance(w, bool) and w >= 1]
        if len(valid_numbers) != len(templates) or len(set(valid_numbers)) != len(valid_numbers):
            for index, template in enumerate(templates):
                template["week_number"] = index + 1
            result.repaired.append("weekly templates renumbered")
        templates.sort(key=lambda t: t["week_number"])

        for template in templates:
            week = template["week_number"]
            days = template.get("training_days")
            if not isinstance(days, list) or not days:
                result.errors.append(f"week {week}: no training days")
                continue
            for day in days:
                if not isinstance(day, dict):
                    result.errors.append(f"week {week}: malformed training day")
                    continue
                day["day_of_week"] = str(day.get("day_of_week") or "").lower()
                day.setdefault("focus", day.get("title") or "Training")
                day.setdefault("title", day["focus"])
                self._check_exercises(day, f"week {week} {day['day_of_week'] or 'day'}", result)

            if expected_days and len(days) != expected_days:
                message = f"week {week}: {len(days)} training days, expected {expected_days}"
                if strict_day_count:
                    result.errors.append(message)
                else:
                    result.warnings.append(message)

            if not isinstance(template.get("rest_days"), list):
                template["rest_days"] = rest_days([d.get("day_of_week") for d in days if isinstance(d, dict)])
            template["deload_week"] = bool(template.get("deload_week"))

        if duration is not None and len(templates) < duration:
            supplied = len(templates)
            for week in range(supplied + 1, duration + 1):
                extension = copy.deepcopy(templates[(week - 1) % supplied])
                extension["week_number"] = week
                templates.append(extension)
            result.repaired.append(f"weekly templates extended from {supplied} to {duration} weeks")

        program["weekly_templates"] = templates

    def _check_nutrition(self, program, result):
        nutrition = program.get("nutrition_plan")
        meal_plan = nutrition.get("meal_plan") if isinstance(nutrition, dict) else None
        if not isinstance(meal_plan, dict):
            result.errors.append("nutrition_plan.meal_plan missing")
            return

        for slot in MEAL_SLOTS:
            meal = meal_plan.get(slot)
            if not isinstance(meal, dict):
                result.errors.append(f"meal '{slot}' missing")
                continue
            if "ingredients" not in meal and isinstance(meal.get("foods"), list):
                meal["ingredients"] = meal.pop("foods")
            problems = [name for name in ("name", "description", "prep_time") if not meal.get(name)]
            problems += [name for name in MEAL_NUMBER_FIELDS if not _is_number(meal.get(name))]
            if not isinstance(meal.get("ingredients"), list) or not meal["ingredients"]:
                problems.append("ingredients")
            if problems:
                result.errors.append(f"meal '{slot}' missing {', '.join(problems)}")

    def _repair_habits(self, program, result):
        habits = program.get("habit_plan")
        if not isinstance(habits, list) or not habits:
            nutrition = program.get("nutrition_plan")
            macros = nutrition.get("macros") if isinstance(nutrition, dict) else None
            protein = macros.get("protein") if isinstance(macros, dict) else None
            program["habit_plan"] = default_habits(protein if _is_number(protein) else 0)
            result.repaired.append("default habit plan added")
            return

        sanitized = []
        for habit in habits:
            if not isinstance(habit, dict) or not habit.get("name"):
                result.repaired.append("unnamed habit dropped")
                continue
            frequency = str(habit.get("frequency") or "daily").lower()
            frequency = HABIT_FREQUENCY_ALIASES.get(frequency, frequency)
            if frequency not in HABIT_FREQUENCIES:
                result.repaired.append(f"habit '{habit['name']}' frequency '{frequency}' set to daily")
                frequency = "daily"
            tracking = str(habit.get("tracking_type") or "boolean").lower()
            if tracking not in HABIT_TRACKING_TYPES:
                result.repaired.append(f"habit '{habit['name']}' tracking '{tracking}' set to boolean")
                tracking = "boolean"
            sanitized.append({**habit, "frequency": frequency, "tracking_type": tracking})
        program["habit_plan"] = sanitized


def validate_program(candidate: Any, expected_days_per_week: Optional[int] = None,
                     strict_day_count: bool = False) -> ProgramValidationResult:
    return ProgramValidator().validate(candidate, expected_days_per_week, strict_day_count)


def validate_day(day: Any, min_exercises_per_day: Optional[int] = None) -> ProgramValidationResult:
    """Check a single training day (used for one-off sessions)."""
    result = ProgramValidationResult(ok=False)
    if not isinstance(day, dict):
        result.errors.append("day is not an object")
        return result
    checked = copy.deepcopy(day)
    ProgramValidator(min_exercises_per_day=min_exercises_per_day)._check_exercises(checked, "session", result)
    result.ok = not result.errors
    if result.ok:
        result.payload = checked
    return result
