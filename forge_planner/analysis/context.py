"""User context aggregation.

Turns a loosely structured user profile into an immutable ``UserContext``
with energy needs, macro targets, schedule and exercise exclusions. Missing
or malformed fields resolve to defaults; aggregation never fails.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

WEEKDAYS = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]
# Order used when padding preferred days
PREFERRED_DAY_ORDER = ["monday", "tuesday", "thursday", "friday", "wednesday", "saturday", "sunday"]

DEFAULT_BODYWEIGHT = 180.0
DEFAULT_DAYS_PER_WEEK = 4
DEFAULT_PREFERRED_DAYS = ["monday", "tuesday", "thursday", "friday"]
DEFAULT_ACTIVITY_LEVEL = "moderately-active"
DEFAULT_EXPERIENCE = "intermediate"
DEFAULT_GOAL = "general-health"
DEFAULT_DISCIPLINE = "general-fitness"
DEFAULT_EQUIPMENT = ["barbell", "dumbbells", "cable-machine"]

ACTIVITY_MULTIPLIERS = {
    "sedentary": 1.2,
    "lightly-active": 1.375,
    "moderately-active": 1.55,
    "very-active": 1.725,
    "extremely-active": 1.9,
}

GOAL_CALORIE_ADJUSTMENTS = {
    "lose-fat": 0.8,
    "cut": 0.8,
    "build-muscle": 1.1,
    "bulk": 1.1,
}

HIGH_PROTEIN_GOALS = ("build-muscle", "build-strength")

EXPERIENCE_TIERS = ("complete-beginner", "beginner", "intermediate", "advanced", "elite")


@dataclass(frozen=True)
class Macros:
    protein: int
    carbs: int
    fat: int

    @property
    def calories(self) -> int:
        return self.protein * 4 + self.carbs * 4 + self.fat * 9

    def to_dict(self) -> Dict[str, int]:
        return {"protein": self.protein, "carbs": self.carbs, "fat": self.fat}


@dataclass(frozen=True)
class UserContext:
    """Read-only snapshot of everything generation needs about a user."""
    target_calories: int
    macros: Macros
    days_per_week: int
    preferred_days: Tuple[str, ...]
    experience_tier: str
    goal: str
    discipline: str
    equipment: Tuple[str, ...]
    favorite_exercises: Tuple[str, ...]
    excluded_exercises: Tuple[str, ...]
    injuries: Tuple[str, ...]
    bodyweight: float
    tdee: int
    activity_level: str
    name: str = "Athlete"

    def is_excluded(self, exercise_name: str) -> bool:
        """Exact case-insensitive match against the exclusion list.

        Catalog exercises whose primary muscles load an injured body part
        are excluded as well.
        """
        from .exercise_bank import stresses_injury
        from .records import normalize_exercise_name
        target = normalize_exercise_name(exercise_name)
        if any(normalize_exercise_name(name) == target for name in self.excluded_exercises):
            return True
        return stresses_injury(exercise_name, self.injuries)


def _as_positive_number(value, default: float) -> float:
    if isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def _as_int(value, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_str_list(value) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


def _injury_parts(injuries) -> List[str]:
    parts = []
    for injury in injuries or []:
        if isinstance(injury, dict):
            part = injury.get("body_part") or injury.get("bodyPart")
        else:
            part = injury
        if part:
            parts.append(str(part).strip())
    return parts


def dedupe_case_insensitive(names: Iterable[str]) -> List[str]:
    """Remove duplicates ignoring case, keeping the first spelling."""
    seen = set()
    result = []
    for name in names:
        key = name.lower()
        if key not in seen:
            seen.add(key)
            result.append(name)
    return result


def calculate_tdee(bodyweight: float, activity_level: str) -> int:
    multiplier = ACTIVITY_MULTIPLIERS.get(activity_level, ACTIVITY_MULTIPLIERS[DEFAULT_ACTIVITY_LEVEL])
    return int(round(bodyweight * 15 * multiplier))


def calculate_macros(bodyweight: float, calories: int, goal: str) -> Macros:
    """Protein from bodyweight, 30% of calories from fat, remainder from carbs."""
    protein_per_lb = 1.2 if goal in HIGH_PROTEIN_GOALS else 1.0
    protein = int(round(bodyweight * protein_per_lb))
    fat = int(round(calories * 0.30 / 9))
    carbs = int(round((calories - protein * 4 - fat * 9) / 4))
    return Macros(protein=protein, carbs=max(0, carbs), fat=fat)


def _resolve_preferred_days(raw, days_per_week: int) -> List[str]:
    days = []
    for day in _as_str_list(raw):
        day = day.lower()
        if day in WEEKDAYS and day not in days:
            days.append(day)
    if not days:
        days = list(DEFAULT_PREFERRED_DAYS)
    for day in PREFERRED_DAY_ORDER:
        if len(days) >= days_per_week:
            break
        if day not in days:
            days.append(day)
    return days[:days_per_week]


def aggregate(user_profile: Optional[Dict[str, Any]]) -> UserContext:
    """Build a UserContext from a user profile.

    The profile is a flat dict; nested ``schedule``, ``exercise_preferences``
    and ``limitations`` sections are also read when present.

    Args:
        user_profile: Raw profile data, may be empty or partial

    Returns:
        Frozen UserContext
    """
    profile = user_profile if isinstance(user_profile, dict) else {}
    schedule = profile.get("schedule") if isinstance(profile.get("schedule"), dict) else {}
    preferences = profile.get("exercise_preferences") if isinstance(profile.get("exercise_preferences"), dict) else {}
    limitations = profile.get("limitations") if isinstance(profile.get("limitations"), dict) else {}

    bodyweight = _as_positive_number(profile.get("bodyweight", profile.get("current_weight")), DEFAULT_BODYWEIGHT)

    activity_level = profile.get("activity_level") or DEFAULT_ACTIVITY_LEVEL
    if activity_level not in ACTIVITY_MULTIPLIERS:
        logger.warning(f"Unknown activity level '{activity_level}', using {DEFAULT_ACTIVITY_LEVEL}")
        activity_level = DEFAULT_ACTIVITY_LEVEL

    goal = str(profile.get("goal") or DEFAULT_GOAL)
    experience = str(profile.get("experience") or profile.get("experience_level") or DEFAULT_EXPERIENCE)
    if experience not in EXPERIENCE_TIERS:
        experience = DEFAULT_EXPERIENCE
    discipline = str(profile.get("discipline") or DEFAULT_DISCIPLINE)

    days_per_week = _as_int(schedule.get("days_per_week", profile.get("days_per_week")), DEFAULT_DAYS_PER_WEEK)
    days_per_week = min(7, max(1, days_per_week))
    preferred_days = _resolve_preferred_days(
        schedule.get("preferred_days", profile.get("preferred_days")), days_per_week
    )

    tdee = calculate_tdee(bodyweight, activity_level)
    target_calories = int(round(tdee * GOAL_CALORIE_ADJUSTMENTS.get(goal, 1.0)))
    macros = calculate_macros(bodyweight, target_calories, goal)

    injuries = _injury_parts(limitations.get("injuries", profile.get("injuries")))
    excluded = dedupe_case_insensitive(
        _as_str_list(preferences.get("hated_exercises", profile.get("hated_exercises")))
        + _as_str_list(preferences.get("exercises_to_avoid", profile.get("exercises_to_avoid")))
        + injuries
    )

    equipment = _as_str_list(profile.get("equipment")) or list(DEFAULT_EQUIPMENT)
    favorites = _as_str_list(preferences.get("favorite_exercises", profile.get("favorite_exercises")))

    return UserContext(
        target_calories=target_calories,
        macros=macros,
        days_per_week=days_per_week,
        preferred_days=tuple(preferred_days),
        experience_tier=experience,
        goal=goal,
        discipline=discipline,
        equipment=tuple(equipment),
        favorite_exercises=tuple(favorites),
        excluded_exercises=tuple(excluded),
        injuries=tuple(injuries),
        bodyweight=bodyweight,
        tdee=tdee,
        activity_level=activity_level,
        name=str(profile.get("name") or "Athlete"),
    )
