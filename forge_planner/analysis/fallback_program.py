"""Deterministic program synthesis.

Builds a complete program from a ``UserContext`` without any external
service: day splits by discipline, exercise selection from the discipline
banks, periodized deloads, a meal plan and a default habit plan. The same
context always produces the same program.
"""

import logging
from typing import Any, Dict, List, Optional

from ..config import config
from .context import UserContext
from .exercise_bank import (
    COOLDOWN_POOLS, WARMUP_FAMILIES, get_compound_exercises, get_discipline_bank,
)
from .periodization import (
    PeriodizationType, default_phases, deload_weeks, phase_for_week,
)
from .records import normalize_exercise_name

logger = logging.getLogger(__name__)

DAY_SPLITS: Dict[str, Dict[int, List[str]]] = {
    "powerlifting": {
        3: ["Squat Focus", "Bench Focus", "Deadlift Focus"],
        4: ["Squat/Quads", "Bench/Push", "Deadlift/Pull", "Upper Volume"],
        5: ["Squat Heavy", "Bench Heavy", "Deadlift Heavy", "Upper Volume", "Lower Volume"],
        6: ["Squat Heavy", "Bench Heavy", "Deadlift Heavy", "Squat Volume", "Bench Volume", "Accessories"],
    },
    "bodybuilding": {
        3: ["Push", "Pull", "Legs"],
        4: ["Chest/Triceps", "Back/Biceps", "Legs", "Shoulders/Arms"],
        5: ["Chest", "Back", "Shoulders", "Legs", "Arms"],
        6: ["Push", "Pull", "Legs", "Push", "Pull", "Legs"],
    },
    "general-fitness": {
        3: ["Full Body A", "Full Body B", "Full Body C"],
        4: ["Upper Body", "Lower Body", "Upper Body", "Lower Body"],
        5: ["Upper Push", "Lower", "Upper Pull", "Lower", "Full Body"],
        6: ["Push", "Pull", "Legs", "Push", "Pull", "Legs"],
    },
}

ACCESSORY_COUNTS = {
    "complete-beginner": 2,
    "beginner": 3,
    "intermediate": 4,
    "advanced": 5,
    "elite": 6,
}

WEEK_ORDER = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

MAIN_LIFTS_PER_DAY = 2
CORE_ACCESSORIES_PER_DAY = 2
MIN_WARMUPS = 2
MIN_COOLDOWNS = 2
DELOAD_SET_FACTOR = 0.6
DELOAD_RPE_DROP = 2
MAIN_LIFT_RPE = 8
ACCESSORY_RPE = 7

MEAL_SHARES = {
    "breakfast": 0.20,
    "snack1": 0.12,
    "lunch": 0.25,
    "snack2": 0.13,
    "dinner": 0.30,
}

MEAL_TEMPLATES = {
    "breakfast": ("Power Breakfast", "Eggs and oats to start the day with protein and slow carbs",
                  ["Eggs", "Oatmeal", "Banana"], "10 min"),
    "snack1": ("Mid-Morning Fuel", "Protein-rich snack to bridge breakfast and lunch",
               ["Greek Yogurt", "Almonds"], "2 min"),
    "lunch": ("Balanced Lunch", "Lean protein, rice and vegetables",
              ["Chicken Breast", "Rice", "Vegetables"], "15 min"),
    "snack2": ("Pre-Workout", "Fast-digesting protein and carbs before training",
               ["Protein Shake", "Apple"], "2 min"),
    "dinner": ("Recovery Dinner", "Omega-3 rich protein with starchy carbs and greens",
               ["Salmon", "Sweet Potato", "Broccoli"], "25 min"),
}


def _has_any(text: str, keywords) -> bool:
    return any(keyword in text for keyword in keywords)


def day_focus(day_index: int, discipline: str, days_per_week: int) -> str:
    """Focus for the n-th training day of the week.

    Unknown disciplines use the general fitness splits and unsupported day
    counts use the 4-day split.
    """
    splits = DAY_SPLITS.get(discipline, DAY_SPLITS["general-fitness"])
    split = splits.get(days_per_week, splits[4])
    return split[day_index % len(split)]


def warmup_family(focus: str) -> str:
    focus = focus.lower()
    if _has_any(focus, ("lower", "leg", "squat", "deadlift", "quad")):
        return "lower"
    if _has_any(focus, ("upper", "push", "bench", "chest", "shoulder", "arm")):
        return "upper"
    if _has_any(focus, ("pull", "back")):
        return "pull"
    return "general"


def cooldown_region(focus: str) -> str:
    family = warmup_family(focus)
    if family == "pull":
        return "upper"
    return family


def primary_categories(focus: str) -> List[str]:
    focus = focus.lower()
    if _has_any(focus, ("squat", "quad", "legs", "lower")):
        return ["lower-quad", "lower-hip", "legs", "lower"]
    if _has_any(focus, ("bench", "push", "chest")):
        return ["upper-push", "chest"]
    if _has_any(focus, ("deadlift", "pull", "back")):
        return ["lower-hip", "upper-pull", "back"]
    if "upper" in focus:
        return ["upper-push", "upper-pull"]
    if "full" in focus:
        return ["upper", "lower", "full"]
    if _has_any(focus, ("shoulder", "arm")):
        return ["shoulders", "upper-push"]
    return []


def accessory_categories(focus: str) -> List[str]:
    focus = focus.lower()
    if _has_any(focus, ("lower", "leg")):
        return ["lower-quad", "lower-hip", "legs", "lower", "core", "accessory"]
    if _has_any(focus, ("upper", "push", "pull")):
        return ["upper-push", "upper-pull", "shoulders", "arms", "accessory"]
    return ["upper", "lower", "core", "accessory"]


def _pool(bank: Dict[str, List[str]], categories: List[str]) -> List[str]:
    names = []
    for category in categories:
        for name in bank.get(category, []):
            if name not in names:
                names.append(name)
    return names


class _DayBuilder:
    """Assembles one training day while tracking names already used."""

    def __init__(self, ctx: UserContext, is_deload: bool, percentage_of_max: Optional[float]):
        self.ctx = ctx
        self.is_deload = is_deload
        self.percentage_of_max = percentage_of_max
        self.exercises: List[Dict[str, Any]] = []
        self.used = set()

    def available(self, name: str) -> bool:
        key = normalize_exercise_name(name)
        return key not in self.used and not self.ctx.is_excluded(name)

    def add(self, exercise: Dict[str, Any]):
        self.used.add(normalize_exercise_name(exercise["name"]))
        self.exercises.append(exercise)

    def sets(self, base: int) -> int:
        if not self.is_deload:
            return base
        return max(1, round(base * DELOAD_SET_FACTOR))

    def rpe(self, base: int) -> int:
        return base - DELOAD_RPE_DROP if self.is_deload else base

    def add_warmups(self, focus: str):
        family = WARMUP_FAMILIES[warmup_family(focus)]
        candidates = list(family) + [w for w in WARMUP_FAMILIES["general"] if w not in family]
        added = 0
        for index, (name, reps, notes) in enumerate(candidates):
            # Own family first, general family only to reach the minimum
            if index >= len(family) and added >= MIN_WARMUPS:
                break
            if not self.available(name):
                continue
            self.add({
                "name": name, "category": "warmup", "sets": 2, "reps": reps,
                "rest": "30 sec", "notes": notes,
            })
            added += 1

    def add_main_lifts(self, focus: str, bank: Dict[str, List[str]]):
        candidates = _pool(bank, primary_categories(focus))
        candidates += [e.name for e in sorted(get_compound_exercises(), key=lambda e: not e.powerlifting)]
        added = 0
        for name in candidates:
            if added >= MAIN_LIFTS_PER_DAY:
                break
            if not self.available(name):
                continue
            lift = {
                "name": name, "category": "main-lift", "sets": self.sets(4), "reps": "5-6",
                "rest": "3-4 min", "rpe": self.rpe(MAIN_LIFT_RPE),
                "notes": "Focus on form and control",
            }
            if self.percentage_of_max is not None:
                lift["percentage_of_max"] = self.percentage_of_max
            self.add(lift)
            added += 1

    def add_accessories(self, focus: str, bank: Dict[str, List[str]]):
        count = ACCESSORY_COUNTS.get(self.ctx.experience_tier, ACCESSORY_COUNTS["intermediate"])
        added = 0
        for name in _pool(bank, accessory_categories(focus)):
            if added >= count:
                break
            if self.available(name):
                self.add({
                    "name": name, "category": "accessory", "sets": self.sets(3), "reps": "8-12",
                    "rest": "90 sec", "rpe": self.rpe(ACCESSORY_RPE), "notes": "Control the weight",
                })
                added += 1

        added = 0
        for name in bank.get("core", []):
            if added >= CORE_ACCESSORIES_PER_DAY:
                break
            if self.available(name):
                self.add({
                    "name": name, "category": "accessory", "sets": self.sets(3), "reps": "10-15",
                    "rest": "60 sec", "rpe": self.rpe(ACCESSORY_RPE), "notes": "Brace and breathe",
                })
                added += 1

    def add_cooldowns(self, focus: str):
        needed = max(MIN_COOLDOWNS, config.MIN_EXERCISES_PER_DAY - len(self.exercises))
        pool = list(COOLDOWN_POOLS[cooldown_region(focus)])
        for stretch in COOLDOWN_POOLS["general"] + COOLDOWN_POOLS["lower"] + COOLDOWN_POOLS["upper"]:
            if stretch not in pool:
                pool.append(stretch)
        added = 0
        for name, hold in pool:
            if added >= needed:
                break
            if self.available(name):
                self.add({
                    "name": name, "category": "cooldown", "sets": 1, "reps": hold,
                    "rest": "none", "notes": "Breathe slowly and relax into the stretch",
                })
                added += 1


def build_day_exercises(focus: str, bank: Dict[str, List[str]], ctx: UserContext,
                        is_deload: bool = False, percentage_of_max: Optional[float] = None) -> List[Dict[str, Any]]:
    """Ordered exercise list for one day: warmups, main lifts, accessories, cooldowns."""
    builder = _DayBuilder(ctx, is_deload, percentage_of_max)
    builder.add_warmups(focus)
    builder.add_main_lifts(focus, bank)
    builder.add_accessories(focus, bank)
    builder.add_cooldowns(focus)
    return builder.exercises


def rest_days(training_days: List[str]) -> List[str]:
    return [day for day in WEEK_ORDER if day not in training_days]


def session_minutes(ctx: UserContext) -> int:
    if ctx.experience_tier in ("advanced", "elite"):
        return config.DEFAULT_WORKOUT_MINUTES + 15
    return config.DEFAULT_WORKOUT_MINUTES


def build_weekly_templates(ctx: UserContext, duration_weeks: int,
                           phases: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    bank = get_discipline_bank(ctx.discipline)
    deloads = deload_weeks(phases)
    days = list(ctx.preferred_days)
    templates = []

    for week in range(1, duration_weeks + 1):
        is_deload = week in deloads
        phase = phase_for_week(phases, week)
        percentage = phase["intensity_range"][0] if phase else None
        training_days = []
        for index, day in enumerate(days):
            focus = day_focus(index, ctx.discipline, ctx.days_per_week)
            training_days.append({
                "day_of_week": day,
                "title": focus,
                "focus": focus,
                "duration_minutes": session_minutes(ctx),
                "exercises": build_day_exercises(focus, bank, ctx, is_deload, percentage),
            })
        templates.append({
            "week_number": week,
            "deload_week": is_deload,
            "training_days": training_days,
            "rest_days": rest_days(days),
        })
    return templates


def build_meal_plan(ctx: UserContext) -> Dict[str, Dict[str, Any]]:
    """Five meals splitting the calorie and macro targets 20/12/25/13/30."""
    macros = ctx.macros.to_dict()
    meal_plan = {}
    for slot, share in MEAL_SHARES.items():
        name, description, ingredients, prep_time = MEAL_TEMPLATES[slot]
        meal_plan[slot] = {
            "name": name,
            "description": description,
            "calories": int(round(ctx.target_calories * share)),
            "protein": int(round(macros["protein"] * share)),
            "carbs": int(round(macros["carbs"] * share)),
            "fat": int(round(macros["fat"] * share)),
            "ingredients": list(ingredients),
            "prep_time": prep_time,
        }
    return meal_plan


def default_habits(protein_target: int) -> List[Dict[str, Any]]:
    return [
        {"name": "Drink Water", "frequency": "daily", "tracking_type": "boolean",
         "description": "Stay hydrated throughout the day"},
        {"name": "Get 8 Hours Sleep", "frequency": "daily", "tracking_type": "quantity",
         "target_value": 8, "unit": "hours"},
        {"name": "Hit Protein Goal", "frequency": "daily", "tracking_type": "quantity",
         "target_value": protein_target, "unit": "g"},
        {"name": "Morning Mobility", "frequency": "daily", "tracking_type": "boolean",
         "description": "5-10 min mobility routine"},
    ]


def _title(text: str) -> str:
    text = text.replace("-", " ")
    return text[:1].upper() + text[1:]


def synthesize_program(ctx: UserContext, duration_weeks: Optional[int] = None) -> Dict[str, Any]:
    """Build a complete program payload from the user context alone.

    Args:
        ctx: Aggregated user context
        duration_weeks: Program length, defaults to DEFAULT_PROGRAM_WEEKS

    Returns:
        Program payload in the same shape the external generator produces
    """
    duration = min(config.MAX_PROGRAM_WEEKS,
                   max(config.MIN_PROGRAM_WEEKS, duration_weeks or config.DEFAULT_PROGRAM_WEEKS))
    phases = default_phases(duration)
    logger.info(f"Synthesizing {duration}-week {ctx.discipline} program, {ctx.days_per_week} days/week")

    return {
        "name": f"{ctx.name}'s {_title(ctx.discipline)} Program",
        "duration_weeks": duration,
        "periodization": {
            "model": PeriodizationType.LINEAR.value,
            "phases": phases,
        },
        "nutrition_plan": {
            "calorie_target": ctx.target_calories,
            "macros": ctx.macros.to_dict(),
            "meal_plan": build_meal_plan(ctx),
        },
        "habit_plan": default_habits(ctx.macros.protein),
        "weekly_templates": build_weekly_templates(ctx, duration, phases),
        "ai_rationale": (
            f"Template program for a {ctx.experience_tier} athlete training "
            f"{ctx.days_per_week} days per week toward {ctx.goal}."
        ),
    }
