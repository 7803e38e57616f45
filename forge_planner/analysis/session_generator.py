"""Single training session generation scaled by readiness and records."""

import copy
import logging
import re
from typing import Any, Dict, Optional

from ..ai_service import TextGenerationService
from ..config import config
from .context import UserContext
from .data_validation import validate_day
from .exercise_bank import get_discipline_bank
from .fallback_program import build_day_exercises, session_minutes
from .program_generator import SYSTEM_PROMPT, short_list, parse_program_payload
from .readiness import ReadinessSnapshot, Recommendation
from .records import normalize_exercise_name, weight_for_reps

logger = logging.getLogger(__name__)

VOLUME_CUT_RECOMMENDATIONS = (Recommendation.REDUCE_VOLUME, Recommendation.ACTIVE_RECOVERY)
LOADED_CATEGORIES = ("main-lift", "accessory")


def round_to_increment(weight: float, increment: float = 5) -> int:
    return int(increment * round(weight / increment))


def low_rep_target(reps: str) -> Optional[int]:
    """First number in a rep prescription such as "5-6" or "8 each"."""
    match = re.search(r"\d+", str(reps or ""))
    return int(match.group()) if match else None


def _one_rep_max(record) -> Optional[float]:
    if record is None:
        return None
    if isinstance(record, dict):
        return record.get("estimated_one_rep_max")
    return getattr(record, "estimated_one_rep_max", None)


def build_session_prompt(ctx: UserContext, focus: str, readiness: Optional[ReadinessSnapshot]) -> str:
    readiness_line = "unknown"
    if readiness is not None:
        readiness_line = (
            f"{readiness.readiness_score}/100, {readiness.recommendation.value} "
            f"(intensity x{readiness.intensity_modifier})"
        )
    return f"""Create one {focus} session for a {ctx.experience_tier} {ctx.discipline} athlete.

- Readiness: {readiness_line}
- Equipment: {short_list(ctx.equipment)}
- Never include: {short_list(ctx.excluded_exercises)}
- At least {config.MIN_EXERCISES_PER_DAY} exercises using categories warmup, main-lift, accessory, cooldown.

OUTPUT JSON ONLY:
{{"focus": "{focus}", "duration_minutes": 60, "exercises": [{{"name": "...", "category": "warmup", "sets": 2, "reps": "10", "rest": "30 sec", "notes": ""}}]}}"""[:config.PROMPT_MAX_CHARS]


def scale_session(day: Dict[str, Any], readiness: Optional[ReadinessSnapshot],
                  records: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Apply the readiness modifier and record-based load targets to a day.

    Volume is cut only for reduce-volume and active-recovery days; loads
    and percentage of max always follow the modifier. Returns a new dict.
    """
    scaled = copy.deepcopy(day)
    modifier = readiness.intensity_modifier if readiness else 1.0
    cut_volume = readiness is not None and readiness.recommendation in VOLUME_CUT_RECOMMENDATIONS
    records = records or {}

    for exercise in scaled.get("exercises", []):
        if exercise.get("category") not in LOADED_CATEGORIES:
            continue
        if cut_volume and isinstance(exercise.get("sets"), int):
            exercise["sets"] = max(1, round(exercise["sets"] * modifier))
        if isinstance(exercise.get("percentage_of_max"), (int, float)):
            exercise["percentage_of_max"] = round(exercise["percentage_of_max"] * modifier, 1)

        if exercise["category"] != "main-lift":
            continue
        one_rm = _one_rep_max(records.get(normalize_exercise_name(exercise["name"])))
        reps = low_rep_target(exercise.get("reps"))
        if one_rm and reps:
            exercise["target_weight"] = round_to_increment(weight_for_reps(one_rm, reps) * modifier)

    scaled["readiness"] = readiness.to_dict() if readiness else None
    return scaled


class SessionGenerator:
    """Generate a single day of training without touching the stored program."""

    def __init__(self, text_service: Optional[TextGenerationService] = None, use_ai: bool = True):
        self.use_ai = use_ai
        self.text_service = text_service if text_service is not None or not use_ai else TextGenerationService()
        self.logger = logging.getLogger(__name__)

    def _external_day(self, ctx, focus, readiness) -> Optional[Dict[str, Any]]:
        response = self.text_service.generate(
            build_session_prompt(ctx, focus, readiness),
            system_prompt=SYSTEM_PROMPT,
            max_tokens=config.SESSION_MAX_TOKENS,
        )
        if response.used_fallback:
            return None
        parsed = parse_program_payload(response.text)
        if not isinstance(parsed, dict):
            self.logger.warning(f"Session response unusable: {parsed.reason}")
            return None
        validation = validate_day(parsed)
        if validation.ok:
            day = validation.payload
            kept = [e for e in day["exercises"] if not ctx.is_excluded(e["name"])]
            if len(kept) < len(day["exercises"]):
                day["exercises"] = kept
                validation = validate_day(day)
        if not validation.ok:
            self.logger.warning(f"Session response rejected: {validation.reason}")
            return None

        day = validation.payload
        focus = str(day.get("focus") or day.get("title") or focus)
        day["focus"] = focus
        day.setdefault("title", focus)
        if not isinstance(day.get("duration_minutes"), int) or isinstance(day.get("duration_minutes"), bool):
            day["duration_minutes"] = session_minutes(ctx)
        day["source"] = response.source
        return day

    def generate(self, ctx: UserContext, focus: str,
                 readiness: Optional[ReadinessSnapshot] = None,
                 records: Optional[Dict[str, Any]] = None,
                 is_deload: bool = False) -> Dict[str, Any]:
        """Build one readiness-scaled session.

        Args:
            ctx: Aggregated user context
            focus: Session focus such as "Lower Body" or "Bench Heavy"
            readiness: Today's readiness snapshot
            records: Personal records keyed by normalized exercise name
            is_deload: Apply deload volume and effort

        Returns:
            Training day dict with exercises, readiness and source
        """
        day = None
        if self.use_ai and self.text_service is not None:
            day = self._external_day(ctx, focus, readiness)

        if day is None:
            day = {
                "focus": focus,
                "title": focus,
                "duration_minutes": session_minutes(ctx),
                "exercises": build_day_exercises(focus, get_discipline_bank(ctx.discipline), ctx, is_deload),
                "source": "synthesized",
            }
        return scale_session(day, readiness, records)
