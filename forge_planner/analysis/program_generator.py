"""Program content generation.

Asks the external text-generation service for a program, extracts and
checks the JSON it returns, and falls back to deterministic synthesis when
the response is unusable or fails structural validation. At most one
fallback attempt is made per request.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from ..ai_service import TextGenerationService
from ..config import config
from .context import UserContext
from .data_validation import ProgramValidationResult, ProgramValidator
from .fallback_program import synthesize_program

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are FORGE, an expert strength coach. Return ONLY valid JSON."
PROMPT_LIST_LIMIT = 10
PROMPT_ITEM_CHARS = 40


class FallbackSynthesisDefect(RuntimeError):
    """Deterministic synthesis produced a program the validator rejects."""


@dataclass(frozen=True)
class GenerationUnusable:
    """External output that cannot be used as a program."""
    reason: str


@dataclass
class GenerationOutcome:
    """Validated program payload and where it came from."""
    payload: Dict[str, Any]
    ai_generated: bool
    source: str
    validation: ProgramValidationResult
    fallback_reason: Optional[str] = None


def short_list(items, limit: int = PROMPT_LIST_LIMIT) -> str:
    values = [str(item)[:PROMPT_ITEM_CHARS] for item in list(items)[:limit]]
    return ", ".join(values) or "none"


def build_program_prompt(ctx: UserContext, duration_weeks: Optional[int] = None) -> str:
    """Compact generation prompt; user-supplied lists are truncated."""
    duration = duration_weeks or config.DEFAULT_PROGRAM_WEEKS
    macros = ctx.macros
    first_day = ctx.preferred_days[0] if ctx.preferred_days else "monday"
    prompt = f"""Generate a {duration}-week, {ctx.days_per_week}-day/week {ctx.discipline} program for {ctx.name[:PROMPT_ITEM_CHARS]}.

USER DATA:
- Goal: {ctx.goal}
- Experience: {ctx.experience_tier}
- Training days: {short_list(ctx.preferred_days)}
- Equipment: {short_list(ctx.equipment)}
- Favorites: {short_list(ctx.favorite_exercises)}
- Never include: {short_list(ctx.excluded_exercises)}
- Calories: {ctx.target_calories} (P:{macros.protein}g C:{macros.carbs}g F:{macros.fat}g)

RULES:
- Every training day has at least {config.MIN_EXERCISES_PER_DAY} exercises.
- Categories: "warmup", "main-lift", "accessory", "cooldown"; every day uses all four.
- Meals breakfast, snack1, lunch, snack2, dinner each have name, description,
  calories, protein, carbs, fat, ingredients and prep_time.

OUTPUT JSON ONLY:
{{
  "name": "Program Name",
  "duration_weeks": {duration},
  "periodization": {{"model": "linear", "phases": [{{"name": "accumulation", "start_week": 1, "end_week": 3, "intensity_range": [65, 75], "rpe_target": 7}}]}},
  "nutrition_plan": {{
    "calorie_target": {ctx.target_calories},
    "macros": {{"protein": {macros.protein}, "carbs": {macros.carbs}, "fat": {macros.fat}}},
    "meal_plan": {{"breakfast": {{"name": "...", "description": "...", "calories": 0, "protein": 0, "carbs": 0, "fat": 0, "ingredients": ["..."], "prep_time": "10 min"}}}}
  }},
  "habit_plan": [{{"name": "Habit", "frequency": "daily", "tracking_type": "boolean"}}],
  "weekly_templates": [{{
    "week_number": 1,
    "training_days": [{{
      "day_of_week": "{first_day}",
      "focus": "Upper Power",
      "duration_minutes": 60,
      "exercises": [{{"name": "Bench Press", "category": "main-lift", "sets": 4, "reps": "6-8", "rest": "3 min", "rpe": 8, "notes": ""}}]
    }}],
    "rest_days": ["wednesday"]
  }}],
  "ai_rationale": "One paragraph"
}}"""
    return prompt[:config.PROMPT_MAX_CHARS]


def extract_json_object(text: str) -> Optional[str]:
    """Largest balanced ``{...}`` span in the text.

    Braces inside JSON string literals are ignored, so surrounding prose and
    code fences do not confuse the scan.
    """
    if not text:
        return None

    best = None
    depth = 0
    start = None
    in_string = False
    escaped = False
    for index, char in enumerate(text):
        if depth > 0 and in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if depth > 0 and char == '"':
            in_string = True
        elif char == "{":
            if depth == 0:
                start = index
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                span = text[start:index + 1]
                if best is None or len(span) > len(best):
                    best = span
    return best


_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def camel_to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub(r"_\1", name).lower()


def snake_case_keys(value: Any) -> Any:
    """Recursively convert dict keys from camelCase to snake_case."""
    if isinstance(value, dict):
        return {camel_to_snake(str(k)): snake_case_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [snake_case_keys(item) for item in value]
    return value


def parse_program_payload(text: str) -> Union[Dict[str, Any], GenerationUnusable]:
    """Extract, decode and shape-check a program from free-form text."""
    span = extract_json_object(text)
    if span is None:
        return GenerationUnusable("no JSON object in response")
    try:
        decoded = json.loads(span)
    except json.JSONDecodeError as e:
        return GenerationUnusable(f"invalid JSON: {e.msg} at position {e.pos}")
    if not isinstance(decoded, dict):
        return GenerationUnusable("JSON root is not an object")
    return snake_case_keys(decoded)


class ProgramGenerator:
    """Produce a validated program payload for a user context."""

    def __init__(self, text_service: Optional[TextGenerationService] = None,
                 validator: Optional[ProgramValidator] = None, use_ai: bool = True):
        self.use_ai = use_ai
        self.text_service = text_service if text_service is not None or not use_ai else TextGenerationService()
        self.validator = validator or ProgramValidator()
        self.logger = logging.getLogger(__name__)

    def request_external(self, ctx: UserContext, duration_weeks: Optional[int] = None):
        """Ask the text service for a program.

        Returns:
            (parsed payload or GenerationUnusable, provider name)
        """
        response = self.text_service.generate(
            build_program_prompt(ctx, duration_weeks),
            system_prompt=SYSTEM_PROMPT,
            max_tokens=config.PROGRAM_MAX_TOKENS,
        )
        if response.used_fallback:
            return GenerationUnusable("text generation unavailable"), response.source
        parsed = parse_program_payload(response.text)
        if isinstance(parsed, dict):
            self.logger.info(f"External program parsed from {response.source}")
        return parsed, response.source

    def generate(self, ctx: UserContext, duration_weeks: Optional[int] = None) -> GenerationOutcome:
        """External generation first, deterministic synthesis on failure.

        Raises:
            FallbackSynthesisDefect: synthesized program failed validation
        """
        fallback_reason = "external generation disabled"
        if self.use_ai and self.text_service is not None:
            candidate, source = self.request_external(ctx, duration_weeks)
            if isinstance(candidate, GenerationUnusable):
                fallback_reason = candidate.reason
            else:
                try:
                    validation = self.validator.validate(candidate, ctx.days_per_week)
                except (TypeError, ValueError, AttributeError, KeyError) as e:
                    self.logger.error(f"Validator could not handle external program from {source}: {e}")
                    fallback_reason = f"malformed program: {type(e).__name__}: {e}"
                else:
                    if validation.ok:
                        return GenerationOutcome(
                            payload=validation.payload,
                            ai_generated=True,
                            source=source,
                            validation=validation,
                        )
                    fallback_reason = f"validation failed: {validation.reason}"
            self.logger.warning(f"Falling back to synthesized program ({fallback_reason})")

        payload = synthesize_program(ctx, duration_weeks)
        validation = self.validator.validate(payload, ctx.days_per_week)
        if not validation.ok:
            raise FallbackSynthesisDefect(f"Synthesized program failed validation: {validation.reason}")

        return GenerationOutcome(
            payload=validation.payload,
            ai_generated=False,
            source="synthesized",
            validation=validation,
            fallback_reason=fallback_reason,
        )
