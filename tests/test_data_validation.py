"""Tests for structural program validation."""

import copy

from forge_planner.analysis.context import aggregate
from forge_planner.analysis.data_validation import (
    ProgramValidator, canonical_category, validate_day, validate_program,
)
from forge_planner.analysis.fallback_program import synthesize_program


class TestProgramValidator:
    """Test repair-or-reject validation."""

    def setup_method(self):
        self.validator = ProgramValidator()
        self.valid = synthesize_program(aggregate({"days_per_week": 3}))

    def candidate(self):
        return copy.deepcopy(self.valid)

    def test_valid_program_passes_unchanged_input(self):
        original = self.candidate()
        result = self.validator.validate(original, expected_days_per_week=3)
        assert result.ok
        assert result.errors == []
        assert original == self.valid

    def test_non_object_rejected(self):
        result = self.validator.validate(["not", "a", "program"])
        assert not result.ok
        assert result.reason == "program is not an object"

    def test_short_duration_rejected(self):
        candidate = self.candidate()
        candidate["duration_weeks"] = 2
        result = self.validator.validate(candidate)
        assert not result.ok
        assert "below minimum" in result.reason

    def test_long_duration_rejected(self):
        candidate = self.candidate()
        candidate["duration_weeks"] = 5000
        result = self.validator.validate(candidate)
        assert not result.ok
        assert "above maximum 52" in result.reason
        assert result.payload is None

    def test_string_duration_converted(self):
        candidate = self.candidate()
        candidate["duration_weeks"] = "8"
        result = self.validator.validate(candidate)
        assert result.ok
        assert result.payload["duration_weeks"] == 8

    def test_too_few_exercises_rejected(self):
        candidate = self.candidate()
        day = candidate["weekly_templates"][0]["training_days"][0]
        day["exercises"] = day["exercises"][:5]
        result = self.validator.validate(candidate)
        assert not result.ok
        assert "need at least 12" in result.reason

    def test_missing_category_rejected(self):
        candidate = self.candidate()
        day = candidate["weekly_templates"][0]["training_days"][0]
        day["exercises"] = [e for e in day["exercises"] if e["category"] != "cooldown"] * 2
        result = self.validator.validate(candidate)
        assert not result.ok
        assert "missing categories cooldown" in result.reason

    def test_category_aliases_canonicalized(self):
        candidate = self.candidate()
        for exercise in candidate["weekly_templates"][0]["training_days"][0]["exercises"]:
            if exercise["category"] == "warmup":
                exercise["category"] = "Warm-Up"
        result = self.validator.validate(candidate)
        assert result.ok
        categories = {e["category"] for e in result.payload["weekly_templates"][0]["training_days"][0]["exercises"]}
        assert "warmup" in categories

    def test_templates_extended_by_cycling(self):
        candidate = self.candidate()
        candidate["weekly_templates"] = candidate["weekly_templates"][:2]
        result = self.validator.validate(candidate)
        assert result.ok
        templates = result.payload["weekly_templates"]
        assert [t["week_number"] for t in templates] == list(range(1, 9))
        assert templates[2]["training_days"] == templates[0]["training_days"]
        assert "weekly templates extended from 2 to 8 weeks" in result.repaired

    def test_duplicate_week_numbers_renumbered(self):
        candidate = self.candidate()
        for template in candidate["weekly_templates"]:
            template["week_number"] = 1
        result = self.validator.validate(candidate)
        assert result.ok
        assert [t["week_number"] for t in result.payload["weekly_templates"]] == list(range(1, 9))

    def test_day_count_mismatch(self):
        candidate = self.candidate()
        assert self.validator.validate(candidate, expected_days_per_week=5).ok
        assert self.validator.validate(candidate, expected_days_per_week=5).warnings

        strict = self.validator.validate(candidate, expected_days_per_week=5, strict_day_count=True)
        assert not strict.ok

    def test_missing_phases_generated(self):
        candidate = self.candidate()
        candidate["periodization"] = {"model": "wave"}
        result = self.validator.validate(candidate)
        assert result.ok
        periodization = result.payload["periodization"]
        assert periodization["model"] == "linear"
        assert periodization["phases"][0]["name"] == "accumulation"

    def test_meal_missing_field_rejected(self):
        candidate = self.candidate()
        del candidate["nutrition_plan"]["meal_plan"]["lunch"]["calories"]
        result = self.validator.validate(candidate)
        assert not result.ok
        assert "meal 'lunch' missing calories" in result.reason

    def test_foods_migrated_to_ingredients(self):
        candidate = self.candidate()
        meal = candidate["nutrition_plan"]["meal_plan"]["dinner"]
        meal["foods"] = meal.pop("ingredients")
        result = self.validator.validate(candidate)
        assert result.ok
        assert result.payload["nutrition_plan"]["meal_plan"]["dinner"]["ingredients"] == ["Salmon", "Sweet Potato", "Broccoli"]

    def test_habits_repaired(self):
        candidate = self.candidate()
        candidate["habit_plan"] = [
            {"name": "Walk", "frequency": "weekly", "tracking_type": "steps"},
            {"frequency": "daily"},
        ]
        result = self.validator.validate(candidate)
        assert result.ok
        assert result.payload["habit_plan"] == [{"name": "Walk", "frequency": "x-per-week", "tracking_type": "boolean"}]

    def test_empty_habits_get_defaults(self):
        candidate = self.candidate()
        candidate["habit_plan"] = []
        result = self.validator.validate(candidate)
        assert len(result.payload["habit_plan"]) == 4

    def test_scalar_phase_weeks_accepted(self):
        candidate = self.candidate()
        candidate["periodization"]["phases"] = [{"name": "strength", "weeks": 4}]
        result = self.validator.validate(candidate)
        assert result.ok
        phase = result.payload["periodization"]["phases"][0]
        assert (phase["start_week"], phase["end_week"]) == (4, 4)

    def test_non_object_nutrition_without_habits_rejected(self):
        candidate = self.candidate()
        candidate["nutrition_plan"] = ["oops"]
        del candidate["habit_plan"]
        result = self.validator.validate(candidate)
        assert not result.ok
        assert "nutrition_plan.meal_plan missing" in result.reason

    def test_non_object_macros_default_habit_target(self):
        candidate = self.candidate()
        candidate["nutrition_plan"]["macros"] = "lots of protein"
        candidate["habit_plan"] = []
        result = self.validator.validate(candidate)
        assert result.ok
        protein_habit = next(h for h in result.payload["habit_plan"] if h["name"] == "Hit Protein Goal")
        assert protein_habit["target_value"] == 0

    def test_module_level_helper(self):
        assert validate_program(self.candidate()).ok


class TestValidateDay:
    """Test single day validation."""

    def test_valid_day(self):
        program = synthesize_program(aggregate({}))
        day = program["weekly_templates"][0]["training_days"][0]
        assert validate_day(day).ok

    def test_rest_defaults_filled(self):
        day = {"exercises": [
            {"name": "Jumping Jacks", "category": "warmup", "reps": 20},
            {"name": "Squat", "category": "main"},
            {"name": "Curl", "category": "isolation"},
            {"name": "Stretch", "category": "stretch"},
        ]}
        result = validate_day(day, min_exercises_per_day=4)
        assert result.ok
        exercises = result.payload["exercises"]
        assert exercises[0]["reps"] == "20"
        assert exercises[1]["rest"] == "3-4 min"
        assert exercises[3]["category"] == "cooldown"

    def test_not_a_dict(self):
        assert not validate_day("squats").ok


def test_canonical_category():
    assert canonical_category(" Primary ") == "main-lift"
    assert canonical_category(None) == ""
