"""Tests for user context aggregation."""

from forge_planner.analysis.context import (
    aggregate, calculate_macros, calculate_tdee, dedupe_case_insensitive,
)


class TestAggregate:
    """Test profile to context aggregation."""

    def test_empty_profile_uses_defaults(self):
        """Aggregation never fails and falls back to defaults."""
        ctx = aggregate({})

        assert ctx.bodyweight == 180.0
        assert ctx.days_per_week == 4
        assert ctx.preferred_days == ("monday", "tuesday", "thursday", "friday")
        assert ctx.experience_tier == "intermediate"
        assert ctx.discipline == "general-fitness"
        assert ctx.target_calories == ctx.tdee

    def test_none_profile(self):
        ctx = aggregate(None)
        assert ctx.days_per_week == 4
        assert ctx.excluded_exercises == ()

    def test_powerlifting_profile(self, powerlifting_ctx):
        """Nested schedule and preference sections are read."""
        assert powerlifting_ctx.discipline == "powerlifting"
        assert powerlifting_ctx.days_per_week == 4
        assert powerlifting_ctx.tdee == 4650
        assert powerlifting_ctx.target_calories == 4650
        assert powerlifting_ctx.macros.protein == 240
        assert powerlifting_ctx.is_excluded("good mornings")

    def test_fat_loss_goal_reduces_calories(self):
        ctx = aggregate({"goal": "lose-fat"})
        assert ctx.tdee == 4185
        assert ctx.target_calories == round(4185 * 0.8)

    def test_macros_conserve_target_calories(self):
        """Macro calories stay within a few kcal of the target."""
        for profile in (
            {},
            {"goal": "lose-fat", "bodyweight": 150},
            {"goal": "build-muscle", "bodyweight": 220, "activity_level": "very-active"},
        ):
            ctx = aggregate(profile)
            assert abs(ctx.macros.calories - ctx.target_calories) <= 5

    def test_preferred_days_are_padded_and_trimmed(self):
        ctx = aggregate({"days_per_week": 4, "preferred_days": ["Monday", "wednesday", "Friday", "funday"]})
        assert ctx.preferred_days == ("monday", "wednesday", "friday", "tuesday")

        ctx = aggregate({"days_per_week": 2, "preferred_days": ["saturday", "sunday", "monday"]})
        assert ctx.preferred_days == ("saturday", "sunday")

    def test_days_per_week_clamped(self):
        assert aggregate({"days_per_week": 12}).days_per_week == 7
        assert aggregate({"days_per_week": 0}).days_per_week == 1
        assert aggregate({"days_per_week": "lots"}).days_per_week == 4

    def test_exclusions_combine_hated_avoided_and_injuries(self):
        ctx = aggregate({
            "hated_exercises": ["Burpees", "burpees"],
            "exercises_to_avoid": ["Dips"],
            "injuries": [{"body_part": "Shoulder"}, {"bodyPart": "Knee"}, "Wrist"],
        })
        assert ctx.excluded_exercises == ("Burpees", "Dips", "Shoulder", "Knee", "Wrist")
        assert ctx.injuries == ("Shoulder", "Knee", "Wrist")

    def test_injury_excludes_catalog_exercises_loading_the_area(self):
        ctx = aggregate({"injuries": [{"body_part": "Shoulder"}, "Knees"]})
        assert ctx.is_excluded("Overhead Press")
        assert ctx.is_excluded("barbell back squat")
        assert not ctx.is_excluded("Barbell Bench Press")
        assert not ctx.is_excluded("Cross-Body Shoulder Stretch")

    def test_injury_naming_a_muscle(self):
        ctx = aggregate({"injuries": ["Lower Back", "chest"]})
        assert ctx.is_excluded("Barbell Bench Press")
        assert not ctx.is_excluded("Lateral Raise")

    def test_exclusion_is_exact_name_match(self):
        """Excluding an exercise does not exclude its variations."""
        ctx = aggregate({"hated_exercises": ["Squat"]})
        assert ctx.is_excluded("SQUAT")
        assert not ctx.is_excluded("Front Squat")

    def test_invalid_values_fall_back(self):
        ctx = aggregate({
            "bodyweight": -5,
            "activity_level": "couch",
            "experience": "legendary",
            "equipment": "kettlebell",
        })
        assert ctx.bodyweight == 180.0
        assert ctx.activity_level == "moderately-active"
        assert ctx.experience_tier == "intermediate"
        assert ctx.equipment == ("kettlebell",)


class TestHelpers:
    """Test standalone calculations."""

    def test_calculate_tdee(self):
        assert calculate_tdee(200, "sedentary") == 3600
        assert calculate_tdee(200, "unknown") == calculate_tdee(200, "moderately-active")

    def test_calculate_macros_high_protein_goal(self):
        macros = calculate_macros(200, 3000, "build-muscle")
        assert macros.protein == 240
        assert macros.fat == 100
        assert macros.carbs == 285

    def test_dedupe_keeps_first_spelling(self):
        assert dedupe_case_insensitive(["Dips", "DIPS", "Rows", "dips"]) == ["Dips", "Rows"]
