"""Tests for one-rep max estimation and personal record detection."""

from datetime import datetime
from types import SimpleNamespace

import pytest

from forge_planner.analysis.records import (
    best_set, big_three_total, estimate_one_rep_max, evaluate_submission,
    group_records, normalize_exercise_name, progression, rep_max_table, weight_for_reps,
)


class TestOneRepMax:
    """Test 1RM estimation formulas."""

    def test_brzycki(self):
        assert estimate_one_rep_max(200, 5) == 225

    def test_single_rep_is_the_weight(self):
        assert estimate_one_rep_max(315, 1) == 315

    def test_epley_above_twelve_reps(self):
        assert estimate_one_rep_max(100, 15) == 150

    @pytest.mark.parametrize("weight,reps", [(0, 5), (-100, 5), (100, 0), (100, -3)])
    def test_non_positive_input(self, weight, reps):
        assert estimate_one_rep_max(weight, reps) == 0

    def test_non_decreasing_in_reps(self):
        """More reps at the same weight never lowers the estimate."""
        estimates = [estimate_one_rep_max(185, reps) for reps in range(1, 13)]
        assert estimates == sorted(estimates)

    def test_rep_max_table(self):
        table = rep_max_table(225)
        assert list(table) == ["1RM", "3RM", "5RM", "8RM", "10RM"]
        assert table["1RM"] == 225
        assert table["5RM"] == 200
        assert table["1RM"] >= table["3RM"] >= table["5RM"] >= table["8RM"] >= table["10RM"]

    def test_weight_for_reps_inverts_brzycki(self):
        assert weight_for_reps(225, 5) == 200
        assert weight_for_reps(225, 1) == 225


class TestBestSet:
    """Test best set selection."""

    def test_highest_estimate_wins(self):
        top = best_set([
            {"weight": 200, "reps": 5},
            {"weight": 225, "reps": 3},
            {"weight": 185, "reps": 8},
        ])
        assert top["weight"] == 225
        assert top["estimated_one_rep_max"] == estimate_one_rep_max(225, 3)

    def test_tie_keeps_earliest(self):
        top = best_set([{"weight": 200, "reps": 5, "rpe": 8}, {"weight": 200, "reps": 5, "rpe": 9}])
        assert top["rpe"] == 8

    def test_unusable_sets(self):
        assert best_set([{"weight": "heavy", "reps": 5}, {"weight": 100}]) is None
        assert best_set([]) is None


class TestEvaluateSubmission:
    """Test PR classification."""

    def setup_method(self):
        self.now = datetime(2026, 3, 2, 12, 0)

    def test_first_pr(self):
        result = evaluate_submission(None, "Bench Press", [{"weight": 200, "reps": 5}], now=self.now)

        assert result.kind == "first-pr"
        assert result.is_pr
        assert result.estimated_one_rep_max == 225
        assert result.record["normalized_name"] == "bench press"
        assert result.record["history"] == []

    def test_new_pr_archives_previous_best(self):
        existing = {
            "weight": 200, "reps": 5, "estimated_one_rep_max": 225,
            "recorded_at": datetime(2026, 2, 1), "history": [],
        }
        result = evaluate_submission(existing, "Bench Press", [{"weight": 225, "reps": 3}], now=self.now)

        assert result.kind == "new-pr"
        assert result.previous_best == 225
        assert result.improvement == result.estimated_one_rep_max - 225
        assert result.record["history"] == [
            {"weight": 200, "reps": 5, "estimated_one_rep_max": 225, "date": "2026-02-01T00:00:00"}
        ]

    def test_matched_pr_leaves_record_untouched(self):
        existing = {"weight": 200, "reps": 5, "estimated_one_rep_max": 225, "history": []}
        result = evaluate_submission(existing, "Bench Press", [{"weight": 200, "reps": 5}], now=self.now)

        assert result.kind == "matched"
        assert not result.is_pr
        assert result.record is None

    def test_below_best(self):
        existing = {"weight": 200, "reps": 5, "estimated_one_rep_max": 225, "history": []}
        result = evaluate_submission(existing, "Bench Press", [{"weight": 150, "reps": 5}], now=self.now)
        assert result.kind == "no-pr"
        assert result.record is None

    def test_history_is_capped(self):
        history = [{"weight": 100 + i, "reps": 1, "estimated_one_rep_max": 100 + i, "date": None} for i in range(10)]
        existing = {"weight": 110, "reps": 1, "estimated_one_rep_max": 110, "history": history}
        result = evaluate_submission(existing, "Squat", [{"weight": 120, "reps": 1}], now=self.now, history_limit=10)

        assert len(result.record["history"]) == 10
        assert result.record["history"][0]["weight"] == 101
        assert result.record["history"][-1]["weight"] == 110

    def test_no_usable_set(self):
        assert evaluate_submission(None, "Squat", [{"weight": 0, "reps": 5}]) is None


class TestRecordSummaries:
    """Test grouping, totals and progression."""

    def setup_method(self):
        self.records = [
            SimpleNamespace(exercise_name="Barbell Squat", estimated_one_rep_max=405, history=[], recorded_at=None),
            SimpleNamespace(exercise_name="Front Squat", estimated_one_rep_max=315, history=[], recorded_at=None),
            SimpleNamespace(exercise_name="Bench Press", estimated_one_rep_max=285, history=[], recorded_at=None),
            SimpleNamespace(exercise_name="Conventional Deadlift", estimated_one_rep_max=495, history=[],
                            recorded_at=None),
            SimpleNamespace(exercise_name="Lateral Raise", estimated_one_rep_max=40, history=[], recorded_at=None),
        ]

    def test_group_records(self):
        grouped = group_records(self.records)
        assert [r.exercise_name for r in grouped["accessories"]] == ["Lateral Raise"]
        assert grouped["compounds"][0].exercise_name == "Conventional Deadlift"

    def test_big_three_total_ignores_variations(self):
        total = big_three_total(self.records)
        assert total == {"squat": 405, "bench": 285, "deadlift": 495, "total": 1185}

    def test_big_three_total_requires_all_lifts(self):
        assert big_three_total(self.records[:3]) is None

    def test_progression(self):
        record = SimpleNamespace(
            exercise_name="Bench Press",
            estimated_one_rep_max=250,
            recorded_at=datetime(2026, 1, 29),
            history=[{"weight": 200, "reps": 5, "estimated_one_rep_max": 225, "date": "2026-01-01T00:00:00"}],
        )
        stats = progression(record)
        assert stats["total_improvement"] == 25
        assert stats["days_tracked"] == 28
        assert stats["average_weekly_gain"] == 6.2
        assert stats["pr_count"] == 2

    def test_progression_without_history(self):
        assert progression(self.records[0]) is None


def test_normalize_exercise_name():
    assert normalize_exercise_name("  Pull-Ups  (Weighted) ") == "pullups weighted"
