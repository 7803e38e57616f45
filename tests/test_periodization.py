"""Tests for periodization phases and deload annotation."""

from forge_planner.analysis.periodization import (
    annotate, default_phases, deload_weeks, fill_phase_targets,
    is_valid_intensity_range, normalize_phase, phase_for_week,
)


class TestDefaultPhases:
    """Test generated phase layouts."""

    def test_eight_week_layout(self):
        phases = default_phases(8)
        layout = [(p["name"], p["start_week"], p["end_week"]) for p in phases]
        assert layout == [
            ("accumulation", 1, 3),
            ("deload", 4, 4),
            ("strength", 5, 7),
            ("deload", 8, 8),
        ]

    def test_phases_cover_every_week_once(self):
        for duration in (4, 5, 6, 9, 12, 16):
            phases = default_phases(duration)
            covered = [w for p in phases for w in range(p["start_week"], p["end_week"] + 1)]
            assert covered == list(range(1, duration + 1))

    def test_partial_block_has_no_deload(self):
        phases = default_phases(6)
        assert phases[-1]["name"] == "strength"
        assert deload_weeks(phases) == {4}

    def test_targets_attached(self):
        strength = default_phases(8)[2]
        assert strength["intensity_range"] == [75, 85]
        assert strength["rpe_target"] == 8


class TestPhaseLookup:
    """Test week to phase lookup."""

    def setup_method(self):
        self.phases = default_phases(8)

    def test_lookup(self):
        assert phase_for_week(self.phases, 1)["name"] == "accumulation"
        assert phase_for_week(self.phases, 4)["name"] == "deload"
        assert phase_for_week(self.phases, 6)["name"] == "strength"

    def test_uncovered_week(self):
        assert phase_for_week(self.phases, 9) is None
        assert phase_for_week([], 1) is None


class TestPhaseRepair:
    """Test phase normalization and target repair."""

    def test_weeks_list_converted_to_range(self):
        phase = normalize_phase({"name": "Strength", "weeks": [3, 1, 2]})
        assert phase["start_week"] == 1
        assert phase["end_week"] == 3
        assert phase["name"] == "strength"
        assert "weeks" not in phase

    def test_single_week_number(self):
        phase = normalize_phase({"name": "strength", "weeks": 4})
        assert (phase["start_week"], phase["end_week"]) == (4, 4)

    def test_unusable_weeks_ignored(self):
        phase = normalize_phase({"name": "strength", "weeks": {"from": 1}, "start_week": 2, "end_week": 3})
        assert (phase["start_week"], phase["end_week"]) == (2, 3)

    def test_reversed_bounds_swapped(self):
        phase = normalize_phase({"name": "peak", "start_week": 6, "end_week": 4})
        assert (phase["start_week"], phase["end_week"]) == (4, 6)

    def test_intensity_range_validation(self):
        assert is_valid_intensity_range([70, 80])
        assert not is_valid_intensity_range([80, 70])
        assert not is_valid_intensity_range([70])
        assert not is_valid_intensity_range(["70", "80"])
        assert not is_valid_intensity_range([True, 80])

    def test_fill_phase_targets(self):
        phase = {"name": "peak", "intensity_range": [95, 90]}
        repaired = fill_phase_targets(phase)
        assert repaired == ["intensity_range", "rpe_target", "volume_level"]
        assert phase["intensity_range"] == [70, 80]
        assert phase["rpe_target"] == 9
        assert phase["volume_level"] == "low"


class TestAnnotate:
    """Test deload flags on weekly templates."""

    def test_phases_override_template_flags(self):
        payload = {
            "periodization": {"phases": [
                {"name": "accumulation", "start_week": 1, "end_week": 2},
                {"name": "deload", "weeks": [3]},
            ]},
            "weekly_templates": [
                {"week_number": 1, "deload_week": True},
                {"week_number": 2},
                {"week_number": 3, "deload_week": False},
            ],
        }
        annotated = annotate(payload)

        assert [t["deload_week"] for t in annotated["weekly_templates"]] == [False, False, True]
        assert annotated["periodization"]["phases"][1]["start_week"] == 3
        # input untouched
        assert payload["weekly_templates"][0]["deload_week"] is True
        assert "weeks" in payload["periodization"]["phases"][1]
