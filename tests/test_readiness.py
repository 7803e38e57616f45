"""Tests for readiness scoring."""

from datetime import datetime, timedelta

from forge_planner.analysis.readiness import ReadinessScorer, Recommendation


class TestReadinessScorer:
    """Test readiness score calculation."""

    def setup_method(self):
        self.scorer = ReadinessScorer()
        self.now = datetime(2026, 3, 10, 7, 0)
        self.today = self.now.date().isoformat()

    def test_no_data_defaults_to_full_intensity(self):
        snapshot = self.scorer.score([], None, now=self.now)

        assert snapshot.readiness_score == 70
        assert snapshot.recommendation == Recommendation.FULL_INTENSITY
        assert snapshot.intensity_modifier == 1.0
        assert not snapshot.data_available

    def test_hrv_and_sleep_renormalized(self):
        """Missing factors drop out and the remaining weights are renormalized."""
        readings = [{"date": self.today, "hrv": 40, "hrv_baseline": 50, "sleep_hours": 5}]
        snapshot = self.scorer.score(readings, now=self.now)

        assert snapshot.factor_breakdown["hrv"]["score"] == 86
        assert snapshot.factor_breakdown["sleep"]["score"] == 70
        assert snapshot.readiness_score == 78
        assert snapshot.recommendation == Recommendation.FULL_INTENSITY
        assert snapshot.data_available

    def test_sleep_minutes_accepted(self):
        readings = [{"date": self.today, "sleep_minutes": 480}]
        snapshot = self.scorer.score(readings, now=self.now)
        assert snapshot.factor_breakdown["sleep"]["hours"] == 8.0
        assert snapshot.readiness_score == 100
        assert snapshot.recommendation == Recommendation.PUSH_HARD

    def test_elevated_resting_heart_rate_lowers_score(self):
        day = self.now.date()
        readings = [
            {"date": (day - timedelta(days=i)).isoformat(), "resting_heart_rate": 50}
            for i in range(1, 6)
        ]
        readings.append({"date": day.isoformat(), "resting_heart_rate": 62})
        snapshot = self.scorer.score(readings, now=self.now)

        assert snapshot.factor_breakdown["rhr"]["status"] == "low"
        assert snapshot.readiness_score < 55

    def test_stale_check_in_ignored(self):
        check_in = {"date": (self.now.date() - timedelta(days=3)).isoformat(), "mood": 1, "energy": 1, "soreness": 5}
        snapshot = self.scorer.score([], check_in, now=self.now)
        assert not snapshot.data_available

    def test_fresh_check_in_counts(self):
        check_in = {"date": self.today, "mood": 5, "energy": 5, "soreness": 1}
        snapshot = self.scorer.score([], check_in, now=self.now)
        assert snapshot.readiness_score == 100
        assert "subjective" in snapshot.factor_breakdown

    def test_score_is_bounded(self):
        readings = [{"date": self.today, "hrv": 500, "hrv_baseline": 50, "sleep_hours": 14, "sleep_score": 100}]
        snapshot = self.scorer.score(readings, now=self.now)
        assert 0 <= snapshot.readiness_score <= 100

    def test_to_dict(self):
        data = self.scorer.score([], now=self.now).to_dict()
        assert data["recommendation"] == "full-intensity"
        assert data["data_available"] is False


class TestClassification:
    """Test score bands."""

    def test_band_boundaries(self):
        assert ReadinessScorer.classify(85)[0] == Recommendation.PUSH_HARD
        assert ReadinessScorer.classify(84)[0] == Recommendation.FULL_INTENSITY
        assert ReadinessScorer.classify(70)[0] == Recommendation.FULL_INTENSITY
        assert ReadinessScorer.classify(55)[0] == Recommendation.MODERATE_INTENSITY
        assert ReadinessScorer.classify(40)[0] == Recommendation.REDUCE_VOLUME
        assert ReadinessScorer.classify(39) == (
            Recommendation.ACTIVE_RECOVERY, 0.5,
            "Poor recovery. Consider light mobility work or full rest day.",
        )


class TestTrendAndDeload:
    """Test trend detection and deload advice."""

    def test_trend_requires_three_scores(self):
        assert ReadinessScorer.calculate_trend([{"recovery_score": 80}]) == "insufficient-data"

    def test_trend_improving(self):
        readings = [{"recovery_score": s} for s in (90, 88, 86, 70, 68, 66)]
        assert ReadinessScorer.calculate_trend(readings) == "improving"

    def test_trend_declining(self):
        readings = [{"recovery_score": s} for s in (60, 62, 61, 80, 82, 81)]
        assert ReadinessScorer.calculate_trend(readings) == "declining"

    def _block(self, first_score, second_score, days=14):
        start = datetime(2026, 2, 1)
        return [
            {
                "date": (start + timedelta(days=i)).isoformat(),
                "recovery_score": first_score if i < days // 2 else second_score,
            }
            for i in range(days)
        ]

    def test_deload_needs_two_weeks_of_data(self):
        advice = ReadinessScorer.should_deload(self._block(80, 50, days=10))
        assert not advice.recommend

    def test_full_deload_on_sharp_decline(self):
        advice = ReadinessScorer.should_deload(self._block(80, 55))
        assert advice.recommend
        assert advice.severity == "full-deload"

    def test_stable_recovery(self):
        advice = ReadinessScorer.should_deload(self._block(75, 74))
        assert not advice.recommend
        assert advice.reason == "Recovery metrics stable"
