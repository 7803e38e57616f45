"""Recovery readiness scoring.

Combines HRV, sleep, resting heart rate and subjective check-in data into a
0-100 readiness score and maps it onto a training intensity modifier.
Missing factors are left out and the remaining weights are renormalized.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

import numpy as np

from ..config import config

logger = logging.getLogger(__name__)

DEFAULT_READINESS_SCORE = 70
SLEEP_TARGET_HOURS = 8.0


class Recommendation(Enum):
    """Daily training recommendation derived from readiness."""
    PUSH_HARD = "push-hard"
    FULL_INTENSITY = "full-intensity"
    MODERATE_INTENSITY = "moderate-intensity"
    REDUCE_VOLUME = "reduce-volume"
    ACTIVE_RECOVERY = "active-recovery"


# (minimum score, recommendation, intensity modifier, explanation)
READINESS_BANDS = [
    (85, Recommendation.PUSH_HARD, 1.05,
     "Exceptional recovery. Consider pushing intensity or adding volume."),
    (70, Recommendation.FULL_INTENSITY, 1.0,
     "Good recovery. Train as programmed."),
    (55, Recommendation.MODERATE_INTENSITY, 0.9,
     "Moderate recovery. Reduce top sets by 5-10% or drop 1 set per exercise."),
    (40, Recommendation.REDUCE_VOLUME, 0.75,
     "Low recovery. Reduce volume by 25% and focus on technique."),
    (0, Recommendation.ACTIVE_RECOVERY, 0.5,
     "Poor recovery. Consider light mobility work or full rest day."),
]


@dataclass
class ReadinessSnapshot:
    """Point-in-time readiness assessment."""
    readiness_score: int
    intensity_modifier: float
    recommendation: Recommendation
    factor_breakdown: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    data_available: bool = True
    explanation: str = ""
    factor_summary: str = ""
    trend: str = "insufficient-data"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "readiness_score": self.readiness_score,
            "intensity_modifier": self.intensity_modifier,
            "recommendation": self.recommendation.value,
            "factors": self.factor_breakdown,
            "data_available": self.data_available,
            "explanation": self.explanation,
            "factor_summary": self.factor_summary,
            "trend": self.trend,
        }


@dataclass
class DeloadAdvice:
    recommend: bool
    reason: str
    severity: Optional[str] = None  # light-deload, full-deload
    suggestion: Optional[str] = None


def _clip(value: float) -> float:
    return float(np.clip(value, 0, 100))


def _as_date(value) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value)).date()
    except ValueError:
        return None


def _sleep_hours(reading: Dict[str, Any]) -> Optional[float]:
    if reading.get("sleep_hours"):
        return float(reading["sleep_hours"])
    if reading.get("sleep_minutes"):
        return float(reading["sleep_minutes"]) / 60
    return None


class ReadinessScorer:
    """Score daily readiness from wearable readings and check-ins."""

    def __init__(self, weights: Optional[Dict[str, float]] = None,
                 hrv_baseline: Optional[float] = None):
        self.weights = weights or {
            "hrv": config.READINESS_WEIGHT_HRV,
            "sleep": config.READINESS_WEIGHT_SLEEP,
            "rhr": config.READINESS_WEIGHT_RHR,
            "subjective": config.READINESS_WEIGHT_SUBJECTIVE,
        }
        self.default_hrv_baseline = hrv_baseline or config.READINESS_DEFAULT_HRV_BASELINE
        self.logger = logging.getLogger(__name__)

    def score(self, recent_biometrics: Optional[List[Dict[str, Any]]],
              recent_check_in: Optional[Dict[str, Any]] = None,
              now: Optional[datetime] = None) -> ReadinessSnapshot:
        """Compute readiness from the last week of readings.

        Args:
            recent_biometrics: Readings with date, hrv, hrv_baseline,
                sleep_hours or sleep_minutes, sleep_score, resting_heart_rate
            recent_check_in: Check-in with date, mood, energy, soreness (1-5)
            now: Evaluation time, defaults to the current time

        Returns:
            ReadinessSnapshot
        """
        now = now or datetime.now()
        readings = sorted(
            [r for r in (recent_biometrics or []) if _as_date(r.get("date"))],
            key=lambda r: _as_date(r["date"]),
            reverse=True,
        )
        latest = readings[0] if readings else None

        factors: Dict[str, Dict[str, Any]] = {}
        if latest:
            hrv = self._hrv_factor(latest)
            if hrv:
                factors["hrv"] = hrv
            sleep = self._sleep_factor(latest)
            if sleep:
                factors["sleep"] = sleep
            rhr = self._rhr_factor(latest, readings)
            if rhr:
                factors["rhr"] = rhr
        subjective = self._subjective_factor(recent_check_in, now)
        if subjective:
            factors["subjective"] = subjective

        trend = self.calculate_trend(readings)

        if not factors:
            return ReadinessSnapshot(
                readiness_score=DEFAULT_READINESS_SCORE,
                intensity_modifier=1.0,
                recommendation=Recommendation.FULL_INTENSITY,
                data_available=False,
                explanation="No wearable data available. Training at full intensity by default.",
                trend=trend,
            )

        total = sum(f["score"] * self.weights[name] for name, f in factors.items())
        used_weight = sum(self.weights[name] for name in factors)
        readiness = int(round(total / used_weight))

        recommendation, modifier, explanation = self.classify(readiness)
        summary = self._summarize(factors)
        self.logger.debug(f"Readiness {readiness} from {sorted(factors)} (weights {used_weight:.2f})")

        return ReadinessSnapshot(
            readiness_score=readiness,
            intensity_modifier=modifier,
            recommendation=recommendation,
            factor_breakdown=factors,
            data_available=True,
            explanation=explanation,
            factor_summary=summary,
            trend=trend,
        )

    @staticmethod
    def classify(readiness: float):
        """Map a readiness score to (recommendation, modifier, explanation)."""
        for minimum, recommendation, modifier, explanation in READINESS_BANDS:
            if readiness >= minimum:
                return recommendation, modifier, explanation
        _, recommendation, modifier, explanation = READINESS_BANDS[-1]
        return recommendation, modifier, explanation

    def _hrv_factor(self, reading):
        hrv = reading.get("hrv")
        if not hrv:
            return None
        baseline = reading.get("hrv_baseline") or self.default_hrv_baseline
        ratio = hrv / baseline
        return {
            "value": hrv,
            "baseline": baseline,
            "score": _clip(ratio * 70 + 30),
            "status": "elevated" if ratio >= 1.1 else "normal" if ratio >= 0.9 else "low",
        }

    def _sleep_factor(self, reading):
        hours = _sleep_hours(reading)
        if not hours:
            return None
        quality = reading.get("sleep_score")
        bonus = (quality - 70) / 30 * 10 if quality else 0
        return {
            "hours": round(hours, 1),
            "quality": quality,
            "score": _clip(hours / SLEEP_TARGET_HOURS * 80 + 20 + bonus),
            "status": "good" if hours >= 7 else "fair" if hours >= 6 else "poor",
        }

    def _rhr_factor(self, latest, readings):
        today_rhr = latest.get("resting_heart_rate")
        if not today_rhr:
            return None
        window_start = _as_date(latest["date"]) - timedelta(days=6)
        values = [
            r["resting_heart_rate"] for r in readings
            if r.get("resting_heart_rate") and _as_date(r["date"]) >= window_start
        ]
        average = float(np.mean(values))
        diff = average - today_rhr
        return {
            "value": today_rhr,
            "average": int(round(average)),
            "score": _clip(70 + diff * 5),
            "status": "elevated" if diff >= 3 else "normal" if diff >= -3 else "low",
        }

    def _subjective_factor(self, check_in, now):
        if not check_in:
            return None
        check_in_date = _as_date(check_in.get("date"))
        if check_in_date is None:
            return None
        if (now.date() - check_in_date).days > config.CHECK_IN_MAX_AGE_DAYS:
            return None

        mood = check_in.get("mood")
        energy = check_in.get("energy")
        soreness = check_in.get("soreness")
        components = [
            mood / 5 * 100 if mood else 70,
            energy / 5 * 100 if energy else 70,
            (6 - soreness) / 5 * 100 if soreness else 70,
        ]
        return {
            "mood": mood,
            "energy": energy,
            "soreness": soreness,
            "score": _clip(float(np.mean(components))),
            "status": "from-checkin",
        }

    @staticmethod
    def _summarize(factors) -> str:
        details = []
        if "hrv" in factors:
            details.append(f"HRV: {factors['hrv']['value']} ({factors['hrv']['status']})")
        if "sleep" in factors:
            details.append(f"Sleep: {factors['sleep']['hours']}h ({factors['sleep']['status']})")
        if "rhr" in factors:
            details.append(f"RHR: {factors['rhr']['value']} bpm ({factors['rhr']['status']})")
        if "subjective" in factors:
            details.append(f"Check-in: {round(factors['subjective']['score'])}")
        return " | ".join(details)

    @staticmethod
    def calculate_trend(readings: List[Dict[str, Any]]) -> str:
        """Compare the three newest recovery scores against the three oldest.

        Readings are expected newest first.
        """
        scores = [r["recovery_score"] for r in readings if r.get("recovery_score")]
        if len(scores) < 3:
            return "insufficient-data"

        recent = float(np.mean(scores[:3]))
        older = float(np.mean(scores[-3:]))
        diff = recent - older
        if diff > 5:
            return "improving"
        if diff < -5:
            return "declining"
        return "stable"

    @staticmethod
    def should_deload(readings: List[Dict[str, Any]], weeks_of_training: int = 4) -> DeloadAdvice:
        """Recommend a deload when recovery declines or stays low.

        Args:
            readings: Readings covering the training block, any order
            weeks_of_training: Block length used in the reason text
        """
        ordered = sorted(
            [r for r in readings if _as_date(r.get("date"))],
            key=lambda r: _as_date(r["date"]),
        )
        if len(ordered) < 14:
            return DeloadAdvice(recommend=False, reason="Insufficient data for deload analysis")

        middle = len(ordered) // 2
        first_half, second_half = ordered[:middle], ordered[middle:]
        first_scores = [r["recovery_score"] for r in first_half if r.get("recovery_score")]
        second_scores = [r["recovery_score"] for r in second_half if r.get("recovery_score")]
        if not first_scores or not second_scores:
            return DeloadAdvice(recommend=False, reason="Insufficient data for deload analysis")

        decline = float(np.mean(first_scores)) - float(np.mean(second_scores))
        low_share = sum(1 for score in second_scores if score < 60) / len(second_half)

        if decline > 10 or low_share > 0.5:
            full = decline > 15 or low_share > 0.7
            if decline > 10:
                reason = f"Recovery declining ({round(decline)} points over {weeks_of_training} weeks)"
            else:
                reason = f"{round(low_share * 100)}% of recent days below threshold"
            return DeloadAdvice(
                recommend=True,
                reason=reason,
                severity="full-deload" if full else "light-deload",
                suggestion=(
                    "Take a full deload week: reduce volume 50%, intensity 60-70%"
                    if full else
                    "Take a light deload: reduce volume 30%, maintain intensity"
                ),
            )

        return DeloadAdvice(recommend=False, reason="Recovery metrics stable")
