"""Personal record estimation and detection.

Estimates one-rep maxes from logged sets (Brzycki up to 12 reps, Epley above),
derives rep-max tables for load prescription and decides whether a submission
sets a new personal record.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

REP_MAX_TARGETS = (1, 3, 5, 8, 10)
DEFAULT_HISTORY_LIMIT = 10

COMPOUND_KEYWORDS = ("squat", "bench", "deadlift", "overhead press", "row", "pullup", "pull up", "chinup", "chin up")


def estimate_one_rep_max(weight: float, reps: int) -> int:
    """Estimate a one-rep max from a single set.

    Args:
        weight: Load lifted (lb)
        reps: Repetitions completed

    Returns:
        Rounded estimated 1RM, 0 for non-positive input
    """
    if not weight or not reps or weight <= 0 or reps <= 0:
        return 0
    if reps == 1:
        return int(round(weight))
    if reps > 12:
        # Epley
        return int(round(weight * (1 + reps / 30)))
    # Brzycki
    return int(round(weight * 36 / (37 - reps)))


def weight_for_reps(one_rep_max: float, reps: int) -> int:
    """Load expected to be lifted for the given number of reps (inverse Brzycki)."""
    if reps <= 1:
        return int(round(one_rep_max))
    return int(round(one_rep_max * (37 - reps) / 36))


def rep_max_table(one_rep_max: float) -> Dict[str, int]:
    return {f"{reps}RM": weight_for_reps(one_rep_max, reps) for reps in REP_MAX_TARGETS}


def normalize_exercise_name(name: str) -> str:
    """Lower-case, strip punctuation and collapse whitespace."""
    normalized = re.sub(r"[^a-z0-9\s]", "", (name or "").lower())
    return re.sub(r"\s+", " ", normalized).strip()


def _to_number(value) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def best_set(sets: Iterable[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Set with the highest estimated 1RM, or None if no set is usable.

    Ties keep the earliest set.
    """
    best = None
    best_estimate = 0
    for logged in sets or []:
        weight = _to_number(logged.get("weight"))
        reps = _to_number(logged.get("reps"))
        if not weight or not reps:
            continue
        estimate = estimate_one_rep_max(weight, int(reps))
        if estimate > best_estimate:
            best_estimate = estimate
            best = {
                "weight": weight,
                "reps": int(reps),
                "rpe": _to_number(logged.get("rpe")),
                "estimated_one_rep_max": estimate,
            }
    return best


@dataclass
class PRResult:
    """Outcome of evaluating one exercise submission."""

    kind: str  # first-pr, new-pr, matched, no-pr
    exercise_name: str
    normalized_name: str
    estimated_one_rep_max: int
    message: str
    previous_best: Optional[int] = None
    improvement: Optional[int] = None
    improvement_percent: Optional[float] = None
    record: Optional[Dict[str, Any]] = None  # fields to persist; None leaves storage unchanged

    @property
    def is_pr(self) -> bool:
        return self.kind in ("first-pr", "new-pr")


def evaluate_submission(
    existing: Optional[Dict[str, Any]],
    exercise_name: str,
    sets: List[Dict[str, Any]],
    now: Optional[datetime] = None,
    history_limit: int = DEFAULT_HISTORY_LIMIT,
) -> Optional[PRResult]:
    """Compare a submission's best set against the stored record.

    Args:
        existing: Stored record fields (weight, reps, estimated_one_rep_max,
            recorded_at, history) or None
        exercise_name: Name as submitted
        sets: Logged sets with weight/reps/rpe
        now: Timestamp for the new record
        history_limit: Maximum archived bests kept

    Returns:
        PRResult, or None when the submission has no usable set
    """
    top = best_set(sets)
    if top is None:
        return None

    now = now or datetime.now()
    normalized = normalize_exercise_name(exercise_name)
    estimate = top["estimated_one_rep_max"]
    record = {
        "exercise_name": exercise_name,
        "normalized_name": normalized,
        "weight": top["weight"],
        "reps": top["reps"],
        "rpe": top["rpe"],
        "estimated_one_rep_max": estimate,
        "rep_max_table": rep_max_table(estimate),
        "recorded_at": now,
        "history": [],
    }
    weight_text = f"{top['weight']:g}lbs x {top['reps']}"

    if not existing:
        return PRResult(
            kind="first-pr",
            exercise_name=exercise_name,
            normalized_name=normalized,
            estimated_one_rep_max=estimate,
            message=f"First recorded {exercise_name}: {weight_text} (est. 1RM: {estimate}lbs)",
            record=record,
        )

    previous_best = existing.get("estimated_one_rep_max") or estimate_one_rep_max(
        existing.get("weight", 0), existing.get("reps", 0)
    )

    if estimate > previous_best:
        improvement = estimate - previous_best
        improvement_percent = round(improvement / previous_best * 100, 1) if previous_best else None
        recorded_at = existing.get("recorded_at")
        history = list(existing.get("history") or [])
        history.append({
            "weight": existing.get("weight"),
            "reps": existing.get("reps"),
            "estimated_one_rep_max": previous_best,
            "date": recorded_at.isoformat() if isinstance(recorded_at, datetime) else recorded_at,
        })
        record["history"] = history[-history_limit:]
        return PRResult(
            kind="new-pr",
            exercise_name=exercise_name,
            normalized_name=normalized,
            estimated_one_rep_max=estimate,
            previous_best=previous_best,
            improvement=improvement,
            improvement_percent=improvement_percent,
            message=(
                f"NEW PR! {exercise_name}: {weight_text} (est. 1RM: {estimate}lbs, "
                f"+{improvement}lbs / +{improvement_percent}%)"
            ),
            record=record,
        )

    if estimate == previous_best:
        return PRResult(
            kind="matched",
            exercise_name=exercise_name,
            normalized_name=normalized,
            estimated_one_rep_max=estimate,
            previous_best=previous_best,
            message=f"Matched PR: {exercise_name} at {estimate}lbs estimated 1RM",
        )

    return PRResult(
        kind="no-pr",
        exercise_name=exercise_name,
        normalized_name=normalized,
        estimated_one_rep_max=estimate,
        previous_best=previous_best,
        message=f"{exercise_name}: est. 1RM {estimate}lbs (best {previous_best}lbs)",
    )


def is_compound(exercise_name: str) -> bool:
    normalized = normalize_exercise_name(exercise_name)
    return any(keyword in normalized for keyword in COMPOUND_KEYWORDS)


def group_records(records: List[Any]) -> Dict[str, List[Any]]:
    """Split records into compounds and accessories, best first."""
    grouped = {"compounds": [], "accessories": []}
    for record in records:
        key = "compounds" if is_compound(record.exercise_name) else "accessories"
        grouped[key].append(record)
    for key in grouped:
        grouped[key].sort(key=lambda r: r.estimated_one_rep_max or 0, reverse=True)
    return grouped


def big_three_total(records: List[Any]) -> Optional[Dict[str, int]]:
    """Powerlifting total from squat, bench and deadlift records.

    Front/pause squats, close-grip/incline bench and romanian/deficit
    deadlifts do not count.
    """
    def find(lift, excluded):
        for record in records:
            name = normalize_exercise_name(record.exercise_name)
            if lift in name and not any(word in name for word in excluded):
                return record
        return None

    squat = find("squat", ("front", "pause"))
    bench = find("bench", ("close", "incline"))
    deadlift = find("deadlift", ("romanian", "deficit"))
    if not squat or not bench or not deadlift:
        return None

    return {
        "squat": squat.estimated_one_rep_max,
        "bench": bench.estimated_one_rep_max,
        "deadlift": deadlift.estimated_one_rep_max,
        "total": squat.estimated_one_rep_max + bench.estimated_one_rep_max + deadlift.estimated_one_rep_max,
    }


def progression(record: Any) -> Optional[Dict[str, Any]]:
    """Improvement statistics since the oldest archived best."""
    history = record.history or []
    if not history:
        return None

    oldest = history[0]
    oldest_estimate = oldest.get("estimated_one_rep_max") or estimate_one_rep_max(
        oldest.get("weight", 0), oldest.get("reps", 0)
    )
    total_improvement = record.estimated_one_rep_max - oldest_estimate

    days_tracked = None
    weekly_gain = None
    if oldest.get("date") and record.recorded_at:
        oldest_date = datetime.fromisoformat(oldest["date"]) if isinstance(oldest["date"], str) else oldest["date"]
        days_tracked = max(1, (record.recorded_at - oldest_date).days)
        weekly_gain = round(total_improvement / days_tracked * 7, 1)

    return {
        "total_improvement": total_improvement,
        "percent_improvement": round(total_improvement / (oldest_estimate or 1) * 100, 1),
        "days_tracked": days_tracked,
        "average_weekly_gain": weekly_gain,
        "pr_count": len(history) + 1,
    }
