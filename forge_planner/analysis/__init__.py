"""Program analysis and generation modules."""

from .context import UserContext, aggregate
from .periodization import PeriodizationType, TrainingPhase, phase_for_week
from .readiness import ReadinessScorer, ReadinessSnapshot, Recommendation
from .records import estimate_one_rep_max, normalize_exercise_name, rep_max_table

__all__ = [
    "UserContext",
    "aggregate",
    "PeriodizationType",
    "TrainingPhase",
    "phase_for_week",
    "ReadinessScorer",
    "ReadinessSnapshot",
    "Recommendation",
    "estimate_one_rep_max",
    "normalize_exercise_name",
    "rep_max_table",
]
