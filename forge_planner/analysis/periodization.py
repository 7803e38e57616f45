"""Training periodization: phases, week lookup and deload annotation."""

import copy
import logging
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, List, Optional, Set

logger = logging.getLogger(__name__)

DEFAULT_INTENSITY_RANGE = [70, 80]
LOADING_WEEKS_PER_BLOCK = 3


class PeriodizationType(Enum):
    """Types of periodization models."""

    LINEAR = "linear"  # Steady increase in intensity across phases
    BLOCK = "block"  # Focused blocks of a single quality
    UNDULATING = "undulating"  # Intensity varies within the week
    CONJUGATE = "conjugate"  # Max effort and dynamic effort days concurrently
    AUTOREGULATED = "autoregulated"  # Load follows daily readiness


class TrainingPhase(Enum):
    """Training phases in a periodized program."""

    ACCUMULATION = "accumulation"  # Volume emphasis
    STRENGTH = "strength"
    INTENSITY = "intensity"  # Heavier loads, lower volume
    PEAK = "peak"  # Competition-specific intensity
    DELOAD = "deload"  # Reduced volume and effort
    TRANSITION = "transition"  # Active rest between programs


LOADING_PHASE_CYCLE = [
    TrainingPhase.ACCUMULATION,
    TrainingPhase.STRENGTH,
    TrainingPhase.INTENSITY,
    TrainingPhase.PEAK,
]

PHASE_TARGETS: Dict[TrainingPhase, Dict[str, Any]] = {
    TrainingPhase.ACCUMULATION: {"intensity_range": [65, 75], "rpe_target": 7, "volume_level": "high"},
    TrainingPhase.STRENGTH: {"intensity_range": [75, 85], "rpe_target": 8, "volume_level": "moderate"},
    TrainingPhase.INTENSITY: {"intensity_range": [80, 90], "rpe_target": 8.5, "volume_level": "moderate"},
    TrainingPhase.PEAK: {"intensity_range": [90, 100], "rpe_target": 9, "volume_level": "low"},
    TrainingPhase.DELOAD: {"intensity_range": [50, 65], "rpe_target": 6, "volume_level": "low"},
    TrainingPhase.TRANSITION: {"intensity_range": [50, 70], "rpe_target": 6, "volume_level": "low"},
}


@dataclass
class Phase:
    """Contiguous range of program weeks sharing a training emphasis."""

    name: str
    start_week: int
    end_week: int
    intensity_range: List[float]
    rpe_target: float
    volume_level: str = "moderate"

    def contains(self, week: int) -> bool:
        return self.start_week <= week <= self.end_week

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def phase_targets(name: str) -> Dict[str, Any]:
    """Default intensity range, RPE and volume for a phase name."""
    try:
        phase = TrainingPhase(name)
    except ValueError:
        return {"intensity_range": list(DEFAULT_INTENSITY_RANGE), "rpe_target": 7, "volume_level": "moderate"}
    targets = PHASE_TARGETS[phase]
    return {**targets, "intensity_range": list(targets["intensity_range"])}


def is_valid_intensity_range(value) -> bool:
    """A [min, max] pair of numbers with min < max."""
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return False
    low, high = value
    if isinstance(low, bool) or isinstance(high, bool):
        return False
    if not isinstance(low, (int, float)) or not isinstance(high, (int, float)):
        return False
    return low < high


def _as_week(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        week = int(value)
    except (TypeError, ValueError):
        return None
    return week if week >= 1 else None


def normalize_phase(phase: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a phase to start/end week form.

    A ``weeks`` list becomes ``start_week=min`` and ``end_week=max``; a single
    week number is treated as a one-week list. Missing bounds default to
    week 1. Returns a new dict.
    """
    normalized = dict(phase)
    raw_weeks = normalized.pop("weeks", None)
    if isinstance(raw_weeks, (int, float, str)) and not isinstance(raw_weeks, bool):
        raw_weeks = [raw_weeks]
    elif not isinstance(raw_weeks, (list, tuple)):
        raw_weeks = []
    weeks = [w for w in (_as_week(x) for x in raw_weeks) if w]
    if weeks:
        normalized["start_week"] = min(weeks)
        normalized["end_week"] = max(weeks)

    start = _as_week(normalized.get("start_week")) or 1
    end = _as_week(normalized.get("end_week")) or start
    if end < start:
        start, end = end, start
    normalized["start_week"] = start
    normalized["end_week"] = end
    normalized["name"] = str(normalized.get("name") or TrainingPhase.ACCUMULATION.value).lower()
    return normalized


def phase_for_week(phases: List[Dict[str, Any]], week: int) -> Optional[Dict[str, Any]]:
    """First phase containing the week, or None when no phase covers it."""
    for phase in phases or []:
        if phase.get("start_week", 0) <= week <= phase.get("end_week", -1):
            return phase
    return None


def deload_weeks(phases: List[Dict[str, Any]]) -> Set[int]:
    weeks = set()
    for phase in phases or []:
        if phase.get("name") == TrainingPhase.DELOAD.value:
            weeks.update(range(phase["start_week"], phase["end_week"] + 1))
    return weeks


def default_phases(duration_weeks: int) -> List[Dict[str, Any]]:
    """Build 4-week blocks of three loading weeks followed by a deload week.

    Loading phases cycle accumulation, strength, intensity, peak. A trailing
    block shorter than four weeks has no deload.
    """
    phases = []
    week = 1
    block = 0
    while week <= duration_weeks:
        loading = LOADING_PHASE_CYCLE[block % len(LOADING_PHASE_CYCLE)]
        loading_end = min(week + LOADING_WEEKS_PER_BLOCK - 1, duration_weeks)
        phases.append(Phase(name=loading.value, start_week=week, end_week=loading_end,
                            **phase_targets(loading.value)).to_dict())
        week = loading_end + 1
        if week <= duration_weeks and loading_end - phases[-1]["start_week"] + 1 == LOADING_WEEKS_PER_BLOCK:
            phases.append(Phase(name=TrainingPhase.DELOAD.value, start_week=week, end_week=week,
                                **phase_targets(TrainingPhase.DELOAD.value)).to_dict())
            week += 1
        block += 1
    return phases


def fill_phase_targets(phase: Dict[str, Any]) -> List[str]:
    """Fill missing or invalid targets in place. Returns the repaired fields."""
    defaults = phase_targets(phase.get("name", ""))
    repaired = []
    if not is_valid_intensity_range(phase.get("intensity_range")):
        phase["intensity_range"] = list(DEFAULT_INTENSITY_RANGE)
        repaired.append("intensity_range")
    else:
        phase["intensity_range"] = list(phase["intensity_range"])
    if not isinstance(phase.get("rpe_target"), (int, float)) or isinstance(phase.get("rpe_target"), bool):
        phase["rpe_target"] = defaults["rpe_target"]
        repaired.append("rpe_target")
    if not phase.get("volume_level"):
        phase["volume_level"] = defaults["volume_level"]
        repaired.append("volume_level")
    return repaired


def annotate(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Mark deload weeks on every weekly template from the phase list.

    Phases are authoritative: a template's own ``deload_week`` flag is
    overwritten. Returns a new payload.
    """
    annotated = copy.deepcopy(payload)
    periodization = annotated.setdefault("periodization", {})
    phases = [normalize_phase(p) for p in periodization.get("phases") or []]
    for phase in phases:
        fill_phase_targets(phase)
    periodization["phases"] = phases

    deloads = deload_weeks(phases)
    for template in annotated.get("weekly_templates") or []:
        flagged = template.get("week_number") in deloads
        if bool(template.get("deload_week")) != flagged:
            logger.debug(f"Week {template.get('week_number')} deload flag set to {flagged} from phases")
        template["deload_week"] = flagged
    return annotated
