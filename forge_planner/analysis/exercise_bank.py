"""Static exercise catalog and per-discipline exercise banks.

The catalog is a read-only lookup table with muscle, equipment, movement
pattern and difficulty metadata. The discipline banks, warmup families and
cooldown pools feed deterministic program synthesis.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .records import normalize_exercise_name


class Difficulty(Enum):
    BEGINNER = 1
    INTERMEDIATE = 2
    ADVANCED = 3
    ELITE = 4


@dataclass(frozen=True)
class Exercise:
    """Catalog entry."""
    id: str
    name: str
    primary: Tuple[str, ...]
    equipment: Tuple[str, ...]
    pattern: str
    type: str
    difficulty: int
    secondary: Tuple[str, ...] = ()
    powerlifting: bool = False
    cues: Tuple[str, ...] = ()

    @property
    def is_compound(self) -> bool:
        return self.type in ("compound", "power")


def _ex(id, name, primary, equipment, pattern, type, difficulty, secondary=(), powerlifting=False, cues=()):
    return Exercise(
        id=id, name=name, primary=tuple(primary), equipment=tuple(equipment),
        pattern=pattern, type=type, difficulty=difficulty,
        secondary=tuple(secondary), powerlifting=powerlifting, cues=tuple(cues),
    )


CATALOG: List[Exercise] = [
    # Chest
    _ex("bb_bench_press", "Barbell Bench Press", ["chest"], ["barbell", "bench"], "push_horizontal", "compound", 2,
        ["triceps", "shoulders"], True, ["Arch upper back", "Retract scapula", "Drive feet into floor", "Touch chest, pause, press"]),
    _ex("bb_incline_press", "Incline Barbell Press", ["chest"], ["barbell", "bench"], "push_horizontal", "compound", 2,
        ["shoulders", "triceps"], cues=["30-45 degree angle", "Elbows at 45 degrees"]),
    _ex("bb_floor_press", "Floor Press", ["chest"], ["barbell"], "push_horizontal", "compound", 2, ["triceps"]),
    _ex("bb_close_grip_bench", "Close Grip Bench Press", ["triceps"], ["barbell", "bench"], "push_horizontal", "compound", 2, ["chest"]),
    _ex("db_bench_press", "Dumbbell Bench Press", ["chest"], ["dumbbell", "bench"], "push_horizontal", "compound", 2, ["triceps", "shoulders"]),
    _ex("db_incline_press", "Incline Dumbbell Press", ["chest"], ["dumbbell", "bench"], "push_horizontal", "compound", 2, ["shoulders", "triceps"]),
    _ex("db_fly", "Dumbbell Fly", ["chest"], ["dumbbell", "bench"], "isolation", "isolation", 2),
    _ex("cable_crossover", "Cable Crossover", ["chest"], ["cable"], "isolation", "isolation", 2),
    _ex("machine_chest_press", "Machine Chest Press", ["chest"], ["machine"], "push_horizontal", "compound", 1, ["triceps"]),
    _ex("pec_deck", "Pec Deck", ["chest"], ["machine"], "isolation", "isolation", 1),
    _ex("push_up", "Push-Up", ["chest"], ["bodyweight"], "push_horizontal", "compound", 1, ["triceps", "shoulders", "abs"],
        cues=["Body in straight line", "Elbows at 45 degrees"]),
    _ex("incline_push_up", "Incline Push-Up", ["chest"], ["bodyweight", "box"], "push_horizontal", "compound", 1, ["triceps"]),
    _ex("archer_push_up", "Archer Push-Up", ["chest"], ["bodyweight"], "push_horizontal", "compound", 3, ["triceps"]),
    _ex("dips", "Chest Dips", ["chest"], ["dip_station"], "push_vertical", "compound", 2, ["triceps", "shoulders"]),
    # Back
    _ex("bb_deadlift", "Conventional Deadlift", ["back", "hamstrings", "glutes"], ["barbell"], "hinge", "compound", 3,
        ["quads", "forearms", "traps"], True, ["Bar over mid-foot", "Brace core", "Push floor away", "Lock hips at top"]),
    _ex("bb_sumo_deadlift", "Sumo Deadlift", ["quads", "glutes", "back"], ["barbell"], "hinge", "compound", 3, powerlifting=True),
    _ex("trap_bar_deadlift", "Trap Bar Deadlift", ["quads", "glutes", "back"], ["trap_bar"], "hinge", "compound", 2),
    _ex("bb_row", "Barbell Row", ["back", "lats"], ["barbell"], "pull_horizontal", "compound", 2, ["biceps", "rear_delts"],
        cues=["Hinge at hips", "Pull to belly button", "Squeeze shoulder blades"]),
    _ex("bb_pendlay_row", "Pendlay Row", ["back"], ["barbell"], "pull_horizontal", "compound", 3),
    _ex("db_row", "One-Arm Dumbbell Row", ["lats"], ["dumbbell", "bench"], "pull_horizontal", "compound", 2),
    _ex("db_row_chest_supported", "Chest Supported Row", ["back"], ["dumbbell", "bench"], "pull_horizontal", "compound", 1),
    _ex("cable_row_seated", "Seated Cable Row", ["back"], ["cable"], "pull_horizontal", "compound", 1),
    _ex("inverted_row", "Inverted Row", ["back"], ["bodyweight", "squat_rack"], "pull_horizontal", "compound", 1),
    _ex("cable_lat_pulldown", "Lat Pulldown", ["lats"], ["cable"], "pull_vertical", "compound", 1),
    _ex("pull_up", "Pull-Up", ["lats"], ["pull_up_bar"], "pull_vertical", "compound", 3, ["biceps", "rear_delts"]),
    _ex("chin_up", "Chin-Up", ["lats", "biceps"], ["pull_up_bar"], "pull_vertical", "compound", 2),
    _ex("muscle_up", "Muscle-Up", ["lats", "chest", "triceps"], ["pull_up_bar"], "pull_vertical", "compound", 4),
    _ex("cable_face_pull", "Face Pull", ["rear_delts", "rhomboids"], ["cable"], "pull_horizontal", "compound", 1),
    # Shoulders
    _ex("bb_ohp", "Overhead Press", ["shoulders"], ["barbell"], "push_vertical", "compound", 2, ["triceps", "traps"],
        cues=["Brace core", "Lockout overhead", "Head through at top"]),
    _ex("bb_push_press", "Push Press", ["shoulders"], ["barbell"], "push_vertical", "power", 2),
    _ex("db_ohp", "Dumbbell Overhead Press", ["shoulders"], ["dumbbell"], "push_vertical", "compound", 2),
    _ex("db_arnold_press", "Arnold Press", ["shoulders"], ["dumbbell"], "push_vertical", "compound", 2),
    _ex("machine_shoulder_press", "Machine Shoulder Press", ["shoulders"], ["machine"], "push_vertical", "compound", 1),
    _ex("pike_push_up", "Pike Push-Up", ["shoulders"], ["bodyweight"], "push_vertical", "compound", 2),
    _ex("handstand_push_up", "Handstand Push-Up", ["shoulders"], ["bodyweight"], "push_vertical", "compound", 4),
    _ex("db_lateral_raise", "Lateral Raise", ["shoulders"], ["dumbbell"], "isolation", "isolation", 1),
    _ex("db_rear_delt_fly", "Rear Delt Fly", ["rear_delts"], ["dumbbell"], "isolation", "isolation", 2),
    # Arms
    _ex("bb_curl", "Barbell Curl", ["biceps"], ["barbell"], "isolation", "isolation", 1),
    _ex("db_curl", "Dumbbell Curl", ["biceps"], ["dumbbell"], "isolation", "isolation", 1),
    _ex("db_hammer_curl", "Hammer Curl", ["biceps", "forearms"], ["dumbbell"], "isolation", "isolation", 1),
    _ex("cable_pushdown", "Cable Pushdown", ["triceps"], ["cable"], "isolation", "isolation", 1),
    _ex("bb_skull_crusher", "Skull Crusher", ["triceps"], ["barbell", "bench"], "isolation", "isolation", 2),
    # Legs
    _ex("bb_squat", "Barbell Back Squat", ["quads"], ["barbell", "squat_rack"], "squat", "compound", 3,
        ["glutes", "hamstrings", "lower_back"], True, ["Bar on traps", "Brace core", "Knees over toes", "Depth to parallel or below"]),
    _ex("bb_front_squat", "Front Squat", ["quads"], ["barbell", "squat_rack"], "squat", "compound", 3),
    _ex("bb_box_squat", "Box Squat", ["quads", "glutes"], ["barbell", "squat_rack", "box"], "squat", "compound", 2),
    _ex("db_goblet_squat", "Goblet Squat", ["quads"], ["dumbbell"], "squat", "compound", 1),
    _ex("leg_press", "Leg Press", ["quads"], ["leg_press"], "squat", "compound", 1, ["glutes", "hamstrings"]),
    _ex("hack_squat_machine", "Hack Squat Machine", ["quads"], ["machine"], "squat", "compound", 2),
    _ex("bodyweight_squat", "Bodyweight Squat", ["quads"], ["bodyweight"], "squat", "compound", 1),
    _ex("pistol_squat", "Pistol Squat", ["quads"], ["bodyweight"], "squat", "compound", 4),
    _ex("db_bulgarian_split_squat", "Bulgarian Split Squat", ["quads"], ["dumbbell", "bench"], "lunge", "compound", 3),
    _ex("db_walking_lunge", "Walking Lunge", ["quads"], ["dumbbell"], "lunge", "compound", 2),
    _ex("db_reverse_lunge", "Reverse Lunge", ["quads", "glutes"], ["dumbbell"], "lunge", "compound", 2),
    _ex("bb_rdl", "Romanian Deadlift", ["hamstrings", "glutes"], ["barbell"], "hinge", "compound", 2),
    _ex("db_rdl", "Dumbbell RDL", ["hamstrings", "glutes"], ["dumbbell"], "hinge", "compound", 2),
    _ex("bb_good_morning", "Good Morning", ["hamstrings", "lower_back"], ["barbell"], "hinge", "compound", 3),
    _ex("bb_hip_thrust", "Barbell Hip Thrust", ["glutes"], ["barbell", "bench"], "hinge", "compound", 2),
    _ex("glute_bridge", "Glute Bridge", ["glutes"], ["bodyweight"], "hinge", "compound", 1),
    _ex("leg_extension", "Leg Extension", ["quads"], ["machine"], "isolation", "isolation", 1),
    _ex("leg_curl_lying", "Lying Leg Curl", ["hamstrings"], ["machine"], "isolation", "isolation", 1),
    _ex("standing_calf_raise", "Standing Calf Raise", ["calves"], ["machine"], "isolation", "isolation", 1),
    # Core
    _ex("plank", "Plank", ["abs"], ["bodyweight"], "anti_rotation", "stability", 1, ["shoulders"]),
    _ex("dead_bug", "Dead Bug", ["abs"], ["bodyweight"], "anti_rotation", "stability", 1),
    _ex("pallof_press", "Pallof Press", ["abs", "obliques"], ["cable", "resistance_band"], "anti_rotation", "stability", 2),
    _ex("ab_wheel_rollout", "Ab Wheel Rollout", ["abs"], ["ab_wheel"], "anti_rotation", "compound", 3),
    _ex("hanging_leg_raise", "Hanging Leg Raise", ["abs"], ["pull_up_bar"], "flexion", "isolation", 3),
    _ex("russian_twist", "Russian Twist", ["obliques"], ["bodyweight"], "rotation", "isolation", 2),
    # Conditioning
    _ex("kettlebell_swing", "Kettlebell Swing", ["glutes", "hamstrings"], ["kettlebell"], "hinge", "power", 2),
    _ex("farmers_carry", "Farmer's Carry", ["grip", "traps"], ["dumbbell", "kettlebell"], "carry", "compound", 2),
]

_BY_ID: Dict[str, Exercise] = {exercise.id: exercise for exercise in CATALOG}


def get_by_id(exercise_id: str) -> Optional[Exercise]:
    return _BY_ID.get(exercise_id)


def find_by_name(name: str) -> Optional[Exercise]:
    """Exact match on normalized name."""
    target = normalize_exercise_name(name)
    for exercise in CATALOG:
        if normalize_exercise_name(exercise.name) == target:
            return exercise
    return None


def get_by_muscle(muscle: str, include_secondary: bool = False) -> List[Exercise]:
    return [
        e for e in CATALOG
        if muscle in e.primary or (include_secondary and muscle in e.secondary)
    ]


def get_by_equipment(available: List[str]) -> List[Exercise]:
    """Exercises whose equipment is fully covered by the available list."""
    usable = set(available) | {"bodyweight", "none"}
    return [e for e in CATALOG if set(e.equipment) <= usable]


def get_by_pattern(pattern: str) -> List[Exercise]:
    return [e for e in CATALOG if e.pattern == pattern]


def get_by_difficulty(max_difficulty: int) -> List[Exercise]:
    return [e for e in CATALOG if e.difficulty <= max_difficulty]


def get_by_type(exercise_type: str) -> List[Exercise]:
    return [e for e in CATALOG if e.type == exercise_type]


def get_compound_exercises() -> List[Exercise]:
    return [e for e in CATALOG if e.is_compound]


def get_powerlifting_exercises() -> List[Exercise]:
    return [e for e in CATALOG if e.powerlifting]


def _related(exercise: Exercise) -> List[Exercise]:
    return [
        e for e in CATALOG
        if e.id != exercise.id
        and e.pattern == exercise.pattern
        and set(e.primary) & set(exercise.primary)
    ]


def substitutes_for(exercise_id: str, limit: int = 5) -> List[Exercise]:
    """Up to ``limit`` exercises sharing the movement pattern and a primary muscle."""
    exercise = get_by_id(exercise_id)
    if exercise is None:
        return []
    return _related(exercise)[:limit]


def progression_for(exercise_id: str, limit: int = 3) -> Dict[str, List[Exercise]]:
    """Easier and harder variations of an exercise."""
    exercise = get_by_id(exercise_id)
    if exercise is None:
        return {"easier": [], "harder": []}
    related = _related(exercise)
    return {
        "easier": [e for e in related if e.difficulty < exercise.difficulty][:limit],
        "harder": [e for e in related if e.difficulty > exercise.difficulty][:limit],
    }


# Discipline banks used by deterministic synthesis, keyed by category
DISCIPLINE_BANKS: Dict[str, Dict[str, List[str]]] = {
    "powerlifting": {
        "upper-push": ["Barbell Bench Press", "Incline Bench Press", "Close Grip Bench Press", "Overhead Press",
                       "Dumbbell Press", "Floor Press", "Dips"],
        "upper-pull": ["Barbell Row", "Pull-ups", "Lat Pulldown", "Cable Row", "Face Pulls", "Pendlay Row", "Chin-ups"],
        "lower-quad": ["Barbell Squat", "Front Squat", "Leg Press", "Bulgarian Split Squat", "Lunges", "Hack Squat",
                       "Goblet Squat"],
        "lower-hip": ["Conventional Deadlift", "Romanian Deadlift", "Sumo Deadlift", "Hip Thrust", "Good Mornings",
                      "Stiff Leg Deadlift", "Block Pulls"],
        "accessory": ["Dumbbell Curl", "Tricep Pushdown", "Lateral Raise", "Rear Delt Fly", "Plank", "Hammer Curl",
                      "Rope Pushdown", "Cable Curl"],
        "core": ["Plank", "Ab Wheel", "Hanging Leg Raise", "Cable Crunch", "Russian Twist"],
    },
    "bodybuilding": {
        "chest": ["Barbell Bench Press", "Incline Dumbbell Press", "Cable Fly", "Dips", "Pec Deck", "Decline Press",
                  "Incline Fly"],
        "back": ["Pull-ups", "Barbell Row", "Lat Pulldown", "Cable Row", "Dumbbell Row", "T-Bar Row",
                 "Straight Arm Pulldown"],
        "shoulders": ["Overhead Press", "Lateral Raise", "Front Raise", "Rear Delt Fly", "Face Pulls", "Arnold Press",
                      "Cable Lateral Raise"],
        "legs": ["Barbell Squat", "Leg Press", "Romanian Deadlift", "Leg Curl", "Leg Extension", "Calf Raise",
                 "Walking Lunges", "Sissy Squat"],
        "arms": ["Barbell Curl", "Tricep Pushdown", "Hammer Curl", "Skull Crushers", "Cable Curl", "Preacher Curl",
                 "Overhead Tricep Extension"],
        "core": ["Cable Crunch", "Hanging Leg Raise", "Decline Sit-ups", "Ab Wheel", "Plank"],
    },
    "general-fitness": {
        "upper": ["Push-ups", "Dumbbell Press", "Dumbbell Row", "Lat Pulldown", "Shoulder Press", "Cable Fly",
                  "Face Pulls"],
        "upper-push": ["Push-ups", "Dumbbell Press", "Shoulder Press", "Incline Press", "Dips", "Cable Fly"],
        "upper-pull": ["Dumbbell Row", "Lat Pulldown", "Cable Row", "Face Pulls", "Pull-ups", "Rear Delt Fly"],
        "lower": ["Goblet Squat", "Romanian Deadlift", "Lunges", "Leg Press", "Calf Raise", "Step-ups", "Hip Thrust"],
        "core": ["Plank", "Dead Bug", "Russian Twist", "Bird Dog", "Ab Wheel", "Mountain Climbers"],
        "full": ["Kettlebell Swing", "Dumbbell Clean", "Burpees", "Mountain Climbers", "Box Jumps", "Thrusters"],
        "accessory": ["Dumbbell Curl", "Tricep Pushdown", "Lateral Raise", "Rear Delt Fly", "Plank", "Calf Raise"],
    },
}

DEFAULT_DISCIPLINE = "general-fitness"

# name, reps, notes; every warmup is prescribed for 2 sets
WARMUP_FAMILIES: Dict[str, List[Tuple[str, str, str]]] = {
    "lower": [
        ("Leg Swings", "10 each leg", "Front-to-back and side-to-side"),
        ("Bodyweight Squats", "10", "Slow and controlled"),
        ("Hip Circles", "10 each direction", "Open up the hips"),
    ],
    "upper": [
        ("Arm Circles", "10 each direction", "Small to large circles"),
        ("Band Pull-Aparts", "15", "Activate rear delts"),
        ("Push-up Plus", "10", "Protract shoulders at top"),
    ],
    "pull": [
        ("Cat-Cow Stretch", "10", "Mobilize the spine"),
        ("Band Pull-Aparts", "15", "Activate rear delts"),
        ("Scapular Pull-ups", "10", "Engage lats"),
    ],
    "general": [
        ("Jumping Jacks", "20", "Get heart rate up"),
        ("World's Greatest Stretch", "5 each side", "Full body mobility"),
        ("Inchworms", "8", "Hamstrings and core activation"),
    ],
}

# name, hold
COOLDOWN_POOLS: Dict[str, List[Tuple[str, str]]] = {
    "lower": [
        ("Standing Hamstring Stretch", "30 sec each side"),
        ("Standing Quad Stretch", "30 sec each side"),
        ("Pigeon Pose", "45 sec each side"),
        ("Couch Stretch", "45 sec each side"),
        ("Kneeling Hip Flexor Stretch", "30 sec each side"),
        ("Calf Stretch", "30 sec each side"),
        ("Quad Foam Roll", "60 sec"),
        ("90-90 Hip Stretch", "30 sec each side"),
        ("Child's Pose", "60 sec"),
    ],
    "upper": [
        ("Doorway Chest Stretch", "30 sec each side"),
        ("Cross-Body Shoulder Stretch", "30 sec each side"),
        ("Overhead Tricep Stretch", "30 sec each side"),
        ("Lat Stretch", "30 sec each side"),
        ("Thoracic Foam Roll", "60 sec"),
        ("Thread the Needle", "30 sec each side"),
        ("Wrist Flexor Stretch", "30 sec each side"),
        ("Neck Side Stretch", "30 sec each side"),
        ("Child's Pose", "60 sec"),
    ],
    "general": [
        ("Child's Pose", "60 sec"),
        ("Standing Hamstring Stretch", "30 sec each side"),
        ("Kneeling Hip Flexor Stretch", "30 sec each side"),
        ("Doorway Chest Stretch", "30 sec each side"),
        ("Cat-Cow Stretch", "10 reps"),
        ("Thoracic Rotation", "8 each side"),
        ("Pigeon Pose", "45 sec each side"),
        ("Cross-Body Shoulder Stretch", "30 sec each side"),
        ("Box Breathing", "2 min"),
    ],
}


def get_discipline_bank(discipline: str) -> Dict[str, List[str]]:
    """Copy of the bank for a discipline; unknown disciplines get general fitness."""
    bank = DISCIPLINE_BANKS.get(discipline, DISCIPLINE_BANKS[DEFAULT_DISCIPLINE])
    return {category: list(names) for category, names in bank.items()}


# Injured body part -> primary muscles that load it
INJURY_MUSCLES: Dict[str, Tuple[str, ...]] = {
    "shoulder": ("shoulders", "rear_delts"),
    "knee": ("quads",),
    "back": ("back", "lower_back"),
    "lower_back": ("lower_back", "back"),
    "elbow": ("triceps", "biceps"),
    "wrist": ("forearms", "grip"),
    "hip": ("glutes",),
    "hamstring": ("hamstrings",),
    "neck": ("traps",),
}


def injury_muscles(body_part: str) -> Tuple[str, ...]:
    """Muscles ruled out by an injury; a part that is itself a muscle maps to itself."""
    key = re.sub(r"[\s\-]+", "_", str(body_part).strip().lower())
    if key in INJURY_MUSCLES:
        return INJURY_MUSCLES[key]
    if key.endswith("s") and key[:-1] in INJURY_MUSCLES:
        return INJURY_MUSCLES[key[:-1]]
    return (key,)


def stresses_injury(exercise_name: str, injuries) -> bool:
    """True when a catalog exercise's primary muscles include an injured area.

    Names outside the catalog are never matched.
    """
    if not injuries:
        return False
    exercise = find_by_name(exercise_name)
    if exercise is None:
        return False
    muscles = {muscle for part in injuries for muscle in injury_muscles(part)}
    return bool(muscles & set(exercise.primary))
