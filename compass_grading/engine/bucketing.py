"""Map percentages to letter grades and achievement levels.

Two letter-grade tables exist:

* the FINE table (A+ through F, 13 buckets) is canonical and used for
  every assignment, submission, class and distribution context;
* the COARSE table (A/B/C/D/F) is only used for a student's cross-course
  summary.

Achievement levels follow the four-level scale. Two threshold tables are
exposed as named constants and the one in use is picked by configuration
(see ``GradingPolicy``).

Boundaries are inclusive lower bounds, so 90.0 is an A- and 89.99 a B+.
Percentages above 100 (extra credit) land in the top bucket; negative or
non-finite input raises ``InvalidInputError``.
"""

import enum
import math
from typing import Dict, Sequence, Tuple

from .errors import ConfigurationError, InvalidInputError


class LetterGrade(str, enum.Enum):
    """Fine-grained letter grades, best first."""
    A_PLUS = "A+"
    A = "A"
    A_MINUS = "A-"
    B_PLUS = "B+"
    B = "B"
    B_MINUS = "B-"
    C_PLUS = "C+"
    C = "C"
    C_MINUS = "C-"
    D_PLUS = "D+"
    D = "D"
    D_MINUS = "D-"
    F = "F"

    @property
    def lower_bound(self) -> float:
        return _LOWER_BOUNDS[self]

    @property
    def upper_bound(self) -> float:
        """Exclusive upper bound (100 for A+, which is closed at the top)."""
        return _UPPER_BOUNDS[self]

    @property
    def label(self) -> str:
        """Display label such as ``"A+ (97-100%)"``."""
        upper = 100 if self is LetterGrade.A_PLUS else int(self.upper_bound) - 1
        return f"{self.value} ({int(self.lower_bound)}-{upper}%)"

    @property
    def midpoint(self) -> float:
        """Representative value of the bucket, used to place it on a chart axis."""
        return _MIDPOINTS[self]

    @property
    def is_passing(self) -> bool:
        return self is not LetterGrade.F


# (inclusive lower bound, grade), highest first
FINE_LETTER_SCALE: Tuple[Tuple[float, LetterGrade], ...] = (
    (97.0, LetterGrade.A_PLUS),
    (93.0, LetterGrade.A),
    (90.0, LetterGrade.A_MINUS),
    (87.0, LetterGrade.B_PLUS),
    (83.0, LetterGrade.B),
    (80.0, LetterGrade.B_MINUS),
    (77.0, LetterGrade.C_PLUS),
    (73.0, LetterGrade.C),
    (70.0, LetterGrade.C_MINUS),
    (67.0, LetterGrade.D_PLUS),
    (63.0, LetterGrade.D),
    (60.0, LetterGrade.D_MINUS),
    (0.0, LetterGrade.F),
)

COARSE_LETTER_SCALE: Tuple[Tuple[float, str], ...] = (
    (90.0, "A"),
    (80.0, "B"),
    (70.0, "C"),
    (60.0, "D"),
    (0.0, "F"),
)

_LOWER_BOUNDS: Dict[LetterGrade, float] = {grade: bound for bound, grade in FINE_LETTER_SCALE}
_UPPER_BOUNDS: Dict[LetterGrade, float] = {
    grade: (100.0 if i == 0 else FINE_LETTER_SCALE[i - 1][0])
    for i, (_, grade) in enumerate(FINE_LETTER_SCALE)
}
_MIDPOINTS: Dict[LetterGrade, float] = {
    LetterGrade.A_PLUS: 98.5,
    LetterGrade.A: 94.5,
    LetterGrade.A_MINUS: 91.0,
    LetterGrade.B_PLUS: 88.0,
    LetterGrade.B: 84.5,
    LetterGrade.B_MINUS: 81.0,
    LetterGrade.C_PLUS: 78.0,
    LetterGrade.C: 74.5,
    LetterGrade.C_MINUS: 71.0,
    LetterGrade.D_PLUS: 68.0,
    LetterGrade.D: 64.5,
    LetterGrade.D_MINUS: 61.0,
    LetterGrade.F: 50.0,
}

# (inclusive lower bound, level), highest first
STANDARD_ACHIEVEMENT_THRESHOLDS: Tuple[Tuple[float, int], ...] = (
    (90.0, 4),
    (75.0, 3),
    (60.0, 2),
    (0.0, 1),
)

ALTERNATE_ACHIEVEMENT_THRESHOLDS: Tuple[Tuple[float, int], ...] = (
    (85.0, 4),
    (70.0, 3),
    (60.0, 2),
    (0.0, 1),
)

ACHIEVEMENT_TABLES: Dict[str, Tuple[Tuple[float, int], ...]] = {
    "standard": STANDARD_ACHIEVEMENT_THRESHOLDS,
    "alternate": ALTERNATE_ACHIEVEMENT_THRESHOLDS,
}

ACHIEVEMENT_LABELS = {
    1: ("Level 1", "Below Basic - Student demonstrates minimal understanding and requires significant support."),
    2: ("Level 2", "Basic - Student demonstrates partial understanding but requires some support."),
    3: ("Level 3", "Proficient - Student demonstrates adequate understanding with independence."),
    4: ("Level 4", "Advanced - Student demonstrates thorough understanding and can apply concepts."),
}


def _check_percentage(percentage: float) -> float:
    if isinstance(percentage, bool) or not isinstance(percentage, (int, float)):
        raise InvalidInputError(f"Percentage must be a number, got {percentage!r}")
    if not math.isfinite(percentage):
        raise InvalidInputError(f"Percentage must be finite, got {percentage!r}")
    if percentage < 0:
        raise InvalidInputError(f"Percentage cannot be negative, got {percentage!r}")
    return float(percentage)


def _lookup(percentage: float, table: Sequence[Tuple[float, object]]):
    for lower_bound, bucket in table:
        if percentage >= lower_bound:
            return bucket
    # Tables end at 0 and negatives are rejected, so this is unreachable
    return table[-1][1]


def letter_grade(percentage: float) -> LetterGrade:
    """Fine letter grade for a percentage."""
    return _lookup(_check_percentage(percentage), FINE_LETTER_SCALE)


def coarse_letter_grade(percentage: float) -> str:
    """Coarse A/B/C/D/F grade, used for a student's overall summary."""
    return _lookup(_check_percentage(percentage), COARSE_LETTER_SCALE)


def get_achievement_table(name: str) -> Tuple[Tuple[float, int], ...]:
    """Look up an achievement threshold table by its configuration name."""
    try:
        return ACHIEVEMENT_TABLES[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown achievement table {name!r}; expected one of {sorted(ACHIEVEMENT_TABLES)}"
        )


def achievement_level_for_percentage(
    percentage: float,
    thresholds: Sequence[Tuple[float, int]] = STANDARD_ACHIEVEMENT_THRESHOLDS
) -> int:
    """Achievement level (1-4) for a percentage."""
    return _lookup(_check_percentage(percentage), thresholds)


def achievement_level(
    score: float,
    total_points: float,
    thresholds: Sequence[Tuple[float, int]] = STANDARD_ACHIEVEMENT_THRESHOLDS
) -> int:
    """
    Achievement level (1-4) for a raw score out of total_points.

    Args:
        score: Points earned
        total_points: Points possible, must be positive
        thresholds: Threshold table, standard by default

    Returns:
        Level number between 1 and 4

    Raises:
        InvalidInputError: If total_points is not positive or score is negative
    """
    if total_points is None or total_points <= 0:
        raise InvalidInputError(f"Total points must be positive, got {total_points!r}")
    if score is None or score < 0:
        raise InvalidInputError(f"Score cannot be negative, got {score!r}")
    return achievement_level_for_percentage(score * 100 / total_points, thresholds)


def achievement_label(level: int) -> str:
    """Short label for an achievement level, e.g. ``"Level 3"``."""
    if level not in ACHIEVEMENT_LABELS:
        raise InvalidInputError(f"Achievement level must be 1-4, got {level!r}")
    return ACHIEVEMENT_LABELS[level][0]


def achievement_description(level: int) -> str:
    if level not in ACHIEVEMENT_LABELS:
        raise InvalidInputError(f"Achievement level must be 1-4, got {level!r}")
    return ACHIEVEMENT_LABELS[level][1]
