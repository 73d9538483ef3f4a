"""Cohort-level score distributions.

``analyze`` turns raw scores into percentages, buckets them into the
13 fine letter grades and computes summary statistics. Standard deviation
is the population value since a distribution always covers a whole
cohort. Commentary on the numbers is left to the caller.
"""

from __future__ import annotations

import enum
import logging
import math
import statistics
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from .bucketing import LetterGrade, letter_grade
from .errors import InvalidInputError

LOG = logging.getLogger(__name__)

DEFAULT_HEALTHY_PASSING_PERCENTAGE = 80.0
DEFAULT_HEALTHY_MAX_STD_DEV = 15.0


class ContextKind(str, enum.Enum):
    ASSIGNMENT = "assignment"
    CLASS = "class"
    SUBJECT = "subject"
    GRADE_LEVEL = "grade_level"
    SCHOOL = "school"


@dataclass(frozen=True)
class DistributionContext:
    """What a distribution was computed over."""

    kind: ContextKind = ContextKind.SCHOOL
    id: Optional[str] = None
    name: str = ""

    @property
    def description(self) -> str:
        if self.kind is ContextKind.ASSIGNMENT:
            return f"Assignment: {self.name}"
        if self.kind is ContextKind.CLASS:
            return f"Class: {self.name}"
        if self.kind is ContextKind.SUBJECT:
            return f"Subject: {self.name}"
        if self.kind is ContextKind.GRADE_LEVEL:
            return f"Grade Level: {self.name}"
        return "School-wide"


@dataclass(frozen=True)
class DistributionSummary:
    """Read-only snapshot of a score distribution, in percentages."""

    count: int
    mean: float
    median: float
    std_dev: float
    mode: Optional[float]
    minimum: float
    maximum: float
    bucket_counts: Dict[LetterGrade, int]
    context: DistributionContext = field(default_factory=DistributionContext)
    healthy_passing_percentage: float = DEFAULT_HEALTHY_PASSING_PERCENTAGE
    healthy_max_std_dev: float = DEFAULT_HEALTHY_MAX_STD_DEV

    def percentage_in_range(self, grades: Iterable[LetterGrade]) -> float:
        """Share of the cohort (0-100) whose grade is one of ``grades``."""
        if self.count == 0:
            return 0.0
        in_range = sum(self.bucket_counts.get(grade, 0) for grade in set(grades))
        return in_range * 100 / self.count

    @property
    def passing_percentage(self) -> float:
        return self.percentage_in_range(g for g in LetterGrade if g.is_passing)

    @property
    def is_healthy_distribution(self) -> bool:
        return (self.passing_percentage >= self.healthy_passing_percentage
                and self.std_dev < self.healthy_max_std_dev)

    def to_dict(self) -> Dict[str, object]:
        return {
            "context": self.context.description,
            "count": self.count,
            "mean": self.mean,
            "median": self.median,
            "std_dev": self.std_dev,
            "mode": self.mode,
            "min": self.minimum,
            "max": self.maximum,
            "passing_percentage": self.passing_percentage,
            "is_healthy": self.is_healthy_distribution,
            "buckets": {grade.value: self.bucket_counts[grade] for grade in LetterGrade},
        }


def _mode(percentages: Sequence[float]) -> Optional[float]:
    """Most frequent value; None if nothing repeats. Ties go to the lowest value."""
    counts = Counter(percentages)
    top = max(counts.values())
    if top < 2:
        return None
    return min(value for value, n in counts.items() if n == top)


def _to_percentages(scores: Iterable[float], total_points: float) -> List[float]:
    if total_points is None or total_points <= 0:
        raise InvalidInputError(f"Total points must be positive, got {total_points!r}")
    percentages = []
    for score in scores:
        if score is None or not math.isfinite(score):
            raise InvalidInputError(f"Score must be a finite number, got {score!r}")
        if score < 0:
            raise InvalidInputError(f"Score cannot be negative, got {score!r}")
        percentages.append(score * 100 / total_points)
    return percentages


def summarize_percentages(
    percentages: Sequence[float],
    context: Optional[DistributionContext] = None,
    healthy_passing_percentage: float = DEFAULT_HEALTHY_PASSING_PERCENTAGE,
    healthy_max_std_dev: float = DEFAULT_HEALTHY_MAX_STD_DEV
) -> Optional[DistributionSummary]:
    """Summarize values that are already percentages. None for an empty list."""
    if not percentages:
        return None

    bucket_counts = {grade: 0 for grade in LetterGrade}
    for pct in percentages:
        bucket_counts[letter_grade(pct)] += 1

    summary = DistributionSummary(
        count=len(percentages),
        mean=statistics.fmean(percentages),
        median=statistics.median(percentages),
        std_dev=statistics.pstdev(percentages),
        mode=_mode(percentages),
        minimum=min(percentages),
        maximum=max(percentages),
        bucket_counts=bucket_counts,
        context=context or DistributionContext(),
        healthy_passing_percentage=healthy_passing_percentage,
        healthy_max_std_dev=healthy_max_std_dev,
    )
    LOG.debug(f"{summary.context.description}: n={summary.count} mean={summary.mean:.2f}")
    return summary


def analyze(
    scores: Sequence[float],
    total_points: float,
    context: Optional[DistributionContext] = None,
    healthy_passing_percentage: float = DEFAULT_HEALTHY_PASSING_PERCENTAGE,
    healthy_max_std_dev: float = DEFAULT_HEALTHY_MAX_STD_DEV
) -> Optional[DistributionSummary]:
    """
    Distribution of raw scores out of ``total_points``.

    Args:
        scores: Raw scores, each non-negative
        total_points: Points possible, must be positive
        context: What the scores describe
        healthy_passing_percentage: Passing share required for a healthy distribution
        healthy_max_std_dev: Standard deviation a healthy distribution stays below

    Returns:
        DistributionSummary, or None if there are no scores

    Raises:
        InvalidInputError: On non-positive total_points or negative scores
    """
    percentages = _to_percentages(scores, total_points)
    return summarize_percentages(
        percentages, context, healthy_passing_percentage, healthy_max_std_dev
    )


def analyze_partitioned(
    partitions: Iterable[Sequence[float]],
    total_points: float,
    context: Optional[DistributionContext] = None,
    **thresholds
) -> Optional[DistributionSummary]:
    """Analyze scores that arrive in several partitions (e.g. one per class)."""
    if total_points is None or total_points <= 0:
        raise InvalidInputError(f"Total points must be positive, got {total_points!r}")
    merged: List[float] = []
    for partition in partitions:
        merged.extend(_to_percentages(partition, total_points))
    return summarize_percentages(merged, context, **thresholds)
