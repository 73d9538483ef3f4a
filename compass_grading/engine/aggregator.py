"""Weighted averages at the assignment, class and student level.

``weighted_average`` is the single primitive. ``assignment_average`` and
``class_average`` are its two call sites: submissions are averaged with
weight 1 each, then assignment averages are combined using the
assignment weights. "No data" is always ``None``, never 0.
"""

import logging
import math
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from .errors import InvalidInputError
from .models import Assignment, Submission, SubmissionStatus

LOG = logging.getLogger(__name__)


def weighted_average(entries: Iterable[Tuple[float, float]]) -> Optional[float]:
    """
    Weighted mean of (score, weight) pairs.

    Returns:
        sum(score * weight) / sum(weight), or None if there are no entries
        or the weights add up to zero

    Raises:
        InvalidInputError: If a score or weight is negative or a value is not finite
    """
    weighted_sum = 0.0
    total_weight = 0.0
    for score, weight in entries:
        if not math.isfinite(score) or not math.isfinite(weight):
            raise InvalidInputError(f"Non-finite entry ({score!r}, {weight!r})")
        if weight < 0:
            raise InvalidInputError(f"Weight cannot be negative, got {weight!r}")
        if score < 0:
            raise InvalidInputError(f"Score cannot be negative, got {score!r}")
        weighted_sum += score * weight
        total_weight += weight

    if total_weight == 0:
        return None
    return weighted_sum / total_weight


def _counts_toward_average(submission: Submission) -> bool:
    if submission.score is None or submission.status == SubmissionStatus.EXCUSED:
        return False
    if submission.score < 0:
        raise InvalidInputError(f"Submission {submission.id} has a negative score {submission.score!r}")
    return True


def assignment_average(assignment: Assignment, submissions: Sequence[Submission]) -> Optional[float]:
    """
    Mean submission score for an assignment, as a percentage of its points.

    Ungraded and excused submissions are skipped. Returns None when no
    submission remains or the assignment is worth no points.
    """
    scores = [s.score for s in submissions
              if s.assignment_id == assignment.id and _counts_toward_average(s)]
    mean = weighted_average((score, 1.0) for score in scores)
    if mean is None:
        return None
    if assignment.total_points <= 0:
        LOG.warning(f"Assignment {assignment.id} has no points; skipping its average")
        return None
    return mean * 100 / assignment.total_points


def class_average(
    assignments: Sequence[Assignment],
    submissions_by_assignment: Mapping[str, Sequence[Submission]]
) -> Optional[float]:
    """
    Class average percentage, weighting each assignment average by its weight.

    Assignments without any scored submission are excluded from the
    average rather than counted as zero.
    """
    entries: List[Tuple[float, float]] = []
    for assignment in assignments:
        average = assignment_average(assignment, submissions_by_assignment.get(assignment.id, []))
        if average is None:
            LOG.debug(f"Assignment {assignment.id} has no scored submissions; excluded")
            continue
        entries.append((average, assignment.weight))
    return weighted_average(entries)


def student_class_percentage(
    student_id: str,
    assignments: Sequence[Assignment],
    submissions_by_assignment: Mapping[str, Sequence[Submission]]
) -> Optional[float]:
    """
    One student's weighted percentage across a class's assignments.

    Student ids are not unique per assignment, so when a student has
    several scored submissions the last one in the list wins.
    """
    entries: List[Tuple[float, float]] = []
    for assignment in assignments:
        if assignment.total_points <= 0:
            continue
        latest = None
        for submission in submissions_by_assignment.get(assignment.id, []):
            if submission.student_id == student_id and _counts_toward_average(submission):
                latest = submission
        if latest is not None:
            entries.append((latest.score * 100 / assignment.total_points, assignment.weight))
    return weighted_average(entries)


def student_average(final_grades: Iterable[Optional[float]]) -> Optional[float]:
    """Unweighted mean of a student's course final grades, ignoring missing ones."""
    return weighted_average((grade, 1.0) for grade in final_grades if grade is not None)
