"""Submission lifecycle: grading operations over a validated state machine.

Every operation returns a new ``Submission`` and records a
``StatusChange`` in its history. Transitions outside
``ALLOWED_TRANSITIONS`` raise ``IllegalTransitionError`` unless the
caller passes ``override=True``.
"""

import logging
from datetime import datetime
from typing import Dict, FrozenSet, Mapping, Optional, Tuple

from . import rubric_engine
from .bucketing import LetterGrade, letter_grade
from .errors import IllegalTransitionError, InvalidInputError
from .models import (
    Assignment,
    Rubric,
    RubricScore,
    StatusChange,
    Submission,
    SubmissionStatus,
    stamp,
)

LOG = logging.getLogger(__name__)

S = SubmissionStatus

ALLOWED_TRANSITIONS: Dict[SubmissionStatus, FrozenSet[SubmissionStatus]] = {
    S.NOT_SUBMITTED: frozenset({S.DRAFT, S.SUBMITTED, S.LATE, S.EXCUSED}),
    S.DRAFT: frozenset({S.DRAFT, S.SUBMITTED, S.LATE, S.EXCUSED}),
    S.SUBMITTED: frozenset({S.GRADED, S.EXCUSED, S.RETURNED_FOR_REVISION}),
    S.LATE: frozenset({S.GRADED, S.EXCUSED, S.RETURNED_FOR_REVISION}),
    S.RESUBMITTED: frozenset({S.GRADED, S.EXCUSED, S.RETURNED_FOR_REVISION}),
    S.RETURNED_FOR_REVISION: frozenset({S.DRAFT, S.RESUBMITTED, S.EXCUSED}),
    S.GRADED: frozenset({S.GRADED, S.RETURNED_FOR_REVISION}),
    S.EXCUSED: frozenset(),
}


def can_transition(current: SubmissionStatus, target: SubmissionStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def validate_transition(
    current: SubmissionStatus,
    target: SubmissionStatus,
    override: bool = False,
    action: str = "set_status"
) -> bool:
    """
    Check a status change against the state machine.

    Args:
        current: Status before the change
        target: Requested status
        override: Allow an illegal transition (logged as a warning)
        action: Name of the operation, used in messages

    Returns:
        True if the transition was forced through with override

    Raises:
        IllegalTransitionError: If the transition is illegal and not overridden
    """
    if can_transition(current, target):
        return False
    if not override:
        raise IllegalTransitionError(current, target, action)
    LOG.warning(f"Overriding illegal transition {current.value} -> {target.value} ({action})")
    return True


def _transition(
    submission: Submission,
    target: SubmissionStatus,
    action: str,
    actor_id: str,
    at: datetime,
    override: bool,
    **updates
) -> Submission:
    forced = validate_transition(submission.status, target, override, action)
    change = StatusChange(
        action=action,
        status_before=submission.status,
        status_after=target,
        actor_id=actor_id,
        timestamp=at,
        overridden=forced
    )
    LOG.debug(f"Submission {submission.id}: {submission.status.value} -> {target.value} via {action}")
    return submission.model_copy(update={
        **updates,
        'status': target,
        'history': [*submission.history, change],
    })


def submit(
    submission: Submission,
    at: Optional[datetime] = None,
    override: bool = False,
    assignment: Optional[Assignment] = None
) -> Submission:
    """
    Submit the work: attempts go up and the draft flag is cleared.

    The status becomes submitted, or late when ``assignment`` is given and
    ``at`` falls after its due date. Without an assignment the caller
    marks lateness itself with ``set_status``.
    """
    at = stamp(at)
    target = S.LATE if assignment is not None and at > assignment.due_date else S.SUBMITTED
    return _transition(
        submission, target, "submit", submission.student_id, at, override,
        submitted_at=at,
        attempts=submission.attempts + 1,
        draft=False,
    )


def resubmit(submission: Submission, at: Optional[datetime] = None, override: bool = False) -> Submission:
    """Submit again after the work was returned for revision."""
    at = stamp(at)
    return _transition(
        submission, S.RESUBMITTED, "resubmit", submission.student_id, at, override,
        submitted_at=at,
        attempts=submission.attempts + 1,
        draft=False,
    )


def save_draft(submission: Submission, at: Optional[datetime] = None, override: bool = False) -> Submission:
    return _transition(
        submission, S.DRAFT, "save_draft", submission.student_id, stamp(at), override,
        draft=True,
    )


def grade(
    submission: Submission,
    score: float,
    feedback: str,
    grader_id: str,
    at: Optional[datetime] = None,
    override: bool = False
) -> Submission:
    """
    Grade a submission.

    Args:
        submission: Submission to grade
        score: Points awarded, must not be negative
        feedback: Feedback for the student
        grader_id: Who graded it
        at: Grading time (defaults to now)
        override: Allow grading from a state that normally forbids it

    Returns:
        The graded submission
    """
    if score is None or score < 0:
        raise InvalidInputError(f"Score cannot be negative, got {score!r}")
    at = stamp(at)
    return _transition(
        submission, S.GRADED, "grade", grader_id, at, override,
        score=float(score),
        feedback=feedback,
        grader_id=grader_id,
        graded_at=at,
    )


def grade_with_rubric(
    submission: Submission,
    rubric_score_id: str,
    score: float,
    feedback: str,
    grader_id: str,
    at: Optional[datetime] = None,
    override: bool = False
) -> Submission:
    """Attach a rubric evaluation and grade the submission with its score."""
    with_rubric = submission.model_copy(update={'rubric_score_id': rubric_score_id})
    return grade(with_rubric, score, feedback, grader_id, at=at, override=override)


def grade_rubric_submission(
    submission: Submission,
    rubric: Rubric,
    selections: Mapping[str, int],
    grader_id: str,
    feedback: str = "",
    require_complete: bool = True,
    at: Optional[datetime] = None,
    override: bool = False
) -> Tuple[RubricScore, Submission]:
    """
    Score a submission with a rubric and grade it in one step.

    Returns:
        (rubric score, graded submission)
    """
    at = stamp(at)
    rubric_score = rubric_engine.build_rubric_score(
        rubric,
        submission.id,
        selections,
        evaluator_id=grader_id,
        comments=feedback,
        require_complete=require_complete,
        scored_at=at
    )
    graded = grade_with_rubric(
        submission, rubric_score.id, rubric_score.total_score, feedback, grader_id,
        at=at, override=override
    )
    return rubric_score, graded


def mark_as_excused(
    submission: Submission,
    grader_id: str,
    reason: str,
    at: Optional[datetime] = None,
    override: bool = False
) -> Submission:
    at = stamp(at)
    return _transition(
        submission, S.EXCUSED, "mark_as_excused", grader_id, at, override,
        feedback=reason,
        grader_id=grader_id,
        graded_at=at,
    )


def return_for_revision(
    submission: Submission,
    feedback: str,
    grader_id: str,
    at: Optional[datetime] = None,
    override: bool = False
) -> Submission:
    at = stamp(at)
    return _transition(
        submission, S.RETURNED_FOR_REVISION, "return_for_revision", grader_id, at, override,
        feedback=feedback,
        grader_id=grader_id,
        graded_at=at,
    )


def request_feedback(submission: Submission) -> Submission:
    """Flag that the student wants feedback. Status is unchanged."""
    return submission.model_copy(update={'feedback_requested': True})


def set_status(
    submission: Submission,
    status: SubmissionStatus,
    actor_id: str = "",
    at: Optional[datetime] = None,
    override: bool = False
) -> Submission:
    """Assign a status directly, still subject to the state machine."""
    return _transition(submission, SubmissionStatus(status), "set_status", actor_id, stamp(at), override)


def is_late(submission: Submission, assignment: Assignment) -> bool:
    """True only if the submission has a timestamp after the due date."""
    if submission.submitted_at is None:
        return False
    return submission.submitted_at > assignment.due_date


def score_percentage(submission: Submission, assignment: Assignment) -> Optional[float]:
    """Score as a percentage of the assignment's points; None when ungraded."""
    if submission.score is None:
        return None
    if assignment.total_points <= 0:
        return 0.0
    return submission.score * 100 / assignment.total_points


def letter_grade_for(submission: Submission, assignment: Assignment) -> Optional[LetterGrade]:
    percentage = score_percentage(submission, assignment)
    if percentage is None:
        return None
    return letter_grade(percentage)
