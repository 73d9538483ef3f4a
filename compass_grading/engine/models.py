"""Pydantic models for rubrics, assignments and submissions.

All models are frozen. Operations that "change" a record return a copy
built with ``model_copy(update=...)``.

Timestamps are always timezone-aware. A value without a timezone (such as
``2026-09-10T23:59:00`` or ``2026-09-10`` in a gradebook file) is read as
UTC.
"""

import enum
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from .bucketing import STANDARD_ACHIEVEMENT_THRESHOLDS, achievement_level_for_percentage

LOG = logging.getLogger(__name__)


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to a naive datetime; aware values and None pass through."""
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def stamp(at: Optional[datetime] = None) -> datetime:
    """Timestamp for an operation: ``at`` as an aware datetime, or now."""
    return as_utc(at) if at is not None else utcnow()


class FrozenModel(BaseModel):
    """Base for immutable engine records."""
    model_config = {"frozen": True}

    @field_validator("*")
    @classmethod
    def _timestamps_are_aware(cls, value):
        return as_utc(value)


class RubricLevel(FrozenModel):
    """Performance level within a criterion."""
    level: int = Field(ge=1, le=4, description="Level number, 1 (lowest) to 4 (highest)")
    description: str = Field(default="", description="What a submission at this level looks like")


class RubricCriterion(FrozenModel):
    """Single criterion of a rubric."""
    id: str = Field(default_factory=new_id, description="Criterion identifier")
    name: str = Field(description="Name of the criterion")
    description: str = Field(default="", description="What is being evaluated")
    points: int = Field(default=0, ge=0, description="Point allocation for this criterion")
    weight: float = Field(default=1.0, ge=0, description="Relative weight (informational)")
    levels: List[RubricLevel] = Field(default_factory=list, description="Ordered performance levels")

    def get_level(self, level: int) -> Optional[RubricLevel]:
        for candidate in self.levels:
            if candidate.level == level:
                return candidate
        return None


class Rubric(FrozenModel):
    """A named scoring template."""
    id: str = Field(default_factory=new_id, description="Rubric identifier")
    title: str = Field(description="Rubric title")
    description: str = Field(default="", description="Rubric description")
    total_points: int = Field(ge=0, description="Total point value of the rubric")
    criteria: List[RubricCriterion] = Field(default_factory=list, description="Ordered criteria")
    is_template: bool = Field(default=False, description="Whether this rubric is a reusable template")

    @property
    def allocated_points(self) -> int:
        """Sum of the criterion point allocations."""
        return sum(criterion.points for criterion in self.criteria)

    def check_allocations(self) -> bool:
        """Return True if criterion allocations add up to total_points, warn otherwise."""
        if self.allocated_points != self.total_points:
            LOG.warning(
                "Rubric %s allocates %d points across criteria but totals %d",
                self.id, self.allocated_points, self.total_points
            )
            return False
        return True

    def find_criterion(self, key: str) -> Optional[RubricCriterion]:
        """Find a criterion by id, falling back to its name."""
        for criterion in self.criteria:
            if criterion.id == key:
                return criterion
        for criterion in self.criteria:
            if criterion.name == key:
                return criterion
        return None


class CriterionScore(FrozenModel):
    """Score for one criterion within a rubric evaluation."""
    criterion_id: str = Field(description="Criterion being scored")
    level: Optional[int] = Field(default=None, description="Selected level, None if not selected")
    score: int = Field(ge=0, description="Points earned for this criterion")
    comment: str = Field(default="", description="Optional comment for the student")


class RubricScore(FrozenModel):
    """One evaluation of a rubric against one submission."""
    id: str = Field(default_factory=new_id, description="Rubric score identifier")
    submission_id: str = Field(description="Submission that was evaluated")
    rubric_id: str = Field(description="Rubric that was applied")
    evaluator_id: str = Field(default="", description="Who scored the submission")
    scored_at: datetime = Field(default_factory=utcnow, description="When the evaluation was made")
    criterion_scores: List[CriterionScore] = Field(default_factory=list, description="Per-criterion scores")
    comments: str = Field(default="", description="Overall comments")

    @property
    def total_score(self) -> int:
        return sum(cs.score for cs in self.criterion_scores)

    def percentage(self, rubric: Rubric) -> float:
        """Total score as a percentage of the rubric's total points."""
        if rubric.total_points <= 0:
            return 0.0
        return self.total_score * 100 / rubric.total_points

    def overall_achievement_level(self, rubric: Rubric, thresholds=None) -> int:
        return achievement_level_for_percentage(
            self.percentage(rubric), thresholds or STANDARD_ACHIEVEMENT_THRESHOLDS
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary suitable for YAML serialization."""
        return {
            'id': self.id,
            'submission_id': self.submission_id,
            'rubric_id': self.rubric_id,
            'evaluator_id': self.evaluator_id,
            'scored_at': self.scored_at.isoformat(),
            'total_score': self.total_score,
            'criterion_scores': [
                {
                    'criterion_id': cs.criterion_id,
                    'level': cs.level,
                    'score': cs.score,
                    'comment': cs.comment
                }
                for cs in self.criterion_scores
            ],
            'comments': self.comments
        }


class AssignmentCategory(str, enum.Enum):
    """Kinds of assessed work."""
    ASSIGNMENT = "assignment"
    QUIZ = "quiz"
    TEST = "test"
    PROJECT = "project"
    PRESENTATION = "presentation"
    LAB = "lab"
    ESSAY = "essay"
    HOMEWORK = "homework"
    MIDTERM = "midterm"
    FINAL = "final"


class Assignment(FrozenModel):
    """A piece of assessed work in a class."""
    id: str = Field(default_factory=new_id, description="Assignment identifier")
    class_id: str = Field(default="", description="Class the assignment belongs to")
    title: str = Field(description="Assignment title")
    category: AssignmentCategory = Field(default=AssignmentCategory.ASSIGNMENT, description="Assignment category")
    total_points: float = Field(default=100, ge=0, description="Points possible")
    weight: float = Field(default=1.0, ge=0, description="Weight in the class average")
    due_date: datetime = Field(description="Due date")
    assigned_date: Optional[datetime] = Field(default=None, description="When the assignment was handed out")
    is_active: bool = Field(default=True, description="Whether the assignment is active")
    rubric: Optional[Rubric] = Field(default=None, description="Rubric owned by this assignment")

    def duplicate(self, new_assignment_id: Optional[str] = None, title: Optional[str] = None) -> "Assignment":
        """
        Copy this assignment, giving the copy its own rubric.

        The rubric and its criteria are re-identified so nothing is shared
        with the original. Submissions are never part of an assignment record,
        so the copy starts with none.
        """
        rubric = None
        if self.rubric is not None:
            rubric = self.rubric.model_copy(deep=True, update={
                'id': new_id(),
                'criteria': [
                    c.model_copy(deep=True, update={'id': new_id()}) for c in self.rubric.criteria
                ],
            })
        return self.model_copy(deep=True, update={
            'id': new_assignment_id or new_id(),
            'title': title or self.title,
            'rubric': rubric,
        })


class SchoolClass(FrozenModel):
    """A class section with its assignments."""
    id: str = Field(default_factory=new_id, description="Class identifier")
    name: str = Field(description="Class name")
    subject: str = Field(default="", description="Subject taught")
    grade_level: str = Field(default="", description="Grade level, e.g. '9'")
    teacher_id: str = Field(default="", description="Teacher of record")
    assignment_ids: List[str] = Field(default_factory=list, description="Assignments in this class")
    student_ids: List[str] = Field(default_factory=list, description="Enrolled students")
    final_grade: Optional[float] = Field(default=None, description="Final grade percentage, once set")


class SubmissionStatus(str, enum.Enum):
    """Submission lifecycle states."""
    NOT_SUBMITTED = "not_submitted"
    DRAFT = "draft"
    SUBMITTED = "submitted"
    LATE = "late"
    RESUBMITTED = "resubmitted"
    EXCUSED = "excused"
    GRADED = "graded"
    RETURNED_FOR_REVISION = "returned_for_revision"


class StatusChange(FrozenModel):
    """Audit entry for a submission status change."""
    action: str = Field(description="Operation that caused the change, e.g. 'grade'")
    status_before: SubmissionStatus = Field(description="Status before the change")
    status_after: SubmissionStatus = Field(description="Status after the change")
    actor_id: str = Field(default="", description="User who made the change")
    timestamp: datetime = Field(default_factory=utcnow, description="When the change happened")
    overridden: bool = Field(default=False, description="Whether the state machine was bypassed")


class Submission(FrozenModel):
    """A student's attempt at an assignment."""
    id: str = Field(default_factory=new_id, description="Submission identifier")
    student_id: str = Field(description="Submitting student")
    assignment_id: str = Field(description="Assignment being submitted")
    submitted_at: Optional[datetime] = Field(default=None, description="Submission time, None if not submitted")
    score: Optional[float] = Field(default=None, ge=0, description="Points awarded, None if ungraded")
    status: SubmissionStatus = Field(default=SubmissionStatus.NOT_SUBMITTED, description="Lifecycle state")
    feedback: str = Field(default="", description="Feedback for the student")
    graded_at: Optional[datetime] = Field(default=None, description="When the submission was graded")
    grader_id: str = Field(default="", description="Who graded the submission")
    attempts: int = Field(default=0, ge=0, description="Number of times submitted")
    draft: bool = Field(default=False, description="Whether a draft is in progress")
    feedback_requested: bool = Field(default=False, description="Student asked for feedback")
    rubric_score_id: Optional[str] = Field(default=None, description="Rubric evaluation backing the score")
    attachments: List[str] = Field(default_factory=list, description="Attachment URLs")
    history: List[StatusChange] = Field(default_factory=list, description="Status change audit trail")

    def with_attachment(self, url: str) -> "Submission":
        return self.model_copy(update={'attachments': [*self.attachments, url]})

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary suitable for YAML serialization."""
        return {
            'id': self.id,
            'student_id': self.student_id,
            'assignment_id': self.assignment_id,
            'submitted_at': self.submitted_at.isoformat() if self.submitted_at else None,
            'score': self.score,
            'status': self.status.value,
            'feedback': self.feedback,
            'graded_at': self.graded_at.isoformat() if self.graded_at else None,
            'grader_id': self.grader_id,
            'attempts': self.attempts,
            'draft': self.draft,
            'feedback_requested': self.feedback_requested,
            'rubric_score_id': self.rubric_score_id,
            'attachments': list(self.attachments),
            'history': [
                {
                    'action': change.action,
                    'status_before': change.status_before.value,
                    'status_after': change.status_after.value,
                    'actor_id': change.actor_id,
                    'timestamp': change.timestamp.isoformat(),
                    'overridden': change.overridden
                }
                for change in self.history
            ]
        }
