"""Gradebook entries and grade trends."""

import enum
from datetime import datetime
from typing import Optional

from pydantic import Field

from .bucketing import STANDARD_ACHIEVEMENT_THRESHOLDS, LetterGrade, achievement_level_for_percentage, letter_grade
from .errors import InvalidInputError
from .models import FrozenModel, new_id, stamp, utcnow


class GradeStatus(str, enum.Enum):
    NOT_SUBMITTED = "not_submitted"
    SUBMITTED = "submitted"
    GRADED = "graded"
    MISSING = "missing"
    INCOMPLETE = "incomplete"
    EXEMPT = "exempt"


class GradeRecord(FrozenModel):
    """A student's grade on one assignment."""
    id: str = Field(default_factory=new_id, description="Grade identifier")
    student_id: str = Field(description="Student being graded")
    assignment_id: str = Field(description="Assignment being graded")
    class_id: str = Field(default="", description="Class the assignment belongs to")
    score: float = Field(default=0.0, ge=0, description="Points earned")
    max_score: float = Field(default=100.0, description="Points possible")
    submitted_at: Optional[datetime] = Field(default=None, description="When the work was submitted")
    graded_at: Optional[datetime] = Field(default=None, description="When the work was graded")
    graded_by: str = Field(default="", description="Teacher who graded the work")
    comments: str = Field(default="", description="Grader comments")
    is_exempt: bool = Field(default=False, description="Student is exempt from this assignment")
    is_incomplete: bool = Field(default=False, description="Work was handed in incomplete")
    is_missing: bool = Field(default=False, description="Work was never handed in")
    rubric_score_id: Optional[str] = Field(default=None, description="Detailed rubric scoring, if any")
    override_reason: str = Field(default="", description="Why the grade was manually overridden")

    @property
    def percentage(self) -> float:
        if self.max_score <= 0:
            return 0.0
        return self.score * 100 / self.max_score

    @property
    def letter_grade(self) -> LetterGrade:
        return letter_grade(max(self.percentage, 0.0))

    def achievement_level(self, thresholds=STANDARD_ACHIEVEMENT_THRESHOLDS) -> int:
        return achievement_level_for_percentage(max(self.percentage, 0.0), thresholds)

    @property
    def status(self) -> GradeStatus:
        """Status, checked in order: exempt, incomplete, missing, graded, submitted."""
        if self.is_exempt:
            return GradeStatus.EXEMPT
        if self.is_incomplete:
            return GradeStatus.INCOMPLETE
        if self.is_missing:
            return GradeStatus.MISSING
        if self.graded_at is not None:
            return GradeStatus.GRADED
        if self.submitted_at is not None:
            return GradeStatus.SUBMITTED
        return GradeStatus.NOT_SUBMITTED

    def days_since_submitted(self, now: Optional[datetime] = None) -> Optional[int]:
        if self.submitted_at is None:
            return None
        return (stamp(now) - self.submitted_at).days

    @property
    def turnaround_days(self) -> Optional[int]:
        """Whole days between submission and grading."""
        if self.submitted_at is None or self.graded_at is None:
            return None
        return (self.graded_at - self.submitted_at).days

    def mark_as_graded(self, teacher_id: str, at: Optional[datetime] = None) -> "GradeRecord":
        return self.model_copy(update={'graded_by': teacher_id, 'graded_at': stamp(at)})

    def override(self, new_score: float, reason: str, teacher_id: str,
                 at: Optional[datetime] = None) -> "GradeRecord":
        """Replace the score, recording who did it and why."""
        if new_score < 0:
            raise InvalidInputError(f"Score cannot be negative, got {new_score!r}")
        if not reason:
            raise InvalidInputError("A reason is required to override a grade")
        return self.model_copy(update={
            'score': float(new_score),
            'override_reason': reason,
            'graded_by': teacher_id,
            'graded_at': stamp(at),
        })


class GradeTrend(FrozenModel):
    """Snapshot of a student's standing in a class."""
    student_id: str = Field(description="Student")
    class_id: str = Field(description="Class")
    timestamp: datetime = Field(default_factory=utcnow, description="When the snapshot was taken")
    current_grade: float = Field(description="Current grade percentage")
    previous_grade: Optional[float] = Field(default=None, description="Grade at the previous snapshot")
    target_grade: Optional[float] = Field(default=None, description="Grade the student is aiming for")

    @property
    def change(self) -> Optional[float]:
        if self.previous_grade is None:
            return None
        return self.current_grade - self.previous_grade

    @property
    def is_on_track(self) -> bool:
        if self.target_grade is None:
            return False
        return self.current_grade >= self.target_grade
