"""Grading and rubric computation engine."""

from .errors import ConfigurationError, GradingError, IllegalTransitionError, InvalidInputError
from .bucketing import (
    ALTERNATE_ACHIEVEMENT_THRESHOLDS,
    STANDARD_ACHIEVEMENT_THRESHOLDS,
    LetterGrade,
    achievement_level,
    coarse_letter_grade,
    letter_grade,
)
from .models import (
    Assignment,
    AssignmentCategory,
    CriterionScore,
    Rubric,
    RubricCriterion,
    RubricLevel,
    RubricScore,
    SchoolClass,
    StatusChange,
    Submission,
    SubmissionStatus,
)
from .aggregator import assignment_average, class_average, student_average, weighted_average
from .distribution import ContextKind, DistributionContext, DistributionSummary, analyze
from .gradebook import GradeRecord, GradeStatus, GradeTrend
from .policy import GradingPolicy

__all__ = [
    'ConfigurationError',
    'GradingError',
    'IllegalTransitionError',
    'InvalidInputError',
    'ALTERNATE_ACHIEVEMENT_THRESHOLDS',
    'STANDARD_ACHIEVEMENT_THRESHOLDS',
    'LetterGrade',
    'achievement_level',
    'coarse_letter_grade',
    'letter_grade',
    'Assignment',
    'AssignmentCategory',
    'CriterionScore',
    'Rubric',
    'RubricCriterion',
    'RubricLevel',
    'RubricScore',
    'SchoolClass',
    'StatusChange',
    'Submission',
    'SubmissionStatus',
    'assignment_average',
    'class_average',
    'student_average',
    'weighted_average',
    'ContextKind',
    'DistributionContext',
    'DistributionSummary',
    'analyze',
    'GradeRecord',
    'GradeStatus',
    'GradeTrend',
    'GradingPolicy',
]
