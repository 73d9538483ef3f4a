"""Tests for weighted aggregation."""

import math
import pytest
from pydantic import ValidationError

from compass_grading.engine import aggregator
from compass_grading.engine.errors import InvalidInputError
from compass_grading.engine.models import Assignment, Submission, SubmissionStatus

DUE = "2026-10-01T23:59:00+00:00"


def make_submission(student_id, assignment_id, score, status=SubmissionStatus.GRADED):
    return Submission(student_id=student_id, assignment_id=assignment_id, score=score, status=status)


@pytest.fixture
def assignments():
    return [
        Assignment(id="quiz", class_id="c1", title="Quiz", total_points=20, weight=1.0, due_date=DUE),
        Assignment(id="exam", class_id="c1", title="Exam", total_points=100, weight=3.0, due_date=DUE),
        Assignment(id="project", class_id="c1", title="Project", total_points=50, weight=2.0, due_date=DUE),
    ]


class TestWeightedAverage:
    """Test the weighted average primitive."""

    def test_empty(self):
        assert aggregator.weighted_average([]) is None

    def test_equal_weights(self):
        assert aggregator.weighted_average([(90, 1), (70, 1)]) == 80

    def test_unequal_weights(self):
        assert aggregator.weighted_average([(100, 3), (60, 1)]) == 90

    def test_zero_total_weight(self):
        """Test that all-zero weights mean no data rather than a division error."""
        assert aggregator.weighted_average([(90, 0), (50, 0)]) is None

    def test_negative_weight(self):
        with pytest.raises(InvalidInputError):
            aggregator.weighted_average([(90, 1), (50, -1)])

    def test_non_finite(self):
        with pytest.raises(InvalidInputError):
            aggregator.weighted_average([(math.nan, 1)])
        with pytest.raises(InvalidInputError):
            aggregator.weighted_average([(90, math.inf)])

    def test_negative_score(self):
        with pytest.raises(InvalidInputError, match="Score cannot be negative"):
            aggregator.weighted_average([(-10, 1)])

    def test_accepts_generator(self):
        assert aggregator.weighted_average((s, 1) for s in (10, 20, 30)) == 20


class TestAssignmentAverage:
    """Test per-assignment averages."""

    def test_average_as_percentage(self, assignments):
        quiz = assignments[0]
        subs = [make_submission("s1", "quiz", 20), make_submission("s2", "quiz", 10)]
        assert aggregator.assignment_average(quiz, subs) == 75

    def test_skips_ungraded_and_excused(self, assignments):
        quiz = assignments[0]
        subs = [
            make_submission("s1", "quiz", 16),
            make_submission("s2", "quiz", None, SubmissionStatus.SUBMITTED),
            make_submission("s3", "quiz", 0, SubmissionStatus.EXCUSED),
        ]
        assert aggregator.assignment_average(quiz, subs) == 80

    def test_ignores_other_assignments(self, assignments):
        quiz = assignments[0]
        subs = [make_submission("s1", "quiz", 10), make_submission("s1", "exam", 100)]
        assert aggregator.assignment_average(quiz, subs) == 50

    def test_no_scored_submissions(self, assignments):
        assert aggregator.assignment_average(assignments[0], []) is None

    def test_zero_point_assignment(self, caplog):
        pointless = Assignment(id="p", class_id="c1", title="Participation", total_points=0, due_date=DUE)
        assert aggregator.assignment_average(pointless, [make_submission("s1", "p", 0)]) is None
        assert "has no points" in caplog.text

    def test_negative_score_raises(self, assignments):
        """Test that a negative score fails loudly instead of skewing the average."""
        quiz = assignments[0]
        bad = make_submission("s2", "quiz", 10).model_copy(update={'score': -10})
        with pytest.raises(InvalidInputError, match="negative score"):
            aggregator.assignment_average(quiz, [make_submission("s1", "quiz", 20), bad])

    def test_negative_score_rejected_by_model(self):
        with pytest.raises(ValidationError):
            make_submission("s1", "quiz", -10)


class TestClassAverage:
    """Test class averages."""

    def test_weighted_by_assignment(self, assignments):
        by_assignment = {
            "quiz": [make_submission("s1", "quiz", 20)],          # 100%
            "exam": [make_submission("s1", "exam", 60)],          # 60%
            "project": [make_submission("s1", "project", 40)],    # 80%
        }
        expected = (100 * 1 + 60 * 3 + 80 * 2) / 6
        assert aggregator.class_average(assignments, by_assignment) == pytest.approx(expected)

    def test_excludes_assignments_without_scores(self, assignments):
        """Test that an assignment nobody has been graded on is not counted as zero."""
        by_assignment = {
            "quiz": [make_submission("s1", "quiz", 18)],
            "exam": [make_submission("s1", "exam", None, SubmissionStatus.SUBMITTED)],
        }
        assert aggregator.class_average(assignments, by_assignment) == pytest.approx(90)

    def test_no_data(self, assignments):
        assert aggregator.class_average(assignments, {}) is None
        assert aggregator.class_average([], {}) is None


class TestStudentAverages:
    """Test per-student aggregation."""

    def test_student_class_percentage(self, assignments):
        by_assignment = {
            "quiz": [make_submission("s1", "quiz", 10), make_submission("s2", "quiz", 20)],
            "exam": [make_submission("s1", "exam", 90)],
        }
        # quiz 50% weight 1, exam 90% weight 3
        assert aggregator.student_class_percentage("s1", assignments, by_assignment) == pytest.approx(80)
        assert aggregator.student_class_percentage("s2", assignments, by_assignment) == pytest.approx(100)
        assert aggregator.student_class_percentage("s3", assignments, by_assignment) is None

    def test_last_submission_wins(self, assignments):
        by_assignment = {
            "quiz": [make_submission("s1", "quiz", 10), make_submission("s1", "quiz", 15)],
        }
        assert aggregator.student_class_percentage("s1", assignments, by_assignment) == pytest.approx(75)

    def test_student_negative_score_raises(self, assignments):
        bad = make_submission("s1", "quiz", 10).model_copy(update={'score': -5})
        with pytest.raises(InvalidInputError):
            aggregator.student_class_percentage("s1", assignments, {"quiz": [bad]})

    def test_student_average(self):
        assert aggregator.student_average([90, 80, None, 70]) == 80
        assert aggregator.student_average([]) is None
        assert aggregator.student_average([None]) is None
