"""Tests for distribution analysis."""

import pytest

from compass_grading.engine import distribution
from compass_grading.engine.bucketing import LetterGrade
from compass_grading.engine.distribution import ContextKind, DistributionContext
from compass_grading.engine.errors import InvalidInputError


class TestAnalyze:
    """Test distribution summaries."""

    def test_uniform_perfect_scores(self):
        """Test that three perfect scores land in A+ with no spread."""
        summary = distribution.analyze([100, 100, 100], 100)

        assert summary.count == 3
        assert summary.mean == 100
        assert summary.median == 100
        assert summary.std_dev == 0
        assert summary.mode == 100
        assert summary.bucket_counts[LetterGrade.A_PLUS] == 3
        assert sum(summary.bucket_counts.values()) == 3
        assert all(count == 0 for grade, count in summary.bucket_counts.items()
                   if grade is not LetterGrade.A_PLUS)

    def test_mixed_scores(self):
        summary = distribution.analyze([97, 83, 60, 40], 100)

        assert summary.median == 71.5
        assert summary.mean == 70
        assert summary.minimum == 40
        assert summary.maximum == 97
        assert summary.mode is None
        assert summary.bucket_counts[LetterGrade.A_PLUS] == 1
        assert summary.bucket_counts[LetterGrade.B] == 1
        assert summary.bucket_counts[LetterGrade.D_MINUS] == 1
        assert summary.bucket_counts[LetterGrade.F] == 1
        assert summary.passing_percentage == 75

    def test_scaled_to_total_points(self):
        summary = distribution.analyze([45, 40, 30], 50)
        assert summary.maximum == pytest.approx(90)
        assert summary.bucket_counts[LetterGrade.A_MINUS] == 1
        assert summary.bucket_counts[LetterGrade.B_MINUS] == 1
        assert summary.bucket_counts[LetterGrade.D_MINUS] == 1

    def test_population_std_dev(self):
        summary = distribution.analyze([80, 90], 100)
        assert summary.std_dev == pytest.approx(5)

    def test_mode_tie_goes_to_lowest(self):
        summary = distribution.analyze([70, 70, 90, 90, 50], 100)
        assert summary.mode == 70

    def test_empty(self):
        assert distribution.analyze([], 100) is None

    def test_invalid_total_points(self):
        with pytest.raises(InvalidInputError):
            distribution.analyze([10], 0)
        with pytest.raises(InvalidInputError):
            distribution.analyze([], -1)

    def test_invalid_scores(self):
        with pytest.raises(InvalidInputError):
            distribution.analyze([10, -1], 100)
        with pytest.raises(InvalidInputError):
            distribution.analyze([float("nan")], 100)


class TestHealth:
    """Test the healthy-distribution check."""

    def test_healthy(self):
        summary = distribution.analyze([85, 88, 90, 92, 80], 100)
        assert summary.passing_percentage == 100
        assert summary.is_healthy_distribution

    def test_too_many_failing(self):
        summary = distribution.analyze([85, 88, 50, 40, 90], 100)
        assert summary.passing_percentage == 60
        assert not summary.is_healthy_distribution

    def test_too_spread_out(self):
        summary = distribution.analyze([100, 60, 100, 60], 100)
        assert summary.passing_percentage == 100
        assert summary.std_dev == 20
        assert not summary.is_healthy_distribution

    def test_custom_thresholds(self):
        summary = distribution.analyze([100, 60, 100, 60], 100, healthy_max_std_dev=25)
        assert summary.is_healthy_distribution

    def test_percentage_in_range(self):
        summary = distribution.analyze([97, 94, 91, 50], 100)
        top = [LetterGrade.A_PLUS, LetterGrade.A, LetterGrade.A_MINUS]
        assert summary.percentage_in_range(top) == 75
        assert summary.percentage_in_range([LetterGrade.C]) == 0


class TestContext:
    """Test context descriptions and partitioned analysis."""

    @pytest.mark.parametrize("kind,expected", [
        (ContextKind.ASSIGNMENT, "Assignment: Essay 1"),
        (ContextKind.CLASS, "Class: Essay 1"),
        (ContextKind.SUBJECT, "Subject: Essay 1"),
        (ContextKind.GRADE_LEVEL, "Grade Level: Essay 1"),
        (ContextKind.SCHOOL, "School-wide"),
    ])
    def test_description(self, kind, expected):
        assert DistributionContext(kind, "x", "Essay 1").description == expected

    def test_partitioned(self):
        context = DistributionContext(ContextKind.SUBJECT, name="Math")
        summary = distribution.analyze_partitioned([[90, 80], [], [70]], 100, context)
        assert summary.count == 3
        assert summary.mean == pytest.approx(80)
        assert summary.context is context

    def test_partitioned_empty(self):
        assert distribution.analyze_partitioned([[], []], 100) is None

    def test_to_dict(self):
        data = distribution.analyze([100, 100, 50], 100).to_dict()
        assert data['context'] == "School-wide"
        assert data['count'] == 3
        assert data['mode'] == 100
        assert data['buckets']['A+'] == 2
        assert data['buckets']['F'] == 1
        assert list(data['buckets']) == [grade.value for grade in LetterGrade]
