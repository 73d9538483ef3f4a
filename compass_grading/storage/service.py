"""Grade submissions stored in a repository."""

import logging
from typing import Dict, List, Mapping, Optional

from compass_grading.engine import aggregator, submission_grading
from compass_grading.engine.distribution import ContextKind, DistributionContext, DistributionSummary
from compass_grading.engine.errors import InvalidInputError
from compass_grading.engine.models import Assignment, RubricScore, Submission, SubmissionStatus
from compass_grading.engine.policy import GradingPolicy
from .repository import GradebookRepository

LOG = logging.getLogger(__name__)


class GradebookService:
    """Load records, run the engine on them, and save the results."""

    def __init__(self, repository: GradebookRepository, policy: Optional[GradingPolicy] = None):
        self.repository = repository
        self.policy = policy or GradingPolicy()

    def grade(self, submission_id: str, score: float, feedback: str, grader_id: str,
              override: bool = False) -> Submission:
        submission = self.repository.get_submission(submission_id)
        graded = submission_grading.grade(
            submission, score, feedback, grader_id,
            override=self.policy.transition_override(override)
        )
        self.repository.save_submission(graded)
        return graded

    def grade_with_rubric(self, submission_id: str, selections: Mapping[str, int], grader_id: str,
                          feedback: str = "", override: bool = False) -> RubricScore:
        """
        Score a submission against its assignment's rubric and grade it.

        Raises:
            InvalidInputError: If the assignment has no rubric or the selections are invalid
        """
        submission = self.repository.get_submission(submission_id)
        assignment = self.repository.get_assignment(submission.assignment_id)
        if assignment.rubric is None:
            raise InvalidInputError(f"Assignment {assignment.id} has no rubric")

        assignment.rubric.check_allocations()
        rubric_score, graded = submission_grading.grade_rubric_submission(
            submission, assignment.rubric, selections, grader_id, feedback,
            override=self.policy.transition_override(override)
        )
        self.repository.save_rubric_score(rubric_score)
        self.repository.save_submission(graded)
        level = rubric_score.overall_achievement_level(assignment.rubric, self.policy.achievement_thresholds)
        LOG.info(f"Rubric-graded {submission_id}: {rubric_score.total_score}/{assignment.rubric.total_points} (level {level})")
        return rubric_score

    def excuse(self, submission_id: str, grader_id: str, reason: str, override: bool = False) -> Submission:
        submission = self.repository.get_submission(submission_id)
        excused = submission_grading.mark_as_excused(
            submission, grader_id, reason, override=self.policy.transition_override(override)
        )
        self.repository.save_submission(excused)
        return excused

    def return_for_revision(self, submission_id: str, feedback: str, grader_id: str,
                            override: bool = False) -> Submission:
        submission = self.repository.get_submission(submission_id)
        returned = submission_grading.return_for_revision(
            submission, feedback, grader_id, override=self.policy.transition_override(override)
        )
        self.repository.save_submission(returned)
        return returned

    def rubric_achievement_level(self, rubric_score_id: str) -> int:
        """Achievement level of a stored rubric evaluation, using the configured table."""
        rubric_score = self.repository.get_rubric_score(rubric_score_id)
        rubric = self.repository.get_rubric(rubric_score.rubric_id)
        return rubric_score.overall_achievement_level(rubric, self.policy.achievement_thresholds)

    def submissions_by_assignment(self, assignments: List[Assignment]) -> Dict[str, List[Submission]]:
        return {a.id: self.repository.list_submissions(a.id) for a in assignments}

    def class_average(self, class_id: str) -> Optional[float]:
        assignments = self.repository.list_assignments(class_id)
        return aggregator.class_average(assignments, self.submissions_by_assignment(assignments))

    def class_achievement_level(self, class_id: str) -> Optional[int]:
        average = self.class_average(class_id)
        return self.policy.achievement_level(average) if average is not None else None

    def assignment_distribution(self, assignment_id: str) -> Optional[DistributionSummary]:
        """Distribution of graded, non-excused scores on one assignment."""
        assignment = self.repository.get_assignment(assignment_id)
        scores = [s.score for s in self.repository.list_submissions(assignment_id)
                  if s.score is not None and s.status != SubmissionStatus.EXCUSED]
        context = DistributionContext(ContextKind.ASSIGNMENT, assignment.id, assignment.title)
        return self.policy.analyze(scores, assignment.total_points, context)

    def class_distribution(self, class_id: str) -> Optional[DistributionSummary]:
        """Distribution of each enrolled student's weighted class percentage."""
        school_class = self.repository.get_class(class_id)
        assignments = self.repository.list_assignments(class_id)
        by_assignment = self.submissions_by_assignment(assignments)

        student_ids = list(school_class.student_ids)
        if not student_ids:
            seen = set()
            for submissions in by_assignment.values():
                for s in submissions:
                    if s.student_id not in seen:
                        seen.add(s.student_id)
                        student_ids.append(s.student_id)

        percentages = []
        for student_id in student_ids:
            pct = aggregator.student_class_percentage(student_id, assignments, by_assignment)
            if pct is not None:
                percentages.append(pct)

        context = DistributionContext(ContextKind.CLASS, school_class.id, school_class.name)
        # Percentages are already out of 100
        return self.policy.analyze(percentages, 100, context)
