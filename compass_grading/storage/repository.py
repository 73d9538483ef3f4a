"""Gradebook persistence.

The engine never reads or writes storage. Callers load records through a
``GradebookRepository``, pass them to engine functions, and save whatever
comes back.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from compass_grading.engine.models import Assignment, Rubric, RubricScore, SchoolClass, Submission

LOG = logging.getLogger(__name__)


class GradebookRepository:
    """Extension point for gradebook storage backends."""

    def get_class(self, class_id: str) -> SchoolClass:
        raise NotImplementedError

    def list_classes(self) -> List[SchoolClass]:
        raise NotImplementedError

    def get_assignment(self, assignment_id: str) -> Assignment:
        raise NotImplementedError

    def list_assignments(self, class_id: Optional[str] = None) -> List[Assignment]:
        raise NotImplementedError

    def get_rubric(self, rubric_id: str) -> Rubric:
        raise NotImplementedError

    def get_submission(self, submission_id: str) -> Submission:
        raise NotImplementedError

    def list_submissions(self, assignment_id: Optional[str] = None) -> List[Submission]:
        raise NotImplementedError

    def get_rubric_score(self, rubric_score_id: str) -> RubricScore:
        raise NotImplementedError

    def save_submission(self, submission: Submission) -> None:
        raise NotImplementedError

    def save_rubric_score(self, rubric_score: RubricScore) -> None:
        raise NotImplementedError


class YamlGradebookRepository(GradebookRepository):
    """
    Gradebook stored in a single YAML file.

    The file has top-level lists ``classes``, ``assignments``, ``rubrics``,
    ``submissions`` and ``rubric_scores``. Records are parsed once when the
    repository is opened; saves rewrite the file.
    """

    SECTIONS = ("classes", "assignments", "rubrics", "submissions", "rubric_scores")

    def __init__(self, yaml_path: Path):
        self.yaml_path = Path(yaml_path)
        self.data = self._load_yaml()
        try:
            self.classes = [SchoolClass.model_validate(c) for c in self.data["classes"]]
            self.assignments = [Assignment.model_validate(a) for a in self.data["assignments"]]
            self.rubrics = [Rubric.model_validate(r) for r in self.data["rubrics"]]
            self.submissions = [Submission.model_validate(s) for s in self.data["submissions"]]
            self.rubric_scores = [RubricScore.model_validate(r) for r in self.data["rubric_scores"]]
        except ValidationError as e:
            raise ValueError(f"Malformed gradebook {self.yaml_path}: {e}") from e
        LOG.info(
            f"Loaded gradebook {self.yaml_path}: {len(self.classes)} classes, "
            f"{len(self.assignments)} assignments, {len(self.submissions)} submissions"
        )

    def _load_yaml(self) -> Dict[str, Any]:
        """Load gradebook data, filling in missing sections."""
        data: Dict[str, Any] = {}
        if self.yaml_path.exists():
            with open(self.yaml_path, 'r') as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ValueError(f"Gradebook file {self.yaml_path} must contain a mapping")
        else:
            LOG.warning(f"Gradebook {self.yaml_path} does not exist; starting empty")
        for section in self.SECTIONS:
            if data.get(section) is None:
                data[section] = []
            elif not isinstance(data[section], list):
                raise ValueError(f"Section '{section}' in {self.yaml_path} must be a list")
        return data

    def _save_yaml(self):
        """Save data back to YAML file."""
        self.yaml_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.yaml_path, 'w') as f:
            yaml.safe_dump(self.data, f, default_flow_style=False, sort_keys=False)

    @staticmethod
    def _find(records: list, record_id: str, kind: str):
        for record in records:
            if record.id == record_id:
                return record
        raise KeyError(f"No {kind} with id {record_id!r}")

    def get_class(self, class_id: str) -> SchoolClass:
        return self._find(self.classes, class_id, "class")

    def list_classes(self) -> List[SchoolClass]:
        return list(self.classes)

    def get_assignment(self, assignment_id: str) -> Assignment:
        return self._find(self.assignments, assignment_id, "assignment")

    def list_assignments(self, class_id: Optional[str] = None) -> List[Assignment]:
        if class_id is None:
            return list(self.assignments)
        school_class = self.get_class(class_id)
        listed = set(school_class.assignment_ids)
        return [a for a in self.assignments if a.class_id == class_id or a.id in listed]

    def get_rubric(self, rubric_id: str) -> Rubric:
        """Find a rubric, whether standalone or owned by an assignment."""
        for rubric in self.rubrics:
            if rubric.id == rubric_id:
                return rubric
        for assignment in self.assignments:
            if assignment.rubric is not None and assignment.rubric.id == rubric_id:
                return assignment.rubric
        raise KeyError(f"No rubric with id {rubric_id!r}")

    def get_submission(self, submission_id: str) -> Submission:
        return self._find(self.submissions, submission_id, "submission")

    def list_submissions(self, assignment_id: Optional[str] = None) -> List[Submission]:
        if assignment_id is None:
            return list(self.submissions)
        return [s for s in self.submissions if s.assignment_id == assignment_id]

    def get_rubric_score(self, rubric_score_id: str) -> RubricScore:
        return self._find(self.rubric_scores, rubric_score_id, "rubric score")

    def save_submission(self, submission: Submission) -> None:
        """Insert or replace a submission and write the file."""
        self._upsert(self.submissions, "submissions", submission, submission.to_dict())
        LOG.info(f"Saved submission {submission.id} ({submission.status.value})")

    def save_rubric_score(self, rubric_score: RubricScore) -> None:
        self._upsert(self.rubric_scores, "rubric_scores", rubric_score, rubric_score.to_dict())
        LOG.info(f"Saved rubric score {rubric_score.id}")

    def _upsert(self, records: list, section: str, record, record_data: Dict[str, Any]):
        """Insert or replace a record, keeping memory unchanged if the write fails."""
        raw = self.data[section]
        saved_records, saved_raw = list(records), list(raw)
        for i, existing in enumerate(records):
            if existing.id == record.id:
                records[i] = record
                raw[i] = record_data
                break
        else:
            records.append(record)
            raw.append(record_data)
        try:
            self._save_yaml()
        except (OSError, yaml.YAMLError):
            records[:] = saved_records
            raw[:] = saved_raw
            raise
