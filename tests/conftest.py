"""Shared fixtures for gradebook storage tests."""

import pytest
import yaml


def gradebook_data():
    levels = [{"level": n, "description": f"Level {n}"} for n in range(1, 5)]
    return {
        "classes": [
            {
                "id": "math-9a",
                "name": "Algebra I",
                "subject": "Math",
                "grade_level": "9",
                "teacher_id": "t1",
                "assignment_ids": ["quiz-1", "essay-1"],
                "student_ids": ["ana", "ben", "cai"],
            },
            {"id": "empty", "name": "Study Hall"},
        ],
        "assignments": [
            {
                "id": "quiz-1",
                "class_id": "math-9a",
                "title": "Quiz 1",
                "category": "quiz",
                "total_points": 20,
                "weight": 1.0,
                "due_date": "2026-09-10T23:59:00+00:00",
            },
            {
                "id": "essay-1",
                "class_id": "math-9a",
                "title": "Proof Essay",
                "category": "essay",
                "total_points": 100,
                "weight": 3.0,
                "due_date": "2026-09-20T23:59:00+00:00",
                "rubric": {
                    "id": "essay-rubric",
                    "title": "Proof Essay Rubric",
                    "total_points": 100,
                    "criteria": [
                        {"id": "logic", "name": "Logic", "points": 25, "levels": levels},
                        {"id": "clarity", "name": "Clarity", "points": 25, "levels": levels},
                        {"id": "notation", "name": "Notation", "points": 25, "levels": levels},
                        {"id": "examples", "name": "Examples", "points": 25, "levels": levels},
                    ],
                },
            },
        ],
        "rubrics": [],
        "submissions": [
            {"id": "q-ana", "student_id": "ana", "assignment_id": "quiz-1",
             "status": "graded", "score": 18, "submitted_at": "2026-09-10T12:00:00+00:00"},
            {"id": "q-ben", "student_id": "ben", "assignment_id": "quiz-1",
             "status": "graded", "score": 12, "submitted_at": "2026-09-10T13:00:00+00:00"},
            {"id": "q-cai", "student_id": "cai", "assignment_id": "quiz-1",
             "status": "excused", "feedback": "Absent"},
            {"id": "e-ana", "student_id": "ana", "assignment_id": "essay-1",
             "status": "submitted", "submitted_at": "2026-09-19T08:00:00+00:00"},
            {"id": "e-ben", "student_id": "ben", "assignment_id": "essay-1",
             "status": "submitted", "submitted_at": "2026-09-21T08:00:00+00:00"},
        ],
    }


@pytest.fixture
def gradebook_file(tmp_path):
    path = tmp_path / "gradebook.yaml"
    with open(path, 'w') as f:
        yaml.safe_dump(gradebook_data(), f, sort_keys=False)
    return path
