"""Tests for the gradebook-report command."""

import pytest
import yaml

from compass_grading.engine.policy import GradingPolicy
from compass_grading.storage import GradebookService, YamlGradebookRepository
from compass_grading.tools.gradebook_report.cli import build_class_report, main


class TestBuildClassReport:
    """Test the report structure."""

    def test_report(self, gradebook_file):
        service = GradebookService(YamlGradebookRepository(gradebook_file))
        report = build_class_report(service, "math-9a")

        assert report['name'] == "Algebra I"
        assert report['average'] == pytest.approx(75)
        assert report['letter_grade'] == "C"
        quiz, essay = report['assignments']
        assert quiz['id'] == "quiz-1"
        assert quiz['distribution']['count'] == 2
        assert essay['average'] is None
        assert essay['letter_grade'] is None
        assert essay['distribution'] is None
        assert report['distribution']['count'] == 2

    def test_achievement_table_changes_level(self, gradebook_file):
        """Test that an 85% essay average is level 3 on the standard table and 4 on the alternate."""
        selections = {"logic": 4, "clarity": 3, "notation": 3, "examples": 3}
        GradebookService(YamlGradebookRepository(gradebook_file)).grade_with_rubric("e-ana", selections, "t1")

        standard = build_class_report(GradebookService(YamlGradebookRepository(gradebook_file)), "math-9a")
        alternate = build_class_report(
            GradebookService(YamlGradebookRepository(gradebook_file), GradingPolicy(achievement_table="alternate")),
            "math-9a",
        )

        assert standard["assignments"][1]["average"] == pytest.approx(85)
        assert standard["assignments"][1]["achievement_level"] == 3
        assert alternate["assignments"][1]["achievement_level"] == 4
        assert standard["assignments"][0]["achievement_level"] == 3
        assert alternate["assignments"][0]["achievement_level"] == 3

    def test_empty_class(self, gradebook_file):
        service = GradebookService(YamlGradebookRepository(gradebook_file))
        report = build_class_report(service, "empty")
        assert report['average'] is None
        assert report['assignments'] == []
        assert report['distribution'] is None


class TestMain:
    """Test the command-line entry point."""

    def test_all_classes_with_output(self, gradebook_file, tmp_path, capsys):
        output = tmp_path / "report.yaml"
        main(["--gradebook", str(gradebook_file), "--output", str(output)])

        printed = capsys.readouterr().out
        assert "Algebra I (math-9a)" in printed
        assert "Class average: 75.0% (C)" in printed
        assert "Study Hall" in printed

        with open(output) as f:
            saved = yaml.safe_load(f)
        assert [c['id'] for c in saved['classes']] == ["math-9a", "empty"]
        assert saved['classes'][0]['assignments'][0]['distribution']['buckets']['A-'] == 1

    def test_single_class(self, gradebook_file, capsys):
        main(["-g", str(gradebook_file), "-c", "math-9a"])
        printed = capsys.readouterr().out
        assert "Algebra I" in printed
        assert "Study Hall" not in printed

    def test_extra_config(self, gradebook_file, tmp_path, capsys):
        config = tmp_path / "school.yaml"
        config.write_text("analytics:\n  healthy_max_std_dev: 40\n")
        main(["-g", str(gradebook_file), "-c", "math-9a", "--config", str(config)])
        # Class spread is 15 points, healthy only under the looser threshold
        assert "Healthy: yes" in capsys.readouterr().out

    def test_alternate_table_from_config(self, gradebook_file, tmp_path):
        selections = {"logic": 4, "clarity": 3, "notation": 3, "examples": 3}
        GradebookService(YamlGradebookRepository(gradebook_file)).grade_with_rubric("e-ana", selections, "t1")
        config = tmp_path / "school.yaml"
        config.write_text("grading:\n  achievement_table: alternate\n")
        output = tmp_path / "report.yaml"

        main(["-g", str(gradebook_file), "-c", "math-9a", "--config", str(config), "-o", str(output)])

        with open(output) as f:
            saved = yaml.safe_load(f)
        assert saved["classes"][0]["assignments"][1]["achievement_level"] == 4

    def test_missing_gradebook(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            main(["--gradebook", str(tmp_path / "missing.yaml")])
        assert exc_info.value.code == 1

    def test_unknown_class(self, gradebook_file):
        with pytest.raises(SystemExit) as exc_info:
            main(["--gradebook", str(gradebook_file), "--class-id", "nope"])
        assert exc_info.value.code == 1

    def test_bad_config(self, gradebook_file, tmp_path):
        config = tmp_path / "school.yaml"
        config.write_text("grading:\n  achievement_table: ontario\n")
        with pytest.raises(SystemExit) as exc_info:
            main(["-g", str(gradebook_file), "--config", str(config)])
        assert exc_info.value.code == 1

    def test_malformed_gradebook(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("classes: {}\n")
        with pytest.raises(SystemExit) as exc_info:
            main(["-g", str(path)])
        assert exc_info.value.code == 1
