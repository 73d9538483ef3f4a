#!/usr/bin/env python3
"""Command-line interface for class grade reports."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

import yaml
from rich.console import Console
from rich.table import Table

from compass_grading.engine import aggregator
from compass_grading.engine.bucketing import letter_grade
from compass_grading.engine.errors import GradingError
from compass_grading.engine.policy import GradingPolicy
from compass_grading.libs.config_loader import get_config, load_default_configs
from compass_grading.storage import GradebookService, YamlGradebookRepository

LOG = logging.getLogger(__name__)
console = Console()


def build_class_report(service: GradebookService, class_id: str) -> Dict[str, Any]:
    """Collect averages and distributions for one class."""
    repository = service.repository
    policy = service.policy
    school_class = repository.get_class(class_id)
    assignments = repository.list_assignments(class_id)
    by_assignment = service.submissions_by_assignment(assignments)

    assignment_rows = []
    for assignment in assignments:
        average = aggregator.assignment_average(assignment, by_assignment[assignment.id])
        distribution = service.assignment_distribution(assignment.id)
        assignment_rows.append({
            'id': assignment.id,
            'title': assignment.title,
            'weight': assignment.weight,
            'average': average,
            'letter_grade': letter_grade(average).value if average is not None else None,
            'achievement_level': policy.achievement_level(average) if average is not None else None,
            'distribution': distribution.to_dict() if distribution else None,
        })

    class_avg = aggregator.class_average(assignments, by_assignment)
    distribution = service.class_distribution(class_id)
    return {
        'id': school_class.id,
        'name': school_class.name,
        'average': class_avg,
        'letter_grade': letter_grade(class_avg).value if class_avg is not None else None,
        'achievement_level': policy.achievement_level(class_avg) if class_avg is not None else None,
        'assignments': assignment_rows,
        'distribution': distribution.to_dict() if distribution else None,
    }


def print_class_report(report: Dict[str, Any]):
    console.print(f"\n[bold cyan]{report['name']} ({report['id']})[/bold cyan]")
    console.print("=" * 60)
    if report['average'] is None:
        console.print("Class average: N/A")
    else:
        console.print(f"Class average: {report['average']:.1f}% ({report['letter_grade']}), "
                      f"achievement level {report['achievement_level']}")

    if report['assignments']:
        table = Table(title="Assignments")
        table.add_column("Assignment", style="cyan")
        table.add_column("Weight", justify="right")
        table.add_column("Average", justify="right")
        table.add_column("Grade", style="yellow")
        table.add_column("Level", justify="right")
        table.add_column("Scored", justify="right")
        for row in report['assignments']:
            average = f"{row['average']:.1f}%" if row['average'] is not None else "-"
            scored = str(row['distribution']['count']) if row['distribution'] else "0"
            level = str(row['achievement_level']) if row['achievement_level'] is not None else "-"
            table.add_row(row['title'], f"{row['weight']:g}", average, row['letter_grade'] or "-", level, scored)
        console.print(table)

    dist = report['distribution']
    if not dist:
        console.print("[yellow]No student has a scored assignment yet[/yellow]")
        return

    mode = f"{dist['mode']:.1f}" if dist['mode'] is not None else "none"
    console.print(f"\nStudent distribution (n={dist['count']}):")
    console.print(f"  Mean {dist['mean']:.1f}  Median {dist['median']:.1f}  SD {dist['std_dev']:.1f}  Mode {mode}")
    console.print(f"  Range {dist['min']:.1f} - {dist['max']:.1f}  Passing {dist['passing_percentage']:.0f}%")
    healthy = "[green]yes[/green]" if dist['is_healthy'] else "[red]no[/red]"
    console.print(f"  Healthy: {healthy}")
    for grade, count in dist['buckets'].items():
        if count:
            console.print(f"    {grade:<3} {count}")


def main(argv: List[str] = None):
    """Main entry point for gradebook-report command."""
    parser = argparse.ArgumentParser(
        description='Summarize class averages and grade distributions from a YAML gradebook',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Report on every class in the gradebook
  gradebook-report --gradebook gradebook.yaml

  # Report on one class and save the report
  gradebook-report --gradebook gradebook.yaml --class-id math-9a --output report.yaml

  # Use the alternate achievement table from a local config file
  gradebook-report --gradebook gradebook.yaml --config my_school.yaml
        """
    )

    parser.add_argument(
        '--gradebook', '-g',
        type=Path,
        required=True,
        help='Path to the gradebook YAML file'
    )
    parser.add_argument(
        '--class-id', '-c',
        type=str,
        default=None,
        help='Only report on this class (default: all classes)'
    )
    parser.add_argument(
        '--config',
        type=str,
        action='append',
        default=[],
        help='Extra YAML config file merged over the defaults (repeatable)'
    )
    parser.add_argument(
        '--output', '-o',
        type=Path,
        default=None,
        help='Path to save the report as YAML'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.gradebook.is_file():
        LOG.error(f"Gradebook file does not exist: {args.gradebook}")
        sys.exit(1)

    try:
        config = load_default_configs(*args.config)
        policy = GradingPolicy.from_config(config)
    except (ValueError, TypeError, yaml.YAMLError, GradingError) as e:
        LOG.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    if not args.verbose:
        logging.getLogger().setLevel(get_config("logging.level", config, default="INFO"))

    try:
        repository = YamlGradebookRepository(args.gradebook)
    except (ValueError, TypeError, yaml.YAMLError) as e:
        LOG.error(f"Failed to read gradebook: {e}")
        sys.exit(1)

    service = GradebookService(repository, policy)
    class_ids = [args.class_id] if args.class_id else [c.id for c in repository.list_classes()]
    if not class_ids:
        LOG.error("Gradebook contains no classes")
        sys.exit(1)

    reports = []
    try:
        for class_id in class_ids:
            reports.append(build_class_report(service, class_id))
    except KeyError as e:
        LOG.error(f"Unknown record: {e}")
        sys.exit(1)
    except GradingError as e:
        LOG.error(f"Could not compute report: {e}")
        sys.exit(1)

    for report in reports:
        print_class_report(report)

    if args.output:
        with open(args.output, 'w') as f:
            yaml.safe_dump({'classes': reports}, f, default_flow_style=False, sort_keys=False)
        LOG.info(f"Report saved to: {args.output}")


if __name__ == "__main__":
    main()
