"""Convert per-criterion level selections into rubric scores.

Each criterion is worth ``total_points // criterion_count`` points, and a
selected level earns a fixed share of that. Both steps truncate, so a
rubric whose total is not divisible by its criterion count (or whose
shares are fractional) loses points: 100 points over three criteria at
levels 2, 3 and 4 scores 21 + 26 + 33 = 80. Historical grades were
computed this way and the truncation is kept.
"""

import logging
import math
from datetime import datetime
from typing import Dict, Mapping, Optional

from .errors import InvalidInputError
from .models import CriterionScore, Rubric, RubricCriterion, RubricScore, utcnow

LOG = logging.getLogger(__name__)

# Share of a criterion's points earned at each level
LEVEL_PERCENTAGES: Dict[int, float] = {
    1: 0.50,
    2: 0.65,
    3: 0.80,
    4: 1.00,
}


def points_per_criterion(rubric: Rubric) -> int:
    """Points available for each criterion (truncating division)."""
    if rubric.total_points < 0:
        raise InvalidInputError(f"Rubric {rubric.id} has negative total points")
    return rubric.total_points // max(1, len(rubric.criteria))


def criterion_points(rubric: Rubric, level: int) -> int:
    """Points a single criterion earns at the given level."""
    if level not in LEVEL_PERCENTAGES:
        raise InvalidInputError(f"Level must be between 1 and 4, got {level!r}")
    return math.floor(points_per_criterion(rubric) * LEVEL_PERCENTAGES[level])


def _resolve_selections(
    rubric: Rubric,
    selections: Mapping[str, int],
    require_complete: bool
) -> Dict[str, Optional[int]]:
    """Map every criterion id to its selected level (or None)."""
    resolved: Dict[str, Optional[int]] = {c.id: None for c in rubric.criteria}

    for key, level in selections.items():
        criterion: Optional[RubricCriterion] = rubric.find_criterion(key)
        if criterion is None:
            raise InvalidInputError(f"Rubric {rubric.id} has no criterion {key!r}")
        if level not in LEVEL_PERCENTAGES:
            raise InvalidInputError(
                f"Level for criterion {criterion.name!r} must be between 1 and 4, got {level!r}"
            )
        if criterion.levels and criterion.get_level(level) is None:
            raise InvalidInputError(
                f"Criterion {criterion.name!r} does not define level {level}"
            )
        resolved[criterion.id] = level

    if require_complete:
        missing = [c.name for c in rubric.criteria if resolved[c.id] is None]
        if missing:
            raise InvalidInputError(f"No level selected for criteria: {', '.join(missing)}")

    return resolved


def score(rubric: Rubric, selections: Mapping[str, int], require_complete: bool = False) -> int:
    """
    Total rubric score for a set of level selections.

    Args:
        rubric: Rubric being applied
        selections: Selected level per criterion, keyed by criterion id (or name)
        require_complete: Raise if any criterion has no selection

    Returns:
        Integer score, never more than rubric.total_points

    Raises:
        InvalidInputError: On unknown criteria, levels outside 1-4, levels the
            criterion does not define, or missing selections when required
    """
    per_criterion = points_per_criterion(rubric)
    if not rubric.criteria:
        return 0

    resolved = _resolve_selections(rubric, selections, require_complete)
    total = 0
    for level in resolved.values():
        if level is not None:
            total += math.floor(per_criterion * LEVEL_PERCENTAGES[level])

    LOG.debug("Rubric %s scored %d/%d", rubric.id, total, rubric.total_points)
    return total


def build_rubric_score(
    rubric: Rubric,
    submission_id: str,
    selections: Mapping[str, int],
    evaluator_id: str = "",
    comments: str = "",
    criterion_comments: Optional[Mapping[str, str]] = None,
    require_complete: bool = False,
    scored_at: Optional[datetime] = None
) -> RubricScore:
    """
    Build a RubricScore with one entry per criterion.

    The resulting ``total_score`` always equals ``score(rubric, selections)``.
    """
    per_criterion = points_per_criterion(rubric)
    resolved = _resolve_selections(rubric, selections, require_complete)
    criterion_comments = criterion_comments or {}

    criterion_scores = []
    for criterion in rubric.criteria:
        level = resolved[criterion.id]
        points = math.floor(per_criterion * LEVEL_PERCENTAGES[level]) if level is not None else 0
        comment = criterion_comments.get(criterion.id, criterion_comments.get(criterion.name, ""))
        criterion_scores.append(CriterionScore(
            criterion_id=criterion.id,
            level=level,
            score=points,
            comment=comment
        ))

    return RubricScore(
        submission_id=submission_id,
        rubric_id=rubric.id,
        evaluator_id=evaluator_id,
        scored_at=scored_at or utcnow(),
        criterion_scores=criterion_scores,
        comments=comments
    )
