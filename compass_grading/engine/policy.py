"""Grading policy knobs loaded from configuration."""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from compass_grading.libs.config_loader import ConfigType, get_config
from .bucketing import achievement_level_for_percentage, get_achievement_table
from .distribution import (
    DEFAULT_HEALTHY_MAX_STD_DEV,
    DEFAULT_HEALTHY_PASSING_PERCENTAGE,
    DistributionContext,
    DistributionSummary,
    analyze,
)


@dataclass(frozen=True)
class GradingPolicy:
    """Deployment-wide grading choices. Defaults match config/default.yaml."""

    achievement_table: str = "standard"
    enforce_transitions: bool = True
    healthy_passing_percentage: float = DEFAULT_HEALTHY_PASSING_PERCENTAGE
    healthy_max_std_dev: float = DEFAULT_HEALTHY_MAX_STD_DEV

    def __post_init__(self):
        # Fail at load time on an unknown table name
        get_achievement_table(self.achievement_table)

    @classmethod
    def from_config(cls, config: ConfigType) -> "GradingPolicy":
        return cls(
            achievement_table=get_config("grading.achievement_table", config, default=cls.achievement_table),
            enforce_transitions=bool(get_config("grading.enforce_transitions", config,
                                                default=cls.enforce_transitions)),
            healthy_passing_percentage=float(get_config("analytics.healthy_passing_percentage", config,
                                                        default=cls.healthy_passing_percentage)),
            healthy_max_std_dev=float(get_config("analytics.healthy_max_std_dev", config,
                                                 default=cls.healthy_max_std_dev)),
        )

    @property
    def achievement_thresholds(self) -> Tuple[Tuple[float, int], ...]:
        return get_achievement_table(self.achievement_table)

    def achievement_level(self, percentage: float) -> int:
        """Achievement level (1-4) for a percentage using the configured table."""
        return achievement_level_for_percentage(percentage, self.achievement_thresholds)

    def transition_override(self, override: bool = False) -> bool:
        """Effective override flag: transitions are never checked when enforcement is off."""
        return override or not self.enforce_transitions

    def analyze(self, scores: Sequence[float], total_points: float,
                context: Optional[DistributionContext] = None) -> Optional[DistributionSummary]:
        """Distribution analysis using this policy's health thresholds."""
        return analyze(
            scores, total_points, context,
            healthy_passing_percentage=self.healthy_passing_percentage,
            healthy_max_std_dev=self.healthy_max_std_dev,
        )
