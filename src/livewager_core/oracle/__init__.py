"""Optional advisory goal oracle."""

from livewager_core.oracle.advisor import GoalAdvisor, parse_prediction
from livewager_core.oracle.features import build_features

__all__ = ["GoalAdvisor", "build_features", "parse_prediction"]
