from __future__ import annotations

from activity_metrics.scoring.composite import compute_activity_score, round_half_up
from activity_metrics.scoring.types import ScoreBreakdown, ScoreInputs, ScoreWeights

__all__ = [
    "ScoreBreakdown",
    "ScoreInputs",
    "ScoreWeights",
    "compute_activity_score",
    "round_half_up",
]
