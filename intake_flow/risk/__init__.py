"""Risk aggregation for submitted questionnaires."""

from intake_flow.risk.aggregator import (
    Disposition,
    RiskAggregator,
    RiskAssessment,
    RiskFlag,
)

__all__ = [
    "Disposition",
    "RiskAggregator",
    "RiskAssessment",
    "RiskFlag",
]
