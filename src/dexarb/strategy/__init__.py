"""Strategy module for triangle evaluation, history and analytics."""

from dexarb.strategy.analytics import Analytics, AnalyticsAggregator
from dexarb.strategy.evaluator import TriangularEvaluator, evaluate_triangle
from dexarb.strategy.history import OpportunityHistory


__all__ = [
    "Analytics",
    "AnalyticsAggregator",
    "OpportunityHistory",
    "TriangularEvaluator",
    "evaluate_triangle",
]
