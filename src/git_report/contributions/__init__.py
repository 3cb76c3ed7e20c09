"""Per-component contribution aggregation."""

from .aggregator import ContributionAggregator, aggregate_contributions, group_patterns

__all__ = ["ContributionAggregator", "aggregate_contributions", "group_patterns"]
