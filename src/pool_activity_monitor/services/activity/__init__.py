# -*- coding: utf-8 -*-
"""Activity aggregation service."""

from pool_activity_monitor.services.activity.activity_aggregator import (
    ActivityAggregator,
    is_buy,
    summarize_swaps,
    swap_volumes,
)

__all__ = ["ActivityAggregator", "is_buy", "summarize_swaps", "swap_volumes"]
