# -*- coding: utf-8 -*-
"""Domain models."""

from pool_activity_monitor.models.activity import PoolActivity
from pool_activity_monitor.models.alert import AlertRecord, PendingAlert
from pool_activity_monitor.models.block import BlockEvents
from pool_activity_monitor.models.chain import Chain, ProtocolVariant
from pool_activity_monitor.models.pool import PoolRecord, normalize_address
from pool_activity_monitor.models.swap import (
    ConcentratedLiquiditySwap,
    ConstantProductSwap,
    SwapEvent,
)

__all__ = [
    "AlertRecord",
    "BlockEvents",
    "Chain",
    "ConcentratedLiquiditySwap",
    "ConstantProductSwap",
    "PendingAlert",
    "PoolActivity",
    "PoolRecord",
    "ProtocolVariant",
    "SwapEvent",
    "normalize_address",
]
