"""
Core components.

This module contains the transaction result records, the error taxonomy and
the top-level submit-and-track orchestration.
"""

from wedeploy.core.results import (
    BroadcastedTx,
    ExecutedTxResult,
    TrackedTransaction,
    TrackingMode,
    TrackingState,
)
from wedeploy.core.deployer import Deployer

__all__ = [
    "BroadcastedTx",
    "ExecutedTxResult",
    "TrackedTransaction",
    "TrackingMode",
    "TrackingState",
    "Deployer",
]
