"""
wedeploy

Submits signed transactions to a permissioned blockchain network and tracks
them from broadcast through block inclusion to contract execution, under a
bounded wait.
"""

__version__ = "0.1.0"

from wedeploy.config import NetworkConfig, load_network_config
from wedeploy.core.deployer import Deployer
from wedeploy.core.errors import (
    BroadcastError,
    DeployError,
    ExecutionFailedError,
    TrackingTimeoutError,
    TransactionValidationError,
)
from wedeploy.core.results import BroadcastedTx, ExecutedTxResult, TrackingMode

__all__ = [
    "NetworkConfig",
    "load_network_config",
    "Deployer",
    "DeployError",
    "TransactionValidationError",
    "BroadcastError",
    "TrackingTimeoutError",
    "ExecutionFailedError",
    "BroadcastedTx",
    "ExecutedTxResult",
    "TrackingMode",
]
