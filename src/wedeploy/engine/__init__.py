"""
Submission engine.

Contains the broadcaster, the confirmation tracker and the contract state reader.
"""

from wedeploy.engine.broadcaster import Broadcaster
from wedeploy.engine.tracker import CancellationToken, ConfirmationTracker
from wedeploy.engine.reader import ContractStateReader

__all__ = [
    "Broadcaster",
    "CancellationToken",
    "ConfirmationTracker",
    "ContractStateReader",
]
