"""
Error taxonomy for transaction submission and tracking.

Callers of the submit-and-track flow see exactly one of the terminal kinds:
validation, broadcast, timeout or execution failure. Transient query errors
are absorbed by the confirmation tracker.
"""

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from wedeploy.core.results import ExecutedTxResult, TrackingState


class DeployError(Exception):
    """Base class for all wedeploy errors."""
    pass


class TransactionValidationError(DeployError):
    """Raised when a transaction cannot be built from its parameters."""
    pass


class SealedTransactionError(DeployError):
    """Raised when a proof is added to an already broadcast transaction."""
    pass


class QuorumNotReachedError(DeployError):
    """Raised when co-signers produce fewer proofs than the quorum requires."""

    def __init__(self, collected: int, quorum: int):
        super().__init__(f"Collected {collected} proofs, quorum requires {quorum}")
        self.collected = collected
        self.quorum = quorum


class BroadcastError(DeployError):
    """Raised when the node rejects a transaction at submission."""

    def __init__(
        self,
        message: str,
        error_code: Optional[Any] = None,
        tx_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.error_code = error_code
        self.tx_id = tx_id


class TransientQueryError(DeployError):
    """A polling query found nothing yet or hit a recoverable error."""
    pass


class NodeConnectionError(TransientQueryError):
    """Raised when the node cannot be reached or answers unexpectedly."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TrackingTimeoutError(DeployError, TimeoutError):
    """
    The tracking timer expired before a terminal state was reached.

    The transaction outcome is unknown: it may still be included or
    executed later.
    """

    def __init__(
        self,
        tx_id: str,
        state: "TrackingState",
        timeout_ms: int,
        attempts: int,
    ):
        super().__init__(
            f"Tx wait stopped: timeout (tx={tx_id}, state={state.value}, "
            f"timeout={timeout_ms}ms, attempts={attempts})"
        )
        self.tx_id = tx_id
        self.state = state
        self.timeout_ms = timeout_ms
        self.attempts = attempts


class ExecutionFailedError(DeployError):
    """The transaction was included but the contract call failed."""

    def __init__(self, result: "ExecutedTxResult"):
        super().__init__(result.error_message)
        self.result = result
        self.tx_id = result.id
        self.status_code = result.status_code
        self.error_message = result.error_message


class ContractValueTypeError(DeployError):
    """Raised when a contract key holds a value of an unexpected type."""
    pass
