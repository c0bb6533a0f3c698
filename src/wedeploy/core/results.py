"""
Node-acknowledged transaction records and tracking state.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional, Union


class TrackingMode(str, Enum):
    """How far the confirmation tracker follows a transaction."""
    INCLUSION = "inclusion"       # Stop once the transaction is in a block
    EXECUTION = "execution"       # Also wait for the contract call outcome


class TrackingState(str, Enum):
    """Lifecycle state of a tracked transaction."""
    SUBMITTED = "submitted"               # Accepted by the node, not yet in a block
    INCLUDED = "included"                 # Found in a block
    EXECUTED = "executed"                 # Contract call succeeded
    EXECUTION_FAILED = "execution_failed" # Contract call included but failed
    TIMED_OUT = "timed_out"               # Timer expired before a terminal state


@dataclass
class BroadcastedTx:
    """
    Server-acknowledged transaction record.

    Attributes:
        id: Transaction identifier
        sender_public_key: Base58 public key of the sender
        type: Numeric transaction type
        version: Transaction version
        fee: Fee paid
        timestamp: Transaction timestamp as reported by the node
    """

    id: str
    sender_public_key: str
    type: int
    version: int
    fee: int
    timestamp: Union[int, str]

    @classmethod
    def from_dict(cls, data: dict) -> "BroadcastedTx":
        """Create from the node's JSON representation."""
        return cls(
            id=data["id"],
            sender_public_key=data.get("senderPublicKey", ""),
            type=int(data.get("type", 0)),
            version=int(data.get("version", 0)),
            fee=int(data.get("fee", 0)),
            timestamp=data.get("timestamp", 0),
        )

    def to_dict(self) -> dict:
        """Convert to the node's JSON representation."""
        return {
            "id": self.id,
            "senderPublicKey": self.sender_public_key,
            "type": self.type,
            "version": self.version,
            "fee": self.fee,
            "timestamp": self.timestamp,
        }


@dataclass
class ExecutedTxResult(BroadcastedTx):
    """
    Outcome of a contract call as reported by the node.

    A status code of 0 means success; anything else means the call was
    included in a block but its execution failed.
    """

    status_code: int = 0
    error_message: str = ""
    tx: Optional[BroadcastedTx] = None
    results: List[Any] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "ExecutedTxResult":
        """Create from the node's executed-transaction JSON."""
        inner = data.get("tx")
        return cls(
            id=data["id"],
            sender_public_key=data.get("senderPublicKey", ""),
            type=int(data.get("type", 0)),
            version=int(data.get("version", 0)),
            fee=int(data.get("fee", 0)),
            timestamp=data.get("timestamp", 0),
            status_code=int(data.get("statusCode", 0)),
            error_message=data.get("errorMessage") or "",
            tx=BroadcastedTx.from_dict(inner) if inner else None,
            results=list(data.get("results", [])),
        )

    @property
    def succeeded(self) -> bool:
        """Check if the contract call succeeded."""
        return self.status_code == 0

    def to_dict(self) -> dict:
        result = super().to_dict()
        result.update({
            "statusCode": self.status_code,
            "errorMessage": self.error_message,
            "tx": self.tx.to_dict() if self.tx else None,
            "results": self.results,
        })
        return result


@dataclass
class TrackedTransaction:
    """
    Tracking handle for one submitted transaction.

    Records the lifecycle state reached and the records collected on the way.
    """

    tx_id: str
    mode: TrackingMode = TrackingMode.INCLUSION
    state: TrackingState = TrackingState.SUBMITTED

    included: Optional[BroadcastedTx] = None
    executed: Optional[ExecutedTxResult] = None
    attempts: int = 0

    submitted_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)
    error_message: Optional[str] = None

    def mark_included(self, record: BroadcastedTx) -> None:
        """Mark the transaction as found in a block."""
        self.state = TrackingState.INCLUDED
        self.included = record
        self.updated_at = datetime.utcnow()

    def mark_executed(self, result: ExecutedTxResult) -> None:
        """Mark the contract call as successfully executed."""
        self.state = TrackingState.EXECUTED
        self.executed = result
        self.updated_at = datetime.utcnow()

    def mark_execution_failed(self, result: ExecutedTxResult) -> None:
        """Mark the contract call as failed."""
        self.state = TrackingState.EXECUTION_FAILED
        self.executed = result
        self.error_message = result.error_message
        self.updated_at = datetime.utcnow()

    def mark_timed_out(self, error: str) -> None:
        """Mark tracking as stopped by the timer."""
        self.state = TrackingState.TIMED_OUT
        self.error_message = error
        self.updated_at = datetime.utcnow()

    @property
    def is_terminal(self) -> bool:
        """Check if no further state transitions are expected."""
        if self.state == TrackingState.INCLUDED:
            return self.mode == TrackingMode.INCLUSION
        return self.state != TrackingState.SUBMITTED

    @property
    def result(self) -> Optional[BroadcastedTx]:
        """The terminal record: the execution result if any, else the inclusion record."""
        return self.executed or self.included

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "tx_id": self.tx_id,
            "mode": self.mode.value,
            "state": self.state.value,
            "attempts": self.attempts,
            "included": self.included.to_dict() if self.included else None,
            "executed": self.executed.to_dict() if self.executed else None,
            "submitted_at": self.submitted_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "error_message": self.error_message,
        }

    def __repr__(self) -> str:
        return f"TrackedTransaction(id={self.tx_id[:8]}..., state={self.state.value})"
