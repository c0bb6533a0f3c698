"""
Confirmation Tracker - follows a broadcast transaction to a terminal state.

States: SUBMITTED -> INCLUDED -> (EXECUTED | EXECUTION_FAILED), with
TIMED_OUT reachable from SUBMITTED or INCLUDED.

Each polling phase starts a cancellation token that fires after the
network's node timeout. The poll loop checks the token at every retry
boundary: a transient failure waits the backoff interval and then either
retries or, if the token has fired, stops with a timeout. Requests already
issued are never aborted.
"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

import structlog

from wedeploy.config import NetworkConfig
from wedeploy.core.errors import (
    ExecutionFailedError,
    TrackingTimeoutError,
    TransientQueryError,
)
from wedeploy.core.results import (
    BroadcastedTx,
    ExecutedTxResult,
    TrackedTransaction,
    TrackingMode,
    TrackingState,
)
from wedeploy.node.interface import NodeInterface

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_BACKOFF_SECONDS = 1.0


class CancellationToken:
    """
    One-shot cancellation flag, optionally fired by a timer.

    The polling loop reads `fired` at each retry boundary; disposing the
    token cancels its pending timer.
    """

    def __init__(self):
        self._fired = False
        self._timer: Optional[asyncio.TimerHandle] = None

    @classmethod
    def with_timeout(cls, seconds: float) -> "CancellationToken":
        """Create a token that fires after the given delay."""
        token = cls()
        loop = asyncio.get_running_loop()
        token._timer = loop.call_later(seconds, token.cancel)
        return token

    def cancel(self) -> None:
        """Fire the token."""
        self._fired = True
        self._timer = None

    @property
    def fired(self) -> bool:
        return self._fired

    def dispose(self) -> None:
        """Stop the timer without firing."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class ConfirmationTracker:
    """
    Polls the node until a transaction is included and, optionally, executed.
    """

    def __init__(
        self,
        node: NodeInterface,
        network: NetworkConfig,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        max_attempts: Optional[int] = None,
    ):
        """
        Initialize the confirmation tracker.

        Args:
            node: Node interface to poll
            network: Network configuration providing the node timeout
            backoff_seconds: Delay between polling attempts
            max_attempts: Optional cap on attempts per phase, on top of the timeout
        """
        if max_attempts is not None and max_attempts < 1:
            raise ValueError(f"max_attempts must be positive: {max_attempts}")

        self.node = node
        self.network = network
        self.backoff_seconds = backoff_seconds
        self.max_attempts = max_attempts

    async def track(
        self,
        tx_id: str,
        mode: TrackingMode = TrackingMode.INCLUSION,
    ) -> TrackedTransaction:
        """
        Track a transaction to a terminal state.

        Args:
            tx_id: Identifier returned by the broadcaster
            mode: Inclusion-only or execution-aware tracking

        Returns:
            Tracking handle in INCLUDED or EXECUTED state

        Raises:
            TrackingTimeoutError: If the timer expired first
            ExecutionFailedError: If the contract call failed
        """
        return await self.follow(TrackedTransaction(tx_id=tx_id, mode=mode))

    async def follow(self, tracked: TrackedTransaction) -> TrackedTransaction:
        """
        Drive an existing tracking handle to a terminal state.

        The handle is updated in place, so a caller holding it sees the state
        reached even when tracking raises.
        """
        tx_id = tracked.tx_id

        try:
            included = await self._poll(tracked, self.node.transaction_info)
            tracked.mark_included(included)
            logger.info("tx_included", tx_id=tx_id, attempts=tracked.attempts)

            if tracked.mode == TrackingMode.EXECUTION:
                executed = await self._poll(tracked, self.node.executed_transaction_for)
                self._check_execution(tracked, executed)
                tracked.mark_executed(executed)
                logger.info("tx_executed", tx_id=tx_id, attempts=tracked.attempts)

        except TrackingTimeoutError as e:
            tracked.mark_timed_out(str(e))
            raise

        return tracked

    async def wait_for_inclusion(self, tx_id: str) -> BroadcastedTx:
        """Wait until the transaction is in a block."""
        tracked = await self.track(tx_id, TrackingMode.INCLUSION)
        return tracked.included

    async def wait_for_execution(self, tx_id: str) -> ExecutedTxResult:
        """
        Wait for the execution result of an already included contract transaction.

        Raises:
            TrackingTimeoutError: If the timer expired first
            ExecutionFailedError: If the contract call failed
        """
        tracked = TrackedTransaction(
            tx_id=tx_id,
            mode=TrackingMode.EXECUTION,
            state=TrackingState.INCLUDED,
        )
        try:
            executed = await self._poll(tracked, self.node.executed_transaction_for)
        except TrackingTimeoutError as e:
            tracked.mark_timed_out(str(e))
            raise
        self._check_execution(tracked, executed)
        tracked.mark_executed(executed)
        return executed

    def _check_execution(self, tracked: TrackedTransaction, result: ExecutedTxResult) -> None:
        if result.succeeded:
            return
        tracked.mark_execution_failed(result)
        logger.error(
            "tx_execution_failed",
            tx_id=tracked.tx_id,
            status_code=result.status_code,
            error=result.error_message,
        )
        raise ExecutionFailedError(result)

    async def _poll(
        self,
        tracked: TrackedTransaction,
        query: Callable[[str], Awaitable[Optional[T]]],
    ) -> T:
        """
        Run one polling phase against a query until it yields a record.

        Not-found answers and transient errors are retried after the backoff
        interval unless the phase's token has fired by then.
        """
        token = CancellationToken.with_timeout(self.network.node_timeout_seconds)
        attempts = 0

        try:
            while True:
                attempts += 1
                tracked.attempts += 1

                try:
                    record = await query(tracked.tx_id)
                except TransientQueryError as e:
                    logger.debug(
                        "poll_attempt_failed",
                        tx_id=tracked.tx_id,
                        state=tracked.state.value,
                        attempt=attempts,
                        error=str(e),
                    )
                    record = None

                if record is not None:
                    return record

                if self.max_attempts is not None and attempts >= self.max_attempts:
                    raise self._timeout(tracked, attempts)

                await asyncio.sleep(self.backoff_seconds)

                if token.fired:
                    raise self._timeout(tracked, attempts)
        finally:
            token.dispose()

    def _timeout(self, tracked: TrackedTransaction, attempts: int) -> TrackingTimeoutError:
        logger.warning(
            "tracking_timeout",
            tx_id=tracked.tx_id,
            state=tracked.state.value,
            attempts=attempts,
            timeout_ms=self.network.node_timeout,
        )
        return TrackingTimeoutError(
            tx_id=tracked.tx_id,
            state=tracked.state,
            timeout_ms=self.network.node_timeout,
            attempts=attempts,
        )
