"""
Deployer - top-level submit-and-track orchestration.

Coordinates building, signing, proof aggregation, broadcast and
confirmation tracking for one transaction at a time.
"""

from typing import Optional, Union

import structlog

from wedeploy.config import NetworkConfig
from wedeploy.core.errors import DeployError
from wedeploy.core.results import (
    BroadcastedTx,
    ExecutedTxResult,
    TrackedTransaction,
    TrackingMode,
)
from wedeploy.engine.broadcaster import Broadcaster
from wedeploy.engine.reader import ContractStateReader
from wedeploy.engine.tracker import DEFAULT_BACKOFF_SECONDS, ConfirmationTracker
from wedeploy.node.interface import NodeInterface
from wedeploy.node.rest import RestNodeAdapter
from wedeploy.tx.builder import (
    CallContractParams,
    CreateContractParams,
    DataParams,
    IssueParams,
    OperationParams,
    SetScriptParams,
    TransactionBuilder,
    TransferParams,
    UpdateContractParams,
)
from wedeploy.tx.proofs import ProofAggregator, ProofsGenerator
from wedeploy.tx.signer import TransactionSigner
from wedeploy.tx.transaction import UnsignedTransaction

logger = structlog.get_logger(__name__)


class Deployer:
    """
    Submits transactions and tracks them to a terminal state.

    Usage:
        ```python
        async with Deployer(network, TransactionSigner(LocalSigner.from_base58_seed(seed))) as deployer:
            await deployer.transfer(TransferParams(recipient="3M...", amount=100_000_000))
        ```
    """

    def __init__(
        self,
        network: NetworkConfig,
        signer: TransactionSigner,
        node: Optional[NodeInterface] = None,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        max_attempts: Optional[int] = None,
    ):
        """
        Initialize the deployer.

        Args:
            network: Network configuration
            signer: Signer producing the primary proof
            node: Custom node interface (REST adapter if not provided)
            backoff_seconds: Delay between confirmation polling attempts
            max_attempts: Optional cap on polling attempts per tracking phase
        """
        self.network = network
        self.signer = signer
        self.node = node or RestNodeAdapter(network)

        self.builder = TransactionBuilder(network)
        self.aggregator = ProofAggregator()
        self.broadcaster = Broadcaster(self.node)
        self.tracker = ConfirmationTracker(
            self.node,
            network,
            backoff_seconds=backoff_seconds,
            max_attempts=max_attempts,
        )
        self.reader = ContractStateReader(self.node)

        self._last_tracked: Optional[TrackedTransaction] = None

    async def __aenter__(self) -> "Deployer":
        await self.node.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.node.disconnect()

    @property
    def last_tracked(self) -> Optional[TrackedTransaction]:
        """
        Tracking handle of the most recent broadcast submission.

        Kept when tracking fails, so a timeout or execution failure still
        shows the state that was reached.
        """
        return self._last_tracked

    def build(self, params: OperationParams) -> UnsignedTransaction:
        """Build an unsigned transaction from this deployer's sender key."""
        return self.builder.build(params, self.signer.public_key)

    async def submit(
        self,
        tx: UnsignedTransaction,
        proofs_generator: Optional[ProofsGenerator] = None,
        mode: TrackingMode = TrackingMode.INCLUSION,
    ) -> Union[BroadcastedTx, ExecutedTxResult]:
        """
        Sign, prove, broadcast and track a transaction.

        Args:
            tx: Unsigned transaction
            proofs_generator: Source of additional proofs (e.g. multisig co-signers)
            mode: Inclusion-only or execution-aware tracking

        Returns:
            The inclusion record, or the execution result in execution mode

        Raises:
            TransactionValidationError: If the transaction cannot be signed
            BroadcastError: If the node rejects the transaction
            TrackingTimeoutError: If tracking timed out (outcome unknown)
            ExecutionFailedError: If the contract call failed
        """
        signed_tx = await self.signer.sign_transaction(tx)
        signed_tx = await self.aggregator.attach(signed_tx, proofs_generator)

        logger.info(
            "submitting_transaction",
            tx_id=signed_tx.id[:16] + "...",
            tx_type=tx.tx_type.name,
            proofs=len(signed_tx.proofs),
            mode=mode.value,
        )

        try:
            tx_id = await self.broadcaster.broadcast(signed_tx)
            tracked = TrackedTransaction(tx_id=tx_id, mode=mode)
            self._last_tracked = tracked
            await self.tracker.follow(tracked)
        except DeployError as e:
            logger.error(
                "submission_failed",
                tx_id=signed_tx.id,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise

        return tracked.result

    async def submit_params(
        self,
        params: OperationParams,
        proofs_generator: Optional[ProofsGenerator] = None,
        mode: TrackingMode = TrackingMode.INCLUSION,
    ) -> Union[BroadcastedTx, ExecutedTxResult]:
        """Build then submit. Validation failures happen before any node call."""
        tx = self.build(params)
        return await self.submit(tx, proofs_generator, mode)

    # Per-operation helpers

    async def transfer(
        self,
        params: TransferParams,
        proofs_generator: Optional[ProofsGenerator] = None,
    ) -> BroadcastedTx:
        return await self.submit_params(params, proofs_generator)

    async def data(
        self,
        params: DataParams,
        proofs_generator: Optional[ProofsGenerator] = None,
    ) -> BroadcastedTx:
        return await self.submit_params(params, proofs_generator)

    async def issue(
        self,
        params: IssueParams,
        proofs_generator: Optional[ProofsGenerator] = None,
    ) -> BroadcastedTx:
        return await self.submit_params(params, proofs_generator)

    async def set_script(
        self,
        params: SetScriptParams,
        proofs_generator: Optional[ProofsGenerator] = None,
    ) -> BroadcastedTx:
        return await self.submit_params(params, proofs_generator)

    async def invoke(
        self,
        params: CallContractParams,
        proofs_generator: Optional[ProofsGenerator] = None,
    ) -> ExecutedTxResult:
        return await self.submit_params(params, proofs_generator, TrackingMode.EXECUTION)

    async def deploy_wasm(
        self,
        params: CreateContractParams,
        proofs_generator: Optional[ProofsGenerator] = None,
    ) -> ExecutedTxResult:
        """Deploy a WASM contract; its address is the returned result's tx id."""
        result = await self.submit_params(params, proofs_generator, TrackingMode.EXECUTION)
        logger.info(
            "contract_deployed",
            contract_name=params.contract_name,
            contract_id=result.tx.id if result.tx else result.id,
        )
        return result

    async def redeploy_wasm(
        self,
        params: UpdateContractParams,
        proofs_generator: Optional[ProofsGenerator] = None,
    ) -> ExecutedTxResult:
        return await self.submit_params(params, proofs_generator, TrackingMode.EXECUTION)
