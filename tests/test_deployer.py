"""
Test suite for the submit-and-track flow.

Tests the Deployer end to end against the mock node.
"""

import pytest

from tests.conftest import broadcasted_record, executed_record
from wedeploy.core.errors import (
    BroadcastError,
    ExecutionFailedError,
    TrackingTimeoutError,
    TransactionValidationError,
)
from wedeploy.core.results import BroadcastedTx, ExecutedTxResult, TrackingState
from wedeploy.core.deployer import Deployer
from wedeploy.tx.builder import (
    MAX_SCRIPT_SIZE,
    CallContractParams,
    CreateContractParams,
    DataParams,
    TransferParams,
)
from wedeploy.tx.proofs import LocalSignerProofs, MultisigQuorumCollector
from wedeploy.tx.signer import LocalSigner
from wedeploy.tx.transaction import ContractParam


@pytest.fixture
def deployer(network_config, builder, test_signer, mock_node) -> Deployer:
    deployer = Deployer(network_config, test_signer, node=mock_node, backoff_seconds=0.01)
    # Fixed clock so rebuilt parameters keep the same id
    deployer.builder = builder
    return deployer


# ============================================================================
# Test Inclusion Flow
# ============================================================================

class TestTransferSubmission:

    @pytest.mark.asyncio
    async def test_transfer_with_default_fee(self, deployer, mock_node):
        params = TransferParams(recipient="3Mxyz...", amount=100_000_000)
        tx = deployer.build(params)
        mock_node.script_info(tx.tx_id(), None, broadcasted_record(tx.tx_id()))

        result = await deployer.submit(tx)

        assert isinstance(result, BroadcastedTx)
        assert result.id == tx.tx_id()
        assert mock_node.count("broadcast") == 1
        assert mock_node.count("transaction_info") == 2

        submitted = mock_node.broadcasts[0]
        assert submitted.transaction.fee == 100_000
        assert submitted.is_sealed
        assert len(submitted.proofs) == 1

    @pytest.mark.asyncio
    async def test_last_tracked(self, deployer, mock_node):
        tx = deployer.build(DataParams(data=[ContractParam.string("k", "v")]))
        mock_node.script_info(tx.tx_id(), broadcasted_record(tx.tx_id()))

        await deployer.submit(tx)

        assert deployer.last_tracked.tx_id == tx.tx_id()
        assert deployer.last_tracked.state == TrackingState.INCLUDED

    @pytest.mark.asyncio
    async def test_context_manager_connects(self, deployer, mock_node):
        async with deployer as active:
            assert active is deployer
            assert mock_node._connected
        assert not mock_node._connected


# ============================================================================
# Test Failure Paths
# ============================================================================

class TestSubmissionFailures:

    @pytest.mark.asyncio
    async def test_validation_error_before_any_node_call(self, deployer, mock_node):
        params = CreateContractParams(
            contract_name="huge",
            bytecode=b"\x00" * (MAX_SCRIPT_SIZE + 1),
        )

        with pytest.raises(TransactionValidationError):
            await deployer.deploy_wasm(params)

        assert mock_node.call_count == 0

    @pytest.mark.asyncio
    async def test_unencodable_values_before_any_node_call(self, deployer, mock_node):
        with pytest.raises(TransactionValidationError):
            await deployer.transfer(TransferParams(recipient="3Mxyz", amount=2**63))

        with pytest.raises(TransactionValidationError):
            await deployer.transfer(TransferParams(recipient="3Mxyz", amount=1, attachment="x" * 70_000))

        assert mock_node.call_count == 0
        assert deployer.last_tracked is None

    @pytest.mark.asyncio
    async def test_rejection_is_not_retried(self, deployer, mock_node, rejection):
        mock_node.broadcast_error = rejection

        with pytest.raises(BroadcastError) as exc_info:
            await deployer.transfer(TransferParams(recipient="3Mxyz", amount=1))

        assert str(exc_info.value) == "Insufficient fee"
        assert exc_info.value.error_code == 112
        assert mock_node.count("broadcast") == 1
        assert mock_node.count("transaction_info") == 0

    @pytest.mark.asyncio
    async def test_unreachable_node_on_broadcast(self, deployer, mock_node, flaky_error):
        mock_node.broadcast_error = flaky_error

        with pytest.raises(BroadcastError):
            await deployer.transfer(TransferParams(recipient="3Mxyz", amount=1))

        assert mock_node.count("broadcast") == 1

    @pytest.mark.asyncio
    async def test_timeout_leaves_outcome_unknown(self, deployer, mock_node):
        with pytest.raises(TrackingTimeoutError) as exc_info:
            await deployer.transfer(TransferParams(recipient="3Mxyz", amount=1))

        assert exc_info.value.state == TrackingState.SUBMITTED
        assert mock_node.count("broadcast") == 1
        assert deployer.last_tracked.state == TrackingState.TIMED_OUT
        assert deployer.last_tracked.included is None

    @pytest.mark.asyncio
    async def test_execution_failure_propagates(self, deployer, mock_node):
        tx = deployer.build(CallContractParams(contract_id="contract", call_function="withdraw"))
        tx_id = tx.tx_id()
        mock_node.script_info(tx_id, broadcasted_record(tx_id, tx_type=104))
        mock_node.script_executed(
            tx_id,
            executed_record(tx_id, status_code=5, error_message="insufficient balance"),
        )

        with pytest.raises(ExecutionFailedError, match="^insufficient balance$"):
            await deployer.invoke(CallContractParams(contract_id="contract", call_function="withdraw"))

        assert deployer.last_tracked.tx_id == tx_id
        assert deployer.last_tracked.state == TrackingState.EXECUTION_FAILED
        assert deployer.last_tracked.executed.status_code == 5

    @pytest.mark.asyncio
    async def test_flaky_polls_do_not_reach_caller(self, deployer, mock_node, flaky_error):
        tx = deployer.build(TransferParams(recipient="3Mxyz", amount=1))
        mock_node.script_info(tx.tx_id(), flaky_error, broadcasted_record(tx.tx_id()))

        result = await deployer.submit(tx)

        assert result.id == tx.tx_id()


# ============================================================================
# Test Contract Operations
# ============================================================================

class TestContractSubmission:

    @pytest.mark.asyncio
    async def test_invoke_without_generator_has_one_proof(self, deployer, mock_node):
        params = CallContractParams(
            contract_id="contract",
            call_function="confirm",
            call_params=[ContractParam.integer("amount", 10)],
        )
        tx_id = deployer.build(params).tx_id()
        mock_node.script_info(tx_id, broadcasted_record(tx_id, tx_type=104))
        mock_node.script_executed(tx_id, None, executed_record(tx_id))

        result = await deployer.invoke(params)

        assert isinstance(result, ExecutedTxResult)
        assert result.succeeded
        assert len(mock_node.broadcasts[0].proofs) == 1
        assert mock_node.broadcasts[0].transaction.fee == 500_000
        assert deployer.last_tracked.state == TrackingState.EXECUTED

    @pytest.mark.asyncio
    async def test_deploy_wasm_with_multisig_proofs(self, deployer, mock_node):
        cosigners = [LocalSigner.generate(), LocalSigner.generate()]
        collector = MultisigQuorumCollector(
            [LocalSignerProofs(cosigner) for cosigner in cosigners],
            quorum=2,
        )
        params = CreateContractParams(contract_name="multisig", bytecode=b"\x00asm\x01\x00\x00\x00")
        tx_id = deployer.build(params).tx_id()
        mock_node.script_info(tx_id, broadcasted_record(tx_id, tx_type=103))
        mock_node.script_executed(tx_id, executed_record(tx_id))

        result = await deployer.deploy_wasm(params, collector)

        submitted = mock_node.broadcasts[0]
        assert len(submitted.proofs) == 3
        assert submitted.transaction.fee == 10_000_000
        assert result.tx.id == tx_id

    @pytest.mark.asyncio
    async def test_reads_state_through_same_node(self, deployer, mock_node):
        mock_node.contract_values[("contract", "quorum")] = ContractParam.integer("quorum", 2)

        assert await deployer.reader.get_integer_value("contract", "quorum") == 2
