"""
Pytest configuration and shared fixtures for the test suite.
"""

from collections import deque
from typing import Deque, Dict, List, Optional, Union

import pytest

from wedeploy.config import NetworkConfig
from wedeploy.core.errors import BroadcastError, NodeConnectionError
from wedeploy.core.results import BroadcastedTx, ExecutedTxResult
from wedeploy.node.interface import NodeInterface
from wedeploy.tx.builder import TransactionBuilder
from wedeploy.tx.signer import TransactionSigner, generate_test_key
from wedeploy.tx.transaction import ContractParam, SignedTransaction


TEST_TIMESTAMP = 1_700_000_000_000


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def network_config() -> NetworkConfig:
    """Create a test network configuration."""
    return NetworkConfig(
        name="testnet",
        node_api="http://localhost:6862",
        node_timeout=300,
        chain_id="T",
        api_key="test-api-key",
        transfer_fee=100_000,
        invoke_fee=500_000,
        additional_fee=400_000,
        issue_fee=100_000_000,
        set_script_fee=1_000_000,
        set_wasm_script_fee=10_000_000,
    )


@pytest.fixture
def builder(network_config) -> TransactionBuilder:
    """Builder with a fixed clock."""
    return TransactionBuilder(network_config, clock=lambda: TEST_TIMESTAMP)


@pytest.fixture
def test_signer() -> TransactionSigner:
    """Create a test signer with a random key."""
    return generate_test_key()


# ============================================================================
# Test Data Generators
# ============================================================================

def broadcasted_record(tx_id: str, fee: int = 100_000, tx_type: int = 4) -> BroadcastedTx:
    return BroadcastedTx(
        id=tx_id,
        sender_public_key="sender",
        type=tx_type,
        version=3,
        fee=fee,
        timestamp=TEST_TIMESTAMP,
    )


def executed_record(
    tx_id: str,
    status_code: int = 0,
    error_message: str = "",
) -> ExecutedTxResult:
    return ExecutedTxResult(
        id="executed-" + tx_id,
        sender_public_key="node",
        type=105,
        version=1,
        fee=0,
        timestamp=TEST_TIMESTAMP,
        status_code=status_code,
        error_message=error_message,
        tx=broadcasted_record(tx_id, tx_type=104),
    )


# ============================================================================
# Mock Node Interface
# ============================================================================

Response = Union[BroadcastedTx, ExecutedTxResult, Exception, None]


class MockNodeInterface(NodeInterface):
    """
    Mock node interface for testing.

    Lookup answers are scripted per transaction id: each poll pops the next
    scripted answer (None means not found, an exception is raised). Once the
    script is exhausted the last answer repeats.
    """

    def __init__(self):
        self.broadcasts: List[SignedTransaction] = []
        self.broadcast_error: Optional[Exception] = None
        self.info_script: Dict[str, Deque[Response]] = {}
        self.executed_script: Dict[str, Deque[Response]] = {}
        self.contract_values: Dict[tuple, ContractParam] = {}
        self.contracts: Dict[str, dict] = {}
        self.calls: List[str] = []
        self._connected = False

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def connect(self) -> None:
        self._connected = True

    async def disconnect(self) -> None:
        self._connected = False

    async def broadcast(self, signed_tx: SignedTransaction) -> dict:
        self.calls.append("broadcast")
        if self.broadcast_error is not None:
            raise self.broadcast_error
        self.broadcasts.append(signed_tx)
        return signed_tx.to_dict()

    async def transaction_info(self, tx_id: str) -> Optional[BroadcastedTx]:
        self.calls.append("transaction_info")
        return self._next(self.info_script, tx_id)

    async def executed_transaction_for(self, tx_id: str) -> Optional[ExecutedTxResult]:
        self.calls.append("executed_transaction_for")
        return self._next(self.executed_script, tx_id)

    async def contract_value(self, address: str, key: str) -> Optional[ContractParam]:
        self.calls.append("contract_value")
        return self.contract_values.get((address, key))

    async def contract_info(self, address: str) -> Optional[dict]:
        self.calls.append("contract_info")
        return self.contracts.get(address)

    def script_info(self, tx_id: str, *answers: Response) -> None:
        """Script the transaction info answers for a transaction."""
        self.info_script[tx_id] = deque(answers)

    def script_executed(self, tx_id: str, *answers: Response) -> None:
        """Script the executed-transaction answers for a transaction."""
        self.executed_script[tx_id] = deque(answers)

    @staticmethod
    def _next(script: Dict[str, Deque[Response]], tx_id: str) -> Response:
        answers = script.get(tx_id)
        if not answers:
            return None
        answer = answers.popleft() if len(answers) > 1 else answers[0]
        if isinstance(answer, Exception):
            raise answer
        return answer

    def count(self, call: str) -> int:
        return self.calls.count(call)


@pytest.fixture
def mock_node() -> MockNodeInterface:
    """Create a mock node interface."""
    return MockNodeInterface()


@pytest.fixture
def flaky_error() -> NodeConnectionError:
    return NodeConnectionError("connection reset by peer")


@pytest.fixture
def rejection() -> BroadcastError:
    return BroadcastError("Insufficient fee", error_code=112)
