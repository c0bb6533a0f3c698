"""
Abstract interface for node integration.

Defines the contract for blockchain access that all node adapters must implement.
"""

from abc import ABC, abstractmethod
from typing import Optional

from wedeploy.core.results import BroadcastedTx, ExecutedTxResult
from wedeploy.tx.transaction import ContractParam, SignedTransaction


class NodeInterface(ABC):
    """
    Abstract interface for node access.

    This interface defines the node operations needed for deployments:
    - Transaction submission
    - Transaction and execution lookup
    - Contract state reads

    Lookups return None when the node has no record. Recoverable failures
    raise NodeConnectionError.
    """

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish connection to the node/API.

        Raises:
            NodeConnectionError: If connection cannot be established
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close connection to the node/API."""
        pass

    @abstractmethod
    async def broadcast(self, signed_tx: SignedTransaction) -> dict:
        """
        Submit a signed transaction to the network.

        Args:
            signed_tx: Fully proved transaction

        Returns:
            The node's acknowledgement (the accepted transaction JSON)

        Raises:
            BroadcastError: If the node rejects the transaction
            NodeConnectionError: If the node cannot be reached
        """
        pass

    @abstractmethod
    async def transaction_info(self, tx_id: str) -> Optional[BroadcastedTx]:
        """
        Get a transaction's ledger record.

        Args:
            tx_id: Transaction identifier

        Returns:
            The record once the transaction is in a block, None otherwise
        """
        pass

    @abstractmethod
    async def executed_transaction_for(self, tx_id: str) -> Optional[ExecutedTxResult]:
        """
        Get the execution result of a contract transaction.

        Args:
            tx_id: Identifier of the contract transaction

        Returns:
            The execution result once available, None otherwise
        """
        pass

    @abstractmethod
    async def contract_value(self, address: str, key: str) -> Optional[ContractParam]:
        """
        Get a single contract state entry.

        Args:
            address: Contract identifier
            key: State key

        Returns:
            The typed entry if it exists, None otherwise
        """
        pass

    @abstractmethod
    async def contract_info(self, address: str) -> Optional[dict]:
        """
        Get contract metadata.

        Args:
            address: Contract identifier

        Returns:
            Contract metadata if the contract exists, None otherwise
        """
        pass

    async def __aenter__(self) -> "NodeInterface":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()
