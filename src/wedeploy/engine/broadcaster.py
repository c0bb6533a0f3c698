"""
Broadcaster - submits fully proved transactions.

A single submission per transaction; rejections are never retried.
"""

import structlog

from wedeploy.core.errors import BroadcastError, NodeConnectionError
from wedeploy.node.interface import NodeInterface
from wedeploy.tx.transaction import SignedTransaction

logger = structlog.get_logger(__name__)


class Broadcaster:
    """Submits signed transactions to the node."""

    def __init__(self, node: NodeInterface):
        self.node = node

    async def broadcast(self, signed_tx: SignedTransaction) -> str:
        """
        Submit a transaction.

        Seals the transaction on success so no further proofs can be added.

        Args:
            signed_tx: Transaction with all proofs attached

        Returns:
            Node-assigned transaction identifier

        Raises:
            BroadcastError: If the node rejects the transaction or cannot be reached
        """
        if signed_tx.is_sealed:
            raise BroadcastError(
                f"Transaction {signed_tx.id} was already broadcast",
                tx_id=signed_tx.id,
            )

        try:
            ack = await self.node.broadcast(signed_tx)
        except NodeConnectionError as e:
            logger.error("tx_broadcast_failed", tx_id=signed_tx.id, error=str(e))
            raise BroadcastError(str(e), tx_id=signed_tx.id) from e

        signed_tx.seal()

        tx_id = (ack or {}).get("id") or signed_tx.id
        if tx_id != signed_tx.id:
            logger.warning("tx_id_mismatch", local_id=signed_tx.id, node_id=tx_id)

        logger.info(
            "tx_broadcast",
            tx_id=tx_id,
            tx_type=signed_tx.transaction.tx_type.name,
            proofs=len(signed_tx.proofs),
        )
        return tx_id
