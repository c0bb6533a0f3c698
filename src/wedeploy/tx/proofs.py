"""
Proof aggregation.

Extra proofs come from a pluggable generator so that multi-party approvals
(e.g. a multisig contract quorum) can be attached without the builder or
broadcaster knowing anything about them.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import structlog

from wedeploy.core.errors import QuorumNotReachedError
from wedeploy.tx.encoding import b58encode
from wedeploy.tx.signer import SigningDevice
from wedeploy.tx.transaction import SignedTransaction

logger = structlog.get_logger(__name__)


class ProofsGenerator(ABC):
    """Produces additional proofs for a transaction."""

    @abstractmethod
    async def generate_proofs(self, tx_bytes: bytes, tx_id: str) -> List[str]:
        """
        Generate proofs for a transaction.

        May suspend indefinitely, e.g. while waiting for co-signers.

        Args:
            tx_bytes: Canonical transaction bytes
            tx_id: Transaction identifier

        Returns:
            Base58 proof strings in the order they must be attached
        """
        pass


class NoOpProofs(ProofsGenerator):
    """Adds no proofs."""

    async def generate_proofs(self, tx_bytes: bytes, tx_id: str) -> List[str]:
        return []


class LocalSignerProofs(ProofsGenerator):
    """Adds one co-signature from a signing device."""

    def __init__(self, device: SigningDevice):
        self.device = device

    async def generate_proofs(self, tx_bytes: bytes, tx_id: str) -> List[str]:
        signature = await self.device.sign(tx_bytes)
        return [b58encode(signature)]


class MultisigQuorumCollector(ProofsGenerator):
    """
    Collects co-signer approvals until a quorum is reached.

    Sources are asked one after another in declared order; their proofs are
    concatenated in that order and collection stops once the quorum is met.
    """

    def __init__(self, sources: Sequence[ProofsGenerator], quorum: int):
        """
        Args:
            sources: Co-signer proof sources in signing order
            quorum: Number of proofs required

        Raises:
            ValueError: If quorum is not positive
        """
        if quorum < 1:
            raise ValueError(f"Quorum must be positive: {quorum}")
        self.sources = list(sources)
        self.quorum = quorum

    async def generate_proofs(self, tx_bytes: bytes, tx_id: str) -> List[str]:
        proofs: List[str] = []

        for index, source in enumerate(self.sources):
            if len(proofs) >= self.quorum:
                break
            collected = await source.generate_proofs(tx_bytes, tx_id)
            proofs.extend(collected[: self.quorum - len(proofs)])
            logger.debug(
                "cosigner_proofs_collected",
                tx_id=tx_id[:16] + "...",
                source=index,
                collected=len(proofs),
                quorum=self.quorum,
            )

        if len(proofs) < self.quorum:
            raise QuorumNotReachedError(len(proofs), self.quorum)

        return proofs


class ProofAggregator:
    """Attaches generator proofs to a signed transaction."""

    async def attach(
        self,
        signed_tx: SignedTransaction,
        generator: Optional[ProofsGenerator] = None,
    ) -> SignedTransaction:
        """
        Append the generator's proofs after the existing ones.

        Args:
            signed_tx: Transaction already carrying its primary proof
            generator: Source of additional proofs; None keeps a single proof

        Returns:
            The same transaction with proofs appended in returned order
        """
        if generator is None:
            return signed_tx

        proofs = await generator.generate_proofs(signed_tx.body_bytes(), signed_tx.id)
        for proof in proofs:
            signed_tx.add_proof(proof)

        logger.info(
            "proofs_attached",
            tx_id=signed_tx.id[:16] + "...",
            added=len(proofs),
            total=len(signed_tx.proofs),
        )
        return signed_tx
