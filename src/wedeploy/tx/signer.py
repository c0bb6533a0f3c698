"""
Transaction Signer - attaches the primary proof.

Signatures come from a signing device. A software ed25519 keypair is
provided; hardware devices implement the same interface.
"""

from abc import ABC, abstractmethod
from typing import Optional

import structlog
from nacl.signing import SigningKey

from wedeploy.core.errors import TransactionValidationError
from wedeploy.tx.encoding import b58decode, b58encode
from wedeploy.tx.transaction import SignedTransaction, UnsignedTransaction

logger = structlog.get_logger(__name__)


class SigningDevice(ABC):
    """Produces signatures over transaction bytes."""

    @property
    @abstractmethod
    def public_key(self) -> str:
        """Base58 encoded public key."""
        pass

    @abstractmethod
    async def sign(self, data: bytes) -> bytes:
        """
        Sign data.

        May suspend for as long as the device needs (e.g. a user confirming
        on a hardware wallet).

        Args:
            data: Bytes to sign

        Returns:
            Raw signature bytes
        """
        pass


class LocalSigner(SigningDevice):
    """
    Software ed25519 keypair.

    Security note: the key lives in process memory. Use a hardware device
    for production deployments.
    """

    def __init__(self, signing_key: SigningKey):
        self._signing_key = signing_key
        self._public_key = b58encode(bytes(signing_key.verify_key))

    @classmethod
    def from_base58_seed(cls, seed: str) -> "LocalSigner":
        """
        Load a keypair from a base58 encoded 32-byte seed.

        Args:
            seed: Base58 encoded private key seed
        """
        try:
            raw = b58decode(seed)
        except ValueError as e:
            raise ValueError(f"Private key is not valid base58: {e}")
        if len(raw) != 32:
            raise ValueError(f"Private key must be 32 bytes, got {len(raw)}")
        return cls(SigningKey(raw))

    @classmethod
    def generate(cls) -> "LocalSigner":
        """Generate a random keypair (not persisted)."""
        return cls(SigningKey.generate())

    @property
    def public_key(self) -> str:
        return self._public_key

    async def sign(self, data: bytes) -> bytes:
        return self._signing_key.sign(data).signature


class TransactionSigner:
    """
    Signs unsigned transactions with a signing device.

    The device signature becomes the transaction's first proof.
    """

    def __init__(self, device: SigningDevice):
        """
        Initialize the transaction signer.

        Args:
            device: Device producing the primary signature
        """
        self.device = device

    @property
    def public_key(self) -> str:
        """Sender public key used when building transactions."""
        return self.device.public_key

    async def sign_transaction(self, tx: UnsignedTransaction) -> SignedTransaction:
        """
        Sign a transaction.

        Args:
            tx: The unsigned transaction

        Returns:
            Signed transaction carrying exactly one proof

        Raises:
            TransactionValidationError: If the transaction sender is not this device
        """
        if tx.sender_public_key != self.device.public_key:
            raise TransactionValidationError(
                "Transaction sender does not match the signing device public key"
            )

        signature = await self.device.sign(tx.body_bytes())
        signed_tx = SignedTransaction.from_unsigned(tx)
        signed_tx.add_proof(signature)

        logger.debug("transaction_signed", tx_id=signed_tx.id[:16] + "...")
        return signed_tx


def generate_test_key(device: Optional[SigningDevice] = None) -> TransactionSigner:
    """
    Create a signer backed by a new random key for testing.

    WARNING: Do not use in production. The key is not persisted.
    """
    signer = TransactionSigner(device or LocalSigner.generate())
    logger.warning("test_key_generated", public_key=signer.public_key[:16] + "...")
    return signer
