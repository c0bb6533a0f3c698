"""
Transaction module.

Handles transaction construction, signing and proof aggregation.
"""

from wedeploy.tx.transaction import (
    ContractParam,
    Payment,
    SignedTransaction,
    TxType,
    UnsignedTransaction,
)
from wedeploy.tx.builder import TransactionBuilder
from wedeploy.tx.signer import LocalSigner, SigningDevice, TransactionSigner
from wedeploy.tx.proofs import (
    LocalSignerProofs,
    MultisigQuorumCollector,
    NoOpProofs,
    ProofAggregator,
    ProofsGenerator,
)

__all__ = [
    "ContractParam",
    "Payment",
    "SignedTransaction",
    "TxType",
    "UnsignedTransaction",
    "TransactionBuilder",
    "LocalSigner",
    "SigningDevice",
    "TransactionSigner",
    "LocalSignerProofs",
    "MultisigQuorumCollector",
    "NoOpProofs",
    "ProofAggregator",
    "ProofsGenerator",
]
