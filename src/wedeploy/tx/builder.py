"""
Transaction Builder - assembles unsigned transactions.

Turns operation-specific parameter records into unsigned transactions,
resolving fees from the network fee schedule. The builder never performs I/O.
"""

import base64
import binascii
import math
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Union

import structlog

from wedeploy.config import NetworkConfig
from wedeploy.core.errors import TransactionValidationError
from wedeploy.tx.encoding import b58decode, sha256_hex
from wedeploy.tx.transaction import (
    BINARY_PREFIX,
    CallContractTx,
    ContractParam,
    CreateContractTx,
    DataTx,
    IssueTx,
    Payment,
    SetScriptTx,
    StoredContract,
    TransferTx,
    UnsignedTransaction,
    UpdateContractTx,
)

logger = structlog.get_logger(__name__)


MAX_SCRIPT_SIZE = 160 * 1024        # Largest deployable script/bytecode in bytes
SCRIPT_FEE_PER_KB = 100_000
SCRIPT_EXTRA_FEE = 400_000
MAX_ASSET_DECIMALS = 8
PUBLIC_KEY_LENGTH = 32
MAX_LONG = 2**63 - 1            # Amounts, fees and quantities are signed 64-bit


# ============================================================================
# Parameter records
# ============================================================================

@dataclass
class TransferParams:
    recipient: str
    amount: int
    asset_id: Optional[str] = None
    attachment: str = ""
    fee: Optional[int] = None
    fee_asset_id: Optional[str] = None


@dataclass
class DataParams:
    data: List[ContractParam]
    fee: Optional[int] = None
    fee_asset_id: Optional[str] = None


@dataclass
class IssueParams:
    name: str
    description: str
    quantity: int
    decimals: int
    reissuable: bool
    fee: Optional[int] = None


@dataclass
class SetScriptParams:
    """
    Compiled script deployment.

    The script is the compiler output: raw bytes or a base64 string,
    optionally prefixed with "base64:".
    """
    script: Union[bytes, str]
    fee: Optional[int] = None


@dataclass
class CreateContractParams:
    contract_name: str
    bytecode: bytes
    params: List[ContractParam] = field(default_factory=list)
    payments: List[Payment] = field(default_factory=list)
    fee: Optional[int] = None
    fee_asset_id: Optional[str] = None


@dataclass
class UpdateContractParams:
    contract_id: str
    bytecode: bytes
    fee: Optional[int] = None
    fee_asset_id: Optional[str] = None


@dataclass
class CallContractParams:
    contract_id: str
    call_function: str
    contract_version: int = 1
    call_params: List[ContractParam] = field(default_factory=list)
    call_payments: List[Payment] = field(default_factory=list)
    fee: Optional[int] = None
    fee_asset_id: Optional[str] = None


OperationParams = Union[
    TransferParams,
    DataParams,
    IssueParams,
    SetScriptParams,
    CreateContractParams,
    UpdateContractParams,
    CallContractParams,
]


def estimate_set_script_fee(script_size: int) -> int:
    """
    Estimate the fee for deploying a script of the given size.

    Raises:
        TransactionValidationError: If the script exceeds MAX_SCRIPT_SIZE
    """
    _check_script_size(script_size)
    return math.ceil(script_size / 1024) * SCRIPT_FEE_PER_KB + SCRIPT_EXTRA_FEE


def _check_script_size(size: int) -> None:
    if size > MAX_SCRIPT_SIZE:
        raise TransactionValidationError(
            f"Max script size exceeded: {size} bytes (limit {MAX_SCRIPT_SIZE})"
        )


def _decode_script(script: Union[bytes, str]) -> bytes:
    if isinstance(script, bytes):
        return script
    if script.startswith(BINARY_PREFIX):
        script = script[len(BINARY_PREFIX):]
    try:
        return base64.b64decode(script, validate=True)
    except (binascii.Error, ValueError) as e:
        raise TransactionValidationError(f"Script is not valid base64: {e}")


class TransactionBuilder:
    """
    Builds unsigned transactions for one network.

    Fee resolution: an explicit fee in the parameter record wins, otherwise
    the network's fee for that operation kind is used.
    """

    def __init__(
        self,
        network: NetworkConfig,
        clock: Optional[Callable[[], int]] = None,
    ):
        """
        Initialize the transaction builder.

        Args:
            network: Network configuration providing the fee schedule
            clock: Returns the current time in milliseconds (defaults to wall clock)
        """
        self.network = network
        self._clock = clock or (lambda: int(time.time() * 1000))

    def build(self, params: OperationParams, sender_public_key: str) -> UnsignedTransaction:
        """
        Build a transaction of the kind matching the parameter record.

        Raises:
            TransactionValidationError: If the parameters are invalid
        """
        builders = {
            TransferParams: self.build_transfer,
            DataParams: self.build_data,
            IssueParams: self.build_issue,
            SetScriptParams: self.build_set_script,
            CreateContractParams: self.build_create_contract,
            UpdateContractParams: self.build_update_contract,
            CallContractParams: self.build_call_contract,
        }
        builder = builders.get(type(params))
        if builder is None:
            raise TransactionValidationError(
                f"Unsupported operation parameters: {type(params).__name__}"
            )
        return builder(params, sender_public_key)

    def resolve_fee(self, explicit_fee: Optional[int], default_fee: int) -> int:
        fee = default_fee if explicit_fee is None else explicit_fee
        if fee < 0:
            raise TransactionValidationError(f"Fee must not be negative: {fee}")
        if fee > MAX_LONG:
            raise TransactionValidationError(f"Fee out of range: {fee}")
        return fee

    def build_transfer(self, params: TransferParams, sender_public_key: str) -> TransferTx:
        self._check_sender(sender_public_key)
        if not params.recipient:
            raise TransactionValidationError("Transfer recipient is required")
        if params.amount <= 0:
            raise TransactionValidationError(f"Transfer amount must be positive: {params.amount}")
        if params.amount > MAX_LONG:
            raise TransactionValidationError(f"Transfer amount out of range: {params.amount}")

        tx = TransferTx(
            sender_public_key=sender_public_key,
            fee=self.resolve_fee(params.fee, self.network.transfer_fee),
            timestamp=self._clock(),
            recipient=params.recipient,
            amount=params.amount,
            asset_id=params.asset_id,
            attachment=params.attachment or "",
            fee_asset_id=params.fee_asset_id,
        )
        return self._built(tx)

    def build_data(self, params: DataParams, sender_public_key: str) -> DataTx:
        self._check_sender(sender_public_key)
        if not params.data:
            raise TransactionValidationError("Data transaction requires at least one entry")
        self._check_unique_keys(params.data)

        tx = DataTx(
            sender_public_key=sender_public_key,
            fee=self.resolve_fee(params.fee, self.network.transfer_fee),
            timestamp=self._clock(),
            data=list(params.data),
            fee_asset_id=params.fee_asset_id,
        )
        return self._built(tx)

    def build_issue(self, params: IssueParams, sender_public_key: str) -> IssueTx:
        self._check_sender(sender_public_key)
        if not params.name:
            raise TransactionValidationError("Asset name is required")
        if not 0 <= params.decimals <= MAX_ASSET_DECIMALS:
            raise TransactionValidationError(
                f"Asset decimals must be between 0 and {MAX_ASSET_DECIMALS}: {params.decimals}"
            )
        if params.quantity <= 0:
            raise TransactionValidationError(f"Asset quantity must be positive: {params.quantity}")
        if params.quantity > MAX_LONG:
            raise TransactionValidationError(f"Asset quantity out of range: {params.quantity}")

        tx = IssueTx(
            sender_public_key=sender_public_key,
            fee=self.resolve_fee(params.fee, self.network.issue_fee),
            timestamp=self._clock(),
            chain_id=self.network.chain_id,
            name=params.name,
            description=params.description,
            quantity=params.quantity,
            decimals=params.decimals,
            reissuable=params.reissuable,
        )
        return self._built(tx)

    def build_set_script(self, params: SetScriptParams, sender_public_key: str) -> SetScriptTx:
        script = _decode_script(params.script)
        _check_script_size(len(script))
        self._check_sender(sender_public_key)

        tx = SetScriptTx(
            sender_public_key=sender_public_key,
            fee=self.resolve_fee(params.fee, self.network.set_script_fee),
            timestamp=self._clock(),
            chain_id=self.network.chain_id,
            script=script,
        )
        return self._built(tx)

    def build_create_contract(
        self,
        params: CreateContractParams,
        sender_public_key: str,
    ) -> CreateContractTx:
        stored = self._stored_contract(params.bytecode)
        self._check_sender(sender_public_key)
        if not params.contract_name:
            raise TransactionValidationError("Contract name is required")
        self._check_unique_keys(params.params)
        self._check_payments(params.payments)

        tx = CreateContractTx(
            sender_public_key=sender_public_key,
            fee=self.resolve_fee(params.fee, self.network.set_wasm_script_fee),
            timestamp=self._clock(),
            contract_name=params.contract_name,
            stored_contract=stored,
            params=list(params.params),
            payments=list(params.payments),
            fee_asset_id=params.fee_asset_id,
        )
        return self._built(tx)

    def build_update_contract(
        self,
        params: UpdateContractParams,
        sender_public_key: str,
    ) -> UpdateContractTx:
        stored = self._stored_contract(params.bytecode)
        self._check_sender(sender_public_key)
        if not params.contract_id:
            raise TransactionValidationError("Contract id is required")

        tx = UpdateContractTx(
            sender_public_key=sender_public_key,
            fee=self.resolve_fee(params.fee, self.network.set_wasm_script_fee),
            timestamp=self._clock(),
            contract_id=params.contract_id,
            stored_contract=stored,
            fee_asset_id=params.fee_asset_id,
        )
        return self._built(tx)

    def build_call_contract(
        self,
        params: CallContractParams,
        sender_public_key: str,
    ) -> CallContractTx:
        self._check_sender(sender_public_key)
        if not params.contract_id:
            raise TransactionValidationError("Contract id is required")
        if not params.call_function:
            raise TransactionValidationError("Contract function is required")
        if params.contract_version < 1:
            raise TransactionValidationError(
                f"Contract version must be at least 1: {params.contract_version}"
            )
        self._check_payments(params.call_payments)

        tx = CallContractTx(
            sender_public_key=sender_public_key,
            fee=self.resolve_fee(params.fee, self.network.invoke_fee),
            timestamp=self._clock(),
            contract_id=params.contract_id,
            contract_version=params.contract_version,
            call_function=params.call_function,
            params=list(params.call_params),
            payments=list(params.call_payments),
            fee_asset_id=params.fee_asset_id,
        )
        return self._built(tx)

    # Validation helpers

    def _stored_contract(self, bytecode: bytes) -> StoredContract:
        if not bytecode:
            raise TransactionValidationError("Contract bytecode is empty")
        _check_script_size(len(bytecode))
        return StoredContract(bytecode=bytes(bytecode), bytecode_hash=sha256_hex(bytecode))

    @staticmethod
    def _check_sender(sender_public_key: str) -> None:
        try:
            key = b58decode(sender_public_key)
        except ValueError:
            key = b""
        if len(key) != PUBLIC_KEY_LENGTH:
            raise TransactionValidationError(
                f"Sender public key must be base58 of {PUBLIC_KEY_LENGTH} bytes"
            )

    @staticmethod
    def _check_unique_keys(entries: List[ContractParam]) -> None:
        keys = [entry.key for entry in entries]
        if len(keys) != len(set(keys)):
            raise TransactionValidationError("Duplicate keys in parameters")

    @staticmethod
    def _check_payments(payments: List[Payment]) -> None:
        for payment in payments:
            if payment.amount <= 0:
                raise TransactionValidationError(
                    f"Payment amount must be positive: {payment.amount}"
                )
            if payment.amount > MAX_LONG:
                raise TransactionValidationError(f"Payment amount out of range: {payment.amount}")

    @staticmethod
    def _built(tx: UnsignedTransaction) -> UnsignedTransaction:
        try:
            tx.body_bytes()
        except ValueError as e:
            raise TransactionValidationError(f"Transaction cannot be encoded: {e}") from e

        logger.debug(
            "transaction_built",
            tx_type=tx.tx_type.name,
            fee=tx.fee,
        )
        return tx
