"""
Transaction models.

Unsigned transactions are a discriminated union over the operation kind.
Each kind writes its own fields into the canonical byte encoding and the
node's JSON form; the identifier is derived from the canonical bytes.
"""

import base64
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, ClassVar, List, Optional, Tuple, Union

from wedeploy.core.errors import SealedTransactionError, TransactionValidationError
from wedeploy.tx.encoding import ByteWriter, b58decode, b58encode, transaction_id


class TxType(IntEnum):
    """Numeric transaction types understood by the node."""
    ISSUE = 3
    TRANSFER = 4
    DATA = 12
    SET_SCRIPT = 13
    CREATE_CONTRACT = 103
    CALL_CONTRACT = 104
    UPDATE_CONTRACT = 107


class ParamType(str, Enum):
    """Value types of contract parameters and data entries."""
    INTEGER = "integer"
    BOOLEAN = "boolean"
    BINARY = "binary"
    STRING = "string"


_PARAM_TYPE_CODES = {
    ParamType.INTEGER: 0,
    ParamType.BOOLEAN: 1,
    ParamType.BINARY: 2,
    ParamType.STRING: 3,
}

BINARY_PREFIX = "base64:"


@dataclass(frozen=True)
class ContractParam:
    """A typed key/value entry used for data transactions and contract calls."""

    key: str
    type: ParamType
    value: Union[int, bool, bytes, str]

    def __post_init__(self):
        if isinstance(self.type, str) and not isinstance(self.type, ParamType):
            object.__setattr__(self, "type", ParamType(self.type))

        expected = {
            ParamType.INTEGER: int,
            ParamType.BOOLEAN: bool,
            ParamType.BINARY: bytes,
            ParamType.STRING: str,
        }[self.type]
        value_ok = isinstance(self.value, expected)
        if self.type == ParamType.INTEGER and isinstance(self.value, bool):
            value_ok = False
        if not value_ok:
            raise TransactionValidationError(
                f"Parameter '{self.key}' of type {self.type.value} "
                f"cannot hold {type(self.value).__name__}"
            )

    @classmethod
    def integer(cls, key: str, value: int) -> "ContractParam":
        return cls(key, ParamType.INTEGER, value)

    @classmethod
    def boolean(cls, key: str, value: bool) -> "ContractParam":
        return cls(key, ParamType.BOOLEAN, value)

    @classmethod
    def binary(cls, key: str, value: bytes) -> "ContractParam":
        return cls(key, ParamType.BINARY, value)

    @classmethod
    def string(cls, key: str, value: str) -> "ContractParam":
        return cls(key, ParamType.STRING, value)

    @classmethod
    def from_dict(cls, data: dict) -> "ContractParam":
        """Parse the node's JSON form ({"key", "type", "value"})."""
        param_type = ParamType(data["type"])
        value = data["value"]
        if param_type == ParamType.BINARY:
            encoded = value[len(BINARY_PREFIX):] if value.startswith(BINARY_PREFIX) else value
            value = base64.b64decode(encoded)
        return cls(data["key"], param_type, value)

    def write(self, writer: ByteWriter) -> None:
        writer.string(self.key)
        writer.u8(_PARAM_TYPE_CODES[self.type])
        if self.type == ParamType.INTEGER:
            writer.i64(self.value)
        elif self.type == ParamType.BOOLEAN:
            writer.boolean(self.value)
        elif self.type == ParamType.BINARY:
            writer.long_bytes(self.value)
        else:
            writer.long_bytes(self.value.encode("utf-8"))

    def to_dict(self) -> dict:
        value = self.value
        if self.type == ParamType.BINARY:
            value = BINARY_PREFIX + base64.b64encode(self.value).decode("ascii")
        return {"key": self.key, "type": self.type.value, "value": value}


@dataclass(frozen=True)
class Payment:
    """An amount of an asset (native token when asset_id is None)."""

    amount: int
    asset_id: Optional[str] = None

    def write(self, writer: ByteWriter) -> None:
        writer.optional_string(self.asset_id)
        writer.i64(self.amount)

    def to_dict(self) -> dict:
        return {"amount": self.amount, "assetId": self.asset_id}


@dataclass(frozen=True)
class StoredContract:
    """WASM bytecode as carried by contract create/update transactions."""

    bytecode: bytes
    bytecode_hash: str

    def write(self, writer: ByteWriter) -> None:
        writer.long_bytes(self.bytecode)
        writer.string(self.bytecode_hash)

    def to_dict(self) -> dict:
        return {
            "bytecode": base64.b64encode(self.bytecode).decode("ascii"),
            "bytecodeHash": self.bytecode_hash,
        }


@dataclass
class UnsignedTransaction:
    """
    Fields common to every transaction kind.

    Subclasses declare their type and version and contribute their own fields
    to the canonical bytes and JSON form.
    """

    tx_type: ClassVar[TxType]
    version: ClassVar[int]

    sender_public_key: str
    fee: int
    timestamp: int

    def body_bytes(self) -> bytes:
        """Canonical byte encoding signed by proofs and hashed into the id."""
        writer = ByteWriter()
        writer.u8(self.tx_type).u8(self.version)
        writer.fixed(b58decode(self.sender_public_key))
        self._write_fields(writer)
        writer.i64(self.fee)
        writer.i64(self.timestamp)
        return writer.getvalue()

    def tx_id(self) -> str:
        """Identifier derived deterministically from the canonical bytes."""
        return transaction_id(self.body_bytes())

    def _write_fields(self, writer: ByteWriter) -> None:
        raise NotImplementedError

    def _fields_dict(self) -> dict:
        raise NotImplementedError

    def to_dict(self) -> dict:
        """Node JSON form, without id and proofs."""
        result = {
            "type": int(self.tx_type),
            "version": self.version,
            "senderPublicKey": self.sender_public_key,
            "fee": self.fee,
            "timestamp": self.timestamp,
        }
        result.update(self._fields_dict())
        return result


@dataclass
class TransferTx(UnsignedTransaction):
    tx_type: ClassVar[TxType] = TxType.TRANSFER
    version: ClassVar[int] = 3

    recipient: str = ""
    amount: int = 0
    asset_id: Optional[str] = None
    attachment: str = ""
    fee_asset_id: Optional[str] = None

    def _write_fields(self, writer: ByteWriter) -> None:
        writer.optional_string(self.asset_id)
        writer.optional_string(self.fee_asset_id)
        writer.i64(self.amount)
        writer.string(self.recipient)
        writer.string(self.attachment)

    def _fields_dict(self) -> dict:
        return {
            "recipient": self.recipient,
            "amount": self.amount,
            "assetId": self.asset_id,
            "attachment": self.attachment,
            "feeAssetId": self.fee_asset_id,
        }


@dataclass
class DataTx(UnsignedTransaction):
    tx_type: ClassVar[TxType] = TxType.DATA
    version: ClassVar[int] = 3

    data: List[ContractParam] = field(default_factory=list)
    fee_asset_id: Optional[str] = None

    def _write_fields(self, writer: ByteWriter) -> None:
        writer.u16(len(self.data))
        for entry in self.data:
            entry.write(writer)
        writer.optional_string(self.fee_asset_id)

    def _fields_dict(self) -> dict:
        return {
            "author": self.sender_public_key,
            "data": [entry.to_dict() for entry in self.data],
            "feeAssetId": self.fee_asset_id,
        }


@dataclass
class IssueTx(UnsignedTransaction):
    tx_type: ClassVar[TxType] = TxType.ISSUE
    version: ClassVar[int] = 3

    chain_id: int = 0
    name: str = ""
    description: str = ""
    quantity: int = 0
    decimals: int = 0
    reissuable: bool = False

    def _write_fields(self, writer: ByteWriter) -> None:
        writer.u8(self.chain_id)
        writer.string(self.name)
        writer.string(self.description)
        writer.i64(self.quantity)
        writer.u8(self.decimals)
        writer.boolean(self.reissuable)

    def _fields_dict(self) -> dict:
        return {
            "chainId": self.chain_id,
            "name": self.name,
            "description": self.description,
            "quantity": self.quantity,
            "decimals": self.decimals,
            "reissuable": self.reissuable,
        }


@dataclass
class SetScriptTx(UnsignedTransaction):
    tx_type: ClassVar[TxType] = TxType.SET_SCRIPT
    version: ClassVar[int] = 1

    chain_id: int = 0
    script: bytes = b""

    def _write_fields(self, writer: ByteWriter) -> None:
        writer.u8(self.chain_id)
        writer.long_bytes(self.script)

    def _fields_dict(self) -> dict:
        return {
            "chainId": self.chain_id,
            "script": BINARY_PREFIX + base64.b64encode(self.script).decode("ascii"),
        }


@dataclass
class CreateContractTx(UnsignedTransaction):
    tx_type: ClassVar[TxType] = TxType.CREATE_CONTRACT
    version: ClassVar[int] = 7

    contract_name: str = ""
    stored_contract: Optional[StoredContract] = None
    params: List[ContractParam] = field(default_factory=list)
    payments: List[Payment] = field(default_factory=list)
    fee_asset_id: Optional[str] = None
    validation_policy: str = "any"
    is_confidential: bool = False

    def _write_fields(self, writer: ByteWriter) -> None:
        writer.string(self.contract_name)
        self.stored_contract.write(writer)
        writer.u16(len(self.params))
        for param in self.params:
            param.write(writer)
        writer.u16(len(self.payments))
        for payment in self.payments:
            payment.write(writer)
        writer.optional_string(self.fee_asset_id)
        writer.string(self.validation_policy)
        writer.boolean(self.is_confidential)

    def _fields_dict(self) -> dict:
        return {
            "contractName": self.contract_name,
            "storedContract": self.stored_contract.to_dict(),
            "params": [param.to_dict() for param in self.params],
            "payments": [payment.to_dict() for payment in self.payments],
            "feeAssetId": self.fee_asset_id,
            "validationPolicy": {"type": self.validation_policy},
            "isConfidential": self.is_confidential,
            "groupOwners": [],
            "groupParticipants": [],
        }


@dataclass
class UpdateContractTx(UnsignedTransaction):
    tx_type: ClassVar[TxType] = TxType.UPDATE_CONTRACT
    version: ClassVar[int] = 6

    contract_id: str = ""
    stored_contract: Optional[StoredContract] = None
    fee_asset_id: Optional[str] = None
    validation_policy: str = "any"

    def _write_fields(self, writer: ByteWriter) -> None:
        writer.string(self.contract_id)
        self.stored_contract.write(writer)
        writer.optional_string(self.fee_asset_id)
        writer.string(self.validation_policy)

    def _fields_dict(self) -> dict:
        return {
            "contractId": self.contract_id,
            "storedContract": self.stored_contract.to_dict(),
            "feeAssetId": self.fee_asset_id,
            "validationPolicy": {"type": self.validation_policy},
            "groupOwners": [],
            "groupParticipants": [],
        }


@dataclass
class CallContractTx(UnsignedTransaction):
    tx_type: ClassVar[TxType] = TxType.CALL_CONTRACT
    version: ClassVar[int] = 7

    contract_id: str = ""
    contract_version: int = 1
    call_function: str = ""
    params: List[ContractParam] = field(default_factory=list)
    payments: List[Payment] = field(default_factory=list)
    fee_asset_id: Optional[str] = None
    contract_engine: str = "wasm"

    def _write_fields(self, writer: ByteWriter) -> None:
        writer.string(self.contract_id)
        writer.i32(self.contract_version)
        writer.string(self.contract_engine)
        writer.string(self.call_function)
        writer.u16(len(self.params))
        for param in self.params:
            param.write(writer)
        writer.u16(len(self.payments))
        for payment in self.payments:
            payment.write(writer)
        writer.optional_string(self.fee_asset_id)

    def _fields_dict(self) -> dict:
        return {
            "contractId": self.contract_id,
            "contractVersion": self.contract_version,
            "contractEngine": self.contract_engine,
            "callFunc": self.call_function,
            "params": [param.to_dict() for param in self.params],
            "payments": [payment.to_dict() for payment in self.payments],
            "feeAssetId": self.fee_asset_id,
        }


@dataclass
class SignedTransaction:
    """
    An unsigned transaction plus its identifier and ordered proofs.

    Proofs keep insertion order since some validation policies are
    proof-index sensitive. Proofs can be appended until the transaction is
    sealed at broadcast.
    """

    transaction: UnsignedTransaction
    id: str
    _proofs: List[str] = field(default_factory=list)
    _sealed: bool = field(default=False, repr=False, compare=False)

    @classmethod
    def from_unsigned(cls, transaction: UnsignedTransaction) -> "SignedTransaction":
        return cls(transaction=transaction, id=transaction.tx_id())

    def add_proof(self, proof: Union[str, bytes]) -> None:
        """
        Append a proof.

        Args:
            proof: Base58 proof string or raw signature bytes
        """
        if self._sealed:
            raise SealedTransactionError(f"Transaction {self.id} already broadcast")
        if isinstance(proof, (bytes, bytearray)):
            proof = b58encode(bytes(proof))
        self._proofs.append(proof)

    def seal(self) -> None:
        """Freeze the proof list."""
        self._sealed = True

    @property
    def proofs(self) -> Tuple[str, ...]:
        """Proofs in insertion order."""
        return tuple(self._proofs)

    @property
    def is_sealed(self) -> bool:
        return self._sealed

    def body_bytes(self) -> bytes:
        return self.transaction.body_bytes()

    def to_dict(self) -> dict:
        """Full node JSON form for broadcast."""
        result = self.transaction.to_dict()
        result["id"] = self.id
        result["proofs"] = list(self._proofs)
        return result

    def __repr__(self) -> str:
        return (
            f"SignedTransaction(id={self.id[:8]}..., "
            f"type={self.transaction.tx_type.name}, proofs={len(self._proofs)})"
        )
