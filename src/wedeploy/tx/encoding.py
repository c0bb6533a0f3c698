"""
Canonical byte encoding for transactions.

All integers are big-endian. Variable-length fields carry a 2-byte length
prefix (4-byte for contract bytecode); optional fields carry a 1-byte
presence flag. Values that do not fit their field raise ValueError.
"""

import hashlib
import struct
from typing import Optional, Union

import base58


class ByteWriter:
    """Append-only buffer producing a transaction's canonical bytes."""

    def __init__(self):
        self._buffer = bytearray()

    def _pack(self, fmt: str, value: int) -> "ByteWriter":
        try:
            self._buffer += struct.pack(fmt, value)
        except struct.error as e:
            raise ValueError(f"Value {value!r} does not fit {fmt!r}: {e}") from e
        return self

    def u8(self, value: int) -> "ByteWriter":
        return self._pack(">B", value)

    def boolean(self, value: bool) -> "ByteWriter":
        return self.u8(1 if value else 0)

    def u16(self, value: int) -> "ByteWriter":
        return self._pack(">H", value)

    def i32(self, value: int) -> "ByteWriter":
        return self._pack(">i", value)

    def i64(self, value: int) -> "ByteWriter":
        return self._pack(">q", value)

    def fixed(self, value: bytes) -> "ByteWriter":
        self._buffer += value
        return self

    def short_bytes(self, value: bytes) -> "ByteWriter":
        """Write bytes with a 2-byte length prefix."""
        if len(value) > 0xFFFF:
            raise ValueError(f"Field too long for short length prefix: {len(value)} bytes")
        return self.u16(len(value)).fixed(value)

    def long_bytes(self, value: bytes) -> "ByteWriter":
        """Write bytes with a 4-byte length prefix."""
        return self.i32(len(value)).fixed(value)

    def string(self, value: str) -> "ByteWriter":
        return self.short_bytes(value.encode("utf-8"))

    def optional_string(self, value: Optional[str]) -> "ByteWriter":
        if value is None:
            return self.u8(0)
        return self.u8(1).string(value)

    def getvalue(self) -> bytes:
        return bytes(self._buffer)


def blake2b256(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=32).digest()


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def b58encode(data: bytes) -> str:
    return base58.b58encode(data).decode("ascii")


def b58decode(value: Union[str, bytes]) -> bytes:
    return base58.b58decode(value)


def transaction_id(body_bytes: bytes) -> str:
    """Derive the transaction identifier from its canonical bytes."""
    return b58encode(blake2b256(body_bytes))
