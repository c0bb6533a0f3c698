"""
Contract State Reader - reads contract state back from the node.

Single request, single response: no caching and no retries. Node errors
pass through unchanged.
"""

from typing import Optional, Union

from wedeploy.core.errors import ContractValueTypeError
from wedeploy.node.interface import NodeInterface
from wedeploy.tx.transaction import ContractParam, ParamType


class ContractStateReader:
    """Thin accessor for contract keys and metadata."""

    def __init__(self, node: NodeInterface):
        self.node = node

    async def get_entry(self, address: str, key: str) -> Optional[ContractParam]:
        """Get the typed state entry stored under a key, or None if absent."""
        return await self.node.contract_value(address, key)

    async def get_value(self, address: str, key: str) -> Optional[Union[int, bool, bytes, str]]:
        """Get the raw value stored under a key, or None if absent."""
        entry = await self.get_entry(address, key)
        return entry.value if entry is not None else None

    async def get_integer_value(self, address: str, key: str) -> Optional[int]:
        return await self._typed_value(address, key, ParamType.INTEGER)

    async def get_string_value(self, address: str, key: str) -> Optional[str]:
        return await self._typed_value(address, key, ParamType.STRING)

    async def get_info(self, address: str) -> Optional[dict]:
        """Get contract metadata, or None if the contract does not exist."""
        return await self.node.contract_info(address)

    async def _typed_value(self, address: str, key: str, expected: ParamType):
        entry = await self.get_entry(address, key)
        if entry is None:
            return None
        if entry.type != expected:
            raise ContractValueTypeError(
                f"Key '{key}' of contract {address} holds {entry.type.value}, "
                f"expected {expected.value}"
            )
        return entry.value
