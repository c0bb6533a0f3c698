"""
REST API adapter for node integration.

Provides blockchain access via the node's HTTP API.
"""

from typing import Any, Callable, Optional, TypeVar

import httpx
import structlog

from wedeploy.config import NetworkConfig
from wedeploy.core.errors import (
    BroadcastError,
    NodeConnectionError,
    TransactionValidationError,
)
from wedeploy.core.results import BroadcastedTx, ExecutedTxResult
from wedeploy.node.interface import NodeInterface
from wedeploy.tx.transaction import ContractParam, SignedTransaction

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class RestNodeAdapter(NodeInterface):
    """
    Node REST API adapter.

    Implements the NodeInterface over the node's HTTP API.
    """

    def __init__(
        self,
        network: NetworkConfig,
        request_timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the REST adapter.

        Args:
            network: Network configuration with node URL and API key
            request_timeout: Timeout for a single HTTP request in seconds
            transport: Custom httpx transport (used by tests)
        """
        self.network = network
        self.base_url = network.node_api
        self.request_timeout = request_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def headers(self) -> dict:
        """Get request headers with API key."""
        headers = {"Content-Type": "application/json"}
        if self.network.api_key:
            headers["X-API-Key"] = self.network.api_key
        return headers

    async def connect(self) -> None:
        """Establish connection (create HTTP client)."""
        if self._client is not None:
            return

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.request_timeout,
            transport=self._transport,
        )
        logger.info("node_connected", base_url=self.base_url, network=self.network.name)

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("node_disconnected", network=self.network.name)

    async def _request(
        self,
        method: str,
        path: str,
        **kwargs,
    ) -> Any:
        """Make an API request. Returns None when the node has no record."""
        if not self._client:
            await self.connect()

        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.error("node_request_error", path=path, error=str(e))
            raise NodeConnectionError(f"Node request failed: {e}")

        if response.status_code == 404:
            return None

        if response.status_code != 200:
            error_msg = response.text
            logger.error(
                "node_request_failed",
                path=path,
                status=response.status_code,
                error=error_msg,
            )
            raise NodeConnectionError(
                f"Node API error: {error_msg}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            logger.error("node_response_invalid", path=path, error=str(e))
            raise NodeConnectionError(
                f"Node returned invalid JSON: {e}",
                status_code=response.status_code,
            )

    async def broadcast(self, signed_tx: SignedTransaction) -> dict:
        """Submit a signed transaction."""
        if not self._client:
            await self.connect()

        try:
            response = await self._client.post(
                "/transactions/broadcast",
                json=signed_tx.to_dict(),
            )
        except httpx.RequestError as e:
            raise NodeConnectionError(f"Transaction broadcast request failed: {e}")

        if response.status_code != 200:
            message, error_code = _rejection_reason(response)
            logger.error(
                "tx_broadcast_rejected",
                tx_id=signed_tx.id,
                status=response.status_code,
                error=message,
            )
            raise BroadcastError(message, error_code=error_code, tx_id=signed_tx.id)

        try:
            ack = response.json()
        except ValueError:
            ack = None
        if not isinstance(ack, dict):
            # Accepted, but the acknowledgement is unreadable
            logger.warning("tx_broadcast_ack_invalid", tx_id=signed_tx.id)
            return {}
        return ack

    async def transaction_info(self, tx_id: str) -> Optional[BroadcastedTx]:
        data = await self._request("GET", f"/transactions/info/{tx_id}")
        if not data:
            return None
        return _parse(BroadcastedTx.from_dict, data)

    async def executed_transaction_for(self, tx_id: str) -> Optional[ExecutedTxResult]:
        data = await self._request("GET", f"/contracts/executed-tx-for/{tx_id}")
        if not data:
            return None
        return _parse(ExecutedTxResult.from_dict, data)

    async def contract_value(self, address: str, key: str) -> Optional[ContractParam]:
        data = await self._request("GET", f"/contracts/{address}/{key}")
        if not data:
            return None
        return _parse(ContractParam.from_dict, data)

    async def contract_info(self, address: str) -> Optional[dict]:
        return await self._request("GET", f"/contracts/info/{address}")


def _parse(factory: Callable[[dict], T], data: Any) -> T:
    """Build a record from a response body; a malformed body is a transient failure."""
    try:
        return factory(data)
    except (AttributeError, KeyError, TypeError, ValueError, TransactionValidationError) as e:
        logger.error("node_record_invalid", record=factory.__qualname__, error=repr(e))
        raise NodeConnectionError(f"Node returned a malformed record: {e!r}")


def _rejection_reason(response: httpx.Response) -> tuple:
    """Extract (message, error code) from a node error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}", None

    if isinstance(body, dict):
        message = body.get("message") or body.get("error") or response.text
        return str(message), body.get("error")
    return response.text, None
