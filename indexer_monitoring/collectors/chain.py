"""Network collectors: chain head via JSON-RPC and indexer head via GraphQL."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from ..config import MonitoringConfig
from .base import CollectorResult, FailureReason

logger = structlog.get_logger(__name__)

META_QUERY = "{ _meta { block { number } } }"


class ChainCollector:
    """Queries the chain RPC and the indexer's GraphQL endpoint.

    Every request is bounded by ``config.request_timeout``. Failures are logged
    and returned as failed results, never raised.
    """

    def __init__(self, config: MonitoringConfig, client: httpx.AsyncClient | None = None):
        self.config = config
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> ChainCollector:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(headers={"Content-Type": "application/json"})
        return self._client

    async def _post_json(self, url: str, payload: dict[str, Any]) -> CollectorResult[Any]:
        try:
            resp = await self.client.post(url, json=payload, timeout=self.config.request_timeout)
            resp.raise_for_status()
            return CollectorResult.success(resp.json())
        except httpx.TimeoutException as e:
            return CollectorResult.failed(FailureReason.TIMEOUT, f"{type(e).__name__}: {e}")
        except httpx.HTTPStatusError as e:
            return CollectorResult.failed(FailureReason.HTTP_STATUS, f"HTTP {e.response.status_code}")
        except httpx.RequestError as e:
            return CollectorResult.failed(FailureReason.TRANSPORT, f"{type(e).__name__}: {e}")
        except ValueError as e:
            return CollectorResult.failed(FailureReason.INVALID_RESPONSE, f"Body is not JSON: {e}")

    async def chain_height(self) -> CollectorResult[int]:
        """Current chain head from ``eth_blockNumber``."""
        payload = {"jsonrpc": "2.0", "method": "eth_blockNumber", "params": [], "id": 1}
        result = await self._post_json(self.config.chain.rpc_url, payload)
        if result.ok:
            result = parse_block_number(result.value)

        if not result.ok:
            logger.warning("Failed to fetch chain height", url=self.config.chain.rpc_url, error=str(result.failure))
        return result

    async def indexed_height(self) -> CollectorResult[int]:
        """Highest block the indexer has processed, from its ``_meta`` field."""
        result = await self._post_json(self.config.chain.graphql_endpoint, {"query": META_QUERY})
        if result.ok:
            result = parse_meta_block(result.value)

        if not result.ok:
            logger.warning(
                "Failed to fetch indexed height",
                url=self.config.chain.graphql_endpoint,
                error=str(result.failure)
            )
        return result


def parse_block_number(body: Any) -> CollectorResult[int]:
    """Decode the hex ``result`` of an ``eth_blockNumber`` response."""
    if not isinstance(body, dict):
        return CollectorResult.failed(FailureReason.INVALID_RESPONSE, "RPC response is not an object")
    if body.get("error"):
        error = body["error"]
        message = error.get("message") if isinstance(error, dict) else str(error)
        return CollectorResult.failed(FailureReason.INVALID_RESPONSE, f"RPC error: {message}")

    raw = body.get("result")
    if not raw or not isinstance(raw, str):
        return CollectorResult.failed(FailureReason.INVALID_RESPONSE, "RPC response has no result")
    try:
        return CollectorResult.success(int(raw, 16))
    except ValueError:
        return CollectorResult.failed(FailureReason.INVALID_RESPONSE, f"Not a hex block number: {raw!r}")


def parse_meta_block(body: Any) -> CollectorResult[int]:
    """Extract ``data._meta.block.number`` from a GraphQL response."""
    data = body.get("data") if isinstance(body, dict) else None
    meta = data.get("_meta") if isinstance(data, dict) else None
    if not isinstance(meta, dict):
        errors = body.get("errors") if isinstance(body, dict) else None
        detail = f"GraphQL errors: {errors}" if errors else "Response has no _meta field"
        return CollectorResult.failed(FailureReason.INVALID_RESPONSE, detail)

    block = meta.get("block") or {}
    number = block.get("number") if isinstance(block, dict) else None
    if isinstance(number, bool) or not isinstance(number, int):
        return CollectorResult.failed(FailureReason.INVALID_RESPONSE, f"Unexpected block number: {number!r}")
    return CollectorResult.success(number)
