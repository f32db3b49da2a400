"""Fetch verified ABIs and source code from an Etherscan-compatible explorer."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable

import httpx

from kernelscope.core.config import Settings, get_settings
from kernelscope.core.errors import EnrichmentUnavailableError
from kernelscope.core.rate_limit import RateLimiter

logger = logging.getLogger(__name__)


class _RetryableResponse(Exception):
    """Non-success HTTP or API status; retried like a transport error."""

    def __init__(self, message: str, status: str, response: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.response = response


def flatten_source(source_code: str) -> str:
    """Flatten Solidity standard JSON input into one text blob.

    Explorers return either plain source, ``{...}`` standard JSON, or the same
    wrapped in a second pair of braces.
    """
    text = source_code.strip()
    candidate = text[1:-1] if text.startswith("{{") and text.endswith("}}") else text
    if not candidate.startswith("{"):
        return source_code
    try:
        json_input = json.loads(candidate)
    except json.JSONDecodeError:
        return candidate
    sources = json_input.get("sources", json_input) if isinstance(json_input, dict) else {}
    files = [
        src.get("content", "")
        for src in sources.values()
        if isinstance(src, dict) and src.get("content")
    ]
    return "\n\n".join(files) if files else candidate


class ExplorerClient:
    """Etherscan v2 client with retries, backoff and a shared rate limit."""

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
        rate_limiter: RateLimiter | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.settings = settings or get_settings()
        self._client = client or httpx.AsyncClient(timeout=self.settings.explorer_timeout_seconds)
        self._rate_limiter = rate_limiter or RateLimiter(self.settings.explorer_requests_per_second)
        self._sleep = sleep
        self._max_retries = max(1, self.settings.explorer_max_retries)

    async def fetch_abi_and_source(self, chain_id: int, address: str) -> tuple[list[dict[str, Any]], str]:
        """Return the verified ABI and flattened source of a contract."""
        abi = await self.get_abi(chain_id, address)
        source = await self.get_source_code(chain_id, address)
        return abi, source

    async def get_abi(self, chain_id: int, address: str) -> list[dict[str, Any]]:
        result = await self._request(chain_id, {"action": "getabi", "address": address})
        try:
            abi = json.loads(result) if isinstance(result, str) else result
        except json.JSONDecodeError as exc:
            raise EnrichmentUnavailableError(
                f"Failed to parse ABI for contract {address}", "PARSE_ERROR", str(exc)
            ) from exc
        if not isinstance(abi, list):
            raise EnrichmentUnavailableError(f"Unexpected ABI payload for contract {address}", "PARSE_ERROR")
        return abi

    async def get_source_code(self, chain_id: int, address: str) -> str:
        result = await self._request(chain_id, {"action": "getsourcecode", "address": address})
        if not result or not isinstance(result, list):
            raise EnrichmentUnavailableError(f"No source code found for contract {address}", "NO_SOURCE_CODE")
        source_code = result[0].get("SourceCode", "")
        if not source_code:
            raise EnrichmentUnavailableError(f"Contract {address} is not verified", "NO_SOURCE_CODE")
        return flatten_source(source_code)

    async def _request(self, chain_id: int, params: dict[str, str]) -> Any:
        query = {"chainid": str(chain_id), "module": "contract", **params}
        if self.settings.etherscan_api_key:
            query["apikey"] = self.settings.etherscan_api_key

        last_error: Exception | None = None
        for attempt in range(self._max_retries):
            try:
                await self._rate_limiter.acquire()
                response = await self._client.get(self.settings.explorer_api_url, params=query)
                if response.status_code != 200:
                    raise _RetryableResponse(f"HTTP error {response.status_code}", str(response.status_code))
                data = response.json()
                if str(data.get("status")) != "1":
                    raise _RetryableResponse(
                        f"API error: {data.get('message')} ({data.get('result')})",
                        str(data.get("status")),
                        json.dumps(data, default=str),
                    )
                return data.get("result")
            except (httpx.TransportError, _RetryableResponse, ValueError) as exc:
                last_error = exc
                if attempt + 1 >= self._max_retries:
                    break
                delay = min(
                    self.settings.explorer_retry_base_delay * (2 ** attempt),
                    self.settings.explorer_retry_max_delay,
                )
                logger.warning(
                    "Explorer %s for %s failed (attempt %d/%d), retrying in %.1fs: %s",
                    params["action"], params.get("address"), attempt + 1, self._max_retries, delay, exc,
                    extra={"chain_id": chain_id, "attempt": attempt + 1},
                )
                await self._sleep(delay)

        status = getattr(last_error, "status", "NETWORK_ERROR")
        response_text = getattr(last_error, "response", "")
        raise EnrichmentUnavailableError(
            f"Failed to fetch {params['action']} for {params.get('address')} on chain {chain_id} "
            f"after {self._max_retries} attempts: {last_error}",
            status,
            response_text,
        ) from last_error

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
