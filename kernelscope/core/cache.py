"""Per-chain, per-address cache of contract enrichment results.

The ABI of a deployed contract never changes, but role inference and the
explorer's verified source can be corrected upstream, so entries expire after
a TTL (one week by default).

Usage:
    cache = MetadataCache(storage=FileCacheStorage("./data/contract-cache"),
                          fetcher=ExplorerClient())
    result = await cache.process_contract(1, "0xabc...", "TRSRY")

Storage is injected: anything with async ``get(chain_id, address)`` and
``put(chain_id, address, payload)`` works. A storage that fails to read, or
returns something that does not validate, is treated as a miss.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from pathlib import Path
from typing import Any, Callable, Protocol

import redis.asyncio as aioredis
from pydantic import ValidationError

from kernelscope.analyzer.function_extractor import FunctionExtractor
from kernelscope.core.config import Settings, get_settings
from kernelscope.core.types import EnrichmentResult

logger = logging.getLogger(__name__)


class CacheStorage(Protocol):
    async def get(self, chain_id: int, address: str) -> dict[str, Any] | None: ...

    async def put(self, chain_id: int, address: str, payload: dict[str, Any]) -> None: ...


class AbiSourceFetcher(Protocol):
    async def fetch_abi_and_source(self, chain_id: int, address: str) -> tuple[list[dict[str, Any]], str]: ...


# ── Storage backends ─────────────────────────────────────────────────────────


class MemoryCacheStorage:
    """Process-local storage, used in tests and one-off CLI runs."""

    def __init__(self) -> None:
        self._store: dict[tuple[int, str], str] = {}

    async def get(self, chain_id: int, address: str) -> dict[str, Any] | None:
        raw = self._store.get((chain_id, address.lower()))
        return json.loads(raw) if raw is not None else None

    async def put(self, chain_id: int, address: str, payload: dict[str, Any]) -> None:
        self._store[(chain_id, address.lower())] = json.dumps(payload)


class FileCacheStorage:
    """One JSON file per contract under ``<root>/<chain_id>/<address>.json``."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    def _path(self, chain_id: int, address: str) -> Path:
        return self._root / str(chain_id) / f"{address.lower()}.json"

    async def get(self, chain_id: int, address: str) -> dict[str, Any] | None:
        path = self._path(chain_id, address)
        if not path.exists():
            return None
        raw = await asyncio.to_thread(path.read_text, encoding="utf-8")
        return json.loads(raw)

    async def put(self, chain_id: int, address: str, payload: dict[str, Any]) -> None:
        path = self._path(chain_id, address)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".tmp")
            tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            tmp.replace(path)

        await asyncio.to_thread(_write)


class RedisCacheStorage:
    """Redis-backed storage; entries carry the cache TTL as their expiry."""

    def __init__(self, url: str, ttl_seconds: int, prefix: str = "ks:meta") -> None:
        self._url = url
        self._ttl = ttl_seconds
        self._prefix = prefix
        self._client: Any | None = None

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = aioredis.from_url(self._url, decode_responses=True, socket_connect_timeout=2)
        return self._client

    def _key(self, chain_id: int, address: str) -> str:
        return f"{self._prefix}:{chain_id}:{address.lower()}"

    async def get(self, chain_id: int, address: str) -> dict[str, Any] | None:
        raw = await self._get_client().get(self._key(chain_id, address))
        return json.loads(raw) if raw is not None else None

    async def put(self, chain_id: int, address: str, payload: dict[str, Any]) -> None:
        await self._get_client().set(self._key(chain_id, address), json.dumps(payload), ex=self._ttl)

    async def close(self) -> None:
        if self._client:
            await self._client.close()
            self._client = None


# ── Cache ────────────────────────────────────────────────────────────────────


class MetadataCache:
    """Fetch + extract pipeline with a TTL-bounded cache in front of it."""

    def __init__(
        self,
        storage: CacheStorage,
        fetcher: AbiSourceFetcher,
        extractor: FunctionExtractor | None = None,
        ttl_seconds: int = 7 * 24 * 60 * 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._storage = storage
        self._fetcher = fetcher
        self._extractor = extractor or FunctionExtractor()
        self._ttl = ttl_seconds
        self._clock = clock

    async def process_contract(self, chain_id: int, address: str, name: str) -> EnrichmentResult:
        """Return the selector map of a contract, fetching it on miss or expiry."""
        address = address.lower()
        cached = await self._read(chain_id, address)
        if cached is not None:
            logger.debug("Cache hit for %s (%s)", name, address, extra={"chain_id": chain_id})
            return cached

        logger.info("Fetching metadata for %s (%s)", name, address, extra={"chain_id": chain_id})
        abi, source = await self._fetcher.fetch_abi_and_source(chain_id, address)
        functions = self._extractor.process_abi(abi)
        functions = self._extractor.process_source(name, source, functions)
        result = EnrichmentResult(
            chain_id=chain_id,
            address=address,
            name=name,
            functions=functions,
            fetched_at=self._clock(),
        )
        await self._write(chain_id, address, result)
        return result

    async def _read(self, chain_id: int, address: str) -> EnrichmentResult | None:
        try:
            payload = await self._storage.get(chain_id, address)
        except Exception as exc:
            logger.warning("Cache read failed for %s, refetching: %s", address, exc, extra={"chain_id": chain_id})
            return None
        if payload is None:
            return None
        try:
            result = EnrichmentResult.model_validate(payload)
        except ValidationError as exc:
            logger.warning("Corrupt cache entry for %s, refetching: %s", address, exc, extra={"chain_id": chain_id})
            return None
        if self._clock() - result.fetched_at >= self._ttl:
            logger.debug("Cache entry for %s expired", address, extra={"chain_id": chain_id})
            return None
        return result

    async def _write(self, chain_id: int, address: str, result: EnrichmentResult) -> None:
        try:
            await self._storage.put(chain_id, address, result.model_dump(mode="json"))
        except Exception as exc:
            logger.warning("Cache write failed for %s: %s", address, exc, extra={"chain_id": chain_id})


def build_cache(fetcher: AbiSourceFetcher, settings: Settings | None = None) -> MetadataCache:
    """Wire a MetadataCache with the configured storage backend."""
    settings = settings or get_settings()
    storage: CacheStorage
    if settings.metadata_cache_backend == "redis":
        storage = RedisCacheStorage(settings.redis_url, settings.metadata_cache_ttl_seconds)
    elif settings.metadata_cache_backend == "file":
        storage = FileCacheStorage(settings.metadata_cache_dir)
    else:
        storage = MemoryCacheStorage()
    return MetadataCache(storage=storage, fetcher=fetcher, ttl_seconds=settings.metadata_cache_ttl_seconds)
