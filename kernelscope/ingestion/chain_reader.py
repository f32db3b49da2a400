"""Read-only contract calls against the kernel, its modules and policies.

web3.py's sync provider is used and each call is pushed to the default
executor, so a slow RPC never blocks other chains' workers.
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Any

from web3 import Web3

from kernelscope.core.config import Settings, get_settings
from kernelscope.core.errors import ChainReadError, UnsupportedChainError
from kernelscope.core.types import decode_bytes_text, normalize_address, selector_hex

logger = logging.getLogger(__name__)


MODULE_ABI = [
    {
        "type": "function",
        "name": "KEYCODE",
        "inputs": [],
        "outputs": [{"name": "", "type": "bytes5", "internalType": "Keycode"}],
        "stateMutability": "pure",
    },
]

POLICY_ABI = [
    {
        "type": "function",
        "name": "requestPermissions",
        "inputs": [],
        "outputs": [
            {
                "name": "requests",
                "type": "tuple[]",
                "internalType": "struct Permissions[]",
                "components": [
                    {"name": "keycode", "type": "bytes5", "internalType": "Keycode"},
                    {"name": "funcSelector", "type": "bytes4", "internalType": "bytes4"},
                ],
            }
        ],
        "stateMutability": "view",
    },
]

KERNEL_ABI = [
    {
        "type": "function",
        "name": "executor",
        "inputs": [],
        "outputs": [{"name": "", "type": "address", "internalType": "address"}],
        "stateMutability": "view",
    },
]

ROLES_ADMIN_ABI = [
    {
        "type": "function",
        "name": "admin",
        "inputs": [],
        "outputs": [{"name": "", "type": "address", "internalType": "address"}],
        "stateMutability": "view",
    },
]


class ChainReader:
    """Per-chain web3 connections for the governance contract reads."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._connections: dict[int, Web3] = {}

    def _w3(self, chain_id: int) -> Web3:
        w3 = self._connections.get(chain_id)
        if w3 is None:
            rpc_url = self.settings.rpc_urls.get(chain_id)
            if not rpc_url:
                raise UnsupportedChainError(chain_id, f"set KERNELSCOPE_RPC_URLS with an entry for {chain_id}")
            w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": self.settings.rpc_timeout_seconds}))
            self._connections[chain_id] = w3
        return w3

    async def _call(
        self,
        chain_id: int,
        address: str,
        abi: list[dict[str, Any]],
        function: str,
        block_number: int | None,
    ) -> Any:
        w3 = self._w3(chain_id)
        contract = w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)
        fn = getattr(contract.functions, function)()
        block = block_number if block_number is not None else "latest"
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, partial(fn.call, block_identifier=block))
        except Exception as exc:
            raise ChainReadError(chain_id, address, function, exc) from exc

    async def keycode(self, chain_id: int, module: str, block_number: int | None = None) -> str:
        """Return the module's self-reported keycode."""
        raw = await self._call(chain_id, module, MODULE_ABI, "KEYCODE", block_number)
        keycode = decode_bytes_text(raw)
        if not keycode:
            raise ChainReadError(chain_id, module, "KEYCODE", ValueError("empty keycode"))
        logger.debug("Keycode for %s: %s", module, keycode, extra={"chain_id": chain_id})
        return keycode

    async def request_permissions(
        self, chain_id: int, policy: str, block_number: int | None = None
    ) -> list[tuple[str, str]]:
        """Return the ``(keycode, selector)`` pairs a policy requests."""
        raw = await self._call(chain_id, policy, POLICY_ABI, "requestPermissions", block_number)
        return [(decode_bytes_text(keycode), selector_hex(selector)) for keycode, selector in raw or []]

    async def executor(self, chain_id: int, kernel: str, block_number: int | None = None) -> str:
        raw = await self._call(chain_id, kernel, KERNEL_ABI, "executor", block_number)
        return normalize_address(raw)

    async def roles_admin(self, chain_id: int, roles_admin: str, block_number: int | None = None) -> str:
        raw = await self._call(chain_id, roles_admin, ROLES_ADMIN_ABI, "admin", block_number)
        return normalize_address(raw)
