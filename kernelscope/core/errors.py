"""Typed errors raised while materializing kernel state.

Anything derived from :class:`ProcessingError` or
:class:`EnrichmentUnavailableError` is fatal for the event being processed:
the enclosing transaction rolls back and the log must be re-delivered.
"""

from __future__ import annotations


class KernelScopeError(Exception):
    """Base class for all indexer errors."""


class UnsupportedChainError(KernelScopeError):
    """The chain is missing from the registry or has no RPC configured."""

    def __init__(self, chain_id: int, detail: str = "") -> None:
        self.chain_id = chain_id
        super().__init__(f"Unsupported chain {chain_id}{': ' + detail if detail else ''}")


class ProcessingError(KernelScopeError):
    """Fatal error while processing a single on-chain log."""


class UnknownActionError(ProcessingError):
    def __init__(self, code: int) -> None:
        self.code = code
        super().__init__(f"Unknown kernel action code: {code}")


class MissingPreviousModuleError(ProcessingError):
    def __init__(self, chain_id: int, keycode: str) -> None:
        self.chain_id = chain_id
        self.keycode = keycode
        super().__init__(f"No previous module found for keycode {keycode} on chain {chain_id}")


class MissingModuleError(ProcessingError):
    def __init__(self, chain_id: int, keycode: str, policy: str) -> None:
        self.chain_id = chain_id
        self.keycode = keycode
        self.policy = policy
        super().__init__(
            f"No module found for keycode {keycode} on chain {chain_id} "
            f"(requested by policy {policy})"
        )


class KeycodeCollisionError(ProcessingError):
    """A keycode is claimed by a module while another module is still enabled for it."""

    def __init__(self, chain_id: int, keycode: str, existing: str, incoming: str) -> None:
        self.chain_id = chain_id
        self.keycode = keycode
        self.existing = existing
        self.incoming = incoming
        super().__init__(
            f"Keycode {keycode} on chain {chain_id} is already held by enabled module "
            f"{existing}; refusing to record {incoming}"
        )


class ChainReadError(ProcessingError):
    """A read-only contract call failed."""

    def __init__(self, chain_id: int, address: str, function: str, cause: Exception | None = None) -> None:
        self.chain_id = chain_id
        self.address = address
        self.function = function
        message = f"Failed to call {function} on {address} (chain {chain_id})"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class EnrichmentUnavailableError(KernelScopeError):
    """ABI or source could not be fetched from the metadata service."""

    def __init__(self, message: str, status: str = "", response: str = "") -> None:
        self.status = status
        self.response = response
        super().__init__(message)


class WorkerStoppedError(KernelScopeError):
    """A log was submitted to a chain worker that is no longer consuming.

    ``failed`` and ``error`` are set when the worker stopped on a fatal error;
    that log and everything after it must be re-delivered.
    """

    def __init__(self, chain_id: int, failed: object | None = None, error: Exception | None = None) -> None:
        self.chain_id = chain_id
        self.failed = failed
        self.error = error
        reason = f"failed: {error}" if error is not None else "stopped"
        super().__init__(f"Worker for chain {chain_id} is not running ({reason})")
