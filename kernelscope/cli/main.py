"""KernelScope CLI: operator commands for the governance indexer.

Usage:
    kernelscope init-db                              Create the database tables
    kernelscope bootstrap --chain-id 1               Seed kernel, executor and RolesAdmin admin
    kernelscope enrich --chain-id 1 --address 0x...  Show a contract's selectors and roles
    kernelscope config                               Show current configuration
    kernelscope --version                            Print version

Examples:
    kernelscope enrich --chain-id 1 --address 0xb216d714d91eec4f7120a732c11428857c659ec8
    kernelscope enrich --chain-id 1 --address 0x... --name TRSRY --format json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from kernelscope import __version__
from kernelscope.core.types import EnrichmentResult

# ── Coloured output helpers ──────────────────────────────────────────────────

_RESET = "\033[0m"
_BOLD = "\033[1m"
_RED = "\033[91m"
_GREEN = "\033[92m"
_CYAN = "\033[96m"
_DIM = "\033[2m"


def _c(text: str, code: str) -> str:
    return f"{code}{text}{_RESET}"


# ── CLI argument parser ─────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kernelscope",
        description="KernelScope: kernel/module/policy governance indexer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="store_true", help="Print version and exit")

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("init-db", help="Create database tables")

    # ── bootstrap ────────────────────────────────────────────────────────────
    boot_p = sub.add_parser("bootstrap", help="Seed genesis kernel and admin records for a chain")
    boot_p.add_argument("--chain-id", type=int, required=True, help="Chain to bootstrap")

    # ── enrich ───────────────────────────────────────────────────────────────
    enrich_p = sub.add_parser("enrich", help="Fetch a contract's selector map and inferred roles")
    enrich_p.add_argument("--chain-id", type=int, required=True)
    enrich_p.add_argument("--address", "-a", required=True, help="Contract address")
    enrich_p.add_argument("--name", help="Contract name (default: directory lookup)")
    enrich_p.add_argument(
        "--format",
        "-f",
        default="table",
        choices=["table", "json"],
        help="Output format (default: table)",
    )

    sub.add_parser("config", help="Show current configuration")

    return parser


# ── Output ───────────────────────────────────────────────────────────────────


def _print_functions(result: EnrichmentResult) -> None:
    print(f"\n{_BOLD}{result.name}{_RESET} {_DIM}{result.address} (chain {result.chain_id}){_RESET}\n")
    if not result.functions:
        print(_c("  No functions in ABI.", _DIM))
        return
    for details in sorted(result.functions.values(), key=lambda f: f.signature):
        roles = _c(", ".join(details.roles), _CYAN) if details.roles else _c("-", _DIM)
        print(f"  {_DIM}{details.selector}{_RESET}  {details.signature:<60} {roles}")
    guarded = len(result.guarded_functions())
    print(f"\n  {_c(str(guarded), _GREEN)} of {len(result.functions)} functions guarded\n")


# ── Commands ─────────────────────────────────────────────────────────────────


async def _run_init_db() -> int:
    from kernelscope.core.database import init_models

    await init_models()
    print(_c("Database tables created.", _GREEN))
    return 0


async def _run_bootstrap(args: argparse.Namespace) -> int:
    from kernelscope.core.cache import build_cache
    from kernelscope.core.database import get_session_factory
    from kernelscope.ingestion.chain_reader import ChainReader
    from kernelscope.ingestion.explorer_client import ExplorerClient
    from kernelscope.pipeline.action_processor import ActionEventProcessor
    from kernelscope.pipeline.role_processor import RoleEventProcessor

    reader = ChainReader()
    explorer = ExplorerClient()
    factory = get_session_factory()
    try:
        kernel = await ActionEventProcessor(factory, reader, build_cache(explorer)).bootstrap_kernel(args.chain_id)
        admin = await RoleEventProcessor(factory, reader).bootstrap_roles_admin(args.chain_id)
    finally:
        await explorer.close()

    print(f"  Kernel: {'already present' if kernel.skipped else _c('seeded', _GREEN)}")
    print(f"  RolesAdmin admin: {_c(admin.assignee, _CYAN) if admin else 'already present'}")
    return 0


async def _run_enrich(args: argparse.Namespace) -> int:
    from kernelscope.core.cache import build_cache
    from kernelscope.core.directory import get_contract_name
    from kernelscope.ingestion.explorer_client import ExplorerClient

    address = args.address.lower()
    name = args.name or get_contract_name(address, args.chain_id)
    explorer = ExplorerClient()
    try:
        result = await build_cache(explorer).process_contract(args.chain_id, address, name)
    finally:
        await explorer.close()

    if args.format == "json":
        print(json.dumps(result.model_dump(mode="json"), indent=2))
    else:
        _print_functions(result)
    return 0


def _run_config() -> int:
    """Print current settings (redacted)."""
    from kernelscope.core.config import get_settings

    s = get_settings()
    print(f"\n{_BOLD}KernelScope Configuration{_RESET}\n")
    for field_name in sorted(type(s).model_fields.keys()):
        val = getattr(s, field_name, "")
        # Redact secrets
        if any(kw in field_name for kw in ("password", "secret", "key", "token")):
            val = "****" if val else "(not set)"
        print(f"  {_DIM}{field_name}:{_RESET}  {val}")
    print()
    return 0


# ── Entrypoint ───────────────────────────────────────────────────────────────


def main(argv: list[str] | None = None) -> int:
    from kernelscope.core.config import get_settings
    from kernelscope.core.errors import KernelScopeError
    from kernelscope.core.logging import setup_logging

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"kernelscope {__version__}")
        return 0

    if not args.command:
        parser.print_help()
        return 0

    if args.command == "config":
        return _run_config()

    settings = get_settings()
    setup_logging(settings.app_env, settings.log_level, service=settings.app_name)

    try:
        if args.command == "init-db":
            return asyncio.run(_run_init_db())
        if args.command == "bootstrap":
            return asyncio.run(_run_bootstrap(args))
        if args.command == "enrich":
            return asyncio.run(_run_enrich(args))
    except KernelScopeError as exc:
        print(_c(f"Error: {exc}", _RED), file=sys.stderr)
        return 1

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
