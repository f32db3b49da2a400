"""Selector extraction and access-control guard inference.

``process_abi`` turns an ABI into a selector → function map. ``process_source``
then looks for each function's header in the verified source text and infers
the roles its guard modifier requires.

Guard inference is a textual heuristic, not a Solidity parser: it only looks
at the function header (everything between ``function <name>(`` and the
opening brace). Guards expressed inside the body, inherited overrides or
unusual formatting are missed, and that is accepted.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

from eth_utils import keccak

from kernelscope.core.types import ROLE_ROLES_ADMIN, FunctionDetails

logger = logging.getLogger(__name__)

_INT_ALIAS = re.compile(r"^(u?int)(?=$|\[)")


# ── ABI processing ───────────────────────────────────────────────────────────


def canonical_type(param: dict[str, Any]) -> str:
    """Canonical ABI type of a parameter, tuples expanded."""
    t = param.get("type", "")
    if t.startswith("tuple"):
        inner = ",".join(canonical_type(c) for c in param.get("components", []))
        return f"({inner}){t[len('tuple'):]}"
    return _INT_ALIAS.sub(r"\g<1>256", t)


def function_signature(item: dict[str, Any]) -> str:
    types = ",".join(canonical_type(p) for p in item.get("inputs", []))
    return f"{item['name']}({types})"


def function_selector(signature: str) -> str:
    return "0x" + keccak(text=signature)[:4].hex()


# ── Guard classification ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class GuardContext:
    contract_name: str
    function_name: str
    source: str


class GuardClassifier:
    """Infers the roles required by a function header, or ``None``."""

    def classify(self, header: str, ctx: GuardContext) -> list[str] | None:
        raise NotImplementedError


class ConstantReferenceGuard(GuardClassifier):
    """``onlyRole(SOME_ROLE)`` resolved via ``bytes32 constant SOME_ROLE = "name"``."""

    PATTERN = re.compile(r"\bonlyRole\(\s*([A-Z_][A-Z0-9_]*)\s*\)")

    def classify(self, header: str, ctx: GuardContext) -> list[str] | None:
        match = self.PATTERN.search(header)
        if not match:
            return None
        constant = match.group(1)
        definition = re.search(
            r"bytes32\s+(?:(?:public|private|internal)\s+)?constant\s+"
            + re.escape(constant)
            + r'\s*=\s*\\?"([^"\\]*)\\?"',
            ctx.source,
        )
        if not definition:
            logger.debug("Constant %s for %s has no string literal value", constant, ctx.function_name)
            return None
        return [definition.group(1)]


class NamedGuard(GuardClassifier):
    """Built-in ``onlyAdmin`` / ``onlyEmergency`` / ``onlyAdminOrEmergency`` modifiers."""

    GUARDS: tuple[tuple[re.Pattern[str], tuple[str, ...]], ...] = (
        (re.compile(r"\bonlyAdminOrEmergency\b"), ("admin", "emergency")),
        (re.compile(r"\bonlyAdmin\b"), ("admin",)),
        (re.compile(r"\bonlyEmergency\b"), ("emergency",)),
    )

    def classify(self, header: str, ctx: GuardContext) -> list[str] | None:
        for pattern, roles in self.GUARDS:
            if not pattern.search(header):
                continue
            # RolesAdmin's own admin is tracked under a dedicated role
            if ctx.contract_name == ROLE_ROLES_ADMIN and roles == ("admin",):
                return [ROLE_ROLES_ADMIN]
            return list(roles)
        return None


class LiteralStringGuard(GuardClassifier):
    """``onlyRole("name")`` with the role written inline."""

    PATTERN = re.compile(r'\bonlyRole\(\s*\\?"([^"\\]+)\\?"\s*\)')

    def classify(self, header: str, ctx: GuardContext) -> list[str] | None:
        match = self.PATTERN.search(header)
        return [match.group(1)] if match else None


DEFAULT_CLASSIFIERS: tuple[GuardClassifier, ...] = (
    ConstantReferenceGuard(),
    NamedGuard(),
    LiteralStringGuard(),
)


# ── Extractor ────────────────────────────────────────────────────────────────


class FunctionExtractor:
    """Builds the selector map of a contract and annotates it with roles."""

    def __init__(self, classifiers: tuple[GuardClassifier, ...] = DEFAULT_CLASSIFIERS) -> None:
        self._classifiers = classifiers

    def process_abi(self, abi: list[dict[str, Any]]) -> dict[str, FunctionDetails]:
        functions: dict[str, FunctionDetails] = {}
        for item in abi:
            if item.get("type") != "function" or not item.get("name"):
                continue
            try:
                signature = function_signature(item)
            except (KeyError, TypeError) as exc:
                logger.warning("Failed to process function %s: %s", item.get("name"), exc)
                continue
            selector = function_selector(signature)
            functions[selector] = FunctionDetails(
                name=item["name"],
                selector=selector,
                signature=signature,
            )
        return functions

    def process_source(
        self,
        contract_name: str,
        source: str,
        functions: dict[str, FunctionDetails],
    ) -> dict[str, FunctionDetails]:
        result: dict[str, FunctionDetails] = {}
        for selector, details in functions.items():
            header = self.find_function_header(source, details.name)
            if header is None:
                logger.warning("Function %s not found in source of %s", details.name, contract_name)
                result[selector] = details.model_copy(update={"roles": []})
                continue

            ctx = GuardContext(contract_name=contract_name, function_name=details.name, source=source)
            roles = self.classify(header, ctx)
            if roles:
                logger.debug("Function %s of %s requires roles %s", details.name, contract_name, roles)
            result[selector] = details.model_copy(update={"roles": roles})
        return result

    def classify(self, header: str, ctx: GuardContext) -> list[str]:
        for classifier in self._classifiers:
            roles = classifier.classify(header, ctx)
            if roles is not None:
                return list(dict.fromkeys(roles))
        return []

    @staticmethod
    def find_function_header(source: str, name: str) -> str | None:
        """Return ``function <name>(...) ... {`` for the first definition with a body."""
        # [^{;] keeps interface declarations from spanning into the next body
        match = re.search(rf"function\s+{re.escape(name)}\s*\([^{{;]*\{{", source)
        return match.group(0) if match else None
