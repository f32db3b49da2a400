"""Tests for the contract directory and chain registry."""

from __future__ import annotations

import pytest

from kernelscope.core.chains import CHAINS, get_all_chains, get_chain_config
from kernelscope.core.directory import CONTRACT_NAMES, UNKNOWN_NAME, get_contract_name, get_contract_version
from kernelscope.core.errors import UnsupportedChainError
from kernelscope.core.types import normalize_address, normalize_hash


class TestDirectory:
    def test_known_contract(self):
        assert get_contract_name("0xb216d714d91eec4f7120a732c11428857c659ec8", 1) == "RolesAdmin"

    def test_lookup_is_case_insensitive(self):
        assert get_contract_name("0x2286D7F9639E8158FAD1169E76D1FBC38247F54B", 1) == "Kernel"

    def test_version(self):
        assert get_contract_version("0xa8687a15d4be32cc8f0a8a7b9704a4c3993d9613", 1) == "1.0"
        assert get_contract_version("0xb216d714d91eec4f7120a732c11428857c659ec8", 1) is None

    def test_unknown(self):
        assert get_contract_name("0x" + "00" * 20, 1) == UNKNOWN_NAME
        assert get_contract_name("0xb216d714d91eec4f7120a732c11428857c659ec8", 999) == UNKNOWN_NAME
        assert get_contract_version("0x" + "00" * 20, 1) is None

    def test_keys_are_lowercase_addresses(self):
        for entries in CONTRACT_NAMES.values():
            for address in entries:
                assert normalize_address(address) == address


class TestChains:
    def test_get_chain_config(self):
        mainnet = get_chain_config(1)
        assert mainnet.kernel.address == "0x2286d7f9639e8158fad1169e76d1fbc38247f54b"
        assert mainnet.roles_admin.creation_block_number == 15998137

    def test_unsupported_chain(self):
        with pytest.raises(UnsupportedChainError):
            get_chain_config(137)

    def test_all_chains(self):
        assert {c.chain_id for c in get_all_chains()} == set(CHAINS)

    @pytest.mark.parametrize("chain_id", sorted(CHAINS))
    def test_deployments_are_well_formed(self, chain_id):
        config = get_chain_config(chain_id)
        assert config.chain_id == chain_id
        for deployment in (config.kernel, config.roles, config.roles_admin):
            assert normalize_address(deployment.address) == deployment.address
            normalize_hash(deployment.creation_tx_hash)
            assert deployment.creation_block_number > 0

    @pytest.mark.parametrize("chain_id", sorted(CONTRACT_NAMES))
    def test_registry_contracts_are_named(self, chain_id):
        config = get_chain_config(chain_id)
        assert get_contract_name(config.kernel.address, chain_id) == "Kernel"
        assert get_contract_name(config.roles_admin.address, chain_id) == "RolesAdmin"
