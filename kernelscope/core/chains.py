"""Supported chains and the deployment coordinates of the governance contracts."""

from __future__ import annotations

from dataclasses import dataclass

from kernelscope.core.errors import UnsupportedChainError


@dataclass(frozen=True)
class Deployment:
    """Where and when a contract was created."""

    address: str
    creation_tx_hash: str
    creation_block_number: int
    creation_timestamp: int


@dataclass(frozen=True)
class ChainConfig:
    """Configuration for a chain running the kernel."""

    chain_id: int
    name: str
    short_name: str
    explorer_url: str
    kernel: Deployment
    roles: Deployment
    roles_admin: Deployment
    is_testnet: bool = False


# ── Chain Registry ───────────────────────────────────────────────────────────

CHAINS: dict[int, ChainConfig] = {
    1: ChainConfig(
        chain_id=1,
        name="Ethereum Mainnet",
        short_name="mainnet",
        explorer_url="https://etherscan.io",
        kernel=Deployment(
            address="0x2286d7f9639e8158fad1169e76d1fbc38247f54b",
            creation_tx_hash="0xda3facf1f77124cdf4bddff8fa09221354ad663ec2f8b03dcc4657086ebf5e72",
            creation_block_number=15998125,
            creation_timestamp=1668790475,
        ),
        roles=Deployment(
            address="0x6cafd730dc199df73c16420c4fcab18e3afbfa59",
            creation_tx_hash="0xbf00e197abe1961dc9992b29c5471949df1947be69d462ff48bb574aed2fab42",
            creation_block_number=15998132,
            creation_timestamp=1668789359,
        ),
        roles_admin=Deployment(
            address="0xb216d714d91eec4f7120a732c11428857c659ec8",
            creation_tx_hash="0xcc820ca2f75e32ae5f98eb861c08d663501878f18b8888983bec07a007da6b78",
            creation_block_number=15998137,
            creation_timestamp=1668789419,
        ),
    ),
    42161: ChainConfig(
        chain_id=42161,
        name="Arbitrum One",
        short_name="arbitrum",
        explorer_url="https://arbiscan.io",
        kernel=Deployment(
            address="0xeac3ec0cc130f4826715187805d1b50e861f2dac",
            creation_tx_hash="0x3f55f2ce3af9f803343c6b3361ccde1cf4853c931c9410ad935586cc3c21519d",
            creation_block_number=85886527,
            creation_timestamp=1682868260,
        ),
        roles=Deployment(
            address="0xff5f09d5efe13a9a424f30ec2e1af89d867834d6",
            creation_tx_hash="0x87fd19b730e0fc2223b0ead36454ac21ac942abdc3162e0abb65983b6f634043",
            creation_block_number=85886592,
            creation_timestamp=1682868279,
        ),
        roles_admin=Deployment(
            address="0x69168c08acf66f002fd02e1b169f38c022c93b70",
            creation_tx_hash="0x266c2c373e058c9f3c9336709f3feade66d62702d7abfc211504da3327cc1e48",
            creation_block_number=85886660,
            creation_timestamp=1682868296,
        ),
    ),
    8453: ChainConfig(
        chain_id=8453,
        name="Base",
        short_name="base",
        explorer_url="https://basescan.org",
        kernel=Deployment(
            address="0x18878df23e2a36f81e820e4b47b4a40576d3159c",
            creation_tx_hash="0x005ee16349882fa0b7a31470b2c8049d40bb387c2aeef045b6baa75566d8a39c",
            creation_block_number=13204831,
            creation_timestamp=1713199009,
        ),
        roles=Deployment(
            address="0xbc9ee0d911739cbc72cd094ada26f56e0c49eeae",
            creation_tx_hash="0x379915686d42077d6a0891f07113c9e4c8574fdb4aec08aa1ea43bd6d471589c",
            creation_block_number=13204839,
            creation_timestamp=1713199025,
        ),
        roles_admin=Deployment(
            address="0xb1fa0ac44d399b778b14af0aaf4bcf8af3437ad1",
            creation_tx_hash="0xcfd3d8df0c20432e819623d9c230e61d81b321e6f83c8312e3ad949143d9ad7f",
            creation_block_number=13204846,
            creation_timestamp=1713199039,
        ),
    ),
    80094: ChainConfig(
        chain_id=80094,
        name="Berachain",
        short_name="berachain",
        explorer_url="https://berascan.com",
        kernel=Deployment(
            address="0x623164a9ee2556d524b08f34f1d2389d7b4e1a1c",
            creation_tx_hash="0x6b4e1a31a0b528ccb915aaf59e168b70d1952045b1136a510b4b7eb743fd316e",
            creation_block_number=780016,
            creation_timestamp=1738849414,
        ),
        roles=Deployment(
            address="0x22ae99d07584a2ae1af748de573c83f1b9cdb4c0",
            creation_tx_hash="0xb779cc9956dae7860fe1029a1990e2ed708a00ba5e86a6cbf6da524f7593d1ac",
            creation_block_number=780020,
            creation_timestamp=1738849422,
        ),
        roles_admin=Deployment(
            address="0xe37d9a2791707bbb858012d219960d5fbd190794",
            creation_tx_hash="0xc08d6a98f20fab7b1d5593a7e30b456d38ad9fc1dfea796945a91581ab86f8ab",
            creation_block_number=780026,
            creation_timestamp=1738849434,
        ),
    ),
    10: ChainConfig(
        chain_id=10,
        name="Optimism",
        short_name="optimism",
        explorer_url="https://optimistic.etherscan.io",
        kernel=Deployment(
            address="0x18878df23e2a36f81e820e4b47b4a40576d3159c",
            creation_tx_hash="0x5a22cf89858ce51ee163fe3491129499cf692695d71d8f31a5a5b3c7bc52942c",
            creation_block_number=98531655,
            creation_timestamp=1684171967,
        ),
        roles=Deployment(
            address="0xbc9ee0d911739cbc72cd094ada26f56e0c49eeae",
            creation_tx_hash="0xe079fa214a3da0b608ced55979292dad2b9b8a26e698baf5dac833f6c6583c1b",
            creation_block_number=98531689,
            creation_timestamp=1684171982,
        ),
        roles_admin=Deployment(
            address="0xb1fa0ac44d399b778b14af0aaf4bcf8af3437ad1",
            creation_tx_hash="0x673a89088e38332f8954eb446ccf8b3c384c7d2a6ef599c2fd2469f71fac4fa8",
            creation_block_number=98531717,
            creation_timestamp=1684171982,
        ),
    ),
    11155111: ChainConfig(
        chain_id=11155111,
        name="Sepolia",
        short_name="sepolia",
        explorer_url="https://sepolia.etherscan.io",
        is_testnet=True,
        kernel=Deployment(
            address="0x4b0bba51ce44175a9766f7e55e3d122a9f4be78e",
            creation_tx_hash="0x18bbcccdbb5c459f853f79aaab76f53fd6491792b497ec44aede68b18c0da36b",
            creation_block_number=8226369,
            creation_timestamp=0,
        ),
        roles=Deployment(
            address="0xedd6ebffed7d29947957d096dd55e82f523ceb86",
            creation_tx_hash="0xe7b168d42c2985545e28d45f0188a22be58146ec89cad28cb02efeeefe000ce8",
            creation_block_number=8226371,
            creation_timestamp=0,
        ),
        roles_admin=Deployment(
            address="0xf33133e5356b9534e794468dacd424d11007f1cf",
            creation_tx_hash="0xa9c9f06211b1d471edcd4a0c3ccf621a2396ecc948b5577e854fa0d80cba3327",
            creation_block_number=8226374,
            creation_timestamp=0,
        ),
    ),
}


def get_chain_config(chain_id: int) -> ChainConfig:
    """Get chain configuration by id."""
    try:
        return CHAINS[chain_id]
    except KeyError:
        raise UnsupportedChainError(chain_id, "not in chain registry") from None


def get_all_chains() -> list[ChainConfig]:
    """Return all supported chains."""
    return list(CHAINS.values())
