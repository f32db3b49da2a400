"""Static directory of known contract addresses per chain.

Lookups are exact-match on the address, case-insensitive. Unknown addresses
resolve to :data:`UNKNOWN_NAME`.
"""

from __future__ import annotations

from dataclasses import dataclass

UNKNOWN_NAME = "UNKNOWN"


@dataclass(frozen=True)
class ContractDetails:
    name: str
    # e.g. "1.1"; kept as text to avoid precision loss
    version: str | None = None


# Keys are lower-case addresses.
CONTRACT_NAMES: dict[int, dict[str, ContractDetails]] = {
    1: {
        "0x0374c001204ef5e7e4f5362a5a2430cb6c219326": ContractDetails("Operator", "1.3"),
        "0x04906695d6d12cf5459975d7c3c03356e4ccd460": ContractDetails("Legacy sOHM"),
        "0x0941233c964e7d7efeb05d253176e5e634ceffcd": ContractDetails("Governor"),
        "0x0ab87046fbb341d058f17cbc4c1133f25a20a52f": ContractDetails("Legacy gOHM"),
        "0x0ae561226896da978eada0bec4a7d3cfae04f506": ContractDetails("Operator", "1.4"),
        "0x0cf30dc0d48604a301df8010cdc028c055336b2e": ContractDetails("Policy MS"),
        "0x1652b503e0f1cf38b6246ed3b91cb3786bb11656": ContractDetails("Heart", "1.1"),
        "0x1ce568dbb34b2631acdb5b453c3195ea0070ec65": ContractDetails("Operator", "1.1"),
        "0x1e094fe00e13fd06d64eea4fb3cd912893606fe0": ContractDetails("Clearinghouse", "1.2"),
        "0x2286d7f9639e8158fad1169e76d1fbc38247f54b": ContractDetails("Kernel"),
        "0x245cc372c84b3645bf0ffe6538620b04a217988b": ContractDetails("DAO MS"),
        "0x271e35a8555a62f6ba76508e85dfd76d580b0692": ContractDetails("YieldRepurchaseFacility", "1.2"),
        "0x27e606fdb5c922f8213dc588a434bf7583697866": ContractDetails("Distributor"),
        "0x30a967eb957e5b1ee053b75f1a57ea6bfb2e907e": ContractDetails("YieldRepurchaseFacility", "1.0"),
        "0x30ce56e80aa96ebba1e1a74bc5c0feb5b0db4216": ContractDetails("CoolerFactory"),
        "0x367149cf2d04d3114ffd1cc6b273222664908d0b": ContractDetails("LegacyBurner"),
        "0x375e06c694b5e50af8be8fb03495a612ea3e2275": ContractDetails("BLREG", "1.0"),
        "0x399cd3685912bb56aaed0949119db6ce5df60fb5": ContractDetails("RANGE", "2.0"),
        "0x39f6aa3d445e6dd8ec232c6bd589889a88e3034d": ContractDetails("Heart", "1.5"),
        "0x44a7a09ccddb4338e062f1a3849f9a82bdbf2aaa": ContractDetails("ZeroDistributor"),
        "0x45e563c39cddba8699a90078f42353a57509543a": ContractDetails("CrossChainBridge"),
        "0x50f441a3387625bda8b8081ce3fd6c04cc48c0a2": ContractDetails("EmissionManager"),
        "0x6417f206a0a6628da136c0faa39026d0134d2b52": ContractDetails("Operator", "1.5"),
        "0x64aa3364f17a4d01c6f1751fd97c2bd3d7e7f1d5": ContractDetails("LegacyOHM"),
        "0x24b96f2150bf1ed10d3e8b28ed33e392fbb4cad5": ContractDetails("CHREG", "1.0"),
        "0x69a3e97027d21a5984b6a543b36603ffbc6543a4": ContractDetails("CHREG", "1.1"),
        "0x6cafd730dc199df73c16420c4fcab18e3afbfa59": ContractDetails("ROLES", "1.0"),
        "0x73df08ce9dcc8d74d22f23282c4d49f13b4c795e": ContractDetails("BondCallback", "1.1"),
        "0x784ca0c006b8651bab183829a99fa46bece50dbc": ContractDetails("LoanConsolidator"),
        "0x7fdd4e808ee9608f1b2f05157a2a8098e3d432cd": ContractDetails("BLVaultLido"),
        "0x89631595649cc6deba249a8012a5b2d88c8dde48": ContractDetails("RGSTY", "1.0"),
        "0x9229b0b6fa4a58d67eb465567daa2c6a34714a75": ContractDetails("Emergency"),
        "0x953ea3223d2dd3c1a91e9d6cca1bf7af162c9c39": ContractDetails("Governance Timelock"),
        "0x986b99579bec7b990331474b66ccdb94fa2419f5": ContractDetails("ReserveMigrator"),
        "0x9c6220fe829d6fc889cde9b4966d2033c4effd48": ContractDetails("Heart", "1.2"),
        "0xa8687a15d4be32cc8f0a8a7b9704a4c3993d9613": ContractDetails("TRSRY", "1.0"),
        "0xa8a6ff2606b24f61afa986381d8991dfcccd2d55": ContractDetails("Emergency MS"),
        "0xa90bfe53217da78d900749eb6ef513ee5b6a491e": ContractDetails("MINTR", "1.0"),
        "0xafe729d57d2cc58978c2e01b4ec39c47fb7c4b23": ContractDetails("BLVaultManagerLido"),
        "0xb212d9584cfc56eff1117f412fe0bbdc53673954": ContractDetails("RANGE", "1.0"),
        "0xb216d714d91eec4f7120a732c11428857c659ec8": ContractDetails("RolesAdmin"),
        "0xb37796941ca55b7e4243841930c104ee325da5a1": ContractDetails("pOLY"),
        "0xb63cac384247597756545b500253ff8e607a8020": ContractDetails("LegacyStaking"),
        "0xba05d48fb94dc76820eb7ea1b360fd6dfdeabdc5": ContractDetails("ContractRegistryAdmin"),
        "0xbb47c3fff4ef85703907d3ffca30de278b85df3f": ContractDetails("Operator", "1.0"),
        "0xbf2b6e99b0e8d4c96b946c182132f5752eaa55c6": ContractDetails("BondCallback", "1.0"),
        "0xc9518ac915e46d707585116451dc19c164513ccf": ContractDetails("TreasuryCustodian"),
        "0xcaa3d3e653a626e2656d2e799564fe952d39d855": ContractDetails("YieldRepurchaseFacility", "1.1"),
        "0xd5a0ae3bf7309416e70cb14399bdd508fe82c658": ContractDetails("Heart", "1.4"),
        "0xd6a6e8d9e82534bd65821142fccd91ec9cf31880": ContractDetails("Clearinghouse", "1.0"),
        "0xd6c4d723fdadcf0d171ef9a2a3bfa870675b282f": ContractDetails("PRICE", "1.0"),
        "0xda9fedbcaf319ecf8ab11fe874fb1abfc2181766": ContractDetails("pOLY MS"),
        "0xde3f82d378c3b4e3f3f848b8df501914b3317e96": ContractDetails("GovernorDelegate", "2.0"),
        "0xe05646971ec444f8449d1ca6fc8d9793986017d5": ContractDetails("Heart", "1.3"),
        "0xe6343ad0675c9b8d3f32679ae6adba0766a2ab4c": ContractDetails("Clearinghouse", "1.1"),
        "0xeaf46bd21dd9b263f28eed7260a269ffba9ace6e": ContractDetails("Heart", "1.0"),
        "0xf451c45c7a26e2248a0ea02382579eb4858cada1": ContractDetails("BLVaultManager LUSD"),
        "0xf577c77ee3578c7f216327f41b5d7221ead2b2a3": ContractDetails("BondManager"),
        "0xf6d5d06a4e8e6904e4360108749c177692f59e90": ContractDetails("PriceConfig"),
        "0xf7602c0421c283a2fc113172ebdf64c30f21654d": ContractDetails("Heart", "1.6"),
        "0xfbb3742628e8d19e0e2d7d8dde208821c09de960": ContractDetails("BLVault LUSD"),
        "0x473f86ebfa7ab57c4c82c3592d6147104996c19b": ContractDetails("BondCallback"),
        "0x5f15b91b59ad65d490921016d4134c2301197485": ContractDetails("Operator"),
        "0xdb591ea2e5db886da872654d58f6cc584b68e7cc": ContractDetails("CoolerV2"),
        "0x9ee9f0c2e91e4f6b195b988a9e6e19efcf91e8dc": ContractDetails("CoolerV2LtvOracle"),
        "0xd58d7406e9ce34c90cf849fc3eed3764eb3779b0": ContractDetails("CoolerV2TreasuryBorrower"),
        "0x6593768febf9c95ac857fb7ef244d5738d1c57fd": ContractDetails("CoolerV2Composites"),
        "0xe045bd0a0d85e980aa152064c06eae6b6ae358d2": ContractDetails("CoolerV2Migrator"),
        "0xc84157c2306238c9330fea14774a82a53a127a59": ContractDetails("DelegateEscrowFactory"),
        "0xd3204ae00d6599ba6e182c6d640a79d76cdaad74": ContractDetails("DLGTE", "1.0"),
        "0xfbf6383dc3f6010d403ecdf12ddc1311701d143d": ContractDetails("CCIPCrossChainBridge"),
        "0xa5588e518ce5ee0e4628c005e4edabd5e87de3ad": ContractDetails("CCIPLockReleaseTokenPool"),
        "0x1a5309f208f161a393e8b5a253de8ab894a67188": ContractDetails("Deployer"),
    },
    42161: {
        "0xeac3ec0cc130f4826715187805d1b50e861f2dac": ContractDetails("Kernel"),
        "0xff5f09d5efe13a9a424f30ec2e1af89d867834d6": ContractDetails("ROLES", "1.0"),
        "0x69168c08acf66f002fd02e1b169f38c022c93b70": ContractDetails("RolesAdmin"),
        "0x56db53e9801a6ea080569261b63925e0f1f3c81a": ContractDetails("TRSRY", "1.0"),
        "0x8f6406edbfa393e327822d4a08bcf15503570d87": ContractDetails("MINTR", "1.0"),
        "0x868c3ae18fdea85bbb7a303e379c5b7e23b30f03": ContractDetails("LENDR", "1.0"),
        "0x012bbf0481b97170577745d2167ee14f63e2ad4c": ContractDetails("DAO MS"),
        "0x20b3834091f038ce04d8686fac99ca44a0fb285c": ContractDetails("CrossChainBridge"),
        "0xa8578c9a73c2b4f75968ec76d6689045ff68b97c": ContractDetails("SiloAMO"),
        "0x1a5309f208f161a393e8b5a253de8ab894a67188": ContractDetails("Deployer"),
    },
    8453: {
        "0x18878df23e2a36f81e820e4b47b4a40576d3159c": ContractDetails("Kernel"),
        "0xbc9ee0d911739cbc72cd094ada26f56e0c49eeae": ContractDetails("ROLES", "1.0"),
        "0xb1fa0ac44d399b778b14af0aaf4bcf8af3437ad1": ContractDetails("RolesAdmin"),
        "0x623164a9ee2556d524b08f34f1d2389d7b4e1a1c": ContractDetails("MINTR", "1.0"),
        "0x18a390bd45bcc92652b9a91ad51aed7f1c1358f5": ContractDetails("DAO MS"),
        "0x22ae99d07584a2ae1af748de573c83f1b9cdb4c0": ContractDetails("CrossChainBridge", "1.0"),
        "0x6ca1a916e883c7ce2bfbcf59dc70f2c1ef9dac6e": ContractDetails("CrossChainBridge", "1.1"),
        "0x1a5309f208f161a393e8b5a253de8ab894a67188": ContractDetails("Deployer"),
    },
    80094: {
        "0x623164a9ee2556d524b08f34f1d2389d7b4e1a1c": ContractDetails("Kernel"),
        "0x22ae99d07584a2ae1af748de573c83f1b9cdb4c0": ContractDetails("ROLES", "1.0"),
        "0xe37d9a2791707bbb858012d219960d5fbd190794": ContractDetails("RolesAdmin"),
        "0xbc9ee0d911739cbc72cd094ada26f56e0c49eeae": ContractDetails("MINTR", "1.0"),
        "0xb1fa0ac44d399b778b14af0aaf4bcf8af3437ad1": ContractDetails("TRSRY", "1.0"),
        "0x91494d1bc2286343d51c55e46ae80c9356d099b5": ContractDetails("DAO MS"),
        "0xa5ea62894027d981d34bb99a04bd36b818b2aaf0": ContractDetails("Emergency MS"),
        "0xba42be149e5260eba4b82418a6306f55d532ea47": ContractDetails("CrossChainBridge", "1.0"),
        "0xca7240a7b439c9d458b47831d38c3d69c1287469": ContractDetails("Emergency"),
        "0x0d33c811d0fcc711bcb388dfb3a152de445be66f": ContractDetails("TreasuryCustodian"),
        "0x1a5309f208f161a393e8b5a253de8ab894a67188": ContractDetails("Deployer"),
    },
    10: {
        "0x18878df23e2a36f81e820e4b47b4a40576d3159c": ContractDetails("Kernel"),
        "0xbc9ee0d911739cbc72cd094ada26f56e0c49eeae": ContractDetails("ROLES", "1.0"),
        "0xb1fa0ac44d399b778b14af0aaf4bcf8af3437ad1": ContractDetails("RolesAdmin"),
        "0x623164a9ee2556d524b08f34f1d2389d7b4e1a1c": ContractDetails("MINTR", "1.0"),
        "0x559a14a2219ae81f9a9f857cf31407de2b07f36c": ContractDetails("DAO MS"),
        "0x22ae99d07584a2ae1af748de573c83f1b9cdb4c0": ContractDetails("CrossChainBridge"),
        "0x1a5309f208f161a393e8b5a253de8ab894a67188": ContractDetails("Deployer"),
    },
}


def _lookup(address: str, chain_id: int) -> ContractDetails | None:
    return CONTRACT_NAMES.get(chain_id, {}).get(address.lower())


def get_contract_name(address: str, chain_id: int) -> str:
    """Return the human name of a contract, or ``UNKNOWN``."""
    details = _lookup(address, chain_id)
    return details.name if details else UNKNOWN_NAME


def get_contract_version(address: str, chain_id: int) -> str | None:
    details = _lookup(address, chain_id)
    return details.version if details else None
