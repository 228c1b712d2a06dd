import copy
from dataclasses import dataclass, field
from typing import Dict

from .script import OP_CHECKSIG, pushdata
from .wire import Block, BlockHeader, OutPoint, Tx, TxIn, TxOut

COIN = 100_000_000

GENESIS_MESSAGE = b"The Times 03/Jan/2009 Chancellor on brink of second bailout for banks"
GENESIS_PUBKEY = bytes.fromhex(
    "04678afdb0fe5548271967f1a67130b7105cd6a828e03909a67962e0ea1f61deb6"
    "49f6bc3f4cef38c4f35504e51ec112de5c384df7ba0b8d578a4c702b6bf11d5f"
)


def _genesis(timestamp: int, bits: int, nonce: int) -> Block:
    coinbase = Tx(
        vin=[TxIn(OutPoint(), bytes.fromhex("04ffff001d0104") + pushdata(GENESIS_MESSAGE))],
        vout=[TxOut(50 * COIN, pushdata(GENESIS_PUBKEY) + bytes([OP_CHECKSIG]))],
    )
    header = BlockHeader(timestamp=timestamp, bits=bits, nonce=nonce, version=1)
    block = Block(header, [coinbase], height=0)
    header.merkle_root = block.calc_merkle_root()
    return block


@dataclass(frozen=True)
class MiningParams:
    name: str
    base_subsidy: int
    halving_interval: int
    pubkey_hash_version: int
    script_hash_version: int
    wif_version: int
    bech32_hrp: str
    genesis: Block = field(compare=False, repr=False)

    def block_subsidy(self, height: int) -> int:
        return self.base_subsidy >> (height // self.halving_interval)

    def genesis_block(self) -> Block:
        return copy.deepcopy(self.genesis)


MAINNET = MiningParams(
    name="mainnet",
    base_subsidy=50 * COIN,
    halving_interval=210_000,
    pubkey_hash_version=0x00,
    script_hash_version=0x05,
    wif_version=0x80,
    bech32_hrp="bc",
    genesis=_genesis(1231006505, 0x1d00ffff, 2083236893),
)

TESTNET3 = MiningParams(
    name="testnet3",
    base_subsidy=50 * COIN,
    halving_interval=210_000,
    pubkey_hash_version=0x6f,
    script_hash_version=0xc4,
    wif_version=0xef,
    bech32_hrp="tb",
    genesis=_genesis(1296688602, 0x1d00ffff, 414098458),
)

REGTEST = MiningParams(
    name="regtest",
    base_subsidy=50 * COIN,
    halving_interval=150,
    pubkey_hash_version=0x6f,
    script_hash_version=0xc4,
    wif_version=0xef,
    bech32_hrp="bcrt",
    genesis=_genesis(1296688602, 0x207fffff, 2),
)

NETWORKS: Dict[str, MiningParams] = {
    "mainnet": MAINNET,
    "main": MAINNET,
    "testnet3": TESTNET3,
    "testnet": TESTNET3,
    "test": TESTNET3,
    "regtest": REGTEST,
}


def chain_mining_params(net: str) -> MiningParams:
    """Parameters for a network identifier; unknown names fall back to mainnet."""
    return NETWORKS.get((net or "").lower(), MAINNET)
