import logging, time
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .address import address_to_script
from .errors import ValidHashNotFound
from .fees import FeeBatchResult, resolve_fees
from .index import ChainIndex
from .params import chain_mining_params
from .script import push_int, pushdata
from .wire import (Block, BlockHeader, MAX_SEQUENCE, OutPoint, Tx, TxIn, TxOut, ZERO_HASH,
                   dblsha, hash_to_int, target_from_nbits, u32le)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForgeConfig:
    block_version: int = 4
    coinbase_flags: bytes = b"/P2SH/"
    extra_nonce: int = 0
    max_nonce: int = 0x7fffffff
    # bitcoind's miner never returns a hash above this, whatever the target
    max_hash: int = (1 << 240) - 1


DEFAULT_FORGE_CONFIG = ForgeConfig()


def coinbase_script(height: int, extra_nonce: int, flags: bytes) -> bytes:
    # BIP34: height must lead the coinbase script
    return push_int(height) + push_int(extra_nonce) + pushdata(flags)


def generate_coinbase_tx(script_sig: bytes, script_pubkey: bytes) -> Tx:
    """Single-input coinbase paying ``script_pubkey``; the value is 0 until the block contents are final."""
    return Tx(
        vin=[TxIn(OutPoint(), script_sig, MAX_SEQUENCE)],
        vout=[TxOut(0, script_pubkey)],
    )


def assemble_block(net: str,
                   index: ChainIndex,
                   prev_block: Block,
                   subsidy_address: str,
                   txs: Optional[List[Tx]] = None,
                   block_time: Optional[int] = None,
                   config: ForgeConfig = DEFAULT_FORGE_CONFIG) -> Tuple[Block, FeeBatchResult]:
    """Build an unsolved block on top of ``prev_block`` together with its fee partition."""
    if prev_block.height < 0:
        raise ValueError("parent block has no height")
    params = chain_mining_params(net)

    # no retargeting: bits carry over from the parent
    header = BlockHeader(
        prev_hash=prev_block.hash(),
        merkle_root=ZERO_HASH,
        timestamp=int(time.time()) if block_time is None else int(block_time),
        bits=prev_block.header.bits,
        nonce=0,
        version=config.block_version,
    )
    height = prev_block.height + 1

    coinbase = generate_coinbase_tx(
        coinbase_script(height, config.extra_nonce, config.coinbase_flags),
        address_to_script(subsidy_address, params),
    )

    fees = resolve_fees(index, txs)
    block = Block(header, [coinbase] + fees.txs, height)

    coinbase.vout[0].value = fees.total_fee + params.block_subsidy(height)
    header.merkle_root = block.calc_merkle_root()
    return block, fees


def generate_new_block(net: str,
                       index: ChainIndex,
                       prev_block: Block,
                       subsidy_address: str,
                       txs: Optional[List[Tx]] = None,
                       block_time: Optional[int] = None,
                       config: ForgeConfig = DEFAULT_FORGE_CONFIG) -> Block:
    """Create a solved block whose parent is ``prev_block`` and which carries every resolvable tx in ``txs``.

    The subsidy plus collected fees go to ``subsidy_address``.
    """
    block, fees = assemble_block(net, index, prev_block, subsidy_address, txs, block_time, config)
    if fees.rejected:
        log.info("[BLOCK] height=%d dropped %d of %d transactions", block.height, len(fees.rejected),
                 len(txs or []))
    return solve_block(block, config)


def solve_block(block: Block, config: ForgeConfig = DEFAULT_FORGE_CONFIG) -> Block:
    """Iterate the header nonce until the hash meets both the target and ``config.max_hash``.

    Only the nonce moves; exhausting it raises ``ValidHashNotFound`` and the
    caller has to vary the timestamp or extra nonce and try again.
    """
    header = block.header
    target = target_from_nbits(header.bits)
    prefix = header.serialize()[:76]
    for nonce in range(header.nonce, config.max_nonce):
        hv = hash_to_int(dblsha(prefix + u32le(nonce)))
        if hv <= target and hv <= config.max_hash:
            header.nonce = nonce
            return block
    raise ValidHashNotFound(header.bits, config.max_nonce)
