import logging
from typing import List, Optional

from .errors import RpcError
from .forge import DEFAULT_FORGE_CONFIG, ForgeConfig, generate_new_block
from .index import ChainIndex
from .malleate import malleate_batch
from .rpc import Rpc
from .sync import retrieve_mempool_txs
from .wire import Block, Tx

log = logging.getLogger(__name__)


def extend_chain(net: str, index: ChainIndex, prev_block: Block, subsidy_address: str, rpc: Rpc,
                 txs: Optional[List[Tx]] = None, block_time: Optional[int] = None,
                 config: ForgeConfig = DEFAULT_FORGE_CONFIG) -> Block:
    """Forge a block on ``prev_block``, add it to the local index and submit it to the node."""
    block = generate_new_block(net, index, prev_block, subsidy_address, txs, block_time, config)
    block_hex = block.serialize().hex()
    log.info("[BLOCK] height=%d hash=%s txs=%d", block.height, block.hash_hex(), len(block.txs))

    # local index first, so a rejected block never reaches the node
    index.process_block(block, relaxed=False)

    res = rpc.submitblock(block_hex)
    if res is not None:
        log.error("[BLOCK] submit rejected: height=%d response=%r", block.height, res)
        raise RpcError("submitblock", str(res))
    log.info("[BLOCK] Sent Block %d", block.height)
    return block


def extend_chain_empty(net: str, index: ChainIndex, prev_block: Block, subsidy_address: str, rpc: Rpc,
                       block_time: Optional[int] = None) -> Block:
    return extend_chain(net, index, prev_block, subsidy_address, rpc, None, block_time)


def extend_chain_with_mempool(net: str, index: ChainIndex, prev_block: Block, subsidy_address: str,
                              rpc: Rpc) -> Block:
    return extend_chain(net, index, prev_block, subsidy_address, rpc, retrieve_mempool_txs(rpc))


def extend_chain_with_malleated_mempool(net: str, index: ChainIndex, prev_block: Block, subsidy_address: str,
                                        rpc: Rpc) -> Block:
    """Like ``extend_chain_with_mempool`` but with every independent mempool tx malleated; dependents are left out."""
    return extend_chain(net, index, prev_block, subsidy_address, rpc, malleate_batch(retrieve_mempool_txs(rpc)))
