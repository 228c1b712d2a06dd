import logging
from typing import List

from .errors import DecodeError
from .index import ChainIndex
from .params import chain_mining_params
from .rpc import Rpc
from .wire import Tx, deserialize_block, deserialize_tx

log = logging.getLogger(__name__)


def _unhex(s: str, what: str) -> bytes:
    try:
        return bytes.fromhex(s)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"{what}: bad hex: {e}") from e


def sync_chain(rpc: Rpc, net: str) -> ChainIndex:
    """Replay the node's whole main chain into a fresh in-memory index.

    Starts from the network genesis every time and walks heights 1..best in
    order, one round trip per height. The first failure aborts the sync;
    blocks processed before it stay in the index.
    """
    params = chain_mining_params(net)
    index = ChainIndex(params.name)
    index.insert_genesis(params.genesis_block())

    best = rpc.getblockcount()
    log.info("[SYNC] net=%s best=%d", params.name, best)
    for height in range(1, best + 1):
        block_hash = rpc.getblockhash(height)
        raw = _unhex(rpc.getblock_hex(block_hash), f"block {block_hash}")
        block = deserialize_block(raw, height=height)
        index.process_block(block, relaxed=False)
        log.debug("[SYNC] height=%d hash=%s", height, block_hash)
    log.info("[SYNC] done height=%d tip=%s", index.height, index.tip().hash_hex())
    return index


def retrieve_mempool_txs(rpc: Rpc) -> List[Tx]:
    txs = []
    for txid in rpc.getrawmempool():
        txs.append(deserialize_tx(_unhex(rpc.getrawtransaction(txid), f"tx {txid}")))
    return txs


def retrieve_coinbase_transaction(index: ChainIndex, height: int) -> Tx:
    """Coinbase of the main-chain block at ``height``; raises ``NoTxInfo`` when it is not indexed."""
    return index.coinbase_at_height(height)
