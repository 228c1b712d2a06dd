import logging
from typing import List, Tuple

from .script import OP_0
from .wire import Tx

log = logging.getLogger(__name__)


def malleate_tx_add_op0(tx: Tx) -> Tx:
    """Copy of ``tx`` with OP_0 prepended to the first input's script: a new txid, same spends and outputs."""
    if not tx.vin:
        raise ValueError(f"transaction {tx.txid_hex()} has no inputs to malleate")
    mal = tx.copy()
    mal.vin[0].script_sig = bytes([OP_0]) + tx.vin[0].script_sig
    return mal


def split_independent(txs: List[Tx]) -> Tuple[List[Tx], List[Tx]]:
    """Partition a batch into transactions with no in-batch parent and those spending another member."""
    batch = {tx.txid() for tx in txs}
    independent, dependent = [], []
    for tx in txs:
        if any(txin.prevout.txid in batch for txin in tx.vin):
            dependent.append(tx)
        else:
            independent.append(tx)
    return independent, dependent


def malleate_batch(txs: List[Tx]) -> List[Tx]:
    independent, dependent = split_independent(txs)
    for tx in dependent:
        log.info("Transaction depends on another being malleated, skipping: tx=%s", tx.txid_hex())
    out = []
    for tx in independent:
        mal = malleate_tx_add_op0(tx)
        log.info("[TX] malleated %s -> %s", tx.txid_hex(), mal.txid_hex())
        out.append(mal)
    return out
