import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .errors import InvalidOutpointIndex
from .index import ChainIndex
from .wire import Tx, hash_to_hex

log = logging.getLogger(__name__)


@dataclass
class BlockTx:
    tx: Tx
    input_amounts: List[int]

    @property
    def input_value(self) -> int:
        return sum(self.input_amounts)

    @property
    def output_value(self) -> int:
        return sum(out.value for out in self.tx.vout)

    @property
    def fee(self) -> int:
        # may go negative for a malformed transaction; callers decide
        return self.input_value - self.output_value


@dataclass
class RejectedTx:
    tx: Tx
    input_index: int
    reason: str


@dataclass
class FeeBatchResult:
    accepted: List[BlockTx] = field(default_factory=list)
    rejected: List[RejectedTx] = field(default_factory=list)

    @property
    def total_fee(self) -> int:
        return sum(btx.fee for btx in self.accepted)

    @property
    def txs(self) -> List[Tx]:
        return [btx.tx for btx in self.accepted]


def _resolve_pass(index: ChainIndex, txs: List[Tx], batch: Dict[bytes, Tx]) -> FeeBatchResult:
    result = FeeBatchResult()
    for tx in txs:
        store = index.transaction_store(tx)
        amounts = [0] * len(tx.vin)
        rejected = None
        for n, txin in enumerate(tx.vin):
            prev = txin.prevout
            data = store.get(prev.txid)
            if data is None or data.error is not None or data.tx is None:
                src = batch.get(prev.txid)
            else:
                src = data.tx

            if src is None:
                rejected = RejectedTx(tx, n, f"input {hash_to_hex(prev.txid)}:{prev.index} not available")
                break

            if not 0 <= prev.index < len(src.vout):
                raise InvalidOutpointIndex(tx.txid_hex(), n, prev.index, len(src.vout))
            amounts[n] += src.vout[prev.index].value

        if rejected is not None:
            result.rejected.append(rejected)
            continue
        result.accepted.append(BlockTx(tx, amounts))
    return result


def resolve_fees(index: ChainIndex, txs: Optional[List[Tx]]) -> FeeBatchResult:
    """Resolve input values for a candidate batch.

    Each input is looked up in the chain index first and then among the batch
    itself, so a transaction may spend an output created by another member of
    the batch. A transaction with any unresolvable input is moved to
    ``rejected``; an out-of-range output index raises ``InvalidOutpointIndex``.
    Rejected members stop being a source for the rest of the batch, so
    descendants of a dropped transaction are dropped with it.
    """
    if not txs:
        return FeeBatchResult()

    batch = {tx.txid(): tx for tx in txs}
    while True:
        result = _resolve_pass(index, txs, batch)
        dropped = [r.tx.txid() for r in result.rejected if r.tx.txid() in batch]
        if not dropped:
            break
        for txid in dropped:
            batch.pop(txid, None)

    for r in result.rejected:
        log.info("Skipping transaction because no input available: tx=%s %s", r.tx.txid_hex(), r.reason)
    return result
