import logging, sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Optional

from .errors import NoTxInfo, ValidationError
from .wire import Block, Tx, deserialize_block, deserialize_tx, hash_to_hex, hash_to_int, target_from_nbits

log = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS blocks (
  height INTEGER PRIMARY KEY,
  bhash TEXT NOT NULL,
  prevhash TEXT NOT NULL,
  raw BLOB NOT NULL
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_blocks_hash ON blocks(bhash);

CREATE TABLE IF NOT EXISTS txs (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  txid TEXT NOT NULL,
  height INTEGER NOT NULL,
  pos INTEGER NOT NULL,
  raw BLOB NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_txs_txid ON txs(txid);
"""


@dataclass
class TxData:
    tx: Optional[Tx]
    height: int = -1
    error: Optional[Exception] = None


class ChainIndex:
    """Main-chain-only block and transaction index held in an in-memory sqlite database.

    Blocks are only accepted when they extend the current tip. There is no
    locking; a single writer is assumed.
    """

    def __init__(self, net: str, path: str = ":memory:"):
        self.net = net
        self.con = sqlite3.connect(path)
        self.con.executescript(SCHEMA)

    @contextmanager
    def db(self):
        try:
            yield self.con
            self.con.commit()
        except Exception:
            self.con.rollback()
            raise

    def close(self):
        self.con.close()

    @property
    def height(self) -> int:
        row = self.con.execute("SELECT MAX(height) FROM blocks").fetchone()
        return -1 if row[0] is None else row[0]

    def _store(self, block: Block):
        bhash = block.hash_hex()
        with self.db() as con:
            con.execute("INSERT INTO blocks(height, bhash, prevhash, raw) VALUES(?,?,?,?)",
                        (block.height, bhash, hash_to_hex(block.header.prev_hash), block.serialize()))
            con.executemany("INSERT INTO txs(txid, height, pos, raw) VALUES(?,?,?,?)",
                            [(tx.txid_hex(), block.height, pos, tx.serialize()) for pos, tx in enumerate(block.txs)])

    def insert_genesis(self, block: Block):
        if self.height >= 0:
            raise ValidationError("index already has a genesis block")
        block.height = 0
        self._store(block)

    def process_block(self, block: Block, relaxed: bool = False):
        """Append a block on top of the tip; ``relaxed`` skips the coinbase, merkle and proof-of-work checks."""
        tip = self.tip()
        if tip is None:
            raise ValidationError("index has no genesis block")
        bhash = block.hash_hex()
        if self.block_by_hash(bhash) is not None:
            raise ValidationError(f"already have block {bhash}")
        if block.header.prev_hash != tip.hash():
            raise ValidationError(
                f"block {bhash} does not extend tip {tip.hash_hex()} "
                f"(prev {hash_to_hex(block.header.prev_hash)})"
            )
        if block.height < 0:
            block.height = tip.height + 1
        elif block.height != tip.height + 1:
            raise ValidationError(f"block {bhash} claims height {block.height}, expected {tip.height + 1}")
        if not relaxed:
            self.check_block(block)
        self._store(block)
        log.debug("[INDEX] height=%d hash=%s txs=%d", block.height, bhash, len(block.txs))

    def check_block(self, block: Block):
        bhash = block.hash_hex()
        if not block.txs or not block.txs[0].is_coinbase():
            raise ValidationError(f"block {bhash}: first transaction is not a coinbase")
        if any(tx.is_coinbase() for tx in block.txs[1:]):
            raise ValidationError(f"block {bhash}: more than one coinbase")
        if block.calc_merkle_root() != block.header.merkle_root:
            raise ValidationError(f"block {bhash}: merkle root mismatch")
        target = target_from_nbits(block.header.bits)
        if target <= 0:
            raise ValidationError(f"block {bhash}: bits {block.header.bits:08x} give non-positive target")
        if hash_to_int(block.hash()) > target:
            raise ValidationError(f"block {bhash}: hash above target")

    def _block_from_row(self, row) -> Optional[Block]:
        if row is None: return None
        return deserialize_block(row[1], height=row[0])

    def tip(self) -> Optional[Block]:
        return self._block_from_row(self.con.execute(
            "SELECT height, raw FROM blocks ORDER BY height DESC LIMIT 1").fetchone())

    def block_at_height(self, height: int) -> Optional[Block]:
        return self._block_from_row(self.con.execute(
            "SELECT height, raw FROM blocks WHERE height=?", (height,)).fetchone())

    def block_by_hash(self, bhash: str) -> Optional[Block]:
        return self._block_from_row(self.con.execute(
            "SELECT height, raw FROM blocks WHERE bhash=?", (bhash,)).fetchone())

    def transaction(self, txid: str) -> Optional[TxData]:
        # duplicate txids (pre-BIP30 coinbases) resolve to the most recent one
        row = self.con.execute(
            "SELECT height, raw FROM txs WHERE txid=? ORDER BY height DESC LIMIT 1", (txid,)).fetchone()
        if row is None: return None
        return TxData(deserialize_tx(row[1]), row[0])

    def transaction_store(self, tx: Tx) -> Dict[bytes, TxData]:
        """Transactions referenced by the inputs of ``tx``, keyed by internal-order txid."""
        store: Dict[bytes, TxData] = {}
        for txin in tx.vin:
            if txin.prevout.is_null() or txin.prevout.txid in store:
                continue
            txid = hash_to_hex(txin.prevout.txid)
            data = self.transaction(txid)
            store[txin.prevout.txid] = data if data is not None else TxData(
                None, error=LookupError(f"transaction {txid} not in index"))
        return store

    def coinbase_at_height(self, height: int) -> Tx:
        block = self.block_at_height(height)
        if block is None or not block.txs:
            raise NoTxInfo(height)
        data = self.transaction(block.txs[0].txid_hex())
        if data is None:
            raise NoTxInfo(height)
        return data.tx
