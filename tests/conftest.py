"""Shared fixtures: a regtest index seeded with genesis and an in-process fake node."""

import base58
import pytest

from regforge.errors import RpcError
from regforge.forge import ForgeConfig, generate_new_block
from regforge.index import ChainIndex
from regforge.params import REGTEST
from regforge.script import p2pkh_script
from regforge.wire import OutPoint, Tx, TxIn, TxOut

SECRET = bytes.fromhex("11" * 32)
WIF = base58.b58encode_check(b"\xef" + SECRET + b"\x01").decode()
WIF_UNCOMPRESSED = base58.b58encode_check(b"\xef" + SECRET).decode()
H160 = bytes(range(20))
ADDRESS = base58.b58encode_check(b"\x6f" + H160).decode()
SCRIPT = p2pkh_script(H160)

# any hash under the regtest target is accepted
FAST = ForgeConfig(max_hash=(1 << 256) - 1)


def spend(prev: Tx, index: int, *values: int) -> Tx:
    return Tx(vin=[TxIn(OutPoint(prev.txid(), index), b"\x51")], vout=[TxOut(v, SCRIPT) for v in values])


def funding_tx(*values: int) -> Tx:
    """A transaction that is in neither the index nor any batch unless the test puts it there."""
    return Tx(vin=[TxIn(OutPoint(b"\x42" * 32, 0), b"\x51")], vout=[TxOut(v, SCRIPT) for v in values])


def mine_chain(n: int):
    idx = ChainIndex("regtest")
    idx.insert_genesis(REGTEST.genesis_block())
    prev = idx.tip()
    blocks = []
    for i in range(n):
        block = generate_new_block("regtest", idx, prev, ADDRESS, block_time=prev.header.timestamp + 1, config=FAST)
        idx.process_block(block)
        blocks.append(block)
        prev = block
    idx.close()
    return blocks


class FakeRpc:
    """Stands in for ``regforge.rpc.Rpc``; serves a fixed chain and mempool and records submissions."""

    def __init__(self, blocks=None, mempool=None, fail_at_height=None, submit_response=None):
        self.blocks = list(blocks or [])
        self.mempool = list(mempool or [])
        self.fail_at_height = fail_at_height
        self.submit_response = submit_response
        self.hash_requests = []
        self.submitted = []
        self.sent = []

    def getblockcount(self):
        return len(self.blocks)

    def getblockhash(self, height):
        self.hash_requests.append(height)
        if height == self.fail_at_height:
            raise RpcError("getblockhash", "Block height out of range", -8)
        return self.blocks[height - 1].hash_hex()

    def getblock_hex(self, block_hash):
        for block in self.blocks:
            if block.hash_hex() == block_hash:
                return block.serialize().hex()
        raise RpcError("getblock", "Block not found", -5)

    def getrawmempool(self):
        return [tx.txid_hex() for tx in self.mempool]

    def getrawtransaction(self, txid):
        for tx in self.mempool:
            if tx.txid_hex() == txid:
                return tx.serialize().hex()
        raise RpcError("getrawtransaction", "No such mempool transaction", -5)

    def submitblock(self, block_hex):
        self.submitted.append(block_hex)
        return self.submit_response

    def sendrawtransaction(self, tx_hex):
        self.sent.append(tx_hex)
        return "00" * 32


@pytest.fixture
def index():
    idx = ChainIndex("regtest")
    idx.insert_genesis(REGTEST.genesis_block())
    yield idx
    idx.close()


@pytest.fixture
def genesis_coinbase(index):
    return index.tip().txs[0]
