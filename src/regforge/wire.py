import copy, struct, hashlib
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .errors import DecodeError

ZERO_HASH = b"\x00" * 32
MAX_SEQUENCE = 0xffffffff
NULL_INDEX = 0xffffffff

# === Hash helpers ===
def sha256(b: bytes) -> bytes: return hashlib.sha256(b).digest()
def dblsha(b: bytes) -> bytes: return sha256(sha256(b))
def u32le(n: int) -> bytes:    return struct.pack("<L", n & 0xffffffff)
def i32le(n: int) -> bytes:    return struct.pack("<l", n)
def i64le(n: int) -> bytes:    return struct.pack("<q", n)

def varint(n: int) -> bytes:
    if n < 0xfd: return bytes([n])
    if n <= 0xffff: return b"\xfd" + struct.pack("<H", n)
    if n <= 0xffffffff: return b"\xfe" + struct.pack("<L", n)
    return b"\xff" + struct.pack("<Q", n)

def hash_to_hex(h32: bytes) -> str: return h32[::-1].hex()
def hex_to_hash(h: str) -> bytes:   return bytes.fromhex(h)[::-1]

# === Difficulty / target ===
def target_from_nbits(nbits: int) -> int:
    """Compact difficulty bits to a target integer; the sign bit yields a negative target."""
    exp = nbits >> 24; mant = nbits & 0x007fffff
    if exp <= 3: target = mant >> (8*(3-exp))
    else:        target = mant << (8*(exp-3))
    return -target if nbits & 0x00800000 else target

def hash_to_int(h32: bytes) -> int:
    return int.from_bytes(h32[::-1], "big")

# === Merkle ===
def merkle_root(tx_hashes: List[bytes]) -> bytes:
    if not tx_hashes: return ZERO_HASH
    layer = tx_hashes[:]
    while len(layer) > 1:
        if len(layer) % 2 == 1: layer.append(layer[-1])
        layer = [dblsha(layer[i] + layer[i+1]) for i in range(0, len(layer), 2)]
    return layer[0]


@dataclass
class OutPoint:
    txid: bytes = ZERO_HASH
    index: int = NULL_INDEX

    def serialize(self) -> bytes:
        return self.txid + u32le(self.index)

    def is_null(self) -> bool:
        return self.txid == ZERO_HASH and self.index == NULL_INDEX


@dataclass
class TxIn:
    prevout: OutPoint
    script_sig: bytes = b""
    sequence: int = MAX_SEQUENCE
    witness: List[bytes] = field(default_factory=list)

    def serialize(self) -> bytes:
        return self.prevout.serialize() + varint(len(self.script_sig)) + self.script_sig + u32le(self.sequence)


@dataclass
class TxOut:
    value: int
    script_pubkey: bytes

    def serialize(self) -> bytes:
        return i64le(self.value) + varint(len(self.script_pubkey)) + self.script_pubkey


@dataclass
class Tx:
    vin: List[TxIn] = field(default_factory=list)
    vout: List[TxOut] = field(default_factory=list)
    version: int = 1
    locktime: int = 0

    def has_witness(self) -> bool:
        return any(txin.witness for txin in self.vin)

    def serialize(self, with_witness: bool = True) -> bytes:
        segwit = with_witness and self.has_witness()
        out = i32le(self.version)
        if segwit: out += b"\x00\x01"
        out += varint(len(self.vin)) + b"".join(txin.serialize() for txin in self.vin)
        out += varint(len(self.vout)) + b"".join(txout.serialize() for txout in self.vout)
        if segwit:
            for txin in self.vin:
                out += varint(len(txin.witness))
                out += b"".join(varint(len(item)) + item for item in txin.witness)
        return out + u32le(self.locktime)

    def txid(self) -> bytes:
        # legacy (no-witness) serialization
        return dblsha(self.serialize(with_witness=False))

    def txid_hex(self) -> str:
        return hash_to_hex(self.txid())

    def is_coinbase(self) -> bool:
        return len(self.vin) == 1 and self.vin[0].prevout.is_null()

    def copy(self) -> "Tx":
        return copy.deepcopy(self)


@dataclass
class BlockHeader:
    prev_hash: bytes = ZERO_HASH
    merkle_root: bytes = ZERO_HASH
    timestamp: int = 0
    bits: int = 0
    nonce: int = 0
    version: int = 1

    def serialize(self) -> bytes:
        return (i32le(self.version) + self.prev_hash + self.merkle_root +
                u32le(self.timestamp) + u32le(self.bits) + u32le(self.nonce))

    def hash(self) -> bytes:
        return dblsha(self.serialize())

    def hash_hex(self) -> str:
        return hash_to_hex(self.hash())


@dataclass
class Block:
    header: BlockHeader
    txs: List[Tx] = field(default_factory=list)
    # not part of the consensus header; tracked by whoever places the block
    height: int = -1

    def serialize(self) -> bytes:
        return self.header.serialize() + varint(len(self.txs)) + b"".join(tx.serialize() for tx in self.txs)

    def hash(self) -> bytes:
        return self.header.hash()

    def hash_hex(self) -> str:
        return self.header.hash_hex()

    def calc_merkle_root(self) -> bytes:
        return merkle_root([tx.txid() for tx in self.txs])


# === Decoding ===
def read_varint(b: bytes, i: int) -> Tuple[int, int]:
    fb, i = read_bytes(b, i, 1); fb = fb[0]
    if fb < 0xfd: return fb, i
    raw, i = read_bytes(b, i, {0xfd: 2, 0xfe: 4, 0xff: 8}[fb])
    return int.from_bytes(raw, "little"), i

def read_bytes(b: bytes, i: int, n: int) -> Tuple[bytes, int]:
    if i + n > len(b):
        raise DecodeError(f"unexpected end of data: need {n} bytes at offset {i}, have {len(b) - i}")
    return b[i:i+n], i+n

def _read_tx(b: bytes, i: int) -> Tuple[Tx, int]:
    raw, i = read_bytes(b, i, 4); version = struct.unpack("<l", raw)[0]
    segwit = False
    if i + 1 < len(b) and b[i] == 0 and b[i+1] == 1:
        segwit = True; i += 2
    vin_cnt, i = read_varint(b, i)
    vin = []
    for _ in range(vin_cnt):
        txid, i = read_bytes(b, i, 32)
        raw, i = read_bytes(b, i, 4)
        slen, i = read_varint(b, i)
        ss, i = read_bytes(b, i, slen)
        seq, i = read_bytes(b, i, 4)
        vin.append(TxIn(OutPoint(txid, struct.unpack("<L", raw)[0]), ss, struct.unpack("<L", seq)[0]))
    vout_cnt, i = read_varint(b, i)
    vout = []
    for _ in range(vout_cnt):
        val, i = read_bytes(b, i, 8)
        slen, i = read_varint(b, i)
        spk, i = read_bytes(b, i, slen)
        vout.append(TxOut(struct.unpack("<q", val)[0], spk))
    if segwit:
        for txin in vin:
            wcnt, i = read_varint(b, i)
            for _ in range(wcnt):
                wlen, i = read_varint(b, i)
                item, i = read_bytes(b, i, wlen)
                txin.witness.append(item)
    lock, i = read_bytes(b, i, 4)
    return Tx(vin, vout, version, struct.unpack("<L", lock)[0]), i

def deserialize_tx(data: bytes) -> Tx:
    try:
        tx, end = _read_tx(data, 0)
    except (IndexError, struct.error) as e:
        raise DecodeError(f"malformed transaction: {e}") from e
    if end != len(data):
        raise DecodeError(f"trailing bytes after transaction: {len(data) - end}")
    return tx

def deserialize_block(data: bytes, height: Optional[int] = None) -> Block:
    try:
        raw, i = read_bytes(data, 0, 80)
        version, = struct.unpack("<l", raw[:4])
        timestamp, bits, nonce = struct.unpack("<LLL", raw[68:80])
        header = BlockHeader(raw[4:36], raw[36:68], timestamp, bits, nonce, version)
        n_tx, i = read_varint(data, i)
        txs = []
        for _ in range(n_tx):
            tx, i = _read_tx(data, i)
            txs.append(tx)
    except (IndexError, struct.error) as e:
        raise DecodeError(f"malformed block: {e}") from e
    if i != len(data):
        raise DecodeError(f"trailing bytes after block: {len(data) - i}")
    return Block(header, txs, -1 if height is None else height)
