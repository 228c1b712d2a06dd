import hashlib, logging
from dataclasses import dataclass
from typing import List, Tuple

from base58 import b58decode_check
from ecdsa import SECP256k1, SigningKey
from ecdsa.util import sigencode_der_canonize

from .errors import InsufficientFunds, InvalidOutpointIndex, KeyDecodeError
from .rpc import Rpc
from .script import SIGHASH_ALL, pushdata
from .wire import MAX_SEQUENCE, OutPoint, Tx, TxIn, TxOut, dblsha, u32le

log = logging.getLogger(__name__)

PLACEHOLDER_SCRIPT = b"\x00"


@dataclass
class SpendRequest:
    """Output ``index`` of ``tx``, authorized by the WIF-encoded key ``wif``."""
    tx: Tx
    index: int
    wif: str

    def prev_output(self) -> TxOut:
        return self.tx.vout[self.index]


@dataclass
class DecodedKey:
    secret: bytes
    version: int
    compressed: bool


def decode_wif(wif: str) -> DecodedKey:
    try:
        raw = b58decode_check(wif)
    except ValueError as e:
        raise KeyDecodeError(f"bad WIF checksum: {e}") from e
    if len(raw) == 34 and raw[-1] == 0x01:
        secret, compressed = raw[1:33], True
    elif len(raw) == 33:
        secret, compressed = raw[1:], False
    else:
        raise KeyDecodeError(f"bad WIF payload length {len(raw)}")
    if not 1 <= int.from_bytes(secret, "big") < SECP256k1.order:
        raise KeyDecodeError("WIF secret out of range")
    return DecodedKey(secret, raw[0], compressed)


def decode_key_pair(wif: str) -> Tuple[SigningKey, bytes]:
    # the network tag is decoded but deliberately not compared against the target chain
    key = decode_wif(wif)
    sk = SigningKey.from_string(key.secret, curve=SECP256k1)
    vk = sk.get_verifying_key()
    pubkey = vk.to_string("compressed" if key.compressed else "uncompressed")
    return sk, pubkey


def signature_hash(tx: Tx, n: int, script_code: bytes, hash_type: int = SIGHASH_ALL) -> bytes:
    """Legacy all-inputs/all-outputs signature hash for input ``n``."""
    tmp = tx.copy()
    for i, txin in enumerate(tmp.vin):
        txin.script_sig = script_code if i == n else b""
        txin.witness = []
    return dblsha(tmp.serialize(with_witness=False) + u32le(hash_type))


def calculate_script_sig(tx: Tx, n: int, script_code: bytes, sk: SigningKey, pubkey: bytes) -> bytes:
    digest = signature_hash(tx, n, script_code)
    sig = sk.sign_digest_deterministic(digest, hashfunc=hashlib.sha256, sigencode=sigencode_der_canonize)
    return pushdata(sig + bytes([SIGHASH_ALL])) + pushdata(pubkey)


def build_signed_transaction(spends: List[SpendRequest], outputs: List[TxOut]) -> Tx:
    tx = Tx()
    for n, spend in enumerate(spends):
        if not 0 <= spend.index < len(spend.tx.vout):
            raise InvalidOutpointIndex(spend.tx.txid_hex(), n, spend.index, len(spend.tx.vout))
        tx.vin.append(TxIn(OutPoint(spend.tx.txid(), spend.index), PLACEHOLDER_SCRIPT, MAX_SEQUENCE))
    tx.vout.extend(TxOut(out.value, out.script_pubkey) for out in outputs)

    # every input signs the same unsigned transaction
    script_sigs = []
    for n, spend in enumerate(spends):
        sk, pubkey = decode_key_pair(spend.wif)
        script_sigs.append(calculate_script_sig(tx, n, spend.prev_output().script_pubkey, sk, pubkey))
    for txin, script_sig in zip(tx.vin, script_sigs):
        txin.script_sig = script_sig
    return tx


def send_transaction(rpc: Rpc, spends: List[SpendRequest], outputs: List[TxOut]) -> Tx:
    """Sign a transaction spending ``spends`` into ``outputs`` and broadcast it through the node."""
    tx = build_signed_transaction(spends, outputs)
    tx_hex = tx.serialize().hex()
    log.info("[TX] Sending Raw Transaction: txid=%s hex=%s", tx.txid_hex(), tx_hex)
    rpc.sendrawtransaction(tx_hex)
    return tx


def change_outputs(spend: SpendRequest, amount: int, script_pubkey: bytes, fee: int = 0) -> List[TxOut]:
    """Change back to the funding script first, then the payment."""
    if not 0 <= spend.index < len(spend.tx.vout):
        raise InvalidOutpointIndex(spend.tx.txid_hex(), 0, spend.index, len(spend.tx.vout))
    funding = spend.prev_output()
    if amount + fee > funding.value:
        raise InsufficientFunds(spend.tx.txid_hex(), spend.index, funding.value, amount + fee)
    return [TxOut(funding.value - amount - fee, funding.script_pubkey), TxOut(amount, script_pubkey)]


def send_with_change(rpc: Rpc, spend: SpendRequest, amount: int, script_pubkey: bytes, fee: int = 0) -> Tx:
    return send_transaction(rpc, [spend], change_outputs(spend, amount, script_pubkey, fee))
