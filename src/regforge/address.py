from base58 import b58decode_check
from bech32 import bech32_decode, convertbits

from .errors import DecodeError
from .params import MiningParams
from .script import p2pkh_script, p2sh_script, witness_v0_script


def address_to_script(address: str, params: MiningParams) -> bytes:
    """Locking script for a base58 (P2PKH/P2SH) or bech32 v0 address on the given network."""
    hrp_prefix = params.bech32_hrp + "1"
    if address.lower().startswith(hrp_prefix):
        hrp, data = bech32_decode(address)
        if hrp != params.bech32_hrp or not data:
            raise DecodeError(f"bad bech32 address {address!r}")
        witver = data[0]; prog = bytes(convertbits(data[1:], 5, 8, False) or [])
        if witver != 0 or len(prog) not in (20, 32):
            raise DecodeError(f"unsupported witness address {address!r}")
        return witness_v0_script(prog)
    try:
        raw = b58decode_check(address)
    except ValueError as e:
        raise DecodeError(f"bad base58 address {address!r}: {e}") from e
    if len(raw) != 21:
        raise DecodeError(f"bad address payload length {len(raw)} for {address!r}")
    ver = raw[0]; h160 = raw[1:]
    if ver == params.pubkey_hash_version: return p2pkh_script(h160)
    if ver == params.script_hash_version: return p2sh_script(h160)
    raise DecodeError(f"address version {ver:#04x} does not belong to {params.name}")
