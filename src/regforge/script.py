import struct

OP_0 = 0x00
OP_PUSHDATA1 = 0x4c
OP_PUSHDATA2 = 0x4d
OP_PUSHDATA4 = 0x4e
OP_1NEGATE = 0x4f
OP_1 = 0x51
OP_DUP = 0x76
OP_EQUAL = 0x87
OP_EQUALVERIFY = 0x88
OP_HASH160 = 0xa9
OP_CHECKSIG = 0xac

SIGHASH_ALL = 1


def pushdata(b: bytes) -> bytes:
    l = len(b)
    if l < OP_PUSHDATA1: return bytes([l]) + b
    if l <= 0xff:        return bytes([OP_PUSHDATA1, l]) + b
    if l <= 0xffff:      return bytes([OP_PUSHDATA2]) + struct.pack("<H", l) + b
    return bytes([OP_PUSHDATA4]) + struct.pack("<L", l) + b


def scriptnum(n: int) -> bytes:
    """Minimal little-endian sign-magnitude encoding used by script numbers."""
    if n == 0: return b""
    neg = n < 0; n = abs(n); enc = bytearray()
    while n:
        enc.append(n & 0xff); n >>= 8
    if enc[-1] & 0x80:
        enc.append(0x80 if neg else 0x00)
    elif neg:
        enc[-1] |= 0x80
    return bytes(enc)


def push_int(n: int) -> bytes:
    # small integers use the dedicated opcodes, the way script builders emit them
    if n == 0: return bytes([OP_0])
    if n == -1: return bytes([OP_1NEGATE])
    if 1 <= n <= 16: return bytes([OP_1 + n - 1])
    return pushdata(scriptnum(n))


def p2pkh_script(h160: bytes) -> bytes:
    return bytes([OP_DUP, OP_HASH160]) + pushdata(h160) + bytes([OP_EQUALVERIFY, OP_CHECKSIG])

def p2sh_script(h160: bytes) -> bytes:
    return bytes([OP_HASH160]) + pushdata(h160) + bytes([OP_EQUAL])

def witness_v0_script(program: bytes) -> bytes:
    # P2WPKH (20 bytes) / P2WSH (32 bytes)
    return bytes([OP_0]) + pushdata(program)
