from enum import Enum


class ErrorKind(Enum):
    VALID_HASH_NOT_FOUND = "valid_hash_not_found"
    INVALID_OUTPOINT_INDEX = "invalid_outpoint_index"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    NO_TX_INFO = "no_tx_info"
    RPC = "rpc"
    VALIDATION = "validation"
    DECODE = "decode"


class RegforgeError(Exception):
    """Base error; callers branch on ``kind`` rather than the class."""

    kind: ErrorKind = ErrorKind.VALIDATION


class ValidHashNotFound(RegforgeError):
    kind = ErrorKind.VALID_HASH_NOT_FOUND

    def __init__(self, bits: int, max_nonce: int):
        self.bits = bits
        self.max_nonce = max_nonce
        super().__init__(f"couldn't find valid block hash (bits={bits:08x}, nonces<{max_nonce})")


class InvalidOutpointIndex(RegforgeError):
    kind = ErrorKind.INVALID_OUTPOINT_INDEX

    def __init__(self, txid: str, input_index: int, index: int, n_outputs: int):
        self.txid = txid
        self.input_index = input_index
        self.index = index
        self.n_outputs = n_outputs
        super().__init__(
            f"invalid outpoint index for transaction input: tx={txid} input={input_index} "
            f"index={index} outputs={n_outputs}"
        )


class InsufficientFunds(RegforgeError):
    kind = ErrorKind.INSUFFICIENT_FUNDS

    def __init__(self, txid: str, index: int, available: int, requested: int):
        self.txid = txid
        self.index = index
        self.available = available
        self.requested = requested
        super().__init__(
            f"insufficient funds in {txid}:{index}: available={available} requested={requested}"
        )


class NoTxInfo(RegforgeError):
    kind = ErrorKind.NO_TX_INFO

    def __init__(self, height: int):
        self.height = height
        super().__init__(f"couldn't find tx: coinbase at height {height}")


class RpcError(RegforgeError):
    kind = ErrorKind.RPC

    def __init__(self, method: str, message: str, code: int | None = None):
        self.method = method
        self.code = code
        self.message = message
        super().__init__(f"{method}: {message}" + (f" (code {code})" if code is not None else ""))


class ValidationError(RegforgeError):
    kind = ErrorKind.VALIDATION


class DecodeError(RegforgeError):
    kind = ErrorKind.DECODE


class KeyDecodeError(DecodeError):
    pass
