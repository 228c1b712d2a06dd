from .errors import (ErrorKind, InsufficientFunds, InvalidOutpointIndex, NoTxInfo, RegforgeError, RpcError,
                     ValidHashNotFound, ValidationError)
from .fees import FeeBatchResult, resolve_fees
from .forge import ForgeConfig, assemble_block, generate_new_block, solve_block
from .index import ChainIndex
from .malleate import malleate_tx_add_op0
from .params import MiningParams, chain_mining_params
from .sign import SpendRequest, build_signed_transaction, send_transaction, send_with_change
from .sync import sync_chain

__version__ = "0.1.0"
