import logging, time

from . import config
from .address import address_to_script
from .errors import RegforgeError
from .harness import extend_chain_empty
from .log import setup_logging
from .params import chain_mining_params
from .rpc import Rpc
from .sign import SpendRequest, send_transaction
from .sync import retrieve_coinbase_transaction, sync_chain
from .wire import TxOut

log = logging.getLogger(__name__)


def spend_coinbase(net, index, rpc, height, wif, to_address, fee):
    tx = retrieve_coinbase_transaction(index, height)
    value = tx.vout[0].value - fee
    out = TxOut(value, address_to_script(to_address, chain_mining_params(net)))
    sent = send_transaction(rpc, [SpendRequest(tx, 0, wif)], [out])
    log.info("[TX] spent coinbase of height %d: txid=%s value=%d", height, sent.txid_hex(), value)
    return sent


def run(rpc, net, blocks):
    index = sync_chain(rpc, net)
    prev = index.tip()
    for _ in range(blocks):
        prev = extend_chain_empty(net, index, prev, config.SUBSIDY_ADDRESS, rpc)
        # next block's timestamp must be after this one
        time.sleep(1)
    if config.SEND_ADDRESS and config.SUBSIDY_WIF:
        spend_coinbase(net, index, rpc, 1, config.SUBSIDY_WIF, config.SEND_ADDRESS, config.SPEND_FEE)
    return index


def main():
    setup_logging()
    if not config.SUBSIDY_ADDRESS:
        log.error("SUBSIDY_ADDRESS not set in config/.env")
        return 2
    try:
        index = run(Rpc.from_env(), config.NETWORK, config.RUNNER_BLOCKS)
    except RegforgeError as e:
        log.error("Runner error (%s): %s", e.kind.value, e)
        return 1
    log.info("Finished at height %d", index.height)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
