import os
from dotenv import load_dotenv

load_dotenv("config/.env")


def _optional_float(v):
    return float(v) if v else None


BITCOIN_RPC_HOST = os.getenv("BITCOIN_RPC_HOST", "127.0.0.1")
BITCOIN_RPC_PORT = int(os.getenv("BITCOIN_RPC_PORT", "18443"))
RPC_USER = os.getenv("RPC_USER", "")
RPC_PASSWORD = os.getenv("RPC_PASSWORD", "")
COOKIE_PATH = os.getenv("COOKIE_PATH", "")
RPC_WALLET = os.getenv("RPC_WALLET", "")
# unset: calls may block forever
RPC_TIMEOUT = _optional_float(os.getenv("RPC_TIMEOUT", ""))

NETWORK = os.getenv("REGFORGE_NETWORK", "regtest")
SUBSIDY_ADDRESS = os.getenv("SUBSIDY_ADDRESS", "")
SUBSIDY_WIF = os.getenv("SUBSIDY_WIF", "")
SEND_ADDRESS = os.getenv("SEND_ADDRESS", "")
RUNNER_BLOCKS = int(os.getenv("RUNNER_BLOCKS", "101"))
SPEND_FEE = int(os.getenv("SPEND_FEE", "10000"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
