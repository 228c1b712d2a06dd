import os, json, logging, requests
from typing import Any, List, Optional

from . import config
from .errors import RpcError

log = logging.getLogger(__name__)


class Rpc:
    """bitcoind-style JSON-RPC client. Every call blocks; there is no retry."""

    def __init__(self, host: str, port: int, user: str = "", password: str = "",
                 cookie_path: str = "", wallet: str = "", timeout: Optional[float] = None):
        self.url = f"http://{host}:{port}/wallet/{wallet}" if wallet else f"http://{host}:{port}"
        self.auth = None
        if cookie_path and os.path.exists(cookie_path):
            with open(cookie_path, "r") as f:
                u, p = f.read().strip().split(":", 1)
            self.auth = (u, p)
        elif user:
            self.auth = (user, password)
        self.timeout = timeout
        self.session = requests.Session()
        self._id = 0

    @classmethod
    def from_env(cls) -> "Rpc":
        return cls(config.BITCOIN_RPC_HOST, config.BITCOIN_RPC_PORT, config.RPC_USER, config.RPC_PASSWORD,
                   config.COOKIE_PATH, config.RPC_WALLET, config.RPC_TIMEOUT)

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        if params is None: params = []
        self._id += 1
        body = {"jsonrpc": "1.0", "id": f"regforge-{self._id}", "method": method, "params": params}
        try:
            r = self.session.post(self.url, headers={"content-type": "application/json"}, auth=self.auth,
                                  data=json.dumps(body), timeout=self.timeout)
        except requests.RequestException as e:
            raise RpcError(method, f"transport failure: {e}") from e
        # bitcoind reports RPC errors with HTTP 500 and a JSON body
        try:
            j = r.json()
        except ValueError:
            try:
                r.raise_for_status()
            except requests.HTTPError as e:
                raise RpcError(method, str(e)) from e
            raise RpcError(method, f"non-JSON response: {r.text[:200]!r}")
        err = j.get("error")
        if err:
            if isinstance(err, dict):
                raise RpcError(method, err.get("message", str(err)), err.get("code"))
            raise RpcError(method, str(err))
        return j.get("result")

    def submitblock(self, block_hex: str) -> Any:
        # null on success, a rejection reason string otherwise
        return self.call("submitblock", [block_hex])

    def getblockcount(self) -> int:
        return int(self.call("getblockcount"))

    def getblockhash(self, height: int) -> str:
        return self.call("getblockhash", [height])

    def getblock_hex(self, block_hash: str) -> str:
        return self.call("getblock", [block_hash, 0])

    def getrawmempool(self) -> List[str]:
        return self.call("getrawmempool")

    def getrawtransaction(self, txid: str) -> str:
        return self.call("getrawtransaction", [txid])

    def sendrawtransaction(self, tx_hex: str) -> str:
        return self.call("sendrawtransaction", [tx_hex])
