# surety_oracles/ledger.py
"""
Ledger adapter — FlightSuretyApp contract surface over web3.py.

The coordinator only talks to the ledger through the `Ledger` protocol
below; `Web3Ledger` is the production implementation backed by an
AsyncWeb3 connection (WebSocket for ws:// URLs, HTTP otherwise).
Tests substitute an in-memory ledger with the same methods.
"""

import json
import logging
from pathlib import Path
from typing import Any, Protocol, Sequence

from web3 import AsyncHTTPProvider, AsyncWeb3, WebSocketProvider

log = logging.getLogger("surety-oracles.ledger")


class TransactionFailed(RuntimeError):
    """Raised when a mined transaction reports status 0 (reverted)."""


class Ledger(Protocol):
    async def accounts(self) -> list[str]: ...

    async def read_registration_fee(self) -> int: ...

    async def register_oracle(self, account: str, fee: int, gas: int, gas_price: int) -> str: ...

    async def get_assigned_indexes(self, account: str) -> tuple[int, ...]: ...

    async def submit_response(
        self,
        indexes: Sequence[int],
        airline: str,
        flight: str,
        timestamp: int,
        status_code: int,
        account: str,
    ) -> str: ...

    async def block_number(self) -> int: ...

    async def fetch_events(self, kind: str, from_block: int, to_block: int) -> list[Any]: ...


def load_abi(path: Path) -> list:
    """Load a contract ABI from a truffle artifact (`{"abi": [...]}`) or a bare ABI list."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        if "abi" not in data:
            raise ValueError(f"{path} has no 'abi' key")
        return data["abi"]
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain an ABI")
    return data


def websocket_url(url: str) -> str:
    """Rewrite http(s) endpoints to their ws(s) equivalent."""
    if url.startswith("http"):
        return "ws" + url[len("http"):]
    return url


def index_argument(abi: list, indexes) -> Any:
    """Shape `indexes` the way submitOracleResponse declares its first input.

    A `uint8[]` input gets the list as-is, even with one element; a `uint8`
    input gets the single index and refuses anything else.
    """
    for entry in abi or []:
        if entry.get("type") != "function" or entry.get("name") != "submitOracleResponse":
            continue
        inputs = entry.get("inputs") or []
        if not inputs:
            break
        if inputs[0].get("type", "").endswith("]"):
            return list(indexes)
        if len(indexes) != 1:
            raise ValueError(f"submitOracleResponse takes a single index, got {list(indexes)}")
        return indexes[0]
    raise ValueError("contract ABI has no submitOracleResponse(index, ...) function")


class Web3Ledger:
    def __init__(self, w3: AsyncWeb3, contract) -> None:
        self.w3 = w3
        self.contract = contract

    @classmethod
    async def connect(cls, url: str, address: str, abi: list) -> "Web3Ledger":
        if url.startswith("ws"):
            w3 = AsyncWeb3(WebSocketProvider(url))
            await w3.provider.connect()
        else:
            w3 = AsyncWeb3(AsyncHTTPProvider(url))
        if not await w3.is_connected():
            raise ConnectionError(f"Unable to connect to ledger at {url}")
        contract = w3.eth.contract(address=AsyncWeb3.to_checksum_address(address), abi=abi)
        log.info(f"Connected to ledger at {url}, app contract {address}")
        return cls(w3, contract)

    async def close(self) -> None:
        if isinstance(self.w3.provider, WebSocketProvider):
            await self.w3.provider.disconnect()

    async def _transact(self, call, tx: dict) -> str:
        tx_hash = await call.transact(tx)
        receipt = await self.w3.eth.wait_for_transaction_receipt(tx_hash)
        if receipt["status"] != 1:
            raise TransactionFailed(f"transaction {tx_hash.hex()} reverted")
        return tx_hash.hex()

    # === Contract surface ===

    async def accounts(self) -> list[str]:
        return list(await self.w3.eth.accounts)

    async def read_registration_fee(self) -> int:
        return int(await self.contract.functions.REGISTRATION_FEE().call())

    async def register_oracle(self, account: str, fee: int, gas: int, gas_price: int) -> str:
        return await self._transact(
            self.contract.functions.registerOracle(),
            {"from": account, "value": fee, "gas": gas, "gasPrice": gas_price},
        )

    async def get_assigned_indexes(self, account: str) -> tuple[int, ...]:
        result = await self.contract.functions.getMyIndexes().call({"from": account})
        return tuple(int(i) for i in result)

    async def submit_response(self, indexes, airline, flight, timestamp, status_code, account) -> str:
        arg = index_argument(self.contract.abi, indexes)
        return await self._transact(
            self.contract.functions.submitOracleResponse(arg, airline, flight, timestamp, status_code),
            {"from": account},
        )

    # === Event log ===

    async def block_number(self) -> int:
        return int(await self.w3.eth.block_number)

    async def fetch_events(self, kind: str, from_block: int, to_block: int) -> list[Any]:
        event = getattr(self.contract.events, kind)
        return list(await event.get_logs(from_block=from_block, to_block=to_block))
