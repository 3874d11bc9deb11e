import asyncio

import pytest

from surety_oracles.ledger import TransactionFailed

ACCOUNTS = [f"0x{i:040x}" for i in range(1, 11)]


class FakeLedger:
    """In-memory FlightSuretyApp: fee, per-account indexes, scripted event log."""

    def __init__(self, fee=1000, indexes=None, accounts=None):
        self.fee = fee
        self.indexes = dict(indexes or {})
        self._accounts = list(accounts or ACCOUNTS)
        self.registered: list[str] = []
        self.calls: list[tuple] = []
        self.submissions: list[tuple] = []
        self.fail_register: dict[str, Exception] = {}
        self.fail_indexes: dict[str, Exception] = {}
        self.fail_submit: dict[str, Exception] = {}
        self.submit_delay: dict[str, float] = {}
        self.register_delay: dict[str, float] = {}
        self.head = 0
        self.logs: dict[str, list[tuple[int, object]]] = {}
        self.fail_fetch = 0

    # --- contract surface ---

    async def accounts(self):
        return list(self._accounts)

    async def read_registration_fee(self):
        self.calls.append(("fee",))
        return self.fee

    async def register_oracle(self, account, fee, gas, gas_price):
        self.calls.append(("register", account, fee))
        await asyncio.sleep(self.register_delay.get(account, 0))
        if account in self.fail_register:
            raise self.fail_register[account]
        if fee < self.fee:
            raise TransactionFailed("Registration fee is required")
        if account in self.registered:
            raise TransactionFailed("Oracle already registered")
        self.registered.append(account)
        return f"0xreg{len(self.registered)}"

    async def get_assigned_indexes(self, account):
        self.calls.append(("indexes", account))
        if account in self.fail_indexes:
            raise self.fail_indexes[account]
        if account not in self.registered:
            raise TransactionFailed("Not registered as an oracle")
        return tuple(self.indexes.get(account, (0, 1, 2)))

    async def submit_response(self, indexes, airline, flight, timestamp, status_code, account):
        await asyncio.sleep(self.submit_delay.get(account, 0))
        if account in self.fail_submit:
            raise self.fail_submit[account]
        self.submissions.append((account, tuple(indexes), airline, flight, timestamp, status_code))
        return f"0xtx{len(self.submissions)}"

    # --- event log ---

    def emit(self, kind, args, block=None):
        self.head = self.head + 1 if block is None else block
        raw = {"event": kind, "args": args, "blockNumber": self.head}
        self.logs.setdefault(kind, []).append((self.head, raw))
        return raw

    async def block_number(self):
        if self.fail_fetch:
            self.fail_fetch -= 1
            raise ConnectionError("websocket closed")
        return self.head

    async def fetch_events(self, kind, from_block, to_block):
        return [raw for block, raw in self.logs.get(kind, []) if from_block <= block <= to_block]


async def wait_for(predicate, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def accounts():
    return list(ACCOUNTS)
