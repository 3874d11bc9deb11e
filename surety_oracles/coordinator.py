# surety_oracles/coordinator.py
"""
Oracle Coordinator
FlightSurety Oracles v1

Wires the parts together for one process:
  1. Registrar registers the configured account slice -> IdentityPool
  2. EventListener subscribes to the request/report/lifecycle events
  3. OracleRequest / SubmitOracleResponse events go to the ResponseDispatcher

Setup failures are logged and the listener is not started; the HTTP
surface keeps serving whatever state exists. With strict_setup the
failure is re-raised instead.
"""

import logging
from typing import Sequence

from . import config
from .dispatcher import MATCH_ON_REQUEST, MATCH_ON_RESPONSE, EventIndex, ResponseDispatcher
from .events import (
    LIFECYCLE_KINDS,
    ORACLE_REPORT,
    ORACLE_REQUEST,
    SUBMIT_ORACLE_RESPONSE,
    describe,
)
from .ledger import Ledger, Web3Ledger, load_abi, websocket_url
from .listener import GENESIS, LATEST, EventListener
from .pool import IdentityPool
from .registrar import Registrar, select_accounts

log = logging.getLogger("surety-oracles.coordinator")


class OracleCoordinator:
    def __init__(
        self,
        ledger: Ledger,
        account_offset: int = 5,
        oracle_count: int = 2,
        gas: int = 999999,
        gas_price: int = 200000000,
        match_on: str = MATCH_ON_RESPONSE,
        partial_commit: bool = False,
        strict_setup: bool = False,
        poll_interval: float = 1.0,
        event_index: EventIndex | None = None,
    ):
        self.ledger = ledger
        self.account_offset = account_offset
        self.oracle_count = oracle_count
        self.strict_setup = strict_setup
        self.pool = IdentityPool()
        self.event_index = event_index if event_index is not None else EventIndex()
        self.registrar = Registrar(ledger, self.pool, gas=gas, gas_price=gas_price, partial_commit=partial_commit)
        self.dispatcher = ResponseDispatcher(ledger, self.pool, self.event_index, match_on=match_on)
        self.listener = EventListener(ledger, poll_interval=poll_interval)
        self.ready = False

    @classmethod
    async def from_config(cls, event_index: EventIndex | None = None) -> "OracleCoordinator":
        if not config.APP_ADDRESS:
            raise RuntimeError("FLIGHTSURETY_APP_ADDRESS is not set and config.json has no appAddress")
        abi = load_abi(config.ABI_PATH)
        ledger = await Web3Ledger.connect(websocket_url(config.RPC_URL), config.APP_ADDRESS, abi)
        return cls(
            ledger,
            account_offset=config.ACCOUNT_OFFSET,
            oracle_count=config.ORACLE_COUNT,
            gas=config.GAS,
            gas_price=config.GAS_PRICE,
            match_on=config.MATCH_ON,
            partial_commit=config.PARTIAL_COMMIT,
            strict_setup=config.STRICT_SETUP,
            poll_interval=config.POLL_INTERVAL,
            event_index=event_index,
        )

    # === Setup ===

    async def register_oracles(self, accounts: Sequence[str] | None = None):
        if accounts is None:
            accounts = select_accounts(await self.ledger.accounts(), self.account_offset, self.oracle_count)
        identities = await self.registrar.register_all(accounts)
        log.info("Oracles registered")
        return identities

    def watch_events(self) -> None:
        # requests are matched from genesis so /eventIndex reflects history;
        # in request mode only new requests are answered
        request_from = LATEST if self.dispatcher.match_on == MATCH_ON_REQUEST else GENESIS
        self.listener.on(ORACLE_REQUEST, self.dispatcher.dispatch, from_block=request_from)
        self.listener.on(SUBMIT_ORACLE_RESPONSE, self.dispatcher.dispatch, from_block=LATEST)
        self.listener.on(ORACLE_REPORT, self._log_event, from_block=GENESIS)
        for kind in LIFECYCLE_KINDS:
            self.listener.on(kind, self._log_event, from_block=GENESIS)

    def _log_event(self, event) -> None:
        log.info(describe(event))

    async def start(self) -> bool:
        """Register the oracles and start listening. Returns False if setup failed."""
        try:
            await self.register_oracles()
        except Exception as e:
            log.error(f"Error to initialise oracles: {e}")
            if self.strict_setup:
                raise
            return False
        self.watch_events()
        await self.listener.start()
        self.ready = True
        return True

    async def close(self) -> None:
        await self.listener.close()
        self.dispatcher.close()
        await self.dispatcher.drain()
        close = getattr(self.ledger, "close", None)
        if close is not None:
            await close()
        self.ready = False
