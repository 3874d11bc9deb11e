# surety_oracles/dispatcher.py
"""
Response Dispatcher
FlightSurety Oracles v1

Turns one ledger event into zero or more submitOracleResponse transactions,
one per pool identity holding the requested indexes. Each submission is its
own asyncio task: a rejection for one oracle is logged and dropped, it never
cancels, delays or retries a sibling. dispatch() does not wait for them.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Sequence

from .events import OracleRequest, OracleResponseRequested
from .ledger import Ledger
from .pool import Identity, IdentityPool

log = logging.getLogger("surety-oracles.dispatcher")

# FlightSurety status codes
STATUS_CODE_UNKNOWN = 0
STATUS_CODE_ON_TIME = 10
STATUS_CODE_LATE_AIRLINE = 20
STATUS_CODE_LATE_WEATHER = 30
STATUS_CODE_LATE_TECHNICAL = 40
STATUS_CODE_LATE_OTHER = 50

STATUS_CODES = (
    STATUS_CODE_UNKNOWN,
    STATUS_CODE_ON_TIME,
    STATUS_CODE_LATE_AIRLINE,
    STATUS_CODE_LATE_WEATHER,
    STATUS_CODE_LATE_TECHNICAL,
    STATUS_CODE_LATE_OTHER,
)

MATCH_ON_RESPONSE = "response"
MATCH_ON_REQUEST = "request"


class EventIndex:
    """Last-Observed-Index: the index of the most recent OracleRequest, or None."""

    def __init__(self) -> None:
        self._value: int | None = None

    @property
    def value(self) -> int | None:
        return self._value

    def set(self, index: int) -> None:
        self._value = index


@dataclass(frozen=True)
class ResponseOrder:
    indexes: tuple[int, ...]
    airline: str
    flight: str
    timestamp: int
    status_code: int


@dataclass(frozen=True)
class SubmissionOutcome:
    account: str
    order: ResponseOrder
    tx_hash: str | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ResponseDispatcher:
    def __init__(
        self,
        ledger: Ledger,
        pool: IdentityPool,
        event_index: EventIndex | None = None,
        match_on: str = MATCH_ON_RESPONSE,
        status_codes: Sequence[int] = STATUS_CODES,
        rng: random.Random | None = None,
    ):
        if match_on not in (MATCH_ON_RESPONSE, MATCH_ON_REQUEST):
            raise ValueError(f"match_on must be '{MATCH_ON_RESPONSE}' or '{MATCH_ON_REQUEST}', got {match_on!r}")
        if not status_codes:
            raise ValueError("status_codes must not be empty")
        self.ledger = ledger
        self.pool = pool
        self.event_index = event_index if event_index is not None else EventIndex()
        self.match_on = match_on
        self.status_codes = tuple(status_codes)
        self.rng = rng or random.Random()
        self._inflight: set[asyncio.Task] = set()

    def order_for(self, event) -> ResponseOrder | None:
        if isinstance(event, OracleRequest):
            if self.match_on != MATCH_ON_REQUEST:
                return None
            return ResponseOrder(
                indexes=(event.index,),
                airline=event.airline,
                flight=event.flight,
                timestamp=event.timestamp,
                status_code=self.rng.choice(self.status_codes),
            )
        if isinstance(event, OracleResponseRequested):
            return ResponseOrder(
                indexes=tuple(event.indexes),
                airline=event.airline,
                flight=event.flight,
                timestamp=event.timestamp,
                status_code=event.status_code,
            )
        raise TypeError(f"cannot dispatch {type(event).__name__}")

    def dispatch(self, event) -> list[asyncio.Task]:
        """Spawn one submission task per matching identity and return them unawaited.

        Must be called from within the running event loop.
        """
        if isinstance(event, OracleRequest):
            self.event_index.set(event.index)
            log.info(f"ORACLE REQUEST => index: {event.index}, flight: {event.flight}, timestamp: {event.timestamp}")

        order = self.order_for(event)
        if order is None:
            return []

        matches = self.pool.matching(order.indexes)
        log.info(
            f"Dispatching {order.flight}@{order.timestamp} indexes={list(order.indexes)} "
            f"status={order.status_code} to {len(matches)}/{len(self.pool)} oracles"
        )
        tasks = []
        for identity in matches:
            task = asyncio.get_running_loop().create_task(self._submit(identity, order))
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            tasks.append(task)
        return tasks

    async def _submit(self, identity: Identity, order: ResponseOrder) -> SubmissionOutcome:
        try:
            tx_hash = await self.ledger.submit_response(
                order.indexes,
                order.airline,
                order.flight,
                order.timestamp,
                order.status_code,
                identity.address,
            )
        except Exception as e:
            log.warning(f"Oracle didn't respond: {identity.address} ({e})")
            return SubmissionOutcome(account=identity.address, order=order, error=e)
        log.info(f"Oracle {identity.address} responded {order.status_code} for {order.flight}: tx {tx_hash}")
        return SubmissionOutcome(account=identity.address, order=order, tx_hash=tx_hash)

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    async def drain(self) -> list[SubmissionOutcome]:
        """Wait for every submission currently in flight."""
        if not self._inflight:
            return []
        results = await asyncio.gather(*list(self._inflight), return_exceptions=True)
        return [r for r in results if isinstance(r, SubmissionOutcome)]

    def close(self) -> None:
        for task in list(self._inflight):
            task.cancel()
