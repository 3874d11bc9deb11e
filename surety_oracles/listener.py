# surety_oracles/listener.py
"""
Event Listener
FlightSurety Oracles v1

One subscription per event kind. Each subscription owns:
  - a pump task that polls the ledger log from a block cursor and pushes
    raw events onto an asyncio.Queue
  - a single consumer task that decodes each raw event and calls the
    handler registered for that kind

Per-kind delivery order is the ledger's emission order; different kinds
interleave freely. Decode and handler failures are logged and skipped.
Transport faults move the subscription to ERROR and straight back to
ACTIVE; the next poll resumes from the same cursor. No backoff, no
reconnection.

State machine (per kind):
  UNSUBSCRIBED -> SUBSCRIBING -> ACTIVE -> [ERROR -> ACTIVE | CLOSED]
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from .events import EventDecodeError, decode_event
from .ledger import Ledger

log = logging.getLogger("surety-oracles.listener")

LATEST = "latest"
GENESIS = 0


class SubscriptionState(str, Enum):
    UNSUBSCRIBED = "unsubscribed"
    SUBSCRIBING = "subscribing"
    ACTIVE = "active"
    ERROR = "error"
    CLOSED = "closed"


@dataclass
class Subscription:
    kind: str
    handler: Callable[[Any], Any]
    from_block: int | str = LATEST
    state: SubscriptionState = SubscriptionState.UNSUBSCRIBED
    cursor: int | None = None
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)
    tasks: list = field(default_factory=list)
    delivered: int = 0
    skipped: int = 0
    faults: int = 0


class EventListener:
    def __init__(self, ledger: Ledger, poll_interval: float = 1.0, decoder=decode_event):
        self.ledger = ledger
        self.poll_interval = poll_interval
        self.decoder = decoder
        self._subs: dict[str, Subscription] = {}

    def on(self, kind: str, handler: Callable[[Any], Any], from_block: int | str = LATEST) -> Subscription:
        """Register the handler for one event kind. Only one handler per kind."""
        if kind in self._subs:
            raise ValueError(f"handler already registered for {kind}")
        if from_block != LATEST and not isinstance(from_block, int):
            raise ValueError(f"from_block must be '{LATEST}' or a block number, got {from_block!r}")
        sub = Subscription(kind=kind, handler=handler, from_block=from_block)
        self._subs[kind] = sub
        return sub

    def state(self, kind: str) -> SubscriptionState:
        return self._subs[kind].state

    def subscription(self, kind: str) -> Subscription:
        return self._subs[kind]

    @property
    def kinds(self) -> list[str]:
        return list(self._subs)

    def _transition(self, sub: Subscription, state: SubscriptionState) -> None:
        if sub.state != state:
            log.debug(f"{sub.kind}: {sub.state.value} -> {state.value}")
            sub.state = state

    # === Lifecycle ===

    async def start(self) -> None:
        loop = asyncio.get_running_loop()
        for sub in self._subs.values():
            if sub.state != SubscriptionState.UNSUBSCRIBED:
                continue
            self._transition(sub, SubscriptionState.SUBSCRIBING)
            sub.tasks = [
                loop.create_task(self._pump(sub), name=f"pump-{sub.kind}"),
                loop.create_task(self._consume(sub), name=f"consume-{sub.kind}"),
            ]
        log.info(f"Listening for {', '.join(self._subs) or 'nothing'}")

    async def drain(self) -> None:
        """Wait until every event already received has been handled."""
        for sub in self._subs.values():
            await sub.queue.join()

    async def close(self) -> None:
        tasks = []
        for sub in self._subs.values():
            for task in sub.tasks:
                task.cancel()
                tasks.append(task)
            self._transition(sub, SubscriptionState.CLOSED)
        await asyncio.gather(*tasks, return_exceptions=True)

    # === Pump: ledger -> queue ===

    async def _subscribe(self, sub: Subscription) -> None:
        if sub.from_block == LATEST:
            sub.cursor = await self.ledger.block_number()
        else:
            sub.cursor = int(sub.from_block)
        self._transition(sub, SubscriptionState.ACTIVE)
        log.info(f"Subscribed to {sub.kind} from block {sub.cursor}")

    async def poll(self, sub: Subscription) -> int:
        """Fetch new raw events for one subscription and enqueue them. Returns how many."""
        if sub.cursor is None:
            await self._subscribe(sub)
        head = await self.ledger.block_number()
        if head < sub.cursor:
            return 0
        raw_events = await self.ledger.fetch_events(sub.kind, sub.cursor, head)
        for raw in raw_events:
            sub.queue.put_nowait(raw)
        sub.cursor = head + 1
        return len(raw_events)

    async def _pump(self, sub: Subscription) -> None:
        while True:
            try:
                await self.poll(sub)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                sub.faults += 1
                if sub.cursor is not None:
                    self._transition(sub, SubscriptionState.ERROR)
                log.error(f"{sub.kind} subscription fault: {e}")
                if sub.cursor is not None:
                    self._transition(sub, SubscriptionState.ACTIVE)
            await asyncio.sleep(self.poll_interval)

    # === Consumer: queue -> handler ===

    async def _consume(self, sub: Subscription) -> None:
        while True:
            raw = await sub.queue.get()
            try:
                await self._handle(sub, raw)
            finally:
                sub.queue.task_done()

    async def _handle(self, sub: Subscription, raw: Any) -> None:
        try:
            event = self.decoder(sub.kind, raw)
        except EventDecodeError as e:
            sub.skipped += 1
            log.warning(f"Skipping malformed {sub.kind} event: {e}")
            return
        try:
            result = sub.handler(event)
            if inspect.isawaitable(result):
                await result
        except Exception:
            log.exception(f"{sub.kind} handler failed")
            return
        sub.delivered += 1
