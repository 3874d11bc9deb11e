# surety_oracles/registrar.py
"""
Registrar
FlightSurety Oracles v1

Brings a slice of the ledger accounts to "registered" status:
  1. Reads the registration fee once
  2. Registers every account concurrently (fee as value)
  3. Queries each account's assigned indexes
  4. Commits the results into the IdentityPool

All-or-nothing: register_all() resolves only when every account made it
through steps 2 and 3. There is no retry and no deregistration; accounts
that registered on the ledger before a sibling failed stay registered there.
"""

import asyncio
import logging
from typing import Sequence

from .ledger import Ledger
from .pool import DuplicateIdentity, Identity, IdentityPool, RegistrationStatus

log = logging.getLogger("surety-oracles.registrar")

DEFAULT_GAS = 999999
DEFAULT_GAS_PRICE = 200000000


class RegistrationError(RuntimeError):
    """register_all() failed for at least one account.

    `registered` lists the accounts that completed registration on the
    ledger before the call gave up; `failed` maps account -> exception.
    The first failure is chained as __cause__.
    """

    def __init__(self, message, registered=(), failed=None):
        super().__init__(message)
        self.registered = list(registered)
        self.failed = dict(failed or {})


def select_accounts(accounts: Sequence[str], offset: int = 5, count: int = 2) -> list[str]:
    """Contiguous slice of the available accounts used as oracle identities."""
    if offset < 0 or count < 1:
        raise ValueError(f"invalid account slice: offset={offset}, count={count}")
    selected = list(accounts[offset:offset + count])
    if len(selected) != count:
        raise ValueError(
            f"need {count} accounts from offset {offset}, ledger exposes {len(accounts)}"
        )
    return selected


class Registrar:
    def __init__(
        self,
        ledger: Ledger,
        pool: IdentityPool,
        gas: int = DEFAULT_GAS,
        gas_price: int = DEFAULT_GAS_PRICE,
        partial_commit: bool = False,
    ):
        self.ledger = ledger
        self.pool = pool
        self.gas = gas
        self.gas_price = gas_price
        # False: commit to the pool only once every account succeeded.
        # True: commit each identity as soon as it registers.
        self.partial_commit = partial_commit

    async def _register_one(self, identity: Identity, fee: int, on_ledger: list[str]) -> Identity:
        identity.status = RegistrationStatus.PENDING
        try:
            await self.ledger.register_oracle(identity.address, fee, self.gas, self.gas_price)
        except Exception:
            identity.status = RegistrationStatus.UNREGISTERED
            raise
        on_ledger.append(identity.address)
        # a failed index query leaves the identity PENDING: registered on the ledger, not in the pool
        indexes = await self.ledger.get_assigned_indexes(identity.address)
        identity.indexes = tuple(indexes)
        identity.status = RegistrationStatus.REGISTERED
        log.info(f"Oracle Registered: {', '.join(str(i) for i in identity.indexes)} at {identity.address}")
        if self.partial_commit:
            self.pool.add(identity)
        return identity

    async def register_all(self, accounts: Sequence[str], fee_amount: int | None = None) -> list[Identity]:
        # refuse up front so a duplicate never leaves the pool half-committed
        seen = set()
        for account in accounts:
            if account in self.pool or account in seen:
                raise DuplicateIdentity(account)
            seen.add(account)

        if fee_amount is None:
            fee = await self.ledger.read_registration_fee()
        else:
            fee = fee_amount
        log.info(f"Registering {len(accounts)} oracles (fee {fee})")

        identities = [Identity(address=a) for a in accounts]
        on_ledger: list[str] = []
        failures: list[tuple[str, Exception]] = []

        async def attempt(identity: Identity):
            try:
                return await self._register_one(identity, fee, on_ledger)
            except Exception as e:
                # completion order decides which failure is reported first
                failures.append((identity.address, e))
                raise

        await asyncio.gather(*(attempt(i) for i in identities), return_exceptions=True)

        if failures:
            first_account, first_error = failures[0]
            registered = [a for a in accounts if a in on_ledger]
            for address, err in failures:
                log.error(f"Oracle registration failed for {address}: {err}")
            raise RegistrationError(
                f"{len(failures)} of {len(identities)} oracle registrations failed "
                f"(first: {first_account}: {first_error})",
                registered=registered,
                failed=dict(failures),
            ) from first_error

        if not self.partial_commit:
            for identity in identities:
                self.pool.add(identity)
        return identities
