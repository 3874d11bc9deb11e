# surety_oracles/pool.py
"""
Identity Pool
FlightSurety Oracles v1

Holds the locally controlled oracle accounts and the indexes the ledger
assigned to each of them. Written only by the Registrar, read by the
Dispatcher. Insertion order is registration order. There is no removal.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator


class RegistrationStatus(str, Enum):
    UNREGISTERED = "unregistered"
    PENDING = "pending"
    REGISTERED = "registered"


class DuplicateIdentity(KeyError):
    """Raised when an address is added to the pool twice."""


class UnknownIdentity(KeyError):
    """Raised when looking up an address that was never registered."""


@dataclass
class Identity:
    address: str
    indexes: tuple[int, ...] = ()
    status: RegistrationStatus = RegistrationStatus.UNREGISTERED

    def includes(self, indexes: Iterable[int]) -> bool:
        """True when every index in `indexes` was assigned to this identity.

        An empty index set matches nobody.
        """
        wanted = set(indexes)
        return bool(wanted) and wanted.issubset(self.indexes)


class _PoolView:
    """Re-iterable view over the pool; each iter() starts from the first entry."""

    def __init__(self, entries: dict) -> None:
        self._entries = entries

    def __iter__(self) -> Iterator[tuple[str, tuple[int, ...]]]:
        for address, identity in list(self._entries.items()):
            yield address, identity.indexes

    def __len__(self) -> int:
        return len(self._entries)


class IdentityPool:
    def __init__(self) -> None:
        self._entries: dict[str, Identity] = {}

    def add(self, identity: Identity) -> None:
        if identity.address in self._entries:
            raise DuplicateIdentity(identity.address)
        self._entries[identity.address] = identity

    def indexes_of(self, address: str) -> tuple[int, ...]:
        try:
            return self._entries[address].indexes
        except KeyError:
            raise UnknownIdentity(address) from None

    def get(self, address: str) -> Identity:
        try:
            return self._entries[address]
        except KeyError:
            raise UnknownIdentity(address) from None

    def all(self) -> _PoolView:
        """Lazy, finite, restartable sequence of (address, indexes) pairs."""
        return _PoolView(self._entries)

    def matching(self, indexes: Iterable[int]) -> list[Identity]:
        wanted = tuple(indexes)
        return [i for i in self._entries.values() if i.includes(wanted)]

    def __contains__(self, address: object) -> bool:
        return address in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"IdentityPool({len(self)} identities)"
