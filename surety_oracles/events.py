# surety_oracles/events.py
"""
Typed ledger events for the FlightSurety oracle coordinator.

Raw events come from web3.py as AttributeDicts with an `args` mapping
(`{"event": "OracleRequest", "args": {...}, "blockNumber": ...}`).
`decode_event(kind, raw)` turns one into a frozen dataclass or raises
EventDecodeError.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping

# === Event kinds emitted by FlightSuretyApp ===

ORACLE_REQUEST = "OracleRequest"
SUBMIT_ORACLE_RESPONSE = "SubmitOracleResponse"
ORACLE_REPORT = "OracleReport"

LIFECYCLE_KINDS = (
    "RegisterAirline",
    "FundedAirlines",
    "PurchaseInsurance",
    "CreditInsurees",
    "Withdraw",
)

ALL_KINDS = (ORACLE_REQUEST, SUBMIT_ORACLE_RESPONSE, ORACLE_REPORT) + LIFECYCLE_KINDS


class EventDecodeError(ValueError):
    """Raised when a raw ledger event cannot be decoded into a typed event."""


@dataclass(frozen=True)
class OracleRequest:
    index: int
    airline: str
    flight: str
    timestamp: int
    block_number: int | None = None


@dataclass(frozen=True)
class OracleResponseRequested:
    """`SubmitOracleResponse` event: the ledger asks oracles holding `indexes` to answer."""
    indexes: tuple[int, ...]
    airline: str
    flight: str
    timestamp: int
    status_code: int
    block_number: int | None = None


@dataclass(frozen=True)
class OracleReport:
    airline: str
    flight: str
    timestamp: int
    status_code: int
    block_number: int | None = None


@dataclass(frozen=True)
class LifecycleEvent:
    kind: str
    args: Mapping[str, Any] = field(default_factory=dict)
    block_number: int | None = None


# === Field helpers ===

def _args(raw: Any) -> Mapping[str, Any]:
    try:
        args = raw["args"]
    except (KeyError, TypeError, IndexError):
        args = getattr(raw, "args", None)
    if not isinstance(args, Mapping):
        raise EventDecodeError(f"event has no argument mapping: {raw!r}")
    return args


def _block(raw: Any) -> int | None:
    try:
        value = raw["blockNumber"]
    except (KeyError, TypeError, IndexError):
        value = getattr(raw, "blockNumber", None)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise EventDecodeError(f"bad blockNumber: {value!r}") from None


def _field(args: Mapping[str, Any], name: str) -> Any:
    if name not in args:
        raise EventDecodeError(f"missing field '{name}'")
    return args[name]


def _int(args: Mapping[str, Any], name: str) -> int:
    value = _field(args, name)
    if isinstance(value, bool):
        raise EventDecodeError(f"field '{name}' is not an integer: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise EventDecodeError(f"field '{name}' is not an integer: {value!r}") from None


def _str(args: Mapping[str, Any], name: str) -> str:
    value = _field(args, name)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    if not isinstance(value, str):
        raise EventDecodeError(f"field '{name}' is not a string: {value!r}")
    return value


def _indexes(args: Mapping[str, Any], name: str) -> tuple[int, ...]:
    value = _field(args, name)
    # the contract emits either a single uint8 or a uint8[] depending on version
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = [value]
    try:
        return tuple(int(v) for v in items)
    except (TypeError, ValueError):
        raise EventDecodeError(f"field '{name}' is not an index list: {value!r}") from None


# === Decoders ===

def decode_oracle_request(raw: Any) -> OracleRequest:
    args = _args(raw)
    return OracleRequest(
        index=_int(args, "index"),
        airline=_str(args, "airline"),
        flight=_str(args, "flight"),
        timestamp=_int(args, "timestamp"),
        block_number=_block(raw),
    )


def decode_response_requested(raw: Any) -> OracleResponseRequested:
    args = _args(raw)
    return OracleResponseRequested(
        indexes=_indexes(args, "indexes"),
        airline=_str(args, "airline"),
        flight=_str(args, "flight"),
        timestamp=_int(args, "timestamp"),
        status_code=_int(args, "statusCode"),
        block_number=_block(raw),
    )


def decode_oracle_report(raw: Any) -> OracleReport:
    args = _args(raw)
    return OracleReport(
        airline=_str(args, "airline"),
        flight=_str(args, "flight"),
        timestamp=_int(args, "timestamp"),
        status_code=_int(args, "status"),
        block_number=_block(raw),
    )


def decode_event(kind: str, raw: Any):
    if kind == ORACLE_REQUEST:
        return decode_oracle_request(raw)
    if kind == SUBMIT_ORACLE_RESPONSE:
        return decode_response_requested(raw)
    if kind == ORACLE_REPORT:
        return decode_oracle_report(raw)
    if kind in LIFECYCLE_KINDS:
        return LifecycleEvent(kind=kind, args=dict(_args(raw)), block_number=_block(raw))
    raise EventDecodeError(f"unknown event kind: {kind}")


def describe(event) -> str:
    """One-line rendering of a decoded event for the logs."""
    if isinstance(event, LifecycleEvent):
        args = ", ".join(f"{k}={v}" for k, v in event.args.items())
        return f"{event.kind}({args})"
    if isinstance(event, OracleReport):
        return f"OracleReport({event.flight}@{event.timestamp} airline={event.airline} status={event.status_code})"
    if isinstance(event, OracleResponseRequested):
        return (
            f"SubmitOracleResponse({event.flight}@{event.timestamp} airline={event.airline} "
            f"indexes={list(event.indexes)} status={event.status_code})"
        )
    if isinstance(event, OracleRequest):
        return f"OracleRequest(index={event.index} {event.flight}@{event.timestamp} airline={event.airline})"
    return repr(event)
