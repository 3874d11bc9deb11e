import pytest

from surety_oracles.events import (
    EventDecodeError,
    LifecycleEvent,
    OracleReport,
    OracleRequest,
    OracleResponseRequested,
    decode_event,
    describe,
)

AIRLINE = "0x00000000000000000000000000000000000000aa"


def test_decode_oracle_request():
    raw = {"args": {"index": "4", "airline": AIRLINE, "flight": "JJ3720", "timestamp": 1600000000}, "blockNumber": 12}
    event = decode_event("OracleRequest", raw)
    assert event == OracleRequest(index=4, airline=AIRLINE, flight="JJ3720", timestamp=1600000000, block_number=12)


def test_decode_submit_oracle_response_list_and_scalar_indexes():
    args = {"airline": AIRLINE, "flight": "AD2626", "timestamp": 1, "indexes": [1, 3, 4], "statusCode": 20}
    event = decode_event("SubmitOracleResponse", {"args": args})
    assert isinstance(event, OracleResponseRequested)
    assert event.indexes == (1, 3, 4)
    assert event.status_code == 20

    args["indexes"] = 7
    assert decode_event("SubmitOracleResponse", {"args": args}).indexes == (7,)


def test_decode_report_and_lifecycle():
    report = decode_event("OracleReport", {"args": {"airline": AIRLINE, "flight": "G35638", "timestamp": 5, "status": 10}})
    assert report == OracleReport(airline=AIRLINE, flight="G35638", timestamp=5, status_code=10)

    event = decode_event("Withdraw", {"args": {"passenger": "0xp", "amount": 3}})
    assert isinstance(event, LifecycleEvent)
    assert event.kind == "Withdraw"
    assert describe(event) == "Withdraw(passenger=0xp, amount=3)"


@pytest.mark.parametrize(
    "raw",
    [
        None,
        {"event": "OracleRequest"},
        {"args": {"airline": AIRLINE, "flight": "JJ3720", "timestamp": 1}},
        {"args": {"index": "x", "airline": AIRLINE, "flight": "JJ3720", "timestamp": 1}},
        {"args": {"index": True, "airline": AIRLINE, "flight": "JJ3720", "timestamp": 1}},
        {"args": {"index": 1, "airline": AIRLINE, "flight": 42, "timestamp": 1}},
        {"args": {"index": 1, "airline": AIRLINE, "flight": "JJ3720", "timestamp": 1}, "blockNumber": "?"},
    ],
)
def test_malformed_request_raises_decode_error(raw):
    with pytest.raises(EventDecodeError):
        decode_event("OracleRequest", raw)


def test_unknown_kind():
    with pytest.raises(EventDecodeError):
        decode_event("Transfer", {"args": {}})
