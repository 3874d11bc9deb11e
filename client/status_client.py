"""
FlightSurety Oracles — Status Client v1

Reads the oracle server's query endpoints:
- liveness (/api)
- static flight list (/flights)
- last observed OracleRequest index (/eventIndex)

No retries. Failures are printed, not raised.

Usage:
  python -m client.status_client
  python -m client.status_client --base-url http://127.0.0.1:3000 --watch 5
"""

import argparse
import time

import requests

DEFAULT_BASE_URL = "http://127.0.0.1:3000"
TIMEOUT = 5


def fetch(base_url: str, path: str):
    resp = requests.get(f"{base_url.rstrip('/')}{path}", timeout=TIMEOUT)
    resp.raise_for_status()
    return resp.json()


def get_flights(base_url: str) -> list:
    return fetch(base_url, "/flights")["result"]


def get_event_index(base_url: str):
    return fetch(base_url, "/eventIndex")["result"]


def print_status(base_url: str) -> bool:
    try:
        message = fetch(base_url, "/api").get("message", "")
        flights = get_flights(base_url)
        index = get_event_index(base_url)
    except (requests.RequestException, KeyError, ValueError) as e:
        print(f"  ✗ {base_url} unavailable: {e}")
        return False

    print(f"  {message}")
    print(f"  Flights ({len(flights)}):")
    for flight in flights:
        print(f"    {flight['id']:>3}  {flight['name']}")
    print(f"  Last oracle request index: {'none yet' if index is None else index}")
    return True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="FlightSurety oracle status client")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL)
    parser.add_argument("--watch", type=float, default=0, help="poll every N seconds")
    args = parser.parse_args(argv)

    print("=" * 60)
    print(f"FLIGHTSURETY ORACLES @ {args.base_url}")
    print("=" * 60)
    ok = print_status(args.base_url)
    while args.watch > 0:
        time.sleep(args.watch)
        try:
            index = get_event_index(args.base_url)
        except (requests.RequestException, KeyError, ValueError) as e:
            print(f"  ✗ {e}")
            continue
        print(f"  [{time.strftime('%H:%M:%S')}] event index: {index}")
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
