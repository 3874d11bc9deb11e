# surety_oracles/__main__.py
"""
FlightSurety oracle server.

Usage:
  python -m surety_oracles                # register oracles, listen, serve the API
  python -m surety_oracles --port 3001
  python -m surety_oracles --once         # register oracles, print the pool, exit
"""

import argparse
import asyncio
import logging
import sys

import uvicorn

from . import config
from .coordinator import OracleCoordinator
from .server import create_app

log = logging.getLogger("surety-oracles")


async def register_once() -> int:
    coordinator = await OracleCoordinator.from_config()
    try:
        await coordinator.register_oracles()
        ok = True
    except Exception as e:
        log.error(f"Error to initialise oracles: {e}")
        ok = False
    finally:
        await coordinator.close()
    for address, indexes in coordinator.pool.all():
        print(f"  {address}  {', '.join(str(i) for i in indexes)}")
    return 0 if ok else 1


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="FlightSurety oracle server")
    parser.add_argument("--port", type=int, default=config.PORT, help=f"HTTP port (default {config.PORT})")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--once", action="store_true", help="register the oracles and exit")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )

    if args.once:
        return asyncio.run(register_once())

    log.info(f"Ledger: {config.RPC_URL}  app: {config.APP_ADDRESS or 'MISSING'}")
    log.info(f"Oracles: {config.ORACLE_COUNT} from account {config.ACCOUNT_OFFSET}, matching on {config.MATCH_ON}")
    app = create_app(coordinator_factory=lambda index: OracleCoordinator.from_config(event_index=index))
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
