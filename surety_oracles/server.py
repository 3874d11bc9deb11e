# surety_oracles/server.py
"""
FlightSurety Oracle API Server
FlightSurety Oracles v1

Endpoints:
  GET /api          — Liveness message
  GET /flights      — Static flight list
  GET /eventIndex   — Index of the last OracleRequest seen (null before any)
  GET /health       — Service status and oracle pool size

Read-only: nothing here writes into the coordinator.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import config
from .dispatcher import EventIndex

log = logging.getLogger("surety-oracles.server")

VERSION = "v1"


def create_app(event_index: EventIndex | None = None, flights=None, coordinator_factory=None) -> FastAPI:
    """Build the API. `coordinator_factory(event_index)` is awaited on startup when given."""
    event_index = event_index if event_index is not None else EventIndex()
    flights = list(config.FLIGHTS if flights is None else flights)

    app = FastAPI(title="FlightSurety Oracles", version=VERSION)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["GET"], allow_headers=["*"])
    app.state.event_index = event_index
    app.state.coordinator = None

    @app.get("/api")
    def api():
        return {"message": "API Online!"}

    @app.get("/flights")
    def get_flights():
        return {"result": flights}

    @app.get("/eventIndex")
    def get_event_index():
        return {"result": event_index.value}

    @app.get("/health")
    def health():
        coordinator = app.state.coordinator
        return {
            "status": "ok",
            "service": "surety-oracles",
            "version": VERSION,
            "listening": bool(coordinator and coordinator.ready),
            "oracles": len(coordinator.pool) if coordinator else 0,
        }

    if coordinator_factory is not None:
        @app.on_event("startup")
        async def startup():
            try:
                coordinator = await coordinator_factory(event_index)
            except Exception as e:
                log.error(f"Error to initialise oracles: {e}")
                if config.STRICT_SETUP:
                    raise
                return
            app.state.coordinator = coordinator
            await coordinator.start()

        @app.on_event("shutdown")
        async def shutdown():
            if app.state.coordinator is not None:
                await app.state.coordinator.close()

    log.info("API routes defined")
    return app
