# surety_oracles/config.py
"""
Configuration — environment variables with config.json fallback.

The network file is the one the dapp build writes next to the server:
  {"localhost": {"url": "http://localhost:7545", "appAddress": "0x..."}}
Environment variables win over the file.
"""

import json
import os
from pathlib import Path


def load_network_config(path, network="localhost") -> dict:
    """Return the `network` section of a config.json, or {} when the file is absent."""
    path = Path(path)
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    section = data.get(network, {})
    if not isinstance(section, dict):
        raise ValueError(f"{path}: network '{network}' is not an object")
    return section


def _flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


# ── Ledger ────────────────────────────────────────────────────────────────────

CONFIG_PATH = Path(os.environ.get("FLIGHTSURETY_CONFIG", "src/server/config.json"))
NETWORK = os.environ.get("FLIGHTSURETY_NETWORK", "localhost")
_NETWORK_CONFIG = load_network_config(CONFIG_PATH, NETWORK)

RPC_URL = os.environ.get("FLIGHTSURETY_RPC_URL", _NETWORK_CONFIG.get("url", "http://127.0.0.1:7545"))
APP_ADDRESS = os.environ.get("FLIGHTSURETY_APP_ADDRESS", _NETWORK_CONFIG.get("appAddress", ""))
ABI_PATH = Path(os.environ.get("FLIGHTSURETY_ABI_PATH", "build/contracts/FlightSuretyApp.json"))

# ── Oracles ───────────────────────────────────────────────────────────────────

ACCOUNT_OFFSET = int(os.environ.get("ORACLE_ACCOUNT_OFFSET", "5"))
ORACLE_COUNT = int(os.environ.get("ORACLE_COUNT", "2"))
GAS = int(os.environ.get("ORACLE_GAS", "999999"))
GAS_PRICE = int(os.environ.get("ORACLE_GAS_PRICE", "200000000"))
MATCH_ON = os.environ.get("ORACLE_MATCH_ON", "response")
PARTIAL_COMMIT = _flag("ORACLE_PARTIAL_COMMIT")
STRICT_SETUP = _flag("ORACLE_STRICT_SETUP")
POLL_INTERVAL = float(os.environ.get("ORACLE_POLL_INTERVAL", "1.0"))

# ── HTTP ──────────────────────────────────────────────────────────────────────

PORT = int(os.environ.get("ORACLE_PORT", "3000"))
LOG_LEVEL = os.environ.get("ORACLE_LOG_LEVEL", "INFO").upper()

FLIGHTS = [
    {"id": 0, "name": "JJ3720"},
    {"id": 1, "name": "JJ4732"},
    {"id": 2, "name": "AD2626"},
    {"id": 3, "name": "AD2413"},
    {"id": 4, "name": "AD2950"},
    {"id": 5, "name": "G35638"},
    {"id": 6, "name": "AD4120"},
]
