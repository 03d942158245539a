"""
Grimoire Ledger v1.0 — Configuration
Environment-driven settings shared by the server, CLI and MCP bridge.
"""

import logging
import os

ENGINE_DIR = os.path.dirname(os.path.abspath(__file__))

STORE_URL = os.environ.get("GRIMOIRE_STORE_URL", "http://localhost:8000")
PORT = int(os.environ.get("GRIMOIRE_PORT", "8000"))
DATA_DIR = os.environ.get("GRIMOIRE_DATA_DIR", os.path.join(ENGINE_DIR, "data"))
REQUEST_TIMEOUT = float(os.environ.get("GRIMOIRE_TIMEOUT", "10"))
LOG_LEVEL = os.environ.get("GRIMOIRE_LOG_LEVEL", "INFO")

# Acting user for the MCP bridge (the DM running the assistant)
DEFAULT_USER = os.environ.get("GRIMOIRE_USER", "")


def configure_logging(level: str = None):
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
