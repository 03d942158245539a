"""
Grimoire Ledger v1.0 — Store Server
Runs the reference campaign store.

Run:  python server.py            # empty store, persisted under data/
      python server.py --seed     # plus the demo campaign
"""

import os
import sys

import uvicorn

# Ensure project directory is on the path
ENGINE_DIR = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, ENGINE_DIR)

from config import DATA_DIR, PORT, configure_logging
from web.routes import app, init_store


def main():
    configure_logging()
    repository = init_store(DATA_DIR, seed="--seed" in sys.argv[1:])

    print("=" * 50)
    print("  GRIMOIRE LEDGER — Campaign Store v1.0")
    print("=" * 50)
    print(f"  Server:    http://localhost:{PORT}")
    print(f"  Data:      {DATA_DIR}")
    print(f"  Campaigns: {repository.count()}")
    print("  Press Ctrl+C to stop.")
    print("=" * 50)
    print()

    uvicorn.run(app, host="0.0.0.0", port=PORT, log_level="warning")


if __name__ == "__main__":
    main()
