#!/usr/bin/env python3
"""Run the agentlab API with uvicorn.

Usage:
    python scripts/serve.py [--host 127.0.0.1] [--port 8000] [--reload]

The database path comes from AGENTLAB_DB_PATH (default data/agentlab.db).
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import uvicorn

# Add src to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the agentlab API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args()

    uvicorn.run("agentlab.api.app:app", host=args.host, port=args.port, reload=args.reload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
