"""Logging configuration for the agentlab backend.

Modules log through ``logging.getLogger(__name__)``; this sets up the
root handler once at application startup.
"""

from __future__ import annotations

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured = False


def setup_logging(level: str | None = None) -> None:
    """Configure root logging. Subsequent calls are no-ops.

    Replaces handlers already on the root logger, such as the ones
    uvicorn installs before the app is imported.

    Args:
        level: Level name. Defaults to AGENTLAB_LOG_LEVEL, then INFO.
    """
    global _configured
    if _configured:
        return

    level = level or os.environ.get("AGENTLAB_LOG_LEVEL", "INFO")
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    _configured = True
