"""Entry point for ``python -m dnc_checker.relay``."""
from __future__ import annotations

import logging
import os

from . import serve

if __name__ == "__main__":  # pragma: no cover - module entry point
    level = os.environ.get("LOG_LEVEL", "INFO")
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO))
    serve(log_level=level)
