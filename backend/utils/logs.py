# =====================================
# backend/utils/logs.py - Logging Setup
# =====================================
import logging
import sys


def setup_logging(level: str = "INFO"):
    """Configure the root logger once for the whole API."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
