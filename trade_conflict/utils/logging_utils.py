from __future__ import annotations
import logging
import os

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_configured = False

def _configure_root() -> None:
    global _configured
    if _configured:
        return
    level = os.environ.get("TRADE_CONFLICT_LOG_LEVEL", "INFO").upper()
    root = logging.getLogger("trade_conflict")
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
    root.setLevel(getattr(logging, level, logging.INFO))
    _configured = True

def get_logger(name: str) -> logging.Logger:
    """Return a logger under the package hierarchy; handlers are attached once."""
    _configure_root()
    if not name.startswith("trade_conflict"):
        name = f"trade_conflict.{name}"
    return logging.getLogger(name)
