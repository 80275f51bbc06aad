# app/utils/logging.py

import logging
import os
import sys

_CONFIGURED = False


def _configure_root() -> None:
    global _CONFIGURED
    if _CONFIGURED:
        return

    root = logging.getLogger("produccion")
    root.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s [%(name)s] %(message)s"
        ))
        root.addHandler(handler)

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """
    Logger con prefijo común: produccion.<name>
    """
    _configure_root()
    return logging.getLogger(f"produccion.{name}")
