from __future__ import annotations
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .constants import APP_NAME

# handlers posés par setup_logging, remplacés à chaque appel
_installed: list[logging.Handler] = []

def setup_logging(log_dir: Path, level: int = logging.INFO) -> None:
    log_dir.mkdir(parents=True, exist_ok=True)
    logfile = log_dir / f"{APP_NAME.lower()}.log"

    fmt = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"

    root = logging.getLogger()
    root.setLevel(level)

    while _installed:
        old = _installed.pop()
        root.removeHandler(old)
        old.close()

    # Console : uniquement les avertissements, la sortie standard sert au CLI
    ch = logging.StreamHandler()
    ch.setLevel(logging.WARNING if level > logging.DEBUG else logging.DEBUG)
    ch.setFormatter(logging.Formatter(fmt, datefmt))

    # Fichier tournant
    fh = RotatingFileHandler(logfile, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
    fh.setLevel(level)
    fh.setFormatter(logging.Formatter(fmt, datefmt))

    for handler in (ch, fh):
        root.addHandler(handler)
        _installed.append(handler)
