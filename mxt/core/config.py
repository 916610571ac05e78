from __future__ import annotations
from dataclasses import dataclass
import sys
from pathlib import Path

from .constants import DB_FILENAME

@dataclass(frozen=True)
class AppConfig:
    data_dir: Path
    db_path: Path
    log_dir: Path


def get_run_root() -> Path:
    """Retourne le dossier de travail de l'application.

    Lorsqu'on exécute un binaire gelé (PyInstaller), le répertoire courant peut
    varier selon le mode de lancement : on déduit la racine de l'exécutable.
    Sinon (script installé ou projet en développement), on travaille dans le
    répertoire courant, le paquet installé n'étant pas forcément inscriptible.
    """

    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent

    return Path.cwd()

def load_config(data_dir: Path | None = None) -> AppConfig:
    data_dir = Path(data_dir) if data_dir else get_run_root() / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    return AppConfig(
        data_dir=data_dir,
        db_path=data_dir / DB_FILENAME,
        log_dir=data_dir / "logs",
    )
