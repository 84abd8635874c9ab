from __future__ import annotations
from dataclasses import dataclass
import os
import sys
from pathlib import Path

from .constants import (
    APP_NAME,
    AUTOSAVE_DELAY_MS,
    DEFAULT_ROW_PATTERN,
    DEFAULT_SEATS_PER_TABLE,
    DEFAULT_TOTAL_TABLES,
)

ENV_DATA_DIR = "SEATDESIGNER_DATA_DIR"
ENV_LOG_LEVEL = "SEATDESIGNER_LOG_LEVEL"

@dataclass(frozen=True)
class AppConfig:
    data_dir: Path
    db_path: Path
    log_dir: Path
    log_level: str = "INFO"
    autosave_delay_ms: int = AUTOSAVE_DELAY_MS
    default_total_tables: int = DEFAULT_TOTAL_TABLES
    default_seats_per_table: int = DEFAULT_SEATS_PER_TABLE
    default_row_pattern: tuple[int, ...] = DEFAULT_ROW_PATTERN


def get_run_root() -> Path:
    """Dossier de l'exécutable (binaire PyInstaller) ou racine du projet en développement.

    Le répertoire courant d'un binaire gelé dépend du mode de lancement ; la
    base des configurations et les logs doivent rester au même endroit.
    """

    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent

    return Path(__file__).resolve().parent.parent.parent

def load_config(data_dir: Path | None = None) -> AppConfig:
    """``data_dir`` explicite, sinon ``$SEATDESIGNER_DATA_DIR``, sinon ``<racine>/data``."""
    env_dir = os.environ.get(ENV_DATA_DIR, "").strip()
    if data_dir:
        data_dir = Path(data_dir)
    elif env_dir:
        data_dir = Path(env_dir).expanduser()
    else:
        data_dir = get_run_root() / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    return AppConfig(
        data_dir=data_dir,
        db_path=data_dir / f"{APP_NAME.lower()}.db",
        log_dir=data_dir / "logs",
        log_level=os.environ.get(ENV_LOG_LEVEL, "INFO").strip().upper() or "INFO",
    )
