from __future__ import annotations
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .constants import APP_NAME

_OWNED = "_seatdesigner_handler"

def setup_logging(log_dir: Path, level: int | str = logging.INFO) -> Path:
    """Console + fichier tournant. Un nouvel appel remplace les handlers posés par le précédent."""
    log_dir.mkdir(parents=True, exist_ok=True)
    logfile = log_dir / f"{APP_NAME.lower()}.log"
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    fmt = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s", "%Y-%m-%d %H:%M:%S")

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        if getattr(h, _OWNED, False):
            root.removeHandler(h)
            h.close()

    # Console + fichier tournant (1 Mo x 3)
    handlers = (
        logging.StreamHandler(),
        RotatingFileHandler(logfile, maxBytes=1_000_000, backupCount=3, encoding="utf-8"),
    )
    for h in handlers:
        setattr(h, _OWNED, True)
        h.setLevel(level)
        h.setFormatter(fmt)
        root.addHandler(h)

    # SQL émis à chaque auto-sauvegarde : trop bavard hors débogage
    logging.getLogger("sqlalchemy.engine").setLevel(max(level, logging.WARNING))
    return logfile
