from __future__ import annotations
import logging, sys
from PySide6.QtWidgets import QApplication

from seatdesigner.core.config import load_config
from seatdesigner.core.logging import setup_logging
from seatdesigner.core.constants import APP_NAME, APP_VERSION, SAMPLE_NAMES
from seatdesigner.services.engine import SeatingEngine
from seatdesigner.services.import_service import ImportService
from seatdesigner.services.export_service import ExportService
from seatdesigner.services.persistence import Persistence
from seatdesigner.services.scheduler import QtTimer
from seatdesigner.services.snapshots import SnapshotStore
from seatdesigner.ui.main_window import MainWindow

def main() -> int:
    app = QApplication(sys.argv)

    cfg = load_config()
    setup_logging(cfg.log_dir, cfg.log_level)
    logging.getLogger(__name__).info("%s %s démarré", APP_NAME, APP_VERSION)

    persistence = Persistence(cfg.db_path)
    win: MainWindow | None = None

    def on_autosave_error(exc) -> None:
        if win is not None:
            win.statusBar().showMessage(f"Auto-sauvegarde impossible : {exc}", 5000)

    snapshots = SnapshotStore(
        persistence,
        timer=QtTimer(),
        autosave_delay_ms=cfg.autosave_delay_ms,
        on_error=on_autosave_error,
    )
    engine = SeatingEngine(snapshots)
    engine.bootstrap(
        SAMPLE_NAMES,
        total_tables=cfg.default_total_tables,
        seats_per_table=cfg.default_seats_per_table,
        row_pattern=cfg.default_row_pattern,
    )

    import_svc = ImportService(engine)
    export_svc = ExportService(engine)
    win = MainWindow(engine, import_service=import_svc, export_service=export_svc, cfg=cfg)
    win.show()

    try:
        return app.exec()
    finally:
        persistence.close()

if __name__ == "__main__":
    raise SystemExit(main())
