from __future__ import annotations
import logging
from datetime import datetime
from pathlib import Path
from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import (
    QComboBox,
    QFileDialog,
    QInputDialog,
    QLabel,
    QMainWindow,
    QMessageBox,
    QSplitter,
    QStatusBar,
    QToolBar,
)

from seatdesigner.core.config import AppConfig
from seatdesigner.core.constants import APP_NAME
from seatdesigner.core.errors import MalformedSnapshot, PersistenceError
from seatdesigner.services.actions import SeatingActions
from seatdesigner.services.engine import SeatingEngine
from seatdesigner.services.export_service import ExportService
from seatdesigner.services.import_service import ImportService
from seatdesigner.ui.confirm import QtConfirmer
from seatdesigner.ui.dialogs.bulk_add_dialog import BulkAddDialog
from seatdesigner.ui.pages.layout_page import LayoutPage
from seatdesigner.ui.pages.people_page import PeoplePage

log = logging.getLogger(__name__)

class MainWindow(QMainWindow):
    def __init__(
        self,
        engine: SeatingEngine,
        import_service: ImportService,
        export_service: ExportService,
        cfg: AppConfig,
    ) -> None:
        super().__init__()
        self.engine = engine
        self.import_service = import_service
        self.export_service = export_service
        self.actions = SeatingActions(engine, QtConfirmer(self))

        self.setWindowTitle(APP_NAME)
        self.resize(1280, 820)

        # Pages
        self.page_people = PeoplePage(self.engine, self.actions, on_locate=self._locate_seat)
        self.page_layout = LayoutPage(self.engine, self.actions, cfg, selected_person=self.page_people.selected_person_id)
        self.page_people.changed.connect(self.refresh)
        self.page_layout.changed.connect(self.refresh)

        splitter = QSplitter(Qt.Horizontal, self)
        splitter.addWidget(self.page_people)
        splitter.addWidget(self.page_layout)
        splitter.setStretchFactor(1, 1)
        splitter.setSizes([300, 980])
        self.setCentralWidget(splitter)

        # StatusBar
        self.status = QStatusBar(self)
        self.setStatusBar(self.status)
        self.lbl_people = QLabel("Invités : 0/0 placés", self)
        self.status.addPermanentWidget(self.lbl_people)

        # Menus & Toolbar
        self._create_actions()
        self._create_menus()
        self._create_toolbar()

        self.refresh()
        self._reload_configs()

    # --- Actions/menus/toolbar
    def _create_actions(self) -> None:
        self.act_save = QAction("Enregistrer la configuration", self); self.act_save.setShortcut(QKeySequence.Save)
        self.act_save_as = QAction("Enregistrer sous…", self); self.act_save_as.setShortcut(QKeySequence.SaveAs)
        self.act_delete = QAction("Supprimer la configuration", self)
        self.act_quit = QAction("Quitter", self); self.act_quit.setShortcut(QKeySequence.Quit)

        self.act_import_text = QAction("Ajouter en masse…", self)
        self.act_import_file = QAction("Importer des noms (CSV/TXT/Excel)…", self)
        self.act_import_json = QAction("Importer un plan (JSON)…", self)
        self.act_export_json = QAction("Exporter le plan (JSON)…", self)
        self.act_export_csv = QAction("Exporter le détail (CSV)…", self)
        self.act_export_csv_tables = QAction("Exporter par table (CSV)…", self)
        self.act_export_excel = QAction("Exporter (Excel)…", self)
        self.act_export_pdf = QAction("Exporter pour impression (PDF)…", self)

        self.act_save.triggered.connect(self.on_save_config)
        self.act_save_as.triggered.connect(self.on_save_config_as)
        self.act_delete.triggered.connect(self.on_delete_config)
        self.act_quit.triggered.connect(self.close)

        self.act_import_text.triggered.connect(self.on_import_text)
        self.act_import_file.triggered.connect(self.on_import_file)
        self.act_import_json.triggered.connect(self.on_import_json)
        self.act_export_json.triggered.connect(
            lambda: self._export("Exporter le plan", "seating-layout.json", "JSON (*.json)", self.export_service.export_json))
        self.act_export_csv.triggered.connect(
            lambda: self._export("Exporter le détail", "seating-layout-detailed.csv", "CSV (*.csv)", self.export_service.export_csv_detail))
        self.act_export_csv_tables.triggered.connect(
            lambda: self._export("Exporter par table", "seating-layout-by-table.csv", "CSV (*.csv)", self.export_service.export_csv_by_table))
        self.act_export_excel.triggered.connect(
            lambda: self._export("Exporter (Excel)", "seating-layout.xlsx", "Excel (*.xlsx)", self.export_service.export_excel))
        self.act_export_pdf.triggered.connect(
            lambda: self._export("Exporter pour impression", "seating-layout.pdf", "PDF (*.pdf)", self.export_service.export_pdf))

    def _create_menus(self) -> None:
        bar = self.menuBar()
        m_file = bar.addMenu("&Fichier")
        m_file.addAction(self.act_save)
        m_file.addAction(self.act_save_as)
        m_file.addAction(self.act_delete)
        m_file.addSeparator()
        m_file.addAction(self.act_quit)

        m_import = bar.addMenu("&Importer")
        m_import.addAction(self.act_import_text)
        m_import.addAction(self.act_import_file)
        m_import.addAction(self.act_import_json)

        m_export = bar.addMenu("&Exporter")
        m_export.addAction(self.act_export_json)
        m_export.addAction(self.act_export_csv)
        m_export.addAction(self.act_export_csv_tables)
        m_export.addAction(self.act_export_excel)
        m_export.addAction(self.act_export_pdf)

    def _create_toolbar(self) -> None:
        tb = QToolBar("Actions", self)
        tb.setMovable(False)
        tb.setToolButtonStyle(Qt.ToolButtonTextBesideIcon)
        self.addToolBar(Qt.TopToolBarArea, tb)
        self.cmb_configs = QComboBox(self)
        self.cmb_configs.setMinimumWidth(260)
        self.cmb_configs.activated.connect(self.on_config_selected)
        tb.addWidget(self.cmb_configs)
        tb.addAction(self.act_save)
        tb.addAction(self.act_save_as)
        tb.addAction(self.act_delete)
        tb.addSeparator()
        tb.addAction(self.act_import_text)
        tb.addAction(self.act_import_file)
        tb.addSeparator()
        tb.addAction(self.act_export_csv)
        tb.addAction(self.act_export_excel)
        tb.addAction(self.act_export_pdf)

    # --- rafraîchissement
    def refresh(self) -> None:
        self.page_people.reload()
        self.page_layout.canvas.update()
        seated = len(self.engine.store.assignments())
        self.lbl_people.setText(f"Invités : {seated}/{len(self.engine.people)} placés")

    def reload_all(self) -> None:
        self.page_layout.reload()
        self.refresh()

    def _reload_configs(self, select: str | None = None) -> None:
        current = select if select is not None else self.cmb_configs.currentData()
        self.cmb_configs.clear()
        self.cmb_configs.addItem("Choisir une configuration…", None)
        try:
            configs = self.engine.list_configs()
        except PersistenceError as exc:
            self.status.showMessage(f"Lecture des configurations impossible : {exc}", 5000)
            configs = []
        for info in configs:
            stamp = datetime.fromtimestamp(info.timestamp / 1000).strftime("%Y-%m-%d %H:%M:%S")
            self.cmb_configs.addItem(f"{info.name} ({stamp})", info.name)
        idx = self.cmb_configs.findData(current) if current else -1
        self.cmb_configs.setCurrentIndex(max(idx, 0))

    def _locate_seat(self, seat) -> None:
        self.page_layout.focus_seat(seat)

    # --- Handlers configurations
    def on_config_selected(self, index: int) -> None:
        name = self.cmb_configs.itemData(index)
        if not name:
            return
        try:
            loaded = self.engine.load_config(name)
        except PersistenceError as exc:
            QMessageBox.critical(self, "Erreur de lecture", str(exc)); return
        if loaded:
            self.reload_all()
            self.status.showMessage(f"Configuration « {name} » chargée", 3000)

    def on_save_config(self) -> None:
        name = self.cmb_configs.currentData()
        if not name:
            QMessageBox.warning(self, "Aucune configuration",
                                "Choisissez une configuration existante ou utilisez « Enregistrer sous ».")
            return
        try:
            self.engine.save_config(name)
        except PersistenceError as exc:
            QMessageBox.critical(self, "Erreur d'enregistrement", str(exc)); return
        self._reload_configs(select=name)
        self.status.showMessage(f"Configuration « {name} » enregistrée", 3000)

    def on_save_config_as(self) -> None:
        name, ok = QInputDialog.getText(self, "Enregistrer sous", "Nom de la nouvelle configuration :")
        if not ok or not name.strip():
            return
        try:
            saved = self.actions.save_config_as(name)
        except (PersistenceError, ValueError) as exc:
            QMessageBox.critical(self, "Erreur d'enregistrement", str(exc)); return
        if saved:
            self._reload_configs(select=name.strip())
            self.status.showMessage("Configuration enregistrée", 3000)

    def on_delete_config(self) -> None:
        name = self.cmb_configs.currentData()
        if not name:
            QMessageBox.warning(self, "Aucune configuration", "Choisissez d'abord une configuration."); return
        try:
            deleted = self.actions.delete_config(name)
        except PersistenceError as exc:
            QMessageBox.critical(self, "Erreur de suppression", str(exc)); return
        if deleted:
            self._reload_configs(select="")
            self.status.showMessage("Configuration supprimée", 3000)

    # --- Handlers import/export
    def on_import_text(self):
        dlg = BulkAddDialog(self)
        if not dlg.exec() or not dlg.get_names():
            return
        added = self.import_service.import_from_text(dlg.get_text())
        self.refresh()
        self.status.showMessage(f"{len(added)} nom(s) importé(s)", 3000)

    def on_import_file(self):
        path, _ = QFileDialog.getOpenFileName(self, "Importer des noms", "", "Listes (*.csv *.txt *.xlsx)")
        if not path:
            return
        try:
            added = self.import_service.import_from_file(path)
        except Exception as exc:
            log.exception("Import de noms échoué")
            QMessageBox.critical(self, "Erreur d'import", str(exc))
            return

        self.refresh()
        QMessageBox.information(self, "Import terminé", f"{len(added)} nom(s) importé(s).")

    def on_import_json(self):
        path, _ = QFileDialog.getOpenFileName(self, "Importer un plan", "", "JSON (*.json)")
        if not path:
            return
        try:
            self.import_service.import_layout_json(path)
        except (MalformedSnapshot, OSError) as exc:
            log.exception("Import du plan échoué")
            QMessageBox.critical(self, "Fichier JSON invalide", str(exc))
            return
        self.reload_all()
        self.status.showMessage("Plan importé", 3000)

    def _export(self, title: str, suggested: str, file_filter: str, exporter) -> None:
        path, _ = QFileDialog.getSaveFileName(self, title, suggested, file_filter)
        if not path:
            return

        try:
            output = exporter(Path(path))
        except Exception as exc:
            log.exception("Export échoué : %s", title)
            QMessageBox.critical(self, "Erreur d'export", str(exc))
            return

        self.status.showMessage(f"Fichier généré : {output}", 5000)

    def closeEvent(self, event) -> None:
        snapshots = self.engine.snapshots
        if snapshots is not None:
            snapshots.flush_autosave()
        super().closeEvent(event)
