from __future__ import annotations
from pathlib import Path
from typing import List, Optional
from contextlib import contextmanager

from sqlalchemy import select, delete

from seatdesigner.infra.db import Base, make_engine, make_session_factory
from seatdesigner.infra.models_orm import StoredEntryORM

class Persistence:
    """
    Une façade clé/valeur au-dessus d'une base SQLite locale.
    - open(db_path) → crée la BD si besoin et l'ouvre
    - close() → ferme le contexte
    - get / set / delete / keys(prefix)
    """

    def __init__(self, db_path: Optional[Path] = None) -> None:
        self.db_path: Optional[Path] = None
        self.engine = None
        self.Session = None
        if db_path is not None:
            self.open(db_path)

    # --- utils
    @property
    def is_open(self) -> bool:
        return self.Session is not None

    @contextmanager
    def session_scope(self):
        if not self.Session:
            raise RuntimeError("BD non initialisée")
        s = self.Session()
        try:
            yield s
            s.commit()
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()

    # --- lifecycle
    def open(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.engine = make_engine(self.db_path)
        self.Session = make_session_factory(self.engine)
        Base.metadata.create_all(self.engine)

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
        self.db_path = None
        self.engine = None
        self.Session = None

    # --- clé/valeur
    def get(self, key: str) -> Optional[str]:
        with self.session_scope() as s:
            row = s.get(StoredEntryORM, key)
            return row.value if row else None

    def set(self, key: str, value: str) -> None:
        with self.session_scope() as s:
            row = s.get(StoredEntryORM, key)
            if row:
                row.value = value
            else:
                s.add(StoredEntryORM(key=key, value=value))

    def delete(self, key: str) -> bool:
        with self.session_scope() as s:
            result = s.execute(delete(StoredEntryORM).where(StoredEntryORM.key == key))
            return bool(result.rowcount)

    def keys(self, prefix: str = "") -> List[str]:
        with self.session_scope() as s:
            stmt = select(StoredEntryORM.key).order_by(StoredEntryORM.key)
            if prefix:
                stmt = stmt.where(StoredEntryORM.key.startswith(prefix, autoescape=True))
            return list(s.scalars(stmt).all())
