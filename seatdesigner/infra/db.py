from __future__ import annotations
from pathlib import Path
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

Base = declarative_base()

def sqlite_url(db_path: Path) -> str:
    return f"sqlite:///{Path(db_path).as_posix()}"

def make_engine(db_path: Path, echo: bool = False):
    return create_engine(sqlite_url(db_path), echo=echo, future=True)

def make_session_factory(engine):
    # les valeurs lues restent accessibles une fois la session fermée
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)
