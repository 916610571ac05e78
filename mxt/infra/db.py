from __future__ import annotations
from pathlib import Path
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

Base = declarative_base()

def _enable_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignore les clés étrangères sans ce pragma : une assignation
    # ne doit jamais pointer vers un participant supprimé
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

def make_engine(db_path: Path):
    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    event.listen(engine, "connect", _enable_foreign_keys)
    return engine

def make_session_factory(engine):
    # expire_on_commit=False : les objets restent lisibles après la fermeture de session
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
