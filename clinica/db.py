from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

load_dotenv()

# DB SQLite su file nella root del progetto (sovrascrivibile da env)
DB_PATH = Path(__file__).resolve().parents[1] / "clinica.sqlite"
DATABASE_URL = os.getenv("CLINICA_DATABASE_URL", f"sqlite:///{DB_PATH}")
SQL_ECHO = os.getenv("CLINICA_SQL_ECHO", "0").lower() in ("1", "true", "yes")


def make_engine(url: str = DATABASE_URL, echo: bool = SQL_ECHO) -> Engine:
    """
    Crea l'engine. Per `sqlite:///:memory:` usa una sola connessione condivisa,
    altrimenti ogni sessione vedrebbe un DB vuoto diverso.
    """
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            url,
            echo=echo,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, echo=echo, future=True)


def make_session_factory(bind: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=bind,
        autoflush=False,
        autocommit=False,
        future=True,
        expire_on_commit=False,
    )


engine = make_engine()
SessionLocal = make_session_factory(engine)


class Base(DeclarativeBase):
    """Base ORM per tutti i modelli."""
    pass


@contextmanager
def db_session(factory: Callable[[], Session] = SessionLocal) -> Iterator[Session]:
    """
    Context manager per gestire correttamente la sessione:
    - commit se tutto ok
    - rollback su eccezioni
    - close sempre
    """
    session: Session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(bind: Engine = engine) -> None:
    """Crea le tabelle se non esistono."""
    # registra i modelli nel metadata prima del create_all
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=bind)
