"""
Persistenza delle collezioni: nome -> array JSON di record.

Ogni salvataggio sostituisce l'intera collezione. Un contenuto illeggibile
viene letto come collezione vuota (mai un errore per il chiamante).
"""
from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Callable, Mapping, Protocol, Sequence

from sqlalchemy.orm import Session

from .db import SessionLocal, db_session
from .logging_config import get_logger
from .models import CollectionName, Collezione

log = get_logger(__name__)

RawRecord = dict[str, Any]


class CollectionBackend(Protocol):
    def has_collection(self, name: CollectionName) -> bool: ...

    def load_collection(self, name: CollectionName) -> list[RawRecord]: ...

    def save_collection(self, name: CollectionName, records: Sequence[Mapping[str, Any]]) -> None: ...

    def save_many(self, collections: Mapping[CollectionName, Sequence[Mapping[str, Any]]]) -> None: ...


def _decode(name: CollectionName, payload: str | None) -> list[RawRecord]:
    if payload is None:
        return []
    try:
        data = json.loads(payload)
    except (TypeError, ValueError):
        log.warning("malformed_collection", collection=name.value)
        return []
    if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
        log.warning("malformed_collection", collection=name.value)
        return []
    return data


# =========================
# Backend SQLite (SQLAlchemy)
# =========================
class SqlCollectionBackend:
    """Una riga della tabella `collezioni` per ogni nome di collezione."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal) -> None:
        self._session_factory = session_factory

    def has_collection(self, name: CollectionName) -> bool:
        with db_session(self._session_factory) as s:
            return s.get(Collezione, name.value) is not None

    def load_collection(self, name: CollectionName) -> list[RawRecord]:
        with db_session(self._session_factory) as s:
            row = s.get(Collezione, name.value)
            return _decode(name, row.contenuto if row else None)

    def save_collection(self, name: CollectionName, records: Sequence[Mapping[str, Any]]) -> None:
        self.save_many({name: records})

    def save_many(self, collections: Mapping[CollectionName, Sequence[Mapping[str, Any]]]) -> None:
        # tutte le collezioni nella stessa transazione
        with db_session(self._session_factory) as s:
            for name, records in collections.items():
                payload = json.dumps([dict(r) for r in records], ensure_ascii=False)
                row = s.get(Collezione, name.value)
                if row is None:
                    s.add(Collezione(nome=name.value, contenuto=payload))
                else:
                    row.contenuto = payload
                    row.aggiornata_il = datetime.utcnow()


# =========================
# Backend in memoria (test)
# =========================
class MemoryCollectionBackend:
    """Tiene il JSON serializzato, così load/save si comportano come su disco."""

    def __init__(self, initial: Mapping[CollectionName, str] | None = None) -> None:
        self._data: dict[CollectionName, str] = dict(initial or {})

    def has_collection(self, name: CollectionName) -> bool:
        return name in self._data

    def load_collection(self, name: CollectionName) -> list[RawRecord]:
        return _decode(name, self._data.get(name))

    def save_collection(self, name: CollectionName, records: Sequence[Mapping[str, Any]]) -> None:
        self._data[name] = json.dumps([dict(r) for r in records], ensure_ascii=False)

    def save_many(self, collections: Mapping[CollectionName, Sequence[Mapping[str, Any]]]) -> None:
        # serializza tutto prima di toccare lo stato
        staged = {
            name: json.dumps([dict(r) for r in records], ensure_ascii=False)
            for name, records in collections.items()
        }
        self._data.update(staged)
