from __future__ import annotations

from datetime import date
from typing import Any

from .logging_config import get_logger
from .models import CollectionName
from .storage import CollectionBackend

log = get_logger(__name__)


MOCK_PROFESSIONALS: list[dict[str, Any]] = [
    {"id": "prof-1", "name": "Dr. Ana Silva", "specialty": "Cardiologia"},
    {"id": "prof-2", "name": "Dr. Bruno Costa", "specialty": "Dermatologia"},
    {"id": "prof-3", "name": "Dr. Carla Martins", "specialty": "Psicologia"},
]

MOCK_PATIENTS: list[dict[str, Any]] = [
    {"id": "pat-1", "name": "João Pereira", "phone": "11 98765-4321", "email": "joao.p@example.com", "professionalId": "prof-1"},
    {"id": "pat-2", "name": "Maria Oliveira", "phone": "21 91234-5678", "email": "maria.o@example.com", "professionalId": "prof-1"},
    {"id": "pat-3", "name": "Pedro Santos", "phone": "31 95555-4444", "email": "pedro.s@example.com", "professionalId": "prof-2"},
    {"id": "pat-4", "name": "Lucia Fernandes", "phone": "41 94321-8765", "email": "lucia.f@example.com", "professionalId": "prof-3"},
    {"id": "pat-5", "name": "Ricardo Alves", "phone": "51 98888-7777", "email": "ricardo.a@example.com", "professionalId": "prof-3"},
]


def mock_appointments(giorno: date | None = None) -> list[dict[str, Any]]:
    """Appuntamenti di esempio, tutti nella data indicata (default: oggi)."""
    d = (giorno or date.today()).isoformat()
    righe = [
        ("app-1", "pat-1", "João Pereira", "prof-1", "09:00", "Consulta de rotina", 200),
        ("app-2", "pat-2", "Maria Oliveira", "prof-1", "10:00", "Retorno", 150),
        ("app-3", "pat-3", "Pedro Santos", "prof-2", "14:00", "Primeira consulta", 250),
        ("app-4", "pat-4", "Lucia Fernandes", "prof-3", "11:00", "Sessão de terapia", 180),
    ]
    return [
        {
            "id": app_id,
            "patientId": pat_id,
            "patientName": pat_name,
            "professionalId": prof_id,
            "date": d,
            "time": ora,
            "notes": note,
            "sessionValue": valore,
        }
        for app_id, pat_id, pat_name, prof_id, ora, note, valore in righe
    ]


def ensure_seeded(backend: CollectionBackend, giorno: date | None = None) -> list[CollectionName]:
    """
    Popola i dati di esempio (idempotente): ogni collezione viene scritta
    solo se non è mai stata salvata. Ritorna i nomi inizializzati.
    """
    fixtures = {
        CollectionName.PROFESSIONALS: MOCK_PROFESSIONALS,
        CollectionName.PATIENTS: MOCK_PATIENTS,
        CollectionName.APPOINTMENTS: mock_appointments(giorno),
    }
    seeded = []
    for name, records in fixtures.items():
        if not backend.has_collection(name):
            backend.save_collection(name, records)
            seeded.append(name)

    if seeded:
        log.info("collections_seeded", collections=[n.value for n in seeded])
    return seeded
