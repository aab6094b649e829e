"""
Filtri, ricerca, ordinamento e selezione multipla.

Funzioni pure sugli snapshot restituiti da ClinicStore: non leggono né
scrivono l'archivio. Solo PatientSelection conserva stato tra una chiamata
e l'altra.
"""
from __future__ import annotations

import unicodedata
from typing import Callable, Iterable, Iterator, Sequence

from .records import Appointment, Patient

APPOINTMENT_SORT_KEYS: dict[str, Callable[[Appointment], str]] = {
    "time": lambda a: a.time,
    "patientName": lambda a: a.patient_name,
}

PATIENT_SORT_KEYS: dict[str, Callable[[Patient], str]] = {
    "name": lambda p: p.name,
    "email": lambda p: p.email,
    "phone": lambda p: p.phone,
}


def collation_key(value: str) -> str:
    """Chiave di confronto senza accenti e senza maiuscole ("Élan" ~ "elan")."""
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()


def _contains(haystack: str, needle: str) -> bool:
    return needle.casefold() in haystack.casefold()


# =========================
# Ricerca
# =========================
def search_appointments(appointments: Iterable[Appointment], term: str = "") -> list[Appointment]:
    if not term.strip():
        return list(appointments)
    return [a for a in appointments if _contains(a.patient_name, term) or _contains(a.notes, term)]


def search_patients(patients: Iterable[Patient], term: str = "") -> list[Patient]:
    if not term.strip():
        return list(patients)
    return [p for p in patients if _contains(p.name, term)]


def filter_by_date_range(
    appointments: Iterable[Appointment],
    start: str | None = None,
    end: str | None = None,
) -> list[Appointment]:
    # date ISO YYYY-MM-DD: il confronto fra stringhe rispetta l'ordine di calendario
    return [
        a
        for a in appointments
        if (not start or a.date >= start) and (not end or a.date <= end)
    ]


# =========================
# Ordinamento
# =========================
def sort_appointments(
    appointments: Iterable[Appointment],
    key: str = "time",
    descending: bool = False,
) -> list[Appointment]:
    try:
        getter = APPOINTMENT_SORT_KEYS[key]
    except KeyError:
        raise ValueError(f"Unsupported appointment sort key: {key!r}") from None
    return sorted(
        appointments,
        key=lambda a: (collation_key(getter(a)), getter(a)),
        reverse=descending,
    )


def sort_patients(
    patients: Iterable[Patient],
    key: str = "name",
    descending: bool = False,
) -> list[Patient]:
    try:
        getter = PATIENT_SORT_KEYS[key]
    except KeyError:
        raise ValueError(f"Unsupported patient sort key: {key!r}") from None
    return sorted(patients, key=lambda p: collation_key(getter(p)), reverse=descending)


def appointment_view(
    appointments: Iterable[Appointment],
    term: str = "",
    start: str | None = None,
    end: str | None = None,
    sort_key: str = "time",
    descending: bool = False,
) -> list[Appointment]:
    """Agenda come la mostra la UI: ricerca, intervallo date, ordinamento."""
    filtered = filter_by_date_range(search_appointments(appointments, term), start, end)
    return sort_appointments(filtered, sort_key, descending)


def patient_view(
    patients: Iterable[Patient],
    term: str = "",
    sort_key: str = "name",
    descending: bool = False,
) -> list[Patient]:
    return sort_patients(search_patients(patients, term), sort_key, descending)


# =========================
# Selezione multipla
# =========================
class PatientSelection:
    """
    Insieme degli id pazienti spuntati, indipendente dal filtro corrente.

    Le operazioni "visible" toccano solo gli id passati (quelli mostrati dal
    filtro): le selezioni fuori dal filtro restano come sono.
    """

    def __init__(self, ids: Iterable[str] = ()) -> None:
        self._ids: set[str] = set(ids)

    def __contains__(self, patient_id: object) -> bool:
        return patient_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._ids))

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(self._ids)

    def toggle(self, patient_id: str) -> bool:
        """Inverte lo stato; ritorna True se ora è selezionato."""
        if patient_id in self._ids:
            self._ids.discard(patient_id)
            return False
        self._ids.add(patient_id)
        return True

    def select_all_visible(self, visible_ids: Iterable[str]) -> None:
        self._ids.update(visible_ids)

    def deselect_all_visible(self, visible_ids: Iterable[str]) -> None:
        self._ids.difference_update(visible_ids)

    def all_visible_selected(self, visible_ids: Iterable[str]) -> bool:
        visible = set(visible_ids)
        return bool(visible) and visible <= self._ids

    def toggle_all_visible(self, visible_ids: Sequence[str]) -> None:
        # comportamento della checkbox "seleziona tutti"
        if self.all_visible_selected(visible_ids):
            self.deselect_all_visible(visible_ids)
        else:
            self.select_all_visible(visible_ids)

    def clear(self) -> None:
        self._ids.clear()
