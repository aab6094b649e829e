from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Iterable, TypeVar

from pydantic import ValidationError

from .logging_config import get_logger
from .models import CollectionName
from .records import (
    Appointment,
    NewAppointment,
    NewPatient,
    NewProfessional,
    Patient,
    Professional,
    UserRole,
    _Record,
)
from .storage import CollectionBackend

log = get_logger(__name__)

R = TypeVar("R", bound=_Record)


# =========================
# Errori di dominio
# =========================
class ClinicError(Exception):
    """Errore base dell'archivio clinica."""


class PatientNotFoundError(ClinicError, LookupError):
    def __init__(self, patient_id: str) -> None:
        super().__init__(f"Patient not found: {patient_id}")
        self.patient_id = patient_id


class ProfessionalNotFoundError(ClinicError, LookupError):
    def __init__(self, professional_id: str) -> None:
        super().__init__(f"Professional not found: {professional_id}")
        self.professional_id = professional_id


class ProfessionalMismatchError(ClinicError, ValueError):
    """L'appuntamento deve avere lo stesso professionista del paziente."""

    def __init__(self, patient_id: str, professional_id: str) -> None:
        super().__init__(f"Patient {patient_id} does not belong to professional {professional_id}")
        self.patient_id = patient_id
        self.professional_id = professional_id


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex}"


# =========================
# Archivio
# =========================
class ClinicStore:
    """
    CRUD e integrità referenziale sulle tre collezioni.

    Ogni operazione legge la collezione completa, la modifica e la salva per
    intero prima di tornare. Le liste restituite sono snapshot: modificarle
    non tocca l'archivio.
    """

    def __init__(self, backend: CollectionBackend) -> None:
        self.backend = backend

    def _load(self, name: CollectionName, model: type[R]) -> list[R]:
        out: list[R] = []
        for raw in self.backend.load_collection(name):
            try:
                out.append(model.model_validate(raw))
            except ValidationError:
                log.warning("malformed_record_skipped", collection=name.value, record_id=raw.get("id"))
        return out

    @staticmethod
    def _raw(records: Iterable[_Record]) -> list[dict]:
        return [r.to_raw() for r in records]

    def _save(self, name: CollectionName, records: Iterable[_Record]) -> None:
        self.backend.save_collection(name, self._raw(records))

    @staticmethod
    def _replace(records: list[R], updated: R) -> bool:
        for i, r in enumerate(records):
            if r.id == updated.id:
                records[i] = updated
                return True
        return False

    # ---------- Professionisti ----------
    def list_professionals(self) -> list[Professional]:
        return self._load(CollectionName.PROFESSIONALS, Professional)

    def get_professional(self, professional_id: str) -> Professional | None:
        return next((p for p in self.list_professionals() if p.id == professional_id), None)

    def add_professional(self, data: NewProfessional) -> Professional:
        professionals = self.list_professionals()
        prof = Professional(id=new_id("prof"), **data.model_dump())
        professionals.append(prof)
        self._save(CollectionName.PROFESSIONALS, professionals)
        log.info("professional_added", professional_id=prof.id)
        return prof

    def update_professional(self, updated: Professional) -> bool:
        professionals = self.list_professionals()
        if not self._replace(professionals, updated):
            log.debug("update_ignored", collection=CollectionName.PROFESSIONALS.value, record_id=updated.id)
            return False
        self._save(CollectionName.PROFESSIONALS, professionals)
        return True

    def delete_professional(self, professional_id: str) -> None:
        """
        Elimina il professionista e, prima, tutti i suoi pazienti con i
        relativi appuntamenti: nessun paziente resta orfano.
        """
        patient_ids = [p.id for p in self.list_patients_by_professional(professional_id)]
        if patient_ids:
            self.delete_patients(patient_ids)

        professionals = self.list_professionals()
        self._save(CollectionName.PROFESSIONALS, [p for p in professionals if p.id != professional_id])
        log.info("professional_deleted", professional_id=professional_id, patients_removed=len(patient_ids))

    # ---------- Pazienti ----------
    def list_patients(self) -> list[Patient]:
        return self._load(CollectionName.PATIENTS, Patient)

    def list_patients_by_professional(self, professional_id: str) -> list[Patient]:
        return [p for p in self.list_patients() if p.professional_id == professional_id]

    def get_patient(self, patient_id: str) -> Patient | None:
        return next((p for p in self.list_patients() if p.id == patient_id), None)

    def add_patient(self, data: NewPatient) -> Patient:
        if self.get_professional(data.professional_id) is None:
            raise ProfessionalNotFoundError(data.professional_id)

        patients = self.list_patients()
        patient = Patient(id=new_id("pat"), **data.model_dump())
        patients.append(patient)
        self._save(CollectionName.PATIENTS, patients)
        log.info("patient_added", patient_id=patient.id, professional_id=patient.professional_id)
        return patient

    def update_patient(self, updated: Patient) -> bool:
        # gli appuntamenti esistenti mantengono il vecchio patientName
        patients = self.list_patients()
        if not self._replace(patients, updated):
            log.debug("update_ignored", collection=CollectionName.PATIENTS.value, record_id=updated.id)
            return False
        self._save(CollectionName.PATIENTS, patients)
        return True

    def cascade_radius(self, patient_ids: Iterable[str]) -> list[str]:
        """Id degli appuntamenti che verrebbero eliminati insieme ai pazienti."""
        ids = set(patient_ids)
        return [a.id for a in self.list_appointments() if a.patient_id in ids]

    def delete_patients(self, patient_ids: Iterable[str]) -> None:
        """Elimina i pazienti e tutti i loro appuntamenti in un'unica scrittura."""
        ids = set(patient_ids)
        if not ids:
            return

        patients = [p for p in self.list_patients() if p.id not in ids]
        appointments = [a for a in self.list_appointments() if a.patient_id not in ids]
        self.backend.save_many(
            {
                CollectionName.PATIENTS: self._raw(patients),
                CollectionName.APPOINTMENTS: self._raw(appointments),
            }
        )
        log.info("patients_deleted", count=len(ids))

    def delete_patient(self, patient_id: str) -> None:
        self.delete_patients([patient_id])

    # ---------- Appuntamenti ----------
    def list_appointments(self) -> list[Appointment]:
        return self._load(CollectionName.APPOINTMENTS, Appointment)

    def list_appointments_by_professional(self, professional_id: str) -> list[Appointment]:
        return [a for a in self.list_appointments() if a.professional_id == professional_id]

    def get_appointment(self, appointment_id: str) -> Appointment | None:
        return next((a for a in self.list_appointments() if a.id == appointment_id), None)

    def _require_patient(self, patient_id: str, professional_id: str) -> Patient:
        patient = self.get_patient(patient_id)
        if patient is None:
            raise PatientNotFoundError(patient_id)
        if patient.professional_id != professional_id:
            raise ProfessionalMismatchError(patient_id, professional_id)
        return patient

    def add_appointment(self, data: NewAppointment) -> Appointment:
        patient = self._require_patient(data.patient_id, data.professional_id)

        appointments = self.list_appointments()
        app = Appointment(id=new_id("app"), patient_name=patient.name, **data.model_dump())
        appointments.append(app)
        self._save(CollectionName.APPOINTMENTS, appointments)
        log.info("appointment_added", appointment_id=app.id, patient_id=app.patient_id)
        return app

    def update_appointment(self, updated: Appointment) -> bool:
        """
        Sostituisce l'appuntamento con lo stesso id, riallineando patientName
        al nome attuale del paziente. PatientNotFoundError se il paziente non
        esiste (anche quando l'id dell'appuntamento è sconosciuto),
        ProfessionalMismatchError se il paziente è di un altro professionista.
        """
        patient = self._require_patient(updated.patient_id, updated.professional_id)
        updated = updated.model_copy(update={"patient_name": patient.name})

        appointments = self.list_appointments()
        if not self._replace(appointments, updated):
            log.debug("update_ignored", collection=CollectionName.APPOINTMENTS.value, record_id=updated.id)
            return False
        self._save(CollectionName.APPOINTMENTS, appointments)
        return True

    def delete_appointment(self, appointment_id: str) -> None:
        appointments = self.list_appointments()
        self._save(CollectionName.APPOINTMENTS, [a for a in appointments if a.id != appointment_id])
        log.info("appointment_deleted", appointment_id=appointment_id)


# =========================
# Scelta ruolo (nessuna autenticazione)
# =========================
@dataclass(frozen=True)
class LoggedInUser:
    role: UserRole
    professional: Professional | None = None


def select_role(store: ClinicStore, role: UserRole, professional_id: str | None = None) -> LoggedInUser:
    """
    Il ruolo è dichiarato dal chiamante e non verificato. Per il ruolo
    PROFESSIONAL serve un professionista esistente.
    """
    if role is UserRole.ADMIN:
        return LoggedInUser(role=role)

    prof = store.get_professional(professional_id) if professional_id else None
    if prof is None:
        raise ProfessionalNotFoundError(professional_id or "")
    return LoggedInUser(role=role, professional=prof)
