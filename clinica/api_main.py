from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query, status
from pydantic import BaseModel, Field

from clinica.db import init_db
from clinica.finance import (
    DEFAULT_CLINIC_PERCENTAGE,
    DEFAULT_TOTAL_BILLED,
    billed_total,
    revenue_split,
)
from clinica.forms import AppointmentForm, PatientForm, ProfessionalForm
from clinica.logging_config import configure_logging
from clinica.queries import appointment_view, patient_view
from clinica.records import Appointment, Patient, Professional, UserRole
from clinica.seed import ensure_seeded
from clinica.services import (
    ClinicStore,
    PatientNotFoundError,
    ProfessionalMismatchError,
    ProfessionalNotFoundError,
    select_role,
)
from clinica.storage import SqlCollectionBackend

app = FastAPI(title="Clinica API", version="1.0.0")


def get_store() -> ClinicStore:
    return ClinicStore(SqlCollectionBackend())


# Startup

@app.on_event("startup")
def startup() -> None:
    # Crea tabelle e carica i dati di esempio (idempotente)
    configure_logging()
    init_db()
    ensure_seeded(SqlCollectionBackend())


# Schemi

class RoleIn(BaseModel):
    role: UserRole
    professional_id: str | None = Field(default=None, alias="professionalId")


class BulkDeleteIn(BaseModel):
    ids: list[str]


class SplitOut(BaseModel):
    total_billed: float = Field(serialization_alias="totalBilled")
    clinic_percentage: float = Field(serialization_alias="clinicPercentage")
    clinic_share: float = Field(serialization_alias="clinicShare")
    professional_share: float = Field(serialization_alias="professionalShare")


def _not_found(e: LookupError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _mismatch(e: ProfessionalMismatchError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


# Ruolo (dichiarato, non autenticato)

@app.post("/api/session")
def api_session(payload: RoleIn, store: ClinicStore = Depends(get_store)) -> dict[str, Any]:
    try:
        user = select_role(store, payload.role, payload.professional_id)
    except ProfessionalNotFoundError as e:
        raise _not_found(e)
    return {
        "role": user.role.value,
        "professional": user.professional.to_raw() if user.professional else None,
    }


# Professionisti (area amministratore)

@app.get("/api/professionals", response_model=list[Professional])
def api_professionals(store: ClinicStore = Depends(get_store)) -> list[Professional]:
    return store.list_professionals()


@app.post("/api/professionals", response_model=Professional, status_code=status.HTTP_201_CREATED)
def api_add_professional(payload: ProfessionalForm, store: ClinicStore = Depends(get_store)) -> Professional:
    return store.add_professional(payload.to_new())


@app.put("/api/professionals/{professional_id}")
def api_update_professional(
    professional_id: str, payload: ProfessionalForm, store: ClinicStore = Depends(get_store)
) -> dict[str, Any]:
    prof = store.get_professional(professional_id)
    if prof is None:
        raise _not_found(ProfessionalNotFoundError(professional_id))
    return {"ok": store.update_professional(payload.apply_to(prof))}


@app.delete("/api/professionals/{professional_id}")
def api_delete_professional(professional_id: str, store: ClinicStore = Depends(get_store)) -> dict[str, Any]:
    store.delete_professional(professional_id)
    return {"ok": True}


# Pazienti (area professionista)

@app.get("/api/professionals/{professional_id}/patients", response_model=list[Patient])
def api_patients(
    professional_id: str,
    q: str = Query(""),
    sort: str = Query("name"),
    desc: bool = Query(False),
    store: ClinicStore = Depends(get_store),
) -> list[Patient]:
    try:
        return patient_view(store.list_patients_by_professional(professional_id), q, sort, desc)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@app.post(
    "/api/professionals/{professional_id}/patients",
    response_model=Patient,
    status_code=status.HTTP_201_CREATED,
)
def api_add_patient(professional_id: str, payload: PatientForm, store: ClinicStore = Depends(get_store)) -> Patient:
    try:
        return store.add_patient(payload.to_new(professional_id))
    except ProfessionalNotFoundError as e:
        raise _not_found(e)


@app.put("/api/patients/{patient_id}")
def api_update_patient(patient_id: str, payload: PatientForm, store: ClinicStore = Depends(get_store)) -> dict[str, Any]:
    patient = store.get_patient(patient_id)
    if patient is None:
        raise _not_found(PatientNotFoundError(patient_id))
    return {"ok": store.update_patient(payload.apply_to(patient))}


@app.post("/api/patients/bulk-delete")
def api_delete_patients(payload: BulkDeleteIn, store: ClinicStore = Depends(get_store)) -> dict[str, Any]:
    removed_appointments = store.cascade_radius(payload.ids)
    store.delete_patients(payload.ids)
    return {"ok": True, "appointmentsRemoved": removed_appointments}


# Appuntamenti

@app.get("/api/professionals/{professional_id}/appointments", response_model=list[Appointment])
def api_appointments(
    professional_id: str,
    q: str = Query(""),
    start: str | None = Query(None),
    end: str | None = Query(None),
    sort: str = Query("time"),
    desc: bool = Query(False),
    store: ClinicStore = Depends(get_store),
) -> list[Appointment]:
    try:
        return appointment_view(store.list_appointments_by_professional(professional_id), q, start, end, sort, desc)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@app.post(
    "/api/professionals/{professional_id}/appointments",
    response_model=Appointment,
    status_code=status.HTTP_201_CREATED,
)
def api_add_appointment(
    professional_id: str, payload: AppointmentForm, store: ClinicStore = Depends(get_store)
) -> Appointment:
    try:
        return store.add_appointment(payload.to_new(professional_id))
    except PatientNotFoundError as e:
        raise _not_found(e)
    except ProfessionalMismatchError as e:
        raise _mismatch(e)


@app.put("/api/appointments/{appointment_id}")
def api_update_appointment(
    appointment_id: str, payload: AppointmentForm, store: ClinicStore = Depends(get_store)
) -> dict[str, Any]:
    current = store.get_appointment(appointment_id)
    if current is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Appointment not found: {appointment_id}")
    try:
        return {"ok": store.update_appointment(payload.apply_to(current))}
    except PatientNotFoundError as e:
        raise _not_found(e)
    except ProfessionalMismatchError as e:
        raise _mismatch(e)


@app.delete("/api/appointments/{appointment_id}")
def api_delete_appointment(appointment_id: str, store: ClinicStore = Depends(get_store)) -> dict[str, Any]:
    store.delete_appointment(appointment_id)
    return {"ok": True}


# Finanza (area amministratore)

@app.get("/api/finance/split", response_model=SplitOut)
def api_split(
    total_billed: float = Query(DEFAULT_TOTAL_BILLED, alias="totalBilled"),
    clinic_percentage: float = Query(DEFAULT_CLINIC_PERCENTAGE, alias="clinicPercentage"),
) -> SplitOut:
    s = revenue_split(total_billed, clinic_percentage)
    return SplitOut(**asdict(s))


@app.get("/api/professionals/{professional_id}/billed")
def api_billed(
    professional_id: str,
    start: str | None = Query(None),
    end: str | None = Query(None),
    store: ClinicStore = Depends(get_store),
) -> dict[str, Any]:
    total = billed_total(store.list_appointments_by_professional(professional_id), start, end)
    return {"professionalId": professional_id, "totalBilled": total}
