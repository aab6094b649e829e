"""
Record tipizzati delle tre collezioni.

I campi Python sono snake_case; su disco (e via API) si usano le chiavi
camelCase storiche (`professionalId`, `patientName`, `sessionValue`).
"""
from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    PROFESSIONAL = "PROFESSIONAL"


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    def to_raw(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class NewProfessional(_Record):
    name: str
    specialty: str


class Professional(NewProfessional):
    id: str


class NewPatient(_Record):
    name: str
    email: str = ""
    phone: str = ""
    professional_id: str = Field(alias="professionalId")


class Patient(NewPatient):
    id: str


class NewAppointment(_Record):
    patient_id: str = Field(alias="patientId")
    professional_id: str = Field(alias="professionalId")
    date: str
    time: str
    notes: str = ""
    session_value: float = Field(default=0, ge=0, alias="sessionValue")


class Appointment(NewAppointment):
    id: str
    # copia del nome paziente, aggiornata solo a create/update dell'appuntamento
    patient_name: str = Field(alias="patientName")
