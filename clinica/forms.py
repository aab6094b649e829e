"""
Adattatore tra i valori grezzi dei form (stringhe, numeri) e gli input
tipizzati dell'archivio. L'archivio non valida i contenuti: lo fa questo
strato, prima di chiamarlo.
"""
from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .records import Appointment, NewAppointment, NewPatient, NewProfessional, Patient, Professional


def coerce_session_value(value: Any) -> float:
    """Numero >= 0; vuoto, non numerico o negativo diventa 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(str(value).strip().replace(",", ".")) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0
    return number


class _Form(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class ProfessionalForm(_Form):
    name: str = Field(..., min_length=1)
    specialty: str = Field(..., min_length=1)

    def to_new(self) -> NewProfessional:
        return NewProfessional(name=self.name, specialty=self.specialty)

    def apply_to(self, prof: Professional) -> Professional:
        return prof.model_copy(update=self.model_dump())


class PatientForm(_Form):
    name: str = Field(..., min_length=1)
    email: str = ""
    phone: str = ""

    def to_new(self, professional_id: str) -> NewPatient:
        return NewPatient(professional_id=professional_id, **self.model_dump())

    def apply_to(self, patient: Patient) -> Patient:
        return patient.model_copy(update=self.model_dump())


class AppointmentForm(_Form):
    patient_id: str = Field(..., min_length=1, alias="patientId")
    date: str = Field(..., min_length=1)
    time: str = Field(..., min_length=1)
    notes: str = ""
    session_value: float = Field(default=0, alias="sessionValue")

    @field_validator("session_value", mode="before")
    @classmethod
    def _session_value(cls, v: Any) -> float:
        return coerce_session_value(v)

    def to_new(self, professional_id: str) -> NewAppointment:
        return NewAppointment(professional_id=professional_id, **self.model_dump())

    def apply_to(self, app: Appointment) -> Appointment:
        # patientName viene riallineato dall'archivio in update_appointment
        return app.model_copy(update=self.model_dump())
