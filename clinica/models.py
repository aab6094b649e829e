from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .db import Base


class CollectionName(str, enum.Enum):
    PROFESSIONALS = "clinic_professionals"
    PATIENTS = "clinic_patients"
    APPOINTMENTS = "clinic_appointments"


class Collezione(Base):
    """
    Una riga per collezione: l'intero array JSON dei record sta in `contenuto`.
    Il salvataggio sostituisce sempre l'intera collezione.
    """
    __tablename__ = "collezioni"

    nome: Mapped[str] = mapped_column(String(64), primary_key=True)
    contenuto: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    aggiornata_il: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"Collezione({self.nome})"
