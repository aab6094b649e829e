from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .queries import filter_by_date_range
from .records import Appointment

DEFAULT_TOTAL_BILLED = 10000.0
DEFAULT_CLINIC_PERCENTAGE = 20.0


@dataclass(frozen=True)
class RevenueSplit:
    total_billed: float
    clinic_percentage: float
    clinic_share: float
    professional_share: float


def clinic_share(total_billed: float, clinic_percentage: float) -> float:
    """Quota da versare alla clinica."""
    return (total_billed * clinic_percentage) / 100


def revenue_split(
    total_billed: float = DEFAULT_TOTAL_BILLED,
    clinic_percentage: float = DEFAULT_CLINIC_PERCENTAGE,
) -> RevenueSplit:
    share = clinic_share(total_billed, clinic_percentage)
    return RevenueSplit(
        total_billed=total_billed,
        clinic_percentage=clinic_percentage,
        clinic_share=share,
        professional_share=total_billed - share,
    )


def billed_total(
    appointments: Iterable[Appointment],
    start: str | None = None,
    end: str | None = None,
) -> float:
    """Somma dei sessionValue nell'intervallo di date (estremi inclusi)."""
    return sum(a.session_value for a in filter_by_date_range(appointments, start, end))
