from __future__ import annotations

import argparse
import sys

from clinica.db import init_db
from clinica.finance import DEFAULT_CLINIC_PERCENTAGE, DEFAULT_TOTAL_BILLED, billed_total, revenue_split
from clinica.forms import AppointmentForm, PatientForm, ProfessionalForm
from clinica.logging_config import configure_logging
from clinica.queries import appointment_view, patient_view
from clinica.seed import ensure_seeded
from clinica.services import ClinicError, ClinicStore
from clinica.storage import SqlCollectionBackend


def cmd_init(args: argparse.Namespace, store: ClinicStore) -> None:
    print(
        "DB inizializzato: "
        f"{len(store.list_professionals())} professionisti, "
        f"{len(store.list_patients())} pazienti, "
        f"{len(store.list_appointments())} appuntamenti."
    )


def cmd_list(args: argparse.Namespace, store: ClinicStore) -> None:
    if args.entity == "professionals":
        for p in store.list_professionals():
            print(f"{p.id} | {p.name} | {p.specialty}")
    elif args.entity == "patients":
        patients = (
            store.list_patients_by_professional(args.professional_id)
            if args.professional_id
            else store.list_patients()
        )
        for p in patient_view(patients, args.search or "", args.sort or "name", args.desc):
            print(f"{p.id} | {p.name} | {p.email or '-'} | {p.phone or '-'}")
    elif args.entity == "appointments":
        apps = (
            store.list_appointments_by_professional(args.professional_id)
            if args.professional_id
            else store.list_appointments()
        )
        view = appointment_view(apps, args.search or "", args.start, args.end, args.sort or "time", args.desc)
        for a in view:
            print(f"{a.id} | {a.date} {a.time} | {a.patient_name} | {a.session_value:.2f} | {a.notes or '-'}")


def cmd_add_professional(args: argparse.Namespace, store: ClinicStore) -> None:
    form = ProfessionalForm(name=args.name, specialty=args.specialty)
    prof = store.add_professional(form.to_new())
    print(f"Professionista creato: {prof.id}")


def cmd_add_patient(args: argparse.Namespace, store: ClinicStore) -> None:
    form = PatientForm(name=args.name, email=args.email or "", phone=args.phone or "")
    patient = store.add_patient(form.to_new(args.professional_id))
    print(f"Paziente creato: {patient.id}")


def cmd_book(args: argparse.Namespace, store: ClinicStore) -> None:
    form = AppointmentForm(
        patient_id=args.patient_id,
        date=args.date,
        time=args.time,
        notes=args.notes or "",
        session_value=args.value,
    )
    app = store.add_appointment(form.to_new(args.professional_id))
    print(f"Appuntamento creato: {app.id} ({app.patient_name}, {app.date} {app.time})")


def cmd_delete_professional(args: argparse.Namespace, store: ClinicStore) -> None:
    store.delete_professional(args.professional_id)
    print("Professionista eliminato (con pazienti e appuntamenti).")


def cmd_delete_patients(args: argparse.Namespace, store: ClinicStore) -> None:
    radius = store.cascade_radius(args.patient_ids)
    store.delete_patients(args.patient_ids)
    print(f"Pazienti eliminati: {len(set(args.patient_ids))}, appuntamenti eliminati: {len(radius)}")


def cmd_split(args: argparse.Namespace, store: ClinicStore) -> None:
    total = args.total
    if args.professional_id:
        total = billed_total(store.list_appointments_by_professional(args.professional_id), args.start, args.end)
    s = revenue_split(total, args.percentage)
    print(f"Totale fatturato : {s.total_billed:.2f}")
    print(f"Quota clinica    : {s.clinic_share:.2f} ({s.clinic_percentage:g}%)")
    print(f"Quota professionista: {s.professional_share:.2f}")


def cmd_serve(args: argparse.Namespace, store: ClinicStore) -> None:
    import uvicorn

    uvicorn.run("clinica.api_main:app", host=args.host, port=args.port)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="clinica", description="CLI Clinica (agenda e archivio locale)")
    sub = p.add_subparsers(required=True)

    p_init = sub.add_parser("init", help="Crea DB e carica dati di esempio")
    p_init.set_defaults(func=cmd_init)

    p_list = sub.add_parser("list", help="Lista entità")
    p_list.add_argument("entity", choices=["professionals", "patients", "appointments"])
    p_list.add_argument("--professional-id", default=None)
    p_list.add_argument("--search", default=None)
    p_list.add_argument("--sort", default=None, help="patients: name|email|phone, appointments: time|patientName")
    p_list.add_argument("--desc", action="store_true")
    p_list.add_argument("--start", default=None, help="Data ISO (YYYY-MM-DD)")
    p_list.add_argument("--end", default=None, help="Data ISO (YYYY-MM-DD)")
    p_list.set_defaults(func=cmd_list)

    p_addprof = sub.add_parser("add-professional", help="Crea professionista")
    p_addprof.add_argument("--name", required=True)
    p_addprof.add_argument("--specialty", required=True)
    p_addprof.set_defaults(func=cmd_add_professional)

    p_addp = sub.add_parser("add-patient", help="Crea paziente")
    p_addp.add_argument("--professional-id", required=True)
    p_addp.add_argument("--name", required=True)
    p_addp.add_argument("--email", default=None)
    p_addp.add_argument("--phone", default=None)
    p_addp.set_defaults(func=cmd_add_patient)

    p_book = sub.add_parser("book", help="Crea appuntamento")
    p_book.add_argument("--professional-id", required=True)
    p_book.add_argument("--patient-id", required=True)
    p_book.add_argument("--date", required=True, help="Data ISO es: 2026-01-14")
    p_book.add_argument("--time", required=True, help="Ora HH:MM es: 09:30")
    p_book.add_argument("--notes", default=None)
    p_book.add_argument("--value", default="0", help="Valore della sessione")
    p_book.set_defaults(func=cmd_book)

    p_delprof = sub.add_parser("delete-professional", help="Elimina professionista (a cascata)")
    p_delprof.add_argument("professional_id")
    p_delprof.set_defaults(func=cmd_delete_professional)

    p_delp = sub.add_parser("delete-patients", help="Elimina pazienti e i loro appuntamenti")
    p_delp.add_argument("patient_ids", nargs="+")
    p_delp.set_defaults(func=cmd_delete_patients)

    p_split = sub.add_parser("split", help="Calcolo quota clinica")
    p_split.add_argument("--total", type=float, default=DEFAULT_TOTAL_BILLED)
    p_split.add_argument("--percentage", type=float, default=DEFAULT_CLINIC_PERCENTAGE)
    p_split.add_argument("--professional-id", default=None, help="Usa la somma delle sessioni come totale")
    p_split.add_argument("--start", default=None)
    p_split.add_argument("--end", default=None)
    p_split.set_defaults(func=cmd_split)

    p_serve = sub.add_parser("serve", help="Avvia l'API HTTP")
    p_serve.add_argument("--host", default="127.0.0.1")
    p_serve.add_argument("--port", type=int, default=8000)
    p_serve.set_defaults(func=cmd_serve)

    return p


def main(argv: list[str] | None = None, store: ClinicStore | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging()
    if store is None:
        init_db()  # garantisce tabelle
        store = ClinicStore(SqlCollectionBackend())
    ensure_seeded(store.backend)

    try:
        args.func(args, store)
    except (ClinicError, ValueError) as e:
        # ValueError copre anche gli errori di validazione pydantic
        print(f"Errore: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
