"""Tests for ClinicStore CRUD, referential integrity and cascades."""

import pytest

from clinica.models import CollectionName
from clinica.records import NewAppointment, NewPatient, NewProfessional, UserRole
from clinica.services import (
    ClinicStore,
    PatientNotFoundError,
    ProfessionalMismatchError,
    ProfessionalNotFoundError,
    select_role,
)


def _snapshot(store):
    return (store.list_professionals(), store.list_patients(), store.list_appointments())


def _new_app(patient_id="pat-1", professional_id="prof-1", **kw):
    fields = {"date": "2026-01-20", "time": "15:30", "notes": "Controle", "session_value": 120}
    fields.update(kw)
    return NewAppointment(patient_id=patient_id, professional_id=professional_id, **fields)


def test_seeded_patients_by_professional(store):
    names = [p.name for p in store.list_patients_by_professional("prof-1")]

    assert names == ["João Pereira", "Maria Oliveira"]


def test_delete_seeded_professional_cascades(store):
    store.delete_professional("prof-1")

    patient_ids = {p.id for p in store.list_patients()}
    appointment_ids = {a.id for a in store.list_appointments()}
    assert "pat-1" not in patient_ids and "pat-2" not in patient_ids
    assert appointment_ids == {"app-3", "app-4"}
    assert [p.id for p in store.list_professionals()] == ["prof-2", "prof-3"]


def test_delete_professional_removes_nothing_else(store):
    store.delete_professional("prof-3")

    assert {p.id for p in store.list_patients()} == {"pat-1", "pat-2", "pat-3"}
    assert {a.id for a in store.list_appointments()} == {"app-1", "app-2", "app-3"}


def test_delete_professional_without_patients(store):
    prof = store.add_professional(NewProfessional(name="Dr. Nova", specialty="Nutrição"))

    store.delete_professional(prof.id)

    assert store.get_professional(prof.id) is None
    assert len(store.list_patients()) == 5
    assert len(store.list_appointments()) == 4


def test_delete_patients_removes_exactly_the_set(store):
    before = store.list_patients()

    store.delete_patients(["pat-2", "pat-4"])

    after = store.list_patients()
    assert len(before) - 2 == len(after)
    assert [p.id for p in after] == ["pat-1", "pat-3", "pat-5"]
    assert [a.id for a in store.list_appointments()] == ["app-1", "app-3"]


def test_delete_patients_ignores_unknown_ids_and_duplicates(store):
    store.delete_patients(["pat-5", "pat-5", "pat-404"])

    assert len(store.list_patients()) == 4
    assert len(store.list_appointments()) == 4


def test_delete_patients_empty_set_is_noop(backend, store):
    store.delete_patients([])

    assert len(store.list_patients()) == 5


def test_delete_single_patient(store):
    store.delete_patient("pat-3")

    assert store.get_patient("pat-3") is None
    assert "app-3" not in {a.id for a in store.list_appointments()}


def test_cascade_radius_lists_affected_appointments(store):
    extra = store.add_appointment(_new_app("pat-2"))

    assert store.cascade_radius(["pat-2", "pat-3"]) == ["app-2", "app-3", extra.id]
    assert store.cascade_radius([]) == []
    # solo lettura
    assert len(store.list_appointments()) == 5


def test_add_professional_generates_new_id(store):
    a = store.add_professional(NewProfessional(name="Dr. A", specialty="X"))
    b = store.add_professional(NewProfessional(name="Dr. B", specialty="Y"))

    assert a.id.startswith("prof-") and b.id.startswith("prof-")
    assert a.id != b.id
    assert [p.id for p in store.list_professionals()][-2:] == [a.id, b.id]


def test_add_patient_appends_in_insertion_order(store):
    patient = store.add_patient(NewPatient(name="Ana Lima", email="ana@example.com", phone="1", professional_id="prof-2"))

    assert store.list_patients()[-1] == patient
    assert [p.id for p in store.list_patients_by_professional("prof-2")] == ["pat-3", patient.id]


def test_add_patient_requires_existing_professional(store):
    before = _snapshot(store)

    with pytest.raises(ProfessionalNotFoundError):
        store.add_patient(NewPatient(name="Órfão", professional_id="prof-404"))

    assert _snapshot(store) == before


def test_update_patient_replaces_record(store):
    patient = store.get_patient("pat-1")

    assert store.update_patient(patient.model_copy(update={"phone": "11 90000-0000"})) is True
    assert store.get_patient("pat-1").phone == "11 90000-0000"
    assert [p.id for p in store.list_patients()][0] == "pat-1"


def test_update_unknown_record_is_silently_ignored(store):
    ghost = store.get_patient("pat-1").model_copy(update={"id": "pat-404"})
    before = _snapshot(store)

    assert store.update_patient(ghost) is False
    prof = store.get_professional("prof-1").model_copy(update={"id": "prof-404"})
    assert store.update_professional(prof) is False
    assert _snapshot(store) == before


def test_update_professional(store):
    prof = store.get_professional("prof-2")

    store.update_professional(prof.model_copy(update={"specialty": "Dermatologia Estética"}))

    assert store.get_professional("prof-2").specialty == "Dermatologia Estética"


def test_add_appointment_sets_patient_name(store):
    app = store.add_appointment(_new_app("pat-2"))

    assert app.id.startswith("app-")
    assert app.patient_name == "Maria Oliveira"
    assert store.list_appointments()[-1] == app


def test_add_appointment_with_missing_patient_changes_nothing(store):
    before = _snapshot(store)

    with pytest.raises(PatientNotFoundError) as exc:
        store.add_appointment(_new_app("pat-404"))

    assert exc.value.patient_id == "pat-404"
    assert isinstance(exc.value, LookupError)
    assert _snapshot(store) == before


def test_update_appointment_refreshes_stale_patient_name(store):
    app = store.list_appointments()[0]
    stale = app.model_copy(update={"patient_name": "Nome Antigo", "notes": "Retorno"})

    assert store.update_appointment(stale) is True

    saved = store.list_appointments()[0]
    assert saved.patient_name == "João Pereira"
    assert saved.notes == "Retorno"


def test_update_appointment_with_missing_patient_fails(store):
    app = store.list_appointments()[0]
    before = _snapshot(store)

    with pytest.raises(PatientNotFoundError):
        store.update_appointment(app.model_copy(update={"patient_id": "pat-404"}))

    assert _snapshot(store) == before


def test_update_appointment_unknown_id_is_noop(store):
    app = store.list_appointments()[0].model_copy(update={"id": "app-404"})

    assert store.update_appointment(app) is False
    assert len(store.list_appointments()) == 4


def test_patient_rename_leaves_appointment_name_stale(store):
    patient = store.get_patient("pat-1")
    store.update_patient(patient.model_copy(update={"name": "João P. Pereira"}))

    app = next(a for a in store.list_appointments() if a.id == "app-1")
    assert app.patient_name == "João Pereira"

    store.update_appointment(app)
    app = next(a for a in store.list_appointments() if a.id == "app-1")
    assert app.patient_name == "João P. Pereira"


def test_add_appointment_for_another_professionals_patient_fails(store):
    before = _snapshot(store)

    with pytest.raises(ProfessionalMismatchError) as exc:
        store.add_appointment(_new_app("pat-1", professional_id="prof-2"))

    assert (exc.value.patient_id, exc.value.professional_id) == ("pat-1", "prof-2")
    assert _snapshot(store) == before


def test_update_appointment_cannot_move_to_another_professionals_patient(store):
    app = store.get_appointment("app-1")
    before = _snapshot(store)

    with pytest.raises(ProfessionalMismatchError):
        store.update_appointment(app.model_copy(update={"patient_id": "pat-3"}))

    assert _snapshot(store) == before


def test_get_appointment(store):
    assert store.get_appointment("app-3").patient_name == "Pedro Santos"
    assert store.get_appointment("app-404") is None


def test_list_appointments_by_professional_uses_own_field(store):
    # il paziente cambia professionista: i suoi appuntamenti restano dove sono
    patient = store.get_patient("pat-1")
    store.update_patient(patient.model_copy(update={"professional_id": "prof-2"}))

    assert "app-1" in {a.id for a in store.list_appointments_by_professional("prof-1")}
    assert "app-1" not in {a.id for a in store.list_appointments_by_professional("prof-2")}


def test_delete_appointment(store):
    store.delete_appointment("app-2")
    store.delete_appointment("app-404")

    assert [a.id for a in store.list_appointments()] == ["app-1", "app-3", "app-4"]


def test_snapshots_are_independent_of_store(store):
    patients = store.list_patients()
    patients.clear()

    assert len(store.list_patients()) == 5


def test_malformed_records_are_skipped(backend):
    backend.save_collection(
        CollectionName.PROFESSIONALS,
        [{"id": "prof-1", "name": "Dr. Ana Silva", "specialty": "Cardiologia"}, {"id": "prof-x"}],
    )

    assert [p.id for p in ClinicStore(backend).list_professionals()] == ["prof-1"]


def test_appointment_without_session_value_defaults_to_zero(backend):
    backend.save_collection(
        CollectionName.APPOINTMENTS,
        [
            {
                "id": "app-1",
                "patientId": "pat-1",
                "patientName": "João Pereira",
                "professionalId": "prof-1",
                "date": "2026-01-14",
                "time": "09:00",
                "notes": "",
            }
        ],
    )

    assert ClinicStore(backend).list_appointments()[0].session_value == 0


def test_records_persist_with_camel_case_keys(backend, store):
    store.add_appointment(_new_app("pat-3", professional_id="prof-2"))

    raw = backend.load_collection(CollectionName.APPOINTMENTS)[-1]
    assert set(raw) == {"id", "patientId", "patientName", "professionalId", "date", "time", "notes", "sessionValue"}
    assert raw["sessionValue"] == 120


def test_store_on_sql_backend_survives_new_instance(sql_backend):
    from clinica.seed import ensure_seeded

    ensure_seeded(sql_backend)
    ClinicStore(sql_backend).delete_professional("prof-1")

    fresh = ClinicStore(sql_backend)
    assert [p.id for p in fresh.list_patients()] == ["pat-3", "pat-4", "pat-5"]
    assert [a.id for a in fresh.list_appointments()] == ["app-3", "app-4"]


def test_select_role_admin(store):
    user = select_role(store, UserRole.ADMIN)

    assert user.role is UserRole.ADMIN
    assert user.professional is None


def test_select_role_professional(store):
    user = select_role(store, UserRole.PROFESSIONAL, "prof-2")

    assert user.professional.name == "Dr. Bruno Costa"


def test_select_role_professional_unknown(store):
    with pytest.raises(ProfessionalNotFoundError):
        select_role(store, UserRole.PROFESSIONAL, "prof-404")
    with pytest.raises(ProfessionalNotFoundError):
        select_role(store, UserRole.PROFESSIONAL)
