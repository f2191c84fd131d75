import uuid

import pytest
from rest_framework.exceptions import ValidationError

from clinic.services.identity import (
    DOCTOR, PATIENT, ProfileRef, own_profile, resolve_doctor, resolve_patient, resolve_profile,
)

pytestmark = pytest.mark.django_db


def test_profile_id_and_user_id_resolve_to_same_profile(patient):
    by_profile = resolve_profile(PATIENT, str(patient.id))
    by_user = resolve_profile(PATIENT, str(patient.user_id))
    assert by_profile == by_user == ProfileRef(PATIENT, patient.id, patient.user_id)


def test_doctor_user_id_resolves(doctor):
    ref = resolve_profile(DOCTOR, str(doctor.user_id))
    assert ref is not None and ref.id == doctor.id


@pytest.mark.parametrize('raw', ['', 'not-an-id', '1234', None, 42])
def test_malformed_ids_resolve_to_none(raw):
    assert resolve_profile(PATIENT, raw) is None


def test_unknown_well_formed_id_resolves_to_none(patient):
    assert resolve_profile(PATIENT, str(uuid.uuid4())) is None


def test_kind_is_respected(patient, doctor):
    # a patient's ids never resolve to a doctor profile
    assert resolve_profile(DOCTOR, str(patient.id)) is None
    assert resolve_profile(DOCTOR, str(patient.user_id)) is None


def test_own_profile(patient, doctor, admin_user):
    assert own_profile(patient.user).id == patient.id
    assert own_profile(doctor.user).id == doctor.id
    assert own_profile(admin_user) is None


def test_resolve_or_reject_raises_field_error():
    with pytest.raises(ValidationError) as exc:
        resolve_patient('garbage')
    assert 'patientId' in exc.value.detail
    with pytest.raises(ValidationError) as exc:
        resolve_doctor(str(uuid.uuid4()), field='doctor')
    assert 'doctor' in exc.value.detail


def test_as_dict(patient):
    ref = resolve_profile(PATIENT, patient.id)
    assert ref.as_dict() == {'kind': 'patient', 'id': str(patient.id), 'userId': str(patient.user_id)}
