import datetime

import pytest
from django.utils import timezone

from clinic.models import AuditLog, MedicalRecord, Prescription

pytestmark = pytest.mark.django_db

MEDS = [{'medicineName': 'Amoxicillin', 'dosage': '500mg', 'frequency': 'tid', 'duration': '7 days'}]


@pytest.fixture
def record(patient, doctor):
    return MedicalRecord.objects.create(
        patient=patient, doctor=doctor, visit_date=timezone.now(),
        symptoms=['fever'], diagnosis='infection', treatments=['antibiotics'],
    )


@pytest.fixture
def prescription(record):
    return Prescription.objects.create(
        patient=record.patient, doctor=record.doctor, medical_record=record, medications=MEDS,
    )


def test_doctor_cannot_dispense(client_for, doctor, prescription):
    resp = client_for(doctor.user).patch(f'/api/prescriptions/{prescription.id}', {'status': 'dispensed'},
                                         format='json')
    assert resp.status_code == 403
    prescription.refresh_from_db()
    assert prescription.status == Prescription.STATUS_PENDING
    assert prescription.dispensed_by is None


def test_pharmacist_dispense_stamps_who_and_when(client_for, pharmacist_user, prescription):
    before = timezone.now()
    resp = client_for(pharmacist_user).patch(f'/api/prescriptions/{prescription.id}', {'status': 'dispensed'},
                                             format='json')
    assert resp.status_code == 200, resp.data
    prescription.refresh_from_db()
    assert prescription.status == Prescription.STATUS_DISPENSED
    assert prescription.dispensed_by_id == pharmacist_user.id
    assert prescription.dispensed_date >= before
    assert AuditLog.objects.filter(action='DISPENSE', entity_id=str(prescription.id)).count() == 1


def test_pharmacist_cannot_forge_dispenser(client_for, pharmacist_user, make_user, prescription):
    other = make_user('pharmacist')
    resp = client_for(pharmacist_user).patch(f'/api/prescriptions/{prescription.id}', {
        'status': 'dispensed', 'dispensedBy': str(other.id),
    }, format='json')
    assert resp.status_code == 200
    prescription.refresh_from_db()
    assert prescription.dispensed_by_id == pharmacist_user.id


def test_dispensed_is_terminal(client_for, pharmacist_user, admin_user, prescription):
    client_for(pharmacist_user).patch(f'/api/prescriptions/{prescription.id}', {'status': 'dispensed'},
                                      format='json')
    resp = client_for(admin_user).patch(f'/api/prescriptions/{prescription.id}', {'status': 'canceled'},
                                        format='json')
    assert resp.status_code == 400
    assert resp.data['error']['code'] == 'invalid_transition'


def test_only_admin_cancels(client_for, pharmacist_user, admin_user, prescription):
    resp = client_for(pharmacist_user).patch(f'/api/prescriptions/{prescription.id}', {'status': 'canceled'},
                                             format='json')
    assert resp.status_code == 403
    resp = client_for(admin_user).patch(f'/api/prescriptions/{prescription.id}', {'status': 'canceled'},
                                        format='json')
    assert resp.status_code == 200
    assert resp.data['prescription']['status'] == 'canceled'


def test_doctor_issues_prescription_and_record_is_backlinked(client_for, doctor, patient, record):
    resp = client_for(doctor.user).post('/api/prescriptions', {
        'patientId': str(patient.user_id),
        'medicalRecordId': str(record.id),
        'medications': MEDS,
    }, format='json')
    assert resp.status_code == 201, resp.data
    record.refresh_from_db()
    assert str(record.prescription_id) == resp.data['prescription']['id']
    assert resp.data['prescription']['doctor']['id'] == str(doctor.id)


def test_prescription_against_other_patients_record_is_rejected(client_for, doctor, make_patient, record):
    stranger = make_patient()
    resp = client_for(doctor.user).post('/api/prescriptions', {
        'patientId': str(stranger.id),
        'medicalRecordId': str(record.id),
        'medications': MEDS,
    }, format='json')
    assert resp.status_code == 400
    assert 'medicalRecordId' in resp.data['error']['fields']


def test_patient_views_only_own_prescriptions(client_for, make_patient, prescription):
    owner = prescription.patient.user
    assert client_for(owner).get(f'/api/prescriptions/{prescription.id}').status_code == 200
    stranger = make_patient()
    assert client_for(stranger.user).get(f'/api/prescriptions/{prescription.id}').status_code == 403
    listing = client_for(stranger.user).get('/api/prescriptions')
    assert listing.data['prescriptions'] == []


def test_pharmacist_list_defaults_to_pending(client_for, pharmacist_user, prescription, record):
    Prescription.objects.create(patient=record.patient, doctor=record.doctor, medical_record=record,
                                medications=MEDS, status=Prescription.STATUS_DISPENSED,
                                dispensed_date=timezone.now() - datetime.timedelta(days=1))
    resp = client_for(pharmacist_user).get('/api/prescriptions')
    assert [p['id'] for p in resp.data['prescriptions']] == [str(prescription.id)]
