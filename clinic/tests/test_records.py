import datetime

import pytest

from clinic.models import Appointment, AuditLog, MedicalRecord

pytestmark = pytest.mark.django_db


def _payload(patient, **extra):
    data = {
        'patientId': str(patient.id),
        'visitDate': '2026-04-02',
        'symptoms': ['headache'],
        'diagnosis': 'Migraine',
        'treatments': ['analgesics'],
        'consultationFee': '40.00',
        'vitalSigns': {'bloodPressure': '120/80', 'heartRate': 70},
    }
    data.update(extra)
    return data


def test_record_creation_links_and_completes_same_day_appointment(client_for, patient, doctor):
    appt = Appointment.objects.create(
        patient=patient, doctor=doctor, appointment_date=datetime.date(2026, 4, 2),
        start_time=datetime.time(9, 0), end_time=datetime.time(9, 30), reason='pain',
        status=Appointment.STATUS_APPROVED,
    )
    resp = client_for(doctor.user).post('/api/medical-records', _payload(patient), format='json')

    assert resp.status_code == 201, resp.data
    assert resp.data['linkedAppointmentId'] == str(appt.id)
    assert resp.data['record']['appointmentId'] == str(appt.id)
    appt.refresh_from_db()
    assert appt.status == Appointment.STATUS_COMPLETED
    # one mutation, one audit entry
    assert AuditLog.objects.count() == 1


def test_record_without_matching_appointment_stays_unlinked(client_for, patient, doctor):
    Appointment.objects.create(
        patient=patient, doctor=doctor, appointment_date=datetime.date(2026, 4, 3),
        start_time=datetime.time(9, 0), end_time=datetime.time(9, 30), reason='pain',
    )
    resp = client_for(doctor.user).post('/api/medical-records', _payload(patient), format='json')
    assert resp.status_code == 201
    assert resp.data['linkedAppointmentId'] is None
    assert MedicalRecord.objects.get(id=resp.data['record']['id']).appointment_id is None


def test_admin_must_name_the_doctor(client_for, admin_user, patient, doctor):
    resp = client_for(admin_user).post('/api/medical-records', _payload(patient), format='json')
    assert resp.status_code == 400
    assert 'doctorId' in resp.data['error']['fields']
    resp = client_for(admin_user).post('/api/medical-records', _payload(patient, doctorId=str(doctor.user_id)),
                                       format='json')
    assert resp.status_code == 201
    assert resp.data['record']['doctor']['id'] == str(doctor.id)


def test_doctor_cannot_write_under_another_doctor(client_for, patient, doctor, make_doctor):
    other = make_doctor()
    resp = client_for(doctor.user).post('/api/medical-records', _payload(patient, doctorId=str(other.id)),
                                        format='json')
    assert resp.status_code == 403
    assert not MedicalRecord.objects.exists()


def test_patient_cannot_create_records(client_for, patient):
    resp = client_for(patient.user).post('/api/medical-records', _payload(patient), format='json')
    assert resp.status_code == 403


def test_close_record_and_no_reopen(client_for, patient, doctor):
    created = client_for(doctor.user).post('/api/medical-records', _payload(patient), format='json')
    rid = created.data['record']['id']
    resp = client_for(doctor.user).patch(f'/api/medical-records/{rid}', {'status': 'closed'}, format='json')
    assert resp.status_code == 200
    assert resp.data['record']['status'] == 'closed'
    resp = client_for(doctor.user).patch(f'/api/medical-records/{rid}', {'status': 'open'}, format='json')
    assert resp.status_code == 400


def test_patient_reads_only_own_records(client_for, patient, doctor, make_patient):
    created = client_for(doctor.user).post('/api/medical-records', _payload(patient), format='json')
    rid = created.data['record']['id']
    assert client_for(patient.user).get(f'/api/medical-records/{rid}').status_code == 200
    stranger = make_patient()
    assert client_for(stranger.user).get(f'/api/medical-records/{rid}').status_code == 403
    assert client_for(stranger.user).get('/api/medical-records').data['records'] == []
