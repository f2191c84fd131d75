import pytest
from django.utils import timezone

from clinic.models import AuditLog, MedicalRecord, Patient, User

pytestmark = pytest.mark.django_db

INTAKE = {
    'firstName': 'Ada',
    'lastName': 'Lovelace',
    'email': 'ada@example.com',
    'dateOfBirth': '1990-12-10',
    'gender': 'female',
    'bloodGroup': 'O+',
    'address': {'street': '12 St James Sq', 'city': 'London', 'state': 'LDN', 'zipCode': 'SW1', 'country': 'UK'},
    'emergencyContact': {'name': 'Byron', 'relationship': 'father', 'phone': '555-0199'},
    'allergies': ['penicillin'],
}


def test_staff_intake_returns_generated_password(client_for, nurse_user):
    resp = client_for(nurse_user).post('/api/patients', INTAKE, format='json')
    assert resp.status_code == 201, resp.data
    password = resp.data['initialPassword']
    user = User.objects.get(email='ada@example.com')
    assert user.role == 'patient'
    assert user.check_password(password)
    profile = Patient.objects.get(user=user)
    assert profile.created_by_id == nurse_user.id
    assert resp.data['patient']['allergies'] == ['penicillin']


def test_staff_intake_with_password_does_not_echo_it(client_for, admin_user):
    resp = client_for(admin_user).post('/api/patients', {**INTAKE, 'password': 'Str0ng-enough!'}, format='json')
    assert resp.status_code == 201, resp.data
    assert 'initialPassword' not in resp.data


def test_duplicate_email_intake_is_rejected(client_for, admin_user):
    client = client_for(admin_user)
    assert client.post('/api/patients', INTAKE, format='json').status_code == 201
    resp = client.post('/api/patients', {**INTAKE, 'email': 'ADA@example.com'}, format='json')
    assert resp.status_code == 400
    assert 'email' in resp.data['error']['fields']
    assert Patient.objects.count() == 1


def test_detail_by_profile_or_user_id_writes_read_audit(client_for, admin_user, patient):
    client = client_for(admin_user)
    by_profile = client.get(f'/api/patients/{patient.id}')
    by_user = client.get(f'/api/patients/{patient.user_id}')
    assert by_profile.status_code == by_user.status_code == 200
    assert by_profile.data['patient']['id'] == by_user.data['patient']['id'] == str(patient.id)
    reads = AuditLog.objects.filter(action='READ', entity='Patient', entity_id=str(patient.id))
    assert reads.count() == 2


def test_unknown_patient_is_404(client_for, admin_user):
    resp = client_for(admin_user).get('/api/patients/00000000-0000-0000-0000-000000000000')
    assert resp.status_code == 404


def test_doctor_sees_only_treated_patients(client_for, doctor, patient):
    client = client_for(doctor.user)
    assert client.get(f'/api/patients/{patient.id}').status_code == 403
    MedicalRecord.objects.create(patient=patient, doctor=doctor, visit_date=timezone.now(),
                                 symptoms=['cough'], diagnosis='cold', treatments=['rest'])
    assert client.get(f'/api/patients/{patient.id}').status_code == 200


def test_patient_reads_and_updates_own_profile_only(client_for, patient, make_patient):
    client = client_for(patient.user)
    assert client.get(f'/api/patients/{patient.user_id}').status_code == 200
    resp = client.put(f'/api/patients/{patient.id}', {'allergies': ['latex'], 'firstName': 'Renamed'},
                      format='json')
    assert resp.status_code == 200, resp.data
    patient.refresh_from_db()
    assert patient.allergies == ['latex']
    assert patient.user.first_name == 'Renamed'

    other = make_patient()
    assert client.get(f'/api/patients/{other.id}').status_code == 403
    assert client.put(f'/api/patients/{other.id}', {'allergies': []}, format='json').status_code == 403


def test_patient_account_completes_own_profile(client_for, make_user):
    user = make_user('patient')
    payload = {k: v for k, v in INTAKE.items() if k not in ('firstName', 'lastName', 'email')}
    resp = client_for(user).post('/api/patients', payload, format='json')
    assert resp.status_code == 201, resp.data
    assert Patient.objects.get(user=user).gender == 'female'
    again = client_for(user).post('/api/patients', payload, format='json')
    assert again.status_code == 400


def test_listing_roles_and_search(client_for, nurse_user, pharmacist_user, make_patient):
    make_patient(first_name='Grace', last_name='Hopper')
    make_patient(first_name='Alan', last_name='Turing')
    resp = client_for(nurse_user).get('/api/patients', {'search': 'hop'})
    assert resp.status_code == 200
    assert [p['user']['lastName'] for p in resp.data['patients']] == ['Hopper']
    assert client_for(pharmacist_user).get('/api/patients').status_code == 403
