"""
API tests for appointment booking, scoping and status changes.

Uses DRF's APITestCase with ``force_authenticate`` for role sessions.
"""
import datetime

from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from clinic.models import Appointment, AuditLog, Doctor, Patient, User


class AppointmentAPITests(APITestCase):
    def setUp(self) -> None:
        self.admin = User.objects.create_user(email='admin@example.com', password='x', role='admin')
        self.doc_user = User.objects.create_user(email='doc@example.com', password='x', role='doctor',
                                                 first_name='Meredith', last_name='Grey')
        self.doctor = Doctor.objects.create(user=self.doc_user, specialization='Surgery',
                                            license_number='LIC-1', department='Surgery')
        self.other_doc_user = User.objects.create_user(email='doc2@example.com', password='x', role='doctor')
        self.other_doctor = Doctor.objects.create(user=self.other_doc_user, specialization='ENT',
                                                  license_number='LIC-2', department='ENT')
        self.p1_user = User.objects.create_user(email='p1@example.com', password='x', role='patient')
        self.p1 = Patient.objects.create(user=self.p1_user, date_of_birth=datetime.date(1990, 1, 1), gender='male')
        self.p2_user = User.objects.create_user(email='p2@example.com', password='x', role='patient')
        self.p2 = Patient.objects.create(user=self.p2_user, date_of_birth=datetime.date(1991, 2, 2), gender='female')

        self.day = datetime.date.today() + datetime.timedelta(days=3)
        self.a1 = self._appt(self.p1, self.doctor)
        self.a2 = self._appt(self.p2, self.doctor, start=datetime.time(10, 0))
        self.a3 = self._appt(self.p2, self.other_doctor, start=datetime.time(11, 0))

    def _appt(self, patient, doctor, start=datetime.time(9, 0), status_=Appointment.STATUS_PENDING):
        return Appointment.objects.create(
            patient=patient, doctor=doctor, appointment_date=self.day,
            start_time=start, end_time=datetime.time(start.hour, 30), reason='checkup', status=status_,
        )

    def _as(self, user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    def test_anonymous_request_is_forbidden_not_401(self):
        resp = APIClient().get('/api/appointments')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(resp.data['error']['code'], 'not_authenticated')

    def test_patient_sees_only_own_appointments(self):
        resp = self._as(self.p1_user).get('/api/appointments')
        self.assertEqual(resp.status_code, 200)
        ids = {a['id'] for a in resp.data['appointments']}
        self.assertEqual(ids, {str(self.a1.id)})
        self.assertTrue(all(a['patient']['id'] == str(self.p1.id) for a in resp.data['appointments']))

    def test_doctor_sees_only_assigned_appointments(self):
        resp = self._as(self.doc_user).get('/api/appointments')
        ids = {a['id'] for a in resp.data['appointments']}
        self.assertEqual(ids, {str(self.a1.id), str(self.a2.id)})

    def test_admin_sees_all_and_can_filter_by_status(self):
        self.a3.status = Appointment.STATUS_APPROVED
        self.a3.save()
        resp = self._as(self.admin).get('/api/appointments', {'status': 'approved'})
        self.assertEqual([a['id'] for a in resp.data['appointments']], [str(self.a3.id)])

    def test_pharmacist_cannot_list_appointments(self):
        pharmacist = User.objects.create_user(email='ph@example.com', password='x', role='pharmacist')
        resp = self._as(pharmacist).get('/api/appointments')
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.data['error']['code'], 'forbidden')

    def test_patient_books_with_user_ids(self):
        payload = {
            'patientId': str(self.p1_user.id),
            'doctorId': str(self.doc_user.id),
            'appointmentDate': self.day.isoformat(),
            'startTime': '14:00',
            'endTime': '14:30',
            'reason': 'Follow-up',
        }
        resp = self._as(self.p1_user).post('/api/appointments', payload, format='json')
        self.assertEqual(resp.status_code, 201, resp.data)
        appt = Appointment.objects.get(id=resp.data['appointment']['id'])
        self.assertEqual(appt.patient_id, self.p1.id)
        self.assertEqual(appt.doctor_id, self.doctor.id)
        self.assertEqual(appt.status, Appointment.STATUS_PENDING)
        self.assertEqual(AuditLog.objects.filter(entity='Appointment', action='CREATE').count(), 1)

    def test_patient_cannot_book_for_someone_else(self):
        payload = {
            'patientId': str(self.p2.id),
            'doctorId': str(self.doctor.id),
            'appointmentDate': self.day.isoformat(),
            'startTime': '14:00',
            'endTime': '14:30',
            'reason': 'Follow-up',
        }
        resp = self._as(self.p1_user).post('/api/appointments', payload, format='json')
        self.assertEqual(resp.status_code, 403)

    def test_unresolvable_doctor_id_is_rejected(self):
        payload = {
            'patientId': str(self.p1.id),
            'doctorId': 'nope',
            'appointmentDate': self.day.isoformat(),
            'startTime': '14:00',
            'endTime': '14:30',
            'reason': 'Follow-up',
        }
        resp = self._as(self.admin).post('/api/appointments', payload, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertIn('doctorId', resp.data['error']['fields'])

    def test_end_before_start_is_rejected(self):
        payload = {
            'patientId': str(self.p1.id),
            'doctorId': str(self.doctor.id),
            'appointmentDate': self.day.isoformat(),
            'startTime': '14:00',
            'endTime': '13:00',
            'reason': 'Follow-up',
        }
        resp = self._as(self.admin).post('/api/appointments', payload, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data['error']['code'], 'validation_error')
        self.assertIn('endTime', resp.data['error']['fields'])

    def test_doctor_approves_then_completes(self):
        client = self._as(self.doc_user)
        resp = client.patch(f'/api/appointments/{self.a1.id}', {'status': 'approved'}, format='json')
        self.assertEqual(resp.status_code, 200)
        resp = client.patch(f'/api/appointments/{self.a1.id}', {'status': 'completed'}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.a1.refresh_from_db()
        self.assertEqual(self.a1.status, Appointment.STATUS_COMPLETED)
        self.assertEqual(AuditLog.objects.filter(entity='Appointment', action='APPROVE').count(), 1)

    def test_pending_cannot_jump_to_completed(self):
        resp = self._as(self.doc_user).patch(f'/api/appointments/{self.a1.id}', {'status': 'completed'},
                                             format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data['error']['code'], 'invalid_transition')

    def test_canceling_completed_appointment_is_rejected(self):
        self.a1.status = Appointment.STATUS_COMPLETED
        self.a1.save()
        resp = self._as(self.p1_user).patch(f'/api/appointments/{self.a1.id}', {'status': 'canceled'},
                                            format='json')
        self.assertEqual(resp.status_code, 400)
        self.a1.refresh_from_db()
        self.assertEqual(self.a1.status, Appointment.STATUS_COMPLETED)
        self.assertFalse(AuditLog.objects.filter(entity='Appointment').exists())

    def test_patient_may_only_cancel(self):
        client = self._as(self.p1_user)
        resp = client.patch(f'/api/appointments/{self.a1.id}', {'status': 'approved'}, format='json')
        self.assertEqual(resp.status_code, 403)
        resp = client.patch(f'/api/appointments/{self.a1.id}', {'status': 'canceled'}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(AuditLog.objects.filter(entity='Appointment', action='CANCEL').count(), 1)

    def test_doctor_cannot_touch_other_doctors_appointment(self):
        resp = self._as(self.doc_user).patch(f'/api/appointments/{self.a3.id}', {'status': 'approved'},
                                             format='json')
        self.assertEqual(resp.status_code, 403)

    def test_detail_ownership_and_missing(self):
        self.assertEqual(self._as(self.p1_user).get(f'/api/appointments/{self.a2.id}').status_code, 403)
        self.assertEqual(self._as(self.p2_user).get(f'/api/appointments/{self.a2.id}').status_code, 200)
        resp = self._as(self.admin).get('/api/appointments/not-an-id')
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.data['error']['code'], 'not_found')

    def test_bulk_status_change_applies_to_all(self):
        resp = self._as(self.admin).put('/api/appointments', {
            'appointmentIds': [str(self.a1.id), str(self.a2.id)],
            'status': 'approved',
        }, format='json')
        self.assertEqual(resp.status_code, 200, resp.data)
        self.assertEqual(resp.data['updated'], 2)
        statuses = set(Appointment.objects.filter(id__in=[self.a1.id, self.a2.id]).values_list('status', flat=True))
        self.assertEqual(statuses, {Appointment.STATUS_APPROVED})
        self.assertEqual(AuditLog.objects.filter(entity='Appointment').count(), 1)

    def test_bulk_status_change_is_all_or_nothing(self):
        # a2 belongs to another patient: the whole batch must be refused
        resp = self._as(self.p1_user).put('/api/appointments', {
            'appointmentIds': [str(self.a1.id), str(self.a2.id)],
            'status': 'canceled',
        }, format='json')
        self.assertEqual(resp.status_code, 403)
        self.a1.refresh_from_db()
        self.a2.refresh_from_db()
        self.assertEqual(self.a1.status, Appointment.STATUS_PENDING)
        self.assertEqual(self.a2.status, Appointment.STATUS_PENDING)

    def test_bulk_with_unknown_id_is_404(self):
        resp = self._as(self.admin).put('/api/appointments', {
            'appointmentIds': [str(self.a1.id), '00000000-0000-0000-0000-000000000000'],
            'status': 'approved',
        }, format='json')
        self.assertEqual(resp.status_code, 404)
        self.a1.refresh_from_db()
        self.assertEqual(self.a1.status, Appointment.STATUS_PENDING)
