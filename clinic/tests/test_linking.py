import datetime

import pytest
from django.utils import timezone

from clinic.models import Appointment, MedicalRecord
from clinic.services.linking import find_same_day_appointment, link_same_day_appointment

pytestmark = pytest.mark.django_db

VISIT_DAY = datetime.date(2026, 3, 10)


def _appt(patient, doctor, day=VISIT_DAY, start=datetime.time(9, 0), status=Appointment.STATUS_PENDING):
    return Appointment.objects.create(
        patient=patient, doctor=doctor, appointment_date=day,
        start_time=start, end_time=(datetime.datetime.combine(day, start) + datetime.timedelta(minutes=30)).time(),
        reason='checkup', status=status,
    )


def _record(patient, doctor, day=VISIT_DAY):
    return MedicalRecord.objects.create(
        patient=patient, doctor=doctor,
        visit_date=timezone.make_aware(datetime.datetime.combine(day, datetime.time(12, 0))),
        symptoms=['cough'], diagnosis='cold', treatments=['rest'],
    )


def test_same_day_appointment_is_linked_and_completed(patient, doctor):
    appt = _appt(patient, doctor)
    record = _record(patient, doctor)

    linked = link_same_day_appointment(record)

    assert linked == appt
    record.refresh_from_db()
    appt.refresh_from_db()
    assert record.appointment_id == appt.id
    assert appt.status == Appointment.STATUS_COMPLETED


def test_no_candidate_leaves_record_unlinked(patient, doctor, make_doctor):
    other_doctor = make_doctor()
    _appt(patient, other_doctor)
    _appt(patient, doctor, day=VISIT_DAY + datetime.timedelta(days=1))
    record = _record(patient, doctor)

    assert link_same_day_appointment(record) is None
    record.refresh_from_db()
    assert record.appointment_id is None


def test_completed_and_canceled_appointments_are_skipped(patient, doctor):
    done = _appt(patient, doctor, status=Appointment.STATUS_COMPLETED)
    canceled = _appt(patient, doctor, start=datetime.time(10, 0), status=Appointment.STATUS_CANCELED)
    record = _record(patient, doctor)

    assert link_same_day_appointment(record) is None
    done.refresh_from_db()
    canceled.refresh_from_db()
    assert done.status == Appointment.STATUS_COMPLETED
    assert canceled.status == Appointment.STATUS_CANCELED


def test_earliest_slot_wins_among_candidates(patient, doctor):
    late = _appt(patient, doctor, start=datetime.time(15, 0))
    early = _appt(patient, doctor, start=datetime.time(8, 30), status=Appointment.STATUS_APPROVED)
    record = _record(patient, doctor)

    assert find_same_day_appointment(record) == early
    assert link_same_day_appointment(record) == early
    late.refresh_from_db()
    assert late.status == Appointment.STATUS_PENDING


def test_already_linked_record_is_left_alone(patient, doctor):
    first = _appt(patient, doctor)
    second = _appt(patient, doctor, start=datetime.time(11, 0))
    record = _record(patient, doctor)
    record.appointment = first
    record.save()

    assert link_same_day_appointment(record) is None
    second.refresh_from_db()
    assert second.status == Appointment.STATUS_PENDING
