"""
Attach a new medical record to the appointment it most likely belongs to.

The match is a heuristic: same patient, same doctor, appointment on the
visit's calendar day, not yet completed or canceled.  Every candidate
shares the visit's date, so several same-day slots are told apart only by
start time: the earliest one wins.
"""
import datetime
import logging
from typing import Optional

from django.utils import timezone

from clinic.models import Appointment, MedicalRecord

logger = logging.getLogger(__name__)

CLOSED_STATUSES = (Appointment.STATUS_COMPLETED, Appointment.STATUS_CANCELED)


def visit_day(record: MedicalRecord) -> datetime.date:
    value = record.visit_date
    if timezone.is_aware(value):
        return timezone.localdate(value)
    return value.date()


def find_same_day_appointment(record: MedicalRecord) -> Optional[Appointment]:
    return (
        Appointment.objects
        .filter(patient_id=record.patient_id, doctor_id=record.doctor_id, appointment_date=visit_day(record))
        .exclude(status__in=CLOSED_STATUSES)
        .order_by('start_time', 'created_at')
        .first()
    )


def link_same_day_appointment(record: MedicalRecord) -> Optional[Appointment]:
    """Link ``record`` to a matching appointment and complete it.

    Returns the linked appointment, or None when the record stays unlinked.
    A record that already carries an appointment is left as it is.
    """
    if record.appointment_id:
        return None
    appointment = find_same_day_appointment(record)
    if appointment is None:
        return None
    record.appointment = appointment
    record.save(update_fields=['appointment', 'updated_at'])
    appointment.status = Appointment.STATUS_COMPLETED
    appointment.save(update_fields=['status', 'updated_at'])
    logger.info('Medical record %s linked to appointment %s', record.id, appointment.id)
    return appointment
