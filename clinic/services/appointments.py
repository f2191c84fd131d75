from typing import Iterable, List

from django.db import transaction
from rest_framework.exceptions import NotFound, PermissionDenied

from clinic import roles
from clinic.exceptions import InvalidTransition
from clinic.models import Appointment, User
from clinic.permissions import is_party

TRANSITIONS = {
    Appointment.STATUS_PENDING: {Appointment.STATUS_APPROVED, Appointment.STATUS_CANCELED},
    Appointment.STATUS_APPROVED: {Appointment.STATUS_COMPLETED, Appointment.STATUS_CANCELED},
    Appointment.STATUS_COMPLETED: set(),
    Appointment.STATUS_CANCELED: set(),
}

AUDIT_ACTIONS = {
    Appointment.STATUS_APPROVED: 'APPROVE',
    Appointment.STATUS_CANCELED: 'CANCEL',
}


def can_transition(current: str, new: str) -> bool:
    """Return True if an appointment may move from ``current`` to ``new``."""
    return new in TRANSITIONS.get(current, set())


def check_status_change(user: User, appointment: Appointment, new_status: str) -> None:
    """Raise unless ``user`` may move ``appointment`` to ``new_status``."""
    if user.role == roles.PATIENT:
        if not is_party(user, appointment):
            raise PermissionDenied('You can only update your own appointments')
        if new_status != Appointment.STATUS_CANCELED:
            raise PermissionDenied('Patients can only cancel appointments')
    elif user.role == roles.DOCTOR:
        if not is_party(user, appointment):
            raise PermissionDenied('You can only update appointments assigned to you')
    if not can_transition(appointment.status, new_status):
        raise InvalidTransition(f'Cannot change appointment from {appointment.status} to {new_status}')


def change_status(user: User, appointment: Appointment, new_status: str) -> Appointment:
    check_status_change(user, appointment, new_status)
    appointment.status = new_status
    appointment.save(update_fields=['status', 'updated_at'])
    return appointment


def bulk_change_status(user: User, ids: Iterable, new_status: str) -> List[Appointment]:
    """Apply one status change to several appointments, all or nothing."""
    ids = list(dict.fromkeys(ids))
    with transaction.atomic():
        found = {
            a.id: a for a in Appointment.objects.select_for_update()
            .select_related('patient', 'doctor').filter(id__in=ids)
        }
        missing = [str(i) for i in ids if i not in found]
        if missing:
            raise NotFound(f"Appointment not found: {', '.join(missing)}")
        ordered = [found[i] for i in ids]
        for appointment in ordered:
            check_status_change(user, appointment, new_status)
        for appointment in ordered:
            appointment.status = new_status
            appointment.save(update_fields=['status', 'updated_at'])
    return ordered
