from typing import Optional

from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from clinic import roles
from clinic.exceptions import InvalidTransition
from clinic.models import Prescription, User

TRANSITIONS = {
    Prescription.STATUS_PENDING: {Prescription.STATUS_DISPENSED, Prescription.STATUS_CANCELED},
    Prescription.STATUS_DISPENSED: set(),
    Prescription.STATUS_CANCELED: set(),
}

# who may move a prescription into each status
STATUS_ROLES = {
    Prescription.STATUS_DISPENSED: {roles.PHARMACIST, roles.ADMIN},
    Prescription.STATUS_CANCELED: {roles.ADMIN},
}

AUDIT_ACTIONS = {
    Prescription.STATUS_DISPENSED: 'DISPENSE',
    Prescription.STATUS_CANCELED: 'CANCEL',
}


def change_status(user: User, prescription: Prescription, new_status: str, *,
                  dispensed_date=None, dispensed_by: Optional[User] = None) -> Prescription:
    if user.role not in STATUS_ROLES.get(new_status, set()):
        raise PermissionDenied('Only pharmacists can dispense prescriptions and admins can make other changes')
    if new_status not in TRANSITIONS.get(prescription.status, set()):
        raise InvalidTransition(f'Cannot change prescription from {prescription.status} to {new_status}')

    prescription.status = new_status
    fields = ['status', 'updated_at']
    if new_status == Prescription.STATUS_DISPENSED:
        prescription.dispensed_date = dispensed_date or timezone.now()
        # only an admin may record dispensing on someone else's behalf
        if user.role == roles.ADMIN and dispensed_by is not None:
            prescription.dispensed_by = dispensed_by
        else:
            prescription.dispensed_by = user
        fields += ['dispensed_date', 'dispensed_by']
    prescription.save(update_fields=fields)
    return prescription
