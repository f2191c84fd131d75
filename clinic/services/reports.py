"""
Pharmacy and prescription reports.

``REPORTS`` maps a report type to the roles allowed to run it and the
builder producing its rows.  Builders receive the requesting user so a
pharmacist's dispensing report only covers their own work.
"""
from typing import Callable, Dict, List, NamedTuple

from django.db.models import F
from django.utils import timezone

from clinic import roles
from clinic.models import PharmacyInventory, Prescription, User


class Report(NamedTuple):
    allowed_roles: frozenset
    build: Callable[[User], List[dict]]


def _name(user) -> str:
    if user is None:
        return ''
    return user.get_full_name() or user.email


def _date(value) -> str:
    if timezone.is_aware(value):
        value = timezone.localtime(value)
    return value.date().isoformat()


def _prescriptions(qs):
    return qs.select_related('patient__user', 'doctor__user', 'dispensed_by', 'medical_record')


def _prescription_row(rx: Prescription) -> dict:
    return {
        'id': str(rx.id),
        'patient': _name(rx.patient.user),
        'doctor': f"Dr. {_name(rx.doctor.user)}",
        'medications': ', '.join(m.get('medicineName', '') for m in rx.medications),
        'issuedDate': _date(rx.issued_date),
    }


def dispensed_prescriptions(user: User) -> List[dict]:
    qs = Prescription.objects.filter(status=Prescription.STATUS_DISPENSED)
    if user.role == roles.PHARMACIST:
        qs = qs.filter(dispensed_by=user)
    rows = []
    for rx in _prescriptions(qs).order_by('-dispensed_date'):
        row = _prescription_row(rx)
        row['dispensedDate'] = _date(rx.dispensed_date) if rx.dispensed_date else None
        row['dispensedBy'] = _name(rx.dispensed_by) or 'N/A'
        rows.append(row)
    return rows


def pending_prescriptions(user: User) -> List[dict]:
    qs = Prescription.objects.filter(status=Prescription.STATUS_PENDING)
    return [_prescription_row(rx) for rx in _prescriptions(qs).order_by('-issued_date')]


def inventory_report(user: User) -> List[dict]:
    return [{
        'id': str(item.id),
        'medicineName': item.medicine_name,
        'genericName': item.generic_name,
        'category': item.category,
        'quantity': item.quantity,
        'unitPrice': item.unit_price,
        'reorderLevel': item.reorder_level,
        'isLowStock': item.is_low_stock,
        'expiryDate': item.expiry_date.isoformat(),
    } for item in PharmacyInventory.objects.order_by('medicine_name')]


def low_stock(user: User) -> List[dict]:
    qs = PharmacyInventory.objects.filter(quantity__lte=F('reorder_level')).order_by('quantity')
    return [{
        'id': str(item.id),
        'medicineName': item.medicine_name,
        'category': item.category,
        'currentQuantity': item.quantity,
        'reorderLevel': item.reorder_level,
        'shortage': item.reorder_level - item.quantity,
        'expiryDate': item.expiry_date.isoformat(),
    } for item in qs]


_PHARMACY = frozenset({roles.ADMIN, roles.PHARMACIST})

REPORTS: Dict[str, Report] = {
    'dispensed-prescriptions': Report(_PHARMACY, dispensed_prescriptions),
    'pending-prescriptions': Report(_PHARMACY, pending_prescriptions),
    'inventory-report': Report(_PHARMACY, inventory_report),
    'low-stock': Report(_PHARMACY, low_stock),
}
