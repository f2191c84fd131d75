"""
Declarative role tables.

``ACCESS`` lists, per endpoint operation, the roles allowed through the
authentication guard.  Row-level ownership is checked separately in the
views.  ``MENUS`` is the role -> navigation table served to the
front-end layout.
"""
from __future__ import annotations

ADMIN = 'admin'
DOCTOR = 'doctor'
PATIENT = 'patient'
PHARMACIST = 'pharmacist'
NURSE = 'nurse'

ALL_ROLES = frozenset({ADMIN, DOCTOR, PATIENT, PHARMACIST, NURSE})
STAFF_ROLES = frozenset({DOCTOR, PHARMACIST, NURSE})

ACCESS: dict[str, frozenset[str]] = {
    'session': ALL_ROLES,
    'navigation': ALL_ROLES,
    'doctors.list': ALL_ROLES,

    'patients.list': frozenset({ADMIN, DOCTOR, NURSE}),
    'patients.create': frozenset({ADMIN, NURSE, PATIENT}),
    'patients.read': frozenset({ADMIN, DOCTOR, PATIENT}),
    'patients.update': frozenset({ADMIN, DOCTOR, PATIENT}),

    'appointments.list': frozenset({ADMIN, DOCTOR, PATIENT, NURSE}),
    'appointments.create': frozenset({ADMIN, DOCTOR, PATIENT}),
    'appointments.read': frozenset({ADMIN, DOCTOR, PATIENT}),
    'appointments.update': frozenset({ADMIN, DOCTOR, PATIENT}),

    'records.list': frozenset({ADMIN, DOCTOR, PATIENT}),
    'records.create': frozenset({ADMIN, DOCTOR}),
    'records.read': frozenset({ADMIN, DOCTOR, PATIENT}),
    'records.update': frozenset({ADMIN, DOCTOR}),

    'prescriptions.list': frozenset({ADMIN, DOCTOR, PHARMACIST, PATIENT}),
    'prescriptions.create': frozenset({ADMIN, DOCTOR}),
    'prescriptions.read': frozenset({ADMIN, DOCTOR, PHARMACIST, PATIENT}),
    'prescriptions.update': frozenset({ADMIN, PHARMACIST}),

    'inventory.list': frozenset({ADMIN, PHARMACIST}),
    'inventory.create': frozenset({ADMIN, PHARMACIST}),
    'inventory.update': frozenset({ADMIN, PHARMACIST}),

    'billing.list': frozenset({ADMIN}),
    'billing.create': frozenset({ADMIN}),
    'billing.update': frozenset({ADMIN}),

    'audit.list': frozenset({ADMIN}),
    'reports.read': frozenset({ADMIN, DOCTOR, PHARMACIST}),

    'users.list': frozenset({ADMIN}),
    'users.create': frozenset({ADMIN}),
}


def _item(label: str, path: str) -> dict:
    return {'label': label, 'path': path}


MENUS: dict[str, list[dict]] = {
    ADMIN: [
        _item('Dashboard', '/dashboard/admin'),
        _item('Users', '/dashboard/admin/users'),
        _item('Patients', '/patients'),
        _item('Appointments', '/dashboard/admin/appointments'),
        _item('Medical Records', '/dashboard/admin/medical-records'),
        _item('Prescriptions', '/dashboard/admin/prescriptions'),
        _item('Pharmacy', '/dashboard/admin/pharmacy'),
        _item('Billing', '/dashboard/admin/billing'),
        _item('Reports', '/reports'),
        _item('Audit Logs', '/dashboard/admin/audit-logs'),
    ],
    DOCTOR: [
        _item('Dashboard', '/dashboard/doctor'),
        _item('Appointments', '/appointments'),
        _item('Patients', '/patients'),
        _item('Medical Records', '/medical-records'),
        _item('Prescriptions', '/prescriptions'),
    ],
    PATIENT: [
        _item('Dashboard', '/dashboard'),
        _item('Appointments', '/appointments'),
        _item('Medical Records', '/medical-records'),
        _item('Prescriptions', '/prescriptions'),
    ],
    PHARMACIST: [
        _item('Dashboard', '/dashboard/pharmacist'),
        _item('Prescriptions', '/pharmacy/prescriptions'),
        _item('Inventory', '/pharmacy/inventory'),
        _item('Reports', '/reports'),
    ],
    NURSE: [
        _item('Dashboard', '/dashboard'),
        _item('Patients', '/patients'),
        _item('Appointments', '/appointments'),
    ],
}


def menu_for(role: str | None) -> list[dict]:
    return list(MENUS.get(role or '', []))
