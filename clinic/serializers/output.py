"""
Response shapes.

Views build plain camelCase dicts for the front-end rather than using
model serializers; these helpers keep the shapes identical across
endpoints.  Related rows are expected to be ``select_related`` already.
"""
from __future__ import annotations

from typing import Optional

from clinic.models import (
    Appointment, AuditLog, Billing, Doctor, MedicalRecord, Patient, PharmacyInventory, Prescription, User,
)


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def user_dict(user: Optional[User]) -> Optional[dict]:
    if user is None:
        return None
    return {
        'id': str(user.id),
        'email': user.email,
        'firstName': user.first_name,
        'lastName': user.last_name,
        'name': user.get_full_name() or user.email,
        'role': user.role,
        'phone': user.phone,
        'isActive': user.is_active,
    }


def patient_summary(patient: Patient) -> dict:
    return {
        'id': str(patient.id),
        'userId': str(patient.user_id),
        'name': patient.user.get_full_name() or patient.user.email,
        'email': patient.user.email,
        'phone': patient.user.phone,
    }


def patient_dict(patient: Patient) -> dict:
    data = patient_summary(patient)
    data.update({
        'user': user_dict(patient.user),
        'dateOfBirth': _iso(patient.date_of_birth),
        'gender': patient.gender,
        'bloodGroup': patient.blood_group or None,
        'address': patient.address,
        'emergencyContact': patient.emergency_contact,
        'medicalHistory': patient.medical_history,
        'allergies': patient.allergies,
        'chronicConditions': patient.chronic_conditions,
        'currentMedications': patient.current_medications,
        'insuranceDetails': patient.insurance_details,
        'createdAt': _iso(patient.created_at),
        'updatedAt': _iso(patient.updated_at),
    })
    return data


def doctor_summary(doctor: Doctor) -> dict:
    return {
        'id': str(doctor.id),
        'userId': str(doctor.user_id),
        'name': doctor.user.get_full_name() or doctor.user.email,
        'specialization': doctor.specialization,
        'department': doctor.department,
    }


def doctor_dict(doctor: Doctor) -> dict:
    data = doctor_summary(doctor)
    data.update({
        'email': doctor.user.email,
        'licenseNumber': doctor.license_number,
        'qualifications': doctor.qualifications,
        'experienceYears': doctor.experience_years,
        'consultationFee': str(doctor.consultation_fee),
        'availableSlots': doctor.available_slots,
        'bio': doctor.bio,
    })
    return data


def appointment_dict(appt: Appointment) -> dict:
    return {
        'id': str(appt.id),
        'patient': patient_summary(appt.patient),
        'doctor': doctor_summary(appt.doctor),
        'appointmentDate': _iso(appt.appointment_date),
        'startTime': appt.start_time.strftime('%H:%M'),
        'endTime': appt.end_time.strftime('%H:%M'),
        'status': appt.status,
        'reason': appt.reason,
        'notes': appt.notes,
        'createdAt': _iso(appt.created_at),
        'updatedAt': _iso(appt.updated_at),
    }


def record_dict(record: MedicalRecord) -> dict:
    return {
        'id': str(record.id),
        'patient': patient_summary(record.patient),
        'doctor': doctor_summary(record.doctor),
        'appointmentId': str(record.appointment_id) if record.appointment_id else None,
        'prescriptionId': str(record.prescription_id) if record.prescription_id else None,
        'visitDate': _iso(record.visit_date),
        'symptoms': record.symptoms,
        'diagnosis': record.diagnosis,
        'treatments': record.treatments,
        'labTests': record.lab_tests,
        'vitalSigns': record.vital_signs,
        'consultationFee': str(record.consultation_fee),
        'status': record.status,
        'attachments': record.attachments,
        'notes': record.notes,
        'createdAt': _iso(record.created_at),
    }


def prescription_dict(rx: Prescription) -> dict:
    return {
        'id': str(rx.id),
        'patient': patient_summary(rx.patient),
        'doctor': doctor_summary(rx.doctor),
        'medicalRecordId': str(rx.medical_record_id),
        'medications': rx.medications,
        'status': rx.status,
        'issuedDate': _iso(rx.issued_date),
        'dispensedDate': _iso(rx.dispensed_date),
        'dispensedBy': user_dict(rx.dispensed_by) if rx.dispensed_by_id else None,
        'notes': rx.notes,
    }


def inventory_dict(item: PharmacyInventory) -> dict:
    return {
        'id': str(item.id),
        'medicineName': item.medicine_name,
        'genericName': item.generic_name,
        'category': item.category,
        'manufacturer': item.manufacturer,
        'batchNumber': item.batch_number,
        'expiryDate': _iso(item.expiry_date),
        'quantity': item.quantity,
        'unitPrice': str(item.unit_price),
        'reorderLevel': item.reorder_level,
        'isLowStock': item.is_low_stock,
        'description': item.description,
        'sideEffects': item.side_effects,
        'updatedAt': _iso(item.updated_at),
    }


def bill_dict(bill: Billing) -> dict:
    return {
        'id': str(bill.id),
        'invoiceNumber': bill.invoice_number,
        'patient': patient_summary(bill.patient),
        'appointmentId': str(bill.appointment_id) if bill.appointment_id else None,
        'medicalRecordId': str(bill.medical_record_id) if bill.medical_record_id else None,
        'prescriptionId': str(bill.prescription_id) if bill.prescription_id else None,
        'items': bill.items,
        'subtotal': str(bill.subtotal),
        'tax': str(bill.tax),
        'discount': str(bill.discount),
        'totalAmount': str(bill.total_amount),
        'paidAmount': str(bill.paid_amount),
        'balanceAmount': str(bill.balance_amount),
        'status': bill.status,
        'paymentMethod': bill.payment_method or None,
        'paymentDate': _iso(bill.payment_date),
        'dueDate': _iso(bill.due_date),
        'notes': bill.notes,
        'createdAt': _iso(bill.created_at),
    }


def audit_dict(entry: AuditLog) -> dict:
    return {
        'id': str(entry.id),
        'user': user_dict(entry.user) if entry.user_id else None,
        'userRole': entry.user_role,
        'action': entry.action,
        'entity': entry.entity,
        'entityId': entry.entity_id,
        'description': entry.description,
        'ipAddress': entry.ip_address,
        'userAgent': entry.user_agent,
        'metadata': entry.metadata,
        'timestamp': _iso(entry.timestamp),
    }
