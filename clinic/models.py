"""
Database models for the hospital management backend.

Accounts (``User``) carry a role; patients and doctors additionally own a
role profile (``Patient`` / ``Doctor``) which is what appointments,
medical records and prescriptions point at.  Every primary key is a
UUID so that a raw id string can be recognised as well-formed before it
is looked up.  Nested document-like data (addresses, medication lists,
invoice lines) is stored in JSON columns.
"""
from __future__ import annotations

import uuid
from decimal import Decimal

from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone


class UserManager(BaseUserManager):
    """Email based user manager (there is no username column)."""

    use_in_migrations = True

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('Email is required')
        email = self.normalize_email(email).lower()
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', User.ROLE_ADMIN)
        return self.create_user(email, password, **extra_fields)


class User(AbstractUser):
    """Login account.  Roles mirror the five front-end roles."""
    ROLE_ADMIN = 'admin'
    ROLE_DOCTOR = 'doctor'
    ROLE_PATIENT = 'patient'
    ROLE_PHARMACIST = 'pharmacist'
    ROLE_NURSE = 'nurse'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_DOCTOR, 'Doctor'),
        (ROLE_PATIENT, 'Patient'),
        (ROLE_PHARMACIST, 'Pharmacist'),
        (ROLE_NURSE, 'Nurse'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    username = None
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=16, choices=ROLE_CHOICES, default=ROLE_PATIENT, db_index=True)
    phone = models.CharField(max_length=32, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS: list[str] = []

    def __str__(self) -> str:
        return f"{self.email} ({self.role})"


class Patient(models.Model):
    """Patient profile, 1:1 with a ``User`` of role ``patient``."""
    GENDER_CHOICES = [('male', 'Male'), ('female', 'Female'), ('other', 'Other')]
    BLOOD_GROUP_CHOICES = [(g, g) for g in ('A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-')]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='patient_profile')
    date_of_birth = models.DateField()
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES)
    blood_group = models.CharField(max_length=3, choices=BLOOD_GROUP_CHOICES, blank=True)
    # {street, city, state, zipCode, country}
    address = models.JSONField(default=dict)
    # {name, relationship, phone}
    emergency_contact = models.JSONField(default=dict)
    medical_history = models.JSONField(default=list, blank=True)
    allergies = models.JSONField(default=list, blank=True)
    chronic_conditions = models.JSONField(default=list, blank=True)
    current_medications = models.JSONField(default=list, blank=True)
    insurance_details = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    created_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='patients_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"Patient {self.user.get_full_name() or self.user.email}"


class Doctor(models.Model):
    """Doctor profile, created together with the account by an admin."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='doctor_profile')
    specialization = models.CharField(max_length=128)
    license_number = models.CharField(max_length=64, unique=True)
    qualifications = models.JSONField(default=list, blank=True)
    experience_years = models.PositiveIntegerField(default=0)
    department = models.CharField(max_length=128)
    consultation_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0'))
    # [{day, startTime, endTime}]
    available_slots = models.JSONField(default=list, blank=True, encoder=DjangoJSONEncoder)
    bio = models.TextField(max_length=1000, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"Dr. {self.user.get_full_name() or self.user.email} ({self.specialization})"


class Appointment(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELED = 'canceled'
    STATUS_CHOICES = (
        (STATUS_PENDING, 'pending'),
        (STATUS_APPROVED, 'approved'),
        (STATUS_COMPLETED, 'completed'),
        (STATUS_CANCELED, 'canceled'),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='appointments')
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name='appointments')
    appointment_date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    reason = models.CharField(max_length=500)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['doctor', 'appointment_date', 'start_time'], name='clinic_appo_doctor__0c1d2e_idx'),
            models.Index(fields=['patient', 'appointment_date'], name='clinic_appo_patient_5a7b8c_idx'),
        ]

    def __str__(self) -> str:
        return f"appt {self.appointment_date} {self.start_time} p={self.patient_id} d={self.doctor_id} [{self.status}]"


class MedicalRecord(models.Model):
    STATUS_OPEN = 'open'
    STATUS_CLOSED = 'closed'
    STATUS_CHOICES = ((STATUS_OPEN, 'open'), (STATUS_CLOSED, 'closed'))

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='medical_records')
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name='medical_records')
    appointment = models.ForeignKey(
        Appointment, null=True, blank=True, on_delete=models.SET_NULL, related_name='medical_records'
    )
    prescription = models.ForeignKey(
        'Prescription', null=True, blank=True, on_delete=models.SET_NULL, related_name='+'
    )
    visit_date = models.DateTimeField(default=timezone.now)
    symptoms = models.JSONField(default=list)
    diagnosis = models.TextField()
    treatments = models.JSONField(default=list)
    # [{testName, result, date}]
    lab_tests = models.JSONField(default=list, blank=True, encoder=DjangoJSONEncoder)
    # {bloodPressure, heartRate, temperature, weight, height}
    vital_signs = models.JSONField(default=dict, blank=True)
    consultation_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0'))
    status = models.CharField(max_length=8, choices=STATUS_CHOICES, default=STATUS_OPEN)
    attachments = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [models.Index(fields=['patient', 'visit_date'], name='clinic_medi_patient_3d4e5f_idx')]

    def __str__(self) -> str:
        return f"record {self.id} p={self.patient_id} @ {self.visit_date:%F}"


class Prescription(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_DISPENSED = 'dispensed'
    STATUS_CANCELED = 'canceled'
    STATUS_CHOICES = (
        (STATUS_PENDING, 'pending'),
        (STATUS_DISPENSED, 'dispensed'),
        (STATUS_CANCELED, 'canceled'),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='prescriptions')
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name='prescriptions')
    medical_record = models.ForeignKey(MedicalRecord, on_delete=models.CASCADE, related_name='prescriptions')
    # [{medicineName, dosage, frequency, duration, instructions}]
    medications = models.JSONField(default=list)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    issued_date = models.DateTimeField(default=timezone.now)
    dispensed_date = models.DateTimeField(null=True, blank=True)
    dispensed_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='prescriptions_dispensed'
    )
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [models.Index(fields=['patient', 'issued_date'], name='clinic_pres_patient_6a7b8c_idx')]

    def __str__(self) -> str:
        return f"rx {self.id} p={self.patient_id} [{self.status}]"


class PharmacyInventory(models.Model):
    """One stock row (medicine + batch)."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    medicine_name = models.CharField(max_length=255, db_index=True)
    generic_name = models.CharField(max_length=255, blank=True)
    category = models.CharField(max_length=128)
    manufacturer = models.CharField(max_length=255)
    batch_number = models.CharField(max_length=64)
    expiry_date = models.DateField()
    quantity = models.PositiveIntegerField(default=0)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    reorder_level = models.PositiveIntegerField(default=10)
    is_low_stock = models.BooleanField(default=False, db_index=True)
    description = models.TextField(blank=True)
    side_effects = models.JSONField(default=list, blank=True)
    created_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='inventory_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = 'pharmacy inventory'
        indexes = [models.Index(fields=['medicine_name', 'batch_number'], name='clinic_phar_medicin_9d0e1f_idx')]

    def save(self, *args, **kwargs):
        self.is_low_stock = self.quantity <= self.reorder_level
        update_fields = kwargs.get('update_fields')
        if update_fields is not None:
            kwargs['update_fields'] = set(update_fields) | {'is_low_stock'}
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.medicine_name} #{self.batch_number} x{self.quantity}"


class Billing(models.Model):
    STATUS_PAID = 'paid'
    STATUS_UNPAID = 'unpaid'
    STATUS_PARTIALLY_PAID = 'partially_paid'
    STATUS_CANCELED = 'canceled'
    STATUS_CHOICES = (
        (STATUS_PAID, 'paid'),
        (STATUS_UNPAID, 'unpaid'),
        (STATUS_PARTIALLY_PAID, 'partially paid'),
        (STATUS_CANCELED, 'canceled'),
    )
    PAYMENT_METHOD_CHOICES = (
        ('cash', 'cash'),
        ('card', 'card'),
        ('transfer', 'transfer'),
        ('insurance', 'insurance'),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='bills')
    appointment = models.ForeignKey(Appointment, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    medical_record = models.ForeignKey(MedicalRecord, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    prescription = models.ForeignKey(Prescription, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    invoice_number = models.CharField(max_length=32, unique=True)
    # [{description, quantity, unitPrice, totalPrice}]
    items = models.JSONField(default=list)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    tax = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_UNPAID, db_index=True)
    payment_method = models.CharField(max_length=16, choices=PAYMENT_METHOD_CHOICES, blank=True)
    paid_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    balance_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    payment_date = models.DateTimeField(null=True, blank=True)
    due_date = models.DateField()
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='bills_created')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [models.Index(fields=['patient', 'created_at'], name='clinic_bill_patient_2b3c4d_idx')]

    def __str__(self) -> str:
        return f"{self.invoice_number} [{self.status}] {self.total_amount}"


class AuditLog(models.Model):
    """Append-only trail of user actions."""
    ACTION_CHOICES = [(a, a) for a in (
        'CREATE', 'READ', 'UPDATE', 'DELETE', 'LOGIN', 'LOGOUT',
        'APPROVE', 'CANCEL', 'DISPENSE', 'PAYMENT',
    )]
    ENTITY_CHOICES = [(e, e) for e in (
        'User', 'Patient', 'Doctor', 'Appointment', 'MedicalRecord',
        'Prescription', 'PharmacyInventory', 'Billing', 'System',
    )]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='audit_logs')
    user_role = models.CharField(max_length=16)
    action = models.CharField(max_length=16, choices=ACTION_CHOICES)
    entity = models.CharField(max_length=32, choices=ENTITY_CHOICES)
    entity_id = models.CharField(max_length=64, blank=True, null=True)
    description = models.CharField(max_length=500)
    ip_address = models.GenericIPAddressField(blank=True, null=True)
    user_agent = models.CharField(max_length=500, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    timestamp = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        indexes = [
            models.Index(fields=['user', 'timestamp'], name='clinic_audi_user_id_4e5f6a_idx'),
            models.Index(fields=['entity', 'entity_id', 'timestamp'], name='clinic_audi_entity_7b8c9d_idx'),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError('audit log entries are append-only')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError('audit log entries cannot be deleted')

    def __str__(self):
        return f"{self.action}:{self.entity}:{self.entity_id} by {self.user_id}@{self.timestamp:%F %T}"
