"""
Django admin registrations for the clinic models.

Audit log entries are append-only, so their admin is read-only.
"""
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import (
    AuditLog,
    Appointment,
    Billing,
    Doctor,
    MedicalRecord,
    Patient,
    PharmacyInventory,
    Prescription,
    User,
)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    ordering = ('email',)
    list_display = ('email', 'first_name', 'last_name', 'role', 'is_active', 'is_staff')
    list_filter = ('role', 'is_active', 'is_staff')
    search_fields = ('email', 'first_name', 'last_name', 'phone')
    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Profile', {'fields': ('first_name', 'last_name', 'phone', 'role')}),
        ('Permissions', {'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
        ('Dates', {'fields': ('last_login', 'date_joined')}),
    )
    add_fieldsets = (
        (None, {'classes': ('wide',), 'fields': ('email', 'role', 'password1', 'password2')}),
    )


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('user', 'gender', 'date_of_birth', 'blood_group', 'created_at')
    list_filter = ('gender', 'blood_group')
    search_fields = ('user__email', 'user__first_name', 'user__last_name')
    raw_id_fields = ('user', 'created_by')


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ('user', 'specialization', 'department', 'license_number', 'consultation_fee')
    list_filter = ('department', 'specialization')
    search_fields = ('user__email', 'user__last_name', 'license_number')
    raw_id_fields = ('user',)


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('appointment_date', 'start_time', 'patient', 'doctor', 'status')
    list_filter = ('status', 'appointment_date')
    search_fields = ('patient__user__email', 'doctor__user__email', 'reason')
    raw_id_fields = ('patient', 'doctor')


@admin.register(MedicalRecord)
class MedicalRecordAdmin(admin.ModelAdmin):
    list_display = ('visit_date', 'patient', 'doctor', 'status', 'appointment')
    list_filter = ('status',)
    search_fields = ('patient__user__email', 'diagnosis')
    raw_id_fields = ('patient', 'doctor', 'appointment', 'prescription')


@admin.register(Prescription)
class PrescriptionAdmin(admin.ModelAdmin):
    list_display = ('issued_date', 'patient', 'doctor', 'status', 'dispensed_by')
    list_filter = ('status',)
    search_fields = ('patient__user__email',)
    raw_id_fields = ('patient', 'doctor', 'medical_record', 'dispensed_by')


@admin.register(PharmacyInventory)
class PharmacyInventoryAdmin(admin.ModelAdmin):
    list_display = ('medicine_name', 'batch_number', 'quantity', 'reorder_level', 'is_low_stock', 'expiry_date')
    list_filter = ('is_low_stock', 'category')
    search_fields = ('medicine_name', 'generic_name', 'batch_number')
    readonly_fields = ('is_low_stock',)


@admin.register(Billing)
class BillingAdmin(admin.ModelAdmin):
    list_display = ('invoice_number', 'patient', 'total_amount', 'paid_amount', 'status', 'due_date')
    list_filter = ('status', 'payment_method')
    search_fields = ('invoice_number', 'patient__user__email')
    raw_id_fields = ('patient', 'appointment', 'medical_record', 'prescription', 'created_by')


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ('timestamp', 'user', 'user_role', 'action', 'entity', 'entity_id')
    list_filter = ('action', 'entity', 'user_role')
    search_fields = ('description', 'entity_id', 'user__email')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
