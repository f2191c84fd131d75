"""
URL mappings for the clinic API.

Paths match the front-end's fetch calls and carry no trailing slash.
"""
from django.urls import include, path

from .views import admin, appointments, auth, billing, doctors, health, patients, pharmacy, prescriptions, records

urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    # Authentication / session
    path('api/auth/register', auth.register),
    path('api/auth/login', auth.login),
    path('api/auth/refresh', auth.refresh),
    path('api/auth/logout', auth.logout),
    path('api/auth/session', auth.session),
    path('api/navigation', auth.navigation),
    # Directory
    path('api/doctors', doctors.doctors),
    path('api/patients', patients.patients),
    path('api/patients/<str:patient_id>', patients.patient_detail),
    # Clinical
    path('api/appointments', appointments.appointments),
    path('api/appointments/<str:appointment_id>', appointments.appointment_detail),
    path('api/medical-records', records.medical_records),
    path('api/medical-records/<str:record_id>', records.medical_record_detail),
    path('api/prescriptions', prescriptions.prescriptions),
    path('api/prescriptions/<str:prescription_id>', prescriptions.prescription_detail),
    # Pharmacy
    path('api/pharmacy/inventory', pharmacy.inventory),
    path('api/pharmacy/inventory/<str:item_id>', pharmacy.inventory_detail),
    # Billing
    path('api/billing', billing.bills),
    path('api/billing/<str:bill_id>', billing.bill_detail),
    # Administration
    path('api/audit-logs', admin.audit_logs),
    path('api/reports', admin.reports),
    path('api/users', admin.users),
]
