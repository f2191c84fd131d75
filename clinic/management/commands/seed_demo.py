import datetime
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from clinic import roles
from clinic.models import Doctor, Patient, PharmacyInventory, User

DEMO_PASSWORD = 'Demo#2024pass'

DEMO_USERS = [
    ('admin@hms.local', roles.ADMIN, 'Ada', 'Admin'),
    ('doctor@hms.local', roles.DOCTOR, 'Gregory', 'House'),
    ('patient@hms.local', roles.PATIENT, 'Pat', 'Ient'),
    ('pharmacist@hms.local', roles.PHARMACIST, 'Phil', 'Macist'),
    ('nurse@hms.local', roles.NURSE, 'Nora', 'Nurse'),
]


class Command(BaseCommand):
    help = "Ensure one demo account per role exists (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument('--password', default=DEMO_PASSWORD)

    @transaction.atomic
    def handle(self, *args, **opts):
        password = opts['password']
        accounts = {}
        for email, role, first, last in DEMO_USERS:
            user, created = User.objects.get_or_create(
                email=email,
                defaults={'role': role, 'first_name': first, 'last_name': last, 'is_active': True},
            )
            user.role = role
            user.is_active = True
            user.is_staff = role == roles.ADMIN
            user.set_password(password)
            user.save()
            accounts[role] = user
            self.stdout.write(self.style.SUCCESS(f"{'created' if created else 'ok'}: {email} ({role})"))

        Doctor.objects.get_or_create(
            user=accounts[roles.DOCTOR],
            defaults={
                'specialization': 'Internal Medicine',
                'license_number': 'DEMO-0001',
                'department': 'General',
                'consultation_fee': Decimal('50.00'),
                'experience_years': 10,
                'available_slots': [{'day': 'Monday', 'startTime': '09:00', 'endTime': '12:00'}],
            },
        )
        Patient.objects.get_or_create(
            user=accounts[roles.PATIENT],
            defaults={
                'date_of_birth': datetime.date(1990, 1, 1),
                'gender': 'other',
                'address': {'street': '1 Main St', 'city': 'Springfield', 'state': 'IL',
                            'zipCode': '62701', 'country': 'US'},
                'emergency_contact': {'name': 'Sam Ient', 'relationship': 'sibling', 'phone': '555-0100'},
                'created_by': accounts[roles.ADMIN],
            },
        )
        PharmacyInventory.objects.get_or_create(
            medicine_name='Paracetamol',
            batch_number='DEMO-B1',
            defaults={
                'category': 'Analgesic',
                'manufacturer': 'Demo Pharma',
                'expiry_date': datetime.date.today() + datetime.timedelta(days=365),
                'quantity': 5,
                'unit_price': Decimal('0.50'),
                'created_by': accounts[roles.PHARMACIST],
            },
        )
        self.stdout.write(self.style.SUCCESS("Demo data ensured."))
