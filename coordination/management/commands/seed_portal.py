"""
Management command to populate the database with demo data.

Idempotent: re-running updates the same hospitals, users, donors and
patients instead of duplicating them.  Every seeded account uses the
password given by ``--password``.
"""
from datetime import timedelta

from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from coordination.models import Donor, DonorOrgan, Hospital, Patient, User

HOSPITALS = [
    {'id': 'H1', 'name': 'City General Hospital', 'city': 'Springfield', 'state': 'IL'},
    {'id': 'H2', 'name': 'St. Mary Medical Center', 'city': 'Peoria', 'state': 'IL'},
    {'id': 'H3', 'name': 'Lakeside Transplant Institute', 'city': 'Chicago', 'state': 'IL'},
]

# (id, hospital, name, blood type, organs, days since registration, verified)
DONORS = [
    ('DON_H2_001', 'H2', 'Daniel Reyes', 'O+', ['Kidney', 'Liver'], 3, True),
    ('DON_H2_002', 'H2', 'Grace Liu', 'O-', ['Kidney'], 45, True),
    ('DON_H3_001', 'H3', 'Samuel Okafor', 'AB+', ['Kidney', 'Heart'], 12, True),
    ('DON_H3_002', 'H3', 'Elena Petrova', 'A+', ['Liver'], 200, True),
    ('DON_H1_001', 'H1', 'Marcus Hill', 'B+', ['Kidney'], 20, False),
]

# (id, hospital, name, blood type, organ, urgency)
PATIENTS = [
    ('PAT_H1_001', 'H1', 'Anna Schmidt', 'O+', 'Kidney', 'Critical'),
    ('PAT_H1_002', 'H1', 'Victor Hugo', 'A+', 'Liver', 'High'),
    ('PAT_H2_001', 'H2', 'Lena Novak', 'AB+', 'Heart', 'Medium'),
]


class Command(BaseCommand):
    help = 'Populate the database with demo hospitals, users, donors and patients'

    def add_arguments(self, parser):
        parser.add_argument('--password', default='Portal#2024', help='password for every seeded account')

    @transaction.atomic
    def handle(self, *args, **options):
        password = make_password(options['password'])
        now = timezone.now()

        for data in HOSPITALS:
            h, _ = Hospital.objects.update_or_create(id=data['id'], defaults=data)
            self._ensure_user(f"staff_{h.id.lower()}", User.ROLE_HOSPITAL, h, password)
        self._ensure_user('portal_admin', User.ROLE_ADMIN, None, password)

        for donor_id, hospital_id, name, blood_type, organs, age_days, verified in DONORS:
            donor, _ = Donor.objects.update_or_create(
                id=donor_id,
                defaults={
                    'hospital_id': hospital_id,
                    'full_name': name,
                    'blood_type': blood_type,
                    'is_active': True,
                    'signature_verified': verified,
                    'registered_at': now - timedelta(days=age_days),
                },
            )
            for organ in organs:
                DonorOrgan.objects.get_or_create(donor=donor, organ=organ)

        for patient_id, hospital_id, name, blood_type, organ, urgency in PATIENTS:
            Patient.objects.update_or_create(
                id=patient_id,
                defaults={
                    'hospital_id': hospital_id,
                    'full_name': name,
                    'blood_type': blood_type,
                    'organ_needed': organ,
                    'urgency_level': urgency,
                },
            )

        self.stdout.write(self.style.SUCCESS(
            f"Seeded {len(HOSPITALS)} hospitals, {len(DONORS)} donors, {len(PATIENTS)} patients."
        ))

    def _ensure_user(self, username, role, hospital, password):
        u, created = User.objects.get_or_create(
            username=username,
            defaults={'role': role, 'hospital': hospital, 'password': password, 'is_active': True},
        )
        if not created:
            u.role = role
            u.hospital = hospital
            u.password = password
            u.is_active = True
            u.save(update_fields=['role', 'hospital', 'password', 'is_active'])
        self.stdout.write(f"ok: {username} ({role})")
