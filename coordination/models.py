"""
Database models for the organ portal.

These models capture hospitals and their users, the donor pool and
recipients each hospital registers, and the matching workflow:
a :class:`MatchingRequest` with its ranked candidate snapshot and the
per-hospital :class:`Notification` inbox entries it produces.
Matching requests and notifications form the audit trail and are
never deleted by application code.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models


BLOOD_TYPE_CHOICES = [(bt, bt) for bt in ('O-', 'O+', 'A-', 'A+', 'B-', 'B+', 'AB-', 'AB+')]
URGENCY_CHOICES = [(u, u) for u in ('Critical', 'High', 'Medium', 'Low')]


class Hospital(models.Model):
    """A facility that registers donors and patients.

    The primary key is a short string (e.g. ``'H1'``) so identifiers are
    stable across environments and readable in notification payloads.
    """
    id = models.CharField(max_length=64, primary_key=True)
    name = models.CharField(max_length=255)
    city = models.CharField(max_length=128, blank=True)
    state = models.CharField(max_length=128, blank=True)
    country = models.CharField(max_length=128, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


class User(AbstractUser):
    """Custom user model bound to a hospital.

    Hospital staff act on behalf of their bound hospital; the hospital
    id is the verified facility identity the matching engine receives.
    Admins oversee every hospital and may not be bound to one.
    """
    ROLE_HOSPITAL = 'hospital'
    ROLE_ADMIN = 'admin'
    ROLE_CHOICES = [
        (ROLE_HOSPITAL, 'Hospital staff'),
        (ROLE_ADMIN, 'Administrator'),
    ]
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_HOSPITAL)
    hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='users', db_index=True
    )

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Patient(models.Model):
    """A recipient waiting for an organ at one hospital."""
    id = models.CharField(max_length=64, primary_key=True)
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='patients')
    full_name = models.CharField(max_length=255)
    blood_type = models.CharField(max_length=3, choices=BLOOD_TYPE_CHOICES)
    organ_needed = models.CharField(max_length=32)
    urgency_level = models.CharField(max_length=10, choices=URGENCY_CHOICES, default='Medium')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.full_name} needs {self.organ_needed} ({self.id})"


class Donor(models.Model):
    """A registered donor held by one hospital.

    Only donors that are both active and signature-verified take part in
    matching.  The organs a donor offers live in :class:`DonorOrgan` so
    the candidate query stays a plain join on every database backend.
    """
    id = models.CharField(max_length=64, primary_key=True)
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='donors')
    full_name = models.CharField(max_length=255)
    blood_type = models.CharField(max_length=3, choices=BLOOD_TYPE_CHOICES, db_index=True)
    is_active = models.BooleanField(default=True)
    signature_verified = models.BooleanField(default=False)
    registered_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['blood_type', 'is_active', 'signature_verified'], name='donor_bt_active_verified_idx'),
        ]

    @property
    def organ_list(self) -> list[str]:
        return sorted(o.organ for o in self.organs.all())

    def __str__(self) -> str:
        return f"{self.full_name} ({self.id})"


class DonorOrgan(models.Model):
    donor = models.ForeignKey(Donor, on_delete=models.CASCADE, related_name='organs')
    organ = models.CharField(max_length=32, db_index=True)

    class Meta:
        unique_together = [('donor', 'organ')]

    def __str__(self) -> str:
        return f"{self.donor_id}: {self.organ}"


class MatchingRequest(models.Model):
    """The persisted record of one matching attempt and its resolution.

    ``status`` and the resolution fields are the only columns that change
    after creation.  The full ranked candidate list is kept in
    :class:`RankedCandidate` rows so alternatives stay visible after the
    request is resolved.
    """
    STATUS_CREATED = 'created'
    STATUS_MATCHED = 'matched'
    STATUS_NO_MATCHES = 'no_matches'
    STATUS_ACCEPTED = 'accepted'
    STATUS_REJECTED = 'rejected'
    STATUS_CHOICES = [
        (STATUS_CREATED, 'created'),
        (STATUS_MATCHED, 'matched'),
        (STATUS_NO_MATCHES, 'no_matches'),
        (STATUS_ACCEPTED, 'accepted'),
        (STATUS_REJECTED, 'rejected'),
    ]

    id = models.CharField(max_length=64, primary_key=True)
    patient_ref = models.CharField(max_length=64, db_index=True)
    requesting_hospital = models.ForeignKey(
        Hospital, on_delete=models.PROTECT, related_name='outgoing_requests'
    )
    organ_type = models.CharField(max_length=32)
    blood_type = models.CharField(max_length=3, choices=BLOOD_TYPE_CHOICES)
    urgency_level = models.CharField(max_length=10, choices=URGENCY_CHOICES)
    best_score = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_CREATED, db_index=True)
    matched_donor = models.ForeignKey(
        Donor, null=True, blank=True, on_delete=models.SET_NULL, related_name='accepted_requests'
    )
    matched_hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='accepted_requests'
    )
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=['requesting_hospital', 'status', 'created_at'], name='matchreq_hosp_status_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.id} [{self.status}]"


class RankedCandidate(models.Model):
    """One scored donor inside a request's ranked snapshot.

    Donor and hospital are stored as plain references so the snapshot
    survives later edits to the donor pool.
    """
    request = models.ForeignKey(MatchingRequest, on_delete=models.CASCADE, related_name='candidates')
    rank = models.PositiveIntegerField()
    donor_ref = models.CharField(max_length=64, db_index=True)
    hospital_ref = models.CharField(max_length=64, db_index=True)
    blood_type = models.CharField(max_length=3)
    organs = models.JSONField(default=list)
    registered_at = models.DateTimeField()
    score = models.DecimalField(max_digits=5, decimal_places=2)
    compatibility = models.DecimalField(max_digits=5, decimal_places=2)
    urgency_bonus = models.DecimalField(max_digits=5, decimal_places=2)
    proximity = models.DecimalField(max_digits=5, decimal_places=2)
    freshness = models.DecimalField(max_digits=5, decimal_places=2)

    class Meta:
        ordering = ['rank']
        unique_together = [('request', 'rank')]

    def __str__(self) -> str:
        return f"{self.request_id}#{self.rank} {self.donor_ref} ({self.score})"


class Notification(models.Model):
    """A per-hospital inbox entry produced by the matching workflow."""
    TYPE_ORGAN_MATCH = 'organ_match'
    TYPE_MATCH_RESPONSE = 'match_response'
    TYPE_CHOICES = [
        (TYPE_ORGAN_MATCH, 'organ_match'),
        (TYPE_MATCH_RESPONSE, 'match_response'),
    ]

    id = models.CharField(max_length=64, primary_key=True)
    hospital = models.ForeignKey(Hospital, on_delete=models.PROTECT, related_name='notifications')
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    title = models.CharField(max_length=255)
    message = models.TextField()
    request = models.ForeignKey(
        MatchingRequest, null=True, blank=True, on_delete=models.PROTECT, related_name='notifications'
    )
    is_read = models.BooleanField(default=False)
    payload = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['hospital', 'type', 'is_read'], name='notif_hosp_type_read_idx'),
            models.Index(fields=['request', 'hospital'], name='notif_request_hosp_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.type} -> {self.hospital_id} ({self.id})"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.CharField(max_length=64, blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_created_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.object_id}@{self.created_at:%F %T}"
