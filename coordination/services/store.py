"""
Storage collaborator for the matching engine.

The engine talks to persistence only through the methods of
:class:`OrmMatchingStore`.  Any object exposing the same methods can be
injected instead, which is how the service tests run without a
database.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from django.db import DatabaseError, transaction
from django.db.models import Prefetch
from django.utils import timezone

from coordination.exceptions import StorageUnavailable
from coordination.models import Donor, DonorOrgan, MatchingRequest, Notification, RankedCandidate
from coordination.services.audit import log_action
from coordination.services.refs import make_ref
from coordination.services.scoring import DonorRecord, MatchCandidate, Need


@dataclass
class RequestRecord:
    id: str
    patient_ref: str
    requesting_hospital_id: str
    organ_type: str
    blood_type: str
    urgency_level: str
    best_score: Decimal
    status: str
    created_at: Optional[datetime] = None
    matched_donor_id: Optional[str] = None
    matched_hospital_id: Optional[str] = None
    notes: str = ''
    resolved_at: Optional[datetime] = None


class OrmMatchingStore:

    def atomic(self):
        return transaction.atomic()

    def eligible_donors(self, need: Need, blood_types) -> list[DonorRecord]:
        try:
            qs = (
                Donor.objects.filter(
                    blood_type__in=list(blood_types),
                    is_active=True,
                    signature_verified=True,
                    organs__organ=need.organ_type,
                )
                .exclude(hospital_id=need.hospital_id)
                .distinct()
                .prefetch_related(Prefetch('organs', queryset=DonorOrgan.objects.only('donor_id', 'organ')))
                .order_by('-created_at', 'id')
            )
            return [
                DonorRecord(
                    donor_id=d.id,
                    hospital_id=d.hospital_id,
                    blood_type=d.blood_type,
                    organs=frozenset(o.organ for o in d.organs.all()),
                    is_active=d.is_active,
                    signature_verified=d.signature_verified,
                    registered_at=d.registered_at,
                )
                for d in qs
            ]
        except DatabaseError as e:
            raise StorageUnavailable() from e

    def save_request(self, record: RequestRecord, candidates: list[MatchCandidate]) -> str:
        try:
            with transaction.atomic():
                MatchingRequest.objects.create(
                    id=record.id,
                    patient_ref=record.patient_ref,
                    requesting_hospital_id=record.requesting_hospital_id,
                    organ_type=record.organ_type,
                    blood_type=record.blood_type,
                    urgency_level=record.urgency_level,
                    best_score=record.best_score,
                    status=record.status,
                )
                RankedCandidate.objects.bulk_create([
                    RankedCandidate(
                        request_id=record.id,
                        rank=i,
                        donor_ref=c.donor_id,
                        hospital_ref=c.hospital_id,
                        blood_type=c.blood_type,
                        organs=list(c.organs),
                        registered_at=c.registered_at,
                        score=c.score,
                        compatibility=c.compatibility,
                        urgency_bonus=c.urgency_bonus,
                        proximity=c.proximity,
                        freshness=c.freshness,
                    )
                    for i, c in enumerate(candidates, start=1)
                ])
        except DatabaseError as e:
            raise StorageUnavailable() from e
        return record.id

    def get_request(self, request_id: str) -> Optional[MatchingRequest]:
        return MatchingRequest.objects.filter(id=request_id).first()

    def candidate_hospitals(self, request_id: str) -> set[str]:
        return set(
            RankedCandidate.objects.filter(request_id=request_id).values_list('hospital_ref', flat=True)
        )

    def candidate_donors(self, request_id: str, hospital_id: str) -> set[str]:
        return set(
            RankedCandidate.objects.filter(request_id=request_id, hospital_ref=hospital_id)
            .values_list('donor_ref', flat=True)
        )

    def transition(self, request_id: str, expected: str, new: str, **fields) -> bool:
        """Compare-and-set the request status; True only for the winning caller."""
        now = timezone.now()
        updated = MatchingRequest.objects.filter(id=request_id, status=expected).update(
            status=new, updated_at=now, **fields
        )
        return updated == 1

    def add_notification(self, *, hospital_id: str, type: str, title: str, message: str,
                         request_id: Optional[str], payload: Optional[dict] = None) -> str:
        notification_id = make_ref('NOTIF')
        # savepoint so a failed insert leaves any outer transaction usable
        with transaction.atomic():
            Notification.objects.create(
                id=notification_id,
                hospital_id=hospital_id,
                type=type,
                title=title,
                message=message,
                request_id=request_id,
                payload=payload or {},
            )
        return notification_id

    def mark_read(self, request_id: str, hospital_id: str, type: str) -> int:
        return Notification.objects.filter(
            request_id=request_id, hospital_id=hospital_id, type=type, is_read=False
        ).update(is_read=True)

    def audit(self, *, user, action: str, object_id: str, detail: dict) -> None:
        try:
            log_action(user=user, action=action, object_type='matching_request', object_id=object_id, detail=detail)
        except DatabaseError as e:
            raise StorageUnavailable() from e
