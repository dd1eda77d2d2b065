"""
Matching engine: turns "patient needs organ X" into a ranked, persisted,
notified matching request.

:class:`MatchingEngine` receives its collaborators (store, scorer, clock,
realtime publisher) through the constructor.  Views build one per call
with the defaults; tests inject an in-memory store and a fixed clock.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.utils import timezone
from django.utils.module_loading import import_string

from coordination.models import MatchingRequest
from coordination.services.candidates import find_candidates
from coordination.services.fanout import NotificationFanout
from coordination.services.realtime import default_publisher
from coordination.services.refs import make_ref
from coordination.services.resolver import ResponseResolver
from coordination.services.scoring import MatchCandidate, MatchScorer, Need
from coordination.services.store import OrmMatchingStore, RequestRecord

logger = logging.getLogger(__name__)

_UNSET = object()


def load_proximity_estimator():
    path = settings.MATCHING.get('PROXIMITY_ESTIMATOR') or 'coordination.services.scoring.HashProximityEstimator'
    return import_string(path)()


@dataclass
class MatchResult:
    patient_ref: str
    matches: list[MatchCandidate] = field(default_factory=list)

    @property
    def total_matches(self) -> int:
        return len(self.matches)

    @property
    def best_match(self) -> Optional[MatchCandidate]:
        return self.matches[0] if self.matches else None

    def as_dict(self) -> dict:
        best = self.best_match
        return {
            'patientId': self.patient_ref,
            'matches': [m.as_dict() for m in self.matches],
            'totalMatches': self.total_matches,
            'bestMatch': best.as_dict() if best else None,
        }


@dataclass
class RequestSummary:
    request_id: str
    status: str
    best_score: Decimal
    total_matches: int
    notifications_sent: int = 0
    notifications_failed: list = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            'requestId': self.request_id,
            'status': self.status,
            'bestScore': float(self.best_score),
            'totalMatches': self.total_matches,
            'notificationsSent': self.notifications_sent,
            'notificationsFailed': list(self.notifications_failed),
        }


class MatchingEngine:

    def __init__(self, store=None, scorer=None, clock=None, publisher=_UNSET):
        self.store = store if store is not None else OrmMatchingStore()
        self.scorer = scorer or MatchScorer(load_proximity_estimator())
        self.clock = clock or timezone.now
        if publisher is _UNSET:
            publisher = default_publisher()
        self.fanout = NotificationFanout(self.store, publisher)
        self.resolver = ResponseResolver(self.store, publisher, clock=self.clock)

    def find_matches(self, need: Need) -> MatchResult:
        """Rank candidates for ``need`` without persisting anything."""
        need.validate()
        donors = find_candidates(need, self.store)
        return MatchResult(patient_ref=need.patient_ref, matches=self.scorer.score_all(need, donors, self.clock()))

    def create_request(self, need: Need, *, user=None) -> RequestSummary:
        """Persist a matching request for ``need`` and notify donor hospitals.

        The request is evaluated as soon as it is created: with at least one
        candidate it is stored as ``matched`` together with the full ranked
        snapshot, otherwise as ``no_matches``.  Notifications go out only for
        matched requests, after the request is committed.
        """
        result = self.find_matches(need)
        best = result.best_match
        status = MatchingRequest.STATUS_MATCHED if best else MatchingRequest.STATUS_NO_MATCHES
        record = RequestRecord(
            id=make_ref('MATCH_REQ'),
            patient_ref=need.patient_ref,
            requesting_hospital_id=need.hospital_id,
            organ_type=need.organ_type,
            blood_type=need.blood_type,
            urgency_level=need.urgency_level,
            best_score=best.score if best else Decimal('0'),
            status=status,
        )
        with self.store.atomic():
            self.store.save_request(record, result.matches)
            self.store.audit(
                user=user,
                action='match_request_create',
                object_id=record.id,
                detail={'status': status, 'totalMatches': result.total_matches, 'hospitalId': need.hospital_id},
            )
        logger.info('matching request %s for %s stored as %s with %d candidate(s)',
                    record.id, need.patient_ref, status, result.total_matches)

        summary = RequestSummary(
            request_id=record.id,
            status=status,
            best_score=record.best_score,
            total_matches=result.total_matches,
        )
        if status == MatchingRequest.STATUS_MATCHED:
            fanout = self.fanout.dispatch(record.id, need.patient_ref, result.matches, organ_type=need.organ_type)
            summary.notifications_sent = len(fanout.delivered)
            summary.notifications_failed = fanout.failed
        return summary

    def resolve(self, request_id: str, responding_hospital_id: str, decision: str,
                donor_id: Optional[str] = None, *, notes: str = '', user=None) -> dict:
        return self.resolver.resolve(
            request_id, responding_hospital_id, decision, donor_id, notes=notes, user=user
        )
