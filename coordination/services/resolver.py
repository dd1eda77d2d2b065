"""
Accept/reject handling for matching requests.

A hospital that was notified about a request answers it once.  The
status change is a compare-and-set from ``matched`` so that when several
hospitals race to accept, exactly one wins and the others get
:class:`~coordination.exceptions.Conflict`.  Every successful answer
produces one ``match_response`` notification for the requesting
hospital and marks the responder's ``organ_match`` entry as read.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from coordination.exceptions import Conflict
from coordination.models import MatchingRequest, Notification

logger = logging.getLogger(__name__)

ACCEPT = 'accept'
REJECT = 'reject'
DECISIONS = (ACCEPT, REJECT)

RESPONSE_TEXT = {
    ACCEPT: ('Match Accepted!',
             'Your organ request has been accepted. Please coordinate with the donor hospital.'),
    REJECT: ('Match Declined',
             'Your organ request has been declined. Continue searching for other matches.'),
}


class ResponseResolver:

    def __init__(self, store, publisher=None, clock=None):
        self.store = store
        self.publisher = publisher
        self.clock = clock or timezone.now

    def resolve(self, request_id: str, responding_hospital_id: str, decision: str,
                donor_id: Optional[str] = None, *, notes: str = '', user=None) -> dict:
        errors = {}
        if not request_id:
            errors['requestId'] = ['request id is required']
        if not responding_hospital_id:
            errors['hospitalId'] = ['responding hospital is required']
        if decision not in DECISIONS:
            errors['response'] = ['response must be "accept" or "reject"']
        elif decision == ACCEPT and not donor_id:
            errors['donorId'] = ['donor id is required to accept']
        if errors:
            raise ValidationError(errors)

        req = self.store.get_request(request_id)
        if req is None:
            raise NotFound('matching request not found')
        if responding_hospital_id not in self.store.candidate_hospitals(request_id):
            raise PermissionDenied('your hospital holds no candidate for this request')
        # only a donor ranked for this request at the responder's hospital can be accepted
        if decision == ACCEPT and donor_id not in self.store.candidate_donors(request_id, responding_hospital_id):
            raise PermissionDenied("donor is not one of your hospital's candidates for this request")
        if req.status != MatchingRequest.STATUS_MATCHED:
            raise Conflict(f'matching request is already {req.status}')

        new_status = MatchingRequest.STATUS_ACCEPTED if decision == ACCEPT else MatchingRequest.STATUS_REJECTED
        matched_donor_id = donor_id if decision == ACCEPT else None
        matched_hospital_id = responding_hospital_id if decision == ACCEPT else None
        title, message = RESPONSE_TEXT[decision]

        with self.store.atomic():
            won = self.store.transition(
                request_id,
                MatchingRequest.STATUS_MATCHED,
                new_status,
                matched_donor_id=matched_donor_id,
                matched_hospital_id=matched_hospital_id,
                notes=notes or '',
                resolved_at=self.clock(),
            )
            if not won:
                logger.warning('hospital %s lost the race to %s %s', responding_hospital_id, decision, request_id)
                raise Conflict('matching request was resolved by another hospital')
            notification_id = self.store.add_notification(
                hospital_id=req.requesting_hospital_id,
                type=Notification.TYPE_MATCH_RESPONSE,
                title=title,
                message=message,
                request_id=request_id,
                payload={
                    'requestRef': request_id,
                    'recipientRef': req.patient_ref,
                    'decision': decision,
                    'respondingHospitalId': responding_hospital_id,
                    'donorId': matched_donor_id,
                },
            )
            self.store.mark_read(request_id, responding_hospital_id, Notification.TYPE_ORGAN_MATCH)
            self.store.audit(
                user=user,
                action='match_request_resolve',
                object_id=request_id,
                detail={'decision': decision, 'hospitalId': responding_hospital_id, 'donorId': matched_donor_id},
            )

        if self.publisher is not None:
            self.publisher.publish(req.requesting_hospital_id, {
                'id': notification_id,
                'notificationType': Notification.TYPE_MATCH_RESPONSE,
                'title': title,
                'message': message,
                'requestRef': request_id,
            })
        logger.info('matching request %s %s by hospital %s', request_id, new_status, responding_hospital_id)
        return {
            'ok': True,
            'requestId': request_id,
            'status': new_status,
            'matchedDonorId': matched_donor_id,
            'matchedHospitalId': matched_hospital_id,
            'notificationId': notification_id,
        }
