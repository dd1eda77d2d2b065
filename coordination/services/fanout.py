"""
Notification fan-out for a freshly matched request.

Each hospital holding at least one ranked candidate receives exactly one
``organ_match`` notification whose payload lists *only that hospital's*
candidates, so competing hospitals never see each other's donors.
Delivery is best effort: a hospital whose notification cannot be stored
is logged and skipped while the others still receive theirs, and the
request itself is left as it is.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from coordination.models import Notification
from coordination.services.scoring import MatchCandidate

logger = logging.getLogger(__name__)

MATCH_TITLE = 'Organ Match Found'
MATCH_MESSAGE = (
    'Your hospital has {count} potential donor(s) for a patient in need. '
    'Please review the matching request.'
)


@dataclass
class FanoutResult:
    delivered: dict = field(default_factory=dict)  # hospital id -> notification id
    failed: list = field(default_factory=list)


def group_by_hospital(candidates: Iterable[MatchCandidate]) -> dict[str, list[MatchCandidate]]:
    """Group ranked candidates per hospital, keeping rank order inside each group."""
    groups: dict[str, list[MatchCandidate]] = {}
    for c in candidates:
        groups.setdefault(c.hospital_id, []).append(c)
    return groups


class NotificationFanout:

    def __init__(self, store, publisher=None):
        self.store = store
        self.publisher = publisher

    def dispatch(self, request_id: str, patient_ref: str, candidates: list[MatchCandidate],
                 organ_type: Optional[str] = None) -> FanoutResult:
        result = FanoutResult()
        for hospital_id, matches in group_by_hospital(candidates).items():
            payload = {
                'matches': [m.as_dict() for m in matches],
                'recipientRef': patient_ref,
                'requestRef': request_id,
            }
            if organ_type:
                payload['organType'] = organ_type
            message = MATCH_MESSAGE.format(count=len(matches))
            try:
                notification_id = self.store.add_notification(
                    hospital_id=hospital_id,
                    type=Notification.TYPE_ORGAN_MATCH,
                    title=MATCH_TITLE,
                    message=message,
                    request_id=request_id,
                    payload=payload,
                )
            except Exception:
                logger.exception('organ_match notification for hospital %s on %s failed', hospital_id, request_id)
                result.failed.append(hospital_id)
                continue
            result.delivered[hospital_id] = notification_id
            if self.publisher is not None:
                self.publisher.publish(hospital_id, {
                    'id': notification_id,
                    'notificationType': Notification.TYPE_ORGAN_MATCH,
                    'title': MATCH_TITLE,
                    'message': message,
                    'requestRef': request_id,
                })
        if result.failed:
            logger.warning('fan-out for %s reached %d of %d hospitals',
                           request_id, len(result.delivered), len(result.delivered) + len(result.failed))
        return result
