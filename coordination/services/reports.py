from typing import Optional

from django.db.models import Count, Prefetch

from coordination.models import MatchingRequest, Notification, RankedCandidate


def _iso(dt):
    return dt.isoformat() if dt else None


def format_candidate(c: RankedCandidate) -> dict:
    return {
        'rank': c.rank,
        'donorId': c.donor_ref,
        'hospitalId': c.hospital_ref,
        'bloodType': c.blood_type,
        'organs': c.organs,
        'registeredAt': _iso(c.registered_at),
        'score': float(c.score),
        'compatibility': float(c.compatibility),
        'urgencyBonus': float(c.urgency_bonus),
        'proximity': float(c.proximity),
        'freshness': float(c.freshness),
    }


def format_request(r: MatchingRequest) -> dict:
    return {
        'requestId': r.id,
        'patientId': r.patient_ref,
        'requestingHospitalId': r.requesting_hospital_id,
        'requestingHospitalName': getattr(r.requesting_hospital, 'name', None),
        'organType': r.organ_type,
        'bloodType': r.blood_type,
        'urgencyLevel': r.urgency_level,
        'bestScore': float(r.best_score),
        'status': r.status,
        'matchedDonorId': r.matched_donor_id,
        'matchedHospitalId': r.matched_hospital_id,
        'createdAt': _iso(r.created_at),
        'updatedAt': _iso(r.updated_at),
        'resolvedAt': _iso(r.resolved_at),
    }


def can_view_request(user, r: MatchingRequest) -> bool:
    if getattr(user, 'role', '') == 'admin':
        return True
    hospital_id = getattr(user, 'hospital_id', None)
    if not hospital_id:
        return False
    if r.requesting_hospital_id == hospital_id:
        return True
    return r.candidates.filter(hospital_ref=hospital_id).exists()


def request_detail(user, r: MatchingRequest) -> dict:
    """Request with its ranked snapshot as visible to ``user``.

    The requesting hospital and admins see every candidate; a donor
    hospital sees only its own rows.
    """
    candidates = r.candidates.all()
    full_view = getattr(user, 'role', '') == 'admin' or r.requesting_hospital_id == getattr(user, 'hospital_id', None)
    if not full_view:
        candidates = candidates.filter(hospital_ref=user.hospital_id)
    return {**format_request(r), 'candidates': [format_candidate(c) for c in candidates]}


def list_requests(user, *, status: Optional[str]=None, page: int=1, page_size: int=20):
    qs = MatchingRequest.objects.all()
    if getattr(user, 'role', '') != 'admin':
        qs = qs.filter(requesting_hospital_id=getattr(user, 'hospital_id', None))
    if status:
        qs = qs.filter(status=status)
    total = qs.count()
    page = max(1, int(page or 1))
    page_size = min(100, max(1, int(page_size or 20)))
    start = (page-1)*page_size
    items = qs.select_related('requesting_hospital').order_by('-created_at', '-id')[start:start+page_size]
    return [format_request(r) for r in items], total


def incoming_matches(hospital_id: str) -> list[dict]:
    qs = (
        Notification.objects
        .filter(hospital_id=hospital_id, type=Notification.TYPE_ORGAN_MATCH, is_read=False)
        .select_related('request', 'request__requesting_hospital')
        .order_by('-created_at')
    )
    data = []
    for n in qs:
        r = n.request
        data.append({
            'notificationId': n.id,
            'title': n.title,
            'message': n.message,
            'createdAt': _iso(n.created_at),
            'matches': n.payload.get('matches', []),
            'request': format_request(r) if r else None,
        })
    return data


def match_stats(hospital_id: str) -> dict:
    outgoing = (
        MatchingRequest.objects.filter(requesting_hospital_id=hospital_id)
        .values('status').annotate(count=Count('id')).order_by('status')
    )
    incoming = Notification.objects.filter(hospital_id=hospital_id, type=Notification.TYPE_ORGAN_MATCH).count()
    return {
        'outgoing': {row['status']: row['count'] for row in outgoing},
        'incoming': incoming,
    }
