"""
Organ matching endpoints.

Every handler acts on behalf of the caller's bound hospital: the
hospital id on ``request.user`` is the verified facility identity passed
to the matching engine.  Patients must belong to that hospital before a
search or request is made for them.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status

from coordination.models import MatchingRequest, Patient
from coordination.permissions import IsAdminRole, IsHospitalStaff
from coordination.serializers.matching import NeedSerializer, RequestListQuerySerializer, RespondSerializer
from coordination.services.engine import MatchingEngine
from coordination.services.reports import (
    can_view_request,
    incoming_matches,
    list_requests,
    match_stats,
    request_detail,
)
from coordination.services.scoring import Need


def _need_for_request(request):
    """Validate the body and build the :class:`Need`, or return an error response."""
    s = NeedSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    hospital_id = request.user.hospital_id
    patient = Patient.objects.filter(id=vd['patientId'], hospital_id=hospital_id).first()
    if patient is None:
        return None, Response(
            {'ok': False, 'detail': "Patient not found or doesn't belong to your hospital"},
            status=status.HTTP_404_NOT_FOUND,
        )
    need = Need(
        organ_type=vd.get('organType') or patient.organ_needed,
        blood_type=vd.get('bloodType') or patient.blood_type,
        urgency_level=vd.get('urgencyLevel') or patient.urgency_level,
        hospital_id=hospital_id,
        patient_ref=patient.id,
    )
    return need, None


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsHospitalStaff])
def find_matches(request):
    """Preview ranked donors for a patient without creating a request."""
    need, error = _need_for_request(request)
    if error is not None:
        return error
    result = MatchingEngine().find_matches(need)
    return Response({'ok': True, **result.as_dict()})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsHospitalStaff])
def create_request(request):
    need, error = _need_for_request(request)
    if error is not None:
        return error
    summary = MatchingEngine().create_request(need, user=request.user)
    message = (
        'Matching request created successfully'
        if summary.status == MatchingRequest.STATUS_MATCHED
        else 'No compatible donors found; request closed'
    )
    return Response({'ok': True, **summary.as_dict(), 'message': message}, status=status.HTTP_201_CREATED)

create_request.cls.throttle_scope = 'matching_write'


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsHospitalStaff | IsAdminRole])
def requests_list(request):
    q = RequestListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    page = q.validated_data.get('page', 1)
    page_size = q.validated_data.get('pageSize', 20)
    data, total = list_requests(request.user, status=q.validated_data.get('status'), page=page, page_size=page_size)
    return Response({'ok': True, 'data': data, 'pagination': {'total': total, 'page': page, 'pageSize': page_size}})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsHospitalStaff | IsAdminRole])
def request_detail_view(request, request_id: str):
    r = MatchingRequest.objects.select_related('requesting_hospital').filter(id=request_id).first()
    # Hide existence from hospitals with no stake in the request
    if r is None or not can_view_request(request.user, r):
        return Response({'ok': False, 'detail': 'Matching request not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response({'ok': True, 'data': request_detail(request.user, r)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsHospitalStaff])
def incoming(request):
    """Unanswered match notifications addressed to the caller's hospital."""
    return Response({'ok': True, 'incomingMatches': incoming_matches(request.user.hospital_id)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsHospitalStaff])
def respond(request):
    s = RespondSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    ack = MatchingEngine().resolve(
        vd['requestId'],
        request.user.hospital_id,
        vd['response'],
        vd.get('donorId') or None,
        notes=vd.get('notes', ''),
        user=request.user,
    )
    verb = 'accepted' if vd['response'] == 'accept' else 'rejected'
    return Response({**ack, 'message': f'Match request {verb} successfully'})

respond.cls.throttle_scope = 'matching_write'


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsHospitalStaff])
def stats(request):
    return Response({'ok': True, 'stats': match_stats(request.user.hospital_id)})
