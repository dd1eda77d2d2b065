"""
Hospital inbox endpoints.

Notifications are created by the matching workflow; here a hospital can
only list its own entries and mark them read.  Nothing is deleted.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from coordination.permissions import IsHospitalStaff
from coordination.serializers.matching import NotificationListQuerySerializer, NotificationReadSerializer
from coordination.services.inbox import list_notifications, mark_notifications_read


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsHospitalStaff])
def notifications_list(request):
    q = NotificationListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    page = q.validated_data.get('page', 1)
    page_size = q.validated_data.get('pageSize', 20)
    data, total, unread = list_notifications(
        request.user.hospital_id,
        unread=q.validated_data.get('unread', False),
        ntype=q.validated_data.get('type'),
        page=page,
        page_size=page_size,
    )
    return Response({'ok': True, 'data': data, 'unread': unread,
                     'pagination': {'total': total, 'page': page, 'pageSize': page_size}})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsHospitalStaff])
def notifications_read(request):
    s = NotificationReadSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    notification_id = None if s.validated_data.get('all') else s.validated_data['notificationId']
    n = mark_notifications_read(request.user.hospital_id, notification_id=notification_id)
    return Response({'ok': True, 'updated': n})
