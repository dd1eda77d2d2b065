from typing import Optional

from coordination.models import Notification


def format_notification(n: Notification) -> dict:
    return {
        'id': n.id,
        'type': n.type,
        'title': n.title,
        'message': n.message,
        'requestRef': n.request_id,
        'isRead': n.is_read,
        'createdAt': n.created_at.isoformat() if n.created_at else None,
        'payload': n.payload,
    }


def list_notifications(hospital_id: str, *, unread: bool=False, ntype: Optional[str]=None,
                       page: int=1, page_size: int=20):
    qs = Notification.objects.filter(hospital_id=hospital_id)
    if unread:
        qs = qs.filter(is_read=False)
    if ntype:
        qs = qs.filter(type=ntype)
    total = qs.count()
    unread_count = Notification.objects.filter(hospital_id=hospital_id, is_read=False).count()
    page = max(1, int(page or 1))
    page_size = min(100, max(1, int(page_size or 20)))
    start = (page-1)*page_size
    items = qs.order_by('-created_at', '-id')[start:start+page_size]
    return [format_notification(n) for n in items], total, unread_count


def mark_notifications_read(hospital_id: str, *, notification_id: Optional[str]=None) -> int:
    qs = Notification.objects.filter(hospital_id=hospital_id, is_read=False)
    if notification_id:
        qs = qs.filter(id=notification_id)
    return qs.update(is_read=True)
