"""Append-only audit trail for logins and matching decisions."""
from typing import Any, Optional

from coordination.models import AuditEvent


def _actor(user):
    # anonymous users and unsaved test doubles are recorded as "system"
    if user is None or not getattr(user, 'is_authenticated', False) or not getattr(user, 'pk', None):
        return None
    return user


def log_action(*, user, action: str, object_type: Optional[str] = None,
               object_id: Optional[str] = None, detail: Optional[dict[str, Any]] = None) -> AuditEvent:
    return AuditEvent.objects.create(
        user=_actor(user),
        action=action,
        object_type=object_type,
        object_id=str(object_id) if object_id is not None else None,
        detail=detail or {},
    )
