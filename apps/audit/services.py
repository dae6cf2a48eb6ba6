import logging

from django.db import DatabaseError, transaction

from .models import ACTION_PAYLOADS, AuditLog
from .payloads import registry

logger = logging.getLogger(__name__)


def log_audit_entry(chapter, user, action, target_type, target_id=None, payload=None):
    """
    Record an audit entry. A failed write is logged and ``None`` is returned;
    auditing never breaks the operation being audited.
    """
    expected = ACTION_PAYLOADS[action]
    if payload is not None and not isinstance(payload, expected):
        raise TypeError(f"{action} expects {expected.__name__}, got {type(payload).__name__}")

    try:
        with transaction.atomic():
            return AuditLog.objects.create(
                chapter=chapter,
                user=user,
                action=action,
                target_type=target_type,
                target_id=str(target_id) if target_id is not None else '',
                payload=registry.dump(payload) if payload is not None else {},
            )
    except DatabaseError as e:
        logger.error(f"Failed to write audit entry {action} for chapter {chapter.pk}: {e}")
        return None
