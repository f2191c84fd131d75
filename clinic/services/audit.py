"""
Best-effort audit trail.

Views call :func:`log_action` after a successful mutation.  The concrete
logger is chosen by ``settings.AUDIT_LOGGER_CLASS`` so tests can swap in
:class:`NullAuditLogger` or a deliberately failing implementation.  A
failed write is logged and dropped; it never affects the response.
"""
import logging
from typing import Any, Dict, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import validate_ipv46_address
from django.db import transaction
from django.utils.module_loading import import_string

from clinic.models import AuditLog, User

logger = logging.getLogger(__name__)


class AuditLogger:
    def record(self, *, user: Optional[User], action: str, entity: str, entity_id=None,
               description: str, ip_address: Optional[str] = None, user_agent: str = '',
               metadata: Optional[Dict[str, Any]] = None) -> None:
        raise NotImplementedError


class NullAuditLogger(AuditLogger):
    def record(self, **kwargs) -> None:
        return None


class DatabaseAuditLogger(AuditLogger):
    def record(self, *, user, action, entity, entity_id=None, description,
               ip_address=None, user_agent='', metadata=None) -> None:
        # savepoint: a failed insert must not poison the caller's transaction
        with transaction.atomic():
            AuditLog.objects.create(
                user=user if getattr(user, 'pk', None) else None,
                user_role=getattr(user, 'role', '') or '',
                action=action,
                entity=entity,
                entity_id=str(entity_id) if entity_id is not None else None,
                description=description[:500],
                ip_address=ip_address or None,
                user_agent=(user_agent or '')[:500],
                metadata=metadata or {},
            )


def get_audit_logger() -> AuditLogger:
    path = getattr(settings, 'AUDIT_LOGGER_CLASS', 'clinic.services.audit.DatabaseAuditLogger')
    return import_string(path)()


def _valid_ip(value: str) -> Optional[str]:
    value = (value or '').strip()
    if not value:
        return None
    try:
        validate_ipv46_address(value)
    except ValidationError:
        return None
    return value


def client_ip(request) -> Optional[str]:
    """First well-formed address among X-Forwarded-For, X-Real-IP and REMOTE_ADDR."""
    candidates = request.META.get('HTTP_X_FORWARDED_FOR', '').split(',')[:1]
    candidates += [request.META.get('HTTP_X_REAL_IP', ''), request.META.get('REMOTE_ADDR', '')]
    for candidate in candidates:
        ip = _valid_ip(candidate)
        if ip:
            return ip
    return None


def log_action(request, *, action: str, entity: str, entity_id=None, description: str,
               user: Optional[User] = None, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Record one audit entry for ``request``'s user (or an explicit ``user``)."""
    actor = user if user is not None else getattr(request, 'user', None)
    try:
        get_audit_logger().record(
            user=actor,
            action=action,
            entity=entity,
            entity_id=entity_id,
            description=description,
            ip_address=client_ip(request),
            user_agent=request.META.get('HTTP_USER_AGENT', ''),
            metadata=metadata,
        )
    except Exception:
        logger.exception('Failed to create audit log: %s %s %s', action, entity, entity_id)
