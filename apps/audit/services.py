import logging

from apps.audit.models import AuditLog

logger = logging.getLogger(__name__)


def record_audit(*, actor, action, entity_type, entity_id, payload=None):
    entry = AuditLog.objects.create(
        actor=actor if actor is not None and actor.is_authenticated else None,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        payload=payload or {},
    )
    logger.debug("audit %s %s:%s by %s", action, entity_type, entity_id, entry.actor_id)
    return entry
