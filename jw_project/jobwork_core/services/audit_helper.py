import logging
from typing import Optional
from ..models import AuditLog

logger = logging.getLogger(__name__)


def log_action(
    *,
    action: str,
    instance,
    actor: Optional[str] = None,
    label: str = "",
    changes: dict | None = None,
):
    """
    Central audit logger.
    Safe to call multiple times (caller ensures idempotency).
    """
    entry = AuditLog.objects.create(
        actor=actor or "",
        action=action,
        object_type=instance.__class__.__name__,
        object_id=str(instance.pk),
        label=label or "",
        changes=changes,
    )
    logger.debug("audit %s", entry)
    return entry
