import logging
from decimal import Decimal
from mentorhub import db
from mentorhub.models import AuditLog

logger = logging.getLogger(__name__)


def _jsonable(changes):
    if not changes:
        return None
    return {key: float(value) if isinstance(value, Decimal) else value for key, value in changes.items()}


def log_admin_action(ctx, action, entity_type, entity_id, changes=None):
    """Record who changed what; a failure here never breaks the main flow."""
    try:
        entry = AuditLog(
            user_id=ctx.user_id,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            changes=_jsonable(changes),
            ip_address=ctx.ip_address,
            user_agent=(ctx.user_agent or '')[:255] or None
        )
        db.session.add(entry)
        db.session.commit()
        return entry
    except Exception as e:
        logger.error(f'Failed to create audit log for {action} {entity_type}:{entity_id}: {e}')
        db.session.rollback()
        return None
