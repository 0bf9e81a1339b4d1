from __future__ import annotations

import logging
from typing import Any, Optional

from blood.models import ActionAuditLog
from blood.services.access import Actor

logger = logging.getLogger(__name__)


def record_action(
	actor: Actor,
	action: str,
	entity_type: str,
	entity_id: int,
	*,
	status_before: str = "",
	status_after: str = "",
	notes: str = "",
	payload: Optional[dict[str, Any]] = None,
) -> ActionAuditLog:
	"""Append an audit row inside the caller's transaction."""

	entry = ActionAuditLog.objects.create(
		action=action,
		entity_type=entity_type,
		entity_id=entity_id,
		status_before=status_before or "",
		status_after=status_after or "",
		actor_id=actor.user_id,
		actor_role=actor.role,
		notes=(notes or "")[:255],
		payload=payload,
	)
	logger.debug("Audit %s %s#%s by %s", action, entity_type, entity_id, actor.username or actor.user_id)
	return entry
