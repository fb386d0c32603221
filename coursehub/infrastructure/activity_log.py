# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Audit trail for write passthroughs.

After a write lands on its owning service, an entry describing it is posted
to the activity-logs service. Logging is best effort: a failure to record the
entry is logged locally and never turns a successful write into a failure.

Usage:
    activity_log = ActivityLogger(gateway)
    await activity_log.record(
        session,
        action="Enrolled student",
        action_type="CREATE",
        resource="enrollments",
        resource_id="e42",
    )
"""

import logging
from typing import Any

from coursehub.infrastructure.gateway.client import ServiceGateway
from coursehub.models.session import SessionContext

logger = logging.getLogger(__name__)

LOGS_PATH = "/logs"

ACTION_TYPES = frozenset({"CREATE", "UPDATE", "DELETE", "VIEW", "EXPORT"})


class ActivityLogger:
    """Posts activity entries to the logs service.

    Attributes:
        enabled: When False, record() does nothing.
    """

    def __init__(self, gateway: ServiceGateway, enabled: bool = True) -> None:
        self._gateway = gateway
        self.enabled = enabled

    async def record(
        self,
        session: SessionContext,
        action: str,
        action_type: str,
        resource: str,
        resource_id: str | None = None,
        details: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> bool:
        """Record one activity entry.

        Returns:
            True if the entry was accepted, False if it was skipped or failed.
        """
        if not self.enabled:
            return False
        if not session.email:
            logger.debug("No acting user on session, skipping activity log for %s", action)
            return False
        if action_type not in ACTION_TYPES:
            logger.warning("Unknown activity action type %s for %s", action_type, action)

        entry = {
            **session.log_fields(),
            "action": action,
            "actionType": action_type,
            "resource": resource,
            "resourceId": resource_id,
            "details": details,
            "status": "success",
            "metadata": metadata,
        }

        try:
            await self._gateway.create(LOGS_PATH, entry, session)
        except Exception as e:
            logger.error(
                "Failed to record activity %s on %s: %s",
                action_type,
                resource,
                str(e),
                exc_info=True,
            )
            return False
        return True
