"""Application-side audit logging through the backend client."""

import logging
from typing import Any, Optional

from tiempos_engine.common.schemas import AuditCategory, AuditEventType, AuditSeverity, Result

logger = logging.getLogger(__name__)


class AuditLogger:
    """Records audit events as the signed-in actor.

    Failures are logged, never raised: auditing must not break the action
    being audited.
    """

    def __init__(self, client):
        self.client = client

    async def _actor(self) -> dict[str, Any]:
        user_res = await self.client.auth.get_user()
        user = (user_res.data or {}).get("user") if user_res.ok else None
        if not user:
            return {"actor_id": None, "actor_role": None, "actor_name": None}

        profile_res = await (
            self.client.from_("app_users").select("*").eq("auth_uid", user["id"]).single()
        )
        if not profile_res.ok:
            return {"actor_id": user["id"], "actor_role": None, "actor_name": user.get("email")}
        profile = profile_res.data
        return {
            "actor_id": profile["id"],
            "actor_role": profile["role"],
            "actor_name": profile["name"],
        }

    async def log(
        self,
        action: str,
        category: AuditCategory,
        severity: AuditSeverity,
        target: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        event_type: Optional[AuditEventType] = None,
        ip_address: Optional[str] = None,
        device_fingerprint: Optional[str] = None,
    ) -> Optional[Result]:
        try:
            entry = {
                **await self._actor(),
                "type": event_type.value if event_type else None,
                "category": category.value,
                "action": action,
                "severity": severity.value,
                "target_resource": target,
                "metadata": details or {},
                "ip_address": ip_address,
                "device_fingerprint": device_fingerprint,
            }
            result = await self.client.from_("audit_trail").insert([entry]).select().single()
        except Exception:
            logger.exception("Critical audit failure for %s", action)
            return None

        if not result.ok:
            logger.error("Audit log error for %s: %s", action, result.error.message)
        return result

    async def log_critical(self, action: str, details: Optional[dict[str, Any]] = None) -> Optional[Result]:
        return await self.log(
            action,
            category=AuditCategory.SYSTEM,
            severity=AuditSeverity.CRITICAL,
            details=details,
        )
