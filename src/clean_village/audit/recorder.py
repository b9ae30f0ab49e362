"""Append-only audit trail for every mutation.

Each create/update/delete in the repository records one entry here before
returning. Writing an entry must never break the mutation that triggered
it, so ``AuditRecorder.record`` logs and swallows its own failures.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from clean_village.database.connection import DatabaseConnection
from clean_village.database.models import SYSTEM_ACTOR, Actor, AuditLogEntry
from clean_village.utils.constants import AUDIT_ACTIONS, AUDIT_MODULES
from clean_village.utils.snapshot import snapshot_json

logger = logging.getLogger(__name__)


@dataclass
class AuditEntry:
    """What happened, to which record, and (optionally) the before/after."""
    action: str
    module: str
    summary: str
    entity_id: Any = None
    entity_name: str = ""
    entity_type: str = ""
    before: Any = None
    after: Any = None

    def __post_init__(self):
        if self.action not in AUDIT_ACTIONS:
            raise ValueError(f"Unknown audit action: {self.action}")
        if self.module not in AUDIT_MODULES:
            raise ValueError(f"Unknown audit module: {self.module}")

    @property
    def has_diff(self) -> bool:
        return self.before is not None or self.after is not None


class AuditRecorder:
    """Writes capped, append-only audit entries to the audit_log table."""

    def __init__(self, db: DatabaseConnection, cap: Optional[int] = None):
        from clean_village.config import Config

        self.db = db
        self.cap = Config.AUDIT_LOG_CAP if cap is None else cap
        if self.cap < 1:
            raise ValueError("Audit log cap must be at least 1")

    def record(self, entry: AuditEntry,
               actor: Optional[Actor] = None) -> Optional[int]:
        """Append *entry* attributed to *actor* (System when omitted).

        Returns the new entry id, or None if the write failed.
        """
        try:
            actor = actor or SYSTEM_ACTOR
            diff = None
            if entry.has_diff:
                diff = snapshot_json({
                    "before": entry.before,
                    "after": entry.after,
                })
            entity_id = (
                "N/A" if entry.entity_id in (None, "") else str(entry.entity_id)
            )
            with self.db.get_connection() as conn:
                cursor = conn.execute(
                    "INSERT INTO audit_log "
                    "(created_at, actor_id, actor_name, actor_role, module, "
                    "action, entity_type, entity_id, entity_name, summary, "
                    "diff) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        datetime.now().isoformat(),
                        str(actor.id), actor.name, actor.role,
                        entry.module, entry.action,
                        entry.entity_type or entry.module,
                        entity_id, entry.entity_name or "",
                        entry.summary, diff,
                    ),
                )
                entry_id = cursor.lastrowid
                self._evict_oldest(conn)
            logger.debug(
                f"[Audit] {entry.action} {entry.module}: {entry.summary}"
            )
            return entry_id
        except Exception:
            logger.exception("[Audit] Failed to write log entry")
            return None

    def _evict_oldest(self, conn):
        """Drop everything older than the newest ``cap`` entries."""
        conn.execute(
            "DELETE FROM audit_log WHERE id <= ("
            "  SELECT id FROM audit_log ORDER BY id DESC LIMIT 1 OFFSET ?"
            ")",
            (self.cap,),
        )

    def get_entries(
        self, module: str | None = None,
        action: str | None = None,
        actor_id: str | None = None,
        entity_id=None,
        limit: int = 50,
    ) -> list[AuditLogEntry]:
        """Retrieve audit entries, newest first, with optional filters."""
        clauses = []
        params: list = []
        if module:
            clauses.append("module = ?")
            params.append(module)
        if action:
            clauses.append("action = ?")
            params.append(action)
        if actor_id is not None:
            clauses.append("actor_id = ?")
            params.append(str(actor_id))
        if entity_id is not None:
            clauses.append("entity_id = ?")
            params.append(str(entity_id))

        where = " AND ".join(clauses) if clauses else "1=1"
        params.append(limit)

        rows = self.db.execute(f"""
            SELECT * FROM audit_log
            WHERE {where}
            ORDER BY id DESC
            LIMIT ?
        """, tuple(params))
        return [AuditLogEntry(**dict(r)) for r in rows]

    def count(self) -> int:
        return self.db.scalar("SELECT COUNT(*) FROM audit_log") or 0
