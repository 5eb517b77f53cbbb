"""Audit trail for privileged actions."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class AuditRecord:
    bet_id: str
    actor_id: str
    action: str          # AuditAction value
    reason: str
    detail: dict[str, Any] = field(default_factory=dict)
    id: int | None = None           # BIGSERIAL, assigned on insert
    created_at: datetime | None = None
