# src/wg_admin/application/schemas.py
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from src.wg_admin.domain.models import AuditRecord
from src.wg_common.enums import Winner


class DeclareWinnerRequest(BaseModel):
    winner: Winner
    reason: str = Field(min_length=1, max_length=1000)


class ForceStatusRequest(BaseModel):
    status: Literal["in_progress", "cancelled"]
    reason: str = Field(min_length=1, max_length=1000)


class ResolveDisputeRequest(BaseModel):
    resolution: Literal["redeclare", "cancel"]
    winner: Winner | None = None
    reason: str = Field(min_length=1, max_length=1000)

    @model_validator(mode="after")
    def winner_required_for_redeclare(self) -> "ResolveDisputeRequest":
        if self.resolution == "redeclare" and self.winner is None:
            raise ValueError("winner is required to re-declare")
        if self.resolution == "cancel" and self.winner is not None:
            raise ValueError("winner must be omitted when cancelling")
        return self


class AuditRecordItem(BaseModel):
    id: int | None
    bet_id: str
    actor_id: str
    action: str
    reason: str
    detail: dict[str, Any]
    created_at: datetime | None

    @classmethod
    def from_record(cls, r: AuditRecord) -> "AuditRecordItem":
        return cls(
            id=r.id,
            bet_id=r.bet_id,
            actor_id=r.actor_id,
            action=r.action,
            reason=r.reason,
            detail=r.detail,
            created_at=r.created_at,
        )


class AuditTrailResponse(BaseModel):
    bet_id: str
    items: list[AuditRecordItem]
