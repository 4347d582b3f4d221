"""
Pydantic Schemas für Tray-Bewegungen
"""
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict

from growtrack.models.enums import MovementKind, MovementStatus, SystemType


class MovementBase(BaseModel):
    tray_id: str
    from_system_id: str | None = None
    to_system_id: str
    to_system_type: SystemType
    to_spot_ids: list[str] = Field(..., min_length=1)
    reason: str | None = None


class MovementExecuteRequest(MovementBase):
    """Vorschlag zur Ausführung; id wird bei Bedarf erzeugt"""
    id: str | None = None
    kind: MovementKind = MovementKind.AUTOMATIC


class MovementResponse(MovementBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: MovementKind
    status: MovementStatus
    scheduled_at: datetime
    completed_at: datetime | None = None
    error: str | None = None
    split_details: dict | None = None


class MovementListResponse(BaseModel):
    items: list[MovementResponse]
    total: int
