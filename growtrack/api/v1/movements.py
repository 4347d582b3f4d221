"""
API Endpoints für automatische Tray-Bewegungen
"""
from datetime import datetime
from fastapi import APIRouter, HTTPException

from growtrack.api.deps import DBSession, CurrentUser, EventBus, AppSettings
from growtrack.core.security import actor_name
from growtrack.models.enums import MovementStatus
from growtrack.schemas.movement import (
    MovementExecuteRequest, MovementResponse, MovementListResponse
)
from growtrack.services.movement_scheduler import MovementScheduler, TrayMovement

router = APIRouter()


@router.get("/movements/proposals", response_model=MovementListResponse)
def list_proposals(db: DBSession, user: CurrentUser, settings: AppSettings):
    """
    Aktuelle Bewegungsvorschläge (Nursery → Blackout → Regal).
    Verändert nichts.
    """
    movements = MovementScheduler(db, settings=settings).proposals()
    return MovementListResponse(
        items=[MovementResponse.model_validate(m) for m in movements],
        total=len(movements),
    )


@router.post("/movements/execute", response_model=MovementResponse)
def execute_movement(
    data: MovementExecuteRequest,
    db: DBSession,
    user: CurrentUser,
    events: EventBus,
    settings: AppSettings,
):
    """
    Bewegungsvorschlag ausführen.
    Schlägt die Bewegung fehl, antwortet der Endpoint mit 409 und dem Fehlertext.
    """
    now = datetime.utcnow()
    movement = TrayMovement(
        id=data.id or f"move-{data.tray_id}-{int(now.timestamp() * 1000)}",
        tray_id=data.tray_id,
        from_system_id=data.from_system_id,
        to_system_id=data.to_system_id,
        to_system_type=data.to_system_type,
        to_spot_ids=data.to_spot_ids,
        kind=data.kind,
        scheduled_at=now,
        reason=data.reason,
    )
    MovementScheduler(db, settings=settings, events=events).execute(movement, mover=actor_name(user))

    if movement.status == MovementStatus.FAILED:
        raise HTTPException(status_code=409, detail=movement.error)
    return movement
