"""
API Endpoints für Trays - Aussaat, Umsetzen, Teilen, Ernte
"""
from typing import Optional
from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from growtrack.api.deps import DBSession, CurrentUser, EventBus, AppSettings, Pagination
from growtrack.core.security import actor_name
from growtrack.models.enums import CropCategory, TrayStatus
from growtrack.models.tray import Tray
from growtrack.schemas.tray import (
    TrayCreate, TrayUpdate, TrayResponse, TrayListResponse, TraySplitResponse,
    TrayMoveRequest, TraySplitRequest, TrayDiscardRequest, TrayHarvestRequest,
    LocationHistoryResponse,
)
from growtrack.services.tray_lifecycle import (
    TrayLifecycleService, SplitDestination, VarietyInput
)

router = APIRouter()


def _get_tray_or_404(db, tray_id: str) -> Tray:
    tray = db.get(Tray, tray_id)
    if not tray:
        raise HTTPException(status_code=404, detail="Tray nicht gefunden")
    return tray


@router.get("/trays", response_model=TrayListResponse)
def list_trays(
    db: DBSession,
    user: CurrentUser,
    pagination: Pagination,
    status_filter: Optional[TrayStatus] = Query(None, alias="status"),
    category: Optional[CropCategory] = None,
    system_id: Optional[str] = None,
):
    """
    Liste aller Trays.

    Filter:
    - **status**: seeded, germinating, growing, ready, harvested, split, discarded
    - **category**: microgreens, leafy-greens
    - **system_id**: Nur Trays, die aktuell in diesem System stehen
    """
    query = select(Tray)

    if status_filter:
        query = query.where(Tray.status == status_filter)
    if category:
        query = query.where(Tray.crop_category == category)
    if system_id:
        query = query.where(
            Tray.current_system_id == system_id,
            Tray.status.not_in([s for s in TrayStatus if s.is_terminal]),
        )

    count_query = select(func.count()).select_from(query.subquery())
    total = db.execute(count_query).scalar() or 0

    query = (
        query.options(selectinload(Tray.varieties), selectinload(Tray.children))
        .order_by(Tray.date_planted.desc(), Tray.id)
        .offset(pagination.offset)
        .limit(pagination.page_size)
    )
    trays = db.execute(query).scalars().all()

    return TrayListResponse(items=[TrayResponse.model_validate(t) for t in trays], total=total)


@router.post("/trays", response_model=TrayResponse, status_code=status.HTTP_201_CREATED)
def create_tray(
    data: TrayCreate,
    db: DBSession,
    user: CurrentUser,
    events: EventBus,
    settings: AppSettings,
):
    """
    Neuen Tray aussäen.

    Die Tray-ID ergibt sich aus Standort, Aussaatdatum, Kategorie, Kultur und
    Tagesnummer, z.B. `K071725-MG-ARUG-1`.
    """
    service = TrayLifecycleService(db, settings=settings, events=events)
    return service.create(
        crop_type=data.crop_type,
        category=data.crop_category,
        plant_count=data.plant_count,
        system_id=data.system_id,
        spot_ids=data.spot_ids,
        created_by=actor_name(user),
        location_code=data.location_code or (settings.location_code_for(data.location) if data.location else None),
        planted_date=data.date_planted,
        instance=data.instance,
        varieties=[VarietyInput(**v.model_dump()) for v in data.varieties],
        notes=data.notes,
    )


@router.get("/trays/{tray_id}", response_model=TrayResponse)
def get_tray(tray_id: str, db: DBSession, user: CurrentUser):
    """Einzelnen Tray abrufen."""
    return _get_tray_or_404(db, tray_id)


@router.patch("/trays/{tray_id}", response_model=TrayResponse)
def update_tray(tray_id: str, data: TrayUpdate, db: DBSession, user: CurrentUser):
    """Notizen ändern. Status und Standort nur über die Aktionen."""
    _get_tray_or_404(db, tray_id)
    return TrayLifecycleService(db).update_notes(tray_id, data.notes)


@router.delete("/trays/{tray_id}", response_model=TrayResponse)
def delete_tray(tray_id: str, db: DBSession, user: CurrentUser, events: EventBus):
    """Trays werden nie gelöscht: DELETE entsorgt den Tray."""
    _get_tray_or_404(db, tray_id)
    return TrayLifecycleService(db, events=events).discard(tray_id, "Deleted via API", actor_name(user))


@router.get("/trays/{tray_id}/history", response_model=list[LocationHistoryResponse])
def get_tray_history(tray_id: str, db: DBSession, user: CurrentUser):
    """Standort-Historie in Reihenfolge."""
    return _get_tray_or_404(db, tray_id).location_history


@router.post("/trays/{tray_id}/move", response_model=TrayResponse)
def move_tray(tray_id: str, data: TrayMoveRequest, db: DBSession, user: CurrentUser, events: EventBus):
    """Tray in ein anderes System oder auf andere Plätze umsetzen."""
    _get_tray_or_404(db, tray_id)
    return TrayLifecycleService(db, events=events).move(
        tray_id,
        data.destination_system_id,
        data.destination_spot_ids,
        moved_by=actor_name(user),
        reason=data.reason,
        destination_system_type=data.destination_system_type,
    )


@router.post("/trays/{tray_id}/split", response_model=TraySplitResponse)
def split_tray(tray_id: str, data: TraySplitRequest, db: DBSession, user: CurrentUser, events: EventBus):
    """
    Tray auf mehrere neue Trays aufteilen.

    Ohne Pflanzenzahlen wird gleichmäßig verteilt, Rest an die ersten Ziele.
    """
    _get_tray_or_404(db, tray_id)
    parent, children = TrayLifecycleService(db, events=events).split(
        tray_id,
        [SplitDestination(**d.model_dump()) for d in data.destinations],
        split_by=actor_name(user),
    )
    return TraySplitResponse(
        parent=TrayResponse.model_validate(parent),
        children=[TrayResponse.model_validate(c) for c in children],
    )


@router.post("/trays/{tray_id}/harvest", response_model=TrayResponse)
def harvest_tray(
    tray_id: str,
    db: DBSession,
    user: CurrentUser,
    events: EventBus,
    data: Optional[TrayHarvestRequest] = None,
):
    """Tray ernten und Plätze freigeben."""
    _get_tray_or_404(db, tray_id)
    return TrayLifecycleService(db, events=events).harvest(
        tray_id, actor_name(user), notes=data.notes if data else None
    )


@router.post("/trays/{tray_id}/discard", response_model=TrayResponse)
def discard_tray(tray_id: str, data: TrayDiscardRequest, db: DBSession, user: CurrentUser, events: EventBus):
    """Tray entsorgen und Plätze freigeben."""
    _get_tray_or_404(db, tray_id)
    return TrayLifecycleService(db, events=events).discard(tray_id, data.reason, actor_name(user))


@router.post("/trays/{tray_id}/ready", response_model=TrayResponse)
def mark_tray_ready(tray_id: str, db: DBSession, user: CurrentUser, events: EventBus):
    """Tray als erntereif markieren."""
    _get_tray_or_404(db, tray_id)
    return TrayLifecycleService(db, events=events).mark_ready(tray_id, actor_name(user))
