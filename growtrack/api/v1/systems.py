"""
API Endpoints für Anbausysteme
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status

from growtrack.api.deps import DBSession, CurrentUser, require_role
from growtrack.models.enums import CropCategory, SystemType
from growtrack.models.growing_system import GrowingSystem
from growtrack.schemas.growing_system import (
    GrowingSystemCreate, GrowingSystemUpdate, GrowingSystemResponse,
    GrowingSystemDetailResponse, GrowingSystemListResponse,
    SpotCandidateResponse, UtilizationEntry, UtilizationSummaryResponse,
)
from growtrack.services.spot_allocator import SpotAllocator
from growtrack.services.system_service import GrowingSystemService, SectionInput

router = APIRouter()


@router.get("/systems", response_model=GrowingSystemListResponse)
def list_systems(
    db: DBSession,
    user: CurrentUser,
    system_type: Optional[SystemType] = None,
    location: Optional[str] = None,
    category: Optional[CropCategory] = None,
):
    """
    Liste aller Anbausysteme.

    Filter:
    - **system_type**: nursery, blackout, ebb-flow, tower, nft-channel-group, microgreen-rack
    - **location**: Standort
    - **category**: microgreens, leafy-greens
    """
    systems = GrowingSystemService(db).list_systems(system_type, location, category)
    return GrowingSystemListResponse(
        items=[GrowingSystemResponse.model_validate(s) for s in systems],
        total=len(systems),
    )


@router.post(
    "/systems",
    response_model=GrowingSystemDetailResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_role(["admin"]))],
)
def create_system(data: GrowingSystemCreate, db: DBSession):
    """Neues Anbausystem inkl. aller Plätze anlegen."""
    return GrowingSystemService(db).provision(
        system_id=data.id,
        name=data.name,
        system_type=data.system_type,
        category=data.category,
        location=data.location,
        capacity=data.capacity,
        sections=[SectionInput(**s.model_dump()) for s in data.sections],
        same_per_channel=data.same_per_channel,
        max_per_tray=data.max_per_tray,
    )


@router.get("/systems/candidates", response_model=list[SpotCandidateResponse])
def find_candidates(
    db: DBSession,
    user: CurrentUser,
    system_type: SystemType,
    quantity: int = Query(..., ge=1),
    crop_type: Optional[str] = None,
):
    """
    Freie Plätze für eine Menge einer Kultur suchen.
    Kanal-Systeme liefern je passendem Kanal einen Kandidaten.
    """
    return SpotAllocator(db).find_candidates(system_type, quantity, crop_type)


@router.get("/systems/summary/utilization", response_model=UtilizationSummaryResponse)
def get_utilization_summary(db: DBSession, user: CurrentUser):
    """Auslastung pro Systemtyp."""
    entries = [UtilizationEntry(**entry) for entry in GrowingSystemService(db).utilization_summary()]
    return UtilizationSummaryResponse(
        items=entries,
        total_capacity=sum(e.capacity for e in entries),
        total_occupancy=sum(e.occupancy for e in entries),
    )


@router.get("/systems/{system_id}", response_model=GrowingSystemDetailResponse)
def get_system(system_id: str, db: DBSession, user: CurrentUser):
    """Einzelnes Anbausystem mit Abschnitten und Plätzen."""
    system = db.get(GrowingSystem, system_id)
    if not system:
        raise HTTPException(status_code=404, detail="Anbausystem nicht gefunden")
    return system


@router.patch("/systems/{system_id}", response_model=GrowingSystemResponse)
def update_system(system_id: str, data: GrowingSystemUpdate, db: DBSession, user: CurrentUser):
    """Name oder Standort ändern. Kapazität und Belegung sind nicht änderbar."""
    if not db.get(GrowingSystem, system_id):
        raise HTTPException(status_code=404, detail="Anbausystem nicht gefunden")
    return GrowingSystemService(db).update(system_id, **data.model_dump(exclude_unset=True))


@router.delete("/systems/{system_id}", dependencies=[Depends(require_role(["admin"]))])
def delete_system(system_id: str, db: DBSession):
    """Anbausystem löschen. Nur möglich, solange kein Platz belegt ist."""
    if not db.get(GrowingSystem, system_id):
        raise HTTPException(status_code=404, detail="Anbausystem nicht gefunden")
    GrowingSystemService(db).delete(system_id)
    return {"ok": True}
