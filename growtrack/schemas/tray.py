"""
Pydantic Schemas für Trays
"""
from datetime import date, datetime
from decimal import Decimal
from pydantic import BaseModel, Field, ConfigDict, model_validator

from growtrack.models.enums import CropCategory, SystemType, TrayStatus


class VarietyBase(BaseModel):
    """Sorten-Anteil eines Trays"""
    seed_id: str = Field(..., min_length=1, max_length=50)
    seed_name: str = Field(..., min_length=1, max_length=100)
    sku: str | None = Field(None, max_length=20)
    quantity: int = Field(..., ge=1)
    seeds_oz: Decimal = Field(default=Decimal("0"), ge=0)


class VarietyResponse(VarietyBase):
    model_config = ConfigDict(from_attributes=True)


class LocationResponse(BaseModel):
    """Standort eines Trays (auch Historien-Eintrag)"""
    model_config = ConfigDict(from_attributes=True)

    system_id: str
    system_type: SystemType
    spot_ids: list[str]
    moved_at: datetime


class LocationHistoryResponse(LocationResponse):
    sequence: int
    moved_by: str
    reason: str | None = None


class TrayCreate(BaseModel):
    """Schema für die Aussaat eines Trays"""
    crop_type: str = Field(..., min_length=1, max_length=100)
    crop_category: CropCategory
    plant_count: int = Field(..., ge=1, description="Anzahl Pflanzen")
    system_id: str = Field(..., description="Anbausystem der Aussaat")
    spot_ids: list[str] = Field(..., min_length=1)
    location_code: str | None = Field(None, max_length=10, description="Standard: Standort-Kürzel")
    location: str | None = Field(None, description="Standortname, z.B. kenosha")
    date_planted: date | None = None
    instance: int | None = Field(None, ge=1, description="Tagesnummer, Standard: nächste freie")
    varieties: list[VarietyBase] = Field(default_factory=list)
    notes: str = ""

    @model_validator(mode="after")
    def check_varieties(self):
        total = sum(v.quantity for v in self.varieties)
        if total > self.plant_count:
            raise ValueError(f"Sortenmengen ({total}) übersteigen die Pflanzenzahl ({self.plant_count})")
        return self


class TrayUpdate(BaseModel):
    """Nur Notizen sind direkt änderbar"""
    model_config = ConfigDict(extra="forbid")

    notes: str


class TrayMoveRequest(BaseModel):
    destination_system_id: str
    destination_spot_ids: list[str] = Field(..., min_length=1)
    destination_system_type: SystemType | None = None
    reason: str | None = Field(None, max_length=500)


class SplitDestinationRequest(BaseModel):
    system_id: str
    spot_ids: list[str] = Field(..., min_length=1)
    plant_count: int | None = Field(None, ge=1)
    system_type: SystemType | None = None


class TraySplitRequest(BaseModel):
    destinations: list[SplitDestinationRequest] = Field(..., min_length=2)


class TrayDiscardRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class TrayHarvestRequest(BaseModel):
    notes: str | None = Field(None, max_length=500)


class TrayResponse(BaseModel):
    """Schema für Tray-Antwort"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    crop_type: str
    crop_category: CropCategory
    location_code: str
    instance: int
    date_planted: date
    expected_harvest: date
    status: TrayStatus
    current_location: LocationResponse | None = None
    parent_tray_id: str | None = None
    child_tray_ids: list[str] = []
    plant_count: int
    varieties: list[VarietyResponse] = []
    notes: str
    created_by: str
    created_at: datetime
    version: int


class TrayListResponse(BaseModel):
    items: list[TrayResponse]
    total: int


class TraySplitResponse(BaseModel):
    parent: TrayResponse
    children: list[TrayResponse]
