"""
Pydantic Schemas für Anbausysteme
"""
from datetime import date, datetime
from pydantic import BaseModel, Field, ConfigDict

from growtrack.models.enums import CropCategory, SpotKind, SystemType


class SectionBase(BaseModel):
    """Abschnitt (Kanal, Turm, Fläche)"""
    code: str = Field(..., min_length=1, max_length=50)
    spot_count: int = Field(..., ge=1, description="Anzahl Plätze im Abschnitt")
    spot_kind: SpotKind | None = None


class SectionResponse(SectionBase):
    model_config = ConfigDict(from_attributes=True)

    position: int


class SpotResponse(BaseModel):
    """Einzelner Platz"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    section_code: str | None = None
    position: int
    occupied: bool
    tray_id: str | None = None
    plant_type: str | None = None
    planted_date: date | None = None


class GrowingSystemBase(BaseModel):
    """Basis-Schema für Anbausystem"""
    name: str = Field(..., min_length=1, max_length=100)
    system_type: SystemType
    category: CropCategory
    location: str = Field(..., min_length=1, max_length=100)
    same_per_channel: bool = Field(default=False, description="Kanal darf nur eine Kultur tragen")
    max_per_tray: int | None = Field(None, ge=1, description="Max. Plätze pro Tray")


class GrowingSystemCreate(GrowingSystemBase):
    """Schema zum Anlegen eines Anbausystems"""
    id: str = Field(..., min_length=1, max_length=50, pattern=r"^[a-z0-9][a-z0-9-]*$")
    capacity: int | None = Field(None, ge=1, description="Pflicht ohne Abschnitte")
    sections: list[SectionBase] = Field(default_factory=list)


class GrowingSystemUpdate(BaseModel):
    """Nur Name und Standort; Kapazität und Belegung sind nicht änderbar"""
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, min_length=1, max_length=100)
    location: str | None = Field(None, min_length=1, max_length=100)


class GrowingSystemResponse(GrowingSystemBase):
    """Schema für Anbausystem-Antwort"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    capacity: int
    occupancy: int
    version: int
    created_at: datetime
    updated_at: datetime

    # Berechnete Felder
    available: int
    utilization_percent: float


class GrowingSystemDetailResponse(GrowingSystemResponse):
    """Anbausystem inkl. Abschnitte und Plätze"""
    sections: list[SectionResponse] = []
    spots: list[SpotResponse] = []


class GrowingSystemListResponse(BaseModel):
    items: list[GrowingSystemResponse]
    total: int


class SpotCandidateResponse(BaseModel):
    """Kandidat der Platz-Suche"""
    model_config = ConfigDict(from_attributes=True)

    system_id: str
    system_name: str
    system_type: SystemType
    spot_ids: list[str]
    section: str | None = None


class UtilizationEntry(BaseModel):
    """Auslastung je Systemtyp"""
    system_type: SystemType
    systems: int
    capacity: int
    occupancy: int
    available: int
    utilization_percent: float


class UtilizationSummaryResponse(BaseModel):
    items: list[UtilizationEntry]
    total_capacity: int
    total_occupancy: int
