"""
Tray-Models: Tray, TrayVariety und LocationHistoryEntry
"""
from datetime import datetime, date
from decimal import Decimal
from typing import Optional
from sqlalchemy import (
    String, Integer, Numeric, Date, DateTime, ForeignKey, Text, JSON, UniqueConstraint, Enum as SQLEnum, event
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from growtrack.core.exceptions import HistoryImmutableError
from growtrack.database import Base
from growtrack.models.enums import CropCategory, SystemType, TrayStatus


class Tray(Base):
    """
    Tray - physische Einheit einer Aussaat.
    Verfolgt Standort und Status von der Aussaat bis zur Ernte, Teilung
    oder Entsorgung. Trays werden nie gelöscht.
    """
    __tablename__ = "trays"

    # z.B. "K071725-MG-ARUG-1"
    id: Mapped[str] = mapped_column(String(80), primary_key=True)

    # Kultur
    crop_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    crop_category: Mapped[CropCategory] = mapped_column(SQLEnum(CropCategory), nullable=False)
    location_code: Mapped[str] = mapped_column(String(10), nullable=False)
    instance: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    date_planted: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    expected_harvest: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[TrayStatus] = mapped_column(
        SQLEnum(TrayStatus), nullable=False, default=TrayStatus.SEEDED, index=True
    )

    # Aktueller Standort (Spiegel des letzten Historien-Eintrags)
    current_system_id: Mapped[Optional[str]] = mapped_column(String(50), index=True)
    current_system_type: Mapped[Optional[SystemType]] = mapped_column(SQLEnum(SystemType))
    current_spot_ids: Mapped[list[str]] = mapped_column(JSON, default=list)
    moved_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    # Teilung
    parent_tray_id: Mapped[Optional[str]] = mapped_column(
        String(80), ForeignKey("trays.id"), index=True
    )

    plant_count: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[str] = mapped_column(Text, default="")

    created_by: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Optimistische Sperre
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Beziehungen
    varieties: Mapped[list["TrayVariety"]] = relationship(
        "TrayVariety", back_populates="tray",
        cascade="all, delete-orphan", order_by="TrayVariety.position"
    )
    location_history: Mapped[list["LocationHistoryEntry"]] = relationship(
        "LocationHistoryEntry", back_populates="tray",
        cascade="save-update, merge", order_by="LocationHistoryEntry.sequence"
    )
    parent: Mapped[Optional["Tray"]] = relationship(
        "Tray", remote_side="Tray.id", back_populates="children"
    )
    children: Mapped[list["Tray"]] = relationship(
        "Tray", back_populates="parent", order_by="Tray.id"
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def child_tray_ids(self) -> list[str]:
        return [child.id for child in self.children]

    @property
    def current_location(self) -> Optional[dict]:
        """Aktueller Standort als Dict (entspricht dem letzten Historien-Eintrag)"""
        if self.current_system_id is None:
            return None
        return {
            "system_id": self.current_system_id,
            "system_type": self.current_system_type,
            "spot_ids": list(self.current_spot_ids or []),
            "moved_at": self.moved_at,
        }

    @property
    def variety_total(self) -> int:
        return sum(v.quantity for v in self.varieties)

    def days_in_current_stage(self, now: datetime) -> int:
        """Volle Tage seit dem letzten Standortwechsel"""
        if self.moved_at is None:
            return 0
        return (now - self.moved_at).days

    def record_location(
        self,
        system_id: str,
        system_type: SystemType,
        spot_ids: list[str],
        moved_by: str,
        moved_at: datetime,
        reason: str | None = None,
    ) -> "LocationHistoryEntry":
        """
        Hängt einen Historien-Eintrag an und spiegelt ihn als aktuellen Standort.
        """
        entry = LocationHistoryEntry(
            sequence=len(self.location_history) + 1,
            system_id=system_id,
            system_type=system_type,
            spot_ids=list(spot_ids),
            moved_at=moved_at,
            moved_by=moved_by,
            reason=reason,
        )
        self.location_history.append(entry)
        self.current_system_id = system_id
        self.current_system_type = system_type
        self.current_spot_ids = list(spot_ids)
        self.moved_at = moved_at
        return entry

    def append_note(self, note: str) -> None:
        self.notes = f"{self.notes}\n{note}" if self.notes else note

    def __repr__(self) -> str:
        return f"<Tray(id={self.id}, status={self.status.value})>"


class TrayVariety(Base):
    """
    Sorten-Anteil eines Trays (Mischtrays haben mehrere).
    """
    __tablename__ = "tray_varieties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tray_id: Mapped[str] = mapped_column(String(80), ForeignKey("trays.id"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    seed_id: Mapped[str] = mapped_column(String(50), nullable=False)
    seed_name: Mapped[str] = mapped_column(String(100), nullable=False)
    sku: Mapped[Optional[str]] = mapped_column(String(20))
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    seeds_oz: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))

    tray: Mapped["Tray"] = relationship("Tray", back_populates="varieties")

    def __repr__(self) -> str:
        return f"<TrayVariety(seed={self.seed_name}, menge={self.quantity})>"


class LocationHistoryEntry(Base):
    """
    Standort-Historie eines Trays. Einträge werden nur angehängt,
    nie verändert oder gelöscht.
    """
    __tablename__ = "tray_location_history"
    __table_args__ = (
        UniqueConstraint("tray_id", "sequence", name="uq_history_tray_sequence"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tray_id: Mapped[str] = mapped_column(String(80), ForeignKey("trays.id"), nullable=False, index=True)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    system_id: Mapped[str] = mapped_column(String(50), nullable=False)
    system_type: Mapped[SystemType] = mapped_column(SQLEnum(SystemType), nullable=False)
    spot_ids: Mapped[list[str]] = mapped_column(JSON, default=list)
    moved_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    moved_by: Mapped[str] = mapped_column(String(100), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text)

    tray: Mapped["Tray"] = relationship("Tray", back_populates="location_history")

    def as_location(self) -> dict:
        return {
            "system_id": self.system_id,
            "system_type": self.system_type,
            "spot_ids": list(self.spot_ids or []),
            "moved_at": self.moved_at,
        }

    def __repr__(self) -> str:
        return f"<LocationHistoryEntry(tray={self.tray_id}, system={self.system_id})>"


@event.listens_for(LocationHistoryEntry, "before_update")
def _reject_history_update(mapper, connection, target):
    raise HistoryImmutableError(
        f"Historien-Eintrag {target.id} von Tray {target.tray_id} darf nicht verändert werden",
        tray_id=target.tray_id,
    )


@event.listens_for(LocationHistoryEntry, "before_delete")
def _reject_history_delete(mapper, connection, target):
    raise HistoryImmutableError(
        f"Historien-Eintrag {target.id} von Tray {target.tray_id} darf nicht gelöscht werden",
        tray_id=target.tray_id,
    )
