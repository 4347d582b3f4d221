"""
Anbausystem-Models: GrowingSystem, SystemSection und Spot
"""
from datetime import datetime, date
from typing import Optional
from sqlalchemy import (
    String, Integer, Boolean, Date, DateTime, ForeignKey, CheckConstraint, Enum as SQLEnum
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from growtrack.database import Base
from growtrack.models.enums import SystemType, CropCategory, SpotKind


class GrowingSystem(Base):
    """
    Anbausystem - physische Installation mit begrenzter Anzahl Plätze.
    Belegung ist eine Projektion der Spot-Belegung und wird bei jeder
    Änderung neu berechnet.
    """
    __tablename__ = "growing_systems"
    __table_args__ = (
        CheckConstraint("occupancy >= 0 AND occupancy <= capacity", name="ck_system_occupancy"),
    )

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    system_type: Mapped[SystemType] = mapped_column(SQLEnum(SystemType), nullable=False, index=True)
    category: Mapped[CropCategory] = mapped_column(SQLEnum(CropCategory), nullable=False)
    location: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    # Kapazität
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    occupancy: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Einschränkungen
    same_per_channel: Mapped[bool] = mapped_column(Boolean, default=False)
    max_per_tray: Mapped[Optional[int]] = mapped_column(Integer)

    # Optimistische Sperre
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Beziehungen
    sections: Mapped[list["SystemSection"]] = relationship(
        "SystemSection", back_populates="system",
        cascade="all, delete-orphan", order_by="SystemSection.position"
    )
    spots: Mapped[list["Spot"]] = relationship(
        "Spot", back_populates="system",
        cascade="all, delete-orphan", order_by="Spot.position"
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def available(self) -> int:
        """Freie Plätze"""
        return max(0, self.capacity - self.occupancy)

    @property
    def utilization_percent(self) -> float:
        """Auslastung in Prozent"""
        if self.capacity == 0:
            return 0.0
        return (self.occupancy / self.capacity) * 100

    def spot_map(self) -> dict[str, "Spot"]:
        return {spot.id: spot for spot in self.spots}

    def recompute_occupancy(self) -> int:
        """Setzt occupancy aus dem Spot-Zustand neu"""
        self.occupancy = sum(1 for spot in self.spots if spot.occupied)
        return self.occupancy

    def __repr__(self) -> str:
        return f"<GrowingSystem(id={self.id}, belegt={self.occupancy}/{self.capacity})>"


class SystemSection(Base):
    """
    Abschnitt eines Anbausystems (Kanal, Turm, Tischfläche).
    """
    __tablename__ = "system_sections"

    system_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("growing_systems.id", ondelete="CASCADE"), primary_key=True
    )
    code: Mapped[str] = mapped_column(String(50), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    spot_count: Mapped[int] = mapped_column(Integer, nullable=False)
    spot_kind: Mapped[Optional[SpotKind]] = mapped_column(SQLEnum(SpotKind))

    system: Mapped["GrowingSystem"] = relationship("GrowingSystem", back_populates="sections")

    def __repr__(self) -> str:
        return f"<SystemSection(system={self.system_id}, code={self.code}, plaetze={self.spot_count})>"


class Spot(Base):
    """
    Einzelner Platz in einem Anbausystem.
    occupied ist genau dann gesetzt, wenn ein Tray den Platz belegt.
    """
    __tablename__ = "spots"
    __table_args__ = (
        CheckConstraint(
            "(occupied AND tray_id IS NOT NULL) OR (NOT occupied AND tray_id IS NULL)",
            name="ck_spot_occupied_tray",
        ),
    )

    system_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("growing_systems.id", ondelete="CASCADE"), primary_key=True
    )
    id: Mapped[str] = mapped_column(String(80), primary_key=True)
    section_code: Mapped[Optional[str]] = mapped_column(String(50), index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    # Belegung
    occupied: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    tray_id: Mapped[Optional[str]] = mapped_column(String(80), index=True)
    plant_type: Mapped[Optional[str]] = mapped_column(String(100))
    planted_date: Mapped[Optional[date]] = mapped_column(Date)

    system: Mapped["GrowingSystem"] = relationship("GrowingSystem", back_populates="spots")

    def __repr__(self) -> str:
        return f"<Spot(id={self.id}, belegt={self.occupied})>"
