"""
Anbausystem-Service - Anlage, Pflege und Auslastung von Anbausystemen
"""
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from growtrack.core.exceptions import (
    DuplicateSystemError, InvalidQuantityError, SystemInUseError, SystemNotFoundError
)
from growtrack.models.enums import CropCategory, SpotKind, SystemType
from growtrack.models.growing_system import GrowingSystem, Spot, SystemSection

logger = logging.getLogger(__name__)


@dataclass
class SectionInput:
    code: str
    spot_count: int
    spot_kind: Optional[SpotKind] = None


class GrowingSystemService:
    """Service für Anbausysteme"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, system_id: str) -> GrowingSystem:
        system = self.db.execute(
            select(GrowingSystem)
            .options(selectinload(GrowingSystem.spots), selectinload(GrowingSystem.sections))
            .where(GrowingSystem.id == system_id)
        ).scalar_one_or_none()
        if system is None:
            raise SystemNotFoundError(f"Anbausystem {system_id} nicht gefunden", system_id=system_id)
        return system

    def list_systems(
        self,
        system_type: SystemType | None = None,
        location: str | None = None,
        category: CropCategory | None = None,
    ) -> list[GrowingSystem]:
        query = select(GrowingSystem).order_by(GrowingSystem.id)
        if system_type:
            query = query.where(GrowingSystem.system_type == system_type)
        if location:
            query = query.where(GrowingSystem.location == location)
        if category:
            query = query.where(GrowingSystem.category == category)
        return list(self.db.execute(query).scalars().all())

    def provision(
        self,
        system_id: str,
        name: str,
        system_type: SystemType,
        category: CropCategory,
        location: str,
        capacity: int | None = None,
        sections: list[SectionInput] | None = None,
        same_per_channel: bool = False,
        max_per_tray: int | None = None,
    ) -> GrowingSystem:
        """
        Legt ein Anbausystem mit allen Plätzen an.

        Mit Abschnitten ergibt sich die Kapazität aus deren Platzanzahl,
        Plätze heißen dann `{system}-{abschnitt}-{n}`, sonst `{system}-{n}`.
        """
        sections = sections or []

        if sections:
            if any(section.spot_count <= 0 for section in sections):
                raise InvalidQuantityError("Jeder Abschnitt braucht mindestens einen Platz", system_id=system_id)
            if len({section.code for section in sections}) != len(sections):
                raise InvalidQuantityError("Abschnitts-Codes müssen eindeutig sein", system_id=system_id)
            total = sum(section.spot_count for section in sections)
            if capacity is not None and capacity != total:
                raise InvalidQuantityError(
                    f"Kapazität {capacity} passt nicht zu {total} Plätzen in den Abschnitten",
                    system_id=system_id,
                )
            capacity = total

        if capacity is None or capacity <= 0:
            raise InvalidQuantityError(f"Kapazität muss positiv sein (angegeben: {capacity})", system_id=system_id)
        if max_per_tray is not None and max_per_tray <= 0:
            raise InvalidQuantityError("max_per_tray muss positiv sein", system_id=system_id)

        if self.db.get(GrowingSystem, system_id) is not None:
            raise DuplicateSystemError(f"Anbausystem {system_id} existiert bereits", system_id=system_id)

        system = GrowingSystem(
            id=system_id,
            name=name,
            system_type=system_type,
            category=category,
            location=location,
            capacity=capacity,
            occupancy=0,
            same_per_channel=same_per_channel,
            max_per_tray=max_per_tray,
        )

        position = 0
        if sections:
            for index, section in enumerate(sections, start=1):
                system.sections.append(SystemSection(
                    code=section.code,
                    position=index,
                    spot_count=section.spot_count,
                    spot_kind=section.spot_kind,
                ))
                for n in range(1, section.spot_count + 1):
                    system.spots.append(Spot(
                        id=f"{system_id}-{index}-{n}",
                        section_code=section.code,
                        position=position,
                        occupied=False,
                    ))
                    position += 1
        else:
            for n in range(1, capacity + 1):
                system.spots.append(Spot(id=f"{system_id}-{n}", position=position, occupied=False))
                position += 1

        self.db.add(system)
        self.db.commit()
        self.db.refresh(system)

        logger.info(f"Anbausystem {system_id} angelegt ({system_type.value}, {capacity} Plätze)")
        return system

    def update(self, system_id: str, name: str | None = None, location: str | None = None) -> GrowingSystem:
        """Nur Name und Standort sind änderbar"""
        system = self.get(system_id)
        if name is not None:
            system.name = name
        if location is not None:
            system.location = location
        self.db.commit()
        self.db.refresh(system)
        return system

    def delete(self, system_id: str) -> None:
        system = self.get(system_id)
        if system.recompute_occupancy() > 0:
            self.db.rollback()
            raise SystemInUseError(
                f"Anbausystem {system_id} ist noch mit {system.occupancy} Plätzen belegt",
                system_id=system_id,
            )
        self.db.delete(system)
        self.db.commit()
        logger.info(f"Anbausystem {system_id} gelöscht")

    def utilization_summary(self) -> list[dict]:
        """Auslastung je Systemtyp"""
        totals = defaultdict(lambda: {"systems": 0, "capacity": 0, "occupancy": 0})
        for system in self.list_systems():
            entry = totals[system.system_type]
            entry["systems"] += 1
            entry["capacity"] += system.capacity
            entry["occupancy"] += system.occupancy

        summary = []
        for system_type in SystemType:
            if system_type not in totals:
                continue
            entry = totals[system_type]
            capacity = entry["capacity"]
            summary.append({
                "system_type": system_type,
                "systems": entry["systems"],
                "capacity": capacity,
                "occupancy": entry["occupancy"],
                "available": capacity - entry["occupancy"],
                "utilization_percent": round(entry["occupancy"] / capacity * 100, 1) if capacity else 0.0,
            })
        return summary
