"""
Platz-Suche - findet Anbausysteme und Plätze für eine Menge einer Kultur
"""
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from growtrack.core.exceptions import InvalidQuantityError
from growtrack.models.enums import SystemType
from growtrack.models.growing_system import GrowingSystem, Spot


@dataclass
class SpotCandidate:
    system_id: str
    system_name: str
    system_type: SystemType
    spot_ids: list[str] = field(default_factory=list)
    section: Optional[str] = None


def _free_spots(spots: Iterable[Spot], claimed: set[str]) -> list[Spot]:
    return [spot for spot in spots if not spot.occupied and spot.id not in claimed]


def _channel_candidates(
    system: GrowingSystem,
    quantity_needed: int,
    crop_type: Optional[str],
    claimed: set[str],
) -> list[SpotCandidate]:
    by_section: dict[Optional[str], list[Spot]] = defaultdict(list)
    for spot in system.spots:
        by_section[spot.section_code].append(spot)

    # Reihenfolge der Abschnitte wie konfiguriert, sonst wie im Spot-Array
    order = [section.code for section in system.sections] or list(by_section)

    candidates = []
    for section_code in order:
        section_spots = by_section.get(section_code, [])
        free = _free_spots(section_spots, claimed)
        occupied = [spot for spot in section_spots if spot.occupied]
        if len(free) < quantity_needed:
            continue
        if occupied and not all(spot.plant_type == crop_type for spot in occupied):
            continue
        candidates.append(SpotCandidate(
            system_id=system.id,
            system_name=system.name,
            system_type=system.system_type,
            spot_ids=[spot.id for spot in free[:quantity_needed]],
            section=section_code,
        ))
    return candidates


def find_candidates(
    systems: Iterable[GrowingSystem],
    system_type: SystemType,
    quantity_needed: int,
    crop_type: Optional[str] = None,
    claimed: Optional[Mapping[str, set[str]]] = None,
) -> list[SpotCandidate]:
    """
    Sucht Platz-Kandidaten für `quantity_needed` Plätze in Systemen des Typs.

    Kanal-Systeme (same_per_channel) werden je Abschnitt geprüft: ein Kanal
    passt nur, wenn er leer ist oder ausschließlich dieselbe Kultur trägt.
    `claimed` enthält je System bereits vergebene Plätze, die nicht erneut
    angeboten werden. Sortierung: meiste angebotene Plätze zuerst.
    """
    if quantity_needed <= 0:
        raise InvalidQuantityError(f"Menge muss positiv sein (angefragt: {quantity_needed})")

    claimed = claimed or {}
    candidates: list[SpotCandidate] = []

    for system in systems:
        if system.system_type != system_type:
            continue
        system_claimed = set(claimed.get(system.id, ()))

        if system.same_per_channel:
            candidates.extend(
                _channel_candidates(system, quantity_needed, crop_type, system_claimed)
            )
            continue

        free = _free_spots(system.spots, system_claimed)
        if len(free) >= quantity_needed:
            candidates.append(SpotCandidate(
                system_id=system.id,
                system_name=system.name,
                system_type=system.system_type,
                spot_ids=[spot.id for spot in free[:quantity_needed]],
            ))

    candidates.sort(key=lambda c: len(c.spot_ids), reverse=True)
    return candidates


class SpotAllocator:
    """Platz-Suche gegen die Datenbank"""

    def __init__(self, db: Session):
        self.db = db

    def load_systems(self, system_type: SystemType | None = None) -> list[GrowingSystem]:
        query = (
            select(GrowingSystem)
            .options(selectinload(GrowingSystem.spots), selectinload(GrowingSystem.sections))
            .order_by(GrowingSystem.id)
        )
        if system_type is not None:
            query = query.where(GrowingSystem.system_type == system_type)
        return list(self.db.execute(query).scalars().all())

    def find_candidates(
        self,
        system_type: SystemType,
        quantity_needed: int,
        crop_type: Optional[str] = None,
    ) -> list[SpotCandidate]:
        if quantity_needed <= 0:
            raise InvalidQuantityError(f"Menge muss positiv sein (angefragt: {quantity_needed})")
        return find_candidates(
            self.load_systems(system_type), system_type, quantity_needed, crop_type
        )
