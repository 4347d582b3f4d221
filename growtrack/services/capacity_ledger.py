"""
Kapazitäts-Ledger - Belegung von Plätzen in Anbausystemen

Reine Zustandsänderung am GrowingSystem-Objekt, kein Commit. Alle Prüfungen
laufen vor der ersten Mutation, ein Fehler hinterlässt das System unverändert.
"""
from collections import defaultdict
from datetime import date

from growtrack.core.exceptions import (
    CapacityError, ChannelConflictError, NotOccupiedError, InvalidQuantityError
)
from growtrack.models.growing_system import GrowingSystem, Spot


def can_accept(system: GrowingSystem, quantity: int) -> bool:
    """True wenn das System noch `quantity` Plätze frei hat"""
    if quantity <= 0:
        raise InvalidQuantityError(
            f"Menge muss positiv sein (angefragt: {quantity})", system_id=system.id
        )
    return system.capacity - system.occupancy >= quantity


def _resolve_spots(system: GrowingSystem, spot_ids: list[str], error_cls) -> list[Spot]:
    if not spot_ids:
        raise InvalidQuantityError("Keine Plätze angegeben", system_id=system.id)
    if len(set(spot_ids)) != len(spot_ids):
        raise error_cls(f"Doppelte Plätze in Anfrage für {system.id}", system_id=system.id)

    spots = system.spot_map()
    missing = [spot_id for spot_id in spot_ids if spot_id not in spots]
    if missing:
        raise error_cls(
            f"Plätze existieren nicht in {system.id}: {', '.join(missing)}",
            system_id=system.id,
        )
    return [spots[spot_id] for spot_id in spot_ids]


def _check_channels(system: GrowingSystem, targets: list[Spot], crop_type: str) -> None:
    """Belegte Plätze eines Kanals müssen dieselbe Kultur tragen"""
    touched = defaultdict(list)
    for spot in targets:
        touched[spot.section_code].append(spot)

    for section_code in touched:
        foreign = {
            spot.plant_type
            for spot in system.spots
            if spot.section_code == section_code and spot.occupied and spot.plant_type != crop_type
        }
        if foreign:
            raise ChannelConflictError(
                f"Kanal {section_code} in {system.id} ist mit {', '.join(sorted(foreign))} "
                f"belegt, {crop_type} nicht möglich",
                system_id=system.id,
            )


def reserve(
    system: GrowingSystem,
    spot_ids: list[str],
    tray_id: str,
    crop_type: str,
    planted_date: date | None = None,
) -> GrowingSystem:
    """
    Belegt die angegebenen Plätze mit einem Tray.

    Prüft zum Zeitpunkt der Reservierung erneut, ob die Plätze frei sind und
    (bei Kanal-Systemen) ob die Kultur zum Kanal passt.
    """
    targets = _resolve_spots(system, spot_ids, CapacityError)

    taken = [spot.id for spot in targets if spot.occupied]
    if taken:
        raise CapacityError(
            f"Plätze in {system.id} bereits belegt: {', '.join(taken)}",
            system_id=system.id,
        )

    if system.max_per_tray is not None and len(targets) > system.max_per_tray:
        raise CapacityError(
            f"{system.id} erlaubt höchstens {system.max_per_tray} Plätze pro Tray "
            f"(angefragt: {len(targets)})",
            system_id=system.id,
        )

    if system.same_per_channel:
        _check_channels(system, targets, crop_type)

    for spot in targets:
        spot.occupied = True
        spot.tray_id = tray_id
        spot.plant_type = crop_type
        spot.planted_date = planted_date or date.today()

    system.recompute_occupancy()
    return system


def release(system: GrowingSystem, spot_ids: list[str], tray_id: str | None = None) -> GrowingSystem:
    """
    Gibt Plätze frei. Ist tray_id angegeben, müssen alle Plätze von diesem
    Tray belegt sein.
    """
    targets = _resolve_spots(system, spot_ids, NotOccupiedError)

    free = [spot.id for spot in targets if not spot.occupied]
    if free:
        raise NotOccupiedError(
            f"Plätze in {system.id} sind nicht belegt: {', '.join(free)}",
            system_id=system.id,
            tray_id=tray_id,
        )

    if tray_id is not None:
        foreign = [spot.id for spot in targets if spot.tray_id != tray_id]
        if foreign:
            raise NotOccupiedError(
                f"Plätze in {system.id} gehören nicht zu Tray {tray_id}: {', '.join(foreign)}",
                system_id=system.id,
                tray_id=tray_id,
            )

    for spot in targets:
        spot.occupied = False
        spot.tray_id = None
        spot.plant_type = None
        spot.planted_date = None

    system.recompute_occupancy()
    return system
