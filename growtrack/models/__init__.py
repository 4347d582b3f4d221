"""
SQLAlchemy Models für GrowTrack
Anbausysteme, Plätze und Tray-Lebenszyklus
"""
from growtrack.models.enums import (
    SystemType,
    CropCategory,
    SpotKind,
    TrayStatus,
    MovementKind,
    MovementStatus,
    status_for_placement,
)
from growtrack.models.growing_system import GrowingSystem, SystemSection, Spot
from growtrack.models.tray import Tray, TrayVariety, LocationHistoryEntry
from growtrack.models.crop import CropProfile, CROP_CATALOG, STANDARD_CROPS, MIXED_VARIETIES

__all__ = [
    # Enums
    "SystemType",
    "CropCategory",
    "SpotKind",
    "TrayStatus",
    "MovementKind",
    "MovementStatus",
    "status_for_placement",
    # Anbausysteme
    "GrowingSystem",
    "SystemSection",
    "Spot",
    # Trays
    "Tray",
    "TrayVariety",
    "LocationHistoryEntry",
    # Kulturen
    "CropProfile",
    "CROP_CATALOG",
    "STANDARD_CROPS",
    "MIXED_VARIETIES",
]
