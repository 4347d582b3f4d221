from enum import Enum


class SystemType(str, Enum):
    """Typ eines Anbausystems"""
    NURSERY = "nursery"
    BLACKOUT = "blackout"
    EBB_FLOW = "ebb-flow"
    TOWER = "tower"
    NFT_CHANNEL_GROUP = "nft-channel-group"
    MICROGREEN_RACK = "microgreen-rack"


class CropCategory(str, Enum):
    """Kultur-Kategorie"""
    MICROGREENS = "microgreens"
    LEAFY_GREENS = "leafy-greens"

    @property
    def type_code(self) -> str:
        """Kürzel in der Tray-ID"""
        codes = {
            CropCategory.MICROGREENS: "MG",
            CropCategory.LEAFY_GREENS: "LG",
        }
        return codes[self]


class SpotKind(str, Enum):
    """Art der Plätze in einem Abschnitt"""
    PORTS = "ports"      # Turm-Öffnungen
    SLOTS = "slots"      # NFT-Kanal
    SPACES = "spaces"    # Tisch-/Regalfläche


class TrayStatus(str, Enum):
    """Lebenszyklus eines Trays"""
    SEEDED = "seeded"
    GERMINATING = "germinating"
    GROWING = "growing"
    READY = "ready"
    HARVESTED = "harvested"
    SPLIT = "split"
    DISCARDED = "discarded"

    @property
    def is_terminal(self) -> bool:
        return self in (TrayStatus.HARVESTED, TrayStatus.SPLIT, TrayStatus.DISCARDED)

    @property
    def stage(self) -> int:
        """Reihenfolge der nicht-terminalen Stufen"""
        stages = {
            TrayStatus.SEEDED: 0,
            TrayStatus.GERMINATING: 1,
            TrayStatus.GROWING: 2,
            TrayStatus.READY: 3,
        }
        return stages.get(self, 4)


class MovementKind(str, Enum):
    """Art einer Tray-Bewegung"""
    AUTOMATIC = "automatic"
    MANUAL = "manual"
    SPLIT = "split"


class MovementStatus(str, Enum):
    """Status einer Tray-Bewegung"""
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"


# Status nach Platzierung, je Kategorie
PLACEMENT_STATUS = {
    CropCategory.MICROGREENS: {
        SystemType.NURSERY: TrayStatus.SEEDED,
        SystemType.BLACKOUT: TrayStatus.GERMINATING,
        SystemType.MICROGREEN_RACK: TrayStatus.GROWING,
    },
    CropCategory.LEAFY_GREENS: {
        SystemType.NURSERY: TrayStatus.SEEDED,
        SystemType.EBB_FLOW: TrayStatus.SEEDED,
        SystemType.TOWER: TrayStatus.GROWING,
        SystemType.NFT_CHANNEL_GROUP: TrayStatus.GROWING,
    },
}


def status_for_placement(system_type: SystemType, category: CropCategory) -> TrayStatus:
    """Status, den ein Tray durch die Platzierung in einem Systemtyp erhält"""
    return PLACEMENT_STATUS[category].get(system_type, TrayStatus.GROWING)
