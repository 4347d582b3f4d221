"""
Kultur-Katalog: Kürzel, Wachstumsdauer und Standardsorten je Kultur
"""
import re
from dataclasses import dataclass, field

from growtrack.core.exceptions import UnknownCropDurationError
from growtrack.models.enums import CropCategory


MIXED_VARIETIES = "Mixed Varieties"


@dataclass(frozen=True)
class CropProfile:
    name: str
    code: str
    category: CropCategory
    growth_days: int
    varieties: tuple[str, ...] = field(default_factory=lambda: ("Standard",))


STANDARD_CROPS = [
    CropProfile("Broccoli Microgreens", "BROC", CropCategory.MICROGREENS, 7,
                ("Calabrese", "De Cicco", "Waltham 29", "Standard")),
    CropProfile("Arugula", "ARUG", CropCategory.MICROGREENS, 21,
                ("Astro", "Roquette", "Wild Rocket", "Standard")),
    CropProfile("Radish", "RADI", CropCategory.MICROGREENS, 8,
                ("China Rose", "Daikon", "Red Arrow", "Standard")),
    CropProfile("Sunflower", "SUNF", CropCategory.MICROGREENS, 10,
                ("Black Oil", "Mammoth", "Standard")),
    CropProfile("Peas", "PEAS", CropCategory.MICROGREENS, 12,
                ("Dwarf Grey Sugar", "Oregon Sugar Pod", "Standard")),
    CropProfile("Romaine Lettuce", "ROML", CropCategory.LEAFY_GREENS, 28,
                ("Parris Island", "Little Gem", "Vivian", "Cos", "Standard")),
    CropProfile("Basil", "BASL", CropCategory.LEAFY_GREENS, 25,
                ("Genovese", "Sweet", "Purple Ruffles", "Lemon", "Thai", "Standard")),
    CropProfile("Spinach", "SPIN", CropCategory.LEAFY_GREENS, 30,
                ("Space", "Bloomsdale", "Giant Winter", "Standard")),
    CropProfile("Kale", "KALE", CropCategory.LEAFY_GREENS, 30,
                ("Dwarf Blue Curled", "Winterbor", "Red Russian", "Lacinato", "Standard")),
]

CROP_CATALOG: dict[str, CropProfile] = {crop.name.lower(): crop for crop in STANDARD_CROPS}


def crop_code(crop_type: str) -> str:
    """4-stelliges Kürzel; unbekannte Kulturen nach den ersten Buchstaben"""
    if crop_type.strip().lower() == MIXED_VARIETIES.lower():
        return "MIX"
    profile = CROP_CATALOG.get(crop_type.strip().lower())
    if profile:
        return profile.code
    letters = re.sub(r"[^A-Za-z]", "", crop_type)
    return letters[:4].upper() or "UNKN"


def growth_days_for(crop_type: str) -> int:
    """Wachstumsdauer in Tagen, UnknownCropDurationError falls nicht hinterlegt"""
    profile = CROP_CATALOG.get(crop_type.strip().lower())
    if profile is None:
        raise UnknownCropDurationError(crop_type)
    return profile.growth_days
