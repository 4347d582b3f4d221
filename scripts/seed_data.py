#!/usr/bin/env python3
"""
Seed Data Script für GrowTrack
Legt das Standard-Layout der Anbaufläche an.

Verwendung:
    python scripts/seed_data.py
    # oder via Docker:
    docker compose exec backend python scripts/seed_data.py
"""
import sys
import os

# Pfad für Imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.orm import Session
from growtrack.database import SessionLocal, engine, Base
from growtrack.models.enums import CropCategory, SpotKind, SystemType
from growtrack.models.growing_system import GrowingSystem
from growtrack.services.system_service import GrowingSystemService, SectionInput


GROW_SPACE = "Grow Space"


# ============== ANBAUSYSTEME ==============

SYSTEMS_DATA = [
    # Microgreens
    {
        "system_id": "mg-nursery",
        "name": "Microgreen Nursery",
        "system_type": SystemType.NURSERY,
        "category": CropCategory.MICROGREENS,
        "capacity": 100,
    },
    {
        "system_id": "mg-blackout",
        "name": "Blackout Area",
        "system_type": SystemType.BLACKOUT,
        "category": CropCategory.MICROGREENS,
        "capacity": 200,
    },
    *[
        {
            "system_id": f"mg-rack-{i + 1}",
            "name": f"Microgreen Rack {i + 1}",
            "system_type": SystemType.MICROGREEN_RACK,
            "category": CropCategory.MICROGREENS,
            "sections": [SectionInput(f"R{i + 1}-S{s + 1}", 10, SpotKind.SPACES) for s in range(5)],
        }
        for i in range(2)
    ],
    # Ebb & Flow
    {
        "system_id": "ebb-flow-a",
        "name": "Ebb & Flow A",
        "system_type": SystemType.EBB_FLOW,
        "category": CropCategory.LEAFY_GREENS,
        "sections": [SectionInput("A", 16, SpotKind.SPACES)],
    },
    # Türme
    *[
        {
            "system_id": f"tower-a{i + 1}",
            "name": f"Tower A{i + 1}",
            "system_type": SystemType.TOWER,
            "category": CropCategory.LEAFY_GREENS,
            "sections": [SectionInput(f"A{i + 1}", 44, SpotKind.PORTS)],
        }
        for i in range(7)
    ],
    # NFT
    {
        "system_id": "nft-1",
        "name": "NFT Shelf 1",
        "system_type": SystemType.NFT_CHANNEL_GROUP,
        "category": CropCategory.LEAFY_GREENS,
        "sections": [SectionInput(f"CH{c}", 18, SpotKind.SLOTS) for c in range(1, 5)],
        "same_per_channel": True,
    },
]


def create_systems(db: Session, location: str = GROW_SPACE) -> list[GrowingSystem]:
    """Erstellt das Standard-Layout, vorhandene Systeme bleiben unberührt"""
    print("Erstelle Anbausysteme...")

    service = GrowingSystemService(db)
    systems = []
    for data in SYSTEMS_DATA:
        if db.get(GrowingSystem, data["system_id"]):
            print(f"  {data['system_id']} existiert bereits, übersprungen")
            continue
        system = service.provision(location=location, **data)
        print(f"  {system.id}: {system.name} ({system.capacity} Plätze)")
        systems.append(system)

    return systems


def main():
    """Hauptfunktion - erstellt das Standard-Layout"""
    print("=" * 50)
    print("GrowTrack - Seed Data")
    print("=" * 50)

    # Tabellen erstellen falls nicht vorhanden
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        systems = create_systems(db)
        total = sum(s.capacity for s in systems)
        print("=" * 50)
        print(f"{len(systems)} Anbausysteme mit {total} Plätzen angelegt")
    except Exception as e:
        print(f"Fehler: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
