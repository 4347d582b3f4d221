"""
Business Logic Services für GrowTrack
"""
from growtrack.services.system_service import GrowingSystemService
from growtrack.services.spot_allocator import SpotAllocator
from growtrack.services.tray_lifecycle import TrayLifecycleService
from growtrack.services.movement_scheduler import MovementScheduler

__all__ = [
    "GrowingSystemService",
    "SpotAllocator",
    "TrayLifecycleService",
    "MovementScheduler",
]
