"""
Pydantic Schemas für die GrowTrack API
"""
# Anbausysteme
from growtrack.schemas.growing_system import (
    SectionBase, SectionResponse, SpotResponse,
    GrowingSystemBase, GrowingSystemCreate, GrowingSystemUpdate,
    GrowingSystemResponse, GrowingSystemDetailResponse, GrowingSystemListResponse,
    SpotCandidateResponse, UtilizationEntry, UtilizationSummaryResponse,
)

# Trays
from growtrack.schemas.tray import (
    VarietyBase, VarietyResponse, LocationResponse, LocationHistoryResponse,
    TrayCreate, TrayUpdate, TrayMoveRequest, SplitDestinationRequest, TraySplitRequest,
    TrayDiscardRequest, TrayHarvestRequest, TrayResponse, TrayListResponse, TraySplitResponse,
)

# Bewegungen
from growtrack.schemas.movement import (
    MovementBase, MovementExecuteRequest, MovementResponse, MovementListResponse,
)
