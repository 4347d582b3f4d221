"""
Bewegungsplanung - automatische Stufenwechsel für Microgreens

Nursery → Blackout sofort, Blackout → Regal nach `blackout_days` Tagen.
Vorschläge entstehen nur, wenn im Zielsystem tatsächlich Platz frei ist.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from growtrack.config import Settings, get_settings
from growtrack.core.events import TrayEventBus
from growtrack.core.exceptions import SystemNotFoundError, TrayDomainError, TrayNotFoundError
from growtrack.models.enums import CropCategory, MovementKind, MovementStatus, SystemType, TrayStatus
from growtrack.models.growing_system import GrowingSystem
from growtrack.models.tray import Tray
from growtrack.services.spot_allocator import SpotAllocator, find_candidates
from growtrack.services.tray_lifecycle import TrayLifecycleService

logger = logging.getLogger(__name__)

SYSTEM_MOVER = "System"

# Quelle → (Ziel, Grund); Mindestalter je Quelle in evaluate()
AUTOMATIC_TRANSITIONS = {
    SystemType.NURSERY: (SystemType.BLACKOUT, "Automatic movement: Nursery to Blackout"),
    SystemType.BLACKOUT: (SystemType.MICROGREEN_RACK, "Automatic movement: Blackout to Racks"),
}


@dataclass
class TrayMovement:
    """Vorgeschlagene oder ausgeführte Bewegung, wird nicht gespeichert"""
    id: str
    tray_id: str
    from_system_id: Optional[str]
    to_system_id: str
    to_system_type: SystemType
    to_spot_ids: list[str] = field(default_factory=list)
    kind: MovementKind = MovementKind.AUTOMATIC
    status: MovementStatus = MovementStatus.PENDING
    scheduled_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None
    reason: Optional[str] = None
    error: Optional[str] = None
    split_details: Optional[dict] = None


def _minimum_age(system_type: SystemType, blackout_days: int) -> int:
    return blackout_days if system_type == SystemType.BLACKOUT else 0


def evaluate(
    trays: Iterable[Tray],
    systems: Iterable[GrowingSystem],
    now: datetime,
    blackout_days: int = 2,
) -> list[TrayMovement]:
    """
    Leitet Bewegungsvorschläge aus Alter und aktueller Stufe ab.

    Reine Funktion: verändert weder Trays noch Systeme. Plätze, die einem
    früheren Vorschlag desselben Durchlaufs zugesagt wurden, werden nicht
    ein zweites Mal vergeben.
    """
    systems = list(systems)
    claimed: dict[str, set[str]] = {}
    movements = []

    for tray in sorted(trays, key=lambda t: t.id):
        if tray.crop_category != CropCategory.MICROGREENS or tray.status.is_terminal:
            continue
        transition = AUTOMATIC_TRANSITIONS.get(tray.current_system_type)
        if transition is None:
            continue
        if tray.days_in_current_stage(now) < _minimum_age(tray.current_system_type, blackout_days):
            continue

        target_type, reason = transition
        quantity = len(tray.current_spot_ids or []) or 1
        candidates = find_candidates(systems, target_type, quantity, tray.crop_type, claimed)
        if not candidates:
            logger.debug(f"Kein Platz in {target_type.value} für Tray {tray.id}")
            continue

        candidate = candidates[0]
        claimed.setdefault(candidate.system_id, set()).update(candidate.spot_ids)
        movements.append(TrayMovement(
            id=f"move-{tray.id}-{int(now.timestamp() * 1000)}",
            tray_id=tray.id,
            from_system_id=tray.current_system_id,
            to_system_id=candidate.system_id,
            to_system_type=target_type,
            to_spot_ids=list(candidate.spot_ids),
            scheduled_at=now,
            reason=reason,
        ))

    return movements


class MovementScheduler:
    """Erzeugt und führt automatische Bewegungen aus"""

    def __init__(
        self,
        db: Session,
        settings: Settings | None = None,
        events: TrayEventBus | None = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.lifecycle = TrayLifecycleService(db, settings=self.settings, events=events)

    def _candidate_trays(self) -> list[Tray]:
        return list(self.db.execute(
            select(Tray)
            .where(
                Tray.crop_category == CropCategory.MICROGREENS,
                Tray.status.not_in([TrayStatus.HARVESTED, TrayStatus.SPLIT, TrayStatus.DISCARDED]),
                Tray.current_system_type.in_(list(AUTOMATIC_TRANSITIONS)),
            )
            .order_by(Tray.id)
        ).scalars().all())

    def proposals(self, now: datetime | None = None) -> list[TrayMovement]:
        """Aktuelle Vorschläge, ohne etwas zu verändern"""
        now = now or datetime.utcnow()
        systems = SpotAllocator(self.db).load_systems()
        return evaluate(self._candidate_trays(), systems, now, self.settings.blackout_days)

    def execute(self, movement: TrayMovement, mover: str = SYSTEM_MOVER) -> TrayMovement:
        """
        Führt eine Bewegung über den Tray-Lebenszyklus aus.
        Fehler markieren die Bewegung als failed, statt sie weiterzuwerfen.
        Unbekannte Trays und Systeme werden weitergereicht.
        """
        movement.status = MovementStatus.IN_PROGRESS
        try:
            self.lifecycle.move(
                movement.tray_id,
                movement.to_system_id,
                movement.to_spot_ids,
                moved_by=mover,
                reason=movement.reason,
                destination_system_type=movement.to_system_type,
            )
        except (TrayNotFoundError, SystemNotFoundError):
            raise
        except TrayDomainError as e:
            movement.status = MovementStatus.FAILED
            movement.error = str(e)
            logger.warning(f"Bewegung {movement.id} fehlgeschlagen: {e}")
            return movement

        movement.status = MovementStatus.COMPLETED
        movement.completed_at = datetime.utcnow()
        return movement

    def run_cycle(self, now: datetime | None = None, execute: bool | None = None) -> dict:
        """
        Ein Planungsdurchlauf: Vorschläge erzeugen, ausführen und fällige
        Trays auf ready setzen.
        """
        now = now or datetime.utcnow()
        if execute is None:
            execute = self.settings.auto_execute_movements

        movements = self.proposals(now)
        completed = failed = 0
        if execute:
            for movement in movements:
                self.execute(movement)
                if movement.status == MovementStatus.COMPLETED:
                    completed += 1
                else:
                    failed += 1

        promoted = self.lifecycle.promote_ready(now.date())

        logger.info(
            f"Bewegungsdurchlauf: {len(movements)} vorgeschlagen, {completed} ausgeführt, "
            f"{failed} fehlgeschlagen, {len(promoted)} erntereif"
        )
        return {
            "proposed": len(movements),
            "completed": completed,
            "failed": failed,
            "promoted": promoted,
        }
