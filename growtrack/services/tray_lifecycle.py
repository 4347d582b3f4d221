"""
Tray-Lebenszyklus - Aussaat, Umsetzen, Teilen, Ernten und Entsorgen

Jede Operation ist eine Transaktion: Plätze werden über das Kapazitäts-Ledger
belegt und freigegeben, bei einem Fehler wird die komplette Transaktion
zurückgerollt und Tray sowie Anbausysteme bleiben unverändert.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from growtrack.config import Settings, get_settings
from growtrack.core.events import TrayEvent, TrayEventBus
from growtrack.core.exceptions import (
    AllocationMismatchError, CapacityError, ConcurrentModificationError, DuplicateTrayError,
    InvalidQuantityError, InvalidTransitionError, SystemNotFoundError, TrayNotFoundError,
    UnknownCropDurationError,
)
from growtrack.models.crop import crop_code, growth_days_for
from growtrack.models.enums import CropCategory, SystemType, TrayStatus, status_for_placement
from growtrack.models.growing_system import GrowingSystem
from growtrack.models.tray import Tray, TrayVariety
from growtrack.services import capacity_ledger

logger = logging.getLogger(__name__)

INITIAL_SEEDING = "Initial seeding"


@dataclass
class VarietyInput:
    seed_id: str
    seed_name: str
    quantity: int
    sku: Optional[str] = None
    seeds_oz: Decimal = Decimal("0")


@dataclass
class SplitDestination:
    system_id: str
    spot_ids: list[str] = field(default_factory=list)
    plant_count: Optional[int] = None
    system_type: Optional[SystemType] = None


def even_distribution(total: int, parts: int) -> list[int]:
    """Verteilt total gleichmäßig, Rest einzeln an die ersten Teile"""
    base, remainder = divmod(total, parts)
    return [base + (1 if i < remainder else 0) for i in range(parts)]


def distribute_varieties(quantities: list[int], plant_counts: list[int]) -> list[list[int]]:
    """
    Verteilt Sortenmengen proportional zu den Pflanzenzahlen der Kinder.

    Abgerundete Anteile je Kind, der Rest geht Stück für Stück reihum ab dem
    ersten Kind. Kinder, die ihre Pflanzenzahl schon erreicht haben, werden
    dabei übersprungen. Ergebnis: je Sorte eine Liste mit einer Menge pro Kind.
    """
    total = sum(plant_counts)
    n = len(plant_counts)
    assigned = [0] * n
    result = []

    for quantity in quantities:
        shares = [quantity * count // total for count in plant_counts]
        remainder = quantity - sum(shares)
        cursor = 0
        while remainder > 0:
            has_room = [assigned[i] + shares[i] < plant_counts[i] for i in range(n)]
            target = cursor % n
            if has_room[target] or not any(has_room):
                shares[target] += 1
                remainder -= 1
            cursor += 1
        for i in range(n):
            assigned[i] += shares[i]
        result.append(shares)

    return result


class TrayLifecycleService:
    """Service für den Tray-Lebenszyklus"""

    def __init__(
        self,
        db: Session,
        settings: Settings | None = None,
        events: TrayEventBus | None = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.events = events

    # ========================================
    # TRANSAKTION & SPERREN
    # ========================================

    @contextmanager
    def _unit_of_work(self, inserts_trays: bool = False):
        """
        Eine Transaktion je Operation. Bei inserts_trays wird eine
        Schlüsselverletzung als DuplicateTrayError gemeldet.
        """
        try:
            yield
            self.db.flush()
            self.db.commit()
        except StaleDataError as e:
            self.db.rollback()
            raise ConcurrentModificationError(
                "Datensatz wurde parallel verändert, bitte erneut versuchen"
            ) from e
        except IntegrityError as e:
            self.db.rollback()
            if inserts_trays:
                raise DuplicateTrayError(
                    "Tray-ID wurde parallel vergeben, bitte erneut versuchen"
                ) from e
            raise
        except Exception:
            self.db.rollback()
            raise

    def _get_tray(self, tray_id: str) -> Tray:
        tray = self.db.execute(
            select(Tray)
            .where(Tray.id == tray_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if tray is None:
            raise TrayNotFoundError(f"Tray {tray_id} nicht gefunden", tray_id=tray_id)
        return tray

    def _get_systems(self, system_ids: set[str]) -> dict[str, GrowingSystem]:
        """Lädt und sperrt Systeme in fester Reihenfolge"""
        ordered = sorted(system_ids)
        systems = self.db.execute(
            select(GrowingSystem)
            .options(selectinload(GrowingSystem.spots), selectinload(GrowingSystem.sections))
            .where(GrowingSystem.id.in_(ordered))
            .order_by(GrowingSystem.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars().all()
        found = {system.id: system for system in systems}
        missing = [system_id for system_id in ordered if system_id not in found]
        if missing:
            raise SystemNotFoundError(
                f"Anbausystem nicht gefunden: {', '.join(missing)}", system_id=missing[0]
            )
        return found

    def _stage(self, kind: str, tray_ids: list[str], system_ids: list[str], actor: str | None):
        if self.events is not None:
            self.events.stage(
                self.db,
                TrayEvent(kind=kind, tray_ids=tray_ids, system_ids=sorted(set(system_ids)), actor=actor),
            )

    # ========================================
    # STATUS
    # ========================================

    @staticmethod
    def _ensure_active(tray: Tray) -> None:
        if tray.status.is_terminal:
            raise InvalidTransitionError(
                f"Tray {tray.id} ist bereits {tray.status.value}, keine weiteren Änderungen möglich",
                tray_id=tray.id,
            )

    def _transition(self, tray: Tray, target: TrayStatus) -> TrayStatus:
        """
        Setzt den Status. Terminale Trays lehnen jeden Wechsel ab,
        nicht-terminale Stufen gehen nie zurück.
        """
        self._ensure_active(tray)
        if not target.is_terminal and target.stage < tray.status.stage:
            logger.debug(
                f"Tray {tray.id} bleibt {tray.status.value} (Platzierung ergäbe {target.value})"
            )
            return tray.status
        tray.status = target
        return target

    def _release_current(self, tray: Tray, systems: dict[str, GrowingSystem]) -> None:
        if tray.current_system_id and tray.current_spot_ids:
            capacity_ledger.release(
                systems[tray.current_system_id], list(tray.current_spot_ids), tray_id=tray.id
            )

    @staticmethod
    def _leave_floor(tray: Tray, actor: str, now: datetime, reason: str) -> None:
        """Schließender Historien-Eintrag: Tray steht auf keinem Platz mehr"""
        if tray.current_system_id:
            tray.record_location(
                tray.current_system_id, tray.current_system_type, [], actor, now, reason
            )

    @staticmethod
    def _check_type(system: GrowingSystem, expected: SystemType | None) -> None:
        if expected is not None and system.system_type != expected:
            raise CapacityError(
                f"System {system.id} ist vom Typ {system.system_type.value}, nicht {expected.value}",
                system_id=system.id,
            )

    # ========================================
    # AUSSAAT
    # ========================================

    def tray_prefix(
        self, location_code: str, planted: date, category: CropCategory, crop_type: str
    ) -> str:
        return f"{location_code}{planted:%m%d%y}-{category.type_code}-{crop_code(crop_type)}"

    def next_instance(self, prefix: str) -> int:
        """Nächste freie Tagesnummer für ein ID-Präfix"""
        instances = self.db.execute(
            select(Tray.instance).where(
                Tray.id.like(f"{prefix}-%"),
                Tray.parent_tray_id.is_(None),
            )
        ).scalars().all()
        return max(instances, default=0) + 1

    def expected_harvest_for(self, crop_type: str, planted: date) -> tuple[date, bool]:
        """Erwartetes Erntedatum; zweiter Wert True wenn der Standardwert greift"""
        try:
            days = growth_days_for(crop_type)
            fallback = False
        except UnknownCropDurationError as e:
            days = self.settings.default_growth_days
            fallback = True
            logger.warning(f"{e.message} - verwende Standard von {days} Tagen")
        return planted + timedelta(days=days), fallback

    def create(
        self,
        crop_type: str,
        category: CropCategory,
        plant_count: int,
        system_id: str,
        spot_ids: list[str],
        created_by: str,
        location_code: str | None = None,
        planted_date: date | None = None,
        instance: int | None = None,
        varieties: list[VarietyInput] | None = None,
        notes: str = "",
        system_type: SystemType | None = None,
        now: datetime | None = None,
    ) -> Tray:
        """
        Legt einen neuen Tray an (Aussaat) und belegt seine Plätze.
        """
        now = now or datetime.utcnow()
        varieties = varieties or []

        if plant_count <= 0:
            raise InvalidQuantityError(f"Pflanzenzahl muss positiv sein (angegeben: {plant_count})")
        if any(v.quantity <= 0 for v in varieties):
            raise InvalidQuantityError("Sortenmengen müssen positiv sein")
        variety_total = sum(v.quantity for v in varieties)
        if variety_total > plant_count:
            raise InvalidQuantityError(
                f"Sortenmengen ({variety_total}) übersteigen die Pflanzenzahl ({plant_count})"
            )

        location_code = location_code or self.settings.default_location_code
        planted = planted_date or now.date()
        prefix = self.tray_prefix(location_code, planted, category, crop_type)

        with self._unit_of_work(inserts_trays=True):
            if instance is None:
                instance = self.next_instance(prefix)
            elif instance <= 0:
                raise InvalidQuantityError(f"Tagesnummer muss positiv sein (angegeben: {instance})")
            tray_id = f"{prefix}-{instance}"
            if self.db.get(Tray, tray_id) is not None:
                raise DuplicateTrayError(f"Tray {tray_id} existiert bereits", tray_id=tray_id)

            system = self._get_systems({system_id})[system_id]
            self._check_type(system, system_type)

            expected_harvest, fallback = self.expected_harvest_for(crop_type, planted)
            capacity_ledger.reserve(system, spot_ids, tray_id, crop_type, planted_date=planted)

            tray = Tray(
                id=tray_id,
                crop_type=crop_type,
                crop_category=category,
                location_code=location_code,
                instance=instance,
                date_planted=planted,
                expected_harvest=expected_harvest,
                status=status_for_placement(system.system_type, category),
                plant_count=plant_count,
                notes=notes or "",
                created_by=created_by,
                created_at=now,
            )
            for position, variety in enumerate(varieties):
                tray.varieties.append(TrayVariety(
                    position=position,
                    seed_id=variety.seed_id,
                    seed_name=variety.seed_name,
                    sku=variety.sku,
                    quantity=variety.quantity,
                    seeds_oz=variety.seeds_oz,
                ))
            if fallback:
                tray.append_note(
                    f"Standard-Wachstumsdauer von {self.settings.default_growth_days} Tagen verwendet "
                    f"(keine Daten für {crop_type})"
                )
            tray.record_location(
                system.id, system.system_type, spot_ids, created_by, now, INITIAL_SEEDING
            )
            self.db.add(tray)
            self._stage("created", [tray_id], [system.id], created_by)

        logger.info(f"Tray {tray_id} angelegt in {system_id} ({plant_count} Pflanzen {crop_type})")
        return tray

    # ========================================
    # UMSETZEN
    # ========================================

    def move(
        self,
        tray_id: str,
        destination_system_id: str,
        destination_spot_ids: list[str],
        moved_by: str,
        reason: str | None = None,
        destination_system_type: SystemType | None = None,
        now: datetime | None = None,
    ) -> Tray:
        """
        Setzt einen Tray um: alte Plätze freigeben und neue belegen als eine
        Einheit, Historie erweitern, Status aus der Platzierung ableiten.
        """
        now = now or datetime.utcnow()

        with self._unit_of_work():
            tray = self._get_tray(tray_id)
            self._ensure_active(tray)

            system_ids = {destination_system_id}
            if tray.current_system_id and tray.current_spot_ids:
                system_ids.add(tray.current_system_id)
            systems = self._get_systems(system_ids)
            destination = systems[destination_system_id]
            self._check_type(destination, destination_system_type)
            source_id = tray.current_system_id

            self._release_current(tray, systems)
            capacity_ledger.reserve(
                destination, destination_spot_ids, tray.id, tray.crop_type,
                planted_date=tray.date_planted,
            )

            tray.record_location(
                destination.id, destination.system_type, destination_spot_ids,
                moved_by, now, reason or "Manual movement",
            )
            self._transition(tray, status_for_placement(destination.system_type, tray.crop_category))
            self._stage("moved", [tray.id], [s for s in (source_id, destination.id) if s], moved_by)

        logger.info(f"Tray {tray_id} umgesetzt von {source_id} nach {destination_system_id}")
        return tray

    # ========================================
    # TEILEN
    # ========================================

    def split(
        self,
        parent_id: str,
        destinations: list[SplitDestination],
        split_by: str,
        now: datetime | None = None,
    ) -> tuple[Tray, list[Tray]]:
        """
        Teilt einen Tray auf mehrere neue Trays auf.

        Alles-oder-nichts: Kinder werden angelegt, Plätze belegt und der
        Eltern-Tray auf split gesetzt, oder es passiert gar nichts.
        """
        now = now or datetime.utcnow()

        if len(destinations) < 2:
            raise InvalidQuantityError("Eine Teilung braucht mindestens zwei Ziele")

        counts = [d.plant_count for d in destinations]
        if any(c is None for c in counts) and not all(c is None for c in counts):
            raise InvalidQuantityError("Pflanzenzahl entweder für alle Ziele oder für keines angeben")

        with self._unit_of_work(inserts_trays=True):
            parent = self._get_tray(parent_id)
            self._ensure_active(parent)

            if all(c is None for c in counts):
                counts = even_distribution(parent.plant_count, len(destinations))
            if any(c <= 0 for c in counts):
                raise InvalidQuantityError(
                    f"Jedes Ziel braucht mindestens eine Pflanze (Verteilung: {counts})",
                    tray_id=parent.id,
                )
            if sum(counts) != parent.plant_count:
                raise AllocationMismatchError(
                    f"Ziele ergeben {sum(counts)} Pflanzen, Tray {parent.id} hat {parent.plant_count}",
                    tray_id=parent.id,
                )

            child_ids = [f"{parent.id}-S{n}" for n in range(1, len(destinations) + 1)]
            existing = self.db.execute(select(Tray.id).where(Tray.id.in_(child_ids))).scalars().all()
            if existing:
                raise DuplicateTrayError(
                    f"Tray existiert bereits: {', '.join(existing)}", tray_id=parent.id
                )

            system_ids = {d.system_id for d in destinations}
            if parent.current_system_id and parent.current_spot_ids:
                system_ids.add(parent.current_system_id)
            systems = self._get_systems(system_ids)
            for destination in destinations:
                self._check_type(systems[destination.system_id], destination.system_type)

            self._release_current(parent, systems)
            self._leave_floor(parent, split_by, now, f"Split into {len(destinations)} trays")

            variety_split = distribute_varieties([v.quantity for v in parent.varieties], counts)

            children = []
            for index, (child_id, destination, count) in enumerate(zip(child_ids, destinations, counts)):
                system = systems[destination.system_id]
                capacity_ledger.reserve(
                    system, destination.spot_ids, child_id, parent.crop_type,
                    planted_date=parent.date_planted,
                )
                child = Tray(
                    id=child_id,
                    crop_type=parent.crop_type,
                    crop_category=parent.crop_category,
                    location_code=parent.location_code,
                    instance=parent.instance,
                    date_planted=parent.date_planted,
                    expected_harvest=parent.expected_harvest,
                    status=status_for_placement(system.system_type, parent.crop_category),
                    plant_count=count,
                    notes=f"Split {index + 1} of {len(destinations)} from {parent.id}",
                    created_by=split_by,
                    created_at=now,
                )
                for position, (variety, shares) in enumerate(zip(parent.varieties, variety_split)):
                    if shares[index] > 0:
                        child.varieties.append(TrayVariety(
                            position=position,
                            seed_id=variety.seed_id,
                            seed_name=variety.seed_name,
                            sku=variety.sku,
                            quantity=shares[index],
                            seeds_oz=Decimal("0"),
                        ))
                child.record_location(
                    system.id, system.system_type, destination.spot_ids, split_by, now,
                    f"Split from parent tray {parent.id}",
                )
                child.parent = parent
                self.db.add(child)
                children.append(child)

            self._transition(parent, TrayStatus.SPLIT)
            parent.append_note(
                f"Split into {len(children)} trays on {now:%Y-%m-%d}: {', '.join(child_ids)}"
            )
            self._stage("split", [parent.id, *child_ids], list(system_ids), split_by)

        logger.info(f"Tray {parent_id} geteilt in {', '.join(child_ids)}")
        return parent, children

    # ========================================
    # ABSCHLUSS
    # ========================================

    def _finish(self, tray_id: str, target: TrayStatus, actor: str, note: str, reason: str) -> Tray:
        with self._unit_of_work():
            tray = self._get_tray(tray_id)
            self._ensure_active(tray)
            system_ids = {tray.current_system_id} if tray.current_system_id and tray.current_spot_ids else set()
            systems = self._get_systems(system_ids) if system_ids else {}
            self._release_current(tray, systems)
            self._leave_floor(tray, actor, datetime.utcnow(), reason)
            self._transition(tray, target)
            tray.append_note(note)
            self._stage(target.value, [tray.id], list(system_ids), actor)

        logger.info(f"Tray {tray_id} auf {target.value} gesetzt")
        return tray

    def discard(self, tray_id: str, reason: str, discarded_by: str) -> Tray:
        """Entsorgt einen Tray und gibt seine Plätze frei"""
        return self._finish(
            tray_id, TrayStatus.DISCARDED, discarded_by,
            f"Discarded by {discarded_by}: {reason}", f"Discarded: {reason}",
        )

    def harvest(self, tray_id: str, harvested_by: str, notes: str | None = None) -> Tray:
        """Erntet einen Tray und gibt seine Plätze frei"""
        note = f"Harvested by {harvested_by}"
        if notes:
            note = f"{note}: {notes}"
        return self._finish(tray_id, TrayStatus.HARVESTED, harvested_by, note, "Harvested")

    def mark_ready(self, tray_id: str, actor: str = "System") -> Tray:
        with self._unit_of_work():
            tray = self._get_tray(tray_id)
            self._transition(tray, TrayStatus.READY)
            self._stage("ready", [tray.id], [], actor)
        return tray

    def promote_ready(self, today: date | None = None) -> list[str]:
        """
        Setzt wachsende Trays mit erreichtem Erntedatum auf ready.
        """
        today = today or date.today()
        with self._unit_of_work():
            trays = self.db.execute(
                select(Tray)
                .where(Tray.status == TrayStatus.GROWING, Tray.expected_harvest <= today)
                .with_for_update()
            ).scalars().all()
            promoted = []
            for tray in trays:
                tray.status = TrayStatus.READY
                promoted.append(tray.id)
                logger.info(f"Tray {tray.id} erntereif (erwartet {tray.expected_harvest})")
            if promoted:
                self._stage("ready", promoted, [], "System")
        return promoted

    def update_notes(self, tray_id: str, notes: str) -> Tray:
        with self._unit_of_work():
            tray = self._get_tray(tray_id)
            tray.notes = notes
        return tray
