"""
Änderungs-Benachrichtigungen für Trays und Anbausysteme.

Services sammeln Ereignisse an der Session; verteilt werden sie erst nach
einem erfolgreichen Commit. Ein Rollback verwirft die gesammelten Ereignisse.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from sqlalchemy import event
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

_PENDING_KEY = "growtrack_pending_events"
_BUS_KEY = "growtrack_event_bus"


@dataclass
class TrayEvent:
    kind: str                      # created, moved, split, discarded, harvested, ready
    tray_ids: list[str]
    system_ids: list[str] = field(default_factory=list)
    actor: str | None = None
    occurred_at: datetime = field(default_factory=datetime.utcnow)


Subscriber = Callable[[TrayEvent], None]


class TrayEventBus:
    """Verteilt Ereignisse nach dem Commit an registrierte Subscriber"""

    def __init__(self):
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Registriert einen Subscriber, liefert eine Abmelde-Funktion"""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def stage(self, db: Session, tray_event: TrayEvent) -> None:
        """Merkt ein Ereignis für den nächsten Commit der Session vor"""
        if db.info.get(_BUS_KEY) is not self:
            event.listen(db, "after_commit", self._after_commit)
            event.listen(db, "after_soft_rollback", self._after_rollback)
            db.info[_BUS_KEY] = self
        db.info.setdefault(_PENDING_KEY, []).append(tray_event)

    def publish(self, tray_event: TrayEvent) -> None:
        for callback in list(self._subscribers):
            try:
                callback(tray_event)
            except Exception as e:
                # Subscriber-Fehler dürfen den bereits committeten Vorgang nicht beeinflussen
                logger.error(f"Subscriber für Ereignis {tray_event.kind} fehlgeschlagen: {e}")

    def _after_commit(self, session: Session) -> None:
        pending = session.info.pop(_PENDING_KEY, [])
        for tray_event in pending:
            self.publish(tray_event)

    def _after_rollback(self, session: Session, previous_transaction) -> None:
        session.info.pop(_PENDING_KEY, None)


def log_subscriber(tray_event: TrayEvent) -> None:
    """Standard-Subscriber: protokolliert jede bestätigte Änderung"""
    logger.info(
        f"Tray-Ereignis {tray_event.kind}: trays={','.join(tray_event.tray_ids)} "
        f"systeme={','.join(tray_event.system_ids)} von {tray_event.actor}"
    )
