"""
Fehler-Taxonomie für Trays und Anbausysteme.

Alle Fehler werden vor einer Mutation erkannt und synchron an den Aufrufer
gemeldet. Sie erben von ValueError, damit sie sich wie die übrigen
Validierungsfehler der Services verhalten.
"""


class TrayDomainError(ValueError):
    """Basisklasse für alle fachlichen Fehler"""

    def __init__(self, message: str, system_id: str | None = None, tray_id: str | None = None):
        super().__init__(message)
        self.message = message
        self.system_id = system_id
        self.tray_id = tray_id


class CapacityError(TrayDomainError):
    """Nicht genug freie Plätze, oder ein Platz wurde zwischenzeitlich belegt"""


class ChannelConflictError(CapacityError):
    """Kanal enthält bereits eine andere Kultur"""


class NotOccupiedError(TrayDomainError):
    """Freigabe eines Platzes, der nicht (oder nicht von diesem Tray) belegt ist"""


class InvalidQuantityError(TrayDomainError):
    """Menge <= 0 oder inkonsistente Sortenmengen"""


class AllocationMismatchError(TrayDomainError):
    """Pflanzenzahlen der Split-Ziele ergeben nicht die Pflanzenzahl des Trays"""


class UnknownCropDurationError(TrayDomainError):
    """Kultur fehlt in der Wachstumsdauer-Tabelle (wird mit Standardwert behandelt)"""

    def __init__(self, crop_type: str):
        super().__init__(f"Keine Wachstumsdauer für Kultur '{crop_type}' hinterlegt")
        self.crop_type = crop_type


class InvalidTransitionError(TrayDomainError):
    """Statuswechsel ist im Lebenszyklus nicht erlaubt"""


class DuplicateTrayError(TrayDomainError):
    """Tray-ID existiert bereits"""


class SystemInUseError(TrayDomainError):
    """Anbausystem ist noch belegt"""


class DuplicateSystemError(TrayDomainError):
    """System-ID existiert bereits"""


class ConcurrentModificationError(TrayDomainError):
    """Datensatz wurde parallel verändert"""


class TrayNotFoundError(TrayDomainError):
    """Tray nicht gefunden"""


class SystemNotFoundError(TrayDomainError):
    """Anbausystem nicht gefunden"""


class HistoryImmutableError(TrayDomainError):
    """Standort-Historie ist nur erweiterbar"""
