"""
Tests für das Kapazitäts-Ledger
Reine Zustandsänderungen, ohne Datenbank
"""
import pytest
from datetime import date

from growtrack.core.exceptions import (
    CapacityError, ChannelConflictError, InvalidQuantityError, NotOccupiedError
)
from growtrack.models.enums import CropCategory, SystemType
from growtrack.models.growing_system import GrowingSystem, Spot, SystemSection
from growtrack.services import capacity_ledger


def build_system(capacity=6, sections=None, same_per_channel=False, max_per_tray=None):
    system = GrowingSystem(
        id="test-1",
        name="Test",
        system_type=SystemType.NFT_CHANNEL_GROUP if sections else SystemType.NURSERY,
        category=CropCategory.LEAFY_GREENS,
        location="Grow Space",
        capacity=capacity,
        occupancy=0,
        same_per_channel=same_per_channel,
        max_per_tray=max_per_tray,
    )
    if sections:
        position = 0
        for index, (code, count) in enumerate(sections, start=1):
            system.sections.append(SystemSection(code=code, position=index, spot_count=count))
            for n in range(1, count + 1):
                system.spots.append(Spot(
                    id=f"test-1-{index}-{n}", section_code=code, position=position, occupied=False
                ))
                position += 1
    else:
        for n in range(1, capacity + 1):
            system.spots.append(Spot(id=f"test-1-{n}", position=n - 1, occupied=False))
    return system


def occupied_count(system):
    return sum(1 for spot in system.spots if spot.occupied)


class TestCanAccept:
    """Tests für can_accept"""

    def test_free_capacity(self):
        system = build_system(capacity=6)
        assert capacity_ledger.can_accept(system, 6) is True
        assert capacity_ledger.can_accept(system, 7) is False

    def test_after_reservation(self):
        system = build_system(capacity=6)
        capacity_ledger.reserve(system, ["test-1-1", "test-1-2"], "T1", "Basil")
        assert capacity_ledger.can_accept(system, 4) is True
        assert capacity_ledger.can_accept(system, 5) is False

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_quantity(self, quantity):
        with pytest.raises(InvalidQuantityError):
            capacity_ledger.can_accept(build_system(), quantity)


class TestReserve:
    """Tests für reserve"""

    def test_stamps_spots_and_occupancy(self):
        system = build_system()
        capacity_ledger.reserve(system, ["test-1-1", "test-1-3"], "T1", "Basil", planted_date=date(2025, 7, 17))

        spot = system.spot_map()["test-1-3"]
        assert spot.occupied is True
        assert spot.tray_id == "T1"
        assert spot.plant_type == "Basil"
        assert spot.planted_date == date(2025, 7, 17)
        assert system.occupancy == 2

    def test_taken_spot_rejected_without_changes(self):
        system = build_system()
        capacity_ledger.reserve(system, ["test-1-1"], "T1", "Basil")

        with pytest.raises(CapacityError) as exc_info:
            capacity_ledger.reserve(system, ["test-1-2", "test-1-1"], "T2", "Basil")

        assert exc_info.value.system_id == "test-1"
        assert system.spot_map()["test-1-2"].occupied is False
        assert system.occupancy == 1

    def test_unknown_spot(self):
        with pytest.raises(CapacityError):
            capacity_ledger.reserve(build_system(), ["test-1-99"], "T1", "Basil")

    def test_duplicate_spot_ids(self):
        with pytest.raises(CapacityError):
            capacity_ledger.reserve(build_system(), ["test-1-1", "test-1-1"], "T1", "Basil")

    def test_empty_request(self):
        with pytest.raises(InvalidQuantityError):
            capacity_ledger.reserve(build_system(), [], "T1", "Basil")

    def test_max_per_tray(self):
        system = build_system(max_per_tray=2)
        with pytest.raises(CapacityError):
            capacity_ledger.reserve(system, ["test-1-1", "test-1-2", "test-1-3"], "T1", "Basil")
        assert system.occupancy == 0

    def test_channel_conflict(self):
        system = build_system(capacity=6, sections=[("CH1", 3), ("CH2", 3)], same_per_channel=True)
        capacity_ledger.reserve(system, ["test-1-1-1"], "T1", "Basil")

        with pytest.raises(ChannelConflictError):
            capacity_ledger.reserve(system, ["test-1-1-2"], "T2", "Kale")

        # gleiche Kultur im selben Kanal, andere Kultur im freien Kanal
        capacity_ledger.reserve(system, ["test-1-1-2"], "T3", "Basil")
        capacity_ledger.reserve(system, ["test-1-2-1"], "T4", "Kale")
        assert system.occupancy == 3

    def test_channel_conflict_is_capacity_error(self):
        assert issubclass(ChannelConflictError, CapacityError)


class TestRelease:
    """Tests für release"""

    def test_release_clears_spots(self):
        system = build_system()
        capacity_ledger.reserve(system, ["test-1-1", "test-1-2"], "T1", "Basil")
        capacity_ledger.release(system, ["test-1-1"], tray_id="T1")

        spot = system.spot_map()["test-1-1"]
        assert spot.occupied is False
        assert spot.tray_id is None
        assert spot.plant_type is None
        assert system.occupancy == 1

    def test_release_free_spot(self):
        with pytest.raises(NotOccupiedError):
            capacity_ledger.release(build_system(), ["test-1-1"])

    def test_release_foreign_tray(self):
        system = build_system()
        capacity_ledger.reserve(system, ["test-1-1"], "T1", "Basil")
        with pytest.raises(NotOccupiedError):
            capacity_ledger.release(system, ["test-1-1"], tray_id="T2")
        assert system.spot_map()["test-1-1"].tray_id == "T1"

    def test_occupancy_matches_spots_over_sequence(self):
        system = build_system(capacity=6)
        operations = [
            ("reserve", ["test-1-1", "test-1-2"], "A"),
            ("reserve", ["test-1-3"], "B"),
            ("release", ["test-1-1", "test-1-2"], "A"),
            ("reserve", ["test-1-1", "test-1-4", "test-1-5"], "C"),
            ("release", ["test-1-3"], "B"),
        ]
        for op, spot_ids, tray_id in operations:
            if op == "reserve":
                capacity_ledger.reserve(system, spot_ids, tray_id, "Basil")
            else:
                capacity_ledger.release(system, spot_ids, tray_id=tray_id)
            assert system.occupancy == occupied_count(system)
            assert 0 <= system.occupancy <= system.capacity

        assert system.occupancy == 3
