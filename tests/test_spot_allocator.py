"""
Tests für die Platz-Suche
"""
import pytest

from growtrack.core.exceptions import InvalidQuantityError
from growtrack.models.enums import SystemType
from growtrack.services import capacity_ledger
from growtrack.services.spot_allocator import SpotAllocator, find_candidates


class TestFindCandidates:
    """Tests für find_candidates"""

    def test_filters_by_type(self, db, systems):
        candidates = SpotAllocator(db).find_candidates(SystemType.BLACKOUT, 3)

        assert [c.system_id for c in candidates] == ["mg-blackout"]
        assert candidates[0].spot_ids == ["mg-blackout-1", "mg-blackout-2", "mg-blackout-3"]
        assert candidates[0].system_type == SystemType.BLACKOUT

    def test_skips_occupied_spots(self, db, systems, spot_ids):
        nursery = systems["nursery"]
        capacity_ledger.reserve(nursery, spot_ids("mg-nursery", 1, 2), "T1", "Arugula")
        db.commit()

        candidates = SpotAllocator(db).find_candidates(SystemType.NURSERY, 2)
        assert candidates[0].spot_ids == ["mg-nursery-3", "mg-nursery-4"]

    def test_not_enough_space(self, db, systems):
        assert SpotAllocator(db).find_candidates(SystemType.NURSERY, 11) == []

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_invalid_quantity(self, db, systems, quantity):
        with pytest.raises(InvalidQuantityError):
            SpotAllocator(db).find_candidates(SystemType.NURSERY, quantity)

    def test_claimed_spots_excluded(self, db, systems):
        allocator = SpotAllocator(db)
        loaded = allocator.load_systems()
        claimed = {"mg-rack-1": {"mg-rack-1-1", "mg-rack-1-2"}}

        candidates = find_candidates(loaded, SystemType.MICROGREEN_RACK, 1, "Arugula", claimed)
        assert candidates[0].spot_ids == ["mg-rack-1-3"]

    def test_sorted_by_offered_spots(self, db, systems):
        loaded = SpotAllocator(db).load_systems()
        candidates = find_candidates(loaded, SystemType.TOWER, 5)
        assert all(len(c.spot_ids) == 5 for c in candidates)


class TestChannelSystems:
    """NFT-Kanäle: ein Kanal trägt nur eine Kultur"""

    def test_full_channel_for_basil(self, db, systems):
        candidates = SpotAllocator(db).find_candidates(SystemType.NFT_CHANNEL_GROUP, 18, "Basil")

        assert [c.section for c in candidates] == ["CH1", "CH2", "CH3", "CH4"]
        assert candidates[0].spot_ids == [f"nft-1-1-{n}" for n in range(1, 19)]

    def test_kale_goes_to_other_channel(self, db, systems):
        allocator = SpotAllocator(db)
        basil = allocator.find_candidates(SystemType.NFT_CHANNEL_GROUP, 18, "Basil")[0]
        capacity_ledger.reserve(systems["nft"], basil.spot_ids, "T-BASIL", "Basil")
        db.commit()

        kale = allocator.find_candidates(SystemType.NFT_CHANNEL_GROUP, 1, "Kale")
        assert kale[0].section == "CH2"
        assert kale[0].spot_ids == ["nft-1-2-1"]
        assert "CH1" not in [c.section for c in kale]

    def test_partially_used_channel(self, db, systems, spot_ids):
        capacity_ledger.reserve(systems["nft"], spot_ids("nft-1", 1, 2, 3, section=1), "T-BASIL", "Basil")
        db.commit()
        allocator = SpotAllocator(db)

        basil = allocator.find_candidates(SystemType.NFT_CHANNEL_GROUP, 2, "Basil")
        kale = allocator.find_candidates(SystemType.NFT_CHANNEL_GROUP, 2, "Kale")

        assert basil[0].section == "CH1"
        assert basil[0].spot_ids == ["nft-1-1-4", "nft-1-1-5"]
        assert [c.section for c in kale] == ["CH2", "CH3", "CH4"]

    def test_no_section_with_mixed_crops(self, db, systems):
        allocator = SpotAllocator(db)
        for crop in ("Basil", "Kale", "Spinach", "Romaine Lettuce"):
            candidate = allocator.find_candidates(SystemType.NFT_CHANNEL_GROUP, 1, crop)[0]
            capacity_ledger.reserve(systems["nft"], candidate.spot_ids, f"T-{crop}", crop)
            db.commit()

        for section in systems["nft"].sections:
            crops = {s.plant_type for s in systems["nft"].spots if s.section_code == section.code and s.occupied}
            assert len(crops) == 1
