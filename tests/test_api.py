"""
API Endpoint Tests
"""
import pytest


NFT_SYSTEM = {
    "id": "nft-1",
    "name": "NFT Shelf 1",
    "system_type": "nft-channel-group",
    "category": "leafy-greens",
    "location": "Grow Space",
    "same_per_channel": True,
    "sections": [{"code": f"CH{c}", "spot_count": 18, "spot_kind": "slots"} for c in range(1, 5)],
}


def provision(client, system_id, system_type, category="microgreens", capacity=10):
    response = client.post("/api/v1/systems", json={
        "id": system_id,
        "name": system_id.title(),
        "system_type": system_type,
        "category": category,
        "location": "Grow Space",
        "capacity": capacity,
    })
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def layout(client):
    """Nursery, Blackout, Regal und NFT"""
    provision(client, "mg-nursery", "nursery")
    provision(client, "mg-blackout", "blackout")
    provision(client, "mg-rack-1", "microgreen-rack")
    response = client.post("/api/v1/systems", json=NFT_SYSTEM)
    assert response.status_code == 201, response.text


@pytest.fixture
def arugula(client, layout):
    response = client.post("/api/v1/trays", json={
        "crop_type": "Arugula",
        "crop_category": "microgreens",
        "plant_count": 10,
        "system_id": "mg-nursery",
        "spot_ids": ["mg-nursery-1"],
        "location_code": "K",
        "date_planted": "2025-07-17",
        "varieties": [{"seed_id": "seed-1", "seed_name": "Astro", "quantity": 10}],
    })
    assert response.status_code == 201, response.text
    return response.json()


class TestHealthEndpoints:
    """Tests für Health Check Endpoints"""

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "GrowTrack" in response.json()["message"]


class TestSystemEndpoints:
    """Tests für Anbausysteme"""

    def test_create_nft_system(self, client):
        response = client.post("/api/v1/systems", json=NFT_SYSTEM)

        assert response.status_code == 201
        data = response.json()
        assert data["capacity"] == 72
        assert data["occupancy"] == 0
        assert [s["code"] for s in data["sections"]] == ["CH1", "CH2", "CH3", "CH4"]
        assert data["spots"][18]["id"] == "nft-1-2-1"

    def test_duplicate_system(self, client, layout):
        response = client.post("/api/v1/systems", json=NFT_SYSTEM)
        assert response.status_code == 409
        assert response.json()["error"] == "DuplicateSystemError"

    def test_list_systems_with_filter(self, client, layout):
        response = client.get("/api/v1/systems", params={"system_type": "blackout"})
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["id"] == "mg-blackout"

    def test_get_system_not_found(self, client):
        response = client.get("/api/v1/systems/missing")
        assert response.status_code == 404

    def test_patch_only_name_and_location(self, client, layout):
        response = client.patch("/api/v1/systems/mg-nursery", json={"name": "Nursery Nord"})
        assert response.status_code == 200
        assert response.json()["name"] == "Nursery Nord"

        response = client.patch("/api/v1/systems/mg-nursery", json={"occupancy": 5})
        assert response.status_code == 422
        response = client.patch("/api/v1/systems/mg-nursery", json={"capacity": 500})
        assert response.status_code == 422

    def test_delete_occupied_system(self, client, arugula):
        response = client.delete("/api/v1/systems/mg-nursery")
        assert response.status_code == 409
        assert response.json()["error"] == "SystemInUseError"
        assert response.json()["system_id"] == "mg-nursery"

    def test_delete_empty_system(self, client, layout):
        response = client.delete("/api/v1/systems/mg-rack-1")
        assert response.status_code == 200
        assert client.get("/api/v1/systems/mg-rack-1").status_code == 404

    def test_candidates(self, client, layout):
        response = client.get("/api/v1/systems/candidates", params={
            "system_type": "nft-channel-group", "quantity": 18, "crop_type": "Basil",
        })
        assert response.status_code == 200
        assert [c["section"] for c in response.json()] == ["CH1", "CH2", "CH3", "CH4"]

    def test_utilization_summary(self, client, arugula):
        response = client.get("/api/v1/systems/summary/utilization")
        assert response.status_code == 200
        data = response.json()
        nursery = next(i for i in data["items"] if i["system_type"] == "nursery")
        assert nursery["occupancy"] == 1
        assert nursery["utilization_percent"] == 10.0
        assert data["total_capacity"] == 102


class TestTrayEndpoints:
    """Tests für Trays"""

    def test_create_tray(self, client, arugula):
        assert arugula["id"] == "K071725-MG-ARUG-1"
        assert arugula["status"] == "seeded"
        assert arugula["expected_harvest"] == "2025-08-07"
        assert arugula["created_by"] == "testuser"
        assert arugula["current_location"]["system_id"] == "mg-nursery"

    def test_create_on_occupied_spot(self, client, arugula):
        response = client.post("/api/v1/trays", json={
            "crop_type": "Radish",
            "crop_category": "microgreens",
            "plant_count": 5,
            "system_id": "mg-nursery",
            "spot_ids": ["mg-nursery-1"],
        })
        assert response.status_code == 409
        assert response.json()["error"] == "CapacityError"
        assert response.json()["system_id"] == "mg-nursery"

    def test_varieties_above_plant_count(self, client, layout):
        response = client.post("/api/v1/trays", json={
            "crop_type": "Arugula",
            "crop_category": "microgreens",
            "plant_count": 5,
            "system_id": "mg-nursery",
            "spot_ids": ["mg-nursery-1"],
            "varieties": [{"seed_id": "seed-1", "seed_name": "Astro", "quantity": 6}],
        })
        assert response.status_code == 422

    def test_list_trays(self, client, arugula):
        response = client.get("/api/v1/trays", params={"status": "seeded", "system_id": "mg-nursery"})
        assert response.status_code == 200
        assert response.json()["total"] == 1

        response = client.get("/api/v1/trays", params={"status": "growing"})
        assert response.json()["total"] == 0

    def test_list_by_system_skips_finished_trays(self, client, arugula):
        client.post(f"/api/v1/trays/{arugula['id']}/harvest")
        successor = client.post("/api/v1/trays", json={
            "crop_type": "Arugula",
            "crop_category": "microgreens",
            "plant_count": 10,
            "system_id": "mg-nursery",
            "spot_ids": ["mg-nursery-1"],
            "location_code": "K",
            "date_planted": "2025-07-17",
        }).json()

        response = client.get("/api/v1/trays", params={"system_id": "mg-nursery"})
        assert [t["id"] for t in response.json()["items"]] == [successor["id"]]

        harvested = client.get(f"/api/v1/trays/{arugula['id']}").json()
        assert harvested["current_location"]["spot_ids"] == []

    def test_get_tray_not_found(self, client, layout):
        assert client.get("/api/v1/trays/K000000-MG-NONE-1").status_code == 404

    def test_move_and_history(self, client, arugula):
        response = client.post(f"/api/v1/trays/{arugula['id']}/move", json={
            "destination_system_id": "mg-blackout",
            "destination_spot_ids": ["mg-blackout-1"],
            "reason": "Keimung",
        })
        assert response.status_code == 200
        assert response.json()["status"] == "germinating"

        history = client.get(f"/api/v1/trays/{arugula['id']}/history").json()
        assert [h["system_id"] for h in history] == ["mg-nursery", "mg-blackout"]
        assert history[1]["reason"] == "Keimung"
        assert history[1]["moved_by"] == "testuser"

    def test_split(self, client, arugula):
        response = client.post(f"/api/v1/trays/{arugula['id']}/split", json={"destinations": [
            {"system_id": "mg-blackout", "spot_ids": ["mg-blackout-1"]},
            {"system_id": "mg-blackout", "spot_ids": ["mg-blackout-2"]},
            {"system_id": "mg-blackout", "spot_ids": ["mg-blackout-3"]},
        ]})
        assert response.status_code == 200
        data = response.json()
        assert data["parent"]["status"] == "split"
        assert [c["plant_count"] for c in data["children"]] == [4, 3, 3]
        assert data["parent"]["child_tray_ids"] == [c["id"] for c in data["children"]]

    def test_split_mismatch(self, client, arugula):
        response = client.post(f"/api/v1/trays/{arugula['id']}/split", json={"destinations": [
            {"system_id": "mg-blackout", "spot_ids": ["mg-blackout-1"], "plant_count": 3},
            {"system_id": "mg-blackout", "spot_ids": ["mg-blackout-2"], "plant_count": 3},
        ]})
        assert response.status_code == 422
        assert response.json()["error"] == "AllocationMismatchError"

    def test_harvest_then_move(self, client, arugula):
        response = client.post(f"/api/v1/trays/{arugula['id']}/harvest", json={"notes": "1.2 kg"})
        assert response.status_code == 200
        assert response.json()["status"] == "harvested"

        response = client.post(f"/api/v1/trays/{arugula['id']}/move", json={
            "destination_system_id": "mg-blackout",
            "destination_spot_ids": ["mg-blackout-1"],
        })
        assert response.status_code == 409
        assert response.json()["error"] == "InvalidTransitionError"

    def test_delete_discards(self, client, arugula):
        response = client.delete(f"/api/v1/trays/{arugula['id']}")
        assert response.status_code == 200
        assert response.json()["status"] == "discarded"
        assert client.get(f"/api/v1/trays/{arugula['id']}").status_code == 200

    def test_patch_notes(self, client, arugula):
        response = client.patch(f"/api/v1/trays/{arugula['id']}", json={"notes": "Gut gekeimt"})
        assert response.status_code == 200
        assert response.json()["notes"] == "Gut gekeimt"

        response = client.patch(f"/api/v1/trays/{arugula['id']}", json={"status": "ready"})
        assert response.status_code == 422

    def test_mark_ready(self, client, arugula):
        response = client.post(f"/api/v1/trays/{arugula['id']}/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"


class TestMovementEndpoints:
    """Tests für Bewegungen"""

    def test_proposals_and_execute(self, client, arugula):
        response = client.get("/api/v1/movements/proposals")
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        proposal = data["items"][0]
        assert proposal["to_system_id"] == "mg-blackout"

        response = client.post("/api/v1/movements/execute", json=proposal)
        assert response.status_code == 200
        assert response.json()["status"] == "completed"

        tray = client.get(f"/api/v1/trays/{arugula['id']}").json()
        assert tray["current_location"]["system_id"] == "mg-blackout"

    def test_execute_failure(self, client, arugula):
        proposal = client.get("/api/v1/movements/proposals").json()["items"][0]
        proposal["to_spot_ids"] = ["mg-blackout-99"]

        response = client.post("/api/v1/movements/execute", json=proposal)
        assert response.status_code == 409

    def test_execute_unknown_tray(self, client, layout):
        response = client.post("/api/v1/movements/execute", json={
            "tray_id": "K000000-MG-NONE-1",
            "to_system_id": "mg-blackout",
            "to_system_type": "blackout",
            "to_spot_ids": ["mg-blackout-1"],
        })
        assert response.status_code == 404
        assert response.json()["error"] == "TrayNotFoundError"
