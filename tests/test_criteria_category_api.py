from decimal import Decimal

import pytest
from fastapi import status
from sqlalchemy import event

from perfeval.models.criteria_category import CriteriaCategory
from perfeval.schemas.criteria import RebalanceWeightItem
from perfeval.services import criteria_category_service

BASE = "/api/criteria-categories"


@pytest.fixture
def abc_categories(client):
    """Three active categories A 40 / B 36 / C 24 created through the API."""
    ids = {}
    for name, weight in (("A", "40"), ("B", "36"), ("C", "24")):
        response = client.post(f"{BASE}/", json={"name": name, "weight": weight})
        assert response.status_code == status.HTTP_201_CREATED
        ids[name] = response.json()["id"]
    return ids


def _active_weights(client):
    response = client.get(f"{BASE}/active")
    assert response.status_code == status.HTTP_200_OK
    return {c["name"]: Decimal(c["weight"]) for c in response.json()}


def test_create_category(client):
    response = client.post(f"{BASE}/", json={"name": "Technical", "description": "Hard skills", "weight": "60"})
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["name"] == "Technical"
    assert Decimal(data["weight"]) == Decimal("60.00")
    assert data["is_active"] is True


def test_create_rejects_total_over_hundred(client, abc_categories):
    response = client.post(f"{BASE}/", json={"name": "D", "weight": "1"})
    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["errors"][0]["code"] == "WEIGHT_EXCEEDS_TOTAL"


def test_create_rejects_duplicate_name(client, abc_categories):
    client.patch(f"{BASE}/{abc_categories['C']}/deactivate")
    response = client.post(f"{BASE}/", json={"name": "C", "weight": "10"})
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["errors"][0]["code"] == "DUPLICATE_ENTITY"


def test_create_rejects_weight_out_of_range(client):
    response = client.post(f"{BASE}/", json={"name": "Bad", "weight": "150"})
    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == "weight"


def test_validate_weights_valid(client, abc_categories):
    response = client.get(f"{BASE}/validate-weights")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["is_valid"] is True
    assert Decimal(data["total_weight"]) == Decimal("100")
    assert Decimal(data["remaining_weight"]) == Decimal("0")
    assert len(data["categories"]) == 3


def test_validate_weights_after_deactivation(client, abc_categories):
    client.patch(f"{BASE}/{abc_categories['C']}/deactivate")
    data = client.get(f"{BASE}/validate-weights").json()
    assert data["is_valid"] is False
    assert Decimal(data["total_weight"]) == Decimal("76")
    assert Decimal(data["remaining_weight"]) == Decimal("24")


def test_rebalance_proportionally(client, abc_categories):
    response = client.post(
        f"{BASE}/rebalance",
        json={"weights": [{"category_id": abc_categories["A"], "proposed_weight": "50"}]},
    )
    assert response.status_code == status.HTTP_200_OK
    weights = {c["name"]: Decimal(c["weight"]) for c in response.json()}
    assert weights == {"A": Decimal("50"), "B": Decimal("30"), "C": Decimal("20")}
    assert _active_weights(client) == weights


def test_rebalance_over_hundred_changes_nothing(client, abc_categories):
    response = client.post(
        f"{BASE}/rebalance",
        json={"weights": [
            {"category_id": abc_categories["A"], "proposed_weight": "70"},
            {"category_id": abc_categories["B"], "proposed_weight": "40"},
        ]},
    )
    assert response.status_code == 422
    assert response.json()["errors"][0]["code"] == "WEIGHT_EXCEEDS_TOTAL"
    assert _active_weights(client) == {"A": Decimal("40"), "B": Decimal("36"), "C": Decimal("24")}


def test_rebalance_write_failure_changes_nothing(client, db_session, abc_categories):
    pending = []

    def fail_flush(session, flush_context, instances):
        pending.extend(obj.name for obj in session.dirty if isinstance(obj, CriteriaCategory))
        raise RuntimeError("database unavailable")

    event.listen(db_session, "before_flush", fail_flush)
    try:
        with pytest.raises(RuntimeError):
            criteria_category_service.rebalance_category_weights(
                db_session,
                [RebalanceWeightItem(category_id=abc_categories["A"], proposed_weight=Decimal("50"))],
            )
    finally:
        event.remove(db_session, "before_flush", fail_flush)

    # The write was underway for every category when it failed
    assert sorted(pending) == ["A", "B", "C"]
    assert _active_weights(client) == {"A": Decimal("40"), "B": Decimal("36"), "C": Decimal("24")}
    validation = criteria_category_service.validate_category_weights(db_session)
    assert validation.is_valid is True
    assert validation.total_weight == Decimal("100")


def test_rebalance_unknown_category(client, abc_categories):
    response = client.post(
        f"{BASE}/rebalance",
        json={"weights": [{"category_id": 9999, "proposed_weight": "10"}]},
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["errors"][0]["code"] == "CATEGORY_NOT_FOUND"


def test_rebalance_requires_a_proposal(client, abc_categories):
    response = client.post(f"{BASE}/rebalance", json={"weights": []})
    assert response.status_code == 422


def test_rebalance_repairs_invalid_weights(client, abc_categories):
    client.patch(f"{BASE}/{abc_categories['C']}/deactivate")
    response = client.post(
        f"{BASE}/rebalance",
        json={"weights": [{"category_id": abc_categories["A"], "proposed_weight": "40"}]},
    )
    assert response.status_code == status.HTTP_200_OK
    assert _active_weights(client) == {"A": Decimal("40"), "B": Decimal("60")}
    assert client.get(f"{BASE}/validate-weights").json()["is_valid"] is True


def test_update_weight_guard(client, abc_categories):
    response = client.put(f"{BASE}/{abc_categories['A']}", json={"weight": "41"})
    assert response.status_code == 422

    response = client.put(f"{BASE}/{abc_categories['A']}", json={"weight": "30", "description": "Lowered"})
    assert response.status_code == status.HTTP_200_OK
    assert Decimal(response.json()["weight"]) == Decimal("30")


def test_reactivate_guard(client, abc_categories):
    client.patch(f"{BASE}/{abc_categories['C']}/deactivate")
    assert client.post(f"{BASE}/", json={"name": "D", "weight": "24"}).status_code == status.HTTP_201_CREATED

    response = client.patch(f"{BASE}/{abc_categories['C']}/reactivate")
    assert response.status_code == 422
    assert response.json()["errors"][0]["code"] == "WEIGHT_EXCEEDS_TOTAL"


def test_get_unknown_category(client):
    response = client.get(f"{BASE}/9999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["errors"][0]["code"] == "NOT_FOUND"


def test_with_criteria_and_cascade_deactivate(client, categories):
    technical_id = categories["technical"].id

    data = client.get(f"{BASE}/{technical_id}/with-criteria").json()
    assert data["criteria_count"] == 2
    assert {c["name"] for c in data["criteria"]} == {"Code quality", "Problem solving"}

    response = client.patch(f"{BASE}/{technical_id}/cascade-deactivate")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["is_active"] is False

    data = client.get(f"{BASE}/{technical_id}/with-criteria").json()
    assert all(c["is_active"] is False for c in data["criteria"])


def test_delete_category_in_use(client, categories):
    response = client.delete(f"{BASE}/{categories['technical'].id}/permanent")
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["errors"][0]["code"] == "CATEGORY_IN_USE"


def test_delete_empty_category(client, abc_categories):
    response = client.delete(f"{BASE}/{abc_categories['C']}/permanent")
    assert response.status_code == status.HTTP_200_OK
    assert client.get(f"{BASE}/{abc_categories['C']}").status_code == status.HTTP_404_NOT_FOUND
