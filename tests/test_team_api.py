from fastapi import status

BASE = "/api/teams"


def _create_team(client, name="Platform"):
    response = client.post(f"{BASE}/", json={"name": name, "description": "Core services"})
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


def _staff_team(client, team_id, evaluator, employee):
    response = client.post(f"{BASE}/{team_id}/evaluators", json={"evaluator_id": evaluator.id})
    assert response.status_code == status.HTTP_201_CREATED
    response = client.post(
        f"{BASE}/{team_id}/employees",
        json={"employee_id": employee.id, "evaluator_id": evaluator.id},
    )
    assert response.status_code == status.HTTP_201_CREATED


def test_team_crud(client):
    team = _create_team(client)
    assert team["is_active"] is True
    assert team["member_count"] == 0

    assert client.post(f"{BASE}/", json={"name": "Platform"}).status_code == status.HTTP_409_CONFLICT

    response = client.put(f"{BASE}/{team['id']}", json={"name": "Platform Core"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["name"] == "Platform Core"

    client.patch(f"{BASE}/{team['id']}/deactivate")
    assert client.get(f"{BASE}/").json() == []
    assert len(client.get(f"{BASE}/", params={"include_inactive": True}).json()) == 1

    response = client.patch(f"{BASE}/{team['id']}/reactivate")
    assert response.json()["is_active"] is True


def test_get_unknown_team(client):
    response = client.get(f"{BASE}/9999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["errors"][0]["code"] == "NOT_FOUND"


def test_assign_members(client, evaluator, employee):
    team = _create_team(client)
    url = f"{BASE}/{team['id']}"

    # Employees can only be placed under an evaluator already on the team
    response = client.post(f"{url}/employees", json={"employee_id": employee.id, "evaluator_id": evaluator.id})
    assert response.status_code == 422
    assert response.json()["errors"][0]["code"] == "EVALUATOR_NOT_IN_TEAM"

    response = client.post(f"{url}/evaluators", json={"evaluator_id": evaluator.id})
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["employee_id"] is None
    assert client.post(f"{url}/evaluators", json={"evaluator_id": evaluator.id}).status_code == status.HTTP_409_CONFLICT

    response = client.post(f"{url}/employees", json={"employee_id": employee.id, "evaluator_id": evaluator.id})
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["evaluator_id"] == evaluator.id

    duplicate = client.post(f"{url}/employees", json={"employee_id": employee.id, "evaluator_id": evaluator.id})
    assert duplicate.status_code == status.HTTP_409_CONFLICT

    members = client.get(f"{url}/members").json()
    assert [e["full_name"] for e in members["evaluators"]] == ["Dana Lead"]
    assert [e["full_name"] for e in members["employees"]] == ["Sam Dev"]
    assert members["member_count"] == 2


def test_evaluator_role_required(client, employee):
    team = _create_team(client)
    response = client.post(f"{BASE}/{team['id']}/evaluators", json={"evaluator_id": employee.id})
    assert response.status_code == 422
    assert response.json()["errors"][0]["code"] == "EVALUATOR_ROLE_REQUIRED"


def test_remove_evaluator_releases_employees(client, evaluator, employee):
    team = _create_team(client)
    url = f"{BASE}/{team['id']}"
    _staff_team(client, team["id"], evaluator, employee)
    first_membership = client.get(f"{url}/assignments").json()[0]

    response = client.delete(f"{url}/users/{evaluator.id}")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["assignments_deactivated"] == 2

    members = client.get(f"{url}/members").json()
    assert members["evaluators"] == [] and members["employees"] == []
    assert client.get(f"{url}/assignments", params={"active_only": True}).json() == []
    assert len(client.get(f"{url}/assignments").json()) == 2

    assert client.delete(f"{url}/users/{evaluator.id}").status_code == status.HTTP_404_NOT_FOUND

    # Rejoining reuses the earlier membership row
    response = client.post(f"{url}/evaluators", json={"evaluator_id": evaluator.id})
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["id"] == first_membership["id"]
    assert response.json()["is_active"] is True


def test_cascade_deactivate_and_delete(client, evaluator, employee):
    team = _create_team(client)
    url = f"{BASE}/{team['id']}"
    _staff_team(client, team["id"], evaluator, employee)

    response = client.delete(f"{url}/permanent")
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["errors"][0]["code"] == "TEAM_IN_USE"

    response = client.patch(f"{url}/cascade-deactivate")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["is_active"] is False
    assert all(a["is_active"] is False for a in client.get(f"{url}/assignments").json())

    response = client.post(f"{url}/evaluators", json={"evaluator_id": evaluator.id})
    assert response.status_code == 422
    assert response.json()["errors"][0]["code"] == "TEAM_INACTIVE"

    empty = _create_team(client, name="Mobile")
    assert client.delete(f"{BASE}/{empty['id']}/permanent").status_code == status.HTTP_200_OK
    assert client.get(f"{BASE}/{empty['id']}").status_code == status.HTTP_404_NOT_FOUND
