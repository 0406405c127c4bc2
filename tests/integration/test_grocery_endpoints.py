"""Integration tests for the grocery list and combined view endpoints."""

from __future__ import annotations

import pytest
from fastapi import status

from tests.integration.utils import auth_headers


def _plan_rice_week(client, start="2024-01-03", servings=4):
    headers = auth_headers()
    rice = client.post(
        "/ingredients", json={"name": "Rice", "category": "grain"}, headers=headers
    ).json()
    recipe = client.post(
        "/recipes",
        json={
            "title": "Rice Bowl",
            "servings": 2,
            "ingredients": [{"ingredient_id": rice["id"], "quantity": 500, "unit": "gram"}],
        },
        headers=headers,
    ).json()
    period = client.post("/periods", json={"start_date": start}, headers=headers).json()
    meal = client.post(
        f"/periods/{period['id']}/meals",
        json={"day": 1, "meal_type": "dinner", "servings_planned": servings},
        headers=headers,
    ).json()
    response = client.patch(
        f"/meals/{meal['id']}",
        json={"action": "assign_recipe", "recipe_id": recipe["id"]},
        headers=headers,
    )
    assert response.status_code == status.HTTP_200_OK
    return period, meal


def test_generate_and_walk_the_pantry_check(client):
    headers = auth_headers()
    period, meal = _plan_rice_week(client)
    assert period["start_date"] == "2024-01-01"

    response = client.post(f"/periods/{period['id']}/grocery-list/generate", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["created"] == 1

    entries = client.get(f"/periods/{period['id']}/grocery-list").json()
    assert len(entries) == 1
    rice = entries[0]
    assert rice["quantity"] == pytest.approx(1000)
    assert rice["state"] == "pending"
    assert rice["source_meals"] == ["Mon Dinner"]

    response = client.post(
        f"/grocery-list/items/{rice['id']}/pantry",
        json={"action": "mark_in_pantry"},
        headers=headers,
    )
    assert response.json()["state"] == "in_pantry"

    client.patch(f"/meals/{meal['id']}", json={"action": "servings", "servings": 6}, headers=headers)
    response = client.post(f"/periods/{period['id']}/grocery-list/generate", headers=headers)
    assert response.json()["updated"] == 1

    refreshed = client.get(
        f"/periods/{period['id']}/grocery-list", params={"view": "in_pantry"}
    ).json()
    assert refreshed[0]["quantity"] == pytest.approx(1500)
    assert refreshed[0]["is_in_pantry"] is True


def test_manual_items_and_purchase_flow(client):
    headers = auth_headers()
    period, _ = _plan_rice_week(client)

    response = client.post(
        f"/periods/{period['id']}/grocery-list/items",
        json={"name": "Paper Towels", "quantity": 2},
        headers=headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    towels = response.json()
    assert towels["pantry_checked"] is True
    assert towels["is_manually_added"] is True

    response = client.post(
        f"/grocery-list/items/{towels['id']}/check", json={"by": "sam"}, headers=headers
    )
    assert response.json()["is_checked"] is True
    assert response.json()["checked_by"] == "sam"

    progress = client.get(f"/periods/{period['id']}/grocery-list/progress").json()
    assert progress["shopping_total"] == 1
    assert progress["shopping_ratio"] == pytest.approx(1.0)

    response = client.post(
        f"/periods/{period['id']}/grocery-list/items", json={"name": ""}, headers=headers
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_combined_views_generate_new_periods(client):
    headers = auth_headers()
    period, _ = _plan_rice_week(client)

    response = client.get("/views/pantry-check")
    assert response.status_code == status.HTTP_200_OK
    payload = response.json()
    assert payload["period_ids"] == [period["id"]]
    assert payload["total"] == 1
    entry_id = payload["rows"][0]["representative"]["id"]

    response = client.post("/views/mark-remaining-needed", headers=headers)
    assert response.json() == {"changed": 1}

    shopping = client.get("/views/shopping").json()
    assert [row["display_name"] for row in shopping["rows"]] == ["Rice"]

    response = client.post(f"/views/groups/{entry_id}/toggle-checked", headers=headers)
    assert response.json() == {"changed": 1}

    share = client.get("/views/shopping/share")
    assert share.status_code == status.HTTP_200_OK
    assert share.text == "Shopping List\n"


def test_unknown_ids_map_to_404(client):
    headers = auth_headers()

    assert client.post("/periods/99/grocery-list/generate", headers=headers).status_code == 404
    assert client.get("/periods/99/grocery-list").status_code == 404
    assert client.post("/grocery-list/items/99/check", headers=headers).status_code == 404
    assert client.post("/views/groups/99/toggle-pantry", headers=headers).status_code == 404


def test_cleanup_and_duplicate_period(client):
    headers = auth_headers()
    client.post("/periods", json={"start_date": "2024-01-01"}, headers=headers)

    response = client.post("/periods", json={"start_date": "2024-01-05"}, headers=headers)
    assert response.status_code == status.HTTP_409_CONFLICT

    response = client.post("/grocery-list/cleanup", headers=headers)
    assert response.json() == {"removed": 0}


def test_health_endpoint(client):
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "ok"


def test_copy_week_then_regenerate_and_clear(client):
    headers = auth_headers()
    source, _ = _plan_rice_week(client)
    target = client.post("/periods", json={"start_date": "2024-01-08"}, headers=headers).json()
    client.post(
        f"/periods/{target['id']}/meals",
        json={"day": 1, "meal_type": "dinner"},
        headers=headers,
    )

    response = client.post(f"/periods/{target['id']}/copy-from/{source['id']}", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    (meal,) = response.json()["meals"]
    assert meal["servings_planned"] == 4
    assert [recipe["title"] for recipe in meal["recipes"]] == ["Rice Bowl"]

    generated = client.post(f"/periods/{target['id']}/grocery-list/generate", headers=headers)
    assert generated.json()["created"] == 1

    response = client.post(f"/periods/{target['id']}/clear", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["meals"][0]["recipes"] == []

    missing = client.post(f"/periods/{target['id']}/copy-from/999", headers=headers)
    assert missing.status_code == status.HTTP_404_NOT_FOUND
