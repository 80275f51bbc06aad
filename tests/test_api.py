# tests/test_api.py

from urllib.parse import quote

import pytest

from app.services import catalogs, repository

JUAN = quote("Juan Pérez")


def test_ping_and_health(client):
    assert client.get("/api/ping").get_json() == {"status": "ok"}
    r = client.get("/health/")
    assert r.status_code == 200
    assert r.get_json()["status"] == "healthy"


def test_rule_writes_need_admin(client):
    r = client.post("/api/rules", json={"sector": "Costura", "model": "Modelo-X",
                                        "operation": "Remalle", "points_per_unit": 8})
    assert r.status_code == 403


def test_rules_crud(admin_client):
    r = admin_client.post("/api/rules", json={"sector": "Costura", "model": "Modelo-X",
                                              "operation": "Remalle", "points_per_unit": 8})
    assert r.status_code == 201
    rule_id = r.get_json()["id"]

    r = admin_client.post("/api/rules", json={"sector": "Costura", "model": "Modelo-X",
                                              "operation": "Remalle", "points_per_unit": 9})
    assert r.status_code == 400

    r = admin_client.put(f"/api/rules/{rule_id}", json={"points_per_unit": 9.5})
    assert r.status_code == 200
    assert r.get_json()["points_per_unit"] == pytest.approx(9.5)

    quote = admin_client.get("/api/points/quote?sector=Costura&model=Modelo-X&operation=Remalle&quantity=4")
    assert quote.get_json() == {"matched": True, "points_per_unit": 9.5, "quantity": 4, "total_points": 38.0}

    assert admin_client.delete(f"/api/rules/{rule_id}").status_code == 204
    assert admin_client.delete(f"/api/rules/{rule_id}").status_code == 404
    assert admin_client.get("/api/rules").get_json() == []


def test_wrong_admin_password(client):
    r = client.post("/api/login", json={"role": "admin", "secret": "nope"})
    assert r.status_code == 401


def test_operator_logs_own_production(client, db):
    catalogs.add_catalog_item("operators", "Juan Pérez")
    catalogs.set_operator_pin("Juan Pérez", "4321")
    repository.add_rule("Costura", "Modelo-X", "Costura Recta", 10)

    assert client.post("/api/logs", json={}).status_code == 401
    assert client.post("/api/login", json={"name": "Juan Pérez", "secret": "0000"}).status_code == 401
    assert client.post("/api/login", json={"name": "Juan Pérez", "secret": "4321"}).status_code == 200

    r = client.post("/api/logs", json={
        "operator_name": "Otro", "sector": "Costura", "model": "Modelo-X",
        "operation": "Costura Recta", "quantity": 50, "timestamp": "2024-03-04T10:00:00",
    })
    assert r.status_code == 201
    body = r.get_json()
    assert body["operator_name"] == "Juan Pérez"
    assert body["total_points"] == 500.0
    assert body["unrated"] is False

    r = client.post("/api/logs", json={"sector": "Costura", "model": "Modelo-X",
                                       "operation": "Costura Recta", "quantity": 0})
    assert r.status_code == 400

    # solo administración edita o borra
    assert client.delete(f"/api/logs/{body['id']}").status_code == 403
    assert client.get("/api/operators/Ana/productivity").status_code == 403


def test_productivity_endpoints(admin_client, db):
    repository.set_productivity_target(500)
    repository.add_rule("Costura", "Modelo-X", "Costura Recta", 10)

    for ts, qty, op in [
        ("2024-03-04T09:00:00", 50, "Costura Recta"),
        ("2024-03-05T09:00:00", 25, "Costura Recta"),
        ("2024-03-05T14:00:00", 10, "Remalle"),  # sin valor -> día mixto
    ]:
        r = admin_client.post("/api/logs", json={
            "operator_name": "Juan Pérez", "sector": "Costura", "model": "Modelo-X",
            "operation": op, "quantity": qty, "timestamp": ts,
        })
        assert r.status_code == 201

    report = admin_client.get(f"/api/operators/{JUAN}/productivity?month=2024-03").get_json()
    assert report["days_worked"] == 2
    assert report["mixed_days"] == 1
    assert report["avg_general"] == pytest.approx(75.0)
    assert report["avg_productive"] == pytest.approx(100.0)

    history = admin_client.get(f"/api/operators/{JUAN}/history?days=1").get_json()
    assert history["days_worked"] == 1
    assert history["days"][0]["day"] == "2024-03-05"

    logs = admin_client.get("/api/logs?date=2024-03-05").get_json()
    assert len(logs) == 2

    dash = admin_client.get("/api/dashboard?start=2024-03-01&end=2024-03-31").get_json()
    assert dash["total_points"] == pytest.approx(750.0)
    assert dash["unrated_entries"] == 1
    assert dash["active_operators"] == 1
    assert dash["efficiency"] == pytest.approx(75.0)


def test_target_endpoints(admin_client):
    assert admin_client.put("/api/target", json={"value": 30000}).get_json() == {"value": 30000.0}
    assert admin_client.get("/api/target").get_json() == {"value": 30000.0}
    assert admin_client.put("/api/target", json={"value": -1}).status_code == 400


def test_recalculate_endpoint(admin_client, db):
    rule = repository.add_rule("Costura", "Modelo-X", "Remalle", 8)
    repository.register_log("Juan Pérez", "Costura", "Modelo-X", "Remalle", 10)
    repository.update_rule(rule.id, points_per_unit=9)

    body = admin_client.post("/api/maintenance/recalculate").get_json()
    assert body["status"] == "DONE"
    assert body["modified"] == 1

    assert admin_client.post("/api/maintenance/recalculate").get_json()["modified"] == 0


def test_catalog_and_news_endpoints(admin_client):
    assert admin_client.post("/api/catalogs/models", json={"name": "Modelo-Z"}).status_code == 201
    assert admin_client.get("/api/catalogs/models").get_json() == ["Modelo-Z"]
    assert admin_client.post("/api/catalogs/models", json={"name": "Modelo-Z"}).status_code == 400
    assert admin_client.delete("/api/catalogs/models/Modelo-Z").status_code == 204

    r = admin_client.post("/api/news", json={"title": "Turno extra", "expires_at": "2099-01-01T00:00"})
    assert r.status_code == 201
    assert [n["title"] for n in admin_client.get("/api/news").get_json()] == ["Turno extra"]


def test_history_days_must_be_positive(admin_client, db):
    for day in range(1, 6):
        repository.register_log("Juan Pérez", "Costura", "Modelo-X", "Remalle", 1,
                                timestamp=f"2024-01-{day:02d}T09:00:00")

    assert admin_client.get(f"/api/operators/{JUAN}/history?days=-3").status_code == 400
    assert admin_client.get(f"/api/operators/{JUAN}/history?days=0").status_code == 400
    assert admin_client.get(f"/api/operators/{JUAN}/history?days=tres").status_code == 400

    body = admin_client.get(f"/api/operators/{JUAN}/history?days=2").get_json()
    assert [d["day"] for d in body["days"]] == ["2024-01-05", "2024-01-04"]

    body = admin_client.get(f"/api/operators/{JUAN}/history").get_json()
    assert body["window"] == 15
    assert body["days_worked"] == 5


def test_non_object_json_body_is_ignored(admin_client):
    r = admin_client.post("/api/login", json=[1])
    assert r.status_code == 401

    r = admin_client.put("/api/target", json=[30000])
    assert r.status_code == 400

    r = admin_client.post("/api/catalogs/models", json="Modelo-Z")
    assert r.status_code == 400
