"""Integration tests for the consumables API endpoints via TestClient."""

import pytest
from consumables.api import alert_router, consumable_router, inventory_task_router, operation_router
from consumables.channel import get_todo_sink
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.integrations.fastapi import register_exception_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(consumable_router)
    app.include_router(operation_router)
    app.include_router(alert_router)
    app.include_router(inventory_task_router)
    register_exception_handlers(app)
    return TestClient(app)


def _register(client, **overrides):
    defaults = {
        "name": "A4 Paper",
        "category": "Office",
        "company_code": "HQ",
        "unit": "box",
        "keeper": "alice",
        "location": "Store room 1",
        "safety_stock": 5,
        "quantity": 20,
    }
    defaults.update(overrides)
    response = client.post("/consumables", json=defaults)
    assert response.status_code == 201
    return response.json()["consumable_id"]


def _record(client, consumable_id, operation_type, **fields):
    return client.post(
        "/operations",
        json={"consumable_id": consumable_id, "operation_type": operation_type, "actor": "bob", **fields},
    )


class TestConsumablesAPI:
    def test_register_and_fetch(self, client):
        consumable_id = _register(client, attributes={"brand": "Navigator"})

        response = client.get(f"/consumables/{consumable_id}")
        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "A4 Paper"
        assert body["status"] == "in-stock"
        assert body["available_quantity"] == 20
        assert body["attributes"] == {"brand": "Navigator"}

    def test_register_missing_field_returns_422(self, client):
        response = client.post("/consumables", json={"name": "Pens"})
        assert response.status_code == 422

    def test_register_reserved_over_quantity_returns_400(self, client):
        response = client.post(
            "/consumables",
            json={
                "name": "Pens",
                "category": "Office",
                "company_code": "HQ",
                "unit": "box",
                "keeper": "alice",
                "location": "Store",
                "quantity": 1,
                "reserved_quantity": 2,
            },
        )
        assert response.status_code == 400

    def test_unknown_consumable_returns_404(self, client):
        response = client.get("/consumables/does-not-exist")
        assert response.status_code == 404

    def test_update_and_list(self, client):
        consumable_id = _register(client)
        _register(client, name="Toner", category="Printing")

        response = client.put(f"/consumables/{consumable_id}", json={"location": "Store room 2", "actor": "bob"})
        assert response.status_code == 200

        response = client.get("/consumables", params={"status": ["in-stock", "low-stock"]})
        assert response.json()["total"] == 2

        response = client.get("/consumables", params={"category": "Office"})
        body = response.json()
        assert body["total"] == 1
        assert body["items"][0]["location"] == "Store room 2"
        assert body["page"] == 1

    def test_summary(self, client):
        _register(client)
        _register(client, name="Toner", quantity=0)

        response = client.get("/consumables/summary")
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert body["in_stock"] == 1
        assert body["out_of_stock"] == 1

    def test_delete_restore_purge(self, client):
        consumable_id = _register(client)

        response = client.delete(f"/consumables/{consumable_id}/permanent")
        assert response.status_code == 400

        response = client.delete(f"/consumables/{consumable_id}", params={"actor": "admin", "reason": "Obsolete"})
        assert response.status_code == 200
        assert client.get(f"/consumables/{consumable_id}").json()["is_deleted"] is True

        response = client.put(f"/consumables/{consumable_id}/restore", json={"actor": "admin"})
        assert response.status_code == 200
        assert client.get(f"/consumables/{consumable_id}").json()["is_deleted"] is False

        client.delete(f"/consumables/{consumable_id}")
        response = client.delete(f"/consumables/{consumable_id}/permanent", params={"actor": "admin"})
        assert response.status_code == 200
        assert client.get(f"/consumables/{consumable_id}").status_code == 404


class TestOperationsAPI:
    def test_outbound_flow_raises_alert(self, client):
        consumable_id = _register(client)

        response = _record(client, consumable_id, "outbound", quantity_delta=-16)
        assert response.status_code == 201
        operation_id = response.json()["operation_id"]

        consumable = client.get(f"/consumables/{consumable_id}").json()
        assert consumable["quantity"] == 4
        assert consumable["status"] == "low-stock"

        operation = client.get(f"/operations/{operation_id}").json()
        assert operation["status"] == "done"
        assert operation["consumable_name"] == "A4 Paper"

        alerts = client.get("/alerts", params={"status": "open"}).json()
        assert alerts["total"] == 1
        assert alerts["items"][0]["level"] == "low-stock"

    def test_wrong_sign_returns_400(self, client):
        consumable_id = _register(client)
        response = _record(client, consumable_id, "outbound", quantity_delta=5)
        assert response.status_code == 400

    def test_unknown_type_returns_400(self, client):
        consumable_id = _register(client)
        response = _record(client, consumable_id, "teleport", quantity_delta=5)
        assert response.status_code == 400

    def test_insufficient_stock_returns_400(self, client):
        consumable_id = _register(client)
        response = _record(client, consumable_id, "outbound", quantity_delta=-21)
        assert response.status_code == 400
        assert client.get(f"/consumables/{consumable_id}").json()["quantity"] == 20

    def test_unknown_consumable_returns_404(self, client):
        response = _record(client, "does-not-exist", "inbound", quantity_delta=1)
        assert response.status_code == 404

    def test_pending_then_settle(self, client):
        consumable_id = _register(client)
        operation_id = _record(client, consumable_id, "purchase", quantity_delta=10, status="pending").json()[
            "operation_id"
        ]
        assert client.get(f"/consumables/{consumable_id}").json()["quantity"] == 20

        response = client.put(f"/operations/{operation_id}/settle", json={"actor": "approver"})
        assert response.status_code == 200
        # Settling again is a no-op
        client.put(f"/operations/{operation_id}/settle", json={"actor": "approver"})

        assert client.get(f"/consumables/{consumable_id}").json()["quantity"] == 30
        operation = client.get(f"/operations/{operation_id}").json()
        assert operation["status"] == "done"
        assert operation["settled_by"] == "approver"

    def test_cancel(self, client):
        consumable_id = _register(client)
        operation_id = _record(client, consumable_id, "dispose", quantity_delta=-2, status="pending").json()[
            "operation_id"
        ]

        response = client.put(f"/operations/{operation_id}/cancel", json={"actor": "bob", "reason": "Mistake"})
        assert response.status_code == 200

        assert client.get(f"/operations/{operation_id}").json()["status"] == "cancelled"
        response = client.put(f"/operations/{operation_id}/settle", json={})
        assert response.status_code == 400

    def test_audit_with_summary(self, client):
        consumable_id = _register(client)
        _record(client, consumable_id, "inbound", quantity_delta=10)
        _record(client, consumable_id, "outbound", quantity_delta=-3)
        _record(client, consumable_id, "outbound", quantity_delta=-4, status="pending")

        response = client.get("/operations", params={"types": ["inbound", "outbound"], "page_size": 2})
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 3
        assert len(body["items"]) == 2
        assert body["summary"]["inbound_quantity"] == 10
        assert body["summary"]["outbound_quantity"] == 3
        assert body["summary"]["net_quantity"] == 7
        assert body["summary"]["pending_operations"] == 1


class TestAlertsAPI:
    def test_resolve_alert(self, client):
        consumable_id = _register(client, quantity=0)
        alert = client.get("/alerts", params={"consumable_id": consumable_id}).json()["items"][0]
        assert alert["external_handle"] == get_todo_sink().pushed[0]["handle"]

        response = client.put(f"/alerts/{alert['alert_id']}/resolve", json={"actor": "carol"})
        assert response.status_code == 200
        assert response.json()["status"] == "resolved"
        assert response.json()["resolved_by"] == "carol"

        response = client.put(f"/alerts/{alert['alert_id']}/resolve", json={"actor": "carol"})
        assert response.status_code == 400

    def test_unknown_alert_returns_404(self, client):
        response = client.put("/alerts/does-not-exist/resolve", json={})
        assert response.status_code == 404

    def test_resolve_all_alerts_of_consumable(self, client):
        consumable_id = _register(client, quantity=0)
        handle = get_todo_sink().pushed[0]["handle"]

        response = client.delete("/alerts", params={"consumable_id": consumable_id, "actor": "carol"})
        assert response.status_code == 200
        resolved = response.json()["resolved"]
        assert len(resolved) == 1
        assert resolved[0]["status"] == "resolved"
        assert get_todo_sink().withdrawn == [handle]

        assert client.get("/alerts").json()["total"] == 0

    def test_list_defaults_to_open_and_takes_several_statuses(self, client):
        restocked = _register(client, name="Staples", quantity=1)
        _register(client, name="Pens", quantity=0)
        _record(client, restocked, "inbound", quantity_delta=30)

        body = client.get("/alerts").json()
        assert body["total"] == 1
        assert body["items"][0]["status"] == "open"

        body = client.get("/alerts", params={"status": "resolved,open"}).json()
        assert body["total"] == 2
        assert [a["status"] for a in body["items"]] == ["open", "resolved"]


class TestInventoryTasksAPI:
    def test_count_to_completion(self, client):
        _register(client, name="Paper", quantity=20)
        _register(client, name="Pens", quantity=5)

        response = client.post("/inventory-tasks", json={"name": "Office count", "categories": ["Office"]})
        assert response.status_code == 201
        task_id = response.json()["task_id"]

        task = client.get(f"/inventory-tasks/{task_id}").json()
        assert task["total_entries"] == 2
        paper, pens = task["entries"]

        response = client.put(
            f"/inventory-tasks/{task_id}/entries",
            json={
                "entries": [
                    {"entry_id": paper["entry_id"], "actual_quantity": 18},
                    {"entry_id": pens["entry_id"], "actual_quantity": 5},
                ],
                "actor": "olivia",
            },
        )
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "completed"
        assert body["recorded_entries"] == 2
        assert body["variance_entries"] == 1
        assert body["entries"][0]["variance_quantity"] == -2

    def test_no_matching_consumables_returns_400(self, client):
        _register(client)
        response = client.post("/inventory-tasks", json={"name": "Empty", "categories": ["Cleaning"]})
        assert response.status_code == 400

    def test_status_change_and_listing(self, client):
        _register(client)
        task_id = client.post("/inventory-tasks", json={"name": "Later", "status": "draft"}).json()["task_id"]

        response = client.put(f"/inventory-tasks/{task_id}/status", json={"status": "in-progress"})
        assert response.status_code == 200
        assert response.json()["status"] == "in-progress"

        response = client.put(f"/inventory-tasks/{task_id}/status", json={"status": "bogus"})
        assert response.status_code == 400

        listing = client.get("/inventory-tasks").json()
        assert listing["total"] == 1
        assert listing["items"][0]["entries"] == []
