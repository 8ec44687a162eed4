from cafe_sync.clock import parse_timestamp
from cafe_sync.config import settings


def order_payload(**overrides):
    payload = {
        "id": "o1",
        "table_number": "A1",
        "items": [
            {"id": "l1", "menu_item": {"id": "m1", "name": "Nasi Goreng", "price": 15000,
                                       "category": "Menu Utama"}, "quantity": 2},
        ],
        "notes": "",
        "status": "NEW_ORDER",
        "total_price": 1,
        "created_at": "2023-11-14T22:13:20+00:00",
        "waiter_id": "w1",
    }
    payload.update(overrides)
    return payload


def test_create_recomputes_total_and_publishes(client, publisher):
    response = client.post("/orders/", json=order_payload())
    assert response.status_code == 201
    body = response.json()
    assert body["id"] == "o1"
    assert body["total_price"] == 30000
    assert body["status"] == "NEW_ORDER"
    assert [(e.table, e.type, e.row_id) for e in publisher.events] == [("orders", "INSERT", "o1")]


def test_create_assigns_id_when_missing(client):
    payload = order_payload()
    del payload["id"]
    response = client.post("/orders/", json=payload)
    assert response.status_code == 201
    assert response.json()["id"]


def test_duplicate_id_conflicts(client):
    client.post("/orders/", json=order_payload())
    assert client.post("/orders/", json=order_payload()).status_code == 409


def test_list_and_get(client):
    client.post("/orders/", json=order_payload(id="old", created_at="2023-11-14T22:00:00+00:00"))
    client.post("/orders/", json=order_payload(id="new"))
    listing = client.get("/orders/").json()
    assert [o["id"] for o in listing] == ["new", "old"]
    assert client.get("/orders/old").json()["table_number"] == "A1"
    assert client.get("/orders/missing").status_code == 404
    assert client.get("/orders/", params={"status": "COOKING"}).json() == []


def test_patch_status_and_timestamp(client, publisher):
    client.post("/orders/", json=order_payload())
    response = client.patch("/orders/o1", json={"status": "COOKING", "cooking_at": "2023-11-14T22:14:20Z"})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "COOKING"
    assert body["cooking_at"].startswith("2023-11-14T22:14:20")
    update = publisher.events[-1]
    assert update.type == "UPDATE"
    assert update.old["status"] == "NEW_ORDER"
    assert update.new["status"] == "COOKING"


def test_patch_items_recomputes_total(client):
    client.post("/orders/", json=order_payload())
    items = order_payload()["items"] + [
        {"id": "l2", "menu_item": {"id": "m2", "name": "Es Teh", "price": 5000}, "quantity": 1},
    ]
    response = client.patch("/orders/o1", json={"items": items})
    assert response.json()["total_price"] == 35000


def test_patch_rejects_unknown_fields(client):
    client.post("/orders/", json=order_payload())
    assert client.patch("/orders/o1", json={"colour": "red"}).status_code == 422
    assert client.patch("/orders/missing", json={"notes": "x"}).status_code == 404


def test_delete_only_new_orders(client, publisher):
    client.post("/orders/", json=order_payload(id="a"))
    client.post("/orders/", json=order_payload(id="b"))
    client.patch("/orders/b", json={"status": "COOKING"})

    assert client.delete("/orders/a").status_code == 204
    assert publisher.events[-1].type == "DELETE"
    assert publisher.events[-1].row_id == "a"
    assert client.delete("/orders/b").status_code == 409
    assert client.delete("/orders/a").status_code == 404


def test_api_key_is_enforced(client, monkeypatch):
    monkeypatch.setattr(settings, "API_KEY", "secret")
    assert client.get("/orders/").status_code == 401
    assert client.get("/orders/", headers={"apikey": "secret"}).status_code == 200
    assert client.get("/orders/", headers={"Authorization": "Bearer secret"}).status_code == 200
    assert client.get("/health").status_code == 200


def test_status_cannot_skip_stages(client, publisher):
    client.post("/orders/", json=order_payload())
    response = client.patch("/orders/o1", json={"status": "PAID", "payment_method": "CASH"})
    assert response.status_code == 409
    assert client.get("/orders/o1").json()["status"] == "NEW_ORDER"
    assert [e.type for e in publisher.events] == ["INSERT"]


def test_status_cannot_go_back(client):
    client.post("/orders/", json=order_payload())
    client.patch("/orders/o1", json={"status": "COOKING"})
    assert client.patch("/orders/o1", json={"status": "NEW_ORDER"}).status_code == 409


def test_missing_stamp_is_filled_in(client):
    client.post("/orders/", json=order_payload())
    body = client.patch("/orders/o1", json={"status": "COOKING"}).json()
    assert body["cooking_at"] is not None
    assert parse_timestamp(body["cooking_at"]) >= parse_timestamp(body["created_at"])


def test_later_stage_stamp_is_rejected(client):
    client.post("/orders/", json=order_payload())
    assert client.patch("/orders/o1", json={"paid_at": "2023-11-14T23:00:00Z"}).status_code == 409
    assert client.patch("/orders/o1", json={"status": "COOKING",
                                             "cooking_at": "2023-11-14T20:00:00Z"}).status_code == 409


def test_paying_requires_a_method(client):
    client.post("/orders/", json=order_payload())
    client.patch("/orders/o1", json={"status": "COOKING"})
    client.patch("/orders/o1", json={"status": "SERVED"})
    assert client.patch("/orders/o1", json={"status": "PAID"}).status_code == 409
    paid = client.patch("/orders/o1", json={"status": "PAID", "payment_method": "QRIS"}).json()
    assert paid["status"] == "PAID"
    stamps = [parse_timestamp(paid[f]) for f in ("cooking_at", "served_at", "paid_at")]
    assert stamps == sorted(stamps)


def test_items_are_frozen_once_served(client):
    client.post("/orders/", json=order_payload())
    assert client.patch("/orders/o1", json={"items": []}).status_code == 409
    client.patch("/orders/o1", json={"status": "COOKING"})
    client.patch("/orders/o1", json={"status": "SERVED"})
    response = client.patch("/orders/o1", json={"items": order_payload()["items"]})
    assert response.status_code == 409
    assert client.patch("/orders/o1", json={"notes": "table moved"}).status_code == 200
    assert client.get("/orders/o1").json()["total_price"] == 30000


def test_create_rejects_inconsistent_stages(client):
    assert client.post("/orders/", json=order_payload(status="PAID")).status_code == 409
    assert client.post("/orders/", json=order_payload(items=[])).status_code == 409
