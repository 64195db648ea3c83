import pytest


@pytest.mark.asyncio
async def test_adjust_and_list_ledger(client, admin_token, make_product, stock_of):
    product_id = await make_product(stock=3)

    adjust = await client.post(
        "/api/v1/inventory/adjustments",
        json={"product_id": product_id, "quantity_change": 7, "reason": "delivery"},
        headers=admin_token,
    )
    assert adjust.status_code == 201
    assert adjust.json()["new_quantity"] == 10
    assert await stock_of(product_id) == 10

    logs = await client.get(f"/api/v1/inventory/logs/{product_id}", headers=admin_token)
    assert logs.status_code == 200
    assert [log["quantity_change"] for log in logs.json()] == [7]

    log_id = logs.json()[0]["id"]
    one = await client.get(f"/api/v1/inventory/log/{log_id}", headers=admin_token)
    assert one.status_code == 200
    assert one.json()["reason"] == "Adjustment by admin@test.com: delivery"

    missing = await client.get("/api/v1/inventory/log/999", headers=admin_token)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_adjustment_errors(client, admin_token, make_product):
    product_id = await make_product(stock=1)

    short = await client.post(
        "/api/v1/inventory/adjustments",
        json={"product_id": product_id, "quantity_change": -2, "reason": "breakage"},
        headers=admin_token,
    )
    assert short.status_code == 409

    zero = await client.post(
        "/api/v1/inventory/adjustments",
        json={"product_id": product_id, "quantity_change": 0, "reason": "noop"},
        headers=admin_token,
    )
    assert zero.status_code == 422

    ghost = await client.post(
        "/api/v1/inventory/adjustments",
        json={"product_id": 4242, "quantity_change": 1, "reason": "ghost"},
        headers=admin_token,
    )
    assert ghost.status_code == 404


@pytest.mark.asyncio
async def test_ledger_requires_staff(client, customer_token, make_product):
    product_id = await make_product(stock=1)

    resp = await client.get(f"/api/v1/inventory/logs/{product_id}", headers=customer_token)

    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["dependencies"]["database"] == "ok"
