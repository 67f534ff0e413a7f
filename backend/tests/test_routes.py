import pytest

from conftest import read_balance, seed_balance


async def _apply(client, user_id=1, money="5"):
    return await client.post("/withdrawals", json={
        "user_id": user_id, "money": money,
        "bank_name": "ICBC", "bank_no": "6222000011112222", "payee_name": "Li Lei",
    })


@pytest.mark.asyncio
async def test_withdrawal_apply_settle_ledger(client, sessions):
    await seed_balance(sessions, 1, available=1000)

    r = await _apply(client)
    assert r.status_code == 201, r.text
    wid = r.json()["id"]
    assert r.json()["points"] == 500
    assert r.json()["status"] == "pending"

    r = await client.get("/admin/withdrawals", params={"status": "pending"})
    assert r.status_code == 200
    assert r.json()["total"] == 1

    r = await client.post("/admin/withdrawals/settle", json={"ids": [wid, 404]})
    assert r.status_code == 200
    body = r.json()
    assert body["succeeded"] == [wid]
    assert body["failures"] == [{"id": 404, "reason": "not_found", "detail": "withdrawal 404 not found", "retryable": False}]
    assert body["outcome"] == "partial"

    r = await client.post("/admin/withdrawals/settle", json={"ids": [wid]})
    assert r.json()["skipped"][0]["reason"] == "already_settled"
    assert r.json()["outcome"] == "ok"

    r = await client.get("/admin/ledger", params={"user_id": 1})
    assert r.status_code == 200
    snap = r.json()
    assert snap["balance"] == {"user_id": 1, "available": 500, "frozen": 0}
    assert snap["total_delta"] == -500
    assert [e["type"] for e in snap["entries"]] == ["withdrawal"]

    assert (await client.get("/admin/ledger", params={"type": "bogus"})).status_code == 400


@pytest.mark.asyncio
async def test_withdrawal_apply_errors(client, sessions):
    await seed_balance(sessions, 1, available=100)
    r = await _apply(client, money="5")
    assert r.status_code == 402
    assert r.json()["detail"]["reason"] == "insufficient_points"

    r = await _apply(client, money="0.5")
    assert r.status_code == 400

    r = await _apply(client, money="-1")
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_cancel_route(client, sessions):
    await seed_balance(sessions, 1, available=1000)
    wid = (await _apply(client, money="2")).json()["id"]

    r = await client.post("/admin/withdrawals/cancel", json={"ids": []})
    assert r.status_code == 422

    r = await client.post("/admin/withdrawals/cancel", json={"all": True})
    assert r.status_code == 200
    assert r.json()["released"] == [wid]
    assert await read_balance(sessions, 1) == (1000, 0)


@pytest.mark.asyncio
async def test_settle_requires_ids(client):
    r = await client.post("/admin/withdrawals/settle", json={"ids": []})
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_voucher_batch_and_export(client):
    r = await client.post("/admin/vouchers/batch", json={
        "count": 4, "face_value": 10, "point_value": 100, "code_rule": "1", "pwd_rule": "1",
    })
    assert r.status_code == 201, r.text
    created = r.json()["created"]
    assert len(created) == 4
    assert all(len(v["code"]) == 16 for v in created)

    r = await client.get("/admin/vouchers", params={"time": 1})
    assert r.json()["total"] == 4

    r = await client.get("/admin/vouchers", params={"export": 1})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert "attachment; filename=card_" in r.headers["content-disposition"]
    lines = r.text.splitlines()
    assert len(lines) == 5
    assert {ln.split(",")[0] for ln in lines[1:]} == {f'="{v["code"]}"' for v in created}

    r = await client.post("/admin/vouchers/delete", json={"ids": [created[0]["id"]]})
    assert r.json() == {"removed": 1}

    r = await client.post("/admin/vouchers/batch", json={
        "count": 4, "face_value": 10, "point_value": 100, "code_rule": "hex", "pwd_rule": "1",
    })
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_domains_import_export(client):
    text = "a.test$A$k$d$tpl$html$ads$map\nbad line\n"
    r = await client.post("/admin/domains/import", content=text, headers={"Content-Type": "text/plain"})
    assert r.status_code == 200
    assert r.json() == {"imported": 1, "skipped_lines": [2]}

    r = await client.get("/admin/domains/a.test")
    assert r.json()["site_name"] == "A"

    r = await client.put("/admin/domains/b.test", json={"site_url": "b.test", "site_name": "B"})
    assert r.status_code == 200

    r = await client.get("/admin/domains/export")
    assert r.status_code == 200
    assert r.text.splitlines() == ["a.test$A$k$d$tpl$html$ads$map", "b.test$B$$$$$$"]

    assert (await client.delete("/admin/domains/a.test")).status_code == 204
    assert (await client.get("/admin/domains/a.test")).status_code == 404
    assert (await client.put("/admin/domains/c.test", json={"site_url": "other"})).status_code == 400


@pytest.mark.asyncio
async def test_domains_corrupt_store_is_unavailable(client, domain_store):
    domain_store.path.parent.mkdir(parents=True, exist_ok=True)
    domain_store.path.write_text("[[[", encoding="utf-8")

    r = await client.get("/admin/domains")
    assert r.status_code == 503
    assert r.json()["detail"]["reason"] == "storage_error"
    assert (await client.get("/admin/domains/a.test")).status_code == 503
