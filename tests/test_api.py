from decimal import Decimal

import pytest


def money(value):
    return Decimal(str(value))


@pytest.fixture
async def home(client):
    res = await client.post("/api/v1/households/", json={"name": "Flat 3B"})
    household_id = res.json()["data"]["id"]

    ids = []
    for name in ("Ana", "Ben"):
        res = await client.post(f"/api/v1/households/{household_id}/members", json={"name": name})
        ids.append(res.json()["data"]["id"])
    return household_id, ids


class TestApi:

    async def test_root(self, client):
        res = await client.get("/")

        assert res.status_code == 200

    async def test_income_then_summary(self, client, home):
        _, (ana, ben) = home

        res = await client.post("/api/v1/income/", json={"member_id": ana, "amount": "1000", "date": "2025-03-05"})
        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        assert money(body["data"]["remaining_for_pool"]) == Decimal("600")

        res = await client.get("/api/v1/pool/summary", params={"month": "2025-03"})
        summary = res.json()["data"]
        assert money(summary["total_income"]) == Decimal("1000")
        assert money(summary["pool_balance"]) == Decimal("600")
        assert len(summary["member_allowances"]) == 2

    async def test_delete_income(self, client, home):
        _, (ana, _) = home
        res = await client.post("/api/v1/income/", json={"member_id": ana, "amount": "1000", "date": "2025-03-05"})
        income_id = res.json()["data"]["income_id"]

        res = await client.delete(f"/api/v1/income/{income_id}")

        assert res.status_code == 200
        assert money(res.json()["data"]["pool_balance"]) == Decimal("0")
        res = await client.get("/api/v1/income/")
        assert res.json()["data"] == []

        res = await client.delete(f"/api/v1/income/{income_id}")
        assert res.status_code == 404

    async def test_overspend_warning_in_body(self, client, home):
        _, (ana, _) = home

        res = await client.post("/api/v1/allowances/spend", json={"member_id": ana, "amount": "12", "month": "2025-03"})

        assert res.status_code == 200
        assert res.json()["warning"] == "Personal allowance exceeded by €12.00"

    async def test_insufficient_pool_is_400(self, client, home):
        _, (ana, _) = home

        res = await client.post("/api/v1/pool/expenses", json={
            "paid_by_id": ana,
            "amount": "50",
            "description": "Internet",
            "date": "2025-03-05",
            "paid_from_pool": True,
        })

        assert res.status_code == 400
        assert res.json()["detail"]["kind"] == "insufficient_balance"

    async def test_double_settlement_is_409(self, client, home):
        _, (ana, ben) = home
        await client.post("/api/v1/income/", json={"member_id": ana, "amount": "500", "date": "2025-03-05"})
        res = await client.post("/api/v1/pool/expenses", json={
            "paid_by_id": ben,
            "amount": "20",
            "description": "Soap",
            "date": "2025-03-06",
        })
        reimbursement_id = res.json()["data"]["reimbursement"]["id"]

        first = await client.post(f"/api/v1/reimbursements/{reimbursement_id}/settle")
        second = await client.post(f"/api/v1/reimbursements/{reimbursement_id}/settle")

        assert first.status_code == 200
        assert second.status_code == 409
        res = await client.get("/api/v1/pool/balance")
        assert money(res.json()["data"]["balance"]) == Decimal("280")

    async def test_custom_split_is_501(self, client, home):
        household_id, (ana, _) = home

        res = await client.post("/api/v1/splits/expenses", json={
            "household_id": household_id,
            "paid_by_id": ana,
            "amount": "30",
            "date": "2025-03-05",
            "split_type": "custom",
        })

        assert res.status_code == 501
        assert res.json()["detail"]["kind"] == "not_implemented"

    async def test_unknown_member_is_404(self, client, home):
        res = await client.get("/api/v1/splits/members/999/balance")

        assert res.status_code == 404

    async def test_split_and_settle(self, client, home):
        household_id, (ana, ben) = home
        for member_id in (ana, ben):
            await client.put("/api/v1/splits/ratios", json={"member_id": member_id, "ratio": "1"})

        res = await client.post("/api/v1/splits/expenses", json={
            "household_id": household_id,
            "paid_by_id": ana,
            "amount": "30",
            "date": "2025-03-05",
        })
        assert res.status_code == 200

        res = await client.get(f"/api/v1/splits/households/{household_id}/balances")
        nets = {b["member_id"]: money(b["net_balance"]) for b in res.json()["data"]}
        assert nets == {ana: Decimal("15"), ben: Decimal("-15")}

        res = await client.post("/api/v1/splits/settle", json={"member_a_id": ana, "member_b_id": ben})
        assert money(res.json()["data"]["amount_settled"]) == Decimal("15")
