from datetime import date
from decimal import Decimal

from sqlalchemy import select

from household_ledger.core.exceptions import ErrorKind
from household_ledger.models.expense import Expense
from household_ledger.services.reimbursement_services import (
    delete_reimbursement,
    list_reimbursements,
    settle_reimbursement,
    unsettle_reimbursement,
)
from household_ledger.services.settlement_services import create_reimbursement

from helpers import assert_err, fund_pool, make_expense, pool_balance, unwrap


async def open_reimbursement(db, member_id, amount, month="2025-03"):
    expense_id = await make_expense(db, member_id, amount)
    reimbursement = unwrap(await create_reimbursement(db, expense_id, member_id, Decimal(str(amount)), None, month))
    return expense_id, reimbursement


async def needs_reimbursement(db, expense_id):
    res = await db.execute(select(Expense.needs_reimbursement).where(Expense.id == expense_id))
    return res.scalar_one()


class TestSettle:

    async def test_settlement_pays_member_from_pool(self, db, members):
        alice, _ = members
        await fund_pool(db, 200)
        expense_id, reimbursement = await open_reimbursement(db, alice.id, 80)

        settled = unwrap(await settle_reimbursement(db, reimbursement.id))

        assert settled.settled is True
        assert settled.settled_at is not None
        assert await pool_balance(db) == Decimal("120.00")
        assert await needs_reimbursement(db, expense_id) is False

    async def test_settles_only_once(self, db, members):
        alice, _ = members
        await fund_pool(db, 200)
        _, reimbursement = await open_reimbursement(db, alice.id, 80)
        unwrap(await settle_reimbursement(db, reimbursement.id))

        assert_err(await settle_reimbursement(db, reimbursement.id), ErrorKind.ALREADY_SETTLED)

        assert await pool_balance(db) == Decimal("120.00")

    async def test_insufficient_pool_leaves_reimbursement_pending(self, db, members):
        alice, _ = members
        await fund_pool(db, 20)
        expense_id, reimbursement = await open_reimbursement(db, alice.id, 80)

        assert_err(await settle_reimbursement(db, reimbursement.id), ErrorKind.INSUFFICIENT_BALANCE)

        assert await pool_balance(db) == Decimal("20.00")
        assert await needs_reimbursement(db, expense_id) is True
        pending = unwrap(await list_reimbursements(db, settled=False))
        assert pending.count == 1

    async def test_unknown_reimbursement(self, db):
        assert_err(await settle_reimbursement(db, 77), ErrorKind.NOT_FOUND)


class TestUnsettle:

    async def test_unsettle_returns_money_to_pool(self, db, members):
        alice, _ = members
        await fund_pool(db, 200)
        expense_id, reimbursement = await open_reimbursement(db, alice.id, 80)
        unwrap(await settle_reimbursement(db, reimbursement.id))

        reopened = unwrap(await unsettle_reimbursement(db, reimbursement.id))

        assert reopened.settled is False
        assert reopened.settled_at is None
        assert await pool_balance(db) == Decimal("200.00")
        assert await needs_reimbursement(db, expense_id) is True

    async def test_unsettle_pending_is_rejected(self, db, members):
        alice, _ = members
        _, reimbursement = await open_reimbursement(db, alice.id, 80)

        assert_err(await unsettle_reimbursement(db, reimbursement.id), ErrorKind.VALIDATION)


class TestDelete:

    async def test_delete_pending_reimbursement(self, db, members):
        alice, _ = members
        expense_id, reimbursement = await open_reimbursement(db, alice.id, 80)

        out = unwrap(await delete_reimbursement(db, reimbursement.id))

        assert out == {"status": "deleted", "id": reimbursement.id}
        assert await needs_reimbursement(db, expense_id) is False
        assert unwrap(await list_reimbursements(db)).count == 0

    async def test_settled_reimbursement_cannot_be_deleted(self, db, members):
        alice, _ = members
        await fund_pool(db, 100)
        _, reimbursement = await open_reimbursement(db, alice.id, 80)
        unwrap(await settle_reimbursement(db, reimbursement.id))

        assert_err(await delete_reimbursement(db, reimbursement.id), ErrorKind.ALREADY_SETTLED)
        assert unwrap(await list_reimbursements(db)).count == 1


class TestList:

    async def test_filters_and_total_owed(self, db, members):
        alice, bob = members
        await fund_pool(db, 100)
        _, first = await open_reimbursement(db, alice.id, 30, "2025-03")
        await open_reimbursement(db, bob.id, 12.5, "2025-03")
        await open_reimbursement(db, alice.id, 7, "2025-04")
        unwrap(await settle_reimbursement(db, first.id))

        march = unwrap(await list_reimbursements(db, month="2025-03"))
        assert march.count == 2
        assert march.total_owed == Decimal("12.50")

        alices = unwrap(await list_reimbursements(db, member_id=alice.id))
        assert {r.month for r in alices.reimbursements} == {"2025-03", "2025-04"}

        pending = unwrap(await list_reimbursements(db, settled=False))
        assert pending.total_owed == Decimal("19.50")
        assert all(not r.settled for r in pending.reimbursements)

    async def test_invalid_month_filter(self, db):
        assert_err(await list_reimbursements(db, month="03-2025"), ErrorKind.VALIDATION)

    async def test_expense_date_month_is_independent(self, db, members):
        alice, _ = members
        expense_id = await make_expense(db, alice.id, 10, when=date(2025, 1, 31))

        reimbursement = unwrap(await create_reimbursement(db, expense_id, alice.id, 10, "Taxi", "2025-02"))

        assert reimbursement.month == "2025-02"
