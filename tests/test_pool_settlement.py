from datetime import date
from decimal import Decimal

from sqlalchemy import select

from household_ledger.core.exceptions import ErrorKind
from household_ledger.models.expense import Expense
from household_ledger.models.reimbursement import Reimbursement
from household_ledger.services.allowance_services import get_personal_allowance
from household_ledger.services.pool_services import get_pool_balance
from household_ledger.services.settlement_services import (
    create_reimbursement,
    deduct_from_pool,
    record_shared_pool_expense,
)

from helpers import assert_err, fund_pool, make_expense, pool_balance, unwrap


async def load_expense(db, expense_id):
    res = await db.execute(select(Expense).where(Expense.id == expense_id))
    expense = res.scalar_one()
    await db.refresh(expense)
    return expense


class TestPoolBalance:

    async def test_pool_starts_empty(self, db):
        assert unwrap(await get_pool_balance(db)).balance == Decimal("0.00")


class TestDeductFromPool:

    async def test_deduction_marks_expense_paid_from_pool(self, db, members):
        alice, _ = members
        await fund_pool(db, 500)
        expense_id = await make_expense(db, alice.id, 120)

        out = unwrap(await deduct_from_pool(db, expense_id, Decimal("120")))

        assert out.pool_balance == Decimal("380.00")
        assert await pool_balance(db) == Decimal("380.00")
        expense = await load_expense(db, expense_id)
        assert expense.paid_from_pool is True
        assert expense.needs_reimbursement is False

    async def test_insufficient_balance_changes_nothing(self, db, members):
        """Pool holds 100, deducting 150 fails and nothing moves."""
        alice, _ = members
        await fund_pool(db, 100)
        expense_id = await make_expense(db, alice.id, 150)

        result = assert_err(await deduct_from_pool(db, expense_id, Decimal("150")), ErrorKind.INSUFFICIENT_BALANCE)

        assert "€100.00" in result.message
        assert await pool_balance(db) == Decimal("100.00")
        expense = await load_expense(db, expense_id)
        assert expense.paid_from_pool is False
        assert expense.needs_reimbursement is False

    async def test_exact_balance_can_be_spent(self, db, members):
        alice, _ = members
        await fund_pool(db, 75)
        expense_id = await make_expense(db, alice.id, 75)

        unwrap(await deduct_from_pool(db, expense_id, 75))

        assert await pool_balance(db) == Decimal("0.00")

    async def test_pool_never_goes_negative(self, db, members):
        alice, _ = members
        await fund_pool(db, 50)
        first = await make_expense(db, alice.id, 30)
        second = await make_expense(db, alice.id, 30)

        unwrap(await deduct_from_pool(db, first, 30))
        assert_err(await deduct_from_pool(db, second, 30), ErrorKind.INSUFFICIENT_BALANCE)

        assert await pool_balance(db) == Decimal("20.00")

    async def test_expense_cannot_be_paid_twice(self, db, members):
        alice, _ = members
        await fund_pool(db, 500)
        expense_id = await make_expense(db, alice.id, 40)
        unwrap(await deduct_from_pool(db, expense_id, 40))

        assert_err(await deduct_from_pool(db, expense_id, 40), ErrorKind.VALIDATION)
        assert await pool_balance(db) == Decimal("460.00")

    async def test_unknown_expense(self, db):
        assert_err(await deduct_from_pool(db, 12345, 10), ErrorKind.NOT_FOUND)

    async def test_non_positive_amount(self, db, members):
        alice, _ = members
        expense_id = await make_expense(db, alice.id, 10)

        assert_err(await deduct_from_pool(db, expense_id, 0), ErrorKind.VALIDATION)


class TestCreateReimbursement:

    async def test_reimbursement_flags_the_expense(self, db, members):
        alice, _ = members
        expense_id = await make_expense(db, alice.id, 42)

        reimbursement = unwrap(await create_reimbursement(db, expense_id, alice.id, Decimal("42"), None, "2025-03"))

        assert reimbursement.settled is False
        assert reimbursement.amount == Decimal("42.00")
        assert reimbursement.description == "Reimbursement for Groceries"
        expense = await load_expense(db, expense_id)
        assert expense.needs_reimbursement is True
        assert expense.paid_from_pool is False

    async def test_one_reimbursement_per_expense(self, db, members):
        alice, bob = members
        expense_id = await make_expense(db, alice.id, 42)
        unwrap(await create_reimbursement(db, expense_id, alice.id, 42, "Shop", "2025-03"))

        assert_err(await create_reimbursement(db, expense_id, bob.id, 42, "Shop", "2025-03"), ErrorKind.VALIDATION)

        count = (await db.execute(select(Reimbursement))).scalars().all()
        assert len(count) == 1

    async def test_pool_paid_expense_cannot_be_reimbursed(self, db, members):
        alice, _ = members
        await fund_pool(db, 100)
        expense_id = await make_expense(db, alice.id, 42)
        unwrap(await deduct_from_pool(db, expense_id, 42))

        assert_err(await create_reimbursement(db, expense_id, alice.id, 42, None, "2025-03"), ErrorKind.VALIDATION)

    async def test_invalid_month(self, db, members):
        alice, _ = members
        expense_id = await make_expense(db, alice.id, 42)

        assert_err(await create_reimbursement(db, expense_id, alice.id, 42, None, "2025-3"), ErrorKind.VALIDATION)


class TestRecordSharedPoolExpense:

    async def test_shared_expense_paid_from_pool(self, db, members):
        alice, _ = members
        await fund_pool(db, 300)

        out = unwrap(await record_shared_pool_expense(
            db, alice.id, Decimal("90"), "Electricity", date(2025, 3, 3), paid_from_pool=True,
        ))

        assert out.disposition == "pool"
        assert out.pool_balance == Decimal("210.00")
        expense = await load_expense(db, out.expense_id)
        assert expense.paid_from_pool is True
        assert expense.household_id == members[0].household_id

    async def test_shared_expense_fronted_by_member(self, db, members):
        _, bob = members

        out = unwrap(await record_shared_pool_expense(db, bob.id, Decimal("64.20"), "Groceries", date(2025, 3, 9)))

        assert out.disposition == "reimbursement"
        assert out.reimbursement.member_id == bob.id
        assert out.reimbursement.month == "2025-03"
        assert out.reimbursement.amount == Decimal("64.20")
        assert await pool_balance(db) == Decimal("0.00")

    async def test_personal_expense_uses_allowance(self, db, members):
        alice, _ = members

        result = await record_shared_pool_expense(db, alice.id, Decimal("15"), "Book", date(2025, 3, 9), type="personal")

        out = unwrap(result)
        assert out.disposition == "allowance"
        assert out.allowance.spent == Decimal("15.00")
        assert result.warning == "Personal allowance exceeded by €15.00"
        row = unwrap(await get_personal_allowance(db, alice.id, "2025-03"))
        assert row.remaining == Decimal("-15.00")

    async def test_failed_pool_payment_keeps_no_expense(self, db, members):
        alice, _ = members
        await fund_pool(db, 10)

        result = await record_shared_pool_expense(
            db, alice.id, Decimal("90"), "Electricity", date(2025, 3, 3), paid_from_pool=True,
        )

        assert_err(result, ErrorKind.INSUFFICIENT_BALANCE)
        assert (await db.execute(select(Expense))).scalars().all() == []
        assert await pool_balance(db) == Decimal("10.00")

    async def test_invalid_type(self, db, members):
        alice, _ = members

        result = await record_shared_pool_expense(db, alice.id, 10, "Thing", date(2025, 3, 3), type="business")

        assert_err(result, ErrorKind.VALIDATION)

    async def test_description_required(self, db, members):
        alice, _ = members

        assert_err(await record_shared_pool_expense(db, alice.id, 10, "", date(2025, 3, 3)), ErrorKind.VALIDATION)
