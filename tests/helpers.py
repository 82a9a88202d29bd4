from datetime import date
from decimal import Decimal

from household_ledger.core.result import Err, Ok
from household_ledger.models.expense import Expense
from household_ledger.services.pool_services import credit_pool, get_or_create_pool_balance


def unwrap(result):
    """Return the payload of an ``Ok`` result, failing the test on ``Err``."""
    assert isinstance(result, Ok), f"expected Ok, got {result!r}"
    return result.value


def assert_err(result, kind):
    assert isinstance(result, Err), f"expected Err({kind}), got {result!r}"
    assert result.kind == kind
    assert result.success is False
    return result


async def make_expense(db, paid_by_id, amount, household_id=None, description="Groceries", when=None):
    expense = Expense(
        household_id=household_id,
        paid_by_id=paid_by_id,
        amount=Decimal(str(amount)),
        description=description,
        date=when or date(2025, 3, 10),
        type="shared",
        paid_from_pool=False,
        needs_reimbursement=False,
    )
    db.add(expense)
    await db.commit()
    return expense.id


async def fund_pool(db, amount):
    await credit_pool(db, Decimal(str(amount)))
    await db.commit()


async def pool_balance(db) -> Decimal:
    pool = await get_or_create_pool_balance(db)
    await db.refresh(pool)
    balance = pool.balance
    await db.commit()
    return balance
