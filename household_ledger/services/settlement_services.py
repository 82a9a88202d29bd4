from datetime import date

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from household_ledger.core.exceptions import NotFoundError, ValidationError
from household_ledger.core.periods import month_from_date, parse_month
from household_ledger.core.result import Ok, unit_of_work
from household_ledger.core.utils import ZERO, format_money, qround, require_positive, to_decimal
from household_ledger.models.expense import Expense
from household_ledger.models.reimbursement import Reimbursement
from household_ledger.schemas.allowance import PersonalAllowanceOut
from household_ledger.schemas.pool import PoolDeductionOut, SharedPoolExpenseOut
from household_ledger.schemas.reimbursement import ReimbursementOut
from household_ledger.services.allowance_services import apply_allowance_spend
from household_ledger.services.household_services import get_member_or_404
from household_ledger.services.pool_services import debit_pool

logger = structlog.get_logger(__name__)


async def get_expense_or_404(db: AsyncSession, expense_id: int, for_update: bool = False) -> Expense:
    q = select(Expense).where(Expense.id == expense_id)
    if for_update:
        q = q.with_for_update()

    res = await db.execute(q)
    expense = res.scalar_one_or_none()

    if not expense:
        raise NotFoundError(f"Expense {expense_id} not found")

    return expense

def overspend_warning(allowance) -> str | None:
    remaining = to_decimal(allowance.remaining)
    if remaining < ZERO:
        return f"Personal allowance exceeded by {format_money(-remaining)}"
    return None

async def ensure_unsettled(db: AsyncSession, expense: Expense):
    """An expense gets one disposition only: pool, allowance or reimbursement."""
    if expense.paid_from_pool:
        raise ValidationError(f"Expense {expense.id} is already paid from the pool")

    # settled reimbursements clear needs_reimbursement, so check the table
    existing = await db.execute(select(Reimbursement.id).where(Reimbursement.expense_id == expense.id))
    if existing.scalar_one_or_none() is not None:
        raise ValidationError(f"Expense {expense.id} already has a reimbursement")

async def pay_from_pool(db: AsyncSession, expense: Expense, amount):
    await ensure_unsettled(db, expense)
    pool = await debit_pool(db, amount)
    expense.paid_from_pool = True
    expense.needs_reimbursement = False

    logger.info("expense_paid_from_pool", expense_id=expense.id, amount=str(amount))
    return pool

async def open_reimbursement(db: AsyncSession, expense: Expense, member_id: int, amount, description: str | None, month: str) -> Reimbursement:
    await ensure_unsettled(db, expense)

    reimbursement = Reimbursement(
        member_id=member_id,
        expense_id=expense.id,
        month=month,
        amount=amount,
        description=description or f"Reimbursement for {expense.description or 'expense'}",
        settled=False,
        settled_at=None,
    )
    db.add(reimbursement)

    expense.needs_reimbursement = True
    expense.paid_from_pool = False
    await db.flush()

    logger.info(
        "reimbursement_created",
        reimbursement_id=reimbursement.id,
        expense_id=expense.id,
        member_id=member_id,
        amount=str(amount),
    )
    return reimbursement

@unit_of_work("deduct_from_pool")
async def deduct_from_pool(db: AsyncSession, expense_id: int, amount):
    amount = require_positive(amount)
    expense = await get_expense_or_404(db, expense_id, for_update=True)

    pool = await pay_from_pool(db, expense, amount)
    await db.flush()

    return PoolDeductionOut(expense_id=expense.id, amount=amount, pool_balance=qround(pool.balance))

@unit_of_work("deduct_from_allowance")
async def deduct_from_allowance(db: AsyncSession, member_id: int, amount, month: str):
    amount = require_positive(amount)
    parse_month(month)
    await get_member_or_404(db, member_id)

    row = await apply_allowance_spend(db, member_id, amount, month)
    await db.flush()

    return Ok(PersonalAllowanceOut.model_validate(row), warning=overspend_warning(row))

@unit_of_work("create_reimbursement")
async def create_reimbursement(db: AsyncSession, expense_id: int, member_id: int, amount, description: str | None, month: str):
    amount = require_positive(amount)
    parse_month(month)
    await get_member_or_404(db, member_id)
    expense = await get_expense_or_404(db, expense_id, for_update=True)

    reimbursement = await open_reimbursement(db, expense, member_id, amount, description, month)
    return ReimbursementOut.model_validate(reimbursement)

@unit_of_work("record_shared_pool_expense")
async def record_shared_pool_expense(
    db: AsyncSession,
    paid_by_id: int,
    amount,
    description: str,
    expense_date: date,
    type: str = "shared",
    paid_from_pool: bool = False,
):
    """Create an expense and settle it from the allowance, the pool or a reimbursement."""
    amount = require_positive(amount)
    if type not in ("shared", "personal"):
        raise ValidationError('Expense type must be "shared" or "personal"')
    if not description:
        raise ValidationError("Description is required")

    member = await get_member_or_404(db, paid_by_id)
    month = month_from_date(expense_date)

    expense = Expense(
        household_id=member.household_id,
        paid_by_id=paid_by_id,
        amount=amount,
        description=description,
        date=expense_date,
        type=type,
        paid_from_pool=False,
        needs_reimbursement=False,
    )
    db.add(expense)
    await db.flush()

    if type == "personal":
        row = await apply_allowance_spend(db, paid_by_id, amount, month)
        await db.flush()
        return Ok(
            SharedPoolExpenseOut(
                expense_id=expense.id,
                disposition="allowance",
                allowance=PersonalAllowanceOut.model_validate(row),
            ),
            warning=overspend_warning(row),
        )

    if paid_from_pool:
        pool = await pay_from_pool(db, expense, amount)
        await db.flush()
        return SharedPoolExpenseOut(
            expense_id=expense.id,
            disposition="pool",
            pool_balance=qround(pool.balance),
        )

    reimbursement = await open_reimbursement(db, expense, paid_by_id, amount, description, month)
    return SharedPoolExpenseOut(
        expense_id=expense.id,
        disposition="reimbursement",
        reimbursement=ReimbursementOut.model_validate(reimbursement),
    )
