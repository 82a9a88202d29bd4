from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from household_ledger.core.periods import current_month, month_bounds, parse_month
from household_ledger.core.result import unit_of_work
from household_ledger.core.utils import ZERO, qround, to_decimal
from household_ledger.models.allowance import PersonalAllowance
from household_ledger.models.expense import Expense
from household_ledger.models.income import Income
from household_ledger.models.reimbursement import Reimbursement
from household_ledger.schemas.allowance import PersonalAllowanceOut
from household_ledger.schemas.pool import MemberAllowanceSummary, SharedPoolSummary
from household_ledger.schemas.reimbursement import ReimbursementOut
from household_ledger.services.allowance_services import get_allowances_for_month
from household_ledger.services.pool_services import get_or_create_pool_balance


async def _sum(db: AsyncSession, q) -> Decimal:
    res = await db.execute(q)
    return qround(to_decimal(res.scalar() or 0))

async def _expenses_in_month(db: AsyncSession, month: str, *criteria) -> Decimal:
    start, end = month_bounds(month)
    return await _sum(
        db,
        select(func.coalesce(func.sum(Expense.amount), 0))
        .where(Expense.date >= start, Expense.date < end, *criteria)
    )

@unit_of_work("get_shared_pool_summary")
async def get_shared_pool_summary(db: AsyncSession, month: str | None = None):
    """
    Income, expenses and allowances are reported for ``month`` only. Pending
    reimbursements, pool spending and the cumulative allowance figures are
    all-time.
    """
    month = month or current_month()
    parse_month(month)

    total_income = await _sum(
        db,
        select(func.coalesce(func.sum(Income.amount), 0))
        .where(Income.allocated_to_month == month)
    )
    total_pool_expenses = await _expenses_in_month(db, month, Expense.paid_from_pool == True)
    total_personal_expenses = await _expenses_in_month(db, month, Expense.type == "personal")

    allowances = await get_allowances_for_month(db, month)
    total_allowances = qround(sum((to_decimal(a.allocated) for a in allowances), ZERO))

    cumulative_q = (
        select(
            PersonalAllowance.member_id,
            func.coalesce(func.sum(PersonalAllowance.allocated), 0),
            func.coalesce(func.sum(PersonalAllowance.spent), 0),
        )
        .group_by(PersonalAllowance.member_id)
    )
    cumulative = {
        member_id: (qround(to_decimal(allocated)), qround(to_decimal(spent)))
        for member_id, allocated, spent in (await db.execute(cumulative_q)).all()
    }

    member_allowances = []
    for a in allowances:
        allocated, spent = cumulative.get(a.member_id, (ZERO, ZERO))
        member_allowances.append(MemberAllowanceSummary(
            **PersonalAllowanceOut.model_validate(a).model_dump(),
            cumulative_allocated=allocated,
            cumulative_spent=spent,
            cumulative_saved=qround(allocated - spent),
        ))

    pending_q = (
        select(Reimbursement)
        .where(Reimbursement.settled == False)
        .order_by(Reimbursement.created_at, Reimbursement.id)
    )
    pending = (await db.execute(pending_q)).scalars().all()
    total_pending = qround(sum((to_decimal(r.amount) for r in pending), ZERO))

    pool_paid = await _sum(
        db,
        select(func.coalesce(func.sum(Expense.amount), 0))
        .where(Expense.paid_from_pool == True)
    )
    reimbursed = await _sum(
        db,
        select(func.coalesce(func.sum(Reimbursement.amount), 0))
        .where(Reimbursement.settled == True)
    )

    pool = await get_or_create_pool_balance(db)

    return SharedPoolSummary(
        month=month,
        total_income=total_income,
        total_allowances_allocated=total_allowances,
        amount_to_pool=qround(total_income - total_allowances),
        total_pool_expenses=total_pool_expenses,
        total_personal_expenses=total_personal_expenses,
        member_allowances=member_allowances,
        pending_reimbursements=[ReimbursementOut.model_validate(r) for r in pending],
        total_pending_reimbursements=total_pending,
        total_pool_spent=qround(pool_paid + reimbursed),
        cumulative_total_allowances_allocated=qround(sum((v[0] for v in cumulative.values()), ZERO)),
        cumulative_total_allowances_spent=qround(sum((v[1] for v in cumulative.values()), ZERO)),
        pool_balance=qround(pool.balance),
    )
