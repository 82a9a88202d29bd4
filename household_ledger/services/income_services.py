from datetime import date

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from household_ledger.core.exceptions import ConfigurationError, NotFoundError
from household_ledger.core.periods import allocation_month_for_income_date, parse_month
from household_ledger.core.result import unit_of_work
from household_ledger.core.utils import ZERO, qround, require_positive, to_decimal
from household_ledger.models.income import Income, IncomeAllocation
from household_ledger.schemas.income import IncomeDeleted, IncomeOut, IncomeResult
from household_ledger.services.allowance_services import (
    add_allocation,
    calculate_allowances,
    ensure_default_configs,
    find_allowance,
    get_active_configs,
)
from household_ledger.services.household_services import get_all_members, get_member_or_404
from household_ledger.services.pool_services import credit_pool, debit_pool

logger = structlog.get_logger(__name__)


@unit_of_work("process_income")
async def process_income(
    db: AsyncSession,
    member_id: int,
    amount,
    income_date: date,
    allocated_to_month: str | None = None,
    description: str | None = None,
):
    # every member with an active config is funded, not only the earner
    amount = require_positive(amount)

    members = await get_all_members(db)
    if not members:
        raise ConfigurationError("No household members to allocate income to")

    await get_member_or_404(db, member_id)
    month = allocation_month_for_income_date(income_date, allocated_to_month)

    await ensure_default_configs(db, members)
    configs = await get_active_configs(db)
    distribution = calculate_allowances(amount, configs)

    income = Income(
        member_id=member_id,
        amount=amount,
        date=income_date,
        allocated_to_month=month,
        description=description,
        pool_credit=distribution.remaining_for_pool,
    )
    db.add(income)
    await db.flush()

    pool = await credit_pool(db, distribution.remaining_for_pool)

    for share in distribution.allowances:
        await add_allocation(db, share.member_id, share.amount, month)
        db.add(IncomeAllocation(
            income_id=income.id,
            member_id=share.member_id,
            month=month,
            amount=share.amount,
        ))

    await db.flush()

    logger.info(
        "income_processed",
        income_id=income.id,
        member_id=member_id,
        month=month,
        amount=str(amount),
        total_allocated=str(distribution.total_allocated),
        remaining_for_pool=str(distribution.remaining_for_pool),
    )

    return IncomeResult(
        income_id=income.id,
        month=month,
        allowances=distribution.allowances,
        total_allocated=distribution.total_allocated,
        remaining_for_pool=distribution.remaining_for_pool,
        pool_balance=qround(pool.balance),
    )

@unit_of_work("delete_income")
async def delete_income(db: AsyncSession, income_id: int):
    res = await db.execute(select(Income).where(Income.id == income_id).with_for_update())
    income = res.scalar_one_or_none()

    if not income:
        raise NotFoundError(f"Income {income_id} not found")

    # take back exactly what the pool got; a debit may not overdraw it
    pool_credit = to_decimal(income.pool_credit)
    if pool_credit > ZERO:
        pool = await debit_pool(db, pool_credit)
    else:
        pool = await credit_pool(db, -pool_credit)

    res = await db.execute(select(IncomeAllocation).where(IncomeAllocation.income_id == income_id))
    allocations = res.scalars().all()

    for allocation in allocations:
        row = await find_allowance(db, allocation.member_id, allocation.month, for_update=True)
        if row is None:
            continue
        amount = to_decimal(allocation.amount)
        row.allocated = qround(to_decimal(row.allocated) - amount)
        row.remaining = qround(to_decimal(row.remaining) - amount)

    await db.execute(delete(IncomeAllocation).where(IncomeAllocation.income_id == income_id))
    await db.delete(income)
    await db.flush()

    logger.info(
        "income_deleted",
        income_id=income_id,
        pool_credit=str(pool_credit),
        allocations=len(allocations),
    )
    return IncomeDeleted(id=income_id, pool_balance=qround(pool.balance))

@unit_of_work("list_incomes")
async def list_incomes(db: AsyncSession, month: str | None = None):
    q = select(Income).order_by(Income.date.desc(), Income.id.desc())
    if month:
        parse_month(month)
        q = q.where(Income.allocated_to_month == month)

    res = await db.execute(q)
    return [IncomeOut.model_validate(i) for i in res.scalars().all()]
