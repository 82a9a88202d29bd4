from decimal import Decimal

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from household_ledger.core.exceptions import InsufficientBalanceError
from household_ledger.core.result import unit_of_work
from household_ledger.core.utils import ZERO, format_money, qround, to_decimal
from household_ledger.models.pool_balance import POOL_BALANCE_ID, PoolBalance
from household_ledger.schemas.pool import PoolBalanceOut

logger = structlog.get_logger(__name__)


async def get_or_create_pool_balance(db: AsyncSession, for_update: bool = False) -> PoolBalance:
    q = select(PoolBalance).where(PoolBalance.id == POOL_BALANCE_ID)
    if for_update:
        q = q.with_for_update()

    res = await db.execute(q)
    pool = res.scalar_one_or_none()

    if pool is None:
        pool = PoolBalance(id=POOL_BALANCE_ID, balance=ZERO)
        db.add(pool)
        await db.flush()
        logger.info("pool_balance_created")

    return pool

async def credit_pool(db: AsyncSession, amount: Decimal) -> PoolBalance:
    """Add ``amount`` to the pool. A negative amount is applied as-is."""
    pool = await get_or_create_pool_balance(db, for_update=True)
    pool.balance = qround(to_decimal(pool.balance) + to_decimal(amount))

    logger.info("pool_credited", amount=str(amount), balance=str(pool.balance))
    return pool

async def debit_pool(db: AsyncSession, amount: Decimal) -> PoolBalance:
    pool = await get_or_create_pool_balance(db, for_update=True)
    balance = to_decimal(pool.balance)

    if balance < amount:
        raise InsufficientBalanceError(
            f"Insufficient pool balance: {format_money(balance)} available, "
            f"{format_money(amount)} required"
        )

    pool.balance = qround(balance - amount)

    logger.info("pool_debited", amount=str(amount), balance=str(pool.balance))
    return pool

@unit_of_work("get_pool_balance")
async def get_pool_balance(db: AsyncSession):
    pool = await get_or_create_pool_balance(db)
    return PoolBalanceOut(balance=qround(pool.balance))
