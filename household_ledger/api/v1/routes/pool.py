from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from household_ledger.db.session import get_db
from household_ledger.core.dependencies import respond
from household_ledger.schemas.pool import PoolDeduction, SharedPoolExpenseCreate
from household_ledger.services.pool_services import get_pool_balance
from household_ledger.services.settlement_services import deduct_from_pool, record_shared_pool_expense
from household_ledger.services.summary_services import get_shared_pool_summary

router = APIRouter()

@router.get("/balance")
async def pool_balance(db: AsyncSession = Depends(get_db)):
    return respond(await get_pool_balance(db))

@router.get("/summary")
async def pool_summary(month: str | None = None, db: AsyncSession = Depends(get_db)):
    return respond(await get_shared_pool_summary(db, month))

@router.post("/deduct")
async def pay_expense_from_pool(data: PoolDeduction, db: AsyncSession = Depends(get_db)):
    return respond(await deduct_from_pool(db, data.expense_id, data.amount))

@router.post("/expenses")
async def add_shared_pool_expense(data: SharedPoolExpenseCreate, db: AsyncSession = Depends(get_db)):
    result = await record_shared_pool_expense(
        db,
        paid_by_id=data.paid_by_id,
        amount=data.amount,
        description=data.description,
        expense_date=data.date,
        type=data.type,
        paid_from_pool=data.paid_from_pool,
    )
    return respond(result)
