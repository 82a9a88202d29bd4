from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from household_ledger.db.session import get_db
from household_ledger.core.dependencies import respond
from household_ledger.schemas.income import IncomeCreate
from household_ledger.services.income_services import process_income, list_incomes, delete_income

router = APIRouter()

@router.post("/")
async def add_income(data: IncomeCreate, db: AsyncSession = Depends(get_db)):
    result = await process_income(
        db,
        member_id=data.member_id,
        amount=data.amount,
        income_date=data.date,
        allocated_to_month=data.allocated_to_month,
        description=data.description,
    )
    return respond(result)

@router.get("/")
async def incomes(month: str | None = None, db: AsyncSession = Depends(get_db)):
    return respond(await list_incomes(db, month))

@router.delete("/{income_id}")
async def remove_income(income_id: int, db: AsyncSession = Depends(get_db)):
    return respond(await delete_income(db, income_id))
