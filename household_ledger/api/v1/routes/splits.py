from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from household_ledger.db.session import get_db
from household_ledger.core.dependencies import respond
from household_ledger.schemas.expense import IndividualExpenseCreate, SplitRequest, SettleDebtsRequest, SplitRatioIn
from household_ledger.services.split_services import (
    create_expense_splits,
    record_individual_expense,
    calculate_individual_balances,
    settle_debts,
    mark_split_paid,
    get_member_balance,
    set_split_ratio,
)

router = APIRouter()

@router.post("/expenses")
async def add_individual_expense(data: IndividualExpenseCreate, db: AsyncSession = Depends(get_db)):
    result = await record_individual_expense(
        db,
        household_id=data.household_id,
        paid_by_id=data.paid_by_id,
        amount=data.amount,
        description=data.description,
        expense_date=data.date,
        split_type=data.split_type,
    )
    return respond(result)

@router.post("/")
async def split_expense(data: SplitRequest, db: AsyncSession = Depends(get_db)):
    return respond(await create_expense_splits(db, data.expense_id, data.amount, data.split_type, data.household_id))

@router.put("/ratios")
async def save_ratio(data: SplitRatioIn, db: AsyncSession = Depends(get_db)):
    return respond(await set_split_ratio(db, data.member_id, data.ratio, data.is_active))

@router.get("/households/{household_id}/balances")
async def household_balances(household_id: int, db: AsyncSession = Depends(get_db)):
    return respond(await calculate_individual_balances(db, household_id))

@router.get("/members/{member_id}/balance")
async def member_balance(member_id: int, db: AsyncSession = Depends(get_db)):
    return respond(await get_member_balance(db, member_id))

@router.post("/settle")
async def settle(data: SettleDebtsRequest, db: AsyncSession = Depends(get_db)):
    return respond(await settle_debts(db, data.member_a_id, data.member_b_id))

@router.post("/{expense_id}/members/{member_id}/paid")
async def split_paid(expense_id: int, member_id: int, db: AsyncSession = Depends(get_db)):
    return respond(await mark_split_paid(db, expense_id, member_id))
