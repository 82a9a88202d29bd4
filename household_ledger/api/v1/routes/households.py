from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from household_ledger.db.session import get_db
from household_ledger.core.dependencies import respond
from household_ledger.schemas.household import HouseholdCreate, MemberCreate
from household_ledger.services.household_services import create_household, add_member, list_members

router = APIRouter()

@router.post("/")
async def create_new_household(data: HouseholdCreate, db: AsyncSession = Depends(get_db)):
    return respond(await create_household(db, data.name))

@router.post("/{household_id}/members")
async def add_household_member(household_id: int, data: MemberCreate, db: AsyncSession = Depends(get_db)):
    return respond(await add_member(db, household_id, data.name))

@router.get("/{household_id}/members")
async def household_members(household_id: int, db: AsyncSession = Depends(get_db)):
    return respond(await list_members(db, household_id))
