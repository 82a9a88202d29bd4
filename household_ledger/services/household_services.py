import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from household_ledger.models.household import Household, HouseholdMember
from household_ledger.core.exceptions import NotFoundError, ValidationError
from household_ledger.core.result import unit_of_work
from household_ledger.schemas.household import HouseholdOut, MemberOut

logger = structlog.get_logger(__name__)


async def get_member_or_404(db: AsyncSession, member_id: int) -> HouseholdMember:
    res = await db.execute(select(HouseholdMember).where(HouseholdMember.id == member_id))
    member = res.scalar_one_or_none()

    if not member:
        raise NotFoundError(f"Household member {member_id} not found")

    return member

async def get_all_members(db: AsyncSession, household_id: int | None = None):
    q = select(HouseholdMember).order_by(HouseholdMember.id)
    if household_id is not None:
        q = q.where(HouseholdMember.household_id == household_id)

    res = await db.execute(q)
    return res.scalars().all()

async def get_member_names(db: AsyncSession, member_ids) -> dict[int, str]:
    if not member_ids:
        return {}

    q = select(HouseholdMember.id, HouseholdMember.name).where(HouseholdMember.id.in_(list(member_ids)))
    res = await db.execute(q)
    return {uid: name for uid, name in res.all()}

@unit_of_work("create_household")
async def create_household(db: AsyncSession, name: str):
    name = (name or "").strip()
    if not name:
        raise ValidationError("Household name is required")

    existing = await db.execute(select(Household).where(Household.name == name))
    if existing.scalar_one_or_none():
        raise ValidationError(f"Household '{name}' already exists")

    household = Household(name=name)
    db.add(household)
    await db.flush()

    logger.info("household_created", household_id=household.id)
    return HouseholdOut.model_validate(household)

@unit_of_work("add_member")
async def add_member(db: AsyncSession, household_id: int, name: str):
    res = await db.execute(select(Household).where(Household.id == household_id))
    if not res.scalar_one_or_none():
        raise NotFoundError(f"Household {household_id} not found")

    name = (name or "").strip()
    if not name:
        raise ValidationError("Member name is required")

    member = HouseholdMember(household_id=household_id, name=name)
    db.add(member)
    await db.flush()

    logger.info("member_added", household_id=household_id, member_id=member.id)
    return MemberOut.model_validate(member)

@unit_of_work("list_members")
async def list_members(db: AsyncSession, household_id: int | None = None):
    members = await get_all_members(db, household_id)
    return [MemberOut.model_validate(m) for m in members]
