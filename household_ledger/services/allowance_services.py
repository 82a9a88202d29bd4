from decimal import Decimal
from typing import Iterable

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from household_ledger.core.config import settings
from household_ledger.core.exceptions import NotFoundError, ValidationError
from household_ledger.core.periods import parse_month, previous_month
from household_ledger.core.result import unit_of_work
from household_ledger.core.utils import ZERO, qround, require_non_negative, require_positive, to_decimal
from household_ledger.models.allowance import CONFIG_TYPES, AllowanceConfig, PersonalAllowance
from household_ledger.schemas.allowance import (
    AllowanceConfigOut,
    AllowanceDistribution,
    AllowanceShare,
    PersonalAllowanceOut,
)
from household_ledger.services.household_services import get_all_members, get_member_or_404

logger = structlog.get_logger(__name__)


def calculate_allowances(total_income, configs: Iterable) -> AllowanceDistribution:
    # fixed amounts come off the top, percentages share what is left
    total_income = to_decimal(total_income)
    configs = list(configs)

    fixed = [c for c in configs if c.type == "fixed"]
    percentage = [c for c in configs if c.type == "percentage"]

    allowances = []
    total_allocated = ZERO

    for config in fixed:
        amount = qround(config.value)
        allowances.append(AllowanceShare(member_id=config.member_id, amount=amount))
        total_allocated += amount

    remainder = total_income - total_allocated
    for config in percentage:
        amount = qround(remainder * to_decimal(config.value))
        allowances.append(AllowanceShare(member_id=config.member_id, amount=amount))
        total_allocated += amount

    return AllowanceDistribution(
        allowances=allowances,
        total_allocated=total_allocated,
        remaining_for_pool=total_income - total_allocated,
    )

async def get_active_configs(db: AsyncSession):
    q = (
        select(AllowanceConfig)
        .where(AllowanceConfig.is_active == True)
        .order_by(AllowanceConfig.member_id)
    )
    res = await db.execute(q)
    return res.scalars().all()

async def ensure_default_configs(db: AsyncSession, members) -> list[AllowanceConfig]:
    """Seed the default percentage for members with no config, while none is active."""
    active_q = (
        select(func.count())
        .select_from(AllowanceConfig)
        .where(AllowanceConfig.is_active == True)
    )
    active = (await db.execute(active_q)).scalar()
    if active:
        return []

    existing = await db.execute(select(AllowanceConfig.member_id))
    configured = set(existing.scalars().all())

    created = [
        AllowanceConfig(
            member_id=m.id,
            type="percentage",
            value=settings.DEFAULT_ALLOWANCE_PERCENTAGE,
            is_active=True,
        )
        for m in members
        if m.id not in configured
    ]

    if created:
        db.add_all(created)
        await db.flush()
        logger.info(
            "default_allowance_configs_created",
            members=[c.member_id for c in created],
            percentage=str(settings.DEFAULT_ALLOWANCE_PERCENTAGE),
        )

    return created

@unit_of_work("provision_default_configs")
async def provision_default_configs(db: AsyncSession):
    members = await get_all_members(db)
    created = await ensure_default_configs(db, members)
    return [AllowanceConfigOut.model_validate(c) for c in created]

@unit_of_work("upsert_allowance_config")
async def upsert_allowance_config(db: AsyncSession, member_id: int, type: str, value):
    if type not in CONFIG_TYPES:
        raise ValidationError('Type must be "percentage" or "fixed"')

    value = require_non_negative(value)
    if type == "percentage" and value > 1:
        raise ValidationError("Percentage value must be between 0 and 1")

    await get_member_or_404(db, member_id)

    res = await db.execute(select(AllowanceConfig).where(AllowanceConfig.member_id == member_id))
    config = res.scalar_one_or_none()

    if config is None:
        config = AllowanceConfig(member_id=member_id, type=type, value=value, is_active=True)
        db.add(config)
    else:
        config.type = type
        config.value = value
        config.is_active = True

    await db.flush()

    logger.info("allowance_config_saved", member_id=member_id, type=type, value=str(value))
    return AllowanceConfigOut.model_validate(config)

@unit_of_work("deactivate_allowance_config")
async def deactivate_allowance_config(db: AsyncSession, member_id: int):
    res = await db.execute(select(AllowanceConfig).where(AllowanceConfig.member_id == member_id))
    config = res.scalar_one_or_none()

    if not config:
        raise NotFoundError(f"No allowance config for member {member_id}")

    config.is_active = False
    await db.flush()

    logger.info("allowance_config_deactivated", member_id=member_id)
    return AllowanceConfigOut.model_validate(config)

@unit_of_work("list_allowance_configs")
async def list_allowance_configs(db: AsyncSession):
    res = await db.execute(select(AllowanceConfig).order_by(AllowanceConfig.member_id))
    return [AllowanceConfigOut.model_validate(c) for c in res.scalars().all()]

async def find_allowance(db: AsyncSession, member_id: int, month: str, for_update: bool = False):
    q = select(PersonalAllowance).where(
        PersonalAllowance.member_id == member_id,
        PersonalAllowance.month == month,
    )
    if for_update:
        q = q.with_for_update()

    res = await db.execute(q)
    return res.scalar_one_or_none()

async def resolve_or_create_allowance(db: AsyncSession, member_id: int, month: str) -> PersonalAllowance:
    parse_month(month)

    row = await find_allowance(db, member_id, month, for_update=True)
    if row is not None:
        return row

    prev = await find_allowance(db, member_id, previous_month(month), for_update=True)
    carried = qround(prev.remaining) if prev is not None else ZERO

    row = PersonalAllowance(
        member_id=member_id,
        month=month,
        allocated=ZERO,
        spent=ZERO,
        remaining=carried,
        carried_over=carried,
        carried_to=ZERO,
    )
    db.add(row)

    if prev is not None:
        prev.carried_to = carried

    await db.flush()

    logger.info("allowance_month_opened", member_id=member_id, month=month, carried_over=str(carried))
    return row

async def add_allocation(db: AsyncSession, member_id: int, amount: Decimal, month: str) -> PersonalAllowance:
    row = await resolve_or_create_allowance(db, member_id, month)
    row.allocated = qround(to_decimal(row.allocated) + amount)
    row.remaining = qround(to_decimal(row.remaining) + amount)
    return row

async def apply_allowance_spend(db: AsyncSession, member_id: int, amount: Decimal, month: str) -> PersonalAllowance:
    row = await resolve_or_create_allowance(db, member_id, month)
    row.spent = qround(to_decimal(row.spent) + amount)
    row.remaining = qround(to_decimal(row.remaining) - amount)

    logger.info(
        "allowance_spent",
        member_id=member_id,
        month=month,
        amount=str(amount),
        remaining=str(row.remaining),
    )
    return row

@unit_of_work("refund_allowance")
async def refund_allowance(db: AsyncSession, member_id: int, amount, month: str):
    amount = require_positive(amount)
    await get_member_or_404(db, member_id)

    parse_month(month)
    row = await find_allowance(db, member_id, month, for_update=True)
    if row is None:
        raise NotFoundError(f"No personal allowance for member {member_id} in {month}")

    if to_decimal(row.spent) < amount:
        raise ValidationError("Refund is larger than the amount spent this month")

    row.spent = qround(to_decimal(row.spent) - amount)
    row.remaining = qround(to_decimal(row.remaining) + amount)
    await db.flush()

    logger.info("allowance_refunded", member_id=member_id, month=month, amount=str(amount))
    return PersonalAllowanceOut.model_validate(row)

@unit_of_work("get_personal_allowance")
async def get_personal_allowance(db: AsyncSession, member_id: int, month: str):
    parse_month(month)
    await get_member_or_404(db, member_id)

    row = await find_allowance(db, member_id, month)
    if row is not None:
        return PersonalAllowanceOut.model_validate(row)

    # nothing recorded yet: show what the month would open with, without saving it
    prev = await find_allowance(db, member_id, previous_month(month))
    carried = qround(prev.remaining) if prev is not None else ZERO
    return PersonalAllowanceOut(
        member_id=member_id,
        month=month,
        allocated=ZERO,
        spent=ZERO,
        remaining=carried,
        carried_over=carried,
        carried_to=ZERO,
    )

async def get_allowances_for_month(db: AsyncSession, month: str):
    q = (
        select(PersonalAllowance)
        .where(PersonalAllowance.month == month)
        .order_by(PersonalAllowance.member_id)
    )
    res = await db.execute(q)
    return res.scalars().all()

@unit_of_work("list_personal_allowances")
async def list_personal_allowances(db: AsyncSession, month: str):
    parse_month(month)
    rows = await get_allowances_for_month(db, month)
    return [PersonalAllowanceOut.model_validate(r) for r in rows]
