from collections import defaultdict
from datetime import date
from decimal import ROUND_DOWN, Decimal

import structlog
from sqlalchemy import delete, or_, and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from household_ledger.core.exceptions import (
    NoActiveMembersError,
    NotFoundError,
    SplitTypeNotImplementedError,
    ValidationError,
    ZeroRatioError,
)
from household_ledger.core.result import unit_of_work
from household_ledger.core.utils import CENTS, ZERO, qround, require_non_negative, require_positive, to_decimal
from household_ledger.models.allowance import SplitRatio
from household_ledger.models.expense import Expense
from household_ledger.models.expense_split import ExpenseSplit
from household_ledger.models.household import HouseholdMember
from household_ledger.schemas.expense import (
    BalanceDetail,
    Counterparty,
    DebtSettlementOut,
    ExpenseOut,
    IndividualExpenseOut,
    MemberBalance,
    MemberBalanceDetail,
    SplitOut,
    SplitRatioOut,
)
from household_ledger.services.household_services import get_all_members, get_member_names, get_member_or_404
from household_ledger.services.settlement_services import get_expense_or_404

logger = structlog.get_logger(__name__)

SPLIT_TYPES = ("equal", "ratio", "custom")


def distribute(amount: Decimal, weights: list[Decimal]) -> list[Decimal]:
    """Split ``amount`` by weight: floor to the cent, then hand out the leftover cents by largest fraction."""
    total = sum(weights, ZERO)
    exact = [amount * w / total for w in weights]
    shares = [e.quantize(CENTS, rounding=ROUND_DOWN) for e in exact]

    leftover = int((amount - sum(shares, ZERO)) / CENTS)
    by_fraction = sorted(range(len(weights)), key=lambda i: exact[i] - shares[i], reverse=True)
    for i in by_fraction[:leftover]:
        shares[i] += CENTS

    return shares

async def get_active_split_members(db: AsyncSession, household_id: int):
    q = (
        select(HouseholdMember.id, SplitRatio.ratio)
        .join(SplitRatio, SplitRatio.member_id == HouseholdMember.id)
        .where(
            HouseholdMember.household_id == household_id,
            SplitRatio.is_active == True
        )
        .order_by(HouseholdMember.id)
    )
    res = await db.execute(q)
    return [(member_id, to_decimal(ratio)) for member_id, ratio in res.all()]

async def build_expense_splits(db: AsyncSession, expense: Expense, amount: Decimal, split_type: str, household_id: int):
    if split_type not in SPLIT_TYPES:
        raise ValidationError(f"Invalid split type '{split_type}'")

    if split_type == "custom":
        raise SplitTypeNotImplementedError("Custom splits are not supported yet")

    members = await get_active_split_members(db, household_id)
    if not members:
        raise NoActiveMembersError("No active members found")

    if split_type == "equal":
        weights = [Decimal("1")] * len(members)
    else:
        weights = [ratio for _, ratio in members]
        if sum(weights, ZERO) == ZERO:
            raise ZeroRatioError("Total ratio is zero")

    shares = distribute(amount, weights)

    # replaces whatever split the expense had before
    await db.execute(delete(ExpenseSplit).where(ExpenseSplit.expense_id == expense.id))

    splits = []
    for (member_id, _), share in zip(members, shares):
        split = ExpenseSplit(
            expense_id=expense.id,
            member_id=member_id,
            amount=share,
            paid=member_id == expense.paid_by_id
        )
        db.add(split)
        splits.append(split)

    await db.flush()

    logger.info(
        "expense_split",
        expense_id=expense.id,
        split_type=split_type,
        members=[m for m, _ in members],
        amount=str(amount),
    )
    return splits

@unit_of_work("create_expense_splits")
async def create_expense_splits(db: AsyncSession, expense_id: int, amount, split_type: str, household_id: int):
    amount = require_positive(amount)
    expense = await get_expense_or_404(db, expense_id, for_update=True)

    splits = await build_expense_splits(db, expense, amount, split_type, household_id)
    return [SplitOut.model_validate(s) for s in splits]

@unit_of_work("record_individual_expense")
async def record_individual_expense(
    db: AsyncSession,
    household_id: int,
    paid_by_id: int,
    amount,
    description: str | None,
    expense_date: date,
    split_type: str = "equal",
):
    amount = require_positive(amount)
    payer = await get_member_or_404(db, paid_by_id)

    if payer.household_id != household_id:
        raise ValidationError("Payer is not a member of the household")

    expense = Expense(
        household_id=household_id,
        paid_by_id=paid_by_id,
        amount=amount,
        description=description,
        date=expense_date,
        type="shared",
        paid_from_pool=False,
        needs_reimbursement=False,
    )
    db.add(expense)
    await db.flush()  # gives expense.id

    splits = await build_expense_splits(db, expense, amount, split_type, household_id)

    return IndividualExpenseOut(
        expense=ExpenseOut.model_validate(expense),
        splits=[SplitOut.model_validate(s) for s in splits],
    )

@unit_of_work("calculate_individual_balances")
async def calculate_individual_balances(db: AsyncSession, household_id: int):
    # only unpaid splits count; net_balance is what others owe minus what this member owes
    members = await get_all_members(db, household_id)
    member_ids = [m.id for m in members]

    if not member_ids:
        return []

    q = (
        select(ExpenseSplit.member_id, ExpenseSplit.amount, Expense.paid_by_id)
        .join(Expense, Expense.id == ExpenseSplit.expense_id)
        .where(
            ExpenseSplit.paid == False,
            or_(
                ExpenseSplit.member_id.in_(member_ids),
                Expense.paid_by_id.in_(member_ids)
            )
        )
    )
    res = await db.execute(q)

    owes = defaultdict(lambda: defaultdict(Decimal))
    owed_by = defaultdict(lambda: defaultdict(Decimal))

    for debtor_id, amount, payer_id in res.all():
        if debtor_id == payer_id:
            continue
        amt = to_decimal(amount)
        owes[debtor_id][payer_id] += amt
        owed_by[payer_id][debtor_id] += amt

    involved = set(member_ids)
    for counterparties in list(owes.values()) + list(owed_by.values()):
        involved.update(counterparties)
    names = await get_member_names(db, involved)

    balances = []
    for member in members:
        my_debts = owes.get(member.id, {})
        my_credits = owed_by.get(member.id, {})

        net = sum(my_credits.values(), ZERO) - sum(my_debts.values(), ZERO)

        balances.append(MemberBalance(
            member_id=member.id,
            member_name=member.name,
            net_balance=qround(net),
            owes=[
                Counterparty(member_id=uid, member_name=names.get(uid), amount=qround(amt))
                for uid, amt in sorted(my_debts.items())
            ],
            owed_by=[
                Counterparty(member_id=uid, member_name=names.get(uid), amount=qround(amt))
                for uid, amt in sorted(my_credits.items())
            ],
        ))

    return balances

@unit_of_work("settle_debts")
async def settle_debts(db: AsyncSession, member_a_id: int, member_b_id: int):
    """
    Mark every unpaid split between two members as paid, in both directions.

    Opposing debts are not netted: if A owes B 10 and B owes A 5, both splits
    are closed and 15 is reported as settled.
    """
    if member_a_id == member_b_id:
        raise ValidationError("Cannot settle debts of a member with themselves")

    await get_member_or_404(db, member_a_id)
    await get_member_or_404(db, member_b_id)

    q = (
        select(ExpenseSplit)
        .join(Expense, Expense.id == ExpenseSplit.expense_id)
        .where(
            ExpenseSplit.paid == False,
            or_(
                and_(ExpenseSplit.member_id == member_a_id, Expense.paid_by_id == member_b_id),
                and_(ExpenseSplit.member_id == member_b_id, Expense.paid_by_id == member_a_id),
            )
        )
        .with_for_update()
    )
    res = await db.execute(q)
    splits = res.scalars().all()

    amount_settled = ZERO
    for split in splits:
        amount_settled += to_decimal(split.amount)
        split.paid = True

    await db.flush()

    logger.info(
        "debts_settled",
        member_a_id=member_a_id,
        member_b_id=member_b_id,
        splits=len(splits),
        amount=str(amount_settled),
    )
    return DebtSettlementOut(amount_settled=qround(amount_settled), splits_settled=len(splits))

@unit_of_work("mark_split_paid")
async def mark_split_paid(db: AsyncSession, expense_id: int, member_id: int):
    q = select(ExpenseSplit).where(
        ExpenseSplit.expense_id == expense_id,
        ExpenseSplit.member_id == member_id
    )
    res = await db.execute(q)
    split = res.scalar_one_or_none()

    if not split:
        raise NotFoundError(f"No split for member {member_id} on expense {expense_id}")

    split.paid = True
    await db.flush()

    logger.info("split_paid", expense_id=expense_id, member_id=member_id)
    return SplitOut.model_validate(split)

@unit_of_work("get_member_balance")
async def get_member_balance(db: AsyncSession, member_id: int):
    await get_member_or_404(db, member_id)

    q = (
        select(ExpenseSplit, Expense)
        .join(Expense, Expense.id == ExpenseSplit.expense_id)
        .where(
            ExpenseSplit.paid == False,
            or_(
                ExpenseSplit.member_id == member_id,
                Expense.paid_by_id == member_id
            )
        )
        .order_by(Expense.date.desc(), Expense.id.desc())
    )
    res = await db.execute(q)

    total_owed = ZERO
    total_owing = ZERO
    details = []

    for split, expense in res.all():
        amt = qround(split.amount)

        if split.member_id == member_id and expense.paid_by_id != member_id:
            total_owing += amt
            details.append(BalanceDetail(
                expense_id=expense.id,
                description=expense.description,
                amount=amt,
                date=expense.date,
                type="owes",
                other_member_id=expense.paid_by_id,
            ))
        elif expense.paid_by_id == member_id and split.member_id != member_id:
            total_owed += amt
            details.append(BalanceDetail(
                expense_id=expense.id,
                description=expense.description,
                amount=amt,
                date=expense.date,
                type="owed",
                other_member_id=split.member_id,
            ))

    return MemberBalanceDetail(
        member_id=member_id,
        total_owed=total_owed,
        total_owing=total_owing,
        net_balance=total_owed - total_owing,
        details=details,
    )

@unit_of_work("set_split_ratio")
async def set_split_ratio(db: AsyncSession, member_id: int, ratio, is_active: bool = True):
    ratio = require_non_negative(ratio, "Ratio")

    await get_member_or_404(db, member_id)

    res = await db.execute(select(SplitRatio).where(SplitRatio.member_id == member_id))
    config = res.scalar_one_or_none()

    if config is None:
        config = SplitRatio(member_id=member_id, ratio=ratio, is_active=is_active)
        db.add(config)
    else:
        config.ratio = ratio
        config.is_active = is_active

    await db.flush()

    logger.info("split_ratio_saved", member_id=member_id, ratio=str(ratio), is_active=is_active)
    return SplitRatioOut.model_validate(config)
