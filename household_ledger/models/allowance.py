from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, Boolean, UniqueConstraint
from household_ledger.db.session import Base

CONFIG_TYPES = ("percentage", "fixed")

class AllowanceConfig(Base):
    __tablename__ = "allowance_configs"

    id = Column(Integer, primary_key=True, index=True)
    member_id = Column(Integer, ForeignKey("household_members.id"), unique=True, nullable=False)
    # "percentage": value is a 0..1 fraction, "fixed": value is a currency amount
    type = Column(String(16), nullable=False)
    value = Column(Numeric(12, 4), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)


class SplitRatio(Base):
    __tablename__ = "split_ratios"

    id = Column(Integer, primary_key=True, index=True)
    member_id = Column(Integer, ForeignKey("household_members.id"), unique=True, nullable=False)
    ratio = Column(Numeric(12, 4), nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True)


class PersonalAllowance(Base):
    __tablename__ = "personal_allowances"
    __table_args__ = (
        UniqueConstraint("member_id", "month", name="uq_personal_allowances_member_month"),
    )

    id = Column(Integer, primary_key=True, index=True)
    member_id = Column(Integer, ForeignKey("household_members.id"), nullable=False, index=True)
    month = Column(String(7), nullable=False, index=True)
    allocated = Column(Numeric(12, 2), nullable=False, default=0)
    spent = Column(Numeric(12, 2), nullable=False, default=0)
    # allocated + carried_over - spent, kept up to date on every change
    remaining = Column(Numeric(12, 2), nullable=False, default=0)
    carried_over = Column(Numeric(12, 2), nullable=False, default=0)
    carried_to = Column(Numeric(12, 2), nullable=False, default=0)
