from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Date, Numeric
from sqlalchemy.sql import func
from household_ledger.db.session import Base

class Income(Base):
    __tablename__ = "incomes"

    id = Column(Integer, primary_key=True, index=True)
    member_id = Column(Integer, ForeignKey("household_members.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False)
    # YYYY-MM whose budget this income funded
    allocated_to_month = Column(String(7), nullable=False, index=True)
    description = Column(String, nullable=True)
    # what the pool received, negative when fixed allowances exceeded the income
    pool_credit = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class IncomeAllocation(Base):
    __tablename__ = "income_allocations"

    id = Column(Integer, primary_key=True, index=True)
    income_id = Column(Integer, ForeignKey("incomes.id", ondelete="CASCADE"), nullable=False, index=True)
    member_id = Column(Integer, ForeignKey("household_members.id"), nullable=False)
    month = Column(String(7), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
