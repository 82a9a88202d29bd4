from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Date, Numeric, Boolean
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from household_ledger.db.session import Base

EXPENSE_TYPES = ("shared", "personal")

class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    household_id = Column(Integer, ForeignKey("households.id"), nullable=True, index=True)
    paid_by_id = Column(Integer, ForeignKey("household_members.id"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(String, nullable=True)
    date = Column(Date, nullable=False)
    type = Column(String(16), nullable=False, default="shared")
    paid_from_pool = Column(Boolean, nullable=False, default=False)
    needs_reimbursement = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    splits = relationship("ExpenseSplit", back_populates="expense", cascade="all, delete")
    reimbursement = relationship("Reimbursement", back_populates="expense", uselist=False)
