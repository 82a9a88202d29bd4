from sqlalchemy import Column, Integer, Numeric, ForeignKey, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from household_ledger.db.session import Base

class ExpenseSplit(Base):
    __tablename__ = "expense_splits"
    __table_args__ = (
        UniqueConstraint("expense_id", "member_id", name="uq_expense_splits_expense_member"),
    )

    id = Column(Integer, primary_key=True, index=True)
    expense_id = Column(Integer, ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False, index=True)
    member_id = Column(Integer, ForeignKey("household_members.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    # True once this member's share is settled with the payer
    paid = Column(Boolean, nullable=False, default=False)

    expense = relationship("Expense", back_populates="splits")
