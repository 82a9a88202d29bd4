from household_ledger.db.session import Base

# import ALL models here so Base.metadata knows every table
import household_ledger.models.household  # noqa: F401
import household_ledger.models.expense  # noqa: F401
import household_ledger.models.expense_split  # noqa: F401
import household_ledger.models.income  # noqa: F401
import household_ledger.models.allowance  # noqa: F401
import household_ledger.models.pool_balance  # noqa: F401
import household_ledger.models.reimbursement  # noqa: F401

metadata = Base.metadata
