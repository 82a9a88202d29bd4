from decimal import Decimal
from types import SimpleNamespace

from household_ledger.services.allowance_services import calculate_allowances


def config(member_id, type, value):
    return SimpleNamespace(member_id=member_id, type=type, value=Decimal(value))


class TestCalculateAllowances:

    def test_two_percentage_members(self):
        result = calculate_allowances(Decimal("1000"), [
            config(1, "percentage", "0.2"),
            config(2, "percentage", "0.2"),
        ])

        assert [a.amount for a in result.allowances] == [Decimal("200.00"), Decimal("200.00")]
        assert result.total_allocated == Decimal("400.00")
        assert result.remaining_for_pool == Decimal("600.00")

    def test_fixed_applied_before_percentage(self):
        # percentage config listed first still shares only what fixed leaves
        result = calculate_allowances(Decimal("1000"), [
            config(2, "percentage", "0.5"),
            config(1, "fixed", "200"),
        ])

        amounts = {a.member_id: a.amount for a in result.allowances}
        assert amounts == {1: Decimal("200.00"), 2: Decimal("400.00")}
        assert result.allowances[0].member_id == 1
        assert result.remaining_for_pool == Decimal("400.00")

    def test_fixed_larger_than_income_makes_pool_credit_negative(self):
        result = calculate_allowances(Decimal("100"), [config(1, "fixed", "150")])

        assert result.allowances[0].amount == Decimal("150.00")
        assert result.remaining_for_pool == Decimal("-50.00")

    def test_no_configs_sends_everything_to_pool(self):
        result = calculate_allowances(Decimal("750"), [])

        assert result.allowances == []
        assert result.total_allocated == Decimal("0")
        assert result.remaining_for_pool == Decimal("750")

    def test_allocated_plus_pool_equals_income(self):
        configs = [
            config(1, "fixed", "123.45"),
            config(2, "percentage", "0.3333"),
            config(3, "percentage", "0.1777"),
        ]
        for income in ["1000", "999.99", "0.01", "12345.67", "333.33"]:
            result = calculate_allowances(Decimal(income), configs)
            assert result.total_allocated + result.remaining_for_pool == Decimal(income)
            assert sum(a.amount for a in result.allowances) == result.total_allocated

    def test_allowances_rounded_to_cents(self):
        result = calculate_allowances(Decimal("100"), [config(1, "percentage", "0.3333")])

        assert result.allowances[0].amount == Decimal("33.33")
        assert result.remaining_for_pool == Decimal("66.67")
