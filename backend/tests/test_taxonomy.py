"""Tests for income, bill and transfer classification."""

from datetime import date

from cadence.models.income import IncomeType
from cadence.services.taxonomy import (
    classify_bill_type,
    classify_income_type,
    is_excluded_from_bills,
    is_income_transaction,
    is_transfer,
)
from factories import txn_view

DAY = date(2024, 5, 1)


class TestClassifyIncomeType:

    def test_payroll(self):
        assert classify_income_type("ACME CORP PAYROLL") == IncomeType.payroll

    def test_government(self):
        assert classify_income_type("SSA TREAS 310 XXSOC SEC") == IncomeType.government

    def test_investment(self):
        assert classify_income_type("VANGUARD DIVIDEND") == IncomeType.investment

    def test_transfer(self):
        assert classify_income_type("ZELLE FROM JOHN") == IncomeType.transfer

    def test_unknown(self):
        assert classify_income_type("MYSTERY DEPOSIT CO") == IncomeType.other


class TestIsIncomeTransaction:
    """Negative amounts are money in."""

    def test_payroll_deposit(self):
        assert is_income_transaction(txn_view("ACME CORP PAYROLL", -1500, DAY))

    def test_gig_platform_deposit(self):
        assert is_income_transaction(txn_view("UBER", -310, DAY))

    def test_gig_platform_purchase(self):
        assert not is_income_transaction(txn_view("UBER TRIP", 42, DAY))

    def test_transfer_is_not_income(self):
        assert not is_income_transaction(txn_view("ONLINE TRANSFER TO SAVINGS", -500, DAY))

    def test_inverted_sign_payroll(self):
        assert is_income_transaction(txn_view("PAYROLL DEPOSIT", 2000, DAY))

    def test_explicit_flag_wins(self):
        assert not is_income_transaction(txn_view("ACME CORP PAYROLL", -1500, DAY, is_income=False))
        assert is_income_transaction(txn_view("COFFEE SHOP", 20, DAY, is_income=True))

    def test_display_name_is_used(self):
        txn = txn_view("POS 4411", 9.99, DAY, display_name="Salary advance")
        assert is_income_transaction(txn)


class TestExclusions:

    def test_shopping_purchase_excluded(self):
        assert is_excluded_from_bills("UBER TRIP", None, 42)
        assert is_excluded_from_bills("WALMART SUPERCENTER", None, 85)

    def test_allowlist_wins_for_money_in(self):
        assert not is_excluded_from_bills("UBER", None, -310)

    def test_excluded_category(self):
        assert is_excluded_from_bills("Local Cafe", "FOOD_AND_DRINK", 5)

    def test_bill_not_excluded(self):
        assert not is_excluded_from_bills("NETFLIX.COM", None, 15.99)

    def test_transfer_detection(self):
        assert is_transfer("transfer")
        assert is_transfer("Online Transfer to Savings")
        assert is_transfer("Anything", "TRANSFER_OUT")
        assert not is_transfer("NETFLIX.COM")


class TestBillType:

    def test_subscription(self):
        assert classify_bill_type("Netflix") == "subscription"

    def test_utility(self):
        assert classify_bill_type("City Water Dept") == "utility"

    def test_income(self):
        assert classify_bill_type("ACME CORP PAYROLL", is_income=True) == "income"

    def test_fallback(self):
        assert classify_bill_type("Bobs Lawn Care") == "bill"
