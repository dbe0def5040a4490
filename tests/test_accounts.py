"""
Test suite for accounts module

Tests the per-variant withdrawal policy, parameter validation and interest.
"""

import pytest
from decimal import Decimal
from datetime import date

from bank_ledger.accounts import Account, AccountKind, available_funds, balance_floor
from bank_ledger.errors import (
    InsufficientFunds, InvalidAccountParameters, InvalidAmount, UnsupportedOperation
)


def make_account(kind=AccountKind.STANDARD, balance="0.00", **kwargs):
    return Account(
        customer_id=1,
        account_number="TEST001",
        kind=kind,
        balance=Decimal(balance),
        date_opened=date(2024, 1, 1),
        **kwargs
    )


class TestAccount:
    """Test Account construction and validation"""

    def test_standard_account(self):
        account = make_account(balance="100")
        assert account.balance == Decimal('100.00')
        assert account.interest_rate is None
        assert account.overdraft_limit is None

    def test_kind_coerced_from_string(self):
        account = make_account(kind="savings", interest_rate=Decimal('2.5'))
        assert account.kind == AccountKind.SAVINGS

    def test_unknown_kind(self):
        with pytest.raises(InvalidAccountParameters, match="Unknown account kind"):
            make_account(kind="brokerage")

    def test_savings_defaults_rate_to_zero(self):
        account = make_account(kind=AccountKind.SAVINGS)
        assert account.interest_rate == Decimal('0')

    def test_checking_defaults_overdraft_to_zero(self):
        account = make_account(kind=AccountKind.CHECKING)
        assert account.overdraft_limit == Decimal('0.00')

    def test_negative_interest_rate_rejected(self):
        with pytest.raises(InvalidAccountParameters, match="Interest rate"):
            make_account(kind=AccountKind.SAVINGS, interest_rate=Decimal('-1'))

    def test_negative_overdraft_rejected(self):
        with pytest.raises(InvalidAccountParameters, match="Overdraft limit"):
            make_account(kind=AccountKind.CHECKING, overdraft_limit="-50")

    def test_oversized_parameters_rejected(self):
        with pytest.raises(InvalidAccountParameters):
            make_account(kind=AccountKind.SAVINGS, interest_rate="1e5000")
        with pytest.raises(InvalidAccountParameters):
            make_account(kind=AccountKind.CHECKING, overdraft_limit="1e5000")

    def test_parameters_must_match_kind(self):
        with pytest.raises(InvalidAccountParameters):
            make_account(kind=AccountKind.STANDARD, interest_rate=Decimal('1'))
        with pytest.raises(InvalidAccountParameters):
            make_account(kind=AccountKind.SAVINGS, overdraft_limit=Decimal('10'))
        with pytest.raises(InvalidAccountParameters):
            make_account(kind=AccountKind.CHECKING, interest_rate=Decimal('1'))

    def test_balance_below_floor_rejected(self):
        with pytest.raises(InvalidAccountParameters):
            make_account(balance="-0.01")
        with pytest.raises(InvalidAccountParameters):
            make_account(kind=AccountKind.CHECKING, balance="-100.01", overdraft_limit="100")

    def test_dict_round_trip(self):
        account = make_account(kind=AccountKind.CHECKING, balance="-20.00", overdraft_limit="50")
        account.id = 7
        restored = Account.from_dict(account.to_dict())
        assert restored == account


class TestWithdrawalPolicy:
    """Test available funds per account kind"""

    def test_standard_withdraw(self):
        """Standard 100.00, withdraw 50.00 leaves 50.00"""
        account = make_account(balance="100.00")
        assert account.withdraw(Decimal('50.00')) == Decimal('50.00')
        assert account.balance == Decimal('50.00')

    def test_standard_cannot_go_negative(self):
        account = make_account(balance="100.00")
        with pytest.raises(InsufficientFunds):
            account.withdraw(Decimal('100.01'))
        assert account.balance == Decimal('100.00')

    def test_standard_withdraw_entire_balance(self):
        account = make_account(balance="100.00")
        account.withdraw(Decimal('100.00'))
        assert account.balance == Decimal('0.00')

    def test_savings_cannot_go_negative(self):
        account = make_account(kind=AccountKind.SAVINGS, balance="10.00")
        with pytest.raises(InsufficientFunds):
            account.withdraw("10.01")

    def test_checking_uses_overdraft(self):
        """Checking 0.00 with limit 100.00, withdraw 80.00 reaches -80.00"""
        account = make_account(kind=AccountKind.CHECKING, overdraft_limit=Decimal('100.00'))
        account.withdraw(Decimal('80.00'))
        assert account.balance == Decimal('-80.00')

    def test_checking_overdraft_exceeded(self):
        """Checking -80.00 with limit 100.00 cannot withdraw 50.00"""
        account = make_account(
            kind=AccountKind.CHECKING, balance="-80.00", overdraft_limit=Decimal('100.00')
        )
        with pytest.raises(InsufficientFunds) as exc_info:
            account.withdraw(Decimal('50.00'))
        assert account.balance == Decimal('-80.00')
        assert exc_info.value.details["available"] == "20.00"

    def test_checking_down_to_exact_limit(self):
        account = make_account(
            kind=AccountKind.CHECKING, balance="-80.00", overdraft_limit=Decimal('100.00')
        )
        account.withdraw("20.00")
        assert account.balance == Decimal('-100.00')
        assert account.balance == balance_floor(account)

    def test_available_funds(self):
        assert available_funds(make_account(balance="25.00")) == Decimal('25.00')
        checking = make_account(kind=AccountKind.CHECKING, balance="25.00", overdraft_limit="75")
        assert available_funds(checking) == Decimal('100.00')

    def test_invalid_amounts(self):
        account = make_account(balance="100.00")
        for amount in (Decimal('0'), Decimal('-1'), "abc"):
            with pytest.raises(InvalidAmount):
                account.withdraw(amount)
            with pytest.raises(InvalidAmount):
                account.deposit(amount)
        assert account.balance == Decimal('100.00')

    def test_deposit(self):
        account = make_account(kind=AccountKind.CHECKING, balance="-40.00", overdraft_limit="50")
        assert account.deposit("40.005") == Decimal('0.01')

    def test_balance_grows_past_default_precision(self):
        account = make_account(balance="9" * 26)
        assert account.deposit("9" * 26) == Decimal(2 * (10 ** 26 - 1))
        assert account.deposit("0.01") == Decimal('199999999999999999999999998.01')
        assert account.withdraw("9" * 26) == Decimal('99999999999999999999999999.01')

    def test_huge_deposit(self):
        account = make_account(kind=AccountKind.CHECKING, overdraft_limit="1e30")
        assert account.deposit("1e30") == Decimal(10 ** 30)
        assert available_funds(account) == Decimal(2 * 10 ** 30)
        assert balance_floor(account) == Decimal(-(10 ** 30))


class TestInterest:
    """Test interest on savings accounts"""

    def test_interest_credit(self):
        account = make_account(kind=AccountKind.SAVINGS, balance="1000.00", interest_rate=Decimal('2.5'))
        interest = account.calculate_interest()
        assert interest == Decimal('25.00')
        assert account.balance == Decimal('1025.00')

    def test_interest_rounds_half_up(self):
        account = make_account(kind=AccountKind.SAVINGS, balance="10.10", interest_rate=Decimal('0.5'))
        # 10.10 * 0.5 / 100 = 0.0505
        assert account.calculate_interest() == Decimal('0.05')
        assert account.balance == Decimal('10.15')

    def test_zero_rate(self):
        account = make_account(kind=AccountKind.SAVINGS, balance="500.00")
        assert account.calculate_interest() == Decimal('0.00')
        assert account.balance == Decimal('500.00')

    def test_interest_only_for_savings(self):
        for kind in (AccountKind.STANDARD, AccountKind.CHECKING):
            account = make_account(kind=kind, balance="100.00")
            with pytest.raises(UnsupportedOperation):
                account.calculate_interest()

    def test_is_empty(self):
        assert make_account(balance="0.00").is_empty
        assert not make_account(balance="0.01").is_empty
