"""
Test suite for deposits, withdrawals and transfers

Covers fee rules, insufficient-funds handling and transfer failure modes.
"""

import pytest
from decimal import Decimal

from mybank.storage import InMemoryStorage, AccountKey
from mybank.accounts import AccountManager
from mybank.errors import (
    AccountNotFoundError, InsufficientFundsError, InvalidAmountError,
    TransferFailedError
)
from mybank.transactions import TransactionEngine, WITHDRAWAL_FEE, TRANSFER_FEE


class TestDepositWithdraw:
    """Test single-account balance operations"""

    def setup_method(self):
        """Set up test fixtures"""
        self.storage = InMemoryStorage()
        self.manager = AccountManager(self.storage)
        self.engine = TransactionEngine(self.storage)
        self.manager.create_account(1, 100, "Ana Souza", Decimal("100"))

    def test_default_fees(self):
        assert WITHDRAWAL_FEE == Decimal("1")
        assert TRANSFER_FEE == Decimal("8")

    def test_deposit(self):
        account = self.engine.deposit(1, 100, Decimal("50"))
        assert account.balance == Decimal("150")

    def test_deposit_then_withdraw_charges_fee(self):
        self.engine.deposit(1, 100, Decimal("50"))
        receipt = self.engine.withdraw(1, 100, Decimal("30"))
        assert receipt.fee == Decimal("1")
        assert receipt.account.balance == Decimal("119")

    def test_deposit_zero(self):
        account = self.engine.deposit(1, 100, Decimal("0"))
        assert account.balance == Decimal("100")

    def test_deposit_negative(self):
        with pytest.raises(InvalidAmountError):
            self.engine.deposit(1, 100, Decimal("-1"))
        assert self.manager.get_balance(1, 100).balance == Decimal("100")

    def test_deposit_missing_account(self):
        with pytest.raises(AccountNotFoundError):
            self.engine.deposit(1, 999, Decimal("10"))

    def test_withdraw_insufficient_funds(self):
        with pytest.raises(InsufficientFundsError, match="Insufficient funds"):
            self.engine.withdraw(1, 100, Decimal("100"))
        assert self.manager.get_balance(1, 100).balance == Decimal("100")

    def test_withdraw_exact_balance_with_fee(self):
        receipt = self.engine.withdraw(1, 100, Decimal("99"))
        assert receipt.account.balance == Decimal("0")

    def test_withdraw_without_fee_restores_after_deposit(self):
        self.engine.deposit(1, 100, Decimal("25.75"))
        receipt = self.engine.withdraw(1, 100, Decimal("25.75"), charge_fee=False)
        assert receipt.fee == Decimal("0")
        assert receipt.account.balance == Decimal("100")

    def test_withdraw_negative(self):
        with pytest.raises(InvalidAmountError):
            self.engine.withdraw(1, 100, Decimal("-5"))

    def test_withdraw_missing_account(self):
        with pytest.raises(AccountNotFoundError):
            self.engine.withdraw(2, 100, Decimal("1"))

    def test_configured_fee(self):
        engine = TransactionEngine(self.storage, withdrawal_fee=Decimal("2.50"))
        receipt = engine.withdraw(1, 100, Decimal("10"))
        assert receipt.account.balance == Decimal("87.50")


class TestTransfer:
    """Test transfers between accounts"""

    def setup_method(self):
        """Set up test fixtures"""
        self.storage = InMemoryStorage()
        self.manager = AccountManager(self.storage)
        self.engine = TransactionEngine(self.storage)
        self.source = self.manager.create_account(1, 100, "Ana Souza", Decimal("119"))
        self.other_branch = self.manager.create_account(2, 200, "Bruno Lima", Decimal("20"))
        self.same_branch = self.manager.create_account(1, 101, "Carla Dias", Decimal("0"))

    def test_inter_branch_transfer_charges_fee(self):
        receipt = self.engine.transfer(self.source, self.other_branch, Decimal("50"))
        assert receipt.fee == Decimal("8")
        assert receipt.total_debited == Decimal("58")
        assert receipt.debited.balance == Decimal("61")
        assert receipt.credited.balance == Decimal("70")

    def test_intra_branch_transfer_is_free(self):
        receipt = self.engine.transfer(self.source, self.same_branch, Decimal("50"))
        assert receipt.fee == Decimal("0")
        assert receipt.debited.balance == Decimal("69")
        assert receipt.credited.balance == Decimal("50")

    def test_transfer_conserves_money_minus_fee(self):
        before = self.source.balance + self.other_branch.balance
        receipt = self.engine.transfer(self.source, self.other_branch, Decimal("10"))
        after = receipt.debited.balance + receipt.credited.balance
        assert before - after == receipt.fee

    def test_insufficient_funds_fails_without_changes(self):
        with pytest.raises(TransferFailedError) as exc_info:
            self.engine.transfer(self.source, self.other_branch, Decimal("112"))
        assert isinstance(exc_info.value.__cause__, InsufficientFundsError)
        assert exc_info.value.debited is None
        assert self.manager.get_balance(1, 100).balance == Decimal("119")
        assert self.manager.get_balance(2, 200).balance == Decimal("20")

    def test_negative_amount_rejected_before_any_leg(self):
        with pytest.raises(TransferFailedError):
            self.engine.transfer(self.source, self.other_branch, Decimal("-5"))
        assert self.manager.get_balance(1, 100).balance == Decimal("119")

    def test_credit_failure_leaves_source_debited(self):
        self.storage.find_one_and_remove(AccountKey(2, 200))

        with pytest.raises(TransferFailedError) as exc_info:
            self.engine.transfer(self.source, self.other_branch, Decimal("50"))

        assert exc_info.value.debited is not None
        assert exc_info.value.debited.balance == Decimal("61")
        assert self.manager.get_balance(1, 100).balance == Decimal("61")
