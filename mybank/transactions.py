"""
Transaction Processing Module

Deposits, withdrawals and transfers between branch accounts. Every balance
change is a single conditional store update, so a debit can never leave a
negative balance even under concurrent requests.
"""

from decimal import Decimal
from dataclasses import dataclass

from .accounts import Account
from .errors import (
    AccountNotFoundError, BankError, InsufficientFundsError,
    InvalidAmountError, TransferFailedError
)
from .storage import AccountStore, AccountKey, AdjustOutcome
from .logging_config import get_logger, log_action


WITHDRAWAL_FEE = Decimal("1")
TRANSFER_FEE = Decimal("8")


@dataclass
class WithdrawalReceipt:
    """Account after the debit and the fee actually charged"""
    account: Account
    fee: Decimal


@dataclass
class TransferReceipt:
    """Both accounts after a transfer and the fee charged to the source"""
    debited: Account
    credited: Account
    amount: Decimal
    fee: Decimal

    @property
    def total_debited(self) -> Decimal:
        return self.amount + self.fee


class TransactionEngine:
    """
    Applies deposits, withdrawals and transfers to the account store
    """

    def __init__(
        self,
        storage: AccountStore,
        withdrawal_fee: Decimal = WITHDRAWAL_FEE,
        transfer_fee: Decimal = TRANSFER_FEE
    ):
        self.storage = storage
        self.withdrawal_fee = withdrawal_fee
        self.transfer_fee = transfer_fee
        self.logger = get_logger("mybank.transactions")

    @staticmethod
    def _validate_amount(amount: Decimal) -> Decimal:
        if not isinstance(amount, Decimal):
            amount = Decimal(str(amount))
        if amount < Decimal("0"):
            raise InvalidAmountError(f"Invalid amount: {amount}")
        return amount

    def deposit(self, branch: int, number: int, amount: Decimal) -> Account:
        """
        Credit an account.

        Args:
            branch: Branch of the account
            number: Account number within the branch
            amount: Non-negative amount to credit

        Returns:
            The account after the credit

        Raises:
            InvalidAmountError: If amount is negative
            AccountNotFoundError: If no account exists at (branch, number)
        """
        amount = self._validate_amount(amount)

        adjustment = self.storage.conditional_adjust_balance(AccountKey(branch, number), amount)
        if adjustment.outcome == AdjustOutcome.NOT_FOUND:
            raise AccountNotFoundError(f"Account {number} in branch {branch} not found")

        account = Account.from_dict(adjustment.record)
        log_action(
            self.logger, "info", "Deposit applied",
            action="deposit", resource=f"account:{branch}/{number}",
            extra={"amount": str(amount), "balance": str(account.balance)}
        )
        return account

    def withdraw(self, branch: int, number: int, amount: Decimal,
                 charge_fee: bool = True) -> WithdrawalReceipt:
        """
        Debit an account, charging the withdrawal fee unless told otherwise.

        The sufficiency check and the debit are one conditional update:
        the balance is only decremented if it stays non-negative.

        Raises:
            InvalidAmountError: If amount is negative
            InsufficientFundsError: If amount + fee exceeds the balance
            AccountNotFoundError: If no account exists at (branch, number)
        """
        amount = self._validate_amount(amount)
        fee = self.withdrawal_fee if charge_fee else Decimal("0")
        total = amount + fee

        adjustment = self.storage.conditional_adjust_balance(
            AccountKey(branch, number), -total, min_resulting_balance=Decimal("0")
        )
        if adjustment.outcome == AdjustOutcome.NOT_FOUND:
            raise AccountNotFoundError(f"Account {number} in branch {branch} not found")
        if adjustment.outcome == AdjustOutcome.BELOW_MINIMUM:
            balance = adjustment.record["balance"]
            raise InsufficientFundsError(
                f"Insufficient funds: balance {balance}, requested {total}"
            )

        account = Account.from_dict(adjustment.record)
        log_action(
            self.logger, "info", "Withdrawal applied",
            action="withdraw", resource=f"account:{branch}/{number}",
            extra={"amount": str(amount), "fee": str(fee), "balance": str(account.balance)}
        )
        return WithdrawalReceipt(account=account, fee=fee)

    def transfer_fee_for(self, source: Account, destination: Account) -> Decimal:
        """Intra-branch transfers are free; inter-branch ones pay the transfer fee"""
        if source.branch == destination.branch:
            return Decimal("0")
        return self.transfer_fee

    def transfer(self, source: Account, destination: Account, amount: Decimal) -> TransferReceipt:
        """
        Move amount from source to destination.

        The source is debited amount + fee (fee folded into the withdrawal,
        no withdrawal fee of its own); the destination is credited amount.
        A credit failure leaves the source debited.

        Raises:
            TransferFailedError: If the amount is negative or either leg fails
        """
        try:
            amount = self._validate_amount(amount)
        except InvalidAmountError as e:
            raise TransferFailedError(f"Transfer failed: {e}") from e

        fee = self.transfer_fee_for(source, destination)

        try:
            debit = self.withdraw(source.branch, source.number, amount + fee, charge_fee=False)
        except BankError as e:
            raise TransferFailedError(f"Transfer failed: {e}") from e

        debited = debit.account
        try:
            credited = self.deposit(destination.branch, destination.number, amount)
        except BankError as e:
            log_action(
                self.logger, "error", "Transfer credit failed after debit",
                action="transfer", resource=f"account:{source.branch}/{source.number}",
                extra={
                    "destination": f"{destination.branch}/{destination.number}",
                    "amount": str(amount),
                    "fee": str(fee),
                    "debited_balance": str(debited.balance),
                }
            )
            raise TransferFailedError(f"Transfer failed: {e}", debited=debited) from e

        log_action(
            self.logger, "info", "Transfer applied",
            action="transfer", resource=f"account:{source.branch}/{source.number}",
            extra={
                "destination": f"{destination.branch}/{destination.number}",
                "amount": str(amount),
                "fee": str(fee),
            }
        )
        return TransferReceipt(debited=debited, credited=credited, amount=amount, fee=fee)
