"""
Error Taxonomy Module

Typed exceptions raised by the account engines. The API layer maps
AccountNotFoundError to HTTP 404 and every other BankError to HTTP 500.
"""

from typing import Optional, Any


class BankError(Exception):
    """Base exception for all banking errors"""
    pass


class InvalidAmountError(BankError):
    """Raised when a negative amount is supplied"""
    pass


class AccountNotFoundError(BankError):
    """Raised when no account matches the given branch/number"""
    pass


class InsufficientFundsError(BankError):
    """Raised when a debit would leave a negative balance"""
    pass


class InvalidLimitError(BankError):
    """Raised when a non-positive result limit is requested"""
    pass


class TransferFailedError(BankError):
    """
    Raised when either leg of a transfer fails.

    The source leg is not compensated: when the credit leg fails the source
    account stays debited and its post-debit snapshot is kept in `debited`.
    """

    def __init__(self, message: str, debited: Optional[Any] = None):
        super().__init__(message)
        self.debited = debited


class PromotionFailedError(BankError):
    """Raised when the prime-branch batch update reports no result"""
    pass
