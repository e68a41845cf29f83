"""
Banking system wiring and request dependencies
"""

from decimal import Decimal
from typing import Optional, Union

from fastapi import Request

from ..accounts import AccountManager
from ..config import MyBankConfig, get_config
from ..currency import Currency, format_money
from ..reporting import BranchReporter
from ..storage import AccountStore, create_storage
from ..transactions import TransactionEngine
from ..workflows import ClientPromotionWorkflow


class BankingSystem:
    """Account components built around one explicitly owned store handle"""

    def __init__(self, storage: AccountStore, config: Optional[MyBankConfig] = None):
        self.config = config or get_config()
        self.storage = storage
        self.currency = Currency[self.config.currency]

        self.account_manager = AccountManager(self.storage)
        self.transaction_engine = TransactionEngine(
            self.storage,
            withdrawal_fee=self.config.withdrawal_fee_amount,
            transfer_fee=self.config.transfer_fee_amount
        )
        self.reporter = BranchReporter(self.storage)
        self.promotion_workflow = ClientPromotionWorkflow(self.storage, self.reporter)

    @classmethod
    def from_config(cls, config: Optional[MyBankConfig] = None) -> 'BankingSystem':
        """Open the configured store and build the system around it"""
        config = config or get_config()
        storage = create_storage(config.storage_backend, config.database_path)
        return cls(storage, config)

    def money(self, value: Union[Decimal, int, None]) -> Optional[str]:
        """Render an amount in the configured display currency"""
        return format_money(value, self.currency)

    def close(self) -> None:
        self.storage.close()


# Dependency to get banking system
def get_banking_system(request: Request) -> BankingSystem:
    return request.app.state.banking_system
