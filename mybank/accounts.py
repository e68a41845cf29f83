"""
Account Management Module

The Account record and the manager for account lookups, listing and
removal. Accounts are grouped by branch ("agência") and addressed by
(branch, number); the storage id is only used to target bulk updates.
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import uuid

from .errors import AccountNotFoundError
from .storage import AccountStore, AccountKey
from .logging_config import get_logger, log_action


@dataclass
class Account:
    """
    Bank account; balance must never go negative
    """
    id: str
    branch: int
    number: int
    name: str
    balance: Decimal
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not isinstance(self.balance, Decimal):
            self.balance = Decimal(str(self.balance))
        if self.balance < Decimal("0"):
            raise ValueError(f"Account balance cannot be negative: {self.balance}")

    @property
    def key(self) -> AccountKey:
        return AccountKey(self.branch, self.number)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        now = datetime.now(timezone.utc)
        return {
            "id": self.id,
            "branch": self.branch,
            "number": self.number,
            "name": self.name,
            "balance": str(self.balance),
            "created_at": (self.created_at or now).isoformat(),
            "updated_at": (self.updated_at or now).isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Account':
        """Create instance from a storage record"""
        created_at = data.get("created_at")
        updated_at = data.get("updated_at")
        return cls(
            id=data["id"],
            branch=int(data["branch"]),
            number=int(data["number"]),
            name=data["name"],
            balance=Decimal(data["balance"]),
            created_at=datetime.fromisoformat(created_at) if created_at else None,
            updated_at=datetime.fromisoformat(updated_at) if updated_at else None,
        )

    def project(self, include_id: bool = False) -> Dict[str, Any]:
        """Public projection: branch, number, name, balance (and id on request)"""
        projected: Dict[str, Any] = {}
        if include_id:
            projected["id"] = self.id
        projected.update({
            "branch": self.branch,
            "number": self.number,
            "name": self.name,
            "balance": self.balance,
        })
        return projected


@dataclass
class RemovalReceipt:
    """Removed account plus branch account counts around the removal"""
    account: Account
    count_before: int
    count_after: int


class AccountManager:
    """
    Account lookups, listing, creation and removal
    """

    def __init__(self, storage: AccountStore):
        self.storage = storage
        self.logger = get_logger("mybank.accounts")

    def create_account(self, branch: int, number: int, name: str,
                       balance: Decimal = Decimal("0")) -> Account:
        """
        Register an account record (used by the seed command; there is
        no account-creation endpoint)

        Raises:
            ValueError: If the balance is negative or (branch, number) is taken
        """
        now = datetime.now(timezone.utc)
        account = Account(
            id=str(uuid.uuid4()),
            branch=branch,
            number=number,
            name=name,
            balance=balance,
            created_at=now,
            updated_at=now,
        )
        self.storage.insert(account.to_dict())

        log_action(
            self.logger, "info", "Account created",
            action="create_account", resource=f"account:{branch}/{number}",
            extra={"name": name, "balance": str(account.balance)}
        )
        return account

    def list_accounts(self) -> List[Account]:
        """Every account in store order"""
        return [Account.from_dict(data) for data in self.storage.find({})]

    def find_account(self, number: int, branch: Optional[int] = None) -> Account:
        """
        Find an account by number, narrowed by branch when one is given.

        Without a branch the first account carrying that number is returned;
        numbers are only guaranteed unique within a branch.

        Raises:
            AccountNotFoundError: If no account matches
        """
        filters: Dict[str, Any] = {"number": number}
        if branch is not None:
            filters["branch"] = branch

        data = self.storage.find_one(filters)
        if not data:
            where = f" in branch {branch}" if branch is not None else ""
            raise AccountNotFoundError(f"Account {number}{where} not found")
        return Account.from_dict(data)

    def get_balance(self, branch: int, number: int) -> Account:
        """Account snapshot used for balance queries"""
        return self.find_account(number, branch)

    def remove_account(self, branch: int, number: int) -> RemovalReceipt:
        """
        Remove an account, reporting branch counts before and after.

        Raises:
            AccountNotFoundError: If the branch is empty or the account does not exist
        """
        count_before = self.storage.count({"branch": branch})
        if count_before == 0:
            raise AccountNotFoundError(f"No accounts found in branch {branch}")

        data = self.storage.find_one_and_remove(AccountKey(branch, number))
        if not data:
            raise AccountNotFoundError(f"Account {number} in branch {branch} not found")

        count_after = self.storage.count({"branch": branch})
        account = Account.from_dict(data)

        log_action(
            self.logger, "info", "Account removed",
            action="remove_account", resource=f"account:{branch}/{number}",
            extra={
                "balance": str(account.balance),
                "count_before": count_before,
                "count_after": count_after,
            }
        )
        return RemovalReceipt(account=account, count_before=count_before, count_after=count_after)
