"""
Branch Reporting Module

Balance statistics per branch, branch enumeration and balance rankings.
"""

from decimal import Decimal
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .accounts import Account
from .errors import InvalidLimitError
from .storage import AccountStore, SortOrder


@dataclass
class BranchSummary:
    """Account count, balance total and balance average of one branch"""
    branch: int
    count: int
    total: Decimal
    average: Decimal


class BranchReporter:
    """
    Read-only aggregations over the account store
    """

    def __init__(self, storage: AccountStore):
        self.storage = storage

    def average_balance(self, branch: int) -> Decimal:
        """Mean balance of the branch; zero when the branch has no accounts"""
        stats = self.storage.balance_stats({"branch": branch})
        return stats.average if stats else Decimal("0")

    def sum_balance(self, branch: int) -> Decimal:
        """Total balance of the branch; zero when the branch has no accounts"""
        stats = self.storage.balance_stats({"branch": branch})
        return stats.total if stats else Decimal("0")

    def count_accounts(self, filters: Optional[Dict[str, Any]] = None) -> int:
        """Number of accounts matching filters"""
        return self.storage.count(filters or {})

    def branch_summary(self, branch: int) -> BranchSummary:
        """Count, sum and average for a branch in one pass"""
        stats = self.storage.balance_stats({"branch": branch})
        if not stats:
            return BranchSummary(branch=branch, count=0, total=Decimal("0"), average=Decimal("0"))
        return BranchSummary(branch=branch, count=stats.count, total=stats.total, average=stats.average)

    def distinct_branches(self) -> List[int]:
        """Branches that currently hold at least one account"""
        return self.storage.distinct("branch")

    def top_by_balance(
        self,
        limit: int,
        order: SortOrder = SortOrder.DESCENDING,
        include_id: bool = False,
        filters: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """
        Rank accounts by balance.

        Ascending order sorts on balance alone; descending order breaks
        ties by owner name, ascending.

        Args:
            limit: Maximum number of accounts returned (>= 1)
            order: Balance sort direction
            include_id: Keep the storage id in each projected account
            filters: Optional account filter, e.g. {"branch": 10}

        Returns:
            Projected accounts: branch, number, name, balance (and id)

        Raises:
            InvalidLimitError: If limit < 1
        """
        if limit < 1:
            raise InvalidLimitError(f"Result limit must be greater than zero, got {limit}")

        if order == SortOrder.DESCENDING:
            sort = [("balance", SortOrder.DESCENDING), ("name", SortOrder.ASCENDING)]
        else:
            sort = [("balance", SortOrder.ASCENDING)]

        records = self.storage.find(filters or {}, sort=sort, limit=limit)
        return [Account.from_dict(data).project(include_id) for data in records]
