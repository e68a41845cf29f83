"""
Client Promotion Workflow Module

Moves the highest-balance client of every branch into the prime branch.
Candidates are read branch by branch; the reassignment is a single batch
write.
"""

from dataclasses import dataclass, replace
from typing import List

from .accounts import Account
from .errors import PromotionFailedError
from .reporting import BranchReporter
from .storage import AccountStore, BulkWriteResult, SortOrder, UpdateOne
from .logging_config import get_logger, log_action


PRIME_BRANCH = 99


@dataclass
class PromotionResult:
    """Accounts before and after promotion plus the batch summary"""
    original: List[Account]
    promoted: List[Account]
    result: BulkWriteResult


class ClientPromotionWorkflow:
    """
    Reassigns each non-prime branch's top client to the prime branch
    """

    def __init__(self, storage: AccountStore, reporter: BranchReporter):
        self.storage = storage
        self.reporter = reporter
        self.logger = get_logger("mybank.workflows")

    def select_top_clients(self, prime_branch: int = PRIME_BRANCH) -> List[Account]:
        """Highest-balance account (name breaks ties) of every branch except the prime one"""
        branches = [b for b in self.reporter.distinct_branches() if b != prime_branch]

        clients = []
        for branch in branches:
            top = self.reporter.top_by_balance(
                1, SortOrder.DESCENDING, include_id=True, filters={"branch": branch}
            )
            if not top:
                self.logger.warning(f"Branch {branch} has no accounts left, skipping")
                continue
            clients.append(Account.from_dict(top[0]))
        return clients

    def promote_top_clients(self, prime_branch: int = PRIME_BRANCH) -> PromotionResult:
        """
        Move the top client of every other branch into prime_branch.

        Returns:
            PromotionResult with the pre-move snapshot, the moved accounts
            (branch == prime_branch) and the batch write summary

        Raises:
            PromotionFailedError: If the batch write reports no result
        """
        original = self.select_top_clients(prime_branch)
        promoted = [replace(account, branch=prime_branch) for account in original]

        operations = [UpdateOne(account.id, {"branch": prime_branch}) for account in original]
        result = self.storage.bulk_write(operations)
        if not result:
            raise PromotionFailedError(
                f"Could not move clients to branch {prime_branch}: batch update returned no result"
            )

        log_action(
            self.logger, "info", "Top clients promoted",
            action="promote_top_clients", resource=f"branch:{prime_branch}",
            extra={
                "accounts": [f"{a.branch}/{a.number}" for a in original],
                "matched": result.matched_count,
                "modified": result.modified_count,
            }
        )
        return PromotionResult(original=original, promoted=promoted, result=result)
