"""
Test suite for prime-branch client promotion
"""

import pytest
from decimal import Decimal

from mybank.storage import InMemoryStorage
from mybank.accounts import AccountManager
from mybank.errors import PromotionFailedError
from mybank.reporting import BranchReporter
from mybank.workflows import ClientPromotionWorkflow, PRIME_BRANCH


class TestClientPromotion:
    """Test moving each branch's top client to the prime branch"""

    def setup_method(self):
        """Set up test fixtures"""
        self.storage = InMemoryStorage()
        self.manager = AccountManager(self.storage)
        self.reporter = BranchReporter(self.storage)
        self.workflow = ClientPromotionWorkflow(self.storage, self.reporter)

    def seed(self):
        self.manager.create_account(10, 1, "Ana Souza", Decimal("500"))
        self.manager.create_account(10, 2, "Bruno Lima", Decimal("900"))
        self.manager.create_account(25, 1, "Carla Dias", Decimal("300"))
        self.manager.create_account(25, 2, "Aline Costa", Decimal("300"))
        self.manager.create_account(99, 7, "Prime Client", Decimal("10000"))

    def test_select_top_clients_skips_prime_branch(self):
        self.seed()
        clients = self.workflow.select_top_clients()
        assert [(c.branch, c.name) for c in clients] == [(10, "Bruno Lima"), (25, "Aline Costa")]

    def test_promote_moves_one_account_per_branch(self):
        self.seed()
        promotion = self.workflow.promote_top_clients()

        assert PRIME_BRANCH == 99
        assert [a.branch for a in promotion.original] == [10, 25]
        assert all(a.branch == 99 for a in promotion.promoted)
        assert [a.id for a in promotion.promoted] == [a.id for a in promotion.original]
        assert promotion.result.matched_count == 2
        assert promotion.result.modified_count == 2

        assert self.reporter.count_accounts({"branch": 99}) == 3
        assert self.reporter.count_accounts({"branch": 10}) == 1
        assert self.reporter.count_accounts({"branch": 25}) == 1

    def test_promotion_keeps_balances(self):
        self.seed()
        self.workflow.promote_top_clients()
        moved = self.manager.find_account(2, branch=99)
        assert moved.name == "Bruno Lima"
        assert moved.balance == Decimal("900")

    def test_custom_prime_branch(self):
        self.seed()
        promotion = self.workflow.promote_top_clients(prime_branch=10)
        assert {a.branch for a in promotion.original} == {25, 99}
        assert self.reporter.count_accounts({"branch": 10}) == 4

    def test_nothing_to_promote(self):
        self.manager.create_account(99, 7, "Prime Client", Decimal("10000"))
        with pytest.raises(PromotionFailedError):
            self.workflow.promote_top_clients()

    def test_empty_store(self):
        with pytest.raises(PromotionFailedError):
            self.workflow.promote_top_clients()
