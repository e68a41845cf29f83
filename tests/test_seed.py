"""
Tests for the seed command
"""

import json
import random
import pytest
from decimal import Decimal

from mybank import seed
from mybank.accounts import AccountManager
from mybank.config import MyBankConfig
from mybank.storage import InMemoryStorage, SQLiteStorage


class TestLoadAccounts:
    """Test loading seed records"""

    def setup_method(self):
        """Set up test fixtures"""
        self.storage = InMemoryStorage()
        self.manager = AccountManager(self.storage)

    def test_parse_balance(self):
        assert seed.parse_balance(587) == Decimal("587")
        assert seed.parse_balance(10.5) == Decimal("10.5")
        assert seed.parse_balance("R$ 1.234,56") == Decimal("1234.56")

    def test_load_records(self):
        created = seed.load_accounts(self.manager, [
            {"agencia": 10, "conta": 1001, "name": "Ana Souza", "balance": 587},
            {"agencia": "25", "conta": "2001", "name": "Bruno Lima", "balance": "R$ 20,00"},
        ])
        assert len(created) == 2
        assert self.manager.get_balance(25, 2001).balance == Decimal("20")

    def test_duplicates_and_bad_balances_skipped(self):
        created = seed.load_accounts(self.manager, [
            {"agencia": 10, "conta": 1001, "name": "Ana Souza", "balance": 1},
            {"agencia": 10, "conta": 1001, "name": "Duplicate", "balance": 2},
            {"agencia": 10, "conta": 1002, "name": "Negative", "balance": -3},
        ])
        assert [a.name for a in created] == ["Ana Souza"]
        assert self.storage.count() == 1

    def test_generate_demo_accounts(self):
        created = seed.generate_demo_accounts(self.manager, 12, random.Random(7))
        assert len(created) == 12
        assert self.storage.count() == 12
        assert set(a.branch for a in created) <= set(seed.DEMO_BRANCHES)
        assert all(a.balance >= 0 for a in created)


class TestSeedCommand:
    """Test the command-line entry point"""

    def test_file_and_demo_into_sqlite(self, tmp_path, monkeypatch):
        db_path = tmp_path / "seed.db"
        data_file = tmp_path / "accounts.json"
        data_file.write_text(json.dumps([
            {"agencia": 10, "conta": 1001, "name": "Ana Souza", "balance": 100},
        ]), encoding="utf-8")

        config = MyBankConfig(
            storage_backend="sqlite", database_path=str(db_path),
            log_level="WARNING", _env_file=None
        )
        monkeypatch.setattr(seed, "get_config", lambda: config)

        assert seed.main([str(data_file), "--demo", "3", "--seed", "1"]) == 0
        with SQLiteStorage(db_path) as storage:
            assert storage.count() == 4

        assert seed.main([str(data_file), "--reset"]) == 0
        with SQLiteStorage(db_path) as storage:
            assert storage.count() == 1

    def test_nothing_to_load(self):
        with pytest.raises(SystemExit):
            seed.main([])
