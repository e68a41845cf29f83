#!/usr/bin/env python3
"""Seed script for the mybank account store

Loads accounts from a JSON file and/or generates random demo accounts
spread over a handful of branches. A JSON file holds a list of objects:

    [{"agencia": 10, "conta": 1001, "name": "Maria Silva", "balance": 587}, ...]

Balances may be numbers or display strings such as "R$ 1.234,56".

Run with: python -m mybank.seed accounts.json --reset
          python -m mybank.seed --demo 50
"""

import argparse
import json
import random
import sys
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .accounts import Account, AccountManager
from .config import get_config
from .currency import decimal_from_string, quantize_amount
from .logging_config import get_logger, setup_logging
from .storage import create_storage


DEMO_BRANCHES = [10, 25, 33, 47]

FIRST_NAMES = [
    'Maria', 'José', 'Ana', 'João', 'Francisca', 'Antônio', 'Adriana', 'Carlos',
    'Juliana', 'Paulo', 'Márcia', 'Pedro', 'Fernanda', 'Lucas', 'Patrícia', 'Luiz',
    'Aline', 'Marcos', 'Sandra', 'Rafael', 'Camila', 'Gabriel', 'Letícia', 'Bruno'
]

LAST_NAMES = [
    'Silva', 'Santos', 'Oliveira', 'Souza', 'Rodrigues', 'Ferreira', 'Alves',
    'Pereira', 'Lima', 'Gomes', 'Costa', 'Ribeiro', 'Martins', 'Carvalho',
    'Almeida', 'Lopes', 'Soares', 'Fernandes', 'Vieira', 'Barbosa'
]

logger = get_logger("mybank.seed")


def parse_balance(value: Any) -> Decimal:
    """Balance from a seed record: number, numeric string or display string"""
    if isinstance(value, str):
        return decimal_from_string(value)
    return Decimal(str(value))


def load_accounts(manager: AccountManager, records: Iterable[Dict[str, Any]]) -> List[Account]:
    """
    Create an account per seed record.

    Records whose (branch, number) is already taken are skipped with a warning.
    """
    created = []
    for data in records:
        try:
            account = manager.create_account(
                branch=int(data["agencia"]),
                number=int(data["conta"]),
                name=data["name"],
                balance=parse_balance(data.get("balance", 0)),
            )
        except ValueError as e:
            logger.warning(f"Skipping seed record {data}: {e}")
            continue
        created.append(account)
    return created


def generate_demo_accounts(manager: AccountManager, count: int,
                           rng: Optional[random.Random] = None) -> List[Account]:
    """Create count random accounts spread over DEMO_BRANCHES"""
    rng = rng or random.Random()
    created = []
    next_number = {branch: 1001 for branch in DEMO_BRANCHES}

    while len(created) < count:
        branch = rng.choice(DEMO_BRANCHES)
        number = next_number[branch]
        next_number[branch] += 1

        name = f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"
        balance = quantize_amount(Decimal(rng.randint(0, 500000)) / 100)
        try:
            created.append(manager.create_account(branch, number, name, balance))
        except ValueError:
            # Number already used by an earlier seed run
            continue
    return created


def main(argv: Optional[List[str]] = None) -> int:
    """Main seeding function"""
    parser = argparse.ArgumentParser(
        prog="python -m mybank.seed",
        description="Populate the mybank account store"
    )
    parser.add_argument("file", nargs="?", type=Path,
                        help="JSON file with a list of account records")
    parser.add_argument("--demo", type=int, default=0, metavar="N",
                        help="Also generate N random demo accounts")
    parser.add_argument("--reset", action="store_true",
                        help="Remove every existing account first")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for reproducible demo data")
    args = parser.parse_args(argv)

    if args.file is None and args.demo <= 0:
        parser.error("nothing to load: give a JSON file and/or --demo N")

    config = get_config()
    setup_logging(config.log_level, "text", config.log_file)

    with create_storage(config.storage_backend, config.database_path) as storage:
        if args.reset:
            storage.clear()
            logger.info("Account store cleared")

        manager = AccountManager(storage)
        total = 0

        if args.file is not None:
            with open(args.file, encoding="utf-8") as f:
                records = json.load(f)
            total += len(load_accounts(manager, records))

        if args.demo > 0:
            total += len(generate_demo_accounts(manager, args.demo, random.Random(args.seed)))

        logger.info(f"Seeded {total} accounts; store now holds {storage.count()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
