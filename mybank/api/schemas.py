"""
Pydantic schemas for API requests and response shaping

Request bodies keep the Portuguese field names clients send
(agencia, conta, valor, ...); Python code uses the English names.
"""

from decimal import Decimal
from typing import Any, Callable, Dict, Optional
from pydantic import BaseModel, Field

from ..accounts import Account


# Up to 9 999 999 999 999,99 per operation, whole cents only
AMOUNT_MAX_DIGITS = 15
AMOUNT_DECIMAL_PLACES = 2


class AccountRefRequest(BaseModel):
    branch: int = Field(..., alias="agencia", description="Branch number")
    number: int = Field(..., alias="conta", description="Account number")

    class Config:
        populate_by_name = True


class AccountOperationRequest(AccountRefRequest):
    amount: Decimal = Field(
        ..., alias="valor", description="Amount to deposit or withdraw",
        max_digits=AMOUNT_MAX_DIGITS, decimal_places=AMOUNT_DECIMAL_PLACES
    )


class TransferRequest(BaseModel):
    source_number: int = Field(..., alias="contaOrigem", description="Source account number")
    destination_number: int = Field(..., alias="contaDestino", description="Destination account number")
    amount: Decimal = Field(
        ..., alias="valor", description="Amount to transfer",
        max_digits=AMOUNT_MAX_DIGITS, decimal_places=AMOUNT_DECIMAL_PLACES
    )

    class Config:
        populate_by_name = True


MoneyRenderer = Callable[[Optional[Decimal]], Optional[str]]


def account_view(account: Account, money: MoneyRenderer, include_id: bool = False) -> Dict[str, Any]:
    """Account as returned to clients, balance rendered as currency"""
    view: Dict[str, Any] = {}
    if include_id:
        view["id"] = account.id
    view.update({
        "agencia": account.branch,
        "conta": account.number,
        "nome": account.name,
        "saldo": money(account.balance),
    })
    return view


def balance_view(account: Account, money: MoneyRenderer) -> Dict[str, Any]:
    """Owner and current balance of an account"""
    return {
        "nome": account.name,
        "conta": account.number,
        "agencia": account.branch,
        "saldoAtual": money(account.balance),
    }


def ranking_view(projected: Dict[str, Any], money: MoneyRenderer) -> Dict[str, Any]:
    """A projected account from a balance ranking"""
    return {
        "agencia": projected["branch"],
        "conta": projected["number"],
        "nome": projected["name"],
        "saldo": money(projected["balance"]),
    }
