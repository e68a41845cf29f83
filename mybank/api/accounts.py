"""
Account query and removal endpoints
"""

from fastapi import APIRouter, Depends

from .dependencies import BankingSystem, get_banking_system
from .schemas import AccountRefRequest, account_view, balance_view


router = APIRouter()


@router.get("/accounts")
async def list_accounts(system: BankingSystem = Depends(get_banking_system)):
    """List every account"""
    accounts = system.account_manager.list_accounts()
    return [account_view(account, system.money, include_id=True) for account in accounts]


@router.get("/accounts/{conta}")
async def find_account(conta: int, system: BankingSystem = Depends(get_banking_system)):
    """Find an account by number alone (first match across branches)"""
    account = system.account_manager.find_account(conta)
    return account_view(account, system.money, include_id=True)


@router.get("/saldo/{agencia}/{conta}")
async def get_balance(agencia: int, conta: int, system: BankingSystem = Depends(get_banking_system)):
    """Current balance of an account"""
    account = system.account_manager.get_balance(agencia, conta)
    return balance_view(account, system.money)


@router.delete("/excluir/conta")
async def remove_account(request: AccountRefRequest, system: BankingSystem = Depends(get_banking_system)):
    """Remove an account and report the branch's remaining accounts"""
    receipt = system.account_manager.remove_account(request.branch, request.number)
    return {
        "detalhes": {
            "mensagem": "Conta excluída com sucesso!",
            "totalContasAgenciaInicio": receipt.count_before,
            "totalContasAgenciaFinal": receipt.count_after,
            "conta": request.number,
            "agencia": request.branch,
            "nome": receipt.account.name,
            "saldo": system.money(receipt.account.balance),
        },
        "contasAtivasAgencia": receipt.count_after,
    }
