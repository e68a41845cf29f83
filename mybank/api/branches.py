"""
Branch statistics, balance rankings and prime-branch promotion endpoints
"""

from fastapi import APIRouter, Depends

from .dependencies import BankingSystem, get_banking_system
from .schemas import account_view, ranking_view
from ..storage import SortOrder


router = APIRouter()


@router.get("/agencia/info/{agencia}")
async def branch_info(agencia: int, system: BankingSystem = Depends(get_banking_system)):
    """Account count, balance sum and balance average of a branch"""
    summary = system.reporter.branch_summary(agencia)
    return {
        "agencia": agencia,
        "totalClientes": summary.count,
        "SomatorioSaldosClientes": system.money(summary.total),
        "MediaSaldosCliente": system.money(summary.average),
    }


@router.get("/agencia/menores_saldos/{limit}")
async def lowest_balances(limit: int, system: BankingSystem = Depends(get_banking_system)):
    """Accounts with the lowest balances, ascending"""
    accounts = system.reporter.top_by_balance(limit, SortOrder.ASCENDING)
    return [ranking_view(account, system.money) for account in accounts]


@router.get("/agencia/maiores_saldos/{limit}")
async def highest_balances(limit: int, system: BankingSystem = Depends(get_banking_system)):
    """Accounts with the highest balances, descending, ties by name"""
    accounts = system.reporter.top_by_balance(limit, SortOrder.DESCENDING)
    return [ranking_view(account, system.money) for account in accounts]


@router.patch("/transferencia/clientes_prime")
async def promote_prime_clients(system: BankingSystem = Depends(get_banking_system)):
    """Move the top client of every branch into the prime branch"""
    promotion = system.promotion_workflow.promote_top_clients(system.config.prime_branch)
    return {
        "listaOriginal": [account_view(a, system.money, include_id=True) for a in promotion.original],
        "listaAtualizada": [account_view(a, system.money, include_id=True) for a in promotion.promoted],
        "resultado": promotion.result.to_dict(),
    }
