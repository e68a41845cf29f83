"""
Deposit, withdrawal and transfer endpoints
"""

from fastapi import APIRouter, Depends

from .dependencies import BankingSystem, get_banking_system
from .schemas import AccountOperationRequest, TransferRequest, balance_view


router = APIRouter()


@router.patch("/deposito")
async def deposit(request: AccountOperationRequest, system: BankingSystem = Depends(get_banking_system)):
    """Make a deposit"""
    account = system.transaction_engine.deposit(request.branch, request.number, request.amount)
    return {
        "mensagem": "Depósito realizado com sucesso!",
        "valorDeposito": system.money(request.amount),
        "saldoAnterior": system.money(account.balance - request.amount),
        "conta": account.number,
        "agencia": account.branch,
        "nome": account.name,
        "saldoAtual": system.money(account.balance),
    }


@router.patch("/saque")
async def withdraw(request: AccountOperationRequest, system: BankingSystem = Depends(get_banking_system)):
    """Make a withdrawal; the withdrawal fee is charged"""
    receipt = system.transaction_engine.withdraw(request.branch, request.number, request.amount)
    account = receipt.account
    return {
        "mensagem": "Saque realizado com sucesso!",
        "conta": account.number,
        "agencia": account.branch,
        "nome": account.name,
        "saldoAnterior": system.money(account.balance + request.amount + receipt.fee),
        "valorSaque": system.money(request.amount),
        "tarifa": system.money(receipt.fee),
        "saldoAtual": system.money(account.balance),
    }


@router.patch("/transferencia")
async def transfer(request: TransferRequest, system: BankingSystem = Depends(get_banking_system)):
    """Transfer between two accounts identified by number"""
    source = system.account_manager.find_account(request.source_number)
    destination = system.account_manager.find_account(request.destination_number)

    receipt = system.transaction_engine.transfer(source, destination, request.amount)
    return {
        "detalhes": {
            "mensagem": "Transferência realizada com sucesso!",
            "contaDestino": balance_view(receipt.credited, system.money),
            "valorTransferencia": system.money(receipt.amount),
            "tarifa": system.money(receipt.fee),
            "totalDebitadoOrigem": system.money(receipt.total_debited),
            "totalCreditadoDestino": system.money(receipt.amount),
        },
        "contaOrigem": balance_view(receipt.debited, system.money),
    }
