"""
mybank

REST API over a store of branch bank accounts: balances, deposits,
withdrawals, transfers with fees, branch statistics and prime-branch
client promotion. All monetary arithmetic uses Decimal.
"""

__version__ = "1.0.0"
