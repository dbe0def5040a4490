"""
Bank Ledger

Customer account ledger with fixed-point Decimal balances, per-variant
withdrawal policy and an append-only transaction history.
"""

__version__ = "1.0.0"
