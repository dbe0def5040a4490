"""
Shared API dependencies
"""

from typing import Optional

from ..system import LedgerSystem


_ledger_system: Optional[LedgerSystem] = None


def get_ledger_system() -> LedgerSystem:
    """Process-wide ledger system, built from configuration on first use"""
    global _ledger_system
    if _ledger_system is None:
        _ledger_system = LedgerSystem()
    return _ledger_system


def set_ledger_system(system: Optional[LedgerSystem]) -> None:
    """Install a prebuilt system (server startup, tests)"""
    global _ledger_system
    _ledger_system = system
