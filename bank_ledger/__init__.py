"""
Bank Ledger

A deterministic state machine that tracks account holdings across multiple
banks on top of an external key/value ledger store.
"""

__version__ = "1.0.0"
