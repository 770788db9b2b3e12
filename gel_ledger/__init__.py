"""
GEL Ledger - Source Package

A personal finance ledger that converts foreign-currency amounts to
Georgian Lari using the daily rates published by the National Bank of
Georgia, records conversions as transactions, and keeps a per-user
Year-to-Date income view.

DESIGN PRINCIPLES:
1. Malformed records never enter the ledger
2. Rates are snapshotted at conversion time, never re-fetched
3. Destructive operations require explicit confirmation
4. Every ledger change is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "GEL Ledger Team"
