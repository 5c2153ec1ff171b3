"""
Ledgerbook - Source Package

A personal bookkeeping ledger for a single business owner: per-customer
gave/got entries, itemized sale invoices and the running balances derived
from them.

DESIGN PRINCIPLES:
1. Balances are always derived, never stored
2. A sale bill and its linked receivable never disagree
3. Lookups fail softly; only I/O fails loudly
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Ledgerbook Team"
