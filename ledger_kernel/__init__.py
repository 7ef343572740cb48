"""
Ledger Kernel

A double-entry transaction layer over an append-only log:
- Debits equal credits, exactly, in integer minor units
- Batched account eligibility checks
- Amendment and deletion through compensating reversals
- At most one reversal per transaction
- All-or-nothing batch saves
"""

__version__ = "0.1.0"
