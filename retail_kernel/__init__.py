"""
Retail Kernel - stock ledger and receivables core

An event-sourced, in-memory core with:
- Append-only stock movement ledger
- Incremental inventory projection equivalent to full replay
- Linked two-leg store transfers
- Ordered payment allocation across invoices
"""

__version__ = "0.1.0"
