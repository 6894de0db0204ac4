"""
Inventory Costing Kernel

Per-item inventory valuation (FIFO, LIFO, weighted average) computed from a
stream of inbound/outbound inventory transactions, with:
- Transformation of document line items into inventory transactions
- Recording and undo of transactions per source document
- Per-tenant monotonic lot numbering
- Lot-level cost tracking
"""

__version__ = "0.1.0"
