"""
Inventauri - multi-tenant inventory and point-of-sale back end.

Core:
- Atomic sale recording (sale + lines + outbound stock ledger entries)
- Tenant-scoped item catalog
- Append-only stock ledger with derived on-hand quantities
"""

__version__ = "0.1.0"
