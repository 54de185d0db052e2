"""Multi-tenant household finance ledger."""

__version__ = "0.1.0"
