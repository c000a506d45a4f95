"""
POS Modules.

Orchestration layers over the POS kernel and engines.
Each module contains:
- Domain models (the nouns)
- Workflows (state machines)
- Configuration schemas (policy and settings)
- ORM persistence and a service owning transaction boundaries

Modules:
- Stock take: location counts, variance review, reconciliation
"""

from pos_modules import stock_take

__all__ = ["stock_take"]
