"""
POS Kernel

Shared foundation for the point-of-sale inventory modules:
- Typed exceptions with machine-readable codes
- Structured JSON logging
- Injectable clock and workflow value objects
- SQLAlchemy declarative base and engine/session management
"""

__version__ = "0.1.0"
