"""
Pricing Kernel

Shared infrastructure of the wholesale pricing and tax engine:
- Structured logging and typed errors
- Clock abstraction and Decimal money helpers
- SQLAlchemy base, engine and session handling
- Append-only tax calculation audits and regulated sales records
"""

__version__ = "0.1.0"
