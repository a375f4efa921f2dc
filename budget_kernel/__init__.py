"""
Budget Kernel

Shared foundation for the milestone/building budget tracking engine:
- Typed error hierarchy (validation, not-found, invalid-state, forbidden)
- Structured JSON logging with request-scoped context
- SQLAlchemy base classes, engine and transactional session scope
- Injectable clock, caller identity and status workflows
"""

__version__ = "0.1.0"
