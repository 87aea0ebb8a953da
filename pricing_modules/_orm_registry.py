"""
Module ORM Registry (``pricing_modules._orm_registry``).

Responsibility
--------------
Ensure kernel and module SQLAlchemy ORM models are imported so that
``Base.metadata`` contains their table definitions before tables are
created.  ``create_all_tables()`` is the entry point for the full schema
and registers the append-only guards on the compliance tables.

Architecture position
---------------------
**Modules layer** -- utility.  Imports from ``pricing_modules.tax`` and from
``pricing_kernel.db.engine`` (allowed: modules -> kernel).
MUST NOT be imported by ``pricing_kernel``.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``pricing_modules.*.orm`` module.

    Idempotent -- repeated calls are harmless.
    """
    import pricing_kernel.models  # noqa: F401
    import pricing_modules.tax.orm  # noqa: F401


def create_all_tables() -> None:
    """Create kernel and module tables and arm the compliance immutability
    listeners.

    Preconditions:
        Engine must be initialized via ``init_engine_from_url()``.
    """
    from pricing_kernel.db.engine import create_tables
    from pricing_kernel.db.immutability import register_immutability_listeners

    import_all_orm_models()
    create_tables()
    register_immutability_listeners()
