"""
ORM-Level Immutability Enforcement for compliance records.

===============================================================================
WHY THIS EXISTS
===============================================================================

Tax calculation audits and regulated sales records are evidence for a
statutory filing.  Once written they may not be edited through the
application; a correction is a new calculation, which produces a new row.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events and check our invariants:

    session.flush()
         |
         v
    [before_update event] --> _check_*_immutability() --> ImmutabilityViolationError
         |
         v
    [before_delete event] --> _check_*_delete() --------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity                 | When Immutable         | Mutable fields
-----------------------|------------------------|-------------------------------
TaxCalculationAudit    | ALWAYS (from creation) | none
RegulatedSalesRecord   | ALWAYS (from creation) | reporting_status (pending ->
                       |                        | filed only), submitted_at

===============================================================================
USAGE
===============================================================================

``pricing_modules._orm_registry.create_all_tables()`` registers these after
creating the schema.  Where tables are managed elsewhere (migrations),
call it once during application startup, after models are imported:

    from pricing_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()

To temporarily disable (TESTS ONLY - never in production):

    unregister_immutability_listeners()
"""

from sqlalchemy import event, inspect

from pricing_kernel.exceptions import ImmutabilityViolationError
from pricing_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

# Fields the filing process may touch on a regulated sales record
REGULATED_SALES_MUTABLE_FIELDS = frozenset({"reporting_status", "submitted_at"})


def _blocked(entity_type: str, entity_id: str, operation: str, reason: str):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": entity_id,
            "operation": operation,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=entity_id,
        reason=reason,
    )


def _check_tax_audit_immutability(mapper, connection, target):
    """Prevent any updates to TaxCalculationAudit records."""
    _blocked(
        "TaxCalculationAudit",
        str(target.id),
        "UPDATE",
        "Tax calculation audits are immutable and cannot be modified",
    )


def _check_tax_audit_delete(mapper, connection, target):
    """Prevent deletion of TaxCalculationAudit records."""
    _blocked(
        "TaxCalculationAudit",
        str(target.id),
        "DELETE",
        "Tax calculation audits cannot be deleted",
    )


def _check_regulated_sales_immutability(mapper, connection, target):
    """
    Allow only the filing transition on a RegulatedSalesRecord.

    reporting_status may move pending -> filed; it may never move back.
    """
    from pricing_kernel.models.compliance import ReportingStatus

    state = inspect(target)
    changed = {
        attr.key
        for attr in state.attrs
        if attr.history.has_changes()
    }
    frozen_changes = changed - REGULATED_SALES_MUTABLE_FIELDS
    if frozen_changes:
        _blocked(
            "RegulatedSalesRecord",
            str(target.id),
            "UPDATE",
            f"Fields {sorted(frozen_changes)} are immutable after creation",
        )

    if "reporting_status" in changed:
        history = state.attrs.reporting_status.history
        previous = history.deleted[0] if history.deleted else None
        if (
            previous == ReportingStatus.FILED.value
            and target.reporting_status != ReportingStatus.FILED.value
        ):
            _blocked(
                "RegulatedSalesRecord",
                str(target.id),
                "UPDATE",
                "A filed regulated sales record cannot return to pending",
            )


def _check_regulated_sales_delete(mapper, connection, target):
    """Prevent deletion of RegulatedSalesRecord records."""
    _blocked(
        "RegulatedSalesRecord",
        str(target.id),
        "DELETE",
        "Regulated sales records cannot be deleted",
    )


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Idempotent: registering twice does not double-fire.
    """
    from pricing_kernel.models.compliance import RegulatedSalesRecord, TaxCalculationAudit

    _safe_listen(TaxCalculationAudit, "before_update", _check_tax_audit_immutability)
    _safe_listen(TaxCalculationAudit, "before_delete", _check_tax_audit_delete)
    _safe_listen(RegulatedSalesRecord, "before_update", _check_regulated_sales_immutability)
    _safe_listen(RegulatedSalesRecord, "before_delete", _check_regulated_sales_delete)


def _safe_listen(target, event_name, listener_fn):
    if not event.contains(target, event_name, listener_fn):
        event.listen(target, event_name, listener_fn)


def _safe_remove_listener(target, event_name, listener_fn):
    """Safely remove an event listener, ignoring if not registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests where you need to intentionally
    violate immutability rules to verify detection.
    """
    from pricing_kernel.models.compliance import RegulatedSalesRecord, TaxCalculationAudit

    _safe_remove_listener(TaxCalculationAudit, "before_update", _check_tax_audit_immutability)
    _safe_remove_listener(TaxCalculationAudit, "before_delete", _check_tax_audit_delete)
    _safe_remove_listener(RegulatedSalesRecord, "before_update", _check_regulated_sales_immutability)
    _safe_remove_listener(RegulatedSalesRecord, "before_delete", _check_regulated_sales_delete)
