"""Tests for engine/session helpers and schema creation."""

import pytest
from sqlalchemy import event, select

from pricing_kernel.db.engine import get_engine, get_session, is_postgres, session_scope
from pricing_kernel.db.immutability import (
    _check_regulated_sales_delete,
    _check_tax_audit_immutability,
)
from pricing_kernel.models.compliance import RegulatedSalesRecord, TaxCalculationAudit
from pricing_modules._orm_registry import create_all_tables
from pricing_modules.tax.orm import CategoryModel


class TestEngineHelpers:

    def test_engine_initialized(self, db_engine):
        assert get_engine() is db_engine

    def test_dialect_detection(self, db_engine):
        assert is_postgres() == (db_engine.dialect.name == "postgresql")


class TestSessionScope:

    def test_rolls_back_on_error(self, db_tables, captured_logs):
        with pytest.raises(ValueError):
            with session_scope() as session:
                session.add(CategoryModel(name="scope-rollback"))
                session.flush()
                raise ValueError("abort")

        check = get_session()
        try:
            found = check.execute(
                select(CategoryModel).where(CategoryModel.name == "scope-rollback")
            ).scalars().all()
        finally:
            check.close()

        assert found == []
        assert any(r["message"] == "transaction_rolled_back" for r in captured_logs())


class TestCreateAllTables:

    def test_registers_immutability_listeners(self, db_tables):
        assert event.contains(
            TaxCalculationAudit, "before_update", _check_tax_audit_immutability
        )
        assert event.contains(
            RegulatedSalesRecord, "before_delete", _check_regulated_sales_delete
        )

    def test_repeat_call_is_harmless(self, db_tables):
        create_all_tables()

        assert event.contains(
            TaxCalculationAudit, "before_update", _check_tax_audit_immutability
        )
        check = get_session()
        try:
            assert check.execute(select(TaxCalculationAudit)).scalars().all() == []
        finally:
            check.close()
