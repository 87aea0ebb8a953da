"""
Tests for the Applicability Resolver.

Covers:
- Activity, tier, county and zip scoping
- Assignment precedence: none, explicit, legacy
- Legacy applicability lists ("all", product id, "tobacco")
- Assignment construction from stored flat tax ids
"""

from uuid import uuid4

import pytest

from pricing_engines.applicability import (
    ApplicabilityResolver,
    matches_legacy_list,
    passes_scope,
)
from pricing_engines.tax_types import (
    CustomerTaxContext,
    ExplicitAssignment,
    LegacyAssignment,
    NoFlatTax,
    assignment_from_ids,
)
from tests.factories import make_flat_tax, make_line


class TestScopeFilters:
    """Steps 1-4: activity and customer scoping."""

    def test_inactive_tax_is_dropped(self):
        tax = make_flat_tax(is_active=False)
        assert passes_scope(tax, CustomerTaxContext()) is False

    def test_unrestricted_active_tax_passes(self):
        tax = make_flat_tax()
        assert passes_scope(tax, CustomerTaxContext(customer_level=3, county="Cook"))

    def test_tier_restriction_excludes_other_tiers(self):
        tax = make_flat_tax(customer_tiers=frozenset({2, 3}))
        assert passes_scope(tax, CustomerTaxContext(customer_level=2))
        assert not passes_scope(tax, CustomerTaxContext(customer_level=1))

    def test_unparsable_tiers_are_dropped(self, captured_logs):
        tax = make_flat_tax(customer_tiers=["2", "", "gold", 3])

        assert tax.customer_tiers == frozenset({2, 3})
        warnings = [r for r in captured_logs() if r["message"] == "customer_tier_invalid"]
        assert len(warnings) == 2

    def test_only_unparsable_tiers_means_every_tier(self):
        tax = make_flat_tax(customer_tiers=[""])
        assert passes_scope(tax, CustomerTaxContext(customer_level=4))

    @pytest.mark.parametrize("level", [None, 0])
    def test_unknown_tier_does_not_exclude(self, level):
        tax = make_flat_tax(customer_tiers=frozenset({2}))
        assert passes_scope(tax, CustomerTaxContext(customer_level=level))

    def test_county_restriction(self):
        tax = make_flat_tax(county_restriction="Cook")
        assert passes_scope(tax, CustomerTaxContext(county="Cook"))
        assert not passes_scope(tax, CustomerTaxContext(county="DuPage"))

    def test_unknown_county_does_not_exclude(self):
        tax = make_flat_tax(county_restriction="Cook")
        assert passes_scope(tax, CustomerTaxContext(county=None))

    def test_zip_restriction(self):
        tax = make_flat_tax(zip_restriction="60601")
        assert passes_scope(tax, CustomerTaxContext(zip_code="60601"))
        assert not passes_scope(tax, CustomerTaxContext(zip_code="60007"))


class TestLegacyList:
    """Steps 7-8: the entry's own applicability list."""

    def test_empty_list_applies_everywhere(self):
        assert matches_legacy_list(make_flat_tax(), uuid4(), is_tobacco=False)

    def test_wildcard_all(self):
        tax = make_flat_tax(legacy_applicable_products=("all",))
        assert matches_legacy_list(tax, uuid4(), is_tobacco=False)

    def test_product_id_listed(self):
        product_id = uuid4()
        tax = make_flat_tax(legacy_applicable_products=(str(product_id),))
        assert matches_legacy_list(tax, product_id, is_tobacco=False)
        assert not matches_legacy_list(tax, uuid4(), is_tobacco=False)

    def test_tobacco_literal_only_matches_tobacco_lines(self):
        tax = make_flat_tax(legacy_applicable_products=("tobacco",))
        assert matches_legacy_list(tax, uuid4(), is_tobacco=True)
        assert not matches_legacy_list(tax, uuid4(), is_tobacco=False)


class TestApplicabilityResolver:
    """End-to-end resolution for order lines."""

    def setup_method(self):
        self.resolver = ApplicabilityResolver()
        self.context = CustomerTaxContext(customer_level=2, county="Cook", apply_flat_tax=True)

    def test_no_flat_tax_overrides_universal_tax(self):
        universal = make_flat_tax(name="Universal", legacy_applicable_products=("all",))
        line = make_line(assignment=NoFlatTax())

        assert self.resolver.resolve([universal], line, self.context) == []

    def test_explicit_assignment_beats_legacy_all(self):
        assigned = make_flat_tax(name="Assigned")
        universal = make_flat_tax(name="Universal", legacy_applicable_products=("all",))
        line = make_line(assignment=ExplicitAssignment(frozenset({assigned.id})))

        result = self.resolver.resolve([assigned, universal], line, self.context)

        assert [t.id for t in result] == [assigned.id]

    def test_explicit_assignment_still_respects_scope(self):
        assigned = make_flat_tax(county_restriction="DuPage")
        line = make_line(assignment=ExplicitAssignment(frozenset({assigned.id})))

        assert self.resolver.resolve([assigned], line, self.context) == []

    def test_explicit_assignment_to_inactive_tax(self):
        assigned = make_flat_tax(is_active=False)
        line = make_line(assignment=ExplicitAssignment(frozenset({assigned.id})))

        assert self.resolver.resolve([assigned], line, self.context) == []

    def test_legacy_assignment_uses_tax_lists(self):
        tobacco_tax = make_flat_tax(name="Tobacco", legacy_applicable_products=("tobacco",))
        general = make_flat_tax(name="General")
        tobacco_line = make_line(is_tobacco=True)
        plain_line = make_line(is_tobacco=False)

        tobacco_result = self.resolver.resolve([tobacco_tax, general], tobacco_line, self.context)
        plain_result = self.resolver.resolve([tobacco_tax, general], plain_line, self.context)

        assert {t.id for t in tobacco_result} == {tobacco_tax.id, general.id}
        assert [t.id for t in plain_result] == [general.id]

    def test_empty_catalog(self):
        assert self.resolver.resolve([], make_line(), self.context) == []

    def test_resolution_is_deterministic(self):
        catalog = [make_flat_tax(name=f"Tax {i}") for i in range(5)]
        line = make_line()

        first = self.resolver.resolve(catalog, line, self.context)
        second = self.resolver.resolve(catalog, line, self.context)

        assert first == second

    def test_logs_resolution(self, captured_logs):
        tax = make_flat_tax()
        self.resolver.resolve([tax], make_line(), self.context)

        messages = [r["message"] for r in captured_logs()]
        assert "flat_tax_resolved" in messages


class TestAssignmentFromIds:
    """Stored flat tax ids to the tagged assignment variant."""

    def test_null_means_no_flat_tax(self):
        assert assignment_from_ids(None) == NoFlatTax()

    def test_empty_list_means_legacy(self):
        assert assignment_from_ids([]) == LegacyAssignment()

    def test_missing_means_legacy(self):
        assert assignment_from_ids() == LegacyAssignment()

    def test_ids_as_strings(self):
        tax_id = uuid4()
        assert assignment_from_ids([str(tax_id)]) == ExplicitAssignment(frozenset({tax_id}))

    def test_invalid_ids_are_dropped(self, captured_logs):
        tax_id = uuid4()
        assignment = assignment_from_ids(["7", str(tax_id)])

        assert assignment == ExplicitAssignment(frozenset({tax_id}))
        warnings = [r for r in captured_logs() if r["message"] == "flat_tax_id_invalid"]
        assert len(warnings) == 1
        assert warnings[0]["value"] == "'7'"

    def test_all_invalid_ids_stay_explicit(self):
        assignment = assignment_from_ids(["7", ""])

        assert assignment == ExplicitAssignment(frozenset())
        tax = make_flat_tax()
        resolved = ApplicabilityResolver().resolve(
            [tax], make_line(assignment=assignment), CustomerTaxContext(),
        )
        assert resolved == []
