"""Unit tests for fuzzy name matching.

Covers prefix/suffix normalisation, containment, the edit-distance fallback
and the symmetry/idempotence properties the reviewer relies on.
"""

import pytest

from config import ReviewConfig
from name_matcher import NameMatcher, edit_distance, string_similarity


@pytest.fixture
def matcher():
    return NameMatcher()


class TestEditDistance:
    """Test the Levenshtein helpers."""

    def test_classic_distance(self):
        assert edit_distance("kitten", "sitting") == 3
        assert edit_distance("", "abc") == 3
        assert edit_distance("same", "same") == 0

    def test_similarity_bounds(self):
        assert string_similarity("", "abc") == 0.0
        assert string_similarity("abc", "abc") == 1.0
        assert string_similarity("invoce", "invoice") == pytest.approx(1 - 1 / 7)


class TestNormalisation:
    """Test prefix and suffix stripping."""

    def test_vendor_prefix_and_kind_suffix(self, matcher):
        assert matcher.clean("CUS_SalesTable") == "sales"
        assert matcher.clean("AxCustomerClass") == "customer"
        assert matcher.clean("usr_PaymentExt") == "payment"

    def test_prefix_needs_a_boundary(self, matcher):
        # "Cus" here is the start of a word, not a vendor tag
        assert matcher.clean("CustTable") == "cust"
        assert matcher.clean("Customer") == "customer"

    def test_prefix_and_suffix_invariance(self, matcher):
        assert matcher.matches("CUS_SalesTable", "Sales")
        assert matcher.matches("CUS_SalesOrderHeaderTable", "SalesOrderHeader")


class TestMatching:
    """Test the matching rules in order."""

    def test_empty_names_never_match(self, matcher):
        assert not matcher.matches("", "Sales")
        assert not matcher.matches("Sales", "")
        assert not matcher.matches("", "")

    def test_containment(self, matcher):
        assert matcher.matches("CustomerGroup", "Customer")
        assert matcher.matches("Customer", "CustomerGroup")

    def test_fuzzy_threshold(self, matcher):
        assert matcher.matches("Invoce", "Invoice")

    def test_true_negative(self, matcher):
        assert not matcher.matches("Ab", "Xy")
        assert not matcher.matches("LoggingHelper", "SalesOrderHeader")

    def test_short_names_skip_fuzzy(self, matcher):
        # One substitution in three letters, but too short for the fuzzy rule
        assert not matcher.matches("Cat", "Cot")

    def test_fuzzy_needs_more_than_threshold(self, matcher):
        # 1 edit over 4 characters is 0.75 similarity
        assert not matcher.matches("abcd", "abce")

    def test_suffix_only_name_does_not_match_everything(self, matcher):
        assert matcher.matches("Table", "Table")
        assert not matcher.matches("Table", "Customer")

    def test_threshold_is_configurable(self):
        strict = NameMatcher(ReviewConfig(name_similarity_threshold=0.9))
        assert not strict.matches("Invoce", "Invoice")


class TestProperties:
    """Test symmetry and idempotence over a spread of names."""

    NAMES = [
        "CUS_SalesTable", "Sales", "CustomerGroup", "Customer", "Invoce", "Invoice",
        "Ab", "Xy", "Table", "VendPaymentJournal", "VendPaymJournal", "ISV_InventTrans",
    ]

    @pytest.mark.parametrize("name", NAMES)
    def test_idempotence(self, matcher, name):
        assert matcher.matches(name, name)

    @pytest.mark.parametrize("a", NAMES)
    @pytest.mark.parametrize("b", NAMES)
    def test_symmetry(self, matcher, a, b):
        assert matcher.matches(a, b) == matcher.matches(b, a)
