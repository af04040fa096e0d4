"""Tests for the four review passes and the report they produce.

Each pass is checked in both directions: required items found or missing,
and implementation units that the design never mentions.
"""

import json
import logging

import pytest

from config import ReviewConfig
from models import (
    ContainerKind,
    DiscrepancyKind,
    FeatureKind,
    ImplClass,
    ImplementationModel,
    ImplExtension,
    ImplMethod,
    ImplTable,
    MissingEntity,
    NoteKind,
    ParameterMismatch,
    RequiredEntity,
    RequiredExtension,
    RequiredFunction,
    RequirementModel,
    Severity,
    UnimplementedRequirement,
)
from reviewer import CodeReviewer, ReviewResult


def review(requirements=None, implementation=None, cfg=None) -> ReviewResult:
    return CodeReviewer(requirements or RequirementModel(), implementation or ImplementationModel(), cfg).review()


def kinds(records):
    return [r.kind for r in records]


class TestEntityPass:
    """Test required entities against classes and tables."""

    def test_prefixed_table_counts_as_implemented(self):
        result = review(
            RequirementModel(entities=(RequiredEntity("SalesOrderHeader", "Order header"),)),
            ImplementationModel(tables=(ImplTable("CUS_SalesOrderHeaderTable"),)),
        )
        assert len(result.implemented_features) == 1
        feature = result.implemented_features[0]
        assert feature.kind == FeatureKind.ENTITY
        assert feature.implementation_kind == "table"
        assert feature.implementation_name == "CUS_SalesOrderHeaderTable"
        assert not any(isinstance(d, MissingEntity) for d in result.discrepancies)
        assert result.analysis_notes == ()

    def test_classes_checked_before_tables(self):
        result = review(
            RequirementModel(entities=(RequiredEntity("Invoice"),)),
            ImplementationModel(classes=(ImplClass("InvoiceClass"),), tables=(ImplTable("InvoiceTable"),)),
        )
        feature = result.implemented_features[0]
        assert feature.implementation_kind == "class"
        assert feature.implementation_name == "InvoiceClass"

    def test_missing_entity(self):
        result = review(RequirementModel(entities=(RequiredEntity("Warehouse", "Stock locations"),)))
        assert len(result.discrepancies) == 1
        missing = result.discrepancies[0]
        assert missing.kind == DiscrepancyKind.MISSING_ENTITY
        assert missing.severity == Severity.HIGH
        assert missing.entity_name == "Warehouse"
        assert result.missing_features[0].kind == FeatureKind.ENTITY
        assert result.missing_features[0].description == "Stock locations"

    def test_extra_class_noted_once(self):
        result = review(
            RequirementModel(entities=(RequiredEntity("SalesOrderHeader"),)),
            ImplementationModel(
                classes=(ImplClass("LoggingHelper", (ImplMethod("log", "str msg", "info(msg);",
                                                                 container_kind=ContainerKind.CLASS,
                                                                 container_name="LoggingHelper"),)),),
                tables=(ImplTable("SalesOrderHeaderTable"),),
            ),
        )
        notes = [n for n in result.analysis_notes if n.subject_name == "LoggingHelper"]
        assert len(notes) == 1
        assert notes[0].kind == NoteKind.EXTRA_ENTITY
        assert notes[0].extra_info == "class"
        assert notes[0].note == "Class exists in implementation but not in design document"


class TestFunctionPass:
    """Test required functions against the flattened method list."""

    def test_parameter_mismatch_is_additive(self):
        result = review(
            RequirementModel(functions=(RequiredFunction("calculateTotal", "real price, int qty"),)),
            ImplementationModel(methods=(
                ImplMethod("calculateTotal", "str price, int qty",
                           container_kind=ContainerKind.CLASS, container_name="SalesCalc"),
            )),
        )
        feature = result.implemented_features[0]
        assert feature.kind == FeatureKind.FUNCTION
        assert feature.container_kind == ContainerKind.CLASS
        assert feature.container_name == "SalesCalc"

        assert len(result.discrepancies) == 1
        mismatch = result.discrepancies[0]
        assert isinstance(mismatch, ParameterMismatch)
        assert mismatch.severity == Severity.MEDIUM
        assert mismatch.expected_params == "real price, int qty"
        assert mismatch.actual_params == "str price, int qty"
        assert result.missing_features == ()

    def test_compatible_parameters_no_discrepancy(self):
        result = review(
            RequirementModel(functions=(RequiredFunction("calculateTotal", "real price, int qty"),)),
            ImplementationModel(methods=(ImplMethod("calculateTotal", "decimal price, int64 qty"),)),
        )
        assert result.discrepancies == ()

    def test_first_match_wins(self):
        result = review(
            RequirementModel(functions=(RequiredFunction("postInvoice"),)),
            ImplementationModel(methods=(
                ImplMethod("postInvoiceLines", container_kind=ContainerKind.TABLE, container_name="CustInvoiceTrans"),
                ImplMethod("postInvoice", container_kind=ContainerKind.CLASS, container_name="InvoicePoster"),
            )),
        )
        assert result.implemented_features[0].implementation_name == "postInvoiceLines"

    def test_missing_function(self):
        result = review(RequirementModel(functions=(RequiredFunction("postInvoice", "str invoiceId", "Posts"),)))
        missing = result.discrepancies[0]
        assert missing.kind == DiscrepancyKind.MISSING_FUNCTION
        assert missing.severity == Severity.HIGH
        assert missing.parameters == "str invoiceId"
        assert result.missing_features[0].name == "postInvoice"

    def test_standard_methods_exempt_from_notes(self):
        result = review(implementation=ImplementationModel(methods=(
            ImplMethod("init", container_kind=ContainerKind.FORM, container_name="CustForm"),
            ImplMethod("Validate", container_kind=ContainerKind.TABLE, container_name="CustTable"),
            ImplMethod("recalcDiscount", container_kind=ContainerKind.CLASS, container_name="PriceCalc"),
        )))
        assert [n.subject_name for n in result.analysis_notes] == ["recalcDiscount"]
        note = result.analysis_notes[0]
        assert note.kind == NoteKind.EXTRA_FUNCTION
        assert note.extra_info == " in class PriceCalc"
        assert note.note == "Method exists in implementation in class PriceCalc but not in design document"

    def test_unknown_container_is_tolerated(self):
        result = review(
            RequirementModel(functions=(RequiredFunction("orphanMethod"),)),
            ImplementationModel(methods=(ImplMethod("orphanMethod"), ImplMethod("strayMethod"))),
        )
        feature = result.implemented_features[0]
        assert feature.container_kind is None
        assert feature.container_name is None
        stray = result.analysis_notes[0]
        assert stray.extra_info == ""
        assert stray.note == "Method exists in implementation but not in design document"

    def test_whitespace_only_parameters_are_absent(self):
        result = review(
            RequirementModel(functions=(RequiredFunction("postInvoice", "   "),)),
            ImplementationModel(methods=(ImplMethod("postInvoice", "str invoiceId"),)),
        )
        assert len(result.implemented_features) == 1
        assert result.discrepancies == ()

    def test_one_method_implements_several_functions(self):
        result = review(
            RequirementModel(functions=(RequiredFunction("LineDiscount"), RequiredFunction("calculateLine"))),
            ImplementationModel(methods=(
                ImplMethod("calculateLineDiscount", container_kind=ContainerKind.CLASS, container_name="PriceCalc"),
            )),
        )
        assert [(f.name, f.implementation_name) for f in result.implemented_features] == [
            ("LineDiscount", "calculateLineDiscount"),
            ("calculateLine", "calculateLineDiscount"),
        ]
        assert result.discrepancies == ()
        assert result.analysis_notes == ()


class TestRequirementPass:
    """Test keyword coverage of free-text requirements."""

    METHODS = (
        ImplMethod("checkCredit", body="if (customer.creditLimit) {}",
                   container_kind=ContainerKind.CLASS, container_name="CreditCheck"),
        ImplMethod("setLimit", body="limit = 5;", container_kind=ContainerKind.TABLE, container_name="CustTable"),
        ImplMethod("emptyBody", body=""),
        ImplMethod("blockCustomer", body="customer.blocked = limit;"),
        ImplMethod("creditNote", body="credit note", container_kind=ContainerKind.REPORT, container_name="CreditRep"),
    )

    def test_top_three_by_score(self):
        result = review(
            RequirementModel(requirements=("Customer credit limit",)),
            ImplementationModel(methods=self.METHODS),
        )
        feature = result.implemented_features[0]
        assert feature.kind == FeatureKind.REQUIREMENT
        assert feature.implementation_kind == "code"
        assert [m.unit_name for m in feature.matches] == ["checkCredit", "blockCustomer", "setLimit"]
        assert feature.matches[0].score == pytest.approx(1.0)
        assert feature.matches[0].container_description == "class CreditCheck"
        assert feature.matches[1].container_description is None

    def test_unimplemented_requirement(self):
        req = "Warehouse replenishment forecasting"
        result = review(RequirementModel(requirements=(req,)), ImplementationModel(methods=self.METHODS))
        missing = result.discrepancies[0]
        assert isinstance(missing, UnimplementedRequirement)
        assert missing.severity == Severity.MEDIUM
        assert missing.requirement == req
        assert missing.keywords == ("warehouse", "replenishment", "forecasting")
        assert result.missing_features[0].keywords == missing.keywords

    def test_requirement_without_keywords_skipped(self):
        result = review(RequirementModel(requirements=("to be or not", "")), ImplementationModel(methods=self.METHODS))
        assert result.summary == {
            "total_discrepancies": 0,
            "total_implemented_features": 0,
            "total_missing_features": 0,
            "total_analysis_notes": 5,
        }

    def test_long_requirement_name_truncated(self):
        req = "Customer credit limit and limit overrides for customer credit"
        result = review(RequirementModel(requirements=(req,)), ImplementationModel(methods=self.METHODS))
        assert result.implemented_features[0].name == req[:50] + "..."

    def test_one_method_covers_several_requirements(self):
        result = review(
            RequirementModel(requirements=("Customer credit limit", "Credit limit alerts")),
            ImplementationModel(methods=self.METHODS[:1]),
        )
        assert [[m.unit_name for m in f.matches] for f in result.implemented_features] == [
            ["checkCredit"],
            ["checkCredit"],
        ]
        assert result.discrepancies == ()


class TestExtensionPass:
    """Test required extensions against extension 'extends' targets."""

    def test_both_directions(self):
        result = review(
            RequirementModel(extensions=(
                RequiredExtension("Class", "CustTable", "Credit check"),
                RequiredExtension("Table", "VendTable", "Vendor rating"),
            )),
            ImplementationModel(extensions=(
                ImplExtension("CustTable_Extension", "CustTable"),
                ImplExtension("SalesLine_Extension", "SalesLine"),
            )),
        )
        assert len(result.implemented_features) == 1
        feature = result.implemented_features[0]
        assert feature.kind == FeatureKind.EXTENSION
        assert feature.name == "CustTable_Extension"
        assert feature.implementation_name == "extends CustTable"

        assert kinds(result.discrepancies) == [DiscrepancyKind.MISSING_EXTENSION]
        assert result.discrepancies[0].base_name == "VendTable"
        assert result.discrepancies[0].severity == Severity.MEDIUM
        assert result.missing_features[0].base_name == "VendTable"

        assert len(result.analysis_notes) == 1
        note = result.analysis_notes[0]
        assert note.kind == NoteKind.EXTRA_EXTENSION
        assert note.subject_name == "SalesLine_Extension"
        assert note.extra_info == "SalesLine"


class TestReviewRun:
    """Test aggregation, re-runs and serialization."""

    @pytest.fixture
    def reviewer(self):
        requirements = RequirementModel(
            entities=(RequiredEntity("SalesOrderHeader"), RequiredEntity("Warehouse")),
            functions=(RequiredFunction("calculateTotal", "real price, int qty"),),
            extensions=(RequiredExtension("Class", "CustTable"),),
            requirements=("Customer credit limit", "Warehouse replenishment forecasting"),
        )
        implementation = ImplementationModel(
            tables=(ImplTable("CUS_SalesOrderHeaderTable"),),
            methods=(
                ImplMethod("calculateTotal", "str price, int qty", "return customer.limit * price;",
                           container_kind=ContainerKind.CLASS, container_name="SalesCalc"),
            ),
        )
        return CodeReviewer(requirements, implementation)

    def test_rerun_rebuilds_rather_than_appends(self, reviewer):
        first = reviewer.review()
        second = reviewer.review()
        assert first == second
        assert reviewer.result is second

    def test_report_round_trips_through_json(self, reviewer, tmp_path):
        result = reviewer.review()
        out = tmp_path / "review.json"
        written = result.write_json(str(out))
        loaded = json.loads(out.read_text(encoding="utf-8"))
        assert loaded == written
        assert loaded["review_summary"] == result.summary
        assert {d["kind"] for d in loaded["discrepancies"]} == {
            "MissingEntity", "ParameterMismatch", "UnimplementedRequirement", "MissingExtension",
        }
        function = next(f for f in loaded["implemented_features"] if f["kind"] == "function")
        assert function["container_kind"] == "class"
        entity = next(f for f in loaded["implemented_features"] if f["kind"] == "entity")
        assert "container_kind" not in entity
        assert "matches" not in entity

    def test_report_cap_follows_review_config(self, tmp_path):
        methods = tuple(ImplMethod(f"creditCheck{i}", body="customer credit limit") for i in range(5))
        result = review(
            RequirementModel(requirements=("Customer credit limit",)),
            ImplementationModel(methods=methods),
            ReviewConfig(max_requirement_matches=5),
        )
        assert len(result.implemented_features[0].matches) == 5
        written = result.write_json(str(tmp_path / "review.json"))
        assert len(written["implemented_features"][0]["matches"]) == 5

    def test_empty_models(self):
        assert review().summary == {
            "total_discrepancies": 0,
            "total_implemented_features": 0,
            "total_missing_features": 0,
            "total_analysis_notes": 0,
        }

    def test_large_model_warning(self, caplog):
        cfg = ReviewConfig(large_model_warning=1)
        with caplog.at_level(logging.WARNING, logger="reviewer"):
            review(RequirementModel(requirements=("a", "b")), cfg=cfg)
        assert "large models" in caplog.text
