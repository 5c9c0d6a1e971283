"""
Tests for Core Model Objects

These tests verify:
    - Label normalization and absence rules
    - Field identifier naming convention
    - Threshold indicator evaluation
    - Multi-select group naming and ordering
    - DerivedRecord immutability
"""

import pytest
from surveyquant.model import (
    NO_RESPONSE,
    Comparator,
    DerivedRecord,
    MappingTable,
    MissingFieldWarning,
    MultiSelectGroup,
    MultiSelectOption,
    PassthroughField,
    ScalarField,
    TableKind,
    ThresholdIndicator,
    UnmappedValueWarning,
    is_absent,
    label_token,
    normalize_label,
)


class TestAbsence:
    """Test what counts as an absent cell."""

    @pytest.mark.parametrize("value", [None, "", "   ", "\t\n", float("nan")])
    def test_absent_values(self, value):
        assert is_absent(value)

    @pytest.mark.parametrize("value", ["x", 0, False, 0.0, "No Response"])
    def test_present_values(self, value):
        """Zero and False are answers, not absences."""
        assert not is_absent(value)


class TestNormalizeLabel:
    """Test label normalization used for table lookups."""

    def test_strips_and_collapses_whitespace(self):
        assert normalize_label("  Somewhat   satisfied ") == "Somewhat satisfied"

    def test_folds_en_dash(self):
        assert normalize_label("30–60 minutes") == "30-60 minutes"

    def test_folds_em_dash_and_minus(self):
        assert normalize_label("1—2 hours") == "1-2 hours"
        assert normalize_label("1−2 hours") == "1-2 hours"

    def test_preserves_case(self):
        assert normalize_label("Very Satisfied") == "Very Satisfied"

    def test_non_string_values(self):
        assert normalize_label(4) == "4"
        assert normalize_label(True) == "True"


class TestLabelToken:
    """Test identifier tokens derived from labels."""

    def test_single_word(self):
        assert label_token("Staff") == "Staff"

    def test_multiple_words(self):
        assert label_token("Transfer out") == "TransferOut"

    def test_punctuation_dropped(self):
        assert label_token("Locum-tenens (external)") == "LocumTenensExternal"


class TestFieldNaming:
    """Field identifiers are derived deterministically from configuration."""

    def test_passthrough_with_label(self):
        assert PassthroughField(column="Q15", label="Satisfaction").field_id == "Q15_Satisfaction"

    def test_passthrough_without_label(self):
        assert PassthroughField(column="ResponseId").field_id == "ResponseId"

    def test_scalar_default_suffix(self):
        field = ScalarField(column="Q15", table="Satisfaction")
        assert field.field_id == "Q15_Satisfaction_Scalar"

    def test_scalar_custom_label_and_suffix(self):
        field = ScalarField(column="Q10", table="Times", label="ResponseTime", suffix="Minutes")
        assert field.field_id == "Q10_ResponseTime_Minutes"


class TestThresholdIndicator:
    """Test 0/1 indicator evaluation."""

    def _indicator(self, comparator, threshold=4):
        return ThresholdIndicator(name="X", source="S", comparator=comparator, threshold=threshold)

    def test_greater_equal(self):
        ind = self._indicator(Comparator.GREATER_EQUAL)
        assert ind.evaluate(4) == 1
        assert ind.evaluate(5) == 1
        assert ind.evaluate(3) == 0

    def test_less_equal(self):
        ind = self._indicator(Comparator.LESS_EQUAL, threshold=2)
        assert ind.evaluate(2) == 1
        assert ind.evaluate(3) == 0

    def test_strict_comparators(self):
        assert self._indicator(Comparator.GREATER_THAN, 60).evaluate(60) == 0
        assert self._indicator(Comparator.GREATER_THAN, 60).evaluate(90) == 1
        assert self._indicator(Comparator.LESS_THAN, 60).evaluate(45) == 1

    def test_equality_comparators(self):
        assert self._indicator(Comparator.EQUALS, 3).evaluate(3) == 1
        assert self._indicator(Comparator.NOT_EQUALS, 3).evaluate(3) == 0

    @pytest.mark.parametrize("comparator", list(Comparator))
    def test_null_scalar_gives_zero(self, comparator):
        """A null scalar never propagates: the indicator is 0."""
        result = self._indicator(comparator).evaluate(None)
        assert result == 0
        assert result is not None

    def test_comparator_from_symbol(self):
        assert Comparator(">=") is Comparator.GREATER_EQUAL
        with pytest.raises(ValueError):
            Comparator("=>")


class TestMultiSelectGroup:
    """Test multi-select naming and ordering."""

    def test_indicator_and_composite_ids(self):
        group = MultiSelectGroup(
            name="VascularCoverage",
            question="Q3",
            options=[
                MultiSelectOption(column="Q3_1", label="Residency"),
                MultiSelectOption(column="Q3_4", label="Transfer out", name="Transfer"),
            ],
        )
        assert group.composite_id == "Q3_VascularCoverage"
        assert [group.indicator_id(o) for o in group.options] == [
            "VascularCoverage_Residency",
            "VascularCoverage_Transfer",
        ]

    def test_composite_without_question(self):
        group = MultiSelectGroup(name="Coverage", options=[MultiSelectOption("A", "a")])
        assert group.composite_id == "Coverage"

    def test_options_stored_as_tuple(self):
        group = MultiSelectGroup(name="G", options=[MultiSelectOption("A", "a")])
        assert isinstance(group.options, tuple)
        assert group.columns == ("A",)


class TestMappingTable:
    """Test MappingTable immutability."""

    def test_values_are_read_only(self):
        table = MappingTable(name="T", values={"Yes": 1, "No": 0})
        with pytest.raises(TypeError):
            table.values["Maybe"] = 2

    def test_defaults(self):
        table = MappingTable(name="T", values={})
        assert table.kind == TableKind.ORDINAL
        assert table.description is None

    def test_labels_keep_order(self):
        table = MappingTable(name="T", values={"b": 2, "a": 1, NO_RESPONSE: None})
        assert table.labels() == ("b", "a", NO_RESPONSE)


class TestDerivedRecord:
    """Test DerivedRecord access and immutability."""

    def test_values_are_read_only(self):
        record = DerivedRecord(index=0, values={"A": 1})
        with pytest.raises(TypeError):
            record.values["A"] = 2

    def test_source_dict_changes_do_not_leak(self):
        source = {"A": 1}
        record = DerivedRecord(index=0, values=source)
        source["A"] = 99
        assert record["A"] == 1

    def test_field_order_preserved(self):
        record = DerivedRecord(index=3, values={"b": 1, "a": None, "c": "x"})
        assert record.field_ids == ("b", "a", "c")
        assert list(record.to_dict()) == ["b", "a", "c"]
        assert record.get("missing", "dflt") == "dflt"

    def test_equality(self):
        a = DerivedRecord(index=1, values={"x": 1.0, "y": None})
        b = DerivedRecord(index=1, values={"x": 1.0, "y": None})
        assert a == b

    def test_frozen(self):
        record = DerivedRecord(index=0, values={})
        with pytest.raises(AttributeError):
            record.index = 5


class TestWarnings:
    """Test per-record warning objects."""

    def test_unmapped_warning(self):
        w = UnmappedValueWarning(row_index=2, column="Q15", table="Satisfaction", value="Totally thrilled")
        assert w.kind == "unmapped_value"
        assert "Totally thrilled" in w.message
        assert "Satisfaction" in w.message

    def test_missing_warning(self):
        w = MissingFieldWarning(row_index=0, column="Q3_1")
        assert w.kind == "missing_field"
        assert "Q3_1" in w.message
