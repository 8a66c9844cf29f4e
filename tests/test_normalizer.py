"""Tests for attribute classification and normalization."""

import logging

import pytest

from smartsync.api.records import Number, Other, Text, classify
from smartsync.devices.normalizer import normalize_attributes, normalize_value


class TestClassify:
    """Tests for tagging raw JSON values."""

    @pytest.mark.parametrize("raw", [0, 42, -7, 3.25, 1e300])
    def test_numbers(self, raw):
        assert classify(raw) == Number(float(raw))

    def test_strings(self):
        assert classify("on") == Text("on")
        assert classify("") == Text("")

    @pytest.mark.parametrize("raw", [True, False, None, [1, 2], {"a": 1}])
    def test_other_values(self, raw):
        assert classify(raw) == Other(raw)

    def test_non_finite_numbers_are_other(self):
        """Test that NaN and infinities never reach the numeric model."""
        assert isinstance(classify(float("nan")), Other)
        assert isinstance(classify(float("inf")), Other)
        assert isinstance(classify(float("-inf")), Other)

    def test_integers_beyond_float_range_are_other(self):
        huge = 10**400
        assert classify(huge) == Other(huge)
        assert classify(-huge) == Other(-huge)


class TestNormalizeValue:
    """Tests for the per-value mapping."""

    def test_number_passthrough(self):
        assert normalize_value(Number(42.0)) == 42.0
        assert normalize_value(Number(-0.5)) == -0.5

    @pytest.mark.parametrize("text", ["on", "present"])
    def test_truthy_strings(self, text):
        assert normalize_value(Text(text)) == 1.0

    @pytest.mark.parametrize("text", ["off", "not present", "", "ON", "Present", "1"])
    def test_other_strings(self, text):
        """Test that any other string, including case variants, maps to 0.0."""
        assert normalize_value(Text(text)) == 0.0

    def test_other_has_no_value(self):
        assert normalize_value(Other(True)) is None
        assert normalize_value(Other(None)) is None


class TestNormalizeAttributes:
    """Tests for whole-map normalization."""

    def test_mixed_device_attributes(self, caplog):
        """Test the switch/level/flag scenario: the boolean is dropped with a warning."""
        raw = {"switch": classify("on"), "level": classify(42), "flag": classify(True)}

        with caplog.at_level(logging.WARNING, logger="smartsync.devices.normalizer"):
            result = normalize_attributes(raw)

        assert result == {"switch": 1.0, "level": 42.0}
        assert "flag" not in result
        assert any("unhandled attribute type" in r.getMessage() and "flag" in r.getMessage()
                   for r in caplog.records)

    def test_all_values_are_floats(self):
        raw = {"a": classify(1), "b": classify("present"), "c": classify("closed")}

        result = normalize_attributes(raw)

        assert result == {"a": 1.0, "b": 1.0, "c": 0.0}
        assert all(type(v) is float for v in result.values())

    def test_unhandled_values_are_omitted(self):
        raw = {"none": classify(None), "list": classify([1]), "obj": classify({"x": 1})}
        assert normalize_attributes(raw) == {}

    def test_empty(self):
        assert normalize_attributes({}) == {}
