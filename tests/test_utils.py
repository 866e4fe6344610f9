"""
Tests for naming and size-formatting helpers.
"""

import pytest

from filetools_backend.utils import compression_ratio, compression_summary, generate_output_name, to_fixed, to_megabytes


class TestSizeFormatting:
    """Tests for the figures shown in compression messages."""

    @pytest.mark.parametrize(
        "value,places,expected",
        [(12.25, 1, "12.3"), (0.125, 2, "0.13"), (-12.25, 1, "-12.3"), (2.0, 2, "2.00"), (0.0, 1, "0.0")],
    )
    def test_ties_round_away_from_zero(self, value, places, expected):
        assert to_fixed(value, places) == expected

    def test_compression_ratio_tie(self):
        assert compression_ratio(400, 351) == "12.3"

    def test_compression_ratio(self):
        assert compression_ratio(1000, 750) == "25.0"
        assert compression_ratio(0, 10) == "0.0"

    def test_grown_file_has_negative_ratio(self):
        assert compression_ratio(100, 150) == "-50.0"

    def test_megabytes(self):
        assert to_megabytes(131072) == "0.13"
        assert to_megabytes(5 * 1024 * 1024) == "5.00"

    def test_summary(self):
        assert compression_summary("PDF", 2 * 1024 * 1024, 1024 * 1024) == (
            "Successfully compressed PDF by 50.0% (2.00MB → 1.00MB)"
        )


class TestOutputNames:
    """Tests for generated artifact names."""

    def test_shape(self):
        name = generate_output_name("merged", ".pdf")
        prefix, timestamp, suffix = name[: -len(".pdf")].split("_")
        assert prefix == "merged"
        assert timestamp.isdigit() and suffix.isdigit()
        assert name.endswith(".pdf")
