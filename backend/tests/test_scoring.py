"""
Tests for gradebook/scoring.py — subject totals from section marks.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from gradebook.scoring import compute_subject_total, compute_terminal_total, scale_section


class TestComputeSubjectTotal:
    """Tests for two-section subject totals."""

    def test_sum_for_basic(self):
        assert compute_subject_total(28, 62) == 90.0

    def test_sum_is_capped(self):
        assert compute_subject_total(70, 50) == 100.0

    def test_sections_are_capped(self):
        assert compute_subject_total(150, 0) == 100.0

    def test_negative_section_is_zero(self):
        assert compute_subject_total(-10, 40) == 40.0

    def test_missing_section_counts_as_zero(self):
        assert compute_subject_total(None, 50) == 50.0

    def test_early_childhood_average(self):
        assert compute_subject_total(80, 70, early_childhood=True) == 75.0

    def test_early_childhood_rounds(self):
        assert compute_subject_total(81, 70, early_childhood=True) == 76.0


class TestScaleSection:
    """Tests for weighted section scaling."""

    def test_half_marks(self):
        assert scale_section(15, 30, 30) == 15.0

    def test_rescale_to_weight(self):
        assert scale_section(50, 100, 70) == 35.0

    def test_zero_out_of_uses_unit_denominator(self):
        assert scale_section(15, 0, 30) == 450.0


class TestTerminalTotal:
    """Tests for the Basic/JHS terminal composite."""

    def test_default_split(self):
        result = compute_terminal_total(80, 60)
        assert result == {"section_a": 24.0, "section_b": 42.0, "total": 66.0}

    def test_custom_split(self):
        result = compute_terminal_total(40, 100, {"section_a_max": 40, "section_b_max": 60}, out_of_a=40)
        assert result["total"] == pytest.approx(100.0)

    def test_total_is_capped(self):
        result = compute_terminal_total(100, 100, {"section_a_max": 60, "section_b_max": 60})
        assert result["total"] == 100.0
