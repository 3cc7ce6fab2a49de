"""
Tests for gradebook/grading.py — NRT scale, grade resolution, developmental ratings.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from gradebook.grading import (
    NRT_SCALE,
    build_scale,
    generate_subject_remark,
    get_all_grade_thresholds,
    get_developmental_rating,
    get_grade_value_map,
    get_nrt_grade,
    validate_scale,
)
from gradebook.stats import calculate_stats


class TestNrtScale:
    """Tests for the default table and its validation."""

    def test_default_scale_is_valid(self):
        validate_scale(NRT_SCALE)

    def test_default_scale_descending(self):
        cutoffs = [row[2] for row in NRT_SCALE]
        assert cutoffs == sorted(cutoffs, reverse=True)

    def test_nine_values(self):
        assert [row[1] for row in NRT_SCALE] == list(range(1, 10))

    def test_empty_scale_rejected(self):
        with pytest.raises(ValueError):
            validate_scale([])

    def test_unsorted_scale_rejected(self):
        scale = list(NRT_SCALE)
        scale[0], scale[1] = scale[1], scale[0]
        with pytest.raises(ValueError):
            validate_scale(scale)

    def test_duplicate_grade_rejected(self):
        scale = list(NRT_SCALE)
        scale[1] = ("A1",) + tuple(scale[1][1:])
        with pytest.raises(ValueError):
            validate_scale(scale)

    def test_build_scale_without_overrides(self):
        assert build_scale() == NRT_SCALE

    def test_build_scale_applies_remark(self):
        scale = build_scale({"A1": {"remark": "Outstanding"}})
        assert scale[0] == ("A1", 1, 1.645, "Outstanding", "#2e8b57")

    def test_build_scale_resorts_by_cutoff(self):
        scale = build_scale({"A1": {"z_cutoff": 0.8}})
        assert [row[0] for row in scale[:3]] == ["B2", "A1", "B3"]
        validate_scale(scale)

    def test_build_scale_rejects_tied_cutoffs(self):
        with pytest.raises(ValueError):
            build_scale({"B3": {"z_cutoff": 0.0}})

    def test_build_scale_rejects_unknown_grade(self):
        with pytest.raises(ValueError):
            build_scale({"Z0": {"remark": "nope"}})


class TestGetNrtGrade:
    """Tests for Z-score based grade resolution."""

    @pytest.mark.parametrize(
        "score,expected",
        [(90, "B2"), (80, "B3"), (70, "C4"), (60, "C6"), (50, "D7")],
    )
    def test_reference_class(self, score, expected):
        st = calculate_stats([90, 80, 70, 60, 50])
        assert get_nrt_grade(score, st["mean"], st["std_dev"])["grade"] == expected

    def test_reference_z_score(self):
        st = calculate_stats([90, 80, 70, 60, 50])
        result = get_nrt_grade(90, st["mean"], st["std_dev"])
        assert result["z_score"] == pytest.approx(1.4142, abs=1e-3)
        assert result["value"] == 2
        assert result["remark"] == "Very Good"

    def test_cutoff_is_inclusive(self):
        assert get_nrt_grade(1.645, 0, 1)["grade"] == "A1"
        assert get_nrt_grade(0.0, 0, 1)["grade"] == "C4"

    def test_zero_std_dev_gives_default(self):
        for score in (0, 50, 100):
            result = get_nrt_grade(score, 50, 0)
            assert result["grade"] == "C4"
            assert result["z_score"] is None

    def test_negative_std_dev_gives_default(self):
        assert get_nrt_grade(10, 50, -1)["grade"] == "C4"

    def test_far_below_every_cutoff_falls_back_to_last(self):
        result = get_nrt_grade(-100000, 0, 1)
        assert result["grade"] == "F9"
        assert result["value"] == 9

    def test_total_over_wide_range(self):
        grades = {row[0] for row in NRT_SCALE}
        for score in range(-50, 151, 5):
            assert get_nrt_grade(score, 50, 12.5)["grade"] in grades

    def test_monotonic_in_score(self):
        values = [get_nrt_grade(s, 55, 17)["value"] for s in range(0, 101)]
        assert all(a >= b for a, b in zip(values, values[1:]))

    def test_custom_remark_used(self):
        result = get_nrt_grade(70, 70, 10, custom_remarks={"C4": "Solid work"})
        assert result["remark"] == "Solid work"

    def test_empty_custom_remark_falls_back(self):
        result = get_nrt_grade(70, 70, 10, custom_remarks={"C4": ""})
        assert result["remark"] == "Credit"

    def test_custom_remark_on_degenerate_path(self):
        result = get_nrt_grade(70, 70, 0, custom_remarks={"C4": "Flat class"})
        assert result["remark"] == "Flat class"

    def test_custom_scale(self):
        scale = build_scale({"A1": {"z_cutoff": 1.2}})
        assert get_nrt_grade(1.3, 0, 1, scale=scale)["grade"] == "A1"
        assert get_nrt_grade(1.3, 0, 1)["grade"] == "B2"


class TestDevelopmentalRating:
    """Tests for the 2/3/5/9 point developmental ratings."""

    def test_zero_std_dev_is_neutral(self):
        result = get_developmental_rating(40, 40, 0, points=5)
        assert result == {"label": "N/A", "color": "#94a3b8", "value": 0}

    @pytest.mark.parametrize("z,label", [(0.0, "Achieved"), (2.0, "Achieved"), (-0.01, "Emerging")])
    def test_two_point(self, z, label):
        assert get_developmental_rating(z, 0, 1, points=2)["label"] == label

    @pytest.mark.parametrize(
        "z,label",
        [(1.01, "Advanced"), (1.0, "Achieving"), (-1.0, "Achieving"), (-1.01, "Developing")],
    )
    def test_three_point(self, z, label):
        assert get_developmental_rating(z, 0, 1, points=3)["label"] == label

    @pytest.mark.parametrize(
        "z,label,value",
        [
            (1.6, "Exceptional", 5),
            (1.5, "Strong", 4),
            (0.5, "Average", 3),
            (-0.5, "Average", 3),
            (-1.5, "Low Average", 2),
            (-1.6, "At Risk", 1),
        ],
    )
    def test_five_point(self, z, label, value):
        result = get_developmental_rating(z, 0, 1, points=5)
        assert result["label"] == label
        assert result["value"] == value

    def test_nine_point_uses_nrt_scale(self):
        result = get_developmental_rating(2.0, 0, 1, points=9)
        assert result == {"label": "A1", "color": "#2e8b57", "value": 1}

    def test_unsupported_points(self):
        with pytest.raises(ValueError):
            get_developmental_rating(50, 50, 10, points=4)


class TestSubjectRemarks:
    """Tests for canned subject remarks."""

    @pytest.mark.parametrize(
        "score,prefix",
        [
            (80, "Exceptional"),
            (79.9, "Strong"),
            (70, "Strong"),
            (60, "Good"),
            (50, "Satisfactory"),
            (40, "Fair"),
            (39, "Needs intensive"),
            (0, "Needs intensive"),
        ],
    )
    def test_bands(self, score, prefix):
        assert generate_subject_remark(score).startswith(prefix)


class TestLegend:
    """Tests for legend helpers."""

    def test_value_map(self):
        mapping = get_grade_value_map()
        assert mapping[1] == "A1"
        assert mapping[9] == "F9"

    def test_thresholds(self):
        rows = get_all_grade_thresholds(custom_remarks={"F9": "Retake"})
        assert len(rows) == 9
        assert rows[0]["z_max"] is None
        assert rows[-1]["z_min"] is None
        assert rows[-1]["remark"] == "Retake"
        assert rows[1]["z_max"] == rows[0]["z_min"]
