"""
early_childhood.py — Labeled score bands for daycare, nursery and KG learners.

Early-childhood achievement is reported against fixed [min, max] bands
rather than the class distribution. The same lookup rates developmental
indicators after their small integer observation scale (1–3 by default)
is rescaled to a percentage.
"""

import logging
from typing import Any, Dict, List, Sequence

logger = logging.getLogger(__name__)


UNKNOWN_RANGE = {"label": "?", "min": 0, "max": 0, "color": "#ccc", "remark": "Unknown"}


def _band(label: str, low: float, high: float, color: str, remark: str) -> Dict[str, Any]:
    return {"label": label, "min": low, "max": high, "color": color, "remark": remark}


# Default band tables, keyed by band count. Ordered high to low; adjacent
# bands share their boundary, which resolves to the higher band.
DEFAULT_RANGES: Dict[str, Dict[int, List[Dict[str, Any]]]] = {
    "core": {
        3: [
            _band("A", 70, 100, "#2e8b57", "Advanced"),
            _band("P", 50, 70, "#cca43b", "Proficient"),
            _band("D", 0, 50, "#e74c3c", "Developing"),
        ],
        5: [
            _band("1", 80, 100, "#2e8b57", "Highly Proficient"),
            _band("2", 68, 80, "#3a9d6a", "Proficient"),
            _band("3", 54, 68, "#0f3460", "Approaching Proficiency"),
            _band("4", 40, 54, "#cca43b", "Developing"),
            _band("5", 0, 40, "#e74c3c", "Emerging"),
        ],
        9: [
            _band("A1", 80, 100, "#2e8b57", "Excellent"),
            _band("B2", 70, 80, "#3a9d6a", "Very Good"),
            _band("B3", 65, 70, "#45b07d", "Good"),
            _band("C4", 60, 65, "#0f3460", "Credit"),
            _band("C5", 55, 60, "#cca43b", "Credit"),
            _band("C6", 50, 55, "#b38f32", "Credit"),
            _band("D7", 45, 50, "#e67e22", "Pass"),
            _band("E8", 40, 45, "#d35400", "Pass"),
            _band("F9", 0, 40, "#e74c3c", "Fail"),
        ],
    },
    "indicators": {
        3: [
            _band("A+", 70, 100, "#2e8b57", "Achieved"),
            _band("A", 40, 70, "#cca43b", "Achieving"),
            _band("E", 0, 40, "#e67e22", "Emerging"),
        ],
        5: [
            _band("5", 90, 100, "#2e8b57", "Consistently demonstrated"),
            _band("4", 70, 90, "#3a9d6a", "Frequently demonstrated"),
            _band("3", 50, 70, "#0f3460", "Sometimes demonstrated"),
            _band("2", 30, 50, "#cca43b", "Rarely demonstrated"),
            _band("1", 0, 30, "#e74c3c", "Not yet demonstrated"),
        ],
    },
}


def build_config(points: int = 3, kind: str = "core") -> List[Dict[str, Any]]:
    """Return a fresh copy of the default band table for a band count."""
    tables = DEFAULT_RANGES.get(kind)
    if tables is None:
        raise ValueError(f"Unknown early-childhood range kind: {kind!r}")
    if points not in tables:
        raise ValueError(
            f"No default {kind} ranges for {points} bands. Available: {sorted(tables)}"
        )
    return [dict(r) for r in tables[points]]


def get_daycare_grade(score: float, ranges: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    """
    First configured band with min <= score <= max.
    Scores outside every band get the "?" sentinel.
    """
    for r in ranges:
        if r["min"] <= score <= r["max"]:
            return r
    return dict(UNKNOWN_RANGE)


def rescale_points(points: float, max_points: float = 3) -> float:
    """Observation points (1..max_points) as a 0–100 percentage."""
    denominator = max_points if max_points else 1
    return round(points / denominator * 100, 2)


def get_observation_rating(points: float, ranges: Sequence[Dict[str, Any]], max_points: float = 3) -> Dict[str, Any]:
    """Rate a developmental indicator observation against percentage bands."""
    return get_daycare_grade(rescale_points(points, max_points), ranges)


def find_range_conflicts(ranges: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Report overlaps and gaps between configured bands.

    Bands are compared in ascending order of min. Two bands are contiguous
    when the next min equals the previous max; any space between them leaves
    fractional scores (49.5 between 0-49 and 50-69) without a band.
    Resolution never calls this; it is for settings screens that want to
    warn about a bad table.
    """
    issues: List[Dict[str, Any]] = []
    ordered = sorted(ranges, key=lambda r: (r["min"], r["max"]))

    for r in ordered:
        if r["min"] > r["max"]:
            issues.append({
                "type": "inverted",
                "labels": [r["label"]],
                "message": f"Band '{r['label']}' has min {r['min']} above max {r['max']}.",
            })

    for prev, nxt in zip(ordered, ordered[1:]):
        if nxt["min"] < prev["max"]:
            issues.append({
                "type": "overlap",
                "labels": [prev["label"], nxt["label"]],
                "message": f"Bands '{prev['label']}' and '{nxt['label']}' overlap.",
            })
        elif nxt["min"] > prev["max"]:
            issues.append({
                "type": "gap",
                "labels": [prev["label"], nxt["label"]],
                "message": (
                    f"Scores between {prev['max']} and {nxt['min']} match no band."
                ),
            })

    if issues:
        logger.warning("Early-childhood ranges have %d conflict(s)", len(issues))
    return issues

