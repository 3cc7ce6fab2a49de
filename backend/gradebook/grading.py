"""
grading.py — Norm-referenced (NRT) grade scale and resolvers.

The 9-point scale maps a pupil's Z-score within the class to a grade:
  A1 (best, value 1) ... F9 (fail, value 9)

Also provides the coarser developmental ratings (2, 3, 5 or 9 points) used
for early-childhood learners, and the canned per-subject remarks.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple


# NRT grade bands (grade, value, z_cutoff, remark, color)
# Ordered by descending z_cutoff. The last entry is the catch-all.
NRT_SCALE: Tuple[Tuple[str, int, float, str, str], ...] = (
    ("A1", 1, 1.645, "Excellent", "#2e8b57"),
    ("B2", 2, 1.036, "Very Good", "#3a9d6a"),
    ("B3", 3, 0.524, "Good", "#45b07d"),
    ("C4", 4, 0.0, "Credit", "#0f3460"),
    ("C5", 5, -0.524, "Credit", "#cca43b"),
    ("C6", 6, -1.036, "Credit", "#b38f32"),
    ("D7", 7, -1.645, "Pass", "#e67e22"),
    ("E8", 8, -2.326, "Pass", "#d35400"),
    ("F9", 9, -999.0, "Fail", "#e74c3c"),
)

# Returned for a class with no spread (zero variance or no pupils).
DEGENERATE_INDEX = 3
WORST_GRADE = "F9"

NEUTRAL_RATING = {"label": "N/A", "color": "#94a3b8", "value": 0}

# Developmental bands (z_bound, bound_inclusive, label, color, value)
# Ordered high to low; the final row has no bound.
DEVELOPMENTAL_SCALES: Dict[int, Tuple[Tuple[Optional[float], bool, str, str, int], ...]] = {
    2: (
        (0.0, True, "Achieved", "#2e8b57", 2),
        (None, True, "Emerging", "#e67e22", 1),
    ),
    3: (
        (1.0, False, "Advanced", "#2e8b57", 3),
        (-1.0, True, "Achieving", "#cca43b", 2),
        (None, True, "Developing", "#e74c3c", 1),
    ),
    5: (
        (1.5, False, "Exceptional", "#2e8b57", 5),
        (0.5, False, "Strong", "#3a9d6a", 4),
        (-0.5, True, "Average", "#0f3460", 3),
        (-1.5, True, "Low Average", "#cca43b", 2),
        (None, True, "At Risk", "#e74c3c", 1),
    ),
}

# Canned subject remarks (min_score, remark). Ordered high to low.
SUBJECT_REMARKS = [
    (80.0, "Exceptional grasp of concepts. Keep it up!"),
    (70.0, "Strong performance. Consistent effort observed."),
    (60.0, "Good understanding. Can achieve more with practice."),
    (50.0, "Satisfactory progress. Needs more focus on details."),
    (40.0, "Fair performance. More work required in basic concepts."),
    (None, "Needs intensive intervention and consistent monitoring."),
]


# ── Scale configuration ─────────────────────────────────────────────

def validate_scale(scale: Sequence[Sequence[Any]]) -> None:
    """
    Check a (possibly user-edited) scale before it is used.
    Raises ValueError when the table is empty, has duplicate grades or its
    cutoffs are not in strictly descending order.
    """
    if not scale:
        raise ValueError("Grading scale must contain at least one entry.")

    grades = [row[0] for row in scale]
    if len(set(grades)) != len(grades):
        raise ValueError(f"Grading scale has duplicate grade labels: {grades}")

    cutoffs = [float(row[2]) for row in scale]
    for upper, lower in zip(cutoffs, cutoffs[1:]):
        if lower >= upper:
            raise ValueError(
                f"Grading scale cutoffs must be strictly descending, got {cutoffs}"
            )


def build_scale(overrides: Optional[Mapping[str, Mapping[str, Any]]] = None) -> Tuple[Tuple[str, int, float, str, str], ...]:
    """
    Apply per-grade edits to the default table, e.g.
    ``{"A1": {"z_cutoff": 1.5, "remark": "Outstanding"}}``.
    The result is re-sorted by descending cutoff and validated.
    """
    overrides = overrides or {}
    unknown = set(overrides) - {row[0] for row in NRT_SCALE}
    if unknown:
        raise ValueError(f"Unknown grades in scale overrides: {sorted(unknown)}")

    rows = []
    for grade, value, cutoff, remark, color in NRT_SCALE:
        edit = overrides.get(grade) or {}
        rows.append((
            grade,
            int(edit.get("value", value)),
            float(edit.get("z_cutoff", cutoff)),
            str(edit.get("remark", remark)),
            str(edit.get("color", color)),
        ))

    rows.sort(key=lambda r: r[2], reverse=True)
    scale = tuple(rows)
    validate_scale(scale)
    return scale


def _entry_dict(entry, z_score: Optional[float], custom_remarks: Optional[Mapping[str, str]]) -> Dict[str, Any]:
    grade, value, _, remark, color = entry
    override = (custom_remarks or {}).get(grade)
    return {
        "grade": grade,
        "value": value,
        "z_score": None if z_score is None else round(z_score, 4),
        "remark": override or remark,
        "color": color,
    }


# ── Resolvers ───────────────────────────────────────────────────────

def get_nrt_grade(
    score: float,
    mean: float,
    std_dev: float,
    custom_remarks: Optional[Mapping[str, str]] = None,
    scale: Sequence[Sequence[Any]] = NRT_SCALE,
) -> Dict[str, Any]:
    """
    Resolve a raw score to its NRT grade within a class of given mean/std_dev.

    A class with no spread (std_dev <= 0) always gets the index-3 entry
    (C4 on the default table). Otherwise the first entry whose cutoff is
    met by the Z-score wins, falling back to the last entry.
    """
    if std_dev <= 0:
        entry = scale[min(DEGENERATE_INDEX, len(scale) - 1)]
        return _entry_dict(entry, None, custom_remarks)

    z = (score - mean) / std_dev
    for entry in scale:
        if z >= entry[2]:
            return _entry_dict(entry, z, custom_remarks)
    return _entry_dict(scale[-1], z, custom_remarks)


def get_developmental_rating(score: float, mean: float, std_dev: float, points: int = 9) -> Dict[str, Any]:
    """Score-based rating on a 2, 3, 5 or 9 point scale from the class distribution."""
    if points not in (2, 3, 5, 9):
        raise ValueError(f"Unsupported rating scale: {points} points (use 2, 3, 5 or 9)")
    if std_dev <= 0:
        return dict(NEUTRAL_RATING)

    z = (score - mean) / std_dev

    if points == 9:
        grade = get_nrt_grade(score, mean, std_dev)
        return {"label": grade["grade"], "color": grade["color"], "value": grade["value"]}

    bands = DEVELOPMENTAL_SCALES[points]
    for bound, inclusive, label, color, value in bands[:-1]:
        if z > bound or (inclusive and z == bound):
            return {"label": label, "color": color, "value": value}

    _, _, label, color, value = bands[-1]
    return {"label": label, "color": color, "value": value}


def generate_subject_remark(score: float) -> str:
    """Canned facilitator remark for a raw subject score."""
    for min_score, remark in SUBJECT_REMARKS:
        if min_score is None or score >= min_score:
            return remark
    return SUBJECT_REMARKS[-1][1]


# ── Legend helpers ──────────────────────────────────────────────────

def get_grade_value_map(scale: Sequence[Sequence[Any]] = NRT_SCALE) -> Dict[int, str]:
    """Map 9-point value back to grade label."""
    return {int(row[1]): row[0] for row in scale}


def get_all_grade_thresholds(
    scale: Sequence[Sequence[Any]] = NRT_SCALE,
    custom_remarks: Optional[Mapping[str, str]] = None,
) -> List[Dict[str, Any]]:
    """Return the full scale for legend/reference."""
    thresholds = []
    for idx, (grade, value, cutoff, remark, color) in enumerate(scale):
        is_last = idx == len(scale) - 1
        thresholds.append(
            {
                "grade": grade,
                "value": value,
                "z_min": None if is_last else cutoff,
                "z_max": None if idx == 0 else scale[idx - 1][2],
                "remark": (custom_remarks or {}).get(grade) or remark,
                "color": color,
            }
        )
    return thresholds
