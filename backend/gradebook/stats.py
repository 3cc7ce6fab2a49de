"""
stats.py — Class-level statistics for norm-referenced grading.

Computes:
- Mean and population standard deviation of a score list
- Students × subjects score matrix (pandas)
- Per-subject class statistics
"""

from typing import Any, Dict, Iterable, List, Optional

import numpy as np
import pandas as pd


# ── Helpers ─────────────────────────────────────────────────────────

def _safe_float(val) -> Optional[float]:
    """Convert to float or return None."""
    try:
        v = float(val)
        return None if np.isnan(v) or np.isinf(v) else round(v, 2)
    except (TypeError, ValueError):
        return None


def _to_score(val) -> float:
    """Coerce a raw score to float; missing or unreadable values count as 0."""
    try:
        v = float(val)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if np.isnan(v) or np.isinf(v) else v


def _sanitize(obj):
    """Recursively coerce numpy/pandas scalars to JSON-safe Python types."""
    if isinstance(obj, dict):
        return {k: _sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize(v) for v in obj]
    if isinstance(obj, (np.bool_,)):
        return bool(obj)
    if isinstance(obj, (np.integer,)):
        return int(obj)
    if isinstance(obj, (np.floating, float)):
        v = float(obj)
        return None if (np.isnan(v) or np.isinf(v)) else v
    return obj


# ── Stats primitive ─────────────────────────────────────────────────

def calculate_stats(scores: Iterable) -> Dict[str, float]:
    """
    Mean and population standard deviation (divide by N) of a score list.
    The class is the whole population, not a sample. Empty input gives zeros.
    """
    values = np.array([_to_score(s) for s in scores], dtype=float)
    if values.size == 0:
        return {"mean": 0.0, "std_dev": 0.0}
    return {
        "mean": float(np.mean(values)),
        "std_dev": float(np.std(values, ddof=0)),
    }


# ── Score matrix ────────────────────────────────────────────────────

def get_subject_total(student: Dict[str, Any], subject: str) -> float:
    """Raw total for one subject of a student record, 0 when not recorded."""
    details = (student.get("score_details") or {}).get(subject) or {}
    return _to_score(details.get("total", 0))


def build_score_frame(students: List[Dict[str, Any]], subjects: List[str]) -> pd.DataFrame:
    """
    Students × subjects matrix of raw totals.
    Row order follows the input roster; absentees are filled with 0.
    """
    subjects = list(dict.fromkeys(subjects))
    rows = [
        {subj: get_subject_total(s, subj) for subj in subjects}
        for s in students
    ]
    frame = pd.DataFrame(rows, columns=list(subjects), dtype=float)
    return frame.fillna(0.0)


def compute_subject_stats(frame: pd.DataFrame, subjects: List[str]) -> Dict[str, Dict[str, float]]:
    """Class-wide mean/std_dev per subject over every row of the score matrix."""
    subjects = list(dict.fromkeys(subjects))
    result: Dict[str, Dict[str, float]] = {}
    for subj in subjects:
        if subj in frame.columns:
            result[subj] = calculate_stats(frame[subj].tolist())
        else:
            result[subj] = calculate_stats([])
    return result
