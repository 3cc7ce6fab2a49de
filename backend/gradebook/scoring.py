"""
scoring.py — Composite subject totals from section marks.

Section A / section B meaning depends on the department:
- Early childhood: A = average indicator points (as %), B = observation score
- Basic / JHS: A = class assessment, B = examination
"""

from typing import Any, Dict, Mapping, Optional

from gradebook.stats import _to_score

MAX_SECTION = 100

# Terminal report split for Basic/JHS papers (max contribution per section)
DEFAULT_TERMINAL_CONFIG = {"section_a_max": 30, "section_b_max": 70}


def _clamp_section(val) -> float:
    return max(0.0, min(_to_score(val), MAX_SECTION))


def compute_subject_total(section_a, section_b, early_childhood: bool = False) -> float:
    """
    Subject total from two sections, each capped at 100.
    Early childhood averages the sections; other levels sum them, capped at 100.
    """
    a = _clamp_section(section_a)
    b = _clamp_section(section_b)
    if early_childhood:
        return float(round((a + b) / 2))
    return min(a + b, float(MAX_SECTION))


def scale_section(raw, out_of, weight) -> float:
    """Rescale raw marks out of ``out_of`` to a ``weight``-point contribution."""
    denominator = _to_score(out_of) or 1
    return round(_to_score(raw) / denominator * _to_score(weight), 2)


def compute_terminal_total(
    section_a,
    section_b,
    config: Optional[Mapping[str, Any]] = None,
    out_of_a=100,
    out_of_b=100,
) -> Dict[str, float]:
    """
    Terminal (end-of-term) composite for Basic/JHS.
    Each paper is scaled to its configured maximum, then summed.
    """
    cfg = dict(DEFAULT_TERMINAL_CONFIG)
    cfg.update(config or {})
    a = scale_section(section_a, out_of_a, cfg["section_a_max"])
    b = scale_section(section_b, out_of_b, cfg["section_b_max"])
    return {
        "section_a": a,
        "section_b": b,
        "total": round(min(a + b, float(MAX_SECTION)), 2),
    }
