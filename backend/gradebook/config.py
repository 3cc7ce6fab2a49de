"""
config.py — Grading configuration as an immutable value.

Every computation receives a GradingSettings instance explicitly; edits
produce a new value via ``with_changes``. Defaults can be seeded from the
environment (a .env file is honoured through python-dotenv).
"""

import logging
import os
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from dotenv import load_dotenv

from gradebook.early_childhood import build_config, find_range_conflicts
from gradebook.grading import NRT_SCALE, validate_scale

logger = logging.getLogger(__name__)


CORE_SUBJECTS: Tuple[str, ...] = ("Mathematics", "English", "Science", "Social Studies")
ELECTIVE_SUBJECTS: Tuple[str, ...] = (
    "Computing", "RME", "CAD", "Career Tech", "French", "Ghanaian Language",
)
SUBJECT_ORDER: Tuple[str, ...] = CORE_SUBJECTS + ELECTIVE_SUBJECTS

EARLY_CHILDHOOD_DEPARTMENTS = {"D&N", "KG", "Daycare", "Nursery"}

TERMS = (1, 2, 3)


def get_subjects_for_department(dept: str) -> List[str]:
    """Default subject list offered by a department."""
    if dept == "JHS":
        return list(SUBJECT_ORDER)
    if dept in ("Lower", "Upper") or "Basic" in dept:
        return ["Mathematics", "English", "History", "Science", "ICT", "RME", "Creativity", "PE", "French"]
    if dept == "D&N":
        return ["Language & Literacy", "Numeracy", "OWOP", "Creative Activity"]
    return ["General"]


def build_subject_list(
    dept: str,
    custom_subjects: Optional[Sequence[str]] = None,
    disabled_subjects: Optional[Sequence[str]] = None,
) -> List[str]:
    """Department subjects plus custom ones, minus disabled; first occurrence wins."""
    disabled = set(disabled_subjects or [])
    merged = list(dict.fromkeys([*get_subjects_for_department(dept), *(custom_subjects or [])]))
    return [s for s in merged if s not in disabled]


def is_early_childhood(dept: str) -> bool:
    return dept in EARLY_CHILDHOOD_DEPARTMENTS


def _freeze_ranges(ranges: Sequence[Mapping[str, Any]]) -> Tuple[Mapping[str, Any], ...]:
    return tuple(MappingProxyType(dict(r)) for r in ranges)


@dataclass(frozen=True)
class GradingSettings:
    """Configuration consumed by the processor and facilitator statistics."""

    school_name: str = "My School"
    current_term: int = 1
    grading_scale: Tuple[Tuple[str, int, float, str, str], ...] = NRT_SCALE
    # per-grade overrides; a grade without one keeps the scale's own remark
    grading_remarks: Mapping[str, str] = field(default_factory=dict)
    facilitator_mapping: Mapping[str, str] = field(default_factory=dict)
    core_subjects: Tuple[str, ...] = CORE_SUBJECTS
    early_childhood_core: Tuple[Mapping[str, Any], ...] = field(default_factory=lambda: build_config(3, "core"))
    early_childhood_indicators: Tuple[Mapping[str, Any], ...] = field(
        default_factory=lambda: build_config(3, "indicators")
    )

    def __post_init__(self):
        scale = tuple(tuple(row) for row in self.grading_scale)
        validate_scale(scale)
        object.__setattr__(self, "grading_scale", scale)
        object.__setattr__(self, "grading_remarks", MappingProxyType(dict(self.grading_remarks)))
        object.__setattr__(self, "facilitator_mapping", MappingProxyType(dict(self.facilitator_mapping)))
        object.__setattr__(self, "core_subjects", tuple(self.core_subjects))
        object.__setattr__(self, "early_childhood_core", _freeze_ranges(self.early_childhood_core))
        object.__setattr__(self, "early_childhood_indicators", _freeze_ranges(self.early_childhood_indicators))

        for name in ("early_childhood_core", "early_childhood_indicators"):
            if find_range_conflicts(getattr(self, name)):
                logger.warning("%s ranges are not contiguous; some scores will rate as '?'", name)

    def __hash__(self):
        # mapping fields hash by their sorted items, so settings can key a memo
        return hash((
            self.school_name,
            self.current_term,
            self.grading_scale,
            tuple(sorted(self.grading_remarks.items())),
            tuple(sorted(self.facilitator_mapping.items())),
            self.core_subjects,
            tuple(tuple(sorted(r.items())) for r in self.early_childhood_core),
            tuple(tuple(sorted(r.items())) for r in self.early_childhood_indicators),
        ))

    def with_changes(self, **changes) -> "GradingSettings":
        """New settings value with the given fields replaced."""
        return replace(self, **changes)

    def facilitator_for(self, subject: str, default: str = "N/A") -> str:
        return self.facilitator_mapping.get(subject) or default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        logger.warning("Ignoring non-integer %s=%r", name, os.getenv(name))
        return default


def load_settings(env_file: Optional[str] = None, **overrides) -> GradingSettings:
    """
    Settings seeded from the environment.

    ``env_file`` points at a dotenv file; by default the nearest .env is used.

    Recognised variables: SCHOOL_NAME, CURRENT_TERM, CORE_SUBJECTS
    (comma separated), EC_CORE_POINTS and EC_INDICATOR_POINTS (band counts).
    Keyword arguments win over the environment.
    """
    load_dotenv(env_file)

    raw_core = os.getenv("CORE_SUBJECTS", "")
    core = tuple(s.strip() for s in raw_core.split(",") if s.strip()) or CORE_SUBJECTS

    term = _env_int("CURRENT_TERM", 1)
    if term not in TERMS:
        logger.warning("CURRENT_TERM=%s is outside %s, using term 1", term, TERMS)
        term = 1

    values: Dict[str, Any] = {
        "school_name": os.getenv("SCHOOL_NAME", "My School"),
        "current_term": term,
        "core_subjects": core,
        "early_childhood_core": build_config(_env_int("EC_CORE_POINTS", 3), "core"),
        "early_childhood_indicators": build_config(_env_int("EC_INDICATOR_POINTS", 3), "indicators"),
    }
    values.update(overrides)
    return GradingSettings(**values)
