"""
facilitator.py — Per-subject grade distribution and facilitator performance.

performance_percentage = (1 - total_grade_value / (pupils * 9)) * 100
  0% when every pupil earns F9; a class of all A1 tops out at 8/9 (88.9%).
"""

import logging
import math
from typing import Any, Dict, List, Sequence

from gradebook.config import GradingSettings
from gradebook.grading import WORST_GRADE, get_grade_value_map, get_nrt_grade
from gradebook.stats import _safe_float, calculate_stats, get_subject_total

logger = logging.getLogger(__name__)

MAX_GRADE_VALUE = 9


def calculate_facilitator_stats(
    students: Sequence[Dict[str, Any]],
    settings: GradingSettings,
    subject: str,
) -> Dict[str, Any]:
    """Grade histogram, performance percentage and summary grade for one subject."""
    scale = settings.grading_scale
    scores = [get_subject_total(s, subject) for s in students]
    st = calculate_stats(scores)

    # every grade appears, even with a zero count
    distribution = {row[0]: 0 for row in scale}
    total_value = 0
    for score in scores:
        grade = get_nrt_grade(score, st["mean"], st["std_dev"], scale=scale)
        distribution[grade["grade"]] += 1
        total_value += grade["value"]

    pupil_count = len(students) or 1
    performance = (1 - total_value / (pupil_count * MAX_GRADE_VALUE)) * 100
    # halves round up
    average_value = math.floor(total_value / pupil_count + 0.5)
    grade = get_grade_value_map(scale).get(average_value, WORST_GRADE)

    logger.debug("%s: %d pupils, performance %.1f%%", subject, len(students), performance)

    return {
        "subject": subject,
        "facilitator": settings.facilitator_for(subject, default="Unknown"),
        "distribution": distribution,
        "total_pupils": len(students),
        "mean_score": _safe_float(st["mean"]),
        "performance_percentage": performance,
        "grade": grade,
    }


def calculate_all_facilitator_stats(
    students: Sequence[Dict[str, Any]],
    settings: GradingSettings,
    subjects: Sequence[str],
) -> List[Dict[str, Any]]:
    """Facilitator statistics for every subject, in subject order."""
    return [calculate_facilitator_stats(students, settings, subj) for subj in subjects]
