"""
processor.py — Pupil data processor: raw roster in, ranked graded roster out.

Pipeline per call:
1. Class mean/std_dev per subject (absentees count as 0)
2. NRT grade, core flag, class average and canned remark per pupil/subject
3. Best-six aggregate: best 4 core + best 2 elective grade values
4. Category from aggregate (P1/G1/S1/B1/W1)
5. Attendance and overall remark
6. Roster sorted best-first (ascending aggregate, stable)

The input records are never modified; every call builds fresh dicts.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd
from scipy import stats as sp_stats

from gradebook.config import GradingSettings
from gradebook.grading import generate_subject_remark, get_nrt_grade
from gradebook.stats import _sanitize, build_score_frame, compute_subject_stats

logger = logging.getLogger(__name__)


BEST_CORE = 4
BEST_ELECTIVE = 2
INCOMPLETE_AGGREGATE = 54

# Category ladder (max aggregate inclusive, code, label). Ordered low to high.
CATEGORIES: List[Tuple[int, str, str]] = [
    (10, "P1", "Platinum Elite"),
    (18, "G1", "Gold Scholar"),
    (30, "S1", "Silver Achiever"),
    (45, "B1", "Bronze Competent"),
]
FALLBACK_CATEGORY = ("W1", "Needs Improvement")

PRESENT = "P"
DEFAULT_RECOMMENDATION = "Continue with intensive review."


# ── Building blocks ─────────────────────────────────────────────────

def compute_aggregate(computed_scores: Sequence[Dict[str, Any]]) -> int:
    """
    Best-six aggregate: sum of the 4 best core and 2 best elective grade values.
    Anything short of six counted subjects gives the worst aggregate, 54.
    """
    cores = sorted((s for s in computed_scores if s["is_core"]), key=lambda s: s["grade_value"])[:BEST_CORE]
    electives = sorted((s for s in computed_scores if not s["is_core"]), key=lambda s: s["grade_value"])[:BEST_ELECTIVE]

    if len(cores) + len(electives) != BEST_CORE + BEST_ELECTIVE:
        return INCOMPLETE_AGGREGATE
    return int(sum(s["grade_value"] for s in cores) + sum(s["grade_value"] for s in electives))


def classify_category(aggregate: float) -> Tuple[str, str]:
    """(code, label) for an aggregate; upper bounds are inclusive."""
    for max_aggregate, code, label in CATEGORIES:
        if aggregate <= max_aggregate:
            return code, label
    return FALLBACK_CATEGORY


def count_attendance(student: Dict[str, Any], term) -> str:
    """Days marked present ('P') in the term's attendance log, as a string."""
    attendance = student.get("attendance") or {}
    log = attendance.get(term)
    if log is None:
        log = attendance.get(str(term)) or {}
    return str(sum(1 for status in log.values() if status == PRESENT))


def admitted_students(students: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Only pupils whose admission is complete take part in grading."""
    return [s for s in students if s.get("status") == "Admitted"]


def _display_name(student: Dict[str, Any]) -> str:
    parts = [str(student.get("first_name") or "").strip(), str(student.get("surname") or "").strip()]
    name = " ".join(p for p in parts if p)
    return name or str(student.get("name") or student.get("id") or "")


# ── Processor ───────────────────────────────────────────────────────

def process_student_data(
    students: Sequence[Dict[str, Any]],
    settings: GradingSettings,
    subjects: Sequence[str],
) -> List[Dict[str, Any]]:
    """
    Grade every pupil against the class and return the ranked roster.
    Ties in aggregate keep their input order.
    """
    # repeated subjects would become duplicate frame columns
    subjects = list(dict.fromkeys(subjects))
    frame = build_score_frame(list(students), subjects)
    subject_stats = compute_subject_stats(frame, subjects)
    core = set(settings.core_subjects)

    for subj, st in subject_stats.items():
        if st["std_dev"] <= 0 and len(frame) > 0:
            logger.warning("No score spread in %s; every pupil gets the default grade", subj)

    pupils = []
    for idx, student in enumerate(students):
        scores = {subj: float(frame.at[idx, subj]) for subj in subjects}

        computed = []
        for subj in subjects:
            score = scores[subj]
            st = subject_stats[subj]
            grade = get_nrt_grade(
                score, st["mean"], st["std_dev"],
                custom_remarks=settings.grading_remarks,
                scale=settings.grading_scale,
            )
            computed.append({
                "name": subj,
                "score": score,
                "grade": grade["grade"],
                "grade_value": grade["value"],
                "grade_remark": grade["remark"],
                "color": grade["color"],
                "is_core": subj in core,
                "class_average": st["mean"],
                "facilitator": settings.facilitator_for(subj),
                "remark": generate_subject_remark(score),
            })

        # display order only; the aggregate sorts its own partitions
        computed.sort(key=lambda s: s["score"], reverse=True)

        aggregate = compute_aggregate(computed)
        code, category = classify_category(aggregate)

        pupils.append({
            "no": idx + 1,
            "student_id": student.get("id"),
            "name": _display_name(student),
            "scores": scores,
            "computed_scores": computed,
            "aggregate": aggregate,
            "category_code": code,
            "category": category,
            "overall_remark": student.get("final_remark") or f"Performance is {category.lower()}.",
            "recommendation": student.get("recommendation") or DEFAULT_RECOMMENDATION,
            "attendance": count_attendance(student, settings.current_term),
        })

    logger.debug("Processed %d pupils across %d subjects", len(pupils), len(subjects))
    return sorted(pupils, key=lambda p: p["aggregate"])


# ── Broad sheet ─────────────────────────────────────────────────────

def build_broad_sheet(pupils: Sequence[Dict[str, Any]], subjects: Sequence[str]) -> pd.DataFrame:
    """
    Tabular broad sheet for a processed roster.
    ``position`` is the competition rank on aggregate (ties share a place).
    """
    subjects = list(dict.fromkeys(subjects))
    columns = ["position", "name", *subjects, "aggregate", "category_code", "category", "attendance"]
    if not pupils:
        return pd.DataFrame(columns=columns)

    rows = []
    for p in pupils:
        row = {"name": p["name"]}
        row.update({subj: p["scores"].get(subj, 0.0) for subj in subjects})
        row.update({
            "aggregate": p["aggregate"],
            "category_code": p["category_code"],
            "category": p["category"],
            "attendance": p["attendance"],
        })
        rows.append(row)

    df = pd.DataFrame(rows)
    df["position"] = sp_stats.rankdata(df["aggregate"].to_numpy(), method="min").astype(int)
    return df[columns]


def summarize_roster(pupils: Sequence[Dict[str, Any]], subjects: Sequence[str]) -> Dict[str, Any]:
    """Category counts and per-subject class averages for a processed roster."""
    subjects = list(dict.fromkeys(subjects))
    counts = {code: 0 for _, code, _ in CATEGORIES}
    counts[FALLBACK_CATEGORY[0]] = 0
    for p in pupils:
        counts[p["category_code"]] = counts.get(p["category_code"], 0) + 1

    averages: Dict[str, Optional[float]] = {}
    for subj in subjects:
        values = [p["scores"].get(subj, 0.0) for p in pupils]
        averages[subj] = round(sum(values) / len(values), 2) if values else None

    return _sanitize({
        "total_pupils": len(pupils),
        "category_counts": counts,
        "subject_averages": averages,
        "best_aggregate": min((p["aggregate"] for p in pupils), default=None),
    })
