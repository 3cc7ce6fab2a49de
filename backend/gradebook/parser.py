"""
parser.py — Score-sheet ingestion (CSV, Excel) into student records.

Supports:
- CSV files
- Excel (.xlsx) — single and multi-sheet
- Auto-detect wide vs long format
- Fuzzy column name mapping
- Section A / B marks with totals computed when absent
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from gradebook.scoring import compute_subject_total
from gradebook.stats import _safe_float

logger = logging.getLogger(__name__)

# Common column name variations for auto-mapping
COLUMN_ALIASES = {
    "student_id": [
        "student_id", "studentid", "student id", "id", "admission_no",
        "admission no", "adm_no", "adm no", "serial_id", "serial id",
        "index_no", "index no", "s/n",
    ],
    "first_name": [
        "first_name", "first name", "firstname", "given_name", "given name",
    ],
    "surname": [
        "surname", "last_name", "last name", "lastname", "family_name",
    ],
    "name": [
        "name", "student_name", "student name", "full_name", "full name",
        "pupil_name", "pupil name", "learner_name", "learner name",
    ],
    "status": [
        "status", "admission_status", "admission status",
    ],
    "subject": [
        "subject", "subject_name", "subject name", "learning_area",
        "learning area", "course", "paper",
    ],
    "score": [
        "score", "total", "total_score", "total score", "marks", "mark",
        "raw_score", "raw score",
    ],
    "section_a": [
        "section_a", "section a", "sec_a", "sec a", "class_score",
        "class score", "cat", "indicator_avg",
    ],
    "section_b": [
        "section_b", "section b", "sec_b", "sec b", "exam_score",
        "exam score", "exam", "observation",
    ],
    "final_remark": [
        "final_remark", "final remark", "remark", "overall_remark",
    ],
    "recommendation": [
        "recommendation", "recommendations",
    ],
}


def parse_upload(file_path: str) -> Dict[str, pd.DataFrame]:
    """
    Parse a score sheet and return a dict of {sheet_name: DataFrame}.
    For CSV files, returns {"Sheet1": df}.
    """
    path = Path(file_path)
    ext = path.suffix.lower()

    if ext == ".csv":
        df = pd.read_csv(file_path, dtype=str)
        return {"Sheet1": df}

    elif ext == ".xlsx":
        xls = pd.ExcelFile(file_path, engine="openpyxl")
        sheets = {}
        for sheet_name in xls.sheet_names:
            df = pd.read_excel(xls, sheet_name=sheet_name, dtype=str)
            # Skip empty sheets
            if not df.empty and len(df.columns) > 1:
                sheets[sheet_name] = df
        if not sheets:
            raise ValueError("No valid sheets found in the Excel file.")
        return sheets

    else:
        raise ValueError(f"Unsupported file type: {ext}")


def suggest_column_mapping(df: pd.DataFrame) -> Dict[str, Optional[str]]:
    """
    Suggest a mapping from expected field names to actual column names.
    Returns: { expected_field: actual_column_name_or_None }
    """
    cols_lower = {str(c).lower().strip(): c for c in df.columns}
    mapping: Dict[str, Optional[str]] = {}

    for field, aliases in COLUMN_ALIASES.items():
        matched = None
        for alias in aliases:
            if alias in cols_lower:
                matched = cols_lower[alias]
                break
        mapping[field] = matched

    return mapping


def detect_layout(df: pd.DataFrame) -> str:
    """
    Detect whether the sheet is in 'wide' or 'long' format.

    Wide format: one row per pupil, subjects as columns.
    Long format: one row per pupil-subject combination (has a 'subject' column).
    """
    cols_lower = [str(c).lower().strip() for c in df.columns]

    if any(alias in cols_lower for alias in COLUMN_ALIASES["subject"]):
        return "long"

    known_metadata_cols = set()
    for aliases in COLUMN_ALIASES.values():
        known_metadata_cols.update(aliases)

    non_metadata_cols = [c for c in cols_lower if c not in known_metadata_cols]

    # 2+ unrecognised columns are taken to be subjects
    if len(non_metadata_cols) >= 2:
        return "wide"

    return "long"


def convert_wide_to_long(df: pd.DataFrame, mapping: Dict[str, Optional[str]]) -> pd.DataFrame:
    """
    Convert a wide-format DataFrame to long format.
    Assumes non-mapped columns are subject score columns.
    """
    metadata_cols = list(dict.fromkeys(v for v in mapping.values() if v and v in df.columns))
    subject_cols = [c for c in df.columns if c not in metadata_cols]

    if not subject_cols:
        return df

    return df.melt(
        id_vars=metadata_cols,
        value_vars=subject_cols,
        var_name="subject",
        value_name="score",
    )


def validate_data(df: pd.DataFrame) -> List[Dict]:
    """
    Validate a score sheet and return a list of issues found.
    """
    issues = []
    mapping = suggest_column_mapping(df)

    if mapping.get("name") is None and mapping.get("first_name") is None and mapping.get("student_id") is None:
        issues.append({
            "type": "missing_column",
            "severity": "critical",
            "message": "No pupil identifier column found (id, name or first name).",
        })

    if len(df) == 0:
        issues.append({
            "type": "empty_data",
            "severity": "critical",
            "message": "The score sheet contains no data rows.",
        })

    score_cols = [mapping.get(f) for f in ("score", "section_a", "section_b") if mapping.get(f)]
    if detect_layout(df) == "long" and not score_cols:
        issues.append({
            "type": "missing_column",
            "severity": "critical",
            "message": f"No score column found. Expected one of: {COLUMN_ALIASES['score']}",
        })

    for col in score_cols:
        scores = pd.to_numeric(df[col], errors="coerce")
        invalid_count = int(scores.isna().sum() - df[col].isna().sum())
        if invalid_count > 0:
            issues.append({
                "type": "invalid_scores",
                "severity": "warning",
                "message": f"{invalid_count} values in '{col}' could not be parsed as numbers.",
            })
        valid_scores = scores.dropna()
        if (valid_scores < 0).any():
            issues.append({
                "type": "negative_scores",
                "severity": "warning",
                "message": f"Some values in '{col}' are negative — likely data entry errors.",
            })
        if (valid_scores > 100).any():
            issues.append({
                "type": "scores_over_100",
                "severity": "warning",
                "message": f"Some values in '{col}' exceed 100 and will be capped.",
            })

    id_col = mapping.get("student_id") or mapping.get("name")
    subject_col = mapping.get("subject")
    if id_col and subject_col:
        dupe_count = int(df.duplicated(subset=[id_col, subject_col], keep=False).sum())
        if dupe_count > 0:
            issues.append({
                "type": "duplicates",
                "severity": "warning",
                "message": f"{dupe_count} duplicate entries detected (same pupil + subject).",
            })

    return issues


# ── Student records ─────────────────────────────────────────────────

def _cell(row: pd.Series, col: Optional[str]) -> Optional[str]:
    if not col:
        return None
    val = row.get(col)
    if val is None or pd.isna(val):
        return None
    text = str(val).strip()
    return text or None


def _split_name(full_name: str):
    parts = full_name.split(None, 1)
    if not parts:
        return "", ""
    return parts[0], parts[1] if len(parts) > 1 else ""


def frame_to_students(df: pd.DataFrame, early_childhood: bool = False, status: str = "Admitted") -> List[Dict[str, Any]]:
    """
    Build student records from a wide or long score sheet.

    Each record carries ``score_details[subject]["total"]``; when the sheet
    has section columns instead of a total, the total is derived from them
    (averaged for early childhood, summed and capped otherwise).
    Pupils keep the order of their first appearance in the sheet.
    """
    mapping = suggest_column_mapping(df)
    if detect_layout(df) == "wide":
        df = convert_wide_to_long(df, mapping)
        mapping = suggest_column_mapping(df)

    subject_col = mapping.get("subject")
    if subject_col is None:
        raise ValueError("Score sheet has no subject column and no subject columns were detected.")

    students: Dict[str, Dict[str, Any]] = {}
    for _, row in df.iterrows():
        sid = _cell(row, mapping.get("student_id"))
        full_name = _cell(row, mapping.get("name"))
        first = _cell(row, mapping.get("first_name"))
        last = _cell(row, mapping.get("surname"))
        if not (first or last) and full_name:
            first, last = _split_name(full_name)

        key = sid or f"{first or ''} {last or ''}".strip()
        if not key:
            logger.warning("Skipping score row with no pupil identifier")
            continue

        record = students.get(key)
        if record is None:
            record = {
                "id": sid or key,
                "first_name": first or "",
                "surname": last or "",
                "status": _cell(row, mapping.get("status")) or status,
                "score_details": {},
                "attendance": {},
            }
            for field in ("final_remark", "recommendation"):
                value = _cell(row, mapping.get(field))
                if value:
                    record[field] = value
            students[key] = record

        subject = _cell(row, subject_col)
        if not subject:
            continue

        details: Dict[str, Any] = {}
        section_a = _safe_float(_cell(row, mapping.get("section_a")))
        section_b = _safe_float(_cell(row, mapping.get("section_b")))
        if section_a is not None:
            details["section_a"] = section_a
        if section_b is not None:
            details["section_b"] = section_b

        total = _safe_float(_cell(row, mapping.get("score")))
        if total is None and details:
            total = compute_subject_total(section_a or 0, section_b or 0, early_childhood)
        details["total"] = total if total is not None else 0.0

        record["score_details"][subject] = details

    logger.debug("Parsed %d pupil records", len(students))
    return list(students.values())
