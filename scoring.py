"""
Compliance scoring.

Assessment model:
  - Each control resolves to compliant / partially-compliant / non-compliant
    from its answers. Any unanswered required question makes it non-compliant;
    otherwise the implementation question decides.
  - score = (compliant + 0.5 * partially-compliant) / total controls.
  - score >= 0.8 is compliant, >= 0.5 partially-compliant, else non-compliant.

The same weighting summarises a framework's recorded control statuses into the
dashboard score, which the statistics helpers aggregate with pandas.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Optional

import pandas as pd

from config import (
    COMPLIANT_THRESHOLD,
    CONTROL_STATUSES,
    PARTIAL_CREDIT,
    PARTIAL_THRESHOLD,
    PRIORITIES,
)
from models import AssessmentResult, ComplianceStatus, Control, Framework

COMPLIANT = ComplianceStatus.COMPLIANT.value
PARTIAL = ComplianceStatus.PARTIALLY_COMPLIANT.value
NON_COMPLIANT = ComplianceStatus.NON_COMPLIANT.value

PRIORITY_ORDER = {p: i for i, p in enumerate(PRIORITIES)}


# -------------- Assessment scoring ---------------
def status_for_score(score: float) -> str:
    """
    Map a 0-1 score to an overall status label.

    >= 0.8 -> compliant
    >= 0.5 -> partially-compliant
    else   -> non-compliant
    """
    if score >= COMPLIANT_THRESHOLD:
        return COMPLIANT
    if score >= PARTIAL_THRESHOLD:
        return PARTIAL
    return NON_COMPLIANT


def weighted_score(statuses: Iterable[str]) -> float:
    """
    Fraction of credit earned by a list of control statuses.

    Partial compliance earns half credit. An empty list scores 0.0.
    """
    statuses = list(statuses)
    if not statuses:
        return 0.0
    compliant = sum(1 for s in statuses if s == COMPLIANT)
    partial = sum(1 for s in statuses if s == PARTIAL)
    return (compliant + PARTIAL_CREDIT * partial) / len(statuses)


def control_status(control: Control, answers: dict) -> str:
    """
    Resolve one control's status from its answers.

    Args:
        control (Control): the control being assessed
        answers (dict): question id -> Answer

    Returns:
        str: compliant, partially-compliant or non-compliant
    """
    for q in control.required_questions:
        if not q.is_answered_by(answers.get(q.id)):
            return NON_COMPLIANT

    impl = next((q for q in control.questions if q.is_implementation), None)
    if impl is None:
        return NON_COMPLIANT
    a = answers.get(impl.id)
    value = a.value if a is not None else None
    if value == "yes":
        return COMPLIANT
    if value == "partial":
        return PARTIAL
    return NON_COMPLIANT


def score_assessment(framework, controls, answers, assessed_on=None) -> AssessmentResult:
    """
    Score a completed questionnaire.

    Pure function: the same framework, controls and answers always give an
    equal result. `assessed_on` is copied onto the result untouched.

    Args:
        framework (Framework): the framework assessed
        controls (list[Control]): the controls that were asked
        answers (list[Answer]): one answer per question
        assessed_on (datetime, optional): timestamp for the result

    Returns:
        AssessmentResult
    """
    by_question = {a.question_id: a for a in answers}
    control_results = {c.id: control_status(c, by_question) for c in controls}
    score = weighted_score(control_results.values())
    return AssessmentResult(
        framework_id=framework.id,
        framework_name=framework.name,
        score=score,
        completed_controls=sum(1 for s in control_results.values() if s == COMPLIANT),
        total_controls=len(controls),
        status=status_for_score(score),
        control_results=control_results,
        answers=[replace(a) for a in answers],
        date=assessed_on,
    )


def summarize_framework(framework: Framework) -> Framework:
    """Set the framework's dashboard score (percent) and status from its controls."""
    score = weighted_score(c.status for c in framework.controls)
    framework.score = round(score * 100, 1)
    framework.status = (
        status_for_score(score) if framework.controls else ComplianceStatus.PENDING.value
    )
    return framework


# -------------- Dashboard statistics ---------------
def controls_frame(frameworks: list[Framework]) -> pd.DataFrame:
    """One row per control across all frameworks."""
    rows = [
        {
            "framework_id": fw.id,
            "framework": fw.name,
            "id": c.id,
            "control_id": c.control_id,
            "title": c.title,
            "category": c.category,
            "priority": c.priority,
            "status": c.status,
            "owner": c.owner,
            "due_date": c.due_date,
        }
        for fw in frameworks
        for c in fw.controls
    ]
    cols = [
        "framework_id", "framework", "id", "control_id", "title",
        "category", "priority", "status", "owner", "due_date",
    ]
    return pd.DataFrame(rows, columns=cols)


def filter_controls(controls: list[Control], status=None, priority=None, category=None) -> list[Control]:
    """Linear filter shared by the controls table and the controls endpoint."""
    out = list(controls)
    if status:
        out = [c for c in out if c.status == status]
    if priority:
        out = [c for c in out if c.priority == priority]
    if category:
        out = [c for c in out if c.category == category]
    return out


def open_controls(frameworks: list[Framework], limit: int = 5) -> list[dict]:
    """Controls not yet compliant, most urgent priority first."""
    df = controls_frame(frameworks)
    df = df[df["status"] != COMPLIANT].copy()
    df["rank"] = df["priority"].map(PRIORITY_ORDER).fillna(len(PRIORITIES))
    df = df.sort_values("rank", kind="stable").drop(columns=["rank"])
    return df.head(limit).to_dict(orient="records")


def priority_compliance(frameworks: list[Framework]) -> dict:
    """Per priority: total controls and how many are compliant."""
    df = controls_frame(frameworks)
    out = {p: {"total": 0, "compliant": 0} for p in PRIORITIES}
    if df.empty:
        return out
    df["is_compliant"] = df["status"] == COMPLIANT
    grouped = df.groupby("priority").agg(
        total=("id", "count"), compliant=("is_compliant", "sum")
    )
    for p, row in grouped.iterrows():
        out[p] = {"total": int(row["total"]), "compliant": int(row["compliant"])}
    return out


def coverage_matrix(frameworks: list[Framework]) -> pd.DataFrame:
    """
    Generate one row per (Framework, Category) with the weighted compliance
    percentage of that category's controls.

    Returns:
        pd.DataFrame: columns "Framework", "Category", "Coverage"
    """
    df = controls_frame(frameworks)
    if df.empty:
        return pd.DataFrame(columns=["Framework", "Category", "Coverage"])
    rows = []
    for (fw, cat), g in df.groupby(["framework", "category"], sort=False):
        rows.append(
            {
                "Framework": fw,
                "Category": cat,
                "Coverage": round(weighted_score(g["status"]) * 100, 2),
            }
        )
    return pd.DataFrame(rows)


def dashboard_statistics(frameworks: list[Framework]) -> dict:
    """
    Aggregate figures for the dashboard KPIs and the statistics endpoint.

    Returns:
        dict: overall_score (rounded mean framework score, 0 without
            frameworks), framework_count, controls_count, critical_issues,
            framework_scores, status_distribution
    """
    df = controls_frame(frameworks)
    counts = df["status"].value_counts() if not df.empty else pd.Series(dtype=int)
    critical = (
        int(((df["status"] == NON_COMPLIANT) & (df["priority"] == "critical")).sum())
        if not df.empty
        else 0
    )
    scores = [fw.score for fw in frameworks]
    distribution = {s: 0 for s in CONTROL_STATUSES}
    for fw in frameworks:
        distribution[fw.status] = distribution.get(fw.status, 0) + 1
    return {
        "overall_score": round(sum(scores) / len(scores)) if scores else 0,
        "framework_count": len(frameworks),
        "controls_count": {
            "total": int(len(df)),
            "compliant": int(counts.get(COMPLIANT, 0)),
            "partially_compliant": int(counts.get(PARTIAL, 0)),
            "non_compliant": int(counts.get(NON_COMPLIANT, 0)),
            "pending": int(counts.get(ComplianceStatus.PENDING.value, 0)),
        },
        "critical_issues": critical,
        "framework_scores": [
            {"id": fw.id, "name": fw.name, "score": fw.score} for fw in frameworks
        ],
        "status_distribution": distribution,
    }


def framework_by_id(frameworks: list[Framework], framework_id: Optional[str]) -> Optional[Framework]:
    return next((f for f in frameworks if f.id == framework_id), None)
