"""
Compliance alerts raised from framework state and from new assessments.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional

from config import CRITICAL_SCORE_ALERT, DUE_SOON_DAYS, LOW_SCORE_ALERT
from models import AssessmentResult, Framework


@dataclass
class ComplianceAlert:
    id: str
    type: str  # assessment | framework | control
    severity: str  # critical | high | medium | low
    title: str
    description: str
    related_id: str
    related_name: str


def assessment_severity(score_pct: float) -> str:
    if score_pct < 50:
        return "critical"
    if score_pct < 70:
        return "high"
    if score_pct < 90:
        return "medium"
    return "low"


def compliance_alerts(
    frameworks: list[Framework],
    result: Optional[AssessmentResult] = None,
    today: Optional[date] = None,
) -> list[ComplianceAlert]:
    """
    Build the alert list shown on the dashboard.

    - framework score under 70 (critical under 50)
    - critical-priority controls that are non-compliant
    - open controls due within DUE_SOON_DAYS (overdue included)
    - one alert for `result`, graded by its score
    """
    today = today or datetime.now(timezone.utc).date()
    alerts = []
    for fw in frameworks:
        if fw.score < LOW_SCORE_ALERT:
            alerts.append(
                ComplianceAlert(
                    id=f"compliance-alert-{fw.id}-score",
                    type="framework",
                    severity="critical" if fw.score < CRITICAL_SCORE_ALERT else "high",
                    title=f"Low compliance score for {fw.name}",
                    description=(
                        f"The overall compliance score for {fw.name} is {fw.score:.0f}%, "
                        "which is below the acceptable threshold."
                    ),
                    related_id=fw.id,
                    related_name=fw.name,
                )
            )
        for c in fw.controls:
            if c.priority == "critical" and c.status == "non-compliant":
                alerts.append(
                    ComplianceAlert(
                        id=f"compliance-alert-{c.id}",
                        type="control",
                        severity="critical",
                        title=f"Critical control non-compliant: {c.control_id}",
                        description=(
                            f"Critical control {c.control_id}: {c.title} is non-compliant "
                            "and requires immediate attention."
                        ),
                        related_id=c.id,
                        related_name=c.title,
                    )
                )
            if (
                c.status != "compliant"
                and c.due_date is not None
                and (c.due_date - today).days < DUE_SOON_DAYS
            ):
                alerts.append(
                    ComplianceAlert(
                        id=f"compliance-alert-{c.id}-due",
                        type="control",
                        severity="high",
                        title=f"Approaching due date for {c.control_id}",
                        description=f"Remediation for control {c.control_id} is due {c.due_date:%Y-%m-%d}.",
                        related_id=c.id,
                        related_name=c.title,
                    )
                )

    if result is not None:
        stamp = result.date.strftime("%Y%m%d%H%M%S") if result.date else "latest"
        alerts.append(
            ComplianceAlert(
                id=f"compliance-assessment-{result.framework_id}-{stamp}",
                type="assessment",
                severity=assessment_severity(result.score_pct),
                title=f"New compliance assessment for {result.framework_name}",
                description=(
                    f"A compliance assessment for {result.framework_name} was completed "
                    f"with a score of {result.score_pct:.0f}%. {result.completed_controls} of "
                    f"{result.total_controls} controls were found compliant."
                ),
                related_id=result.framework_id,
                related_name=result.framework_name,
            )
        )
    return alerts
