"""
Compliance data models: frameworks, controls, questions, answers and results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional


class AnswerType(str, Enum):
    YES_NO = "yes-no"
    YES_NO_PARTIAL = "yes-no-partial"
    YES_NO_NA = "yes-no-na"
    TEXT = "text"

    @property
    def choices(self) -> Optional[tuple[str, ...]]:
        """Legal values for choice questions, or None for free text."""
        return _CHOICES.get(self)


_CHOICES = {
    AnswerType.YES_NO: ("yes", "no"),
    AnswerType.YES_NO_PARTIAL: ("yes", "no", "partial"),
    AnswerType.YES_NO_NA: ("yes", "no", "na"),
}


class ComplianceStatus(str, Enum):
    COMPLIANT = "compliant"
    PARTIALLY_COMPLIANT = "partially-compliant"
    NON_COMPLIANT = "non-compliant"
    PENDING = "pending"


class OperationFailed(Exception):
    """A backend or report operation did not go through; the user may retry."""


def _parse_date(value):
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass
class Question:
    id: str
    control_id: str
    text: str
    answer_type: AnswerType = AnswerType.YES_NO
    required: bool = True
    description: str = ""

    def accepts(self, value: Optional[str]) -> bool:
        """True if `value` is a legal answer (None clears the answer)."""
        if value is None:
            return True
        choices = AnswerType(self.answer_type).choices
        if choices is None:
            return isinstance(value, str)
        return value in choices

    def is_answered_by(self, answer: Optional["Answer"]) -> bool:
        """
        True when `answer` settles this question.

        Free-text answers must also be non-blank: a cleared dcc.Textarea
        reports "" rather than None.
        """
        if answer is None or not answer.answered:
            return False
        if AnswerType(self.answer_type) == AnswerType.TEXT:
            return bool(str(answer.value).strip())
        return True

    @property
    def is_implementation(self) -> bool:
        return self.id.endswith("-implementation")


@dataclass
class Control:
    id: str
    title: str
    category: str
    control_id: str = ""
    description: str = ""
    priority: str = "medium"
    status: str = ComplianceStatus.PENDING.value
    owner: str = ""
    due_date: Optional[date] = None
    questions: list[Question] = field(default_factory=list)

    def __post_init__(self):
        self.control_id = self.control_id or self.id
        self.due_date = _parse_date(self.due_date)
        if not self.questions:
            self.questions = default_questions(self)

    @property
    def required_questions(self) -> list[Question]:
        return [q for q in self.questions if q.required]

    @classmethod
    def from_dict(cls, data: dict) -> "Control":
        data = dict(data)
        questions = [
            Question(
                id=q["id"],
                control_id=q.get("control_id", data["id"]),
                text=q["text"],
                answer_type=AnswerType(q.get("answer_type", "yes-no")),
                required=bool(q.get("required", True)),
                description=q.get("description", ""),
            )
            for q in data.pop("questions", []) or []
        ]
        return cls(questions=questions, **data)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "control_id": self.control_id,
            "title": self.title,
            "category": self.category,
            "description": self.description,
            "priority": self.priority,
            "status": self.status,
            "owner": self.owner,
            "due_date": _iso(self.due_date),
        }


def default_questions(control: Control) -> list[Question]:
    """
    The three standard questions asked for every control.

    The implementation question is the primary compliance indicator; the
    documentation and evidence questions must be answered but do not change
    the control's status.
    """
    return [
        Question(
            id=f"{control.id}-implementation",
            control_id=control.id,
            text=f"Is {control.title} implemented in your organization?",
            answer_type=AnswerType.YES_NO_PARTIAL,
            description=control.description,
        ),
        Question(
            id=f"{control.id}-documentation",
            control_id=control.id,
            text="Is this control formally documented?",
        ),
        Question(
            id=f"{control.id}-evidence",
            control_id=control.id,
            text="Do you have evidence to support compliance with this control?",
        ),
    ]


@dataclass
class Framework:
    id: str
    name: str
    version: str
    controls: list[Control] = field(default_factory=list)
    description: str = ""
    score: float = 0.0  # percent, 0-100
    status: str = ComplianceStatus.PENDING.value
    last_updated: Optional[date] = None

    def __post_init__(self):
        self.last_updated = _parse_date(self.last_updated)

    @classmethod
    def from_dict(cls, data: dict) -> "Framework":
        data = dict(data)
        controls = [Control.from_dict(c) for c in data.pop("controls", [])]
        return cls(controls=controls, **data)

    def to_dict(self) -> dict:
        counts = {s.value: 0 for s in ComplianceStatus}
        for c in self.controls:
            counts[c.status] = counts.get(c.status, 0) + 1
        return {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "score": self.score,
            "status": self.status,
            "last_updated": _iso(self.last_updated),
            "control_count": {"total": len(self.controls), **counts},
        }


@dataclass
class Answer:
    question_id: str
    control_id: str
    value: Optional[str] = None
    notes: str = ""

    @property
    def answered(self) -> bool:
        """
        Any non-null value counts. The answer does not know its question's
        type, so the blank-text rule for free-text questions lives in
        `Question.is_answered_by`.
        """
        return self.value is not None

    def to_dict(self) -> dict:
        return {
            "question_id": self.question_id,
            "control_id": self.control_id,
            "value": self.value,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Answer":
        return cls(
            question_id=data["question_id"],
            control_id=data["control_id"],
            value=data.get("value"),
            notes=data.get("notes") or "",
        )


def blank_answers(controls: list[Control]) -> list[Answer]:
    return [
        Answer(question_id=q.id, control_id=c.id)
        for c in controls
        for q in c.questions
    ]


@dataclass
class AssessmentResult:
    """Outcome of scoring one framework's answers. Derived, never stored as input."""
    framework_id: str
    framework_name: str
    score: float
    completed_controls: int
    total_controls: int
    status: str
    control_results: dict[str, str] = field(default_factory=dict)
    answers: list[Answer] = field(default_factory=list)
    date: Optional[datetime] = None

    @property
    def score_pct(self) -> float:
        return round(self.score * 100, 1)

    def to_dict(self) -> dict:
        return {
            "framework_id": self.framework_id,
            "framework_name": self.framework_name,
            "score": self.score,
            "completed_controls": self.completed_controls,
            "total_controls": self.total_controls,
            "status": self.status,
            "control_results": dict(self.control_results),
            "answers": [a.to_dict() for a in self.answers],
            "date": _iso(self.date),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AssessmentResult":
        when = data.get("date")
        return cls(
            framework_id=data["framework_id"],
            framework_name=data.get("framework_name", ""),
            score=float(data["score"]),
            completed_controls=int(data["completed_controls"]),
            total_controls=int(data["total_controls"]),
            status=data["status"],
            control_results=dict(data.get("control_results") or {}),
            answers=[Answer.from_dict(a) for a in data.get("answers") or []],
            date=datetime.fromisoformat(when) if when else None,
        )


@dataclass
class Audit:
    id: str
    framework_id: str
    title: str
    status: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    auditor: str = ""
    findings: list[str] = field(default_factory=list)
    score: float = 0.0
    notes: str = ""

    def __post_init__(self):
        self.start_date = _parse_date(self.start_date)
        self.end_date = _parse_date(self.end_date)

    @classmethod
    def from_dict(cls, data: dict) -> "Audit":
        data = dict(data)
        data.pop("finding_count", None)
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "framework_id": self.framework_id,
            "title": self.title,
            "status": self.status,
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "auditor": self.auditor,
            "findings": list(self.findings),
            "finding_count": len(self.findings),
            "score": self.score,
            "notes": self.notes,
        }
