"""
Assessment wizard.

A linear state machine over three steps:

    SELECT_FRAMEWORK -> ANSWER_CONTROLS[0..N-1] -> REVIEW -> (submitted)

Forward moves validate; a rejected move leaves the wizard where it was and
puts a single readable message in `error`. Backward moves never validate and
never discard answers. The result is scored once, on entering REVIEW, and
handed to the completion callback on submit.

The wizard holds no UI state of its own, so the Dash callbacks rebuild it
from `to_dict()` output kept in a dcc.Store on every event.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from enum import IntEnum
from typing import Callable, Optional

from config import MINUTES_PER_CONTROL
from models import Answer, AssessmentResult, Control, Framework, blank_answers
from scoring import framework_by_id, score_assessment

logger = logging.getLogger(__name__)


class Step(IntEnum):
    SELECT_FRAMEWORK = 0
    ANSWER_CONTROLS = 1
    REVIEW = 2


STEP_LABELS = ["Select Framework", "Answer Assessment Questions", "Review and Submit"]


class AssessmentWizard:
    """
    Walk one framework's controls and produce an AssessmentResult.

    :param frameworks: frameworks the user may choose from
    :param on_complete: called with the result when the user submits
    :param clock: returns the timestamp stamped on the result
    """

    def __init__(
        self,
        frameworks: list[Framework],
        on_complete: Optional[Callable[[AssessmentResult], None]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.frameworks = frameworks
        self.on_complete = on_complete
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        self.step = Step.SELECT_FRAMEWORK
        self.framework_id: Optional[str] = None
        self.controls: list[Control] = []
        self.answers: list[Answer] = []
        self.control_index = 0
        self.error: Optional[str] = None
        self.result: Optional[AssessmentResult] = None
        self.submitted = False

    # -------------- Queries --------------
    @property
    def framework(self) -> Optional[Framework]:
        return framework_by_id(self.frameworks, self.framework_id)

    @property
    def current_control(self) -> Optional[Control]:
        if self.step != Step.ANSWER_CONTROLS or not self.controls:
            return None
        return self.controls[self.control_index]

    @property
    def progress(self) -> int:
        """Percent of controls reached, counting the one on screen."""
        if not self.controls:
            return 0
        return round((self.control_index + 1) / len(self.controls) * 100)

    @property
    def estimated_hours(self) -> int:
        return math.ceil(len(self.controls) * MINUTES_PER_CONTROL / 60)

    def answer_for(self, question_id: str) -> Answer:
        for a in self.answers:
            if a.question_id == question_id:
                return a
        raise KeyError(question_id)

    def unanswered(self, control: Control) -> list[str]:
        """Ids of the control's required questions that still lack an answer."""
        by_id = {a.question_id: a for a in self.answers}
        return [q.id for q in control.required_questions if not q.is_answered_by(by_id.get(q.id))]

    # -------------- Inputs --------------
    def select_framework(self, framework_id: Optional[str]) -> bool:
        """
        Choose the framework to assess and lay out blank answers for it.

        Re-selecting the framework already in progress keeps its answers.
        """
        if self.submitted or self.step != Step.SELECT_FRAMEWORK:
            return False
        if not framework_id:
            self.framework_id = None
            self.controls, self.answers = [], []
            return True
        if framework_id == self.framework_id:
            return True
        framework = framework_by_id(self.frameworks, framework_id)
        if framework is None:
            self.error = "Failed to generate assessment questions. Please try again."
            return False
        self.framework_id = framework.id
        self.controls = list(framework.controls)
        self.answers = blank_answers(self.controls)
        self.control_index = 0
        self.error = None
        return True

    def answer(self, question_id: str, value: Optional[str], notes: Optional[str] = None):
        """
        Record an answer. Raises ValueError when the value is not legal for the
        question's answer type.
        """
        question = self._question(question_id)
        if not question.accepts(value):
            raise ValueError(f"{value!r} is not a valid answer to {question_id}")
        a = self.answer_for(question_id)
        a.value = value
        if notes is not None:
            a.notes = notes

    # -------------- Transitions --------------
    def next(self) -> bool:
        if self.submitted:
            return False

        if self.step == Step.SELECT_FRAMEWORK:
            framework = self.framework
            if framework is None:
                return self._reject("Please select a compliance framework")
            if not self.controls:
                return self._reject(f"{framework.name} has no controls to assess")
            self.step = Step.ANSWER_CONTROLS
            self.control_index = 0
            self.error = None
            return True

        if self.step == Step.ANSWER_CONTROLS:
            control = self.controls[self.control_index]
            if self.unanswered(control):
                return self._reject(
                    f"Please answer all required questions for {control.title}"
                )
            if self.control_index < len(self.controls) - 1:
                self.control_index += 1
                self.error = None
                return True
            self.result = score_assessment(
                self.framework, self.controls, self.answers, assessed_on=self.clock()
            )
            logger.info(
                "assessment scored: framework=%s score=%.3f status=%s",
                self.framework_id,
                self.result.score,
                self.result.status,
            )
            self.step = Step.REVIEW
            self.error = None
            return True

        return False

    def back(self) -> bool:
        if self.submitted or self.step == Step.SELECT_FRAMEWORK:
            return False
        if self.step == Step.ANSWER_CONTROLS and self.control_index > 0:
            self.control_index -= 1
        elif self.step == Step.ANSWER_CONTROLS:
            self.step = Step.SELECT_FRAMEWORK
        else:
            self.step = Step.ANSWER_CONTROLS
            self.result = None
        self.error = None
        return True

    def submit(self) -> Optional[AssessmentResult]:
        """Hand the reviewed result to the completion callback. Terminal."""
        if self.submitted or self.step != Step.REVIEW or self.result is None:
            self._reject("Complete the assessment before submitting")
            return None
        if self.on_complete is not None:
            self.on_complete(self.result)
        self.submitted = True
        self.error = None
        return self.result

    def _reject(self, message: str) -> bool:
        self.error = message
        return False

    def _question(self, question_id: str):
        for c in self.controls:
            for q in c.questions:
                if q.id == question_id:
                    return q
        raise KeyError(question_id)

    # -------------- Store round-trip --------------
    def to_dict(self) -> dict:
        return {
            "step": int(self.step),
            "framework_id": self.framework_id,
            "control_index": self.control_index,
            "answers": [a.to_dict() for a in self.answers],
            "error": self.error,
            "result": self.result.to_dict() if self.result else None,
            "submitted": self.submitted,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict], frameworks: list[Framework], **kwargs) -> "AssessmentWizard":
        wiz = cls(frameworks, **kwargs)
        if not data:
            return wiz
        framework = framework_by_id(frameworks, data.get("framework_id"))
        if framework is not None:
            wiz.framework_id = framework.id
            wiz.controls = list(framework.controls)
            wiz.answers = blank_answers(wiz.controls)
            saved = {a["question_id"]: a for a in data.get("answers") or []}
            for a in wiz.answers:
                if a.question_id in saved:
                    a.value = saved[a.question_id].get("value")
                    a.notes = saved[a.question_id].get("notes") or ""
        wiz.step = Step(data.get("step", 0)) if wiz.controls else Step.SELECT_FRAMEWORK
        wiz.control_index = min(int(data.get("control_index", 0)), max(0, len(wiz.controls) - 1))
        wiz.error = data.get("error")
        if data.get("result"):
            wiz.result = AssessmentResult.from_dict(data["result"])
        wiz.submitted = bool(data.get("submitted"))
        return wiz
