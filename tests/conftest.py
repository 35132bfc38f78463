import pytest

from mock_api import InMemoryBackend
from models import Answer, Control, Framework


def make_framework(n_controls, framework_id="fw", statuses=None):
    statuses = statuses or ["pending"] * n_controls
    controls = [
        Control(
            id=f"{framework_id}-c{i}",
            title=f"Control {i}",
            category="General" if i % 2 else "Technical",
            priority="critical" if i == 0 else "medium",
            status=statuses[i],
        )
        for i in range(n_controls)
    ]
    return Framework(id=framework_id, name=framework_id.upper(), version="1", controls=controls)


def custom_control(control_id="enc"):
    """A control with its own question set: yes-no-na, required text, optional text."""
    return Control.from_dict(
        {
            "id": control_id,
            "title": "Encryption at rest",
            "category": "Technical",
            "questions": [
                {
                    "id": f"{control_id}-implementation",
                    "text": "Is data encrypted at rest?",
                    "answer_type": "yes-no-na",
                },
                {
                    "id": f"{control_id}-scope",
                    "text": "Which systems are covered?",
                    "answer_type": "text",
                },
                {
                    "id": f"{control_id}-owner",
                    "text": "Who owns the key management process?",
                    "answer_type": "text",
                    "required": False,
                },
            ],
        }
    )


def answer_sheet(framework, implementation):
    """
    Answers for every question of every control.

    `implementation` gives the implementation answer per control; the
    documentation and evidence questions are answered "yes".
    """
    answers = []
    for control, impl in zip(framework.controls, implementation):
        for q in control.questions:
            value = impl if q.is_implementation else "yes"
            answers.append(Answer(question_id=q.id, control_id=control.id, value=value))
    return answers


@pytest.fixture
def framework10():
    return make_framework(10)


@pytest.fixture
def backend():
    return InMemoryBackend.from_config()
